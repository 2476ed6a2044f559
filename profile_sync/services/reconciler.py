"""
Whole-collection reconciliation against the user resource.

The user endpoint only accepts complete replacement of a sub-collection, so
every change runs the same cycle: fetch the authoritative user, normalize
every member into write form, apply one change, and PATCH the full result.
The cycle is not transactional; a concurrent writer landing between the GET
and the PATCH is overwritten.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from profile_sync.errors import NotFoundError, ProfileSyncError, ValidationError
from profile_sync.models.address import NEW_ID_PREFIX, Address, AddressValue
from profile_sync.models.profile import Education, Phone, PhoneType, SocialNetwork
from profile_sync.models.references import iri, parse_reference
from profile_sync.services import address_codec
from profile_sync.services.api_client import ApiClient
from profile_sync.services.catalog_service import CatalogService
from profile_sync.utils.logger import get_logger
from profile_sync.utils.validators import (
    format_handle,
    get_network_rule,
    network_url,
    validate_handle,
    validate_phone,
)

logger = get_logger(__name__)


def placeholder_id(index: int = 0) -> str:
    """Client-side identity for a member the server has not numbered yet."""
    return f"{NEW_ID_PREFIX}{time.time_ns()}-{index}"


class MutationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    CLEAR = "clear"


@dataclass
class Mutation:
    """One logical change to a collection."""
    kind: MutationKind
    identity: Optional[str] = None
    value: Any = None

    @classmethod
    def insert(cls, value: Any) -> "Mutation":
        return cls(MutationKind.INSERT, value=value)

    @classmethod
    def update(cls, identity: str, value: Any) -> "Mutation":
        return cls(MutationKind.UPDATE, identity=identity, value=value)

    @classmethod
    def delete(cls, identity: str) -> "Mutation":
        return cls(MutationKind.DELETE, identity=identity)

    @classmethod
    def clear(cls) -> "Mutation":
        return cls(MutationKind.CLEAR)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation."""
    ok: bool
    items: List[Any] = field(default_factory=list)
    error: Optional[ProfileSyncError] = None
    payload: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.ok


class ManagedCollection:
    """
    One sub-collection of the user resource.

    Subclasses define how members are read, identified, normalized into
    write form and decoded into local models.
    """

    name = "collection"
    field = ""
    refetch_after_write = False

    def extract(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        members = user.get(self.field)
        return list(members) if isinstance(members, list) else []

    def present_in(self, data: Any) -> bool:
        return isinstance(data, dict) and self.field in data

    def identity(self, member: Dict[str, Any]) -> Optional[str]:
        member_id = member.get("id")
        return str(member_id) if member_id is not None else None

    def normalize(self, member: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def prepare(self, value: Any, identity: Optional[str] = None) -> Dict[str, Any]:
        """Validate a local value and render it as a write-form member."""
        raise NotImplementedError

    def check(self, members: List[Dict[str, Any]]) -> None:
        """Reject a member list that breaks a collection-wide invariant."""

    def payload(self, members: List[Dict[str, Any]]) -> Dict[str, Any]:
        # An empty list is sent explicitly so the server clears the field
        return {self.field: members}

    def decode(self, members: List[Dict[str, Any]]) -> List[Any]:
        raise NotImplementedError


class AddressCollection(ManagedCollection):
    name = "addresses"
    field = "addresses"
    # New members only get their ids from a fresh GET
    refetch_after_write = True

    def normalize(self, member):
        return address_codec.to_iri_form(member)

    def prepare(self, value: AddressValue, identity=None):
        if not value.is_submittable():
            if value.province_id is None:
                raise ValidationError("Select a province")
            raise ValidationError("Select a city or a district")
        data = address_codec.encode(value)
        if identity is not None and identity.isdigit():
            data = {"id": int(identity), **data}
        return data

    def decode(self, members):
        # Untitled addresses stay listed so they can still be deleted
        return [
            Address(
                id=self.identity(member) or f"addr-{index}",
                display_text=address_codec.to_display_text(member),
                value=address_codec.decode(member),
            )
            for index, member in enumerate(members)
        ]


class EducationCollection(ManagedCollection):
    name = "education"
    field = "education"

    def __init__(self, catalog: Optional[CatalogService] = None):
        self.catalog = catalog

    def normalize(self, member):
        data = {
            "id": member.get("id"),
            "uniTitle": member.get("uniTitle"),
            "beginning": member.get("beginning"),
            "ending": member.get("ending"),
            "graduated": member.get("graduated"),
        }
        ref = parse_reference(member.get("occupation"), "occupations")
        if ref is not None:
            data["occupation"] = ref.to_iri()
        return data

    def prepare(self, value: Education, identity=None):
        if not value.institution.strip() or not value.start_year:
            raise ValidationError("Institution and start year are required")
        if value.end_year is not None and not value.currently_studying and value.end_year < value.start_year:
            raise ValidationError("End year precedes start year")

        data: Dict[str, Any] = {
            "uniTitle": value.institution.strip(),
            "beginning": value.start_year,
            "ending": None if value.currently_studying else value.end_year,
            "graduated": not value.currently_studying,
        }
        if value.occupation_id is not None:
            data["occupation"] = iri("occupations", value.occupation_id)
        if identity is not None and identity.isdigit():
            data["id"] = int(identity)
        return data

    def _specialty(self, raw: Any) -> Tuple[Optional[int], str]:
        if isinstance(raw, list) and len(raw) > 1:
            titles = [str(o.get("title")) for o in raw if isinstance(o, dict) and o.get("title")]
            ref = parse_reference(raw, "occupations")
            return (ref.id if ref else None), ", ".join(titles)
        ref = parse_reference(raw, "occupations")
        if ref is None:
            return None, ""
        title = ref.title or ""
        if not title and self.catalog is not None:
            # Unresolved ids degrade to an empty specialty
            title = self.catalog.occupation_title(ref.id)
        return ref.id, title

    def decode(self, members):
        entries = []
        for index, member in enumerate(members):
            occupation_id, specialty = self._specialty(member.get("occupation"))
            graduated = member.get("graduated")
            entries.append(Education(
                id=self.identity(member) or placeholder_id(index),
                institution=member.get("uniTitle") or "",
                specialty=specialty,
                occupation_id=occupation_id,
                start_year=member.get("beginning"),
                end_year=member.get("ending"),
                currently_studying=not graduated,
            ))
        return entries


class SocialNetworkCollection(ManagedCollection):
    name = "social networks"
    field = "socialNetworks"

    def normalize(self, member):
        handle = (member.get("handle") or "").strip()
        return {
            "network": str(member.get("network") or "").lower(),
            # Explicit null clears the handle on the server
            "handle": handle or None,
        }

    def prepare(self, value: SocialNetwork, identity=None):
        network = value.network.lower()
        if get_network_rule(network) is None:
            raise ValidationError(f"Unsupported social network: {value.network}")
        if not validate_handle(network, value.handle):
            raise ValidationError(f"Invalid {network} handle: {value.handle}")
        handle = format_handle(network, value.handle)
        return {"network": network, "handle": handle or None}

    def check(self, members):
        networks = [m["network"] for m in members]
        if len(networks) != len(set(networks)):
            raise ValidationError("Each social network can be added only once")

    def decode(self, members):
        networks = []
        for index, member in enumerate(members):
            network = str(member.get("network") or "").lower()
            if not network:
                continue
            handle = member.get("handle") or ""
            networks.append(SocialNetwork(
                id=self.identity(member) or placeholder_id(index),
                network=network,
                handle=handle,
                url=network_url(network, handle),
            ))
        return networks


class PhoneCollection(ManagedCollection):
    """Two scalar fields (``phone1``, ``phone2``) presented as a collection."""

    name = "phones"
    field = "phone1"

    def extract(self, user):
        members = []
        for phone_type in PhoneType:
            number = user.get(phone_type.api_field)
            if isinstance(number, str) and number:
                members.append({"id": phone_type.phone_id, "type": phone_type.value, "number": number})
        return members

    def present_in(self, data):
        return isinstance(data, dict) and any(t.api_field in data for t in PhoneType)

    def normalize(self, member):
        return {"id": member["id"], "type": member["type"], "number": member["number"]}

    def prepare(self, value: Phone, identity=None):
        number = value.number.strip()
        if not validate_phone(number, value.type.value):
            if value.type is PhoneType.TJ:
                raise ValidationError("Invalid number, expected +992XXXXXXXXX")
            raise ValidationError("Invalid number, expected + followed by 10 to 15 digits")
        return {"id": value.type.phone_id, "type": value.type.value, "number": number}

    def check(self, members):
        types = [m["type"] for m in members]
        if len(types) != len(set(types)):
            raise ValidationError("At most one phone per type: one +992 and one international")

    def payload(self, members):
        by_type = {m["type"]: m["number"] for m in members}
        return {t.api_field: by_type.get(t.value) for t in PhoneType}

    def decode(self, members):
        return [Phone(id=m["id"], number=m["number"], type=PhoneType(m["type"])) for m in members]


class CollectionReconciler:
    """Apply one change to a user sub-collection via fetch, normalize, mutate, write."""

    def __init__(self, client: ApiClient):
        self.client = client

    @staticmethod
    def user_path(user_id: str) -> str:
        return f"/api/users/{user_id}"

    def apply_mutation(
        self,
        collection: ManagedCollection,
        current: List[Dict[str, Any]],
        mutation: Mutation,
    ) -> List[Dict[str, Any]]:
        """
        Normalize every current member and apply exactly one change.

        Raises:
            ValidationError: Invalid new value, or a duplicate phone slot
            NotFoundError: Delete of an identity that isn't present
        """
        identities = [collection.identity(member) for member in current]
        members = [collection.normalize(member) for member in current]

        if mutation.kind is MutationKind.CLEAR:
            return []

        if mutation.kind is MutationKind.DELETE:
            if mutation.identity not in identities:
                raise NotFoundError(f"No {collection.name} entry {mutation.identity}", 404)
            return [m for m, ident in zip(members, identities) if ident != mutation.identity]

        if mutation.kind is MutationKind.UPDATE and mutation.identity in identities:
            member = collection.prepare(mutation.value, mutation.identity)
            index = identities.index(mutation.identity)
            members[index] = member
            collection.check(members)
            return members

        # Inserts, and updates of members the server does not know yet
        members.append(collection.prepare(mutation.value))
        collection.check(members)
        return members

    def reconcile(self, user_id: str, collection: ManagedCollection, mutation: Mutation) -> ReconcileResult:
        """
        Run one reconciliation cycle.

        Args:
            user_id: Server id of the owning user
            collection: Sub-collection being changed
            mutation: The single change to apply

        Returns:
            Result with the decoded collection on success, or the error
        """
        path = self.user_path(user_id)
        try:
            user = self.client.get(path) or {}
            members = self.apply_mutation(collection, collection.extract(user), mutation)
            payload = collection.payload(members)
            response = self.client.patch(path, payload)

            if collection.refetch_after_write:
                source = collection.extract(self.client.get(path) or {})
            elif collection.present_in(response):
                source = collection.extract(response)
            else:
                source = members

            items = collection.decode(source)
            logger.info(f"Reconciled {collection.name} ({mutation.kind.value}): {len(items)} entries")
            return ReconcileResult(ok=True, items=items, payload=payload)

        except ProfileSyncError as e:
            logger.error(f"Could not {mutation.kind.value} {collection.name}: {e.message}")
            return ReconcileResult(ok=False, error=e)
