"""
Profile aggregate view.

Composes the reconciler, gallery, rating and catalog services into one
denormalized ``ProfileData`` held by a ``ProfileStore``. Every completion
merges a ``ProfileUpdate`` into the store; only ``load`` replaces it.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from profile_sync.errors import ConfigurationError, ProfileSyncError, ValidationError
from profile_sync.models.address import AddressValue
from profile_sync.models.profile import (
    AvailableSocialNetwork,
    Education,
    Phone,
    PhoneType,
    ProfileData,
    ProfileUpdate,
    Service,
    SocialNetwork,
)
from profile_sync.models.references import iri
from profile_sync.services import address_codec
from profile_sync.services.api_client import ApiClient
from profile_sync.services.catalog_service import CatalogService
from profile_sync.services.gallery_service import GalleryService
from profile_sync.services.profile_store import ProfileStore, remove_optimistically
from profile_sync.services.rating_service import RatingService
from profile_sync.services.reconciler import (
    AddressCollection,
    CollectionReconciler,
    EducationCollection,
    ManagedCollection,
    Mutation,
    PhoneCollection,
    ReconcileResult,
    SocialNetworkCollection,
    placeholder_id,
)
from profile_sync.utils.file_utils import file_size, is_image_file
from profile_sync.utils.logger import get_logger

logger = get_logger(__name__)

SELF = "self"

# Slices that can be refreshed on their own
REFRESH_KINDS = ("gallery", "reviews", "services", "user")


def subject_role(user: Dict[str, Any]) -> str:
    """``master`` for users holding ROLE_MASTER, otherwise ``client``."""
    roles = user.get("roles") or []
    return "master" if "ROLE_MASTER" in roles else "client"


def full_name(user: Dict[str, Any]) -> str:
    parts = [user.get("surname"), user.get("name"), user.get("patronymic")]
    return " ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())


def specialty_titles(user: Dict[str, Any]) -> List[str]:
    occupations = user.get("occupation") or []
    if isinstance(occupations, dict):
        occupations = [occupations]
    return [o["title"] for o in occupations if isinstance(o, dict) and o.get("title")]


def work_area(addresses: List[Dict[str, Any]]) -> str:
    """Unique address display texts in order, comma-separated."""
    texts = []
    for address in addresses:
        text = address_codec.to_display_text(address)
        if text and text not in texts:
            texts.append(text)
    return ", ".join(texts)


def parse_service(ticket: Dict[str, Any]) -> Service:
    unit = ticket.get("unit")
    if isinstance(unit, dict):
        unit = unit.get("title")
    budget = ticket.get("budget")
    return Service(
        id=str(ticket["id"]),
        name=ticket.get("title") or "Untitled",
        price=budget if isinstance(budget, (int, float)) else 0,
        unit=unit if isinstance(unit, str) else "",
        description=ticket.get("description") or "",
        active=bool(ticket.get("active", True)),
    )


class ProfileService:
    """Read model of one profile plus every mutation that edits it."""

    def __init__(
        self,
        client: ApiClient,
        store: Optional[ProfileStore] = None,
        catalog: Optional[CatalogService] = None,
    ):
        """
        Initialize profile service.

        Args:
            client: API client authenticated as the profile owner
            store: Store holding the read model; a new one when omitted
            catalog: Reference catalogs; built from the client when omitted
        """
        self.client = client
        self.store = store if store is not None else ProfileStore()
        self.catalog = catalog if catalog is not None else CatalogService(client)
        self.gallery = GalleryService(client)
        self.ratings = RatingService(client)
        self.reconciler = CollectionReconciler(client)

        self.addresses = AddressCollection()
        self.education = EducationCollection(self.catalog)
        self.social_networks = SocialNetworkCollection()
        self.phones = PhoneCollection()

        self.role = "master"

    @property
    def profile(self) -> ProfileData:
        return self.store.snapshot()

    def _user_id(self) -> str:
        user_id = self.store.snapshot().id
        if not user_id:
            raise ConfigurationError("No profile loaded")
        return user_id

    # Loading

    def avatar_url(self, user: Dict[str, Any]) -> Optional[str]:
        """
        Avatar URL, preferring a locally hosted image over the external one.

        The locally hosted path is probed first, then the base-relative
        path. When neither answers, the external provider URL is used.
        """
        image = user.get("image")
        if isinstance(image, str) and image:
            if image.startswith("http"):
                return image
            name = image.rsplit("/", 1)[-1]
            candidates = [
                f"{self.client.base_url}/images/profile_photos/{name}",
                f"{self.client.base_url}{image}" if image.startswith("/") else f"{self.client.base_url}/{image}",
            ]
            for url in dict.fromkeys(candidates):
                if self.client.probe(url):
                    return url
            logger.debug(f"Hosted avatar {image} is unreachable")
        external = user.get("imageExternalUrl")
        if isinstance(external, str) and external:
            return external
        return None

    def decode_user(self, user: Dict[str, Any]) -> ProfileData:
        """Build the read model from a user resource (no gallery, reviews or services)."""
        addresses = self.addresses.extract(user)
        rating = user.get("rating")
        return ProfileData(
            id=str(user.get("id") or ""),
            full_name=full_name(user),
            email=user.get("email") or "",
            gender=user.get("gender") or "",
            date_of_birth=user.get("dateOfBirth"),
            specialties=specialty_titles(user),
            rating=rating if isinstance(rating, (int, float)) else 0,
            avatar=self.avatar_url(user),
            education=self.education.decode(self.education.extract(user)),
            work_area=work_area(addresses),
            addresses=self.addresses.decode(addresses),
            can_work_remotely=bool(user.get("atHome")),
            social_networks=self.social_networks.decode(self.social_networks.extract(user)),
            phones=self.phones.decode(self.phones.extract(user)),
        )

    def load(self, subject: Union[int, str] = SELF) -> ProfileData:
        """
        Fetch and decode a whole profile into the store.

        Any failure yields an empty profile so callers can render an
        empty state.

        Args:
            subject: User id, or ``"self"`` for the authenticated user
        """
        path = "/api/users/me" if str(subject) == SELF else f"/api/users/{subject}"
        try:
            # Education titles resolve against the occupation catalog
            self.catalog.occupations()
            user = self.client.get(path)
            if not isinstance(user, dict) or user.get("id") is None:
                raise ProfileSyncError(f"Unexpected user payload from {path}")

            self.role = subject_role(user)
            profile = self.decode_user(user)
            reviews = self._fetch_reviews(profile.id)
            profile = profile.model_copy(update={
                "reviews": len(reviews),
                "services": self._fetch_services(profile.id),
            })
            if str(subject) == SELF:
                # Only the owner's own gallery is reachable
                profile = profile.model_copy(update={"work_examples": self.gallery.work_examples()})
        except ProfileSyncError as e:
            logger.error(f"Could not load profile {subject}: {e.message}")
            return self.store.replace(ProfileData())

        logger.info(f"Loaded profile {profile.id} ({profile.full_name or 'unnamed'})")
        return self.store.replace(profile)

    def _fetch_reviews(self, user_id: str):
        try:
            return self.ratings.fetch_reviews(user_id, self.role)
        except ProfileSyncError as e:
            logger.warning(f"Could not load reviews: {e.message}")
            return []

    def _fetch_services(self, user_id: str) -> List[Service]:
        if self.role == "master":
            params = {
                "service": "true", "active": "true",
                "exists[author]": "false", "exists[master]": "true", "master": user_id,
            }
        else:
            params = {
                "service": "false", "active": "true",
                "exists[master]": "false", "exists[author]": "true", "author": user_id,
            }
        try:
            tickets = self.client.get_collection("/api/tickets", params=params)
        except ProfileSyncError as e:
            logger.warning(f"Could not load services: {e.message}")
            return []
        services = [parse_service(t) for t in tickets if isinstance(t, dict) and t.get("id") is not None]
        # Newest first
        return list(reversed(services))

    def fetch_services(self) -> List[Service]:
        """Services listed on the loaded profile."""
        return self.refresh_after("services").services

    def refresh_after(self, kind: str) -> ProfileData:
        """
        Re-fetch only the slice a mutation affected.

        Args:
            kind: ``gallery``, ``reviews``, ``services`` or ``user``
        """
        if kind not in REFRESH_KINDS:
            raise ValueError(f"Unknown refresh kind: {kind}")
        user_id = self._user_id()

        if kind == "gallery":
            return self.store.apply(ProfileUpdate(work_examples=self.gallery.work_examples()))
        if kind == "reviews":
            reviews = self._fetch_reviews(user_id)
            return self.store.apply(ProfileUpdate(reviews=len(reviews)))
        if kind == "services":
            return self.store.apply(ProfileUpdate(services=self._fetch_services(user_id)))

        fresh = self.decode_user(self.client.get(f"/api/users/{user_id}") or {})
        return self.store.apply(ProfileUpdate(
            full_name=fresh.full_name,
            specialties=fresh.specialties,
            rating=fresh.rating,
            avatar=fresh.avatar,
            work_area=fresh.work_area,
            can_work_remotely=fresh.can_work_remotely,
        ))

    # Collections

    def _reconcile(self, collection: ManagedCollection, field: str, mutation: Mutation) -> ReconcileResult:
        result = self.reconciler.reconcile(self._user_id(), collection, mutation)
        if result.ok:
            changes = {field: result.items}
            if collection is self.addresses:
                changes["work_area"] = ", ".join(
                    dict.fromkeys(a.display_text for a in result.items if a.display_text)
                )
            self.store.apply(ProfileUpdate(**changes))
        return result

    def add_social_network(self, network: str, handle: str = "") -> ReconcileResult:
        entry = SocialNetwork(id=placeholder_id(), network=network, handle=handle)
        return self._reconcile(self.social_networks, "social_networks", Mutation.insert(entry))

    def update_social_network(self, entry_id: str, network: str, handle: str) -> ReconcileResult:
        entry = SocialNetwork(id=entry_id, network=network, handle=handle)
        return self._reconcile(self.social_networks, "social_networks", Mutation.update(entry_id, entry))

    def remove_social_network(self, entry_id: str) -> ReconcileResult:
        return self._reconcile(self.social_networks, "social_networks", Mutation.delete(entry_id))

    def clear_social_networks(self) -> ReconcileResult:
        return self._reconcile(self.social_networks, "social_networks", Mutation.clear())

    def available_social_networks(self) -> List[AvailableSocialNetwork]:
        present = [n.network for n in self.store.snapshot().social_networks]
        return self.catalog.available_networks(present)

    def add_address(self, value: AddressValue) -> ReconcileResult:
        return self._reconcile(self.addresses, "addresses", Mutation.insert(value))

    def update_address(self, address_id: str, value: AddressValue) -> ReconcileResult:
        return self._reconcile(self.addresses, "addresses", Mutation.update(address_id, value))

    def remove_address(self, address_id: str) -> ReconcileResult:
        return self._reconcile(self.addresses, "addresses", Mutation.delete(address_id))

    def set_phone(self, phone_type: PhoneType, number: str) -> ReconcileResult:
        """Add or replace the phone in one slot."""
        phone = Phone.for_type(phone_type, number)
        return self._reconcile(self.phones, "phones", Mutation.update(phone.id, phone))

    def remove_phone(self, phone_type: PhoneType) -> ReconcileResult:
        return self._reconcile(self.phones, "phones", Mutation.delete(phone_type.phone_id))

    def add_education(self, entry: Education) -> ReconcileResult:
        return self._reconcile(self.education, "education", Mutation.insert(entry))

    def update_education(self, entry_id: str, entry: Education) -> ReconcileResult:
        return self._reconcile(self.education, "education", Mutation.update(entry_id, entry))

    def remove_education(self, entry_id: str) -> bool:
        """Remove an education entry optimistically; it is restored in place on failure."""
        user_id = self._user_id()

        def remote() -> bool:
            result = self.reconciler.reconcile(user_id, self.education, Mutation.delete(entry_id))
            return result.ok

        return remove_optimistically(self.store, "education", entry_id, remote)

    # Scalar fields

    def _patch_user(self, data: Dict[str, Any]) -> Any:
        return self.client.patch(f"/api/users/{self._user_id()}", data)

    def update_full_name(self, name: str) -> ProfileData:
        """
        Split a display name into surname, name and patronymic and store it.

        Raises:
            ValidationError: The name is empty
        """
        parts = name.split()
        if not parts:
            raise ValidationError("Name is required")
        self._patch_user({
            "surname": parts[0],
            "name": parts[1] if len(parts) > 1 else "",
            "patronymic": " ".join(parts[2:]),
        })
        logger.info("Updated full name")
        return self.store.apply(ProfileUpdate(full_name=" ".join(parts)))

    def update_specialties(self, titles: Sequence[str]) -> ProfileData:
        """
        Replace the profile's occupations by title.

        Raises:
            ValidationError: A title matches no catalog occupation
        """
        matched = []
        for title in titles:
            occupation = self.catalog.find_occupation(title)
            if occupation is None:
                raise ValidationError(f"Unknown specialty: {title}")
            if occupation not in matched:
                matched.append(occupation)

        self._patch_user({"occupation": [iri("occupations", o["id"]) for o in matched]})
        logger.info(f"Updated specialties: {len(matched)}")
        return self.store.apply(ProfileUpdate(specialties=[o["title"] for o in matched]))

    def set_can_work_remotely(self, enabled: bool) -> ProfileData:
        self._patch_user({"atHome": bool(enabled)})
        return self.store.apply(ProfileUpdate(can_work_remotely=bool(enabled)))

    def upload_avatar(self, path: Union[str, Path]) -> ProfileData:
        """
        Replace the profile photo.

        Raises:
            ValidationError: Not an image, or larger than the avatar limit
        """
        path = Path(path)
        if not path.is_file() or not is_image_file(path):
            raise ValidationError(f"{path.name} is not an image")
        if file_size(path) > self.client.settings.max_avatar_bytes:
            raise ValidationError(f"{path.name} exceeds the avatar size limit")

        user_id = self._user_id()
        self.client.upload(f"/api/users/{user_id}/update-photo", [path])
        logger.info(f"Uploaded avatar for user {user_id}")

        user = self.client.get(f"/api/users/{user_id}") or {}
        return self.store.apply(ProfileUpdate(avatar=self.avatar_url(user)))

    # Gallery and rating

    def upload_work_examples(self, files: Sequence[Union[str, Path]]) -> ProfileData:
        self.gallery.add_images(files)
        return self.refresh_after("gallery")

    def remove_work_example(self, image_id: Union[int, str]) -> ProfileData:
        self.gallery.remove_image(image_id)
        return self.refresh_after("gallery")

    def clear_work_examples(self) -> ProfileData:
        self.gallery.remove_all()
        return self.refresh_after("gallery")

    def refresh_rating(self) -> ProfileData:
        """Recompute the rating from reviews and store it when it changed."""
        user_id = self._user_id()
        current = self.store.snapshot().rating
        reviews = self.ratings.fetch_reviews(user_id, self.role)
        rating = self.ratings.refresh_rating(user_id, current, reviews=reviews, role=self.role)
        return self.store.apply(ProfileUpdate(rating=rating, reviews=len(reviews)))
