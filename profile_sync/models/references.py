"""
Resource references as decoded from API responses.

The backend returns the same logical reference as an IRI string, an embedded
object or a list of embedded objects. These are collapsed at the boundary
into one of two variants, each with a single canonical IRI.
"""

import re
from typing import Any, Optional, Union

from pydantic import BaseModel

IRI_PATTERN = re.compile(r"^/api/(?P<resource>[\w-]+)/(?P<id>\d+)$")


def iri(resource: str, resource_id: Union[int, str]) -> str:
    """Build a path-style reference, e.g. ``/api/provinces/3``."""
    return f"/api/{resource}/{resource_id}"


def parse_iri(value: Any) -> Optional[int]:
    """Numeric id from an IRI string, or None when it isn't one."""
    if not isinstance(value, str):
        return None
    match = IRI_PATTERN.match(value.strip())
    if not match:
        return None
    return int(match.group("id"))


class UnresolvedRef(BaseModel):
    """Reference known only by its IRI."""
    iri: str

    class Config:
        frozen = True

    @property
    def id(self) -> Optional[int]:
        return parse_iri(self.iri)

    @property
    def title(self) -> Optional[str]:
        return None

    def to_iri(self) -> str:
        return self.iri


class ResolvedRef(BaseModel):
    """Reference embedded with its id and title."""
    resource: str
    id: int
    title: str = ""

    class Config:
        frozen = True

    def to_iri(self) -> str:
        return iri(self.resource, self.id)


Reference = Union[UnresolvedRef, ResolvedRef]


def parse_reference(raw: Any, resource: str) -> Optional[Reference]:
    """
    Decode a reference in any of its wire shapes.

    Args:
        raw: IRI string, ``{"id": .., "title": ..}`` object, or a list of such
            objects (the first one wins)
        resource: Resource collection name used to build IRIs, e.g. ``occupations``

    Returns:
        The decoded reference, or None for absent or malformed input
    """
    if isinstance(raw, list):
        raw = raw[0] if raw else None

    if isinstance(raw, str):
        return UnresolvedRef(iri=raw) if parse_iri(raw) is not None else None

    if isinstance(raw, dict) and raw.get("id") is not None:
        try:
            ref_id = int(raw["id"])
        except (TypeError, ValueError):
            return None
        return ResolvedRef(resource=resource, id=ref_id, title=str(raw.get("title") or ""))

    return None
