"""
Conversion between local address selections and their wire forms.

GET responses carry each administrative level as an embedded object (or,
occasionally, an IRI string); PATCH requests require IRI strings.
"""

from typing import Any, Dict, Optional

from profile_sync.models.address import ADDRESS_LEVELS, AddressValue
from profile_sync.models.references import iri, parse_reference

RESOURCES = dict(ADDRESS_LEVELS)


def _level_id(raw: Any, level: str) -> Optional[int]:
    ref = parse_reference(raw, RESOURCES[level])
    return ref.id if ref is not None else None


def _level_title(raw: Any) -> Optional[str]:
    if isinstance(raw, str):
        return raw.strip() or None
    if isinstance(raw, dict) and isinstance(raw.get("title"), str):
        return raw["title"].strip() or None
    return None


def decode(server_address: Dict[str, Any]) -> AddressValue:
    """
    Extract level ids from a server address.

    Levels that are absent or malformed come back as None (or empty lists).
    """
    suburb_id = _level_id(server_address.get("suburb"), "suburb")
    district_id = _level_id(server_address.get("district"), "district")
    return AddressValue(
        province_id=_level_id(server_address.get("province"), "province"),
        city_id=_level_id(server_address.get("city"), "city"),
        suburb_ids=[suburb_id] if suburb_id is not None else [],
        district_ids=[district_id] if district_id is not None else [],
        settlement_id=_level_id(server_address.get("settlement"), "settlement"),
        community_id=_level_id(server_address.get("community"), "community"),
        village_id=_level_id(server_address.get("village"), "village"),
    )


def encode(value: AddressValue) -> Optional[Dict[str, str]]:
    """
    Render an address selection as IRI references for a write.

    A city selection carries an optional suburb. Without a city, the first
    district carries either a settlement (with an optional village) or a
    community.

    Returns:
        Mapping of level name to IRI, or None when no province is selected
    """
    if value.province_id is None:
        return None

    data = {"province": iri("provinces", value.province_id)}

    if value.city_id is not None:
        data["city"] = iri("cities", value.city_id)
        if value.suburb_ids:
            data["suburb"] = iri("suburbs", value.suburb_ids[0])
    elif value.district_ids:
        data["district"] = iri("districts", value.district_ids[0])
        if value.settlement_id is not None:
            data["settlement"] = iri("settlements", value.settlement_id)
            if value.village_id is not None:
                data["village"] = iri("villages", value.village_id)
        elif value.community_id is not None:
            data["community"] = iri("communities", value.community_id)

    return data


def to_iri_form(server_address: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite an object-expanded server address into IRI form, keeping its id."""
    data: Dict[str, Any] = {}
    if server_address.get("id") is not None:
        data["id"] = server_address["id"]
    for level, resource in ADDRESS_LEVELS:
        ref = parse_reference(server_address.get(level), resource)
        if ref is not None:
            data[level] = ref.to_iri()
    return data


def to_display_text(server_address: Dict[str, Any]) -> str:
    """Comma-separated titles of the present levels, province first."""
    titles = []
    for level, _ in ADDRESS_LEVELS:
        title = _level_title(server_address.get(level))
        if title:
            titles.append(title)
    return ", ".join(titles)
