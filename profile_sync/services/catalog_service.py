"""
Read-only reference data: occupations, social networks and geography.
"""

from typing import Dict, List, Optional

from profile_sync.errors import ProfileSyncError
from profile_sync.models.profile import AvailableSocialNetwork
from profile_sync.services.api_client import ApiClient
from profile_sync.utils.logger import get_logger

logger = get_logger(__name__)

GEOGRAPHY_RESOURCES = ("provinces", "cities", "districts")


class CatalogService:
    """Fetch and cache reference catalogs; failures degrade to empty lists."""

    def __init__(self, client: ApiClient, locale: Optional[str] = None):
        self.client = client
        self.locale = locale or client.settings.locale
        self._occupations: Optional[List[Dict]] = None
        self._social_networks: Optional[List[AvailableSocialNetwork]] = None

    def _fetch(self, resource: str) -> List[Dict]:
        try:
            entries = self.client.get_collection(f"/api/{resource}", params={"locale": self.locale})
        except ProfileSyncError as e:
            logger.warning(f"Could not load {resource}: {e.message}")
            return []
        valid = [e for e in entries if isinstance(e, dict) and e.get("id") and e.get("title")]
        logger.debug(f"Loaded {len(valid)} {resource}")
        return valid

    def occupations(self, refresh: bool = False) -> List[Dict]:
        """Occupation catalog as ``{"id", "title"}`` dicts."""
        if self._occupations is None or refresh:
            self._occupations = self._fetch("occupations")
        return self._occupations

    def occupation_title(self, occupation_id: Optional[int]) -> str:
        """Title for an occupation id, or an empty string when unknown."""
        if occupation_id is None:
            return ""
        for occupation in self.occupations():
            if int(occupation["id"]) == occupation_id:
                return occupation["title"]
        return ""

    def find_occupation(self, title: str) -> Optional[Dict]:
        """Occupation by exact title, falling back to a case-insensitive substring match."""
        title = title.strip()
        if not title:
            return None
        occupations = self.occupations()
        for occupation in occupations:
            if occupation["title"] == title:
                return occupation
        needle = title.lower()
        for occupation in occupations:
            candidate = occupation["title"].lower()
            if needle in candidate or candidate in needle:
                return occupation
        return None

    def geography(self, resource: str) -> List[Dict]:
        """Provinces, cities or districts for the configured locale."""
        if resource not in GEOGRAPHY_RESOURCES:
            raise ValueError(f"Unknown geography resource: {resource}")
        return self._fetch(resource)

    def social_networks(self, refresh: bool = False) -> List[AvailableSocialNetwork]:
        """Networks the backend accepts."""
        if self._social_networks is None or refresh:
            try:
                data = self.client.get_collection("/api/users/social-networks", auth=False)
            except ProfileSyncError as e:
                logger.warning(f"Could not load social network catalog: {e.message}")
                return []
            self._social_networks = [
                AvailableSocialNetwork(id=entry["id"], network=str(entry["network"]).lower())
                for entry in data
                if isinstance(entry, dict) and entry.get("id") is not None and entry.get("network")
            ]
        return self._social_networks

    def available_networks(self, present: List[str]) -> List[AvailableSocialNetwork]:
        """Catalog networks not yet on the profile."""
        taken = {network.lower() for network in present}
        return [n for n in self.social_networks() if n.network not in taken]
