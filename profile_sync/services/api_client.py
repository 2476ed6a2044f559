"""
HTTP transport for the marketplace REST API.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from profile_sync.config.settings import Settings
from profile_sync.errors import (
    AuthenticationError,
    ConfigurationError,
    TransientError,
    error_for_status,
)
from profile_sync.utils.file_utils import guess_content_type
from profile_sync.utils.logger import get_logger

logger = get_logger(__name__)

MERGE_PATCH = "application/merge-patch+json"


def extract_members(data: Any) -> List[Dict[str, Any]]:
    """
    Normalize a collection response to a list.

    Accepts a plain list, a hydra envelope (``hydra:member`` or ``member``)
    or a single object with an id.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("hydra:member", "member"):
            if isinstance(data.get(key), list):
                return data[key]
        if data.get("id") is not None:
            return [data]
    return []


class ApiClient:
    """Bearer-authenticated JSON client with a single refresh-and-retry on 401."""

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        token: Optional[str] = None,
    ):
        """
        Initialize API client.

        Args:
            settings: Application settings
            session: Optional pre-built session (holds the refresh-token cookie)
            token: Bearer token; defaults to ``settings.auth_token``
        """
        if not settings.api_base_url:
            raise ConfigurationError("API base URL is not configured")

        self.settings = settings
        self.base_url = settings.base_url
        self.session = session if session is not None else requests.Session()
        self.token = token if token is not None else settings.auth_token

    def url(self, path: str) -> str:
        """Absolute URL for an API path."""
        if path.startswith("http"):
            return path
        return f"{self.base_url}{path}"

    def _headers(self, auth: bool, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if auth and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    def _send(self, method: str, path: str, auth: bool, **kwargs) -> requests.Response:
        extra_headers = kwargs.pop("headers", None)
        try:
            return self.session.request(
                method,
                self.url(path),
                headers=self._headers(auth, extra_headers),
                timeout=self.settings.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransientError(f"{method} {path} failed: {e}") from e

    def refresh_token(self) -> bool:
        """
        Exchange the refresh-token cookie for a new bearer token.

        Returns:
            True when a new token was stored
        """
        try:
            response = self.session.request(
                "POST",
                self.url(self.settings.refresh_path),
                headers={"Accept": "application/json"},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Token refresh failed: {e}")
            return False

        if not response.ok:
            logger.warning(f"Token refresh rejected: {response.status_code}")
            return False

        try:
            token = response.json().get("token")
        except ValueError:
            token = None
        if not token:
            logger.warning("Token refresh response carried no token")
            return False

        self.token = token
        logger.info("Bearer token refreshed")
        return True

    def request(
        self,
        method: str,
        path: str,
        auth: bool = True,
        missing_ok: bool = False,
        **kwargs,
    ) -> Any:
        """
        Perform a request and decode its JSON body.

        A 401 triggers exactly one token refresh followed by one retry.

        Args:
            method: HTTP method
            path: API path (``/api/...``) or absolute URL
            auth: Send the bearer token
            missing_ok: Return None instead of raising on 404
            **kwargs: Passed to ``requests.Session.request``

        Returns:
            Decoded JSON body, or None for empty bodies

        Raises:
            ApiError: Subclass matching the failure status
        """
        response = self._send(method, path, auth, **kwargs)

        if response.status_code == 401 and auth:
            logger.info(f"{method} {path} returned 401, refreshing token")
            if not self.refresh_token():
                raise AuthenticationError("Session expired and could not be refreshed", 401)
            response = self._send(method, path, auth, **kwargs)

        if response.status_code == 404 and missing_ok:
            logger.debug(f"{method} {path} returned 404, treating as empty")
            return None

        if not response.ok:
            body = _decode(response)
            error = error_for_status(
                response.status_code,
                f"{method} {path} failed: {response.status_code} {response.reason or ''}".strip(),
                body,
            )
            logger.error(f"{error.message}")
            raise error

        return _decode(response)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return self.request("GET", path, params=params, **kwargs)

    def get_collection(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        missing_ok: bool = True,
        **kwargs,
    ) -> List[Dict[str, Any]]:
        """GET a collection; a 404 yields an empty list unless ``missing_ok`` is off."""
        data = self.get(path, params=params, missing_ok=missing_ok, **kwargs)
        return extract_members(data)

    def patch(self, path: str, data: Dict[str, Any]) -> Any:
        """Merge-patch a resource."""
        return self.request("PATCH", path, json=data, headers={"Content-Type": MERGE_PATCH})

    def post(self, path: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return self.request("POST", path, json=data, **kwargs)

    def upload(
        self,
        path: str,
        files: Sequence[Union[str, Path]],
        field: str = "imageFile",
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        POST files as one multipart request.

        Args:
            path: Upload endpoint
            files: Local file paths
            field: Multipart field name, repeated once per file
            data: Extra form fields
        """
        # Contents are read up front so a retry after 401 resends the same bytes
        multipart = [
            (field, (Path(f).name, Path(f).read_bytes(), guess_content_type(f) or "application/octet-stream"))
            for f in files
        ]
        return self.request("POST", path, files=multipart, data=data)

    def probe(self, url: str) -> bool:
        """Lightweight existence check for a resource URL; never raises."""
        try:
            response = self.session.request(
                "HEAD", self.url(url), allow_redirects=True, timeout=self.settings.timeout
            )
        except requests.RequestException as e:
            logger.debug(f"Probe of {url} failed: {e}")
            return False
        return response.ok


def _decode(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
