"""Test configuration and fixtures for profile synchronization tests."""

import json
from dataclasses import dataclass, field
from http.client import responses as REASONS
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest
import requests

from profile_sync.config.settings import Settings
from profile_sync.services.api_client import ApiClient

BASE_URL = "https://api.test"


# ==============================================================================
# Fake transport
# ==============================================================================

def make_response(status: int = 200, body: Any = None, url: str = BASE_URL) -> requests.Response:
    """Build a real ``requests.Response`` with a JSON body."""
    response = requests.Response()
    response.status_code = status
    response.reason = REASONS.get(status, "")
    response.url = url
    response.encoding = "utf-8"
    response._content = b"" if body is None else json.dumps(body).encode("utf-8")
    response.headers["Content-Type"] = "application/json"
    return response


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: Dict[str, str]
    params: Optional[Dict[str, Any]] = None
    json: Any = None
    files: Any = None


@dataclass
class FakeSession:
    """
    Stand-in for ``requests.Session`` that records every request.

    Responses are registered per (method, path). Several responses for one
    route are replayed in order; the last one keeps answering. Unknown
    routes answer 404.
    """
    routes: Dict[Tuple[str, str], List[requests.Response]] = field(default_factory=dict)
    sent: List[RecordedRequest] = field(default_factory=list)

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> "FakeSession":
        self.routes.setdefault((method.upper(), path), []).append(make_response(status, body))
        return self

    def request(self, method, url, headers=None, timeout=None, params=None, json=None,
                files=None, data=None, allow_redirects=True):
        path = urlsplit(url).path
        self.sent.append(RecordedRequest(
            method=method.upper(),
            path=path,
            headers=dict(headers or {}),
            params=params,
            json=json,
            files=files,
        ))
        queue = self.routes.get((method.upper(), path))
        if not queue:
            return make_response(404, {"detail": "Not Found"}, url)
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def calls(self, method: str, path: Optional[str] = None) -> List[RecordedRequest]:
        return [
            r for r in self.sent
            if r.method == method.upper() and (path is None or r.path == path)
        ]


# ==============================================================================
# Sample payloads
# ==============================================================================

def user_payload(**overrides) -> Dict[str, Any]:
    """A user resource as returned by ``GET /api/users/{id}``."""
    user = {
        "id": 42,
        "email": "master@example.com",
        "name": "Ali",
        "surname": "Karimov",
        "patronymic": "Rustamovich",
        "gender": "male",
        "roles": ["ROLE_USER", "ROLE_MASTER"],
        "rating": 4.5,
        "atHome": True,
        "image": None,
        "imageExternalUrl": None,
        "occupation": [{"id": 7, "title": "Plumber"}],
        "phone1": "+992912345678",
        "phone2": None,
        "socialNetworks": [
            {"id": 1, "network": "telegram", "handle": "ali_karimov"},
        ],
        "education": [
            {
                "id": 3,
                "uniTitle": "Tajik Technical University",
                "beginning": 2010,
                "ending": 2015,
                "graduated": True,
                "occupation": {"id": 7, "title": "Plumber"},
            },
        ],
        "addresses": [
            {
                "id": 11,
                "province": {"id": 1, "title": "Dushanbe"},
                "city": {"id": 2, "title": "Dushanbe city"},
                "suburb": {"id": 5, "title": "Sino"},
            },
        ],
    }
    user.update(overrides)
    return user


# ==============================================================================
# Shared pytest fixtures
# ==============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings that ignore the environment and any .env file."""
    return Settings(
        _env_file=None,
        api_base_url=BASE_URL,
        auth_token="access-token",
        locale="ru",
        timeout=5,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(settings, session) -> ApiClient:
    return ApiClient(settings, session=session)


@pytest.fixture
def png_file(tmp_path):
    """A small file with an image extension."""
    path = tmp_path / "work.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64)
    return path
