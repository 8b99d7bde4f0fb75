"""API-version gate"""
import pytest

from api import create_app
from models import storage
from utils.api_version import extract_version, get_api_prefix


@pytest.mark.parametrize(
    "path, prefix, expected",
    [
        ("/v1/users", "", "v1"),
        ("/v2/auth/login", "", "v2"),
        ("/users", "", None),
        ("/", "", None),
        ("/health", "", None),
        ("/api/v1/users", "/api", "v1"),
        ("/api/users", "/api", None),
        ("/v1/users", "/api", "v1"),
        ("/version1/users", "", None),
        ("/vx/users", "", None),
    ],
)
def test_extract_version(path, prefix, expected):
    assert extract_version(path, prefix) == expected


def test_prefix_helper():
    assert get_api_prefix(False) == ""
    assert get_api_prefix(True, "api/") == "/api"


def test_headers_on_success(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-API-Version"] == "v1"
    assert resp.headers["X-API-Supported-Versions"] == "v1"


def test_headers_on_error(client):
    resp = client.get("/v1/users/profile")
    assert resp.status_code == 401
    assert resp.headers["X-API-Version"] == "v1"
    assert resp.headers["X-API-Supported-Versions"] == "v1"


def test_unsupported_version_rejected(client):
    resp = client.post("/v2/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert body["data"]["requestedVersion"] == "v2"
    assert body["data"]["supportedVersions"] == ["v1"]
    assert resp.headers["X-API-Version"] == "v1"
    assert resp.headers["X-API-Supported-Versions"] == "v1"


def test_versioned_and_unversioned_paths_match(client, user_headers):
    versioned = client.get("/v1/users/profile", headers=user_headers)
    plain = client.get("/users/profile", headers=user_headers)
    assert versioned.status_code == plain.status_code == 200
    assert versioned.get_json() == plain.get_json()
    assert plain.headers["X-API-Version"] == "v1"


def test_unknown_route_is_enveloped_404(client):
    resp = client.get("/v1/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "Resource not found"}


def test_version_endpoint_optional_auth(client, user_headers, regular_user):
    anonymous = client.get("/version").get_json()
    assert anonymous["authenticated"] is False
    assert anonymous["userId"] is None

    known = client.get("/version", headers=user_headers).get_json()
    assert known["authenticated"] is True
    assert known["userId"] == regular_user.id

    bad = client.get("/version", headers={"Authorization": "Bearer junk"})
    assert bad.status_code == 200
    assert bad.get_json()["authenticated"] is False


@pytest.fixture
def prefixed_client(monkeypatch):
    from api.config import TestingConfig

    monkeypatch.setattr(TestingConfig, "API_PREFIX_ENABLED", True)
    monkeypatch.setattr(TestingConfig, "SUPPORTED_API_VERSIONS", ["v1", "v2"])
    monkeypatch.setattr(TestingConfig, "DEPRECATED_API_VERSIONS", {"v1": "2027-01-01"})
    app = create_app("testing")
    yield app.test_client()
    storage.drop_all()


def test_prefix_and_deprecation_headers(prefixed_client):
    resp = prefixed_client.post("/api/v1/auth/login", json={"email": "nobody@x.com", "password": "secret1"})
    assert resp.status_code == 401
    assert resp.headers["X-API-Version"] == "v1"
    assert resp.headers["X-API-Supported-Versions"] == "v1, v2"
    assert resp.headers["Deprecation"] == "true"
    assert resp.headers["Sunset"] == "2027-01-01"

    resp = prefixed_client.post("/api/v2/auth/login", json={"email": "nobody@x.com", "password": "secret1"})
    assert resp.status_code == 401
    assert resp.headers["X-API-Version"] == "v2"
    assert "Deprecation" not in resp.headers

    resp = prefixed_client.get("/api/v3/users")
    assert resp.status_code == 400
