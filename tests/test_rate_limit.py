"""Per-client rate limiting"""
import pytest

from api import create_app
from models import storage


@pytest.fixture
def limited_client(monkeypatch):
    from api.config import TestingConfig

    monkeypatch.setattr(TestingConfig, "RATELIMIT_ENABLED", True)
    monkeypatch.setattr(TestingConfig, "RATE_LIMIT_MAX_REQUESTS", 2)
    app = create_app("testing")
    yield app.test_client()
    storage.drop_all()


def test_disabled_under_testing_config(client):
    for _ in range(5):
        assert client.get("/health").status_code == 200


def test_budget_is_shared_across_routes(limited_client):
    assert limited_client.get("/health").status_code == 200
    login = limited_client.post("/v1/auth/login", json={"email": "nobody@x.com", "password": "secret1"})
    assert login.status_code == 401

    resp = limited_client.post("/v1/auth/forgot-password", json={"email": "nobody@x.com"})
    assert resp.status_code == 429
    assert resp.get_json() == {
        "success": False,
        "message": "Too many requests from this IP, please try again later.",
    }
    assert resp.headers["X-API-Version"] == "v1"
