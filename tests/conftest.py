"""Pytest configuration and fixtures"""
from typing import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient

from api import create_app
from models import storage
from models.user import Role

PASSWORD = "password123"


@pytest.fixture(scope="function")
def app() -> Generator[Flask, None, None]:
    """Fresh app bound to a fresh in-memory database for each test"""
    app = create_app("testing")
    yield app
    storage.drop_all()


@pytest.fixture(scope="function")
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def user_store(app):
    return app.extensions["user_store"]


@pytest.fixture
def token_service(app):
    return app.extensions["token_service"]


@pytest.fixture
def ledger(app):
    return app.extensions["revocation_ledger"]


@pytest.fixture
def mailer(app):
    return app.extensions["mailer"]


@pytest.fixture
def make_user(user_store):
    """Factory creating users straight through the credential store"""
    counter = {"n": 0}

    def _make(email=None, password=PASSWORD, role=Role.USER, **extra):
        counter["n"] += 1
        return user_store.create(
            email=email or f"user{counter['n']}@example.com",
            password=password,
            first_name=extra.pop("first_name", "Test"),
            last_name=extra.pop("last_name", "User"),
            role=role,
            **extra,
        )

    return _make


@pytest.fixture
def regular_user(make_user):
    return make_user(email="regular@example.com")


@pytest.fixture
def admin_user(make_user):
    return make_user(email="admin@example.com", role=Role.ADMIN)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def login(client):
    """Log in through the API and return the bearer token"""

    def _login(email, password=PASSWORD):
        resp = client.post("/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["data"]["token"]

    return _login


@pytest.fixture
def user_headers(regular_user, login):
    return bearer(login(regular_user.email))


@pytest.fixture
def admin_headers(admin_user, login):
    return bearer(login(admin_user.email))
