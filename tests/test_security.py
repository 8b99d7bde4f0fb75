"""Token service and password hashing"""
from datetime import timedelta

import jwt
import pytest

from models.base_model import utcnow
from utils.security import (
    TokenExpired,
    TokenInvalid,
    TokenService,
    generate_one_time_token,
    hash_password,
    verify_password,
)


@pytest.fixture
def service():
    return TokenService(secret="s3cret", expires=timedelta(days=7))


def test_password_hash_roundtrip():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("wrong", hashed)


def test_password_hash_is_salted():
    assert hash_password("secret1") != hash_password("secret1")


def test_verify_password_rejects_garbage_hash():
    assert verify_password("secret1", "not-an-argon2-hash") is False


def test_access_token_decodes_to_user_id(service):
    token = service.issue_access_token("user-123")
    decoded = service.decode(token)
    assert decoded.user_id == "user-123"
    assert decoded.jti


def test_access_token_expiry_defaults_to_seven_days(service):
    decoded = service.decode(service.issue_access_token("u"))
    remaining = decoded.expires_at - utcnow()
    assert timedelta(days=6, hours=23) < remaining <= timedelta(days=7)


def test_tokens_issued_back_to_back_differ(service):
    assert service.issue_access_token("u") != service.issue_access_token("u")


def test_decode_rejects_foreign_secret(service):
    other = TokenService(secret="another-secret")
    with pytest.raises(TokenInvalid):
        service.decode(other.issue_access_token("u"))


def test_decode_reports_expired_separately(service):
    expired = TokenService(secret="s3cret", expires=timedelta(seconds=-30))
    with pytest.raises(TokenExpired):
        service.decode(expired.issue_access_token("u"))


@pytest.mark.parametrize("token", ["", "abc", "a.b.c", "Bearer xyz"])
def test_decode_rejects_malformed(service, token):
    with pytest.raises(TokenInvalid):
        service.decode(token)


def test_decode_rejects_token_without_subject(service):
    token = jwt.encode({"iss": service.issuer, "iat": 0, "exp": 4102444800}, "s3cret", algorithm="HS256")
    with pytest.raises(TokenInvalid):
        service.decode(token)


def test_expiry_of_matches_decoded_expiry(service):
    token = service.issue_access_token("u")
    assert service.expiry_of(token) == service.decode(token).expires_at


def test_token_service_requires_secret():
    with pytest.raises(ValueError):
        TokenService(secret="")


def test_one_time_token_is_256_bit_hex():
    token = generate_one_time_token()
    assert len(token) == 64
    int(token, 16)
    assert token != generate_one_time_token()
