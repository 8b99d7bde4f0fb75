"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Bearer token creation/verification via PyJWT (TokenService)
- Random one-time tokens for email verification and password reset
"""
from __future__ import annotations

import secrets
import uuid
from functools import lru_cache
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, NamedTuple

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

ph = PasswordHasher()

ONE_TIME_TOKEN_BYTES = 32  # 256 bits


class TokenError(Exception):
    """Base class for bearer-token failures."""


class TokenExpired(TokenError):
    """The token's exp claim is in the past."""


class TokenInvalid(TokenError):
    """Bad signature, foreign secret or malformed claims."""


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash of a random secret, verified against when no account matches so a miss costs one argon2 run too."""
    return ph.hash(secrets.token_hex(16))


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_one_time_token() -> str:
    """256 random bits, hex encoded. Only ever compared for equality."""
    return secrets.token_hex(ONE_TIME_TOKEN_BYTES)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DecodedToken(NamedTuple):
    user_id: str
    expires_at: datetime  # naive UTC, same convention as the models
    jti: str | None


class TokenService:
    """
    Issues and verifies signed bearer tokens.

    Configuration is passed in at construction; nothing here reads app config.
    """

    def __init__(self, secret: str, algorithm: str = "HS256",
                 expires: timedelta = timedelta(days=7), issuer: str = "user-auth-api"):
        if not secret:
            raise ValueError("TokenService requires a signing secret")
        self.secret = secret
        self.algorithm = algorithm
        self.expires = expires
        self.issuer = issuer

    def issue_access_token(self, user_id: str) -> str:
        now = _now()
        payload: Dict[str, Any] = {
            "iss": self.issuer,
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.expires).timestamp()),
            "jti": generate_jti(),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> DecodedToken:
        """
        Verify signature, issuer and expiry.
        Raises TokenExpired or TokenInvalid.
        """
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired("Token expired")
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"Invalid token: {exc}")

        user_id = claims.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise TokenInvalid("Invalid token: missing subject")
        return DecodedToken(
            user_id=user_id,
            expires_at=_from_timestamp(claims["exp"]),
            jti=claims.get("jti"),
        )

    def expiry_of(self, token: str) -> datetime:
        """Read the exp claim without verifying. Only call on a token already decoded."""
        try:
            claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
            return _from_timestamp(claims["exp"])
        except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
            raise TokenInvalid("Invalid token: unreadable exp claim")


def _from_timestamp(value) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)
