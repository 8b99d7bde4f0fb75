"""
Credential store: every read and write the auth flows make against the users
table goes through here.

Password changes are explicit: set_password() hashes the plaintext and commits
in one step, so no other code path ever writes password_hash.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple

from models.base_model import utcnow
from models.user import Role, User
from utils.security import dummy_password_hash, generate_one_time_token, hash_password, verify_password


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    def __init__(self, storage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    # lookups

    def get(self, user_id: str) -> Optional[User]:
        """Any user by id, active or not."""
        return self.storage.get(User, user_id)

    def get_active(self, user_id: str) -> Optional[User]:
        user = self.get(user_id)
        if user is None or not user.is_active:
            return None
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == normalize_email(email)).first()

    def find_by_verification_token(self, token: str, now: datetime | None = None) -> Optional[User]:
        if not token:
            return None
        return (
            self.session.query(User)
            .filter(
                User.email_verification_token == token,
                User.email_verification_expires > (now or utcnow()),
            )
            .first()
        )

    def find_by_reset_token(self, token: str, now: datetime | None = None) -> Optional[User]:
        if not token:
            return None
        return (
            self.session.query(User)
            .filter(
                User.password_reset_token == token,
                User.password_reset_expires > (now or utcnow()),
            )
            .first()
        )

    def list_active(self, page: int, limit: int) -> Tuple[list, int]:
        query = self.session.query(User).filter(User.is_active.is_(True))
        total = query.count()
        rows = (
            query.order_by(User.created_at.desc(), User.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total

    # writes

    def create(self, email: str, password: str, first_name: str, last_name: str,
               role: Role | str = Role.USER, **extra) -> User:
        user = User(
            email=normalize_email(email),
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=Role(role),
            **extra,
        )
        self.storage.new(user)
        self.storage.save()
        return user

    def update(self, user: User, **fields) -> User:
        """Plain field update. Refuses password fields; use set_password()."""
        if "password" in fields or "password_hash" in fields:
            raise ValueError("use set_password() to change a password")
        for key, value in fields.items():
            setattr(user, key, value)
        user.save()
        return user

    def set_password(self, user: User, password: str, **fields) -> User:
        """Hash then store, together with any other fields (e.g. clearing a reset token)."""
        user.password_hash = hash_password(password)
        for key, value in fields.items():
            setattr(user, key, value)
        user.save()
        return user

    def check_password(self, user: Optional[User], password: str) -> bool:
        """False for a missing user, after the same argon2 work as a wrong password."""
        password_hash = user.password_hash if user is not None else dummy_password_hash()
        return verify_password(password, password_hash) and user is not None

    def record_login(self, user: User) -> User:
        return self.update(user, last_login_at=utcnow())

    def issue_email_verification(self, user: User, ttl: timedelta) -> str:
        token = generate_one_time_token()
        self.update(user, email_verification_token=token, email_verification_expires=utcnow() + ttl)
        return token

    def mark_email_verified(self, user: User) -> User:
        return self.update(
            user,
            is_email_verified=True,
            email_verification_token=None,
            email_verification_expires=None,
        )

    def issue_password_reset(self, user: User, ttl: timedelta) -> str:
        token = generate_one_time_token()
        self.update(user, password_reset_token=token, password_reset_expires=utcnow() + ttl)
        return token

    def reset_password(self, user: User, password: str) -> User:
        return self.set_password(user, password, password_reset_token=None, password_reset_expires=None)

    def deactivate(self, user: User) -> User:
        user.deactivate()
        return user
