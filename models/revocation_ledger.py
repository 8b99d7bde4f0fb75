"""
Revocation ledger (token blacklist).

A row for a token with expires_at in the future is authoritative: the token
must be rejected whatever its signature says. Rows past expires_at carry no
information and purge_expired() removes them.

Recording the same token twice is idempotent: the existing row is returned.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from models.base_model import utcnow
from models.blacklisted_token import BlacklistedToken

logger = logging.getLogger(__name__)


class RevocationLedger:
    def __init__(self, storage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    def _find(self, token: str):
        return self.session.query(BlacklistedToken).filter(BlacklistedToken.token == token).first()

    def record(self, token: str, user_id: str, expires_at: datetime, reason: str = "logout") -> BlacklistedToken:
        """Insert and commit. Returns once the row is durable."""
        existing = self._find(token)
        if existing is not None:
            return existing

        entry = BlacklistedToken(token=token, user_id=user_id, expires_at=expires_at, reason=reason)
        self.storage.new(entry)
        try:
            self.storage.save()
        except IntegrityError:
            # lost a race with a concurrent logout of the same token
            existing = self._find(token)
            if existing is None:
                raise
            return existing
        logger.info("Token revoked for user %s (%s)", user_id, reason)
        return entry

    def is_revoked(self, token: str, now: datetime | None = None) -> bool:
        row = (
            self.session.query(BlacklistedToken.id)
            .filter(
                BlacklistedToken.token == token,
                BlacklistedToken.expires_at > (now or utcnow()),
            )
            .first()
        )
        return row is not None

    def purge_expired(self, now: datetime | None = None) -> int:
        count = (
            self.session.query(BlacklistedToken)
            .filter(BlacklistedToken.expires_at <= (now or utcnow()))
            .delete(synchronize_session=False)
        )
        self.storage.save()
        logger.info("Purged %d expired blacklist entries", count)
        return count
