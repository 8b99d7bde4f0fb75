"""Revocation ledger (logout blacklist)"""
from datetime import timedelta

from models.base_model import utcnow
from models.blacklisted_token import BlacklistedToken
from models import storage


def test_recorded_token_is_revoked(ledger, regular_user):
    ledger.record("tok-1", regular_user.id, utcnow() + timedelta(hours=1))
    assert ledger.is_revoked("tok-1")
    assert not ledger.is_revoked("tok-2")


def test_expired_entry_no_longer_counts(ledger, regular_user):
    ledger.record("tok-old", regular_user.id, utcnow() - timedelta(seconds=1))
    assert not ledger.is_revoked("tok-old")


def test_record_is_idempotent(ledger, regular_user):
    expires = utcnow() + timedelta(hours=1)
    first = ledger.record("tok-dup", regular_user.id, expires)
    second = ledger.record("tok-dup", regular_user.id, expires, reason="again")
    assert first.id == second.id
    assert storage.get_session().query(BlacklistedToken).count() == 1


def test_reason_defaults_to_logout(ledger, regular_user):
    entry = ledger.record("tok-r", regular_user.id, utcnow() + timedelta(hours=1))
    assert entry.reason == "logout"


def test_purge_expired_only_removes_past_entries(ledger, regular_user):
    now = utcnow()
    ledger.record("past-1", regular_user.id, now - timedelta(hours=2))
    ledger.record("past-2", regular_user.id, now - timedelta(minutes=1))
    ledger.record("future", regular_user.id, now + timedelta(hours=1))

    assert ledger.purge_expired() == 2
    assert storage.get_session().query(BlacklistedToken).count() == 1
    assert ledger.is_revoked("future")


def test_purge_is_safe_to_repeat(ledger):
    assert ledger.purge_expired() == 0
    assert ledger.purge_expired() == 0


def test_purge_command(app, ledger, regular_user):
    ledger.record("past", regular_user.id, utcnow() - timedelta(hours=1))
    result = app.test_cli_runner().invoke(args=["purge-blacklist"])
    assert result.exit_code == 0
    assert "Purged 1" in result.output
