"""Tests for credential verification, lockout and login history"""
import pytest

from principal_auth.errors import AccountLocked, AccountNotActive, InvalidCredentials
from principal_auth.models.login_event import LoginEvent
from principal_auth.models.principal import PrincipalStatus
from principal_auth.services.credentials import CredentialVerifier

PASSWORD = "correct-horse-battery"


@pytest.fixture
def principal(db, service):
    return service.join(db, "member", "Alice@Example.com", PASSWORD).principal


def test_password_is_stored_as_argon2(principal):
    assert principal.password_hash.startswith("$argon2")
    assert PASSWORD not in principal.password_hash


def test_verify_normalizes_identifier(db, service, principal):
    verified = service.credentials.verify(db, "member", "  ALICE@example.com ", PASSWORD)

    assert verified.id == principal.id
    assert principal.email == "alice@example.com"


def test_unknown_identifier(db, service, principal):
    with pytest.raises(InvalidCredentials):
        service.credentials.verify(db, "member", "bob@example.com", PASSWORD)


def test_identifier_is_scoped_by_role(db, service, principal):
    with pytest.raises(InvalidCredentials):
        service.credentials.verify(db, "seller", "alice@example.com", PASSWORD)


def test_wrong_password_counts_failure(db, service, principal):
    with pytest.raises(InvalidCredentials):
        service.credentials.verify(db, "member", "alice@example.com", "wrong-password")

    assert principal.failed_login_attempts == 1


def test_success_resets_failures(db, service, principal):
    with pytest.raises(InvalidCredentials):
        service.credentials.verify(db, "member", "alice@example.com", "wrong-password")

    service.credentials.verify(db, "member", "alice@example.com", PASSWORD)
    assert principal.failed_login_attempts == 0


def test_lockout_after_repeated_failures(db, service, principal, clock, test_settings):
    for _ in range(test_settings.MAX_FAILED_LOGIN_ATTEMPTS):
        with pytest.raises(InvalidCredentials):
            service.credentials.verify(db, "member", "alice@example.com", "wrong-password")

    assert principal.locked_until is not None
    with pytest.raises(AccountLocked):
        service.credentials.verify(db, "member", "alice@example.com", PASSWORD)

    clock.advance(test_settings.LOCKOUT_SECONDS + 1)
    assert service.credentials.verify(db, "member", "alice@example.com", PASSWORD).id == principal.id


def test_suspended_principal_reported_only_with_right_password(db, service, principal):
    principal.status = PrincipalStatus.SUSPENDED
    db.commit()

    with pytest.raises(InvalidCredentials):
        service.credentials.verify(db, "member", "alice@example.com", "wrong-password")
    with pytest.raises(AccountNotActive):
        service.credentials.verify(db, "member", "alice@example.com", PASSWORD)


def test_deleted_principal_is_unknown(db, service, principal):
    service.soft_delete(db, principal.id)

    with pytest.raises(InvalidCredentials):
        service.credentials.verify(db, "member", "alice@example.com", PASSWORD)


def test_weak_hash_is_upgraded_on_login(db, service, principal, clock, test_settings):
    stronger = CredentialVerifier(test_settings.model_copy(update={"ARGON2_TIME_COST": 2}), clock)
    old_hash = principal.password_hash

    stronger.verify(db, "member", "alice@example.com", PASSWORD)

    assert principal.password_hash != old_hash
    assert stronger.check_password(principal.password_hash, PASSWORD)


def test_check_password_tolerates_corrupt_hash(service):
    assert service.credentials.check_password("not-an-argon2-hash", PASSWORD) is False


def test_login_history_records_every_attempt(db, service, principal):
    with pytest.raises(InvalidCredentials):
        service.login(db, "member", "alice@example.com", "wrong-password")
    with pytest.raises(InvalidCredentials):
        service.login(db, "member", "nobody@example.com", PASSWORD)
    service.login(db, "member", "alice@example.com", PASSWORD)

    events = db.query(LoginEvent).order_by(LoginEvent.id).all()
    assert [event.success for event in events] == [False, False, True]
    assert events[0].principal_id == principal.id
    assert events[0].failure_reason == "invalid_credentials"
    assert events[1].principal_id is None
    assert events[2].failure_reason is None


def test_failed_login_persists_counter(db, service, principal):
    with pytest.raises(InvalidCredentials):
        service.login(db, "member", "alice@example.com", "wrong-password")

    db.expire_all()
    assert principal.failed_login_attempts == 1
