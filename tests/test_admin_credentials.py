"""Invitation, password reset and token redemption"""
from datetime import datetime, timedelta
import uuid

import pytest
from sqlalchemy.exc import OperationalError

from voluntold.core.errors import (
    Conflict,
    InfrastructureError,
    InsufficientPermissions,
    InvalidTenant,
    InvalidToken,
    TokenExpired,
    ValidationError,
    WeakPassword,
)
from voluntold.core.security import verify_password
from voluntold.models import AdminToken, AdminTokenType, AuditEventType, AuditLog, UserProfile, UserRole
from voluntold.services import admin_credentials
from voluntold.services.admin_credentials import (
    PASSWORD_RESET_MESSAGE,
    get_token_info,
    issue_invitation,
    issue_password_reset,
    redeem_token,
)
from voluntold.services.admin_signin import AdminPrincipal

from conftest import create_profile, create_tenant


def _principal(profile):
    return AdminPrincipal(profile_id=profile.id, email=profile.email, role=profile.role, tenant_id=profile.tenant_id)


def _invite(db, email_sender, settings, requester, tenant_id, email="new.admin@example.org", role=None):
    return issue_invitation(
        db,
        email_sender,
        settings,
        email=email,
        first_name="Nia",
        last_name="Okafor",
        tenant_id=tenant_id,
        role=role,
        requester=_principal(requester),
    )


def _token_for(db, email):
    return db.query(AdminToken).filter(AdminToken.admin_email == email).one()


@pytest.fixture
def tenant(db_session):
    return create_tenant(db_session, "Alpha Club")


@pytest.fixture
def tenant_admin(db_session, tenant):
    return create_profile(db_session, "boss@example.org", UserRole.TENANT_ADMIN, tenant, password="Boss-pass-1")


@pytest.fixture
def super_admin(db_session):
    return create_profile(db_session, "root@example.org", UserRole.SUPER_ADMIN, password="Root-pass-1")


def test_invitation_setup_scenario(db_session, email_sender, settings, tenant, tenant_admin):
    response = _invite(db_session, email_sender, settings, tenant_admin, tenant.id, email="Admin@Example.org")
    assert response.success is True
    assert response.email_sent is True

    admin_token = _token_for(db_session, "admin@example.org")
    assert admin_token.token_type == AdminTokenType.INVITATION
    assert admin_token.created_by == tenant_admin.id
    assert admin_token.is_used is False
    assert len(admin_token.token) >= 32
    expected_expiry = datetime.utcnow() + timedelta(days=7)
    assert abs((admin_token.expires_at - expected_expiry).total_seconds()) < 60
    assert response.invitation_url == f"https://voluntold.test/admin/setup/{admin_token.token}"

    profile = db_session.query(UserProfile).filter(UserProfile.email == "admin@example.org").one()
    assert profile.role == UserRole.TENANT_ADMIN
    assert profile.tenant_id == tenant.id
    assert profile.password_hash is None

    assert email_sender.sent[0]["to"] == "admin@example.org"
    assert response.invitation_url in email_sender.sent[0]["html"]

    info = get_token_info(db_session, admin_token.token)
    assert info.token_type == "invitation"
    assert info.tenant.name == "Alpha Club"
    assert info.admin_info.first_name == "Nia"

    result = redeem_token(db_session, settings, admin_token.token, "LongEnough1!")
    assert result.message == "Admin account set up successfully!"
    assert result.tenant.slug == tenant.slug

    db_session.expire_all()
    assert verify_password("LongEnough1!", profile.password_hash)
    assert _token_for(db_session, "admin@example.org").is_used is True
    assert _token_for(db_session, "admin@example.org").used_at is not None

    with pytest.raises(InvalidToken) as exc_info:
        redeem_token(db_session, settings, admin_token.token, "AnotherPass1!")
    assert exc_info.value.detail == "Invalid or expired token"

    with pytest.raises(InvalidToken):
        get_token_info(db_session, admin_token.token)
    db_session.expire_all()
    assert verify_password("LongEnough1!", profile.password_hash)


def test_tenant_admin_cannot_invite_into_other_tenant(db_session, email_sender, settings, tenant_admin):
    other = create_tenant(db_session, "Beta Church")
    with pytest.raises(InsufficientPermissions):
        _invite(db_session, email_sender, settings, tenant_admin, other.id)
    assert db_session.query(AdminToken).count() == 0


def test_member_cannot_invite(db_session, email_sender, settings, tenant):
    member = create_profile(db_session, "sam@example.org", UserRole.MEMBER, tenant)
    with pytest.raises(InsufficientPermissions):
        _invite(db_session, email_sender, settings, member, tenant.id)


def test_super_admin_can_invite_into_any_tenant(db_session, email_sender, settings, super_admin):
    other = create_tenant(db_session, "Beta Church")
    response = _invite(db_session, email_sender, settings, super_admin, other.id)
    assert response.success is True


def test_invite_existing_admin_conflicts(db_session, email_sender, settings, tenant, tenant_admin):
    with pytest.raises(Conflict):
        _invite(db_session, email_sender, settings, tenant_admin, tenant.id, email="BOSS@example.org")
    assert db_session.query(AdminToken).count() == 0


def test_invite_into_missing_tenant(db_session, email_sender, settings, super_admin):
    with pytest.raises(InvalidTenant):
        _invite(db_session, email_sender, settings, super_admin, uuid.uuid4())


def test_invite_rejects_super_admin_role(db_session, email_sender, settings, tenant, super_admin):
    with pytest.raises(ValidationError):
        _invite(db_session, email_sender, settings, super_admin, tenant.id, role="super_admin")


def test_invite_requires_names(db_session, email_sender, settings, tenant, tenant_admin):
    with pytest.raises(ValidationError):
        issue_invitation(
            db_session, email_sender, settings,
            email="x@example.org", first_name=" ", last_name="Okafor",
            tenant_id=tenant.id, role=None, requester=_principal(tenant_admin),
        )


def test_invite_elevates_existing_member(db_session, email_sender, settings, tenant, tenant_admin):
    create_profile(db_session, "sam@example.org", UserRole.MEMBER, tenant, first_name="Sam")

    _invite(db_session, email_sender, settings, tenant_admin, tenant.id, email="sam@example.org")

    profiles = db_session.query(UserProfile).filter(UserProfile.email == "sam@example.org").all()
    assert len(profiles) == 1
    assert profiles[0].role == UserRole.TENANT_ADMIN
    assert profiles[0].first_name == "Sam"


def test_invite_email_failure_still_succeeds(db_session, email_sender, settings, tenant, tenant_admin):
    email_sender.fail = True
    response = _invite(db_session, email_sender, settings, tenant_admin, tenant.id)
    assert response.success is True
    assert response.email_sent is False
    assert _token_for(db_session, "new.admin@example.org") is not None


def test_invite_profile_failure_deletes_token(db_session, email_sender, settings, tenant, tenant_admin, monkeypatch):
    real_commit = db_session.commit
    calls = {"count": 0}

    def flaky_commit():
        calls["count"] += 1
        # Second commit in issue_invitation writes the profile
        if calls["count"] == 2:
            raise OperationalError("INSERT INTO user_profiles", {}, Exception("disk I/O error"))
        return real_commit()

    monkeypatch.setattr(db_session, "commit", flaky_commit)
    with pytest.raises(InfrastructureError):
        _invite(db_session, email_sender, settings, tenant_admin, tenant.id)
    monkeypatch.undo()

    assert db_session.query(AdminToken).count() == 0
    assert db_session.query(UserProfile).filter(UserProfile.email == "new.admin@example.org").count() == 0
    assert email_sender.sent == []


def test_weak_password_rejected_before_store_access(settings):
    class NoStore:
        def __getattr__(self, name):
            raise AssertionError(f"store accessed: {name}")

    with pytest.raises(WeakPassword):
        redeem_token(NoStore(), settings, "whatever-token", "short")


def test_expired_token_is_rejected(db_session, email_sender, settings, tenant, tenant_admin):
    _invite(db_session, email_sender, settings, tenant_admin, tenant.id)
    admin_token = _token_for(db_session, "new.admin@example.org")
    admin_token.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()

    with pytest.raises(TokenExpired) as exc_info:
        redeem_token(db_session, settings, admin_token.token, "LongEnough1!")
    assert exc_info.value.detail == "Invalid or expired token"
    with pytest.raises(TokenExpired):
        get_token_info(db_session, admin_token.token)
    db_session.expire_all()
    assert _token_for(db_session, "new.admin@example.org").is_used is False


def test_unknown_token_is_invalid(db_session, settings):
    with pytest.raises(InvalidToken):
        get_token_info(db_session, "no-such-token")
    with pytest.raises(InvalidToken):
        redeem_token(db_session, settings, "no-such-token", "LongEnough1!")


def test_lost_race_does_not_set_password(db_session, email_sender, settings, tenant, tenant_admin, monkeypatch):
    _invite(db_session, email_sender, settings, tenant_admin, tenant.id)
    row = _token_for(db_session, "new.admin@example.org")
    # What a concurrent request read before the winner consumed the token
    stale = AdminToken(
        id=row.id,
        token=row.token,
        admin_email=row.admin_email,
        tenant_id=row.tenant_id,
        token_type=row.token_type,
        expires_at=row.expires_at,
        is_used=False,
    )
    redeem_token(db_session, settings, row.token, "WinnerPass1!")

    monkeypatch.setattr(admin_credentials, "find_unused_admin_token", lambda db, token: stale)
    with pytest.raises(InvalidToken):
        redeem_token(db_session, settings, row.token, "LoserPass1!")

    profile = db_session.query(UserProfile).filter(UserProfile.email == "new.admin@example.org").one()
    db_session.refresh(profile)
    assert verify_password("WinnerPass1!", profile.password_hash)


def test_consume_failure_still_sets_password(db_session, email_sender, settings, tenant, tenant_admin, monkeypatch):
    _invite(db_session, email_sender, settings, tenant_admin, tenant.id)
    admin_token = _token_for(db_session, "new.admin@example.org")

    def broken_consume(db, token_id, used_at):
        raise OperationalError("UPDATE admin_tokens", {}, Exception("database is locked"))

    monkeypatch.setattr(admin_credentials, "consume_admin_token", broken_consume)
    result = redeem_token(db_session, settings, admin_token.token, "LongEnough1!")
    assert result.success is True

    profile = db_session.query(UserProfile).filter(UserProfile.email == "new.admin@example.org").one()
    assert verify_password("LongEnough1!", profile.password_hash)
    events = [a.event_type for a in db_session.query(AuditLog).all()]
    assert AuditEventType.TOKEN_CONSUME_FAILED in events


def test_password_reset_unknown_email(db_session, email_sender, settings):
    response = issue_password_reset(db_session, email_sender, settings, "ghost@example.org")
    assert response.success is True
    assert response.message == PASSWORD_RESET_MESSAGE
    assert db_session.query(AdminToken).count() == 0
    assert email_sender.sent == []


def test_password_reset_ignores_members(db_session, email_sender, settings, tenant):
    create_profile(db_session, "sam@example.org", UserRole.MEMBER, tenant)
    response = issue_password_reset(db_session, email_sender, settings, "sam@example.org")
    assert response.message == PASSWORD_RESET_MESSAGE
    assert db_session.query(AdminToken).count() == 0


def test_password_reset_flow(db_session, email_sender, settings, tenant, tenant_admin):
    response = issue_password_reset(db_session, email_sender, settings, " Boss@Example.org")
    assert response.message == PASSWORD_RESET_MESSAGE

    admin_token = _token_for(db_session, "boss@example.org")
    assert admin_token.token_type == AdminTokenType.PASSWORD_RESET
    assert admin_token.created_by is None
    assert admin_token.tenant_id == tenant.id
    expected_expiry = datetime.utcnow() + timedelta(hours=1)
    assert abs((admin_token.expires_at - expected_expiry).total_seconds()) < 60
    assert f"/admin/setup/{admin_token.token}" in email_sender.sent[0]["html"]

    result = redeem_token(db_session, settings, admin_token.token, "Brand-new-pass")
    assert result.message == "Password reset successfully!"
    db_session.expire_all()
    assert verify_password("Brand-new-pass", tenant_admin.password_hash)


def test_password_reset_same_shape_for_many_records(db_session, email_sender, settings, tenant):
    other = create_tenant(db_session, "Beta Church")
    older = create_profile(db_session, "multi@example.org", UserRole.TENANT_ADMIN, tenant)
    newer = create_profile(db_session, "multi@example.org", UserRole.TENANT_ADMIN, other)
    newer.created_at = older.created_at + timedelta(minutes=5)
    db_session.commit()

    many = issue_password_reset(db_session, email_sender, settings, "multi@example.org")
    none = issue_password_reset(db_session, email_sender, settings, "ghost@example.org")
    assert many == none
    # One record is picked: the oldest
    assert _token_for(db_session, "multi@example.org").tenant_id == tenant.id


def test_password_reset_prefers_super_admin_record(db_session, email_sender, settings, tenant):
    create_profile(db_session, "root@example.org", UserRole.TENANT_ADMIN, tenant)
    create_profile(db_session, "root@example.org", UserRole.SUPER_ADMIN)

    issue_password_reset(db_session, email_sender, settings, "root@example.org")
    assert _token_for(db_session, "root@example.org").tenant_id is None


def test_password_reset_narrowed_by_tenant(db_session, email_sender, settings, tenant):
    other = create_tenant(db_session, "Beta Church")
    create_profile(db_session, "multi@example.org", UserRole.TENANT_ADMIN, tenant)
    create_profile(db_session, "multi@example.org", UserRole.TENANT_ADMIN, other)

    issue_password_reset(db_session, email_sender, settings, "multi@example.org", tenant_id=other.id)
    assert _token_for(db_session, "multi@example.org").tenant_id == other.id


def test_password_reset_falls_back_to_super_admin_record(db_session, email_sender, settings, tenant, super_admin):
    issue_password_reset(db_session, email_sender, settings, "root@example.org", tenant_id=tenant.id)

    assert _token_for(db_session, "root@example.org").tenant_id is None
    assert email_sender.sent[0]["to"] == "root@example.org"


def test_password_reset_foreign_tenant_sends_nothing(db_session, email_sender, settings, tenant_admin):
    other = create_tenant(db_session, "Beta Church")

    issue_password_reset(db_session, email_sender, settings, "boss@example.org", tenant_id=other.id)
    assert db_session.query(AdminToken).count() == 0
    assert email_sender.sent == []


def test_password_reset_store_failure_is_generic(db_session, email_sender, settings, tenant_admin, monkeypatch):
    def broken_lookup(db, email, roles=None):
        raise OperationalError("SELECT user_profiles", {}, Exception("connection refused"))

    monkeypatch.setattr(admin_credentials, "profiles_for_email", broken_lookup)
    response = issue_password_reset(db_session, email_sender, settings, "boss@example.org")
    assert response.success is True
    assert response.message == PASSWORD_RESET_MESSAGE


def test_password_reset_email_failure_is_generic(db_session, email_sender, settings, tenant_admin):
    email_sender.fail = True
    response = issue_password_reset(db_session, email_sender, settings, "boss@example.org")
    assert response.message == PASSWORD_RESET_MESSAGE


def test_password_reset_requires_email(db_session, email_sender, settings):
    with pytest.raises(ValidationError):
        issue_password_reset(db_session, email_sender, settings, "  ")
