"""Shared fixtures: in-memory SQLite, a recording email sender and app factories."""
from datetime import timedelta
from typing import Optional
import uuid

import pytest
from fastapi.testclient import TestClient

from voluntold.core.config import Settings
from voluntold.core.security import create_access_token, get_password_hash
from voluntold.db.session import Base, build_engine, build_sessionmaker
from voluntold.main import create_app
from voluntold.models import Tenant, UserProfile, UserRole
from voluntold.services.email import EmailSender


class RecordingEmailSender(EmailSender):
    """Keeps sent messages in memory; set fail=True to simulate provider errors."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_email, subject, html_content, *, reply_to=None):
        if self.fail:
            return False
        self.sent.append({"to": to_email, "subject": subject, "html": html_content})
        return True


def create_tenant(db, name: str = "Riverside Food Bank", slug: Optional[str] = None) -> Tenant:
    tenant = Tenant(name=name, slug=slug or f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}")
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


def create_profile(
    db,
    email: str,
    role: UserRole,
    tenant: Optional[Tenant] = None,
    password: Optional[str] = None,
    first_name: str = "Test",
    last_name: str = "User",
) -> UserProfile:
    profile = UserProfile(
        email=email,
        role=role,
        tenant_id=tenant.id if tenant else None,
        first_name=first_name,
        last_name=last_name,
        password_hash=get_password_hash(password) if password else None,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        AUTO_CREATE_TABLES=True,
        SECRET_KEY="test-secret-key",
        SITE_URL="https://voluntold.test",
        RATE_LIMIT_ENABLED=False,
        RESEND_API_KEY=None,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def db_session():
    """Standalone session for service-level tests."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = build_sessionmaker(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def app(settings, email_sender):
    return create_app(settings=settings, email_sender=email_sender)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(client):
    """Session on the same database the running app uses."""
    session = client.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_tenant():
    return create_tenant


@pytest.fixture
def make_profile():
    return create_profile


@pytest.fixture
def auth_headers(settings):
    """Bearer headers for a profile, as issued by admin sign-in."""
    def _headers(profile: UserProfile, tenant_id=None) -> dict:
        token = create_access_token(
            data={
                "sub": profile.email,
                "profile_id": str(profile.id),
                "tenant_id": str(tenant_id or profile.tenant_id) if (tenant_id or profile.tenant_id) else None,
                "role": profile.role.value,
                "scope": "admin",
            },
            secret_key=settings.SECRET_KEY,
            expires_delta=timedelta(minutes=30),
        )
        return {"Authorization": f"Bearer {token}"}
    return _headers
