"""Access summaries for the single sign-in flow"""
from voluntold.models import UserRole
from voluntold.services.role_resolver import SUPER_ADMIN_OPTION_ID, resolve_access

from conftest import create_profile, create_tenant


def test_unknown_email_has_no_options(db_session):
    summary = resolve_access(db_session, "ghost@example.org")
    assert summary.has_admin_access is False
    assert summary.has_member_access is False
    assert summary.access_options == []
    assert summary.total_options == 0


def test_super_admin_gets_one_global_option(db_session):
    create_profile(db_session, "root@example.org", UserRole.SUPER_ADMIN)

    summary = resolve_access(db_session, "root@example.org")
    assert summary.total_options == 1
    option = summary.access_options[0]
    assert option.id == SUPER_ADMIN_OPTION_ID
    assert option.access_type == "super_admin"
    assert option.tenant_id is None
    assert summary.has_admin_access is True
    assert summary.has_member_access is True


def test_admin_in_one_tenant_member_in_another(db_session):
    tenant_a = create_tenant(db_session, "Alpha Club")
    tenant_b = create_tenant(db_session, "Beta Church")
    create_profile(db_session, "pat@example.org", UserRole.TENANT_ADMIN, tenant_a)
    create_profile(db_session, "pat@example.org", UserRole.MEMBER, tenant_b)

    summary = resolve_access(db_session, "pat@example.org")
    assert summary.total_options == 2
    assert [(o.access_type, o.tenant_id) for o in summary.access_options] == [
        ("tenant_admin", tenant_a.id),
        ("member", tenant_b.id),
    ]
    assert summary.access_options[0].name == "Alpha Club (Admin)"
    assert summary.access_options[1].name == "Beta Church (Member)"
    assert summary.access_options[1].id == f"member_{tenant_b.id}"
    assert summary.has_admin_access is True
    assert summary.has_member_access is True


def test_member_only_has_no_admin_access(db_session):
    tenant = create_tenant(db_session, "Alpha Club")
    create_profile(db_session, "sam@example.org", UserRole.MEMBER, tenant)

    summary = resolve_access(db_session, "sam@example.org")
    assert summary.has_admin_access is False
    assert summary.has_member_access is True
    assert summary.total_options == 1


def test_super_admin_option_comes_first(db_session):
    tenant = create_tenant(db_session, "Alpha Club")
    create_profile(db_session, "root@example.org", UserRole.TENANT_ADMIN, tenant)
    create_profile(db_session, "root@example.org", UserRole.SUPER_ADMIN)

    summary = resolve_access(db_session, "root@example.org")
    assert [o.id for o in summary.access_options] == [SUPER_ADMIN_OPTION_ID, f"tenant_admin_{tenant.id}"]
    assert summary.total_options == len(summary.access_options)


def test_lookup_ignores_case_and_whitespace(db_session):
    tenant = create_tenant(db_session, "Alpha Club")
    create_profile(db_session, "sam@example.org", UserRole.MEMBER, tenant)

    summary = resolve_access(db_session, "  Sam@Example.ORG ")
    assert summary.total_options == 1
