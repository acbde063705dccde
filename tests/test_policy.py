import pytest

from leavedesk.core.config import OrganizationSettings, PolicyDefaults
from leavedesk.models.user import UserRole
from leavedesk.services.policy import PolicySettings


def test_defaults_follow_source_behaviour(db_session):
    policy = PolicySettings(db_session, PolicyDefaults())
    assert policy.get_bool("weekend_counts_as_leave") is True
    assert policy.get_bool("allow_leave_editing") is True
    assert policy.get_bool("allow_edit_rejected") is False
    assert policy.get_bool("require_reapproval_on_edit") is True
    assert policy.get_bool("allow_delete_approved") is False
    assert policy.get_bool("notify_admin_on_request") is True
    assert policy.get_int("default_annual_leave") == 20


def test_stored_options_override_defaults(db_session):
    policy = PolicySettings(db_session, PolicyDefaults())
    policy.set("allow_delete_approved", True)
    policy.set("default_sick_leave", 12)
    db_session.commit()

    assert policy.get("allow_delete_approved") == "yes"
    assert policy.get_bool("allow_delete_approved") is True
    assert policy.get_int("default_sick_leave") == 12


def test_non_integer_value_falls_back_to_default(db_session):
    policy = PolicySettings(db_session, PolicyDefaults())
    policy.update_option("default_personal_leave", "five")
    assert policy.get_int("default_personal_leave") == 5


def test_unknown_option_names_raise(db_session):
    policy = PolicySettings(db_session)
    with pytest.raises(KeyError):
        policy.get_bool("allow_time_travel")
    with pytest.raises(KeyError):
        policy.set("allow_time_travel", True)


def test_approver_roles_parsing(db_session):
    policy = PolicySettings(db_session)
    assert policy.approver_roles() == {UserRole.HR, UserRole.ADMIN}

    policy.set("approver_roles", "admin, wizard")
    assert policy.approver_roles() == {UserRole.ADMIN}


def test_organization_settings_can_be_overridden(db_session):
    policy = PolicySettings(db_session, organization=OrganizationSettings(name="Alpha", email="hr@alpha.test"))
    assert policy.organization()["name"] == "Alpha"

    policy.update_option("organization_name", "Beta")
    org = policy.organization()
    assert org["name"] == "Beta"
    assert org["email"] == "hr@alpha.test"
