"""
Policy configuration backed by the settings table.

Options are stored as strings ("yes"/"no" for toggles, digits for
numbers). Anything missing from the table falls back to PolicyDefaults.
"""
from typing import Any, Dict, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from leavedesk.core.config import OrganizationSettings, PolicyDefaults, settings
from leavedesk.models.setting import Setting
from leavedesk.models.user import UserRole
from leavedesk.services.base import BaseService

BOOL_OPTIONS = (
    "weekend_counts_as_leave",
    "allow_leave_editing",
    "allow_edit_rejected",
    "require_reapproval_on_edit",
    "allow_delete_approved",
    "notify_admin_on_request",
    "notify_user_on_approval",
    "notify_user_on_rejection",
    "send_welcome_email",
)

INT_OPTIONS = (
    "default_annual_leave",
    "default_sick_leave",
    "default_personal_leave",
    "default_emergency_leave",
)

STR_OPTIONS = ("approver_roles",)

ORGANIZATION_OPTIONS = ("name", "email", "phone", "address", "website", "login_url")

TRUTHY = ("yes", "true", "1", "on")


def _to_option(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


class PolicySettings(BaseService):
    def __init__(
        self,
        db: Session,
        defaults: Optional[PolicyDefaults] = None,
        organization: Optional[OrganizationSettings] = None,
    ):
        super().__init__(db)
        self.defaults = defaults or settings.policy
        self.organization_defaults = organization or settings.organization

    def get_option(self, option_name: str, default: Optional[str] = None) -> Optional[str]:
        """Raw value of any stored option, known or not."""
        row = self.db.execute(
            select(Setting).where(Setting.option_name == option_name)
        ).scalar_one_or_none()
        if row is None or row.option_value in (None, ""):
            return default
        return row.option_value

    def update_option(self, option_name: str, value: Any) -> None:
        row = self.db.execute(
            select(Setting).where(Setting.option_name == option_name)
        ).scalar_one_or_none()
        if row is None:
            row = Setting(option_name=option_name)
            self.db.add(row)
        row.option_value = _to_option(value)
        self.db.flush()

    def get(self, name: str) -> str:
        if name not in BOOL_OPTIONS + INT_OPTIONS + STR_OPTIONS:
            raise KeyError(f"Unknown policy option: {name}")
        return self.get_option(name, _to_option(getattr(self.defaults, name)))

    def set(self, name: str, value: Any) -> None:
        if name not in BOOL_OPTIONS + INT_OPTIONS + STR_OPTIONS:
            raise KeyError(f"Unknown policy option: {name}")
        self.update_option(name, value)

    def get_bool(self, name: str) -> bool:
        return self.get(name).strip().lower() in TRUTHY

    def get_int(self, name: str) -> int:
        raw = self.get(name)
        try:
            return int(raw)
        except ValueError:
            self.log_warning(f"Policy option {name} holds non-integer value {raw!r}; using default")
            return int(getattr(self.defaults, name))

    def approver_roles(self) -> Set[UserRole]:
        roles = set()
        for part in self.get("approver_roles").split(","):
            part = part.strip().lower()
            if not part:
                continue
            try:
                roles.add(UserRole(part))
            except ValueError:
                self.log_warning(f"Ignoring unknown approver role {part!r}")
        return roles

    def organization(self) -> Dict[str, str]:
        """Organization fields for email templates; settings rows override config."""
        return {
            key: self.get_option(f"organization_{key}", getattr(self.organization_defaults, key)) or ""
            for key in ORGANIZATION_OPTIONS
        }
