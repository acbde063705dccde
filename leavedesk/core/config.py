import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "yes", "1")


class OrganizationSettings(BaseModel):
    name: str = os.getenv("ORGANIZATION_NAME", "Little Falls Christian Centre")
    email: str = os.getenv("ORGANIZATION_EMAIL", "hr@littlefallschristiancentre.org")
    phone: str = os.getenv("ORGANIZATION_PHONE", "+27 12 345 6789")
    address: str = os.getenv("ORGANIZATION_ADDRESS", "123 Church Street, Little Falls, South Africa")
    website: str = os.getenv("ORGANIZATION_WEBSITE", "https://littlefallschristiancentre.org")
    login_url: str = os.getenv("LOGIN_URL", "http://localhost:8000")


class SMTPSettings(BaseModel):
    enabled: bool = Field(default=_env_flag("SMTP_ENABLED", "false"))
    host: Optional[str] = Field(default=os.getenv("SMTP_HOST"))
    port: int = int(os.getenv("SMTP_PORT", "587"))
    username: Optional[str] = Field(default=os.getenv("SMTP_USERNAME"))
    password: Optional[str] = Field(default=os.getenv("SMTP_PASSWORD"))
    use_tls: bool = Field(default=_env_flag("SMTP_USE_TLS", "true"))
    from_email: str = os.getenv("FROM_EMAIL", "noreply@littlefallschristiancentre.org")
    from_name: str = os.getenv("FROM_NAME", "Leave Management")
    timeout: int = 10


class PolicyDefaults(BaseModel):
    """Fallback values for policy options that have no row in the settings table."""
    weekend_counts_as_leave: bool = True
    allow_leave_editing: bool = True
    allow_edit_rejected: bool = False
    require_reapproval_on_edit: bool = True
    allow_delete_approved: bool = False
    notify_admin_on_request: bool = True
    notify_user_on_approval: bool = True
    notify_user_on_rejection: bool = True
    send_welcome_email: bool = True
    approver_roles: str = "hr,admin"

    # Default leave allocations (days per period)
    default_annual_leave: int = 20
    default_sick_leave: int = 10
    default_personal_leave: int = 5
    default_emergency_leave: int = 3


class Config(BaseModel):
    app_name: str = "Leave Desk"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./leavedesk.db")

    organization: OrganizationSettings = OrganizationSettings()
    smtp: SMTPSettings = SMTPSettings()
    policy: PolicyDefaults = PolicyDefaults()

    # Header carrying the acting user's id (session handling lives upstream)
    user_id_header: str = "X-User-Id"
    request_id_header: str = "X-Request-ID"

    # Browser front-ends allowed to call the API
    cors_origins: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if origin.strip()
    ]


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if settings.smtp.enabled and not settings.smtp.host:
        raise RuntimeError(
            "FATAL: SMTP_ENABLED is set but SMTP_HOST is missing. "
            "Set it as an environment variable or disable SMTP."
        )
elif not settings.smtp.enabled:
    _logger.info("SMTP delivery disabled; outgoing email will only be logged.")
