# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, leave_request, setting, email_log

# Explicit class exports for cleaner imports
from .user import User, UserRole, UserStatus
from .leave_request import LeaveRequest, LeaveStatus, LeaveType
from .setting import Setting
from .email_log import EmailLog

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "Setting",
    "EmailLog",
]
