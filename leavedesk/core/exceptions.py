import enum
from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class LeaveErrorKind(str, enum.Enum):
    """Every way a leave operation can fail. Callers branch on these."""
    INVALID_LEAVE_TYPE = "InvalidLeaveType"
    INVALID_DATE_RANGE = "InvalidDateRange"
    INVALID_RANGE = "InvalidRange"
    PAST_DATE = "PastDate"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    OVERLAPPING_REQUEST = "OverlappingRequest"
    NOT_FOUND = "NotFound"
    NOT_OWNER = "NotOwner"
    NOT_APPROVER = "NotApprover"
    INVALID_TRANSITION = "InvalidTransition"
    EDITING_DISABLED = "EditingDisabled"
    REJECTED_IMMUTABLE = "RejectedImmutable"
    APPROVED_IMMUTABLE = "ApprovedImmutable"
    STORAGE_CONFLICT = "StorageConflict"


class LeaveError(AppException):
    kind: LeaveErrorKind
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=type(self).status_code,
            error_code=self.kind.name,
            details=details
        )


class InvalidLeaveType(LeaveError):
    kind = LeaveErrorKind.INVALID_LEAVE_TYPE


class InvalidDateRange(LeaveError):
    kind = LeaveErrorKind.INVALID_DATE_RANGE


class InvalidRange(LeaveError):
    """Raised by the day counter for reversed or unparsable ranges."""
    kind = LeaveErrorKind.INVALID_RANGE


class PastDate(LeaveError):
    kind = LeaveErrorKind.PAST_DATE


class InsufficientBalance(LeaveError):
    kind = LeaveErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, available: int, requested: int):
        super().__init__(
            f"Insufficient leave balance. You have {available} days available.",
            details={"available": available, "requested": requested}
        )
        self.available = available
        self.requested = requested


class OverlappingRequest(LeaveError):
    kind = LeaveErrorKind.OVERLAPPING_REQUEST
    status_code = 409

    def __init__(self, message: str = "You already have a leave request for this period.", details=None):
        super().__init__(message, details)


class NotFound(LeaveError):
    kind = LeaveErrorKind.NOT_FOUND
    status_code = 404


class NotOwner(LeaveError):
    kind = LeaveErrorKind.NOT_OWNER
    status_code = 403


class NotApprover(LeaveError):
    kind = LeaveErrorKind.NOT_APPROVER
    status_code = 403


class InvalidTransition(LeaveError):
    kind = LeaveErrorKind.INVALID_TRANSITION
    status_code = 409


class EditingDisabled(LeaveError):
    kind = LeaveErrorKind.EDITING_DISABLED
    status_code = 403

    def __init__(self, message: str = "Leave request editing is not allowed.", details=None):
        super().__init__(message, details)


class RejectedImmutable(LeaveError):
    kind = LeaveErrorKind.REJECTED_IMMUTABLE
    status_code = 403

    def __init__(self, message: str = "Rejected requests cannot be edited.", details=None):
        super().__init__(message, details)


class ApprovedImmutable(LeaveError):
    kind = LeaveErrorKind.APPROVED_IMMUTABLE
    status_code = 403

    def __init__(self, message: str = "Approved requests cannot be deleted.", details=None):
        super().__init__(message, details)


class StorageConflict(LeaveError):
    """Optimistic-lock failure: another writer changed the row first."""
    kind = LeaveErrorKind.STORAGE_CONFLICT
    status_code = 409

    def __init__(self, message: str = "The record was modified concurrently. Please retry.", details=None):
        super().__init__(message, details)
