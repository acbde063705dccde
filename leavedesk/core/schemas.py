from typing import Any, Dict, Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone

from leavedesk.core.exceptions import LeaveError, LeaveErrorKind

T = TypeVar("T")


class ErrorInfo(BaseModel):
    kind: LeaveErrorKind
    code: str
    message: str
    status_code: int = 400
    details: Optional[Dict[str, Any]] = None


class OperationResult(BaseModel, Generic[T]):
    """Outcome of a leave operation: either data, or a typed error."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with JSON-serializable values."""
        return self.model_dump(mode="json")

    @property
    def error_kind(self) -> Optional[LeaveErrorKind]:
        return self.error.kind if self.error else None

    @classmethod
    def ok(cls, data: T = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: LeaveError) -> "OperationResult[T]":
        return cls(
            success=False,
            error=ErrorInfo(
                kind=exc.kind,
                code=exc.error_code,
                message=exc.message,
                status_code=exc.status_code,
                details=exc.details,
            )
        )
