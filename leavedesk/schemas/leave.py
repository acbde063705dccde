from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import Dict, Optional

from leavedesk.models.leave_request import LeaveStatus, LeaveType


class LeaveRequestCreate(BaseModel):
    leave_type: str
    start_date: str
    end_date: str
    reason: str = ""


class LeaveRequestUpdate(LeaveRequestCreate):
    pass


class LeaveRejection(BaseModel):
    rejection_reason: str = ""


class LeaveRequestFilters(BaseModel):
    status: Optional[LeaveStatus] = None
    user_id: Optional[int] = None
    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class LeaveRequestResponse(BaseModel):
    id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: Optional[str] = ""
    status: LeaveStatus
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = ""
    is_edited: bool = False
    original_request_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveRequestListItem(LeaveRequestResponse):
    """A request joined with its owner's display fields."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    department: Optional[str] = ""

    @classmethod
    def from_request(cls, request) -> "LeaveRequestListItem":
        item = cls.model_validate(request)
        user = request.user
        if user is not None:
            item.first_name = user.first_name
            item.last_name = user.last_name
            item.email = user.email
            item.department = user.department
        return item


class BalanceEntry(BaseModel):
    total: int
    used: int
    remaining: int


BalanceSnapshot = Dict[str, BalanceEntry]


class CalendarLeave(BaseModel):
    request_id: int
    user_id: int
    full_name: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int


class DayCountRequest(BaseModel):
    start_date: str
    end_date: str


class DashboardStats(BaseModel):
    total_users: int = 0
    pending_requests: int = 0
    approved_this_month: int = 0
    total_requests: int = 0
