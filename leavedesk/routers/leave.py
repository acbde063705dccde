from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from leavedesk.core.schemas import OperationResult
from leavedesk.models.leave_request import LeaveStatus, LeaveType
from leavedesk.routers.deps import get_acting_user_id, get_leave_service
from leavedesk.schemas.leave import (
    CalendarLeave,
    DashboardStats,
    DayCountRequest,
    LeaveRejection,
    LeaveRequestCreate,
    LeaveRequestFilters,
    LeaveRequestListItem,
    LeaveRequestUpdate,
)
from leavedesk.services.leave_workflow import LeaveRequestService

router = APIRouter(prefix="/leave", tags=["leave"])


def _respond(result: OperationResult, success_status: int = 200):
    if result.success:
        return JSONResponse(status_code=success_status, content={"success": True, "data": result.to_dict()["data"]})
    return JSONResponse(
        status_code=result.error.status_code,
        content={
            "success": False,
            "errors": [{"msg": result.error.message, "code": result.error.code, "kind": result.error.kind.value}],
            "details": result.error.details,
        }
    )


# --- Endpoints ---

@router.post("/requests")
def submit_leave_request(
    request: LeaveRequestCreate,
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    result = service.submit(user_id, request.leave_type, request.start_date, request.end_date, request.reason)
    return _respond(result, success_status=201)


@router.get("/requests", response_model=List[LeaveRequestListItem])
def list_leave_requests(
    status: Optional[LeaveStatus] = None,
    leave_type: Optional[LeaveType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    all_users: bool = False,
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    if all_users:
        allowed = service.authorize_reviewer(user_id)
        if not allowed.success:
            return _respond(allowed)
    filters = LeaveRequestFilters(
        status=status,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        user_id=None if all_users else user_id,
    )
    return service.list_requests(filters)


@router.put("/requests/{request_id}")
def update_leave_request(
    request_id: int,
    update: LeaveRequestUpdate,
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    result = service.edit(request_id, user_id, update.leave_type, update.start_date, update.end_date, update.reason)
    return _respond(result)


@router.delete("/requests/{request_id}")
def delete_leave_request(
    request_id: int,
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    return _respond(service.delete(request_id, user_id))


@router.post("/requests/{request_id}/approve")
def approve_leave_request(
    request_id: int,
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    return _respond(service.approve(request_id, user_id))


@router.post("/requests/{request_id}/reject")
def reject_leave_request(
    request_id: int,
    rejection: LeaveRejection,
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    return _respond(service.reject(request_id, user_id, rejection.rejection_reason))


@router.get("/balance")
def get_leave_balance(
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    return _respond(service.get_balance(user_id))


@router.post("/calculate-days")
def calculate_leave_days(
    payload: DayCountRequest,
    service: LeaveRequestService = Depends(get_leave_service),
):
    return _respond(service.calculate_days(payload.start_date, payload.end_date))


@router.get("/calendar", response_model=List[CalendarLeave])
def leave_calendar(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    return service.calendar(year, month)


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    user_id: int = Depends(get_acting_user_id),
    service: LeaveRequestService = Depends(get_leave_service),
):
    allowed = service.authorize_reviewer(user_id)
    if not allowed.success:
        return _respond(allowed)
    return service.dashboard_stats()
