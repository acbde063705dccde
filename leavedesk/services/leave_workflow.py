"""
Leave Request Workflow

The request state machine and its balance side effects.

States: pending -> approved | rejected; approved/rejected -> pending when an
edit requires re-approval; any state -> deleted when policy permits.

Ledger rules:
- Submission never debits; approval debits total_days.
- Leaving approved (reject, delete, edit) credits exactly what the request
  had debited, tracked in ``debited_days``.
- Each mutating operation is a single transaction. Notifications are
  prepared after commit and handed to ``schedule`` so a failed email
  never undoes a committed transition.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple

from tenacity import retry, retry_if_exception_type, stop_after_attempt
from sqlalchemy.orm import Session

from leavedesk.core.config import Config, settings
from leavedesk.core.exceptions import (
    ApprovedImmutable,
    EditingDisabled,
    InvalidDateRange,
    InvalidRange,
    InvalidTransition,
    InsufficientBalance,
    LeaveError,
    NotApprover,
    NotFound,
    NotOwner,
    OverlappingRequest,
    PastDate,
    RejectedImmutable,
    StorageConflict,
)
from leavedesk.core.schemas import OperationResult
from leavedesk.models.leave_request import LeaveRequest, LeaveStatus, LeaveType
from leavedesk.models.user import User
from leavedesk.schemas.leave import (
    CalendarLeave,
    DashboardStats,
    LeaveRequestFilters,
    LeaveRequestListItem,
    LeaveRequestResponse,
)
from leavedesk.services.calendar import DateLike, count_chargeable_days, month_window, parse_date
from leavedesk.services.email import EmailService
from leavedesk.services.ledger import BalanceLedger, coerce_leave_type
from leavedesk.services.notification import (
    REQUEST_APPROVED,
    REQUEST_REJECTED,
    REQUEST_SUBMITTED,
    NotificationDispatcher,
)
from leavedesk.services.policy import PolicySettings
from leavedesk.services.storage import LeaveStorage

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _run_now(func, *args, **kwargs):
    func(*args, **kwargs)


class LeaveWorkflow:
    """Engine methods raise LeaveError; see LeaveRequestService for the result-returning facade."""

    def __init__(
        self,
        storage: LeaveStorage,
        ledger: BalanceLedger,
        policy: PolicySettings,
        dispatcher: Optional[NotificationDispatcher] = None,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = _utcnow,
        schedule: Optional[Callable] = None,
    ):
        self.storage = storage
        self.ledger = ledger
        self.policy = policy
        self.dispatcher = dispatcher
        self.today = today
        self.now = now
        self.schedule = schedule or _run_now

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def submit(
        self,
        user_id: int,
        leave_type,
        start_date: DateLike,
        end_date: DateLike,
        reason: str = "",
    ) -> LeaveRequest:
        leave_type = coerce_leave_type(leave_type)
        start, end = self._validate_range(start_date, end_date)
        if start < self.today():
            raise PastDate("Start date cannot be in the past.", details={"start_date": start.isoformat()})

        with self._unit_of_work():
            user = self._get_user(user_id, lock=True)
            total_days = self._count_days(start, end)

            available = self.ledger.available(user, leave_type)
            if total_days > available:
                raise InsufficientBalance(available=available, requested=total_days)

            self._check_overlap(user.id, start, end)

            request = LeaveRequest(
                user_id=user.id,
                leave_type=leave_type.value,
                start_date=start,
                end_date=end,
                total_days=total_days,
                debited_days=0,
                reason=reason or "",
                status=LeaveStatus.PENDING.value,
            )
            self.storage.save_request(request)

        logger.info(
            "Leave request submitted",
            extra={"leave_request_id": request.id, "user_id": user.id, "total_days": total_days}
        )
        if self.policy.get_bool("notify_admin_on_request"):
            self._notify(REQUEST_SUBMITTED, request, user)
        return request

    def approve(self, request_id: int, approver_id: int) -> LeaveRequest:
        with self._unit_of_work():
            request = self._get_request(request_id)
            approver = self._get_approver(approver_id)
            if request.status == LeaveStatus.APPROVED.value:
                raise InvalidTransition(
                    "Leave request is already approved.",
                    details={"leave_request_id": request.id, "status": request.status}
                )

            owner = self._get_user(request.user_id, lock=True)
            if request.status == LeaveStatus.PENDING.value:
                # An edit may have lengthened the request since submission
                available = self.ledger.available(owner, request.leave_type_enum)
                if request.total_days > available:
                    raise InsufficientBalance(available=available, requested=request.total_days)
            self.ledger.debit(owner, request.leave_type_enum, request.total_days)
            request.debited_days = request.total_days
            request.status = LeaveStatus.APPROVED.value
            request.approved_by = approver.id
            request.approved_at = self.now()
            request.rejection_reason = ""
            self.storage.save_request(request)

        logger.info(
            "Leave request approved",
            extra={"leave_request_id": request.id, "user_id": owner.id, "approver_id": approver.id}
        )
        if self.policy.get_bool("notify_user_on_approval"):
            self._notify(REQUEST_APPROVED, request, owner, actor=approver)
        return request

    def reject(self, request_id: int, approver_id: int, rejection_reason: str = "") -> LeaveRequest:
        with self._unit_of_work():
            request = self._get_request(request_id)
            approver = self._get_approver(approver_id)
            if request.status == LeaveStatus.REJECTED.value:
                raise InvalidTransition(
                    "Leave request is already rejected.",
                    details={"leave_request_id": request.id, "status": request.status}
                )

            owner = self._get_user(request.user_id, lock=True)
            if request.status == LeaveStatus.APPROVED.value:
                self._reverse_debit(owner, request)
            request.status = LeaveStatus.REJECTED.value
            request.approved_by = approver.id
            request.approved_at = self.now()
            request.rejection_reason = rejection_reason or ""
            self.storage.save_request(request)

        logger.info(
            "Leave request rejected",
            extra={"leave_request_id": request.id, "user_id": owner.id, "approver_id": approver.id}
        )
        if self.policy.get_bool("notify_user_on_rejection"):
            self._notify(REQUEST_REJECTED, request, owner, actor=approver, extra_vars={"rejection_reason": request.rejection_reason})
        return request

    def edit(
        self,
        request_id: int,
        owner_id: int,
        leave_type,
        start_date: DateLike,
        end_date: DateLike,
        reason: str = "",
    ) -> LeaveRequest:
        with self._unit_of_work():
            request = self._get_owned_request(request_id, owner_id)

            if not self.policy.get_bool("allow_leave_editing"):
                raise EditingDisabled()
            if request.status == LeaveStatus.REJECTED.value and not self.policy.get_bool("allow_edit_rejected"):
                raise RejectedImmutable()

            new_type = coerce_leave_type(leave_type)
            start, end = self._validate_range(start_date, end_date)
            self._check_overlap(owner_id, start, end, exclude_request_id=request.id)

            owner = self._get_user(owner_id, lock=True)
            previous_status = request.status
            if previous_status == LeaveStatus.APPROVED.value:
                # Reverse the old debit before the day count changes
                self._reverse_debit(owner, request)

            total_days = self._count_days(start, end)
            request.leave_type = new_type.value
            request.start_date = start
            request.end_date = end
            request.total_days = total_days
            request.reason = reason or ""

            reopen = previous_status != LeaveStatus.PENDING.value and self.policy.get_bool("require_reapproval_on_edit")
            if reopen:
                request.status = LeaveStatus.PENDING.value
                request.is_edited = True
                request.approved_by = None
                request.approved_at = None
                request.rejection_reason = ""
            elif previous_status == LeaveStatus.APPROVED.value:
                self.ledger.debit(owner, new_type, total_days)
                request.debited_days = total_days

            self.storage.save_request(request)

        logger.info(
            "Leave request edited",
            extra={
                "leave_request_id": request.id,
                "user_id": owner_id,
                "previous_status": previous_status,
                "status": request.status,
                "total_days": total_days,
            }
        )
        return request

    def delete(self, request_id: int, owner_id: int) -> None:
        with self._unit_of_work():
            request = self._get_owned_request(request_id, owner_id)
            if request.status == LeaveStatus.APPROVED.value:
                if not self.policy.get_bool("allow_delete_approved"):
                    raise ApprovedImmutable()
                owner = self._get_user(owner_id, lock=True)
                self._reverse_debit(owner, request)
            self.storage.delete_request(request)

        logger.info("Leave request deleted", extra={"leave_request_id": request_id, "user_id": owner_id})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_balance(self, user_id: int):
        return self.ledger.snapshot(self._get_user(user_id))

    def authorize_reviewer(self, user_id: int) -> None:
        """Organisation-wide reads are for approvers only."""
        user = self._get_user(user_id)
        if not user.is_active or user.role not in self.policy.approver_roles():
            raise NotApprover(
                "You are not allowed to view other users' leave requests.",
                details={"user_id": user_id, "role": user.role.value}
            )

    def list_requests(self, filters: Optional[LeaveRequestFilters] = None) -> List[LeaveRequest]:
        return self.storage.list_requests(filters)

    def calendar(self, year: int, month: int) -> List[LeaveRequest]:
        first, last = month_window(year, month)
        return self.storage.calendar(first, last)

    def calculate_days(self, start_date: DateLike, end_date: DateLike) -> int:
        return count_chargeable_days(start_date, end_date, self.policy.get_bool("weekend_counts_as_leave"))

    def dashboard_stats(self) -> dict:
        return self.storage.dashboard_stats(self.today())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _unit_of_work(self):
        try:
            yield
            self.storage.commit()
        except Exception:
            self.storage.rollback()
            raise

    def _get_user(self, user_id: int, lock: bool = False) -> User:
        user = self.storage.get_user(user_id, lock=lock)
        if user is None:
            raise NotFound("User not found.", details={"user_id": user_id})
        return user

    def _get_request(self, request_id: int) -> LeaveRequest:
        request = self.storage.get_request(request_id, lock=True)
        if request is None:
            raise NotFound("Leave request not found.", details={"leave_request_id": request_id})
        return request

    def _get_owned_request(self, request_id: int, owner_id: int) -> LeaveRequest:
        request = self._get_request(request_id)
        if request.user_id != owner_id:
            raise NotOwner("Leave request not found.", details={"leave_request_id": request_id})
        return request

    def _get_approver(self, approver_id: int) -> User:
        approver = self.storage.get_user(approver_id)
        if approver is None:
            raise NotFound("Approver not found.", details={"user_id": approver_id})
        if not approver.is_active or approver.role not in self.policy.approver_roles():
            raise NotApprover(
                "You are not allowed to approve or reject leave requests.",
                details={"user_id": approver_id, "role": approver.role.value}
            )
        return approver

    def _validate_range(self, start_date: DateLike, end_date: DateLike) -> Tuple[date, date]:
        try:
            start = parse_date(start_date)
            end = parse_date(end_date)
        except InvalidRange as e:
            raise InvalidDateRange("Invalid date format.", details=e.details) from e
        if start > end:
            raise InvalidDateRange(
                "Start date cannot be after end date.",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()}
            )
        return start, end

    def _count_days(self, start: date, end: date) -> int:
        total_days = count_chargeable_days(start, end, self.policy.get_bool("weekend_counts_as_leave"))
        if total_days <= 0:
            raise InvalidDateRange(
                "The selected dates contain no chargeable leave days.",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()}
            )
        return total_days

    def _check_overlap(self, user_id: int, start: date, end: date, exclude_request_id: Optional[int] = None):
        overlapping = self.storage.find_overlapping(user_id, start, end, exclude_request_id=exclude_request_id)
        if overlapping:
            raise OverlappingRequest(details={"conflicting_request_ids": [r.id for r in overlapping]})

    def _reverse_debit(self, owner: User, request: LeaveRequest) -> None:
        self.ledger.credit(owner, request.leave_type_enum, request.debited_days or 0)
        request.debited_days = 0

    def _notify(self, event_name: str, request: LeaveRequest, user: User, actor: Optional[User] = None, extra_vars=None):
        if self.dispatcher is None:
            return
        try:
            jobs = self.dispatcher.prepare(event_name, request, user, extra_vars=extra_vars, actor=actor)
            self.schedule(self.dispatcher.deliver, jobs)
        except Exception as e:
            # Don't fail the committed transition if notification fails
            logger.warning(f"Notification '{event_name}' failed: {e}", exc_info=True)


@retry(stop=stop_after_attempt(2), retry=retry_if_exception_type(StorageConflict), reraise=True)
def _call_with_conflict_retry(operation, *args, **kwargs):
    return operation(*args, **kwargs)


class LeaveRequestService:
    """
    Public contract of the leave workflow.

    Every operation returns an OperationResult; callers branch on
    ``result.error.kind``. A StorageConflict is retried once with fresh
    state before it is reported.
    """

    def __init__(self, workflow: LeaveWorkflow):
        self.workflow = workflow

    def submit(self, user_id: int, leave_type, start_date, end_date, reason: str = "") -> OperationResult[LeaveRequestResponse]:
        return self._run(self.workflow.submit, user_id, leave_type, start_date, end_date, reason, serialize=LeaveRequestResponse.model_validate)

    def approve(self, request_id: int, approver_id: int) -> OperationResult[LeaveRequestResponse]:
        return self._run(self.workflow.approve, request_id, approver_id, serialize=LeaveRequestResponse.model_validate)

    def reject(self, request_id: int, approver_id: int, rejection_reason: str = "") -> OperationResult[LeaveRequestResponse]:
        return self._run(self.workflow.reject, request_id, approver_id, rejection_reason, serialize=LeaveRequestResponse.model_validate)

    def edit(self, request_id: int, owner_id: int, leave_type, start_date, end_date, reason: str = "") -> OperationResult[LeaveRequestResponse]:
        return self._run(self.workflow.edit, request_id, owner_id, leave_type, start_date, end_date, reason, serialize=LeaveRequestResponse.model_validate)

    def delete(self, request_id: int, owner_id: int) -> OperationResult[None]:
        return self._run(self.workflow.delete, request_id, owner_id)

    def get_balance(self, user_id: int) -> OperationResult[dict]:
        return self._run(self.workflow.get_balance, user_id, retry_conflicts=False)

    def authorize_reviewer(self, user_id: int) -> OperationResult[None]:
        return self._run(self.workflow.authorize_reviewer, user_id, retry_conflicts=False)

    def calculate_days(self, start_date, end_date) -> OperationResult[int]:
        return self._run(self.workflow.calculate_days, start_date, end_date, retry_conflicts=False)

    def list_requests(self, filters: Optional[LeaveRequestFilters] = None) -> List[LeaveRequestListItem]:
        return [LeaveRequestListItem.from_request(r) for r in self.workflow.list_requests(filters)]

    def calendar(self, year: int, month: int) -> List[CalendarLeave]:
        return [
            CalendarLeave(
                request_id=r.id,
                user_id=r.user_id,
                full_name=r.user.full_name if r.user else "Unknown",
                leave_type=r.leave_type,
                start_date=r.start_date,
                end_date=r.end_date,
                total_days=r.total_days,
            )
            for r in self.workflow.calendar(year, month)
        ]

    def dashboard_stats(self) -> DashboardStats:
        return DashboardStats(**self.workflow.dashboard_stats())

    def _run(self, operation, *args, serialize=None, retry_conflicts: bool = True):
        try:
            if retry_conflicts:
                value = _call_with_conflict_retry(operation, *args)
            else:
                value = operation(*args)
        except LeaveError as exc:
            logger.info(
                f"Leave operation {operation.__name__} failed: {exc.message}",
                extra={"kind": exc.kind.value}
            )
            return OperationResult.fail(exc)
        if serialize is not None and value is not None:
            value = serialize(value)
        return OperationResult.ok(value)


def build_leave_service(
    db: Session,
    email: Optional[EmailService] = None,
    config: Config = settings,
    today: Callable[[], date] = date.today,
    now: Callable[[], datetime] = _utcnow,
    schedule: Optional[Callable] = None,
) -> LeaveRequestService:
    """Wire the workflow's collaborators around one session."""
    storage = LeaveStorage(db)
    policy = PolicySettings(db, config.policy, config.organization)
    ledger = BalanceLedger(storage)
    dispatcher = NotificationDispatcher(email or EmailService(smtp=config.smtp), policy, storage)
    workflow = LeaveWorkflow(storage, ledger, policy, dispatcher, today=today, now=now, schedule=schedule)
    return LeaveRequestService(workflow)
