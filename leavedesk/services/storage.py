"""
Storage collaborator for the leave workflow.

All reads and writes of users and leave requests go through LeaveStorage.
Rows carry a version column, so a write based on a stale read raises
StorageConflict instead of silently overwriting another writer.
"""
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from leavedesk.core.exceptions import StorageConflict
from leavedesk.models.leave_request import LeaveRequest, LeaveStatus
from leavedesk.models.user import User, UserRole, UserStatus
from leavedesk.schemas.leave import LeaveRequestFilters
from leavedesk.services.base import BaseService


class LeaveStorage(BaseService):

    # --- Users ---

    def get_user(self, user_id: int, lock: bool = False) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def save_user(self, user: User) -> User:
        self.db.add(user)
        self._flush()
        return user

    def list_users(self, role: Optional[UserRole] = None, status: Optional[UserStatus] = UserStatus.ACTIVE) -> List[User]:
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        if status is not None:
            stmt = stmt.where(User.status == status)
        return list(self.db.execute(stmt.order_by(User.id)).scalars())

    def list_approvers(self, roles: Iterable[UserRole] = (UserRole.HR, UserRole.ADMIN)) -> List[User]:
        stmt = (
            select(User)
            .where(User.role.in_(list(roles)), User.status == UserStatus.ACTIVE)
            .order_by(User.id)
        )
        return list(self.db.execute(stmt).scalars())

    # --- Leave requests ---

    def get_request(self, request_id: int, lock: bool = False) -> Optional[LeaveRequest]:
        stmt = select(LeaveRequest).where(LeaveRequest.id == request_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def save_request(self, request: LeaveRequest) -> LeaveRequest:
        self.db.add(request)
        self._flush()
        return request

    def delete_request(self, request: LeaveRequest) -> None:
        self.db.delete(request)
        self._flush()

    def find_overlapping(
        self,
        user_id: int,
        start: date,
        end: date,
        exclude_status: Sequence[LeaveStatus] = (LeaveStatus.REJECTED,),
        exclude_request_id: Optional[int] = None,
    ) -> List[LeaveRequest]:
        """Requests of this user whose inclusive range intersects [start, end]."""
        conditions = [
            LeaveRequest.user_id == user_id,
            LeaveRequest.start_date <= end,
            LeaveRequest.end_date >= start,
        ]
        if exclude_status:
            conditions.append(LeaveRequest.status.not_in([s.value for s in exclude_status]))
        if exclude_request_id is not None:
            conditions.append(LeaveRequest.id != exclude_request_id)
        stmt = select(LeaveRequest).where(and_(*conditions)).order_by(LeaveRequest.start_date)
        return list(self.db.execute(stmt).scalars())

    def list_requests(self, filters: Optional[LeaveRequestFilters] = None) -> List[LeaveRequest]:
        filters = filters or LeaveRequestFilters()
        stmt = select(LeaveRequest).join(User, LeaveRequest.user_id == User.id).options(joinedload(LeaveRequest.user))
        if filters.user_id is not None:
            stmt = stmt.where(LeaveRequest.user_id == filters.user_id)
        if filters.status is not None:
            stmt = stmt.where(LeaveRequest.status == filters.status.value)
        if filters.leave_type is not None:
            stmt = stmt.where(LeaveRequest.leave_type == filters.leave_type.value)
        if filters.start_date is not None:
            stmt = stmt.where(LeaveRequest.start_date >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(LeaveRequest.end_date <= filters.end_date)
        stmt = stmt.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        return list(self.db.execute(stmt).scalars())

    def calendar(self, start: date, end: date) -> List[LeaveRequest]:
        """Approved requests intersecting the window, with their owners loaded."""
        stmt = (
            select(LeaveRequest)
            .options(joinedload(LeaveRequest.user))
            .where(
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.start_date <= end,
                LeaveRequest.end_date >= start,
            )
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
        )
        return list(self.db.execute(stmt).scalars())

    def dashboard_stats(self, today: date) -> dict:
        month_start = datetime(today.year, today.month, 1)

        def count(*where):
            return self.db.execute(select(func.count()).select_from(LeaveRequest).where(*where)).scalar_one()

        return {
            "total_users": self.db.execute(
                select(func.count()).select_from(User).where(User.status == UserStatus.ACTIVE)
            ).scalar_one(),
            "pending_requests": count(LeaveRequest.status == LeaveStatus.PENDING.value),
            "approved_this_month": count(
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.created_at >= month_start,
            ),
            "total_requests": count(),
        }

    # --- Transaction control ---

    def commit(self) -> None:
        try:
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise StorageConflict(details={"reason": str(e)}) from e

    def rollback(self) -> None:
        self.db.rollback()

    def _flush(self) -> None:
        try:
            self.db.flush()
        except StaleDataError as e:
            self.db.rollback()
            raise StorageConflict(details={"reason": str(e)}) from e
