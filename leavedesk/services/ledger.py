"""
Balance ledger: per-user, per-leave-type allocation and usage counters.

The ledger never enforces used <= allocation; callers pre-check
``available`` where the business rule requires it. Credits are clamped
so ``used`` never drops below zero.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

from leavedesk.core.exceptions import InvalidLeaveType
from leavedesk.models.leave_request import LeaveType
from leavedesk.models.user import User
from leavedesk.schemas.leave import BalanceEntry, BalanceSnapshot
from leavedesk.services.storage import LeaveStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceFields:
    allocation: str
    used: str


BALANCE_FIELDS: Dict[LeaveType, BalanceFields] = {
    LeaveType.ANNUAL: BalanceFields("annual_leave", "annual_leave_used"),
    LeaveType.SICK: BalanceFields("sick_leave", "sick_leave_used"),
    LeaveType.PERSONAL: BalanceFields("personal_leave", "personal_leave_used"),
    LeaveType.EMERGENCY: BalanceFields("emergency_leave", "emergency_leave_used"),
}


def coerce_leave_type(value: Union[LeaveType, str]) -> LeaveType:
    if isinstance(value, LeaveType):
        return value
    try:
        return LeaveType(str(value).strip().lower())
    except ValueError:
        raise InvalidLeaveType(
            f"Invalid leave type: {value!r}",
            details={"allowed": [t.value for t in LeaveType]}
        ) from None


class BalanceLedger:
    def __init__(self, storage: LeaveStorage):
        self.storage = storage

    def allocation(self, user: User, leave_type: LeaveType) -> int:
        return getattr(user, BALANCE_FIELDS[leave_type].allocation) or 0

    def used(self, user: User, leave_type: LeaveType) -> int:
        return getattr(user, BALANCE_FIELDS[leave_type].used) or 0

    def available(self, user: User, leave_type: LeaveType) -> int:
        return max(0, self.allocation(user, leave_type) - self.used(user, leave_type))

    def debit(self, user: User, leave_type: LeaveType, days: int) -> int:
        """Charge ``days`` against the user's balance. Returns the new used count."""
        if days < 0:
            raise ValueError(f"Cannot debit a negative number of days: {days}")
        new_used = self.used(user, leave_type) + days
        setattr(user, BALANCE_FIELDS[leave_type].used, new_used)
        self.storage.save_user(user)
        logger.info(
            "Debited leave balance",
            extra={"user_id": user.id, "leave_type": leave_type.value, "days": days, "used": new_used}
        )
        return new_used

    def credit(self, user: User, leave_type: LeaveType, days: int) -> int:
        """Restore ``days`` to the user's balance, never below zero used."""
        if days < 0:
            raise ValueError(f"Cannot credit a negative number of days: {days}")
        current = self.used(user, leave_type)
        new_used = max(0, current - days)
        if current - days < 0:
            logger.warning(
                "Credit exceeds recorded usage; clamping at zero",
                extra={"user_id": user.id, "leave_type": leave_type.value, "days": days, "used": current}
            )
        setattr(user, BALANCE_FIELDS[leave_type].used, new_used)
        self.storage.save_user(user)
        logger.info(
            "Credited leave balance",
            extra={"user_id": user.id, "leave_type": leave_type.value, "days": days, "used": new_used}
        )
        return new_used

    def snapshot(self, user: User) -> BalanceSnapshot:
        return {
            leave_type.value: BalanceEntry(
                total=self.allocation(user, leave_type),
                used=self.used(user, leave_type),
                remaining=self.available(user, leave_type),
            )
            for leave_type in LeaveType
        }

    def reset_used(self, users: Iterable[User], leave_types: Optional[Iterable[LeaveType]] = None) -> int:
        """Period rollover: zero the used counters. Returns the number of users reset."""
        types = list(leave_types) if leave_types is not None else list(LeaveType)
        reset_count = 0
        for user in users:
            for leave_type in types:
                setattr(user, BALANCE_FIELDS[leave_type].used, 0)
            self.storage.save_user(user)
            reset_count += 1
        logger.info(
            "Leave balances reset",
            extra={"affected_users": reset_count, "leave_types": [t.value for t in types]}
        )
        return reset_count
