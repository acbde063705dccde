"""Period rollover: zero the used counters for every active user."""
import argparse
import logging

from leavedesk.core.logging import setup_logging
from leavedesk.database import SessionLocal
from leavedesk.models.leave_request import LeaveType
from leavedesk.services.ledger import BalanceLedger
from leavedesk.services.storage import LeaveStorage

logger = logging.getLogger("reset_leave_balances")


def main():
    parser = argparse.ArgumentParser(description="Reset used leave days for all active users.")
    parser.add_argument(
        "--type",
        dest="leave_types",
        action="append",
        choices=[t.value for t in LeaveType],
        help="Leave type to reset (repeatable). Defaults to all types.",
    )
    args = parser.parse_args()

    setup_logging()
    db = SessionLocal()
    try:
        storage = LeaveStorage(db)
        ledger = BalanceLedger(storage)
        leave_types = [LeaveType(t) for t in args.leave_types] if args.leave_types else None
        count = ledger.reset_used(storage.list_users(), leave_types)
        storage.commit()
        logger.info(f"Reset leave balances for {count} user(s)")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
