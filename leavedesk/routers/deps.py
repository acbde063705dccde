"""
Request-scoped dependencies for the leave endpoints.

Session and login handling live in front of this service; the acting
user arrives as a trusted header.
"""
import logging

from fastapi import BackgroundTasks, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from leavedesk.database import get_db
from leavedesk.services.email import EmailService
from leavedesk.services.leave_workflow import LeaveRequestService, build_leave_service

logger = logging.getLogger(__name__)


def get_acting_user_id(x_user_id: str = Header(default=None)) -> int:
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    try:
        return int(x_user_id)
    except ValueError:
        logger.warning(f"Rejected malformed user id header: {x_user_id!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Id header",
        )


def get_email_service() -> EmailService:
    return EmailService()


def get_leave_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email: EmailService = Depends(get_email_service),
) -> LeaveRequestService:
    return build_leave_service(db, email=email, schedule=background_tasks.add_task)
