"""
Notification dispatcher.

Maps workflow events to email templates, assembles the template variable
context and hands each message to the email collaborator. Preparing the
messages reads the database, so it must happen while the caller's session
is open; delivering them does not, so it can run after the response.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from leavedesk.models.leave_request import LeaveRequest, LeaveType
from leavedesk.models.user import User
from leavedesk.services.email import EmailService, Recipient
from leavedesk.services.ledger import BALANCE_FIELDS
from leavedesk.services.policy import PolicySettings
from leavedesk.services.storage import LeaveStorage

logger = logging.getLogger(__name__)

REQUEST_SUBMITTED = "request_submitted"
REQUEST_APPROVED = "request_approved"
REQUEST_REJECTED = "request_rejected"
USER_CREATED = "user_created"
PASSWORD_RESET = "password_reset"

EVENT_TEMPLATES = {
    REQUEST_SUBMITTED: "leave_request_notification",
    REQUEST_APPROVED: "leave_approved",
    REQUEST_REJECTED: "leave_rejected",
    USER_CREATED: "welcome",
    PASSWORD_RESET: "password_reset",
}


@dataclass
class EmailJob:
    template_id: str
    recipient: Recipient
    variables: Dict[str, Any] = field(default_factory=dict)


def _fmt_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


class NotificationDispatcher:
    def __init__(
        self,
        email: EmailService,
        policy: PolicySettings,
        storage: LeaveStorage,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.email = email
        self.policy = policy
        self.storage = storage
        self.now = now

    def notify(
        self,
        event_name: str,
        leave_request: Optional[LeaveRequest],
        user: Optional[User],
        extra_vars: Optional[Dict[str, Any]] = None,
        actor: Optional[User] = None,
    ) -> None:
        """Prepare and deliver in one call. Failures are logged, never raised."""
        try:
            jobs = self.prepare(event_name, leave_request, user, extra_vars, actor)
        except Exception as e:
            logger.error(f"Failed to prepare notification '{event_name}': {e}", exc_info=True)
            return
        self.deliver(jobs)

    def prepare(
        self,
        event_name: str,
        leave_request: Optional[LeaveRequest],
        user: Optional[User],
        extra_vars: Optional[Dict[str, Any]] = None,
        actor: Optional[User] = None,
    ) -> List[EmailJob]:
        if event_name not in EVENT_TEMPLATES:
            raise ValueError(f"Unknown notification event: {event_name}")
        template_id = EVENT_TEMPLATES[event_name]

        variables = self.system_variables()
        variables.update(self.user_variables(user))
        variables.update(self.leave_request_variables(leave_request, user))

        today = _fmt_date(self.now())
        if event_name == REQUEST_APPROVED and actor is not None:
            variables["approved_by"] = actor.full_name
            variables["approved_date"] = today
        elif event_name == REQUEST_REJECTED and actor is not None:
            variables["rejected_by"] = actor.full_name
            variables["rejected_date"] = today
        variables.update(extra_vars or {})

        recipients = self.recipients_for(event_name, user)
        if not recipients:
            logger.warning(f"No recipients for notification '{event_name}'")
        return [EmailJob(template_id, recipient, dict(variables)) for recipient in recipients]

    def deliver(self, jobs: List[EmailJob]) -> int:
        sent = 0
        for job in jobs:
            try:
                ok = self.email.send(job.template_id, job.recipient, job.variables)
            except Exception as e:
                logger.error(f"Email collaborator raised for {job.recipient.email}: {e}", exc_info=True)
                ok = False
            if ok:
                sent += 1
            else:
                logger.warning(
                    "Notification email not sent",
                    extra={"template_id": job.template_id, "recipient": job.recipient.email}
                )
        return sent

    def recipients_for(self, event_name: str, user: Optional[User]) -> List[Recipient]:
        if event_name == REQUEST_SUBMITTED:
            recipients = [
                Recipient(approver.email, approver.full_name)
                for approver in self.storage.list_approvers(self.policy.approver_roles())
            ]
            if not recipients:
                org_email = self.policy.organization().get("email")
                if org_email:
                    recipients.append(Recipient(org_email, "HR Administrator"))
            return recipients
        if user is None or not user.email:
            return []
        return [Recipient(user.email, user.full_name)]

    def system_variables(self) -> Dict[str, Any]:
        org = self.policy.organization()
        now = self.now()
        return {
            "organization_name": org["name"],
            "organization_email": org["email"],
            "organization_phone": org["phone"],
            "organization_address": org["address"],
            "organization_website": org["website"],
            "login_url": org["login_url"],
            "current_date": now.strftime("%Y-%m-%d"),
            "current_time": now.strftime("%H:%M:%S"),
            "current_datetime": now.strftime("%Y-%m-%d %H:%M:%S"),
        }

    def user_variables(self, user: Optional[User]) -> Dict[str, Any]:
        if user is None:
            return {}
        variables = {
            "first_name": user.first_name,
            "last_name": user.last_name,
            "full_name": user.full_name,
            "username": user.username,
            "email": user.email,
            "department": user.department or "",
            "phone": user.phone or "",
            "hire_date": _fmt_date(user.hire_date),
        }
        for leave_type, fields in BALANCE_FIELDS.items():
            total = getattr(user, fields.allocation) or 0
            used = getattr(user, fields.used) or 0
            variables[fields.allocation] = total
            variables[fields.used] = used
            variables[f"{fields.allocation}_remaining"] = max(0, total - used)
        return variables

    def leave_request_variables(self, leave_request: Optional[LeaveRequest], user: Optional[User] = None) -> Dict[str, Any]:
        if leave_request is None:
            return {}
        leave_type = LeaveType(leave_request.leave_type)
        approver = leave_request.approver
        decided = _fmt_date(leave_request.approved_at)
        is_rejected = leave_request.status == "rejected"
        variables = {
            "leave_type": leave_type.label,
            "start_date": _fmt_date(leave_request.start_date),
            "end_date": _fmt_date(leave_request.end_date),
            "total_days": leave_request.total_days,
            "reason": leave_request.reason or "",
            "status": leave_request.status.capitalize(),
            "approved_by": approver.full_name if approver and not is_rejected else "",
            "approved_date": decided if not is_rejected else "",
            "rejected_by": approver.full_name if approver and is_rejected else "",
            "rejected_date": decided if is_rejected else "",
            "rejection_reason": leave_request.rejection_reason or "",
            "comments": leave_request.comments or "",
        }
        if user is not None:
            fields = BALANCE_FIELDS[leave_type]
            variables["leave_balance"] = max(0, (getattr(user, fields.allocation) or 0) - (getattr(user, fields.used) or 0))
        return variables
