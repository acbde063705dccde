"""
Email collaborator: renders a template and dispatches it.

Delivery goes through SMTP when enabled; otherwise the rendered message is
only logged. Every attempt is recorded in the email_logs table. ``send``
reports failure as False and never raises.
"""
import logging
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

from jinja2 import Environment, TemplateError
from sqlalchemy.orm import Session

from leavedesk.core.config import SMTPSettings, settings
from leavedesk.database import SessionLocal
from leavedesk.models.email_log import EmailLog
from leavedesk.services.email_templates import DEFAULT_TEMPLATES, SAMPLE_VARIABLES
from leavedesk.services.policy import PolicySettings

logger = logging.getLogger(__name__)

_html_env = Environment(autoescape=True)
_text_env = Environment(autoescape=False)


class Recipient(NamedTuple):
    email: str
    name: str = ""


class EmailService:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        smtp: Optional[SMTPSettings] = None,
    ):
        self.session_factory = session_factory
        self.smtp = smtp or settings.smtp

    def get_template(self, db: Session, template_id: str) -> Optional[Tuple[str, str]]:
        """(subject, content) for a template id, preferring stored overrides."""
        policy = PolicySettings(db)
        default = DEFAULT_TEMPLATES.get(template_id, {})
        subject = policy.get_option(f"email_template_{template_id}_subject", default.get("subject"))
        content = policy.get_option(f"email_template_{template_id}", default.get("content"))
        if not subject or not content:
            return None
        return subject, content

    def render(self, template: Tuple[str, str], variables: Dict[str, Any]) -> Tuple[str, str]:
        subject, content = template
        return (
            _text_env.from_string(subject).render(**variables).strip(),
            _html_env.from_string(content).render(**variables),
        )

    def send(self, template_id: str, recipient: Recipient, variables: Dict[str, Any]) -> bool:
        try:
            with self.session_factory() as db:
                template = self.get_template(db, template_id)
                if template is None:
                    logger.error(f"Email template '{template_id}' not found")
                    return False

                subject, content = self.render(template, variables)
                error = ""
                try:
                    self.deliver(recipient, subject, content)
                except (smtplib.SMTPException, OSError) as e:
                    error = str(e)
                    logger.error(f"Email delivery to {recipient.email} failed: {e}", exc_info=True)

                self._log_email(db, recipient, subject, template_id, content, error)
                db.commit()
                return not error
        except TemplateError as e:
            logger.error(f"Email template '{template_id}' failed to render: {e}")
            return False
        except Exception as e:
            # Never break the caller because of an email failure
            logger.error(f"Email send failed for template '{template_id}': {e}", exc_info=True)
            return False

    def deliver(self, recipient: Recipient, subject: str, content: str) -> None:
        if not self.smtp.enabled:
            logger.info(
                "Email dispatched (SMTP disabled)",
                extra={"recipient": recipient.email, "subject": subject}
            )
            return

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = formataddr((self.smtp.from_name, self.smtp.from_email))
        message["To"] = formataddr((recipient.name, recipient.email))
        message.set_content(content, subtype="html")

        with smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=self.smtp.timeout) as server:
            if self.smtp.use_tls:
                server.starttls()
            if self.smtp.username:
                server.login(self.smtp.username, self.smtp.password or "")
            server.send_message(message)
        logger.info("Email sent", extra={"recipient": recipient.email, "subject": subject})

    def preview(self, template_id: str, variables: Optional[Dict[str, Any]] = None) -> Optional[Tuple[str, str]]:
        with self.session_factory() as db:
            template = self.get_template(db, template_id)
            if template is None:
                return None
            policy = PolicySettings(db)
            context = {f"organization_{k}": v for k, v in policy.organization().items() if k != "login_url"}
            context["login_url"] = policy.organization()["login_url"]
        context.update(SAMPLE_VARIABLES)
        context.update(variables or {})
        return self.render(template, context)

    def _log_email(self, db: Session, recipient: Recipient, subject: str, template_id: str, content: str, error: str):
        db.add(EmailLog(
            recipient_email=recipient.email,
            recipient_name=recipient.name,
            subject=subject,
            template_type=template_id,
            content=content,
            status="failed" if error else "sent",
            error_message=error,
            sent_at=None if error else datetime.now(timezone.utc),
        ))
