from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from leavedesk.database import Base


class EmailLog(Base):
    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True)
    recipient_email = Column(String(100), nullable=False, index=True)
    recipient_name = Column(String(100), default="")
    subject = Column(String(255), nullable=False)
    template_type = Column(String(50), nullable=False, index=True)
    content = Column(Text, nullable=False)
    status = Column(String(20), default="pending", index=True)  # sent, failed
    error_message = Column(Text, default="")
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
