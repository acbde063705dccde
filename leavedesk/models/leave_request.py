from sqlalchemy import Column, Integer, String, Date, Boolean, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from leavedesk.database import Base
import enum


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(str, enum.Enum):
    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    EMERGENCY = "emergency"

    @property
    def label(self) -> str:
        return f"{self.value.capitalize()} Leave"


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type = Column(String(20), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    # Days currently charged to the owner's ledger for this request
    debited_days = Column(Integer, nullable=False, default=0)
    reason = Column(Text, default="")
    status = Column(String(20), default=LeaveStatus.PENDING.value, nullable=False, index=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)  # decision time for approve and reject
    rejection_reason = Column(Text, default="")
    comments = Column(Text, default="")
    is_edited = Column(Boolean, default=False, nullable=False)
    original_request_id = Column(Integer, nullable=True)

    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id], back_populates="leave_requests")
    approver = relationship("User", foreign_keys=[approved_by])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<LeaveRequest {self.id} {self.leave_type} {self.start_date}..{self.end_date} ({self.status})>"

    @property
    def leave_type_enum(self) -> LeaveType:
        return LeaveType(self.leave_type)

    @property
    def status_enum(self) -> LeaveStatus:
        return LeaveStatus(self.status)
