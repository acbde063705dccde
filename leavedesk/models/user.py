"""
Staff user with per-type leave allocations.
Allocation and used columns are only mutated through the balance ledger.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Date, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from leavedesk.database import Base


class UserRole(str, enum.Enum):
    STAFF = "staff"
    HR = "hr"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    first_name = Column(String(50), nullable=False, default="")
    last_name = Column(String(50), nullable=False, default="")
    department = Column(String(100), default="")
    phone = Column(String(20), default="")
    address = Column(Text, default="")
    hire_date = Column(Date, nullable=True)

    role = Column(Enum(UserRole, values_callable=lambda e: [m.value for m in e]), default=UserRole.STAFF, nullable=False)
    status = Column(Enum(UserStatus, values_callable=lambda e: [m.value for m in e]), default=UserStatus.ACTIVE, nullable=False, index=True)

    # Days granted per period
    annual_leave = Column(Integer, default=20, nullable=False)
    sick_leave = Column(Integer, default=10, nullable=False)
    personal_leave = Column(Integer, default=5, nullable=False)
    emergency_leave = Column(Integer, default=3, nullable=False)

    # Days consumed by approved requests
    annual_leave_used = Column(Integer, default=0, nullable=False)
    sick_leave_used = Column(Integer, default=0, nullable=False)
    personal_leave_used = Column(Integer, default=0, nullable=False)
    emergency_leave_used = Column(Integer, default=0, nullable=False)

    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    leave_requests = relationship("LeaveRequest", foreign_keys="[LeaveRequest.user_id]", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<User {self.username} ({self.role.value})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
