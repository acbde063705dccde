from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from leavedesk.database import Base


class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    option_name = Column(String(100), unique=True, index=True, nullable=False)
    option_value = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
