import enum

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from linkedin_login.database import Base


class SessionStatus(str, enum.Enum):
    IDLE = "idle"
    LOGGING_IN = "logging_in"
    ACTIVE = "active"
    CHECKPOINT = "checkpoint"
    BUSY = "busy"
    ERROR = "error"


class LinkedInAccount(Base):
    __tablename__ = "linkedin_accounts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False, default="")
    # {"encrypted": "<iv:ciphertext>", "updatedAt": "<iso>"}
    session_data = Column(JSON, nullable=True)
    session_status = Column(String(50), default=SessionStatus.IDLE.value)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
