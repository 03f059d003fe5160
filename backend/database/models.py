"""
PostgreSQL Database Models - SQLAlchemy ORM
Tables for the supervision numbering registry
"""
from datetime import date, datetime
from typing import Optional
from sqlalchemy import Boolean, Date, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
import uuid as uuid_lib

from .connection import Base


# ==================== NUMBERING REQUEST MODEL ====================

class NumberingRequest(Base):
    """Numbering request - one supervision number per row"""
    __tablename__ = "numbering_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid_lib.uuid4()))
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    stage: Mapped[str] = mapped_column(String(255), nullable=False)
    supervision_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    generated_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    frozen: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        Index('idx_numbering_date_created_at', 'supervision_date', 'created_at'),
    )


# ==================== AUDIT LOG MODEL ====================

class AuditLog(Base):
    """Audit logs - tracks every issued, shifted, deleted or frozen number"""
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid_lib.uuid4()))
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    changes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON object
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index('idx_audit_entity', 'entity_type', 'entity_id'),
        Index('idx_audit_entity_timestamp', 'entity_type', 'timestamp'),
    )
