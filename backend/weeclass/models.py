from sqlalchemy import Column, String, DateTime, Text, JSON, Enum, Index
from datetime import datetime, timezone
import enum
import uuid

from weeclass.db.base import Base


class Role(str, enum.Enum):
    STUDENT = "student"
    PARENT = "parent"
    TEACHER = "teacher"


class RecordStatus(str, enum.Enum):
    AWAITING = "접수대기"
    COMPLETED = "상담완료"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordDocument(Base):
    """One form submission. Role fields live in `payload` (JSON, optionally encrypted)."""

    __tablename__ = "counseling_records"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    collection = Column(String, nullable=False)

    payload = Column(Text, nullable=False)
    status = Column(Enum(RecordStatus), default=RecordStatus.AWAITING, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=True)

    # list() orders by created_at desc inside one collection
    __table_args__ = (
        Index("ix_counseling_records_collection_created", "collection", "created_at"),
    )


class ConfigDocument(Base):
    """Singleton config entries (`notifications`, `teacher_auth`)."""

    __tablename__ = "config"

    key = Column(String, primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
