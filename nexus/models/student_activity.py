from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin


class StudentActivityStatus(str, Enum):
    LOCKED = "locked"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REVIEWED = "reviewed"


class StudentActivity(IdMixin, TimestampMixin, Base):
    """Progress of one student on one program activity."""

    __tablename__ = "student_activities"

    __table_args__ = (
        UniqueConstraint("student_id", "activity_id", name="uq_student_activity"),
        CheckConstraint("time_spent >= 0", name="ck_student_activities_time_spent"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    activity_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    program_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    module_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    status: Mapped[StudentActivityStatus] = mapped_column(
        SAEnum(StudentActivityStatus, name="student_activity_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=StudentActivityStatus.LOCKED,
    )

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # minutes

    answers: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
