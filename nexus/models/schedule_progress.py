from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin


class ScheduleActivityProgress(IdMixin, TimestampMixin, Base):
    __tablename__ = "schedule_progress"

    __table_args__ = (
        UniqueConstraint("student_id", "schedule_id", "activity_id", name="uq_schedule_progress_key"),
        CheckConstraint("time_spent >= 0", name="ck_schedule_progress_time_spent"),
        # completed rows always carry a timestamp, open rows never do
        CheckConstraint(
            "(completed AND completed_at IS NOT NULL) OR (NOT completed AND completed_at IS NULL)",
            name="ck_schedule_progress_completed_at",
        ),
        Index("ix_schedule_progress_student_schedule", "student_id", "schedule_id"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    schedule_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("weekly_schedules.id", ondelete="CASCADE"), nullable=False
    )
    activity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    day: Mapped[str | None] = mapped_column(String(10), nullable=True)

    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # minutes

    answers: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
