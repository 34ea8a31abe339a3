from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin, utcnow


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


WEEK_DAYS = [d.value for d in DayOfWeek]


def empty_week() -> list[dict[str, Any]]:
    return [{"day": d, "activities": [], "notes": None} for d in WEEK_DAYS]


class WeeklySchedule(IdMixin, TimestampMixin, Base):
    __tablename__ = "weekly_schedules"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("professionals.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # seven {"day", "activities": [ScheduleActivity...], "notes"} entries, monday first.
    # Activities are embedded definitions, not references to the activities table.
    week_days: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=empty_week)


class ScheduleStudent(Base):
    """The schedule's assigned-student set."""

    __tablename__ = "schedule_students"

    schedule_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("weekly_schedules.id", ondelete="CASCADE"), primary_key=True
    )
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
