from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin, utcnow


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    INACTIVE = "inactive"  # soft-removed


class Assignment(IdMixin, TimestampMixin, Base):
    __tablename__ = "assignments"

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_assignments_progress"),
        Index("ix_assignments_student_status", "student_id", "status"),
        Index("ix_assignments_student_program_status", "student_id", "program_id", "status"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    program_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assigned_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("professionals.id", ondelete="SET NULL"), nullable=True
    )

    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[AssignmentStatus] = mapped_column(
        SAEnum(AssignmentStatus, name="assignment_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AssignmentStatus.ACTIVE,
    )

    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    # ordered, duplicate-free list of activity ids
    completed_activities: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    custom_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    send_notification: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
