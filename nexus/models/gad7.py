from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin, utcnow


class Gad7Severity(str, Enum):
    MINIMAL = "minimal"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class Gad7Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class Gad7Assessment(IdMixin, TimestampMixin, Base):
    """One completed GAD-7 questionnaire. Never edited after it is saved."""

    __tablename__ = "gad7_assessments"

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 21", name="ck_gad7_assessments_score"),
        Index("ix_gad7_assessments_student_completed", "student_id", "completed_at"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    # {"q1": 0..3, ..., "q7": 0..3}
    answers: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    severity: Mapped[Gad7Severity] = mapped_column(
        SAEnum(Gad7Severity, name="gad7_severity_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    next_assessment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_first_assessment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class Gad7StudentConfig(TimestampMixin, Base):
    """Per-student schedule and running summary. Absent until the first assessment."""

    __tablename__ = "gad7_student_configs"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True
    )

    last_assessment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_assessment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assessment_frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=7)  # days

    total_assessments: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    average_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    trend: Mapped[Gad7Trend] = mapped_column(
        SAEnum(Gad7Trend, name="gad7_trend_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Gad7Trend.STABLE,
    )
    notification_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
