from __future__ import annotations

from enum import Enum
from typing import Any, List

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin


def _enum_values(e):
    return [m.value for m in e]


class ProgramStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ActivityType(str, Enum):
    TEXT = "text"
    CHECKLIST = "checklist"
    VIDEO = "video"
    QUIZ = "quiz"
    FILE = "file"
    HABIT = "habit"


class Program(IdMixin, TimestampMixin, Base):
    __tablename__ = "programs"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("professionals.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[ProgramStatus] = mapped_column(
        SAEnum(ProgramStatus, name="program_status_enum", values_callable=_enum_values),
        nullable=False,
        default=ProgramStatus.DRAFT,
    )

    estimated_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)

    modules: Mapped[List["Module"]] = relationship(
        "Module",
        back_populates="program",
        cascade="all, delete-orphan",
        order_by="Module.order",
    )


class Module(IdMixin, TimestampMixin, Base):
    __tablename__ = "modules"

    program_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    program: Mapped["Program"] = relationship("Program", back_populates="modules")
    activities: Mapped[List["Activity"]] = relationship(
        "Activity",
        back_populates="module",
        cascade="all, delete-orphan",
        order_by="Activity.order",
    )


class Activity(IdMixin, TimestampMixin, Base):
    __tablename__ = "activities"

    __table_args__ = (
        CheckConstraint("points IS NULL OR points >= 0", name="ck_activities_points"),
        CheckConstraint("estimated_time >= 0", name="ck_activities_estimated_time"),
        Index("ix_activities_program_module", "program_id", "module_id"),
    )

    module_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # denormalized so progress can be computed per program without a join
    program_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )

    type: Mapped[ActivityType] = mapped_column(
        SAEnum(ActivityType, name="activity_type_enum", values_callable=_enum_values),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    estimated_time: Mapped[int] = mapped_column(Integer, nullable=False, default=15)  # minutes
    points: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None -> default award
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # type-specific payload (text body, checklist items, quiz questions, ...)
    content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    module: Mapped["Module"] = relationship("Module", back_populates="activities")
