from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin, utcnow


class Student(IdMixin, TimestampMixin, Base):
    __tablename__ = "students"

    __table_args__ = (
        CheckConstraint("total_points >= 0", name="ck_students_total_points"),
        CheckConstraint("streak >= 0", name="ck_students_streak"),
        CheckConstraint("level >= 1", name="ck_students_level"),
    )

    # --------------------------------------------------
    # PROFILE
    # --------------------------------------------------

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True, index=True)
    school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Never deleted, only deactivated
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    # --------------------------------------------------
    # GAMIFICATION
    # --------------------------------------------------

    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")


class StudentProgram(Base):
    """The student's assigned-program set. One row per (student, program)."""

    __tablename__ = "student_programs"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True
    )
    program_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("programs.id", ondelete="CASCADE"), primary_key=True
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class StudentProfessional(Base):
    """Professionals following a student. One row per (student, professional)."""

    __tablename__ = "student_professionals"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True
    )
    professional_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("professionals.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
