from __future__ import annotations

from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin


class ObservationAuthorType(str, Enum):
    MONITOR = "monitor"
    PSYCHOLOGIST = "psychologist"
    PSYCHIATRIST = "psychiatrist"
    GENERAL = "general"


class Observation(IdMixin, TimestampMixin, Base):
    """A professional's note about a student, optionally with a structured form."""

    __tablename__ = "observations"

    __table_args__ = (
        Index("ix_observations_student_created", "student_id", "created_at"),
        Index("ix_observations_author_created", "author_id", "created_at"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False
    )
    # copied at write time so the note keeps its signature
    author_name: Mapped[str] = mapped_column(String(120), nullable=False)
    author_type: Mapped[ObservationAuthorType] = mapped_column(
        SAEnum(ObservationAuthorType, name="observation_author_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ObservationAuthorType.GENERAL,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)
    form_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    time_stamp: Mapped[str] = mapped_column(String(10), nullable=False)  # DD/MM/YYYY

    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
