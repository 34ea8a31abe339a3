from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, utcnow


class PointAward(IdMixin, Base):
    """Append-only history behind Student.total_points."""

    __tablename__ = "point_awards"

    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_point_awards_points"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    activity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    assignment_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    awarded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
