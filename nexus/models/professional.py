from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, String, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.database import Base
from nexus.models._mixins import IdMixin, TimestampMixin


class ProfessionalRole(str, Enum):
    PSYCHOLOGIST = "psychologist"
    PSYCHIATRIST = "psychiatrist"
    MONITOR = "monitor"
    COORDINATOR = "coordinator"


class Professional(IdMixin, TimestampMixin, Base):
    __tablename__ = "professionals"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    role: Mapped[ProfessionalRole] = mapped_column(
        SAEnum(ProfessionalRole, name="professional_role_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProfessionalRole.PSYCHOLOGIST,
    )
    specialization: Mapped[str | None] = mapped_column(String(120), nullable=True)

    can_create_programs: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_manage_students: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
