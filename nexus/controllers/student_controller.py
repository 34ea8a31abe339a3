import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.controllers._store import insert_unique, store_guard
from nexus.core.errors import NotFoundError, ValidationFailedError
from nexus.models.professional import Professional, ProfessionalRole
from nexus.models.student import Student, StudentProfessional, StudentProgram
from nexus.schemas.student import StudentCreate

log = logging.getLogger(__name__)


async def create_student(db: AsyncSession, payload: StudentCreate) -> Student:
    email = str(payload.email).strip().lower() if payload.email else None

    async with store_guard(db, "Não foi possível cadastrar o aluno"):
        if email:
            dup = await db.execute(select(Student).where(Student.email == email))
            if dup.scalar_one_or_none():
                raise ValidationFailedError(f"E-mail já cadastrado: {email}")

        s = Student(
            name=payload.name.strip(),
            email=email,
            school=payload.school,
            grade=payload.grade,
        )
        db.add(s)
        await db.commit()
        await db.refresh(s)

    log.info("[students] created %s", s.id)
    return s


async def get_student_by_id(db: AsyncSession, student_id: str) -> Student | None:
    return await db.get(Student, student_id)


async def get_student_or_404(db: AsyncSession, student_id: str) -> Student:
    student = await db.get(Student, student_id)
    if student is None:
        raise NotFoundError("Aluno não encontrado", student_id=student_id)
    return student


async def get_assigned_programs(db: AsyncSession, student_id: str) -> list[str]:
    res = await db.execute(
        select(StudentProgram.program_id)
        .where(StudentProgram.student_id == student_id)
        .order_by(StudentProgram.added_at)
    )
    return list(res.scalars().all())


async def deactivate_student(db: AsyncSession, student_id: str) -> Student:
    async with store_guard(db, "Não foi possível desativar o aluno", student_id=student_id):
        student = await get_student_or_404(db, student_id)
        student.is_active = False
        await db.commit()
        await db.refresh(student)
    return student


async def get_student_professionals(db: AsyncSession, student_id: str) -> list[str]:
    res = await db.execute(
        select(StudentProfessional.professional_id)
        .where(StudentProfessional.student_id == student_id)
        .order_by(StudentProfessional.added_at)
    )
    return list(res.scalars().all())


async def assign_professional_to_student(db: AsyncSession, student_id: str, professional_id: str) -> list[str]:
    """Idempotent. Returns the student's professionals afterwards."""
    async with store_guard(
        db, "Não foi possível atribuir o profissional ao aluno",
        student_id=student_id, professional_id=professional_id,
    ):
        await get_student_or_404(db, student_id)
        if await db.get(Professional, professional_id) is None:
            raise NotFoundError("Profissional não encontrado", professional_id=professional_id)

        await insert_unique(
            db,
            StudentProfessional,
            {"student_id": student_id, "professional_id": professional_id},
            keys=["student_id", "professional_id"],
        )
        await db.commit()
        professionals = await get_student_professionals(db, student_id)

    log.info("[students] %s followed by %d professionals", student_id, len(professionals))
    return professionals


async def get_professional_students(db: AsyncSession, professional: Professional) -> list[Student]:
    """
    Professionals allowed to manage students see everyone; the rest only
    the students they follow. Newest first.
    """
    q = select(Student).order_by(Student.created_at.desc())
    if not professional.can_manage_students:
        q = q.join(StudentProfessional, StudentProfessional.student_id == Student.id).where(
            StudentProfessional.professional_id == professional.id
        )
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_professional(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    role: ProfessionalRole = ProfessionalRole.PSYCHOLOGIST,
) -> Professional:
    async with store_guard(db, "Não foi possível cadastrar o profissional"):
        p = Professional(name=name.strip(), email=email.strip().lower(), role=role)
        db.add(p)
        await db.commit()
        await db.refresh(p)
    return p
