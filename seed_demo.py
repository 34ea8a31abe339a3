"""
seed_demo.py
────────────
Creates a demo professional, a demo student and a small program assigned
to that student, then prints bearer tokens for both. Safe to run twice:
existing rows (matched by e-mail / program title) are reused.

    python seed_demo.py

Reads DATABASE_URL / SECRET_KEY from .env like the API does.
"""
import asyncio
import os
from dotenv import load_dotenv

load_dotenv()

# ── Change these in .env or edit here ────────────────────────────────
PROFESSIONAL_NAME  = os.getenv("SEED_PROFESSIONAL_NAME",  "Dra. Ana Souza")
PROFESSIONAL_EMAIL = os.getenv("SEED_PROFESSIONAL_EMAIL", "ana.souza@nexusapp.com.br")
STUDENT_NAME       = os.getenv("SEED_STUDENT_NAME",       "Lucas Pereira")
STUDENT_EMAIL      = os.getenv("SEED_STUDENT_EMAIL",      "lucas.pereira@nexusapp.com.br")
PROGRAM_TITLE      = os.getenv("SEED_PROGRAM_TITLE",      "Ansiedade na Escola")
# ─────────────────────────────────────────────────────────────────────


async def seed():
    from sqlalchemy import select

    from nexus.controllers.assignment_controller import assign_program_to_student, assign_program_to_students
    from nexus.controllers.program_controller import create_activity, create_module, create_program
    from nexus.controllers.student_controller import create_professional, create_student
    from nexus.core.config import get_settings
    from nexus.core.database import build_engine, build_sessionmaker, create_all
    from nexus.core.security import create_access_token
    from nexus.models.professional import Professional
    from nexus.models.program import Program, ProgramStatus
    from nexus.models.student import Student
    from nexus.schemas.activity import ActivityCreate
    from nexus.schemas.program import ModuleCreate, ProgramCreate
    from nexus.schemas.student import StudentCreate

    settings = get_settings()
    engine = build_engine(settings)
    if settings.db_is_sqlite:
        await create_all(engine)
    Session = build_sessionmaker(engine)

    async with Session() as db:
        professional = (await db.execute(
            select(Professional).where(Professional.email == PROFESSIONAL_EMAIL)
        )).scalar_one_or_none()
        if professional is None:
            professional = await create_professional(db, name=PROFESSIONAL_NAME, email=PROFESSIONAL_EMAIL)

        student = (await db.execute(
            select(Student).where(Student.email == STUDENT_EMAIL)
        )).scalar_one_or_none()
        if student is None:
            student = await create_student(db, StudentCreate(name=STUDENT_NAME, email=STUDENT_EMAIL))

        program = (await db.execute(
            select(Program).where(Program.title == PROGRAM_TITLE, Program.created_by == professional.id)
        )).scalar_one_or_none()

        if program is None:
            program = await create_program(db, professional.id, ProgramCreate(
                title=PROGRAM_TITLE,
                description="Programa introdutório de regulação emocional",
                status=ProgramStatus.ACTIVE,
                estimated_duration=4,
            ))
            module = await create_module(db, program.id, ModuleCreate(title="Semana 1", order=1))
            await create_activity(db, module.id, ActivityCreate.model_validate({
                "title": "O que é ansiedade?",
                "order": 1,
                "content": {"type": "text", "content": "Leia o texto e escreva o que sentiu."},
            }))
            await create_activity(db, module.id, ActivityCreate.model_validate({
                "title": "Respiração 4-7-8",
                "order": 2,
                "points": 15,
                "content": {"type": "habit", "frequency": "daily"},
            }))
            await create_activity(db, module.id, ActivityCreate.model_validate({
                "title": "Quiz rápido",
                "order": 3,
                "content": {
                    "type": "quiz",
                    "passing_score": 50,
                    "questions": [{
                        "id": "q1",
                        "question": "Respirar devagar ajuda a acalmar?",
                        "type": "true_false",
                        "options": ["true", "false"],
                        "correct_answer": "true",
                    }],
                },
            }))

        result = await assign_program_to_students(db, program.id, [student.id], assigned_by=professional.id)
        await assign_program_to_student(db, student.id, program.id)

    await engine.dispose()

    print("\n✅  Demo data ready")
    print(f"    Professional : {professional.id}  ({professional.email})")
    print(f"    Student      : {student.id}  ({student.email})")
    print(f"    Program      : {program.id}  ({program.title})")
    print(f"    Assigned     : {result['success'] or 'already assigned'}")
    print()
    print("🔑  Bearer tokens")
    print(f"    professional : {create_access_token(professional.id, 'professional')}")
    print(f"    student      : {create_access_token(student.id, 'student')}")
    print()


if __name__ == "__main__":
    asyncio.run(seed())
