# nexus/routes/students.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.core.database import get_db
from nexus.core.dependencies import get_current_professional
from nexus.models.professional import Professional
from nexus.models.student import Student
from nexus.schemas.assignment import AssignmentOut
from nexus.schemas.gad7 import Gad7AssessmentOut, Gad7StatsOut
from nexus.schemas.student import AssignProfessionalIn, StudentCreate, StudentOut
from nexus.controllers.assignment_controller import get_student_assignments
from nexus.controllers.gad7_controller import get_assessment_history, get_student_stats
from nexus.controllers.student_controller import (
    assign_professional_to_student,
    create_student,
    deactivate_student,
    get_assigned_programs,
    get_professional_students,
    get_student_or_404,
    get_student_professionals,
)

router = APIRouter(prefix="/professional/students", tags=["Professional - Students"])


async def _out(db: AsyncSession, student: Student) -> StudentOut:
    out = StudentOut.model_validate(student)
    out.assigned_programs = await get_assigned_programs(db, student.id)
    out.assigned_professionals = await get_student_professionals(db, student.id)
    return out


@router.post("", response_model=StudentOut, status_code=201)
async def create_student_route(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await _out(db, await create_student(db, payload))


@router.get("", response_model=list[StudentOut])
async def list_students_route(
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return [await _out(db, s) for s in await get_professional_students(db, professional)]


@router.get("/{student_id}", response_model=StudentOut)
async def get_student_route(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await _out(db, await get_student_or_404(db, student_id))


@router.get("/{student_id}/assignments", response_model=list[AssignmentOut])
async def list_student_assignments(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await get_student_or_404(db, student_id)
    return await get_student_assignments(db, student_id)


@router.delete("/{student_id}", response_model=StudentOut)
async def deactivate_student_route(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await _out(db, await deactivate_student(db, student_id))


@router.post("/{student_id}/professionals", response_model=StudentOut)
async def assign_professional_route(
    student_id: str,
    payload: AssignProfessionalIn,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await assign_professional_to_student(db, student_id, payload.professional_id or professional.id)
    return await _out(db, await get_student_or_404(db, student_id))


@router.get("/{student_id}/gad7/history", response_model=list[Gad7AssessmentOut])
async def student_gad7_history(
    student_id: str,
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await get_student_or_404(db, student_id)
    return await get_assessment_history(db, student_id, limit)


@router.get("/{student_id}/gad7/stats", response_model=Gad7StatsOut)
async def student_gad7_stats(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await get_student_or_404(db, student_id)
    return await get_student_stats(db, student_id)
