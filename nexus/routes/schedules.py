# nexus/routes/schedules.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.core.database import get_db
from nexus.core.dependencies import get_current_professional
from nexus.models.professional import Professional
from nexus.models.schedule import DayOfWeek, WeeklySchedule
from nexus.schemas.schedule import (
    AssignScheduleIn,
    ScheduleActivity,
    ScheduleActivityUpdate,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
)
from nexus.controllers.program_controller import ensure_owner
from nexus.controllers.schedule_controller import (
    add_activity_to_day,
    assign_schedule_to_students,
    create_schedule,
    deactivate_schedule,
    get_professional_schedules,
    get_schedule_or_404,
    get_schedule_students,
    remove_activity_from_day,
    remove_schedule_assignment,
    update_activity_in_day,
    update_schedule,
)

router = APIRouter(prefix="/professional/schedules", tags=["Professional - Schedules"])


async def _out(db: AsyncSession, schedule: WeeklySchedule, students: list[str] | None = None) -> ScheduleOut:
    out = ScheduleOut.model_validate(schedule)
    out.assigned_students = students if students is not None else await get_schedule_students(db, schedule.id)
    return out


async def _owned(db: AsyncSession, schedule_id: str, professional: Professional) -> WeeklySchedule:
    schedule = await get_schedule_or_404(db, schedule_id)
    ensure_owner(schedule, professional.id)
    return schedule


@router.post("", response_model=ScheduleOut, status_code=201)
async def create_schedule_route(
    payload: ScheduleCreate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    schedule = await create_schedule(db, professional.id, payload)
    return await _out(db, schedule, [])


@router.get("", response_model=list[ScheduleOut])
async def list_my_schedules(
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return [await _out(db, s) for s in await get_professional_schedules(db, professional.id)]


@router.get("/{schedule_id}", response_model=ScheduleOut)
async def get_schedule_route(
    schedule_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await _out(db, await _owned(db, schedule_id, professional))


@router.put("/{schedule_id}", response_model=ScheduleOut)
async def update_schedule_route(
    schedule_id: str,
    payload: ScheduleUpdate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned(db, schedule_id, professional)
    return await _out(db, await update_schedule(db, schedule_id, payload))


@router.delete("/{schedule_id}", response_model=ScheduleOut)
async def deactivate_schedule_route(
    schedule_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned(db, schedule_id, professional)
    return await _out(db, await deactivate_schedule(db, schedule_id))


# ───────────────── days ─────────────────

@router.post("/{schedule_id}/days/{day}/activities", response_model=ScheduleOut)
async def add_day_activity(
    schedule_id: str,
    day: DayOfWeek,
    payload: ScheduleActivity,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned(db, schedule_id, professional)
    return await _out(db, await add_activity_to_day(db, schedule_id, day, payload))


@router.put("/{schedule_id}/days/{day}/activities/{activity_id}", response_model=ScheduleOut)
async def update_day_activity(
    schedule_id: str,
    day: DayOfWeek,
    activity_id: str,
    payload: ScheduleActivityUpdate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned(db, schedule_id, professional)
    return await _out(db, await update_activity_in_day(db, schedule_id, day, activity_id, payload))


@router.delete("/{schedule_id}/days/{day}/activities/{activity_id}", response_model=ScheduleOut)
async def remove_day_activity(
    schedule_id: str,
    day: DayOfWeek,
    activity_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned(db, schedule_id, professional)
    return await _out(db, await remove_activity_from_day(db, schedule_id, day, activity_id))


# ───────────────── students ─────────────────

@router.post("/{schedule_id}/students", response_model=ScheduleOut)
async def assign_students(
    schedule_id: str,
    payload: AssignScheduleIn,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    schedule = await _owned(db, schedule_id, professional)
    students = await assign_schedule_to_students(db, schedule_id, payload.student_ids)
    return await _out(db, schedule, students)


@router.delete("/{schedule_id}/students/{student_id}", response_model=ScheduleOut)
async def unassign_student(
    schedule_id: str,
    student_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    schedule = await _owned(db, schedule_id, professional)
    students = await remove_schedule_assignment(db, schedule_id, student_id)
    return await _out(db, schedule, students)
