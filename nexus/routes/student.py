# nexus/routes/student.py
#
# Everything a logged-in student does: their assignments, program
# activities and weekly schedules. main.py mounts this under /api.

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.core.database import get_db
from nexus.core.dependencies import get_current_student
from nexus.core.errors import ForbiddenError, NotFoundError
from nexus.models.student import Student

from nexus.schemas.assignment import AssignmentOut
from nexus.schemas.progress import (
    ActivityNotesIn,
    ActivityStateOut,
    ActivityTimeIn,
    CompleteActivityIn,
    CompletionHistoryItem,
    CompletionOut,
    DraftIn,
    OverallProgressOut,
    ScheduleCompleteIn,
    ScheduleProgressOut,
    ScheduleStatsOut,
    StartActivityIn,
    StudentActivityOut,
)
from nexus.schemas.gad7 import Gad7AssessmentOut, Gad7RequirementOut, Gad7StatsOut, Gad7SubmitIn
from nexus.schemas.schedule import ScheduleOut

from nexus.controllers.activity_progress_controller import (
    activity_state,
    complete_activity,
    get_student_activity_progress,
    save_draft,
    start_activity,
)
from nexus.controllers.assignment_controller import get_student_assignments
from nexus.controllers.gad7_controller import (
    check_assessment_required,
    get_assessment_history,
    get_student_stats,
    save_assessment,
)
from nexus.controllers.schedule_controller import (
    get_schedule_or_404,
    get_schedule_students,
    get_student_schedules,
    is_student_assigned,
)
from nexus.controllers.schedule_progress_controller import (
    add_activity_notes,
    complete_schedule_activity,
    get_schedule_progress_stats,
    get_student_completion_history,
    get_student_overall_progress,
    get_student_schedule_progress,
    uncomplete_schedule_activity,
    update_activity_time,
)

router = APIRouter(prefix="/student", tags=["Student"])


async def _require_schedule(db: AsyncSession, schedule_id: str, student: Student):
    schedule = await get_schedule_or_404(db, schedule_id)
    if not await is_student_assigned(db, schedule_id, student.id):
        raise ForbiddenError("Este cronograma não está atribuído a você")
    return schedule


# ─────────────────────────────────────────────────────────────
# Programs / activities
# ─────────────────────────────────────────────────────────────
@router.get("/assignments", response_model=list[AssignmentOut])
async def list_my_assignments(
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await get_student_assignments(db, student.id)


@router.get("/activities/{activity_id}", response_model=ActivityStateOut)
async def get_my_activity(
    activity_id: str,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    record = await get_student_activity_progress(db, student.id, activity_id)
    return ActivityStateOut(
        progress=StudentActivityOut.model_validate(record) if record else None,
        **activity_state(record),
    )


@router.post("/activities/{activity_id}/start", response_model=StudentActivityOut)
async def start_my_activity(
    activity_id: str,
    payload: StartActivityIn,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await start_activity(db, student.id, activity_id, payload.program_id, payload.module_id)


@router.put("/activities/{activity_id}/draft", response_model=StudentActivityOut)
async def save_my_draft(
    activity_id: str,
    payload: DraftIn,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await save_draft(db, student.id, activity_id, payload.answers, payload.time_spent)


@router.post("/activities/{activity_id}/complete", response_model=CompletionOut)
async def complete_my_activity(
    activity_id: str,
    payload: CompleteActivityIn,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await complete_activity(db, student.id, activity_id, payload.answers, payload.notes)


# ─────────────────────────────────────────────────────────────
# Weekly schedules
# ─────────────────────────────────────────────────────────────
@router.get("/schedules", response_model=list[ScheduleOut])
async def list_my_schedules(
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    out = []
    for schedule in await get_student_schedules(db, student.id):
        item = ScheduleOut.model_validate(schedule)
        item.assigned_students = await get_schedule_students(db, schedule.id)
        out.append(item)
    return out


@router.get("/schedules/{schedule_id}/progress", response_model=dict[str, ScheduleProgressOut])
async def get_my_schedule_progress(
    schedule_id: str,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    await _require_schedule(db, schedule_id, student)
    return await get_student_schedule_progress(db, student.id, schedule_id)


@router.get("/schedules/{schedule_id}/stats", response_model=ScheduleStatsOut)
async def get_my_schedule_stats(
    schedule_id: str,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    await _require_schedule(db, schedule_id, student)
    return await get_schedule_progress_stats(db, schedule_id, student.id)


@router.post("/schedules/{schedule_id}/activities/{activity_id}/complete", response_model=ScheduleProgressOut)
async def complete_my_schedule_activity(
    schedule_id: str,
    activity_id: str,
    payload: ScheduleCompleteIn,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    await _require_schedule(db, schedule_id, student)
    return await complete_schedule_activity(
        db,
        student.id,
        schedule_id,
        activity_id,
        payload.day,
        time_spent=payload.time_spent,
        answers=payload.answers,
        notes=payload.notes,
    )


@router.post("/schedules/{schedule_id}/activities/{activity_id}/uncomplete", response_model=ScheduleProgressOut)
async def uncomplete_my_schedule_activity(
    schedule_id: str,
    activity_id: str,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    await _require_schedule(db, schedule_id, student)
    record = await uncomplete_schedule_activity(db, student.id, schedule_id, activity_id)
    if record is None:
        raise NotFoundError("Nenhum progresso registrado para esta atividade")
    return record


@router.put("/schedules/{schedule_id}/activities/{activity_id}/time", response_model=ScheduleProgressOut)
async def update_my_activity_time(
    schedule_id: str,
    activity_id: str,
    payload: ActivityTimeIn,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    await _require_schedule(db, schedule_id, student)
    return await update_activity_time(db, student.id, schedule_id, activity_id, payload.time_spent)


@router.put("/schedules/{schedule_id}/activities/{activity_id}/notes", response_model=ScheduleProgressOut)
async def update_my_activity_notes(
    schedule_id: str,
    activity_id: str,
    payload: ActivityNotesIn,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    await _require_schedule(db, schedule_id, student)
    return await add_activity_notes(db, student.id, schedule_id, activity_id, payload.notes)


# ─────────────────────────────────────────────────────────────
# Overall progress
# ─────────────────────────────────────────────────────────────
@router.get("/progress", response_model=OverallProgressOut)
async def get_my_progress(
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    records = await get_student_overall_progress(db, student.id)
    return OverallProgressOut(items=[ScheduleProgressOut.model_validate(r) for r in records])


@router.get("/progress/history", response_model=list[CompletionHistoryItem])
async def get_my_history(
    days: int = Query(7, ge=1, le=90, description="How many dates to return"),
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await get_student_completion_history(db, student.id, days)


# ─────────────────────────────────────────────────────────────
# GAD-7
# ─────────────────────────────────────────────────────────────
@router.get("/gad7/status", response_model=Gad7RequirementOut)
async def get_my_gad7_status(
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await check_assessment_required(db, student.id)


@router.post("/gad7", response_model=Gad7AssessmentOut, status_code=201)
async def submit_my_gad7(
    payload: Gad7SubmitIn,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await save_assessment(db, student.id, payload.answers, payload.notes)


@router.get("/gad7/history", response_model=list[Gad7AssessmentOut])
async def get_my_gad7_history(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await get_assessment_history(db, student.id, limit)


@router.get("/gad7/stats", response_model=Gad7StatsOut)
async def get_my_gad7_stats(
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    return await get_student_stats(db, student.id)
