"""
Progress on weekly-schedule activities, keyed by (student, schedule, activity).

Unlike program activities these are reversible: a completed record can be
uncompleted. Every mutating call upserts, so time and notes can be
recorded before the activity is ever completed.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.controllers._store import store_guard
from nexus.controllers.activity_progress_controller import validate_answers
from nexus.controllers.schedule_controller import (
    find_schedule_activity,
    get_schedule_by_id,
    get_schedule_or_404,
    iter_schedule_activities,
)
from nexus.core.errors import NotFoundError, ValidationFailedError, require_user
from nexus.core.progress import completion_percentage
from nexus.models.schedule import DayOfWeek, WEEK_DAYS
from nexus.models.schedule_progress import ScheduleActivityProgress

log = logging.getLogger(__name__)


async def _find_record(
    db: AsyncSession, student_id: str, schedule_id: str, activity_id: str, *, for_update: bool = False
) -> ScheduleActivityProgress | None:
    q = select(ScheduleActivityProgress).where(
        ScheduleActivityProgress.student_id == student_id,
        ScheduleActivityProgress.schedule_id == schedule_id,
        ScheduleActivityProgress.activity_id == activity_id,
    )
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


async def _resolve_activity(db: AsyncSession, schedule_id: str, activity_id: str) -> tuple[str, dict]:
    schedule = await get_schedule_or_404(db, schedule_id)
    day, activity = find_schedule_activity(schedule, activity_id)
    if activity is None:
        raise NotFoundError("Atividade não encontrada no cronograma", activity_id=activity_id)
    return day, activity


def _new_record(student_id: str, schedule_id: str, activity_id: str, day: str) -> ScheduleActivityProgress:
    return ScheduleActivityProgress(
        student_id=student_id,
        schedule_id=schedule_id,
        activity_id=activity_id,
        day=day,
        completed=False,
        completed_at=None,
        time_spent=0,
    )


async def complete_schedule_activity(
    db: AsyncSession,
    student_id: str | None,
    schedule_id: str,
    activity_id: str,
    day: DayOfWeek | str,
    *,
    time_spent: int | None = None,
    answers: Any = None,
    notes: str | None = None,
) -> ScheduleActivityProgress:
    """
    Upserts the record as completed. Only the supplied fields overwrite;
    `day` is kept from the first write.
    """
    student_id = require_user(student_id)
    day = DayOfWeek(day).value
    if time_spent is not None and time_spent < 0:
        raise ValidationFailedError("Tempo gasto não pode ser negativo")

    async with store_guard(
        db, "Não foi possível registrar a conclusão",
        student_id=student_id, schedule_id=schedule_id, activity_id=activity_id, day=day,
    ):
        _, activity = await _resolve_activity(db, schedule_id, activity_id)
        payload = validate_answers(activity["type"], answers)

        record = await _find_record(db, student_id, schedule_id, activity_id, for_update=True)
        if record is None:
            record = _new_record(student_id, schedule_id, activity_id, day)
            db.add(record)

        record.completed = True
        record.completed_at = datetime.now(timezone.utc)
        if time_spent is not None:
            record.time_spent = time_spent
        if payload is not None:
            record.answers = payload
        if notes is not None:
            record.notes = notes

        await db.commit()
        await db.refresh(record)

    log.info("[schedule] %s completed %s/%s (%s)", student_id, schedule_id, activity_id, day)
    return record


async def uncomplete_schedule_activity(
    db: AsyncSession, student_id: str | None, schedule_id: str, activity_id: str
) -> ScheduleActivityProgress | None:
    """Clears completion, keeps day/time/notes. No-op when there is no record."""
    student_id = require_user(student_id)

    async with store_guard(db, "Não foi possível desmarcar a conclusão", student_id=student_id, activity_id=activity_id):
        record = await _find_record(db, student_id, schedule_id, activity_id, for_update=True)
        if record is None:
            return None

        record.completed = False
        record.completed_at = None
        await db.commit()
        await db.refresh(record)
    return record


async def update_activity_time(
    db: AsyncSession, student_id: str | None, schedule_id: str, activity_id: str, time_spent: int
) -> ScheduleActivityProgress:
    student_id = require_user(student_id)
    if time_spent < 0:
        raise ValidationFailedError("Tempo gasto não pode ser negativo")

    async with store_guard(db, "Não foi possível atualizar o tempo", student_id=student_id, activity_id=activity_id):
        record = await _find_record(db, student_id, schedule_id, activity_id, for_update=True)
        if record is None:
            day, _ = await _resolve_activity(db, schedule_id, activity_id)
            record = _new_record(student_id, schedule_id, activity_id, day)
            db.add(record)

        record.time_spent = time_spent
        await db.commit()
        await db.refresh(record)
    return record


async def add_activity_notes(
    db: AsyncSession, student_id: str | None, schedule_id: str, activity_id: str, notes: str
) -> ScheduleActivityProgress:
    student_id = require_user(student_id)

    async with store_guard(db, "Não foi possível adicionar as notas", student_id=student_id, activity_id=activity_id):
        record = await _find_record(db, student_id, schedule_id, activity_id, for_update=True)
        if record is None:
            day, _ = await _resolve_activity(db, schedule_id, activity_id)
            record = _new_record(student_id, schedule_id, activity_id, day)
            db.add(record)

        record.notes = notes
        await db.commit()
        await db.refresh(record)
    return record


async def get_student_schedule_progress(
    db: AsyncSession, student_id: str, schedule_id: str
) -> dict[str, ScheduleActivityProgress]:
    """activity_id -> record, for one schedule."""
    async with store_guard(db, "Não foi possível carregar o progresso", student_id=student_id, schedule_id=schedule_id):
        res = await db.execute(
            select(ScheduleActivityProgress).where(
                ScheduleActivityProgress.student_id == student_id,
                ScheduleActivityProgress.schedule_id == schedule_id,
            )
        )
        return {r.activity_id: r for r in res.scalars().all()}


async def get_student_overall_progress(db: AsyncSession, student_id: str) -> list[ScheduleActivityProgress]:
    """Every record across schedules, latest completion first, open records last."""
    async with store_guard(db, "Não foi possível carregar o progresso", student_id=student_id):
        res = await db.execute(
            select(ScheduleActivityProgress)
            .where(ScheduleActivityProgress.student_id == student_id)
            .order_by(
                ScheduleActivityProgress.completed_at.desc().nulls_last(),
                ScheduleActivityProgress.updated_at.desc(),
            )
        )
        return list(res.scalars().all())


def progress_stats(records: Iterable[ScheduleActivityProgress], total_activities: int) -> dict:
    """
    Completion summary. The caller supplies the denominator; a schedule
    with no activities is 0%.
    """
    records = list(records)
    completed = sum(1 for r in records if r.completed)
    return {
        "completed": completed,
        "total": total_activities,
        "percentage": completion_percentage(completed, total_activities),
        "time_spent": sum(r.time_spent or 0 for r in records),
    }


async def get_schedule_progress_stats(db: AsyncSession, schedule_id: str, student_id: str) -> dict:
    """Totals taken from the schedule's own activities, with a per-day breakdown."""
    schedule = await get_schedule_or_404(db, schedule_id)
    progress = await get_student_schedule_progress(db, student_id, schedule_id)

    total = completed = total_points = earned_points = time_spent = 0
    by_day = {d: {"completed": 0, "total": 0, "percentage": 0} for d in WEEK_DAYS}

    for day, activity in iter_schedule_activities(schedule):
        record = progress.get(activity.get("id"))
        points = int(activity.get("points") or 0)

        total += 1
        total_points += points
        by_day[day]["total"] += 1

        if record is not None and record.completed:
            completed += 1
            earned_points += points
            by_day[day]["completed"] += 1
        if record is not None:
            time_spent += record.time_spent or 0

    for stats in by_day.values():
        stats["percentage"] = completion_percentage(stats["completed"], stats["total"])

    return {
        "total_activities": total,
        "completed_activities": completed,
        "completion_percentage": completion_percentage(completed, total),
        "total_points": total_points,
        "earned_points": earned_points,
        "time_spent": time_spent,
        "by_day": by_day,
    }


async def get_student_completion_history(db: AsyncSession, student_id: str, days: int = 7) -> list[dict]:
    """
    Completions grouped by calendar date (UTC), newest first, at most
    `days` entries. Each date is labelled with the first schedule seen.
    """
    records = await get_student_overall_progress(db, student_id)

    titles: dict[str, str] = {}
    history: dict[str, dict] = {}

    for r in records:
        if not r.completed or r.completed_at is None:
            continue

        if r.schedule_id not in titles:
            schedule = await get_schedule_by_id(db, r.schedule_id)
            titles[r.schedule_id] = schedule.title if schedule else "Cronograma Desconhecido"

        key = r.completed_at.date().isoformat()
        if key not in history:
            history[key] = {
                "date": key,
                "completed": 0,
                "schedule_id": r.schedule_id,
                "schedule_title": titles[r.schedule_id],
            }
        history[key]["completed"] += 1

    return sorted(history.values(), key=lambda h: h["date"], reverse=True)[:days]
