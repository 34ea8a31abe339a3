import copy
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.controllers._store import apply_changes, insert_unique, store_guard
from nexus.core.errors import NotFoundError, ValidationFailedError
from nexus.models.schedule import DayOfWeek, ScheduleStudent, WeeklySchedule, empty_week
from nexus.models.student import Student
from nexus.schemas.schedule import ScheduleActivity, ScheduleActivityUpdate, ScheduleCreate, ScheduleUpdate

log = logging.getLogger(__name__)


def iter_schedule_activities(schedule: WeeklySchedule):
    """Yields (day, activity dict) for every embedded activity, monday first."""
    for entry in schedule.week_days or []:
        for activity in entry.get("activities") or []:
            yield entry["day"], activity


def find_schedule_activity(schedule: WeeklySchedule, activity_id: str) -> tuple[str | None, dict | None]:
    for day, activity in iter_schedule_activities(schedule):
        if activity.get("id") == activity_id:
            return day, activity
    return None, None


async def get_schedule_by_id(db: AsyncSession, schedule_id: str) -> WeeklySchedule | None:
    return await db.get(WeeklySchedule, schedule_id)


async def get_schedule_or_404(db: AsyncSession, schedule_id: str) -> WeeklySchedule:
    schedule = await db.get(WeeklySchedule, schedule_id)
    if schedule is None:
        raise NotFoundError("Cronograma não encontrado", schedule_id=schedule_id)
    return schedule


async def create_schedule(db: AsyncSession, professional_id: str, payload: ScheduleCreate) -> WeeklySchedule:
    week_days = [d.model_dump(mode="json") for d in payload.week_days] or empty_week()

    async with store_guard(db, "Não foi possível criar o cronograma"):
        schedule = WeeklySchedule(
            title=payload.title.strip(),
            description=payload.description,
            created_by=professional_id,
            is_active=payload.is_active,
            color=payload.color,
            icon=payload.icon,
            week_days=week_days,
        )
        db.add(schedule)
        await db.commit()
        await db.refresh(schedule)
    return schedule


async def get_professional_schedules(db: AsyncSession, professional_id: str) -> list[WeeklySchedule]:
    res = await db.execute(
        select(WeeklySchedule)
        .where(WeeklySchedule.created_by == professional_id)
        .order_by(WeeklySchedule.created_at.desc())
    )
    return list(res.scalars().all())


async def deactivate_schedule(db: AsyncSession, schedule_id: str) -> WeeklySchedule:
    async with store_guard(db, "Não foi possível desativar o cronograma", schedule_id=schedule_id):
        schedule = await get_schedule_or_404(db, schedule_id)
        schedule.is_active = False
        await db.commit()
        await db.refresh(schedule)
    return schedule


async def update_schedule(db: AsyncSession, schedule_id: str, payload: ScheduleUpdate) -> WeeklySchedule:
    async with store_guard(db, "Não foi possível atualizar o cronograma", schedule_id=schedule_id):
        schedule = await get_schedule_or_404(db, schedule_id)
        changes = payload.model_dump(mode="json", exclude_unset=True)
        if changes.get("title"):
            changes["title"] = changes["title"].strip()
        apply_changes(schedule, changes, required=("title", "is_active", "week_days"))
        await db.commit()
        await db.refresh(schedule)
    return schedule


# ───────────────── ACTIVITIES PER DAY ─────────────────

async def add_activity_to_day(
    db: AsyncSession, schedule_id: str, day: DayOfWeek, activity: ScheduleActivity
) -> WeeklySchedule:
    async with store_guard(db, "Não foi possível adicionar a atividade", schedule_id=schedule_id):
        schedule = await get_schedule_or_404(db, schedule_id)

        existing_day, _ = find_schedule_activity(schedule, activity.id)
        if existing_day is not None:
            raise ValidationFailedError(f"Atividade já existe no cronograma ({existing_day})")

        week_days = copy.deepcopy(schedule.week_days) or empty_week()
        for entry in week_days:
            if entry["day"] == DayOfWeek(day).value:
                entry.setdefault("activities", []).append(activity.model_dump(mode="json"))
                entry["activities"].sort(key=lambda a: a.get("order", 0))
                break

        # JSON columns only notice reassignment
        schedule.week_days = week_days
        await db.commit()
        await db.refresh(schedule)
    return schedule


async def remove_activity_from_day(
    db: AsyncSession, schedule_id: str, day: DayOfWeek, activity_id: str
) -> WeeklySchedule:
    async with store_guard(db, "Não foi possível remover a atividade", schedule_id=schedule_id):
        schedule = await get_schedule_or_404(db, schedule_id)

        week_days = copy.deepcopy(schedule.week_days) or empty_week()
        removed = False
        for entry in week_days:
            if entry["day"] != DayOfWeek(day).value:
                continue
            before = len(entry.get("activities") or [])
            entry["activities"] = [a for a in entry.get("activities") or [] if a.get("id") != activity_id]
            removed = len(entry["activities"]) < before

        if not removed:
            raise NotFoundError("Atividade não encontrada no cronograma", activity_id=activity_id)

        schedule.week_days = week_days
        await db.commit()
        await db.refresh(schedule)
    return schedule


async def update_activity_in_day(
    db: AsyncSession, schedule_id: str, day: DayOfWeek, activity_id: str, payload: ScheduleActivityUpdate
) -> WeeklySchedule:
    """Merges the supplied fields into one embedded activity of `day`."""
    async with store_guard(db, "Não foi possível atualizar a atividade", schedule_id=schedule_id):
        schedule = await get_schedule_or_404(db, schedule_id)
        # only the free-text fields can be cleared
        changes = {
            k: v for k, v in payload.model_dump(mode="json", exclude_unset=True).items()
            if v is not None or k in ("description", "instructions")
        }

        week_days = copy.deepcopy(schedule.week_days) or empty_week()
        target = None
        for entry in week_days:
            if entry["day"] != DayOfWeek(day).value:
                continue
            target = next((a for a in entry.get("activities") or [] if a.get("id") == activity_id), None)
            if target is not None:
                if changes.get("content") and changes["content"]["type"] != target.get("type"):
                    raise ValidationFailedError("Conteúdo não corresponde ao tipo da atividade", activity_id=activity_id)
                target.update(changes)
                entry["activities"].sort(key=lambda a: a.get("order", 0))

        if target is None:
            raise NotFoundError("Atividade não encontrada no cronograma", activity_id=activity_id)

        schedule.week_days = week_days
        await db.commit()
        await db.refresh(schedule)
    return schedule


# ───────────────── STUDENTS ─────────────────

async def get_schedule_students(db: AsyncSession, schedule_id: str) -> list[str]:
    res = await db.execute(
        select(ScheduleStudent.student_id)
        .where(ScheduleStudent.schedule_id == schedule_id)
        .order_by(ScheduleStudent.added_at)
    )
    return list(res.scalars().all())


async def is_student_assigned(db: AsyncSession, schedule_id: str, student_id: str) -> bool:
    res = await db.execute(
        select(ScheduleStudent.student_id).where(
            ScheduleStudent.schedule_id == schedule_id,
            ScheduleStudent.student_id == student_id,
        )
    )
    return res.first() is not None


async def assign_schedule_to_students(db: AsyncSession, schedule_id: str, student_ids: list[str]) -> list[str]:
    """Set-union of the schedule's students. Returns the resulting set."""
    async with store_guard(db, "Não foi possível atribuir o cronograma", schedule_id=schedule_id):
        await get_schedule_or_404(db, schedule_id)

        for student_id in dict.fromkeys(student_ids):
            if await db.get(Student, student_id) is None:
                raise NotFoundError(f"Aluno com ID {student_id} não encontrado", student_id=student_id)
            await insert_unique(
                db,
                ScheduleStudent,
                {"schedule_id": schedule_id, "student_id": student_id},
                keys=["schedule_id", "student_id"],
            )

        await db.commit()
        assigned = await get_schedule_students(db, schedule_id)

    log.info("[schedules] %s now has %d students", schedule_id, len(assigned))
    return assigned


async def remove_schedule_assignment(db: AsyncSession, schedule_id: str, student_id: str) -> list[str]:
    async with store_guard(db, "Não foi possível remover o aluno do cronograma", schedule_id=schedule_id):
        await get_schedule_or_404(db, schedule_id)
        await db.execute(
            delete(ScheduleStudent).where(
                ScheduleStudent.schedule_id == schedule_id,
                ScheduleStudent.student_id == student_id,
            )
        )
        await db.commit()
        return await get_schedule_students(db, schedule_id)


async def get_student_schedules(db: AsyncSession, student_id: str) -> list[WeeklySchedule]:
    res = await db.execute(
        select(WeeklySchedule)
        .join(ScheduleStudent, ScheduleStudent.schedule_id == WeeklySchedule.id)
        .where(
            ScheduleStudent.student_id == student_id,
            WeeklySchedule.is_active.is_(True),
        )
        .order_by(WeeklySchedule.created_at.desc())
    )
    return list(res.scalars().all())
