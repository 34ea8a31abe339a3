"""
Per (student, activity) progress for program activities.

    locked ──start──▶ in_progress ──complete──▶ completed
                        │   ▲
                        └───┘ save_draft

There is no way back from completed. Completion, the owning assignment's
progress and the student's points are written in one transaction.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.controllers._store import store_guard
from nexus.controllers.assignment_controller import get_active_assignment, recompute_progress
from nexus.core.config import get_settings
from nexus.core.errors import InvalidAnswerError, NotFoundError, ValidationFailedError, require_user
from nexus.core.progress import merge_completed, round_half_up
from nexus.models.point_award import PointAward
from nexus.models.program import Activity, ActivityType
from nexus.models.student import Student
from nexus.models.student_activity import StudentActivity, StudentActivityStatus
from nexus.schemas.activity import QuizAnswer, QuizContent, QuizScore, answers_adapter

log = logging.getLogger(__name__)

DONE_STATES = (StudentActivityStatus.COMPLETED, StudentActivityStatus.REVIEWED)


def validate_answers(activity_type: ActivityType | str, answers: Any) -> dict | None:
    """
    Returns the JSON form of `answers` after checking that its variant
    matches the activity type. None passes through.
    """
    if answers is None:
        return None

    if not isinstance(answers, BaseModel):
        try:
            answers = answers_adapter.validate_python(answers)
        except ValidationError as exc:
            raise InvalidAnswerError(errors=[e["msg"] for e in exc.errors()]) from exc

    expected = ActivityType(activity_type).value
    if answers.type != expected:
        raise InvalidAnswerError(
            f"Respostas do tipo '{answers.type}' não servem para uma atividade '{expected}'"
        )
    return answers.model_dump(mode="json")


def _matches(question_type: str, expected, given) -> bool:
    if question_type == "short_answer":
        return str(given).lower().strip() == str(expected).lower().strip()
    if isinstance(expected, list):
        given_list = given if isinstance(given, list) else [given]
        return sorted(map(str, given_list)) == sorted(map(str, expected))
    return given == expected


def score_quiz(content: dict, answers: dict | None) -> QuizScore:
    quiz = QuizContent.model_validate(content)
    responses = QuizAnswer.model_validate(answers).responses if answers else {}

    total = len(quiz.questions)
    correct = 0
    for q in quiz.questions:
        given = responses.get(q.id)
        if given not in (None, "", []) and _matches(q.type, q.correct_answer, given):
            correct += 1

    score = round_half_up(100 * correct / total) if total else 0
    return QuizScore(score=score, correct=correct, total=total, passed=score >= quiz.passing_score)


def activity_state(record: StudentActivity | None) -> dict:
    """Flags the UI needs; an activity never started counts as locked."""
    status = record.status if record is not None else StudentActivityStatus.LOCKED
    return {
        "is_locked": status == StudentActivityStatus.LOCKED,
        "is_in_progress": status == StudentActivityStatus.IN_PROGRESS,
        "is_completed": status in DONE_STATES,
    }


async def get_activity_by_id(db: AsyncSession, activity_id: str) -> Activity | None:
    return await db.get(Activity, activity_id)


async def get_activity_or_404(db: AsyncSession, activity_id: str) -> Activity:
    activity = await db.get(Activity, activity_id)
    if activity is None:
        raise NotFoundError("Atividade não encontrada", activity_id=activity_id)
    return activity


async def get_activity_program(db: AsyncSession, activity_id: str) -> tuple[str, str] | None:
    """(program_id, module_id) the activity belongs to."""
    activity = await db.get(Activity, activity_id)
    if activity is None:
        return None
    return activity.program_id, activity.module_id


async def _find_record(
    db: AsyncSession, student_id: str, activity_id: str, *, for_update: bool = False
) -> StudentActivity | None:
    q = select(StudentActivity).where(
        StudentActivity.student_id == student_id,
        StudentActivity.activity_id == activity_id,
    )
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


async def get_student_activity_progress(
    db: AsyncSession, student_id: str, activity_id: str
) -> StudentActivity | None:
    async with store_guard(db, "Não foi possível carregar o progresso", student_id=student_id, activity_id=activity_id):
        activity = await db.get(Activity, activity_id)
        if activity is None:
            return None
        return await _find_record(db, student_id, activity_id)


async def start_activity(
    db: AsyncSession,
    student_id: str | None,
    activity_id: str,
    program_id: str,
    module_id: str,
) -> StudentActivity:
    """locked -> in_progress. Records already started are returned untouched."""
    student_id = require_user(student_id)

    async with store_guard(db, "Não foi possível iniciar a atividade", student_id=student_id, activity_id=activity_id):
        activity = await get_activity_or_404(db, activity_id)
        if activity.program_id != program_id or activity.module_id != module_id:
            raise ValidationFailedError("A atividade não pertence ao programa/módulo informado")

        record = await _find_record(db, student_id, activity_id, for_update=True)
        now = datetime.now(timezone.utc)

        if record is None:
            record = StudentActivity(
                student_id=student_id,
                activity_id=activity_id,
                program_id=program_id,
                module_id=module_id,
                status=StudentActivityStatus.IN_PROGRESS,
                started_at=now,
                time_spent=0,
            )
            db.add(record)
        elif record.status == StudentActivityStatus.LOCKED:
            record.status = StudentActivityStatus.IN_PROGRESS
            record.started_at = now
            record.time_spent = 0
        else:
            return record

        await db.commit()
        await db.refresh(record)

    log.info("[activity] %s started %s", student_id, activity_id)
    return record


async def save_draft(
    db: AsyncSession,
    student_id: str | None,
    activity_id: str,
    answers: Any = None,
    time_spent: int = 0,
) -> StudentActivity:
    """
    Overwrites answers and time spent (last write wins). The status is left
    as it is; a missing record is created in_progress.
    """
    student_id = require_user(student_id)
    if time_spent < 0:
        raise ValidationFailedError("Tempo gasto não pode ser negativo")

    async with store_guard(db, "Não foi possível salvar o progresso", student_id=student_id, activity_id=activity_id):
        activity = await get_activity_or_404(db, activity_id)
        payload = validate_answers(activity.type, answers)

        record = await _find_record(db, student_id, activity_id, for_update=True)
        if record is None:
            record = StudentActivity(
                student_id=student_id,
                activity_id=activity_id,
                program_id=activity.program_id,
                module_id=activity.module_id,
                status=StudentActivityStatus.IN_PROGRESS,
                started_at=datetime.now(timezone.utc),
                answers=payload,
                time_spent=time_spent,
            )
            db.add(record)
        else:
            if payload is not None:
                record.answers = payload
            record.time_spent = time_spent

        await db.commit()
        await db.refresh(record)
    return record


async def complete_activity(
    db: AsyncSession,
    student_id: str | None,
    activity_id: str,
    answers: Any = None,
    notes: str | None = None,
) -> dict:
    """
    Marks the activity completed and, in the same transaction:
      - adds it to the active assignment's completed set and recomputes progress
      - increments the student's total points (activity points, default 10)
      - appends a PointAward history row

    Points go with the assignment: without an active one the activity is
    still marked completed but nothing is awarded. Completing an already
    completed activity only refreshes answers/notes and earns nothing.
    """
    student_id = require_user(student_id)
    settings = get_settings()

    async with store_guard(db, "Não foi possível completar a atividade", student_id=student_id, activity_id=activity_id):
        activity = await get_activity_or_404(db, activity_id)
        payload = validate_answers(activity.type, answers)
        points = activity.points if activity.points is not None else settings.DEFAULT_ACTIVITY_POINTS

        now = datetime.now(timezone.utc)
        record = await _find_record(db, student_id, activity_id, for_update=True)
        already_done = record is not None and record.status in DONE_STATES

        if record is None:
            record = StudentActivity(
                student_id=student_id,
                activity_id=activity_id,
                program_id=activity.program_id,
                module_id=activity.module_id,
                status=StudentActivityStatus.COMPLETED,
                started_at=now,
                completed_at=now,
                time_spent=0,
            )
            db.add(record)
        elif not already_done:
            record.status = StudentActivityStatus.COMPLETED
            record.completed_at = now
            if record.started_at is None:
                record.started_at = now

        if payload is not None:
            record.answers = payload
        if notes is not None:
            record.notes = notes

        assignment = await get_active_assignment(db, student_id, activity.program_id, for_update=True)
        points_earned = 0

        if assignment is None:
            # no active assignment: the record is kept, nothing is awarded
            if await db.get(Student, student_id) is None:
                raise NotFoundError("Aluno não encontrado", student_id=student_id)
            if not already_done:
                log.warning("[activity] %s completed %s without an active assignment", student_id, activity_id)
        elif not already_done:
            await recompute_progress(
                db, assignment, merge_completed(assignment.completed_activities, activity_id)
            )

            res = await db.execute(
                update(Student)
                .where(Student.id == student_id)
                .values(total_points=Student.total_points + points, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount == 0:
                raise NotFoundError("Aluno não encontrado", student_id=student_id)

            db.add(PointAward(
                student_id=student_id,
                activity_id=activity_id,
                assignment_id=assignment.id,
                points=points,
                awarded_at=now,
            ))
            points_earned = points

        await db.commit()

    quiz = None
    if activity.type == ActivityType.QUIZ and record.answers:
        quiz = score_quiz(activity.content, record.answers)

    log.info(
        "[activity] %s completed %s: +%d points (assignment %s)",
        student_id, activity_id, points_earned, assignment.id if assignment else None,
    )
    return {
        "points_earned": points_earned,
        "assignment_id": assignment.id if assignment else None,
        "progress": assignment.progress if assignment else None,
        "quiz": quiz,
    }
