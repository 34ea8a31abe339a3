"""
GAD-7 anxiety questionnaire: when a student owes one, saving it, and the
running summary kept per student.

Seven items scored 0..3; the sum (0..21) maps to a severity band. The next
assessment is due `assessment_frequency` days (7) after the last one.
"""
import logging
import math
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.controllers._store import store_guard
from nexus.controllers.student_controller import get_student_or_404
from nexus.core.errors import require_user
from nexus.core.progress import round_half_up
from nexus.models.gad7 import Gad7Assessment, Gad7Severity, Gad7StudentConfig, Gad7Trend
from nexus.schemas.gad7 import Gad7Answers

log = logging.getLogger(__name__)

DEFAULT_FREQUENCY_DAYS = 7
# past due for longer than this is "overdue", otherwise "periodic"
OVERDUE_AFTER_DAYS = 7
TREND_THRESHOLD = 2

_DAY = 24 * 60 * 60

MESSAGES = {
    "first_time": "Complete sua primeira avaliação de ansiedade para personalizarmos sua experiência.",
    "periodic": "Está na hora de fazer sua avaliação semanal de acompanhamento.",
    "overdue": "Sua avaliação semanal está atrasada há {days} dias.",
}


def severity_for(score: int) -> Gad7Severity:
    if score <= 4:
        return Gad7Severity.MINIMAL
    if score <= 9:
        return Gad7Severity.MILD
    if score <= 14:
        return Gad7Severity.MODERATE
    return Gad7Severity.SEVERE


def trend_for(total_before: int, average_before: float, score: int) -> Gad7Trend:
    """Lower scores are better, so a drop beyond the threshold is improving."""
    if total_before == 0:
        return Gad7Trend.STABLE
    diff = score - average_before
    if diff < -TREND_THRESHOLD:
        return Gad7Trend.IMPROVING
    if diff > TREND_THRESHOLD:
        return Gad7Trend.WORSENING
    return Gad7Trend.STABLE


def _aware(dt: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


async def get_student_config(db: AsyncSession, student_id: str, *, for_update: bool = False) -> Gad7StudentConfig | None:
    q = select(Gad7StudentConfig).where(Gad7StudentConfig.student_id == student_id)
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


async def check_assessment_required(db: AsyncSession, student_id: str | None, now: datetime | None = None) -> dict:
    student_id = require_user(student_id)
    now = _aware(now) or datetime.now(timezone.utc)

    async with store_guard(db, "Não foi possível verificar a avaliação", student_id=student_id):
        config = await get_student_config(db, student_id)

    if config is None or config.total_assessments == 0:
        return {"required": True, "reason": "first_time", "message": MESSAGES["first_time"]}

    next_date = _aware(config.next_assessment_date)
    if next_date is None:
        return {"required": True, "reason": "overdue", "days_overdue": 0, "message": MESSAGES["overdue"].format(days=0)}

    seconds = (now - next_date).total_seconds()
    if seconds >= 0:
        days_overdue = math.floor(seconds / _DAY)
        reason = "overdue" if days_overdue > OVERDUE_AFTER_DAYS else "periodic"
        return {
            "required": True,
            "reason": reason,
            "next_assessment_date": next_date,
            "days_until_next": 0,
            "days_overdue": days_overdue,
            "message": MESSAGES[reason].format(days=days_overdue),
        }

    return {
        "required": False,
        "reason": "periodic",
        "next_assessment_date": next_date,
        "days_until_next": math.ceil(-seconds / _DAY),
    }


async def save_assessment(
    db: AsyncSession, student_id: str | None, answers: Gad7Answers, notes: str | None = None
) -> Gad7Assessment:
    """Stores the assessment and folds it into the student's summary, in one commit."""
    student_id = require_user(student_id)
    score = sum(answers.model_dump().values())
    severity = severity_for(score)

    async with store_guard(db, "Não foi possível salvar a avaliação", student_id=student_id):
        await get_student_or_404(db, student_id)
        config = await get_student_config(db, student_id, for_update=True)
        if config is None:
            config = Gad7StudentConfig(
                student_id=student_id,
                assessment_frequency=DEFAULT_FREQUENCY_DAYS,
                total_assessments=0,
                average_score=0.0,
                trend=Gad7Trend.STABLE,
            )
            db.add(config)

        total_before = config.total_assessments or 0
        average_before = config.average_score or 0.0

        completed_at = datetime.now(timezone.utc)
        next_date = completed_at + timedelta(days=config.assessment_frequency or DEFAULT_FREQUENCY_DAYS)

        assessment = Gad7Assessment(
            student_id=student_id,
            answers=answers.model_dump(),
            score=score,
            severity=severity,
            completed_at=completed_at,
            next_assessment_date=next_date,
            is_first_assessment=total_before == 0,
            notes=notes,
        )
        db.add(assessment)

        config.trend = trend_for(total_before, average_before, score)
        config.total_assessments = total_before + 1
        config.average_score = (average_before * total_before + score) / config.total_assessments
        config.last_assessment_date = completed_at
        config.next_assessment_date = next_date

        await db.commit()
        await db.refresh(assessment)

    log.info("[gad7] %s scored %d (%s)", student_id, score, severity.value)
    if severity in (Gad7Severity.MODERATE, Gad7Severity.SEVERE):
        log.warning("[gad7] %s needs follow-up: score %d (%s)", student_id, score, severity.value)
    return assessment


async def get_assessment_history(db: AsyncSession, student_id: str, limit: int = 10) -> list[Gad7Assessment]:
    async with store_guard(db, "Não foi possível carregar o histórico", student_id=student_id):
        res = await db.execute(
            select(Gad7Assessment)
            .where(Gad7Assessment.student_id == student_id)
            .order_by(Gad7Assessment.completed_at.desc())
            .limit(limit)
        )
        return list(res.scalars().all())


def improvement_percentage(previous: int, last: int) -> int:
    """How much the score dropped, relative to the previous one. 0 when it was already 0."""
    if previous <= 0:
        return 0
    return round_half_up(100 * (previous - last) / previous)


async def get_student_stats(db: AsyncSession, student_id: str) -> dict:
    config = await get_student_config(db, student_id)
    history = await get_assessment_history(db, student_id, limit=2)

    if config is None or not history:
        return {
            "total_assessments": 0,
            "average_score": 0.0,
            "last_score": 0,
            "last_severity": Gad7Severity.MINIMAL,
            "trend": Gad7Trend.STABLE,
            "next_assessment_date": _aware(config.next_assessment_date) if config else None,
            "improvement_percentage": None,
        }

    last = history[0]
    previous = history[1] if len(history) > 1 else None
    return {
        "total_assessments": config.total_assessments,
        "average_score": round(config.average_score, 2),
        "last_score": last.score,
        "last_severity": last.severity,
        "trend": config.trend,
        "next_assessment_date": _aware(config.next_assessment_date),
        "improvement_percentage": improvement_percentage(previous.score, last.score) if previous else None,
    }
