from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from nexus.controllers.gad7_controller import (
    check_assessment_required,
    get_assessment_history,
    get_student_config,
    get_student_stats,
    improvement_percentage,
    save_assessment,
    severity_for,
    trend_for,
)
from nexus.core.errors import NotAuthenticatedError, NotFoundError
from nexus.models.gad7 import Gad7Severity, Gad7Trend
from nexus.schemas.gad7 import Gad7Answers


def answers(*values) -> Gad7Answers:
    return Gad7Answers(**{f"q{i}": v for i, v in enumerate(values, start=1)})


@pytest.mark.parametrize("score, expected", [
    (0, Gad7Severity.MINIMAL),
    (4, Gad7Severity.MINIMAL),
    (5, Gad7Severity.MILD),
    (9, Gad7Severity.MILD),
    (10, Gad7Severity.MODERATE),
    (14, Gad7Severity.MODERATE),
    (15, Gad7Severity.SEVERE),
    (21, Gad7Severity.SEVERE),
])
def test_severity_bands(score, expected):
    assert severity_for(score) == expected


def test_trend_needs_history_and_a_margin():
    assert trend_for(0, 0.0, 20) == Gad7Trend.STABLE
    assert trend_for(3, 10.0, 7) == Gad7Trend.IMPROVING
    assert trend_for(3, 10.0, 8) == Gad7Trend.STABLE
    assert trend_for(3, 10.0, 12) == Gad7Trend.STABLE
    assert trend_for(3, 10.0, 13) == Gad7Trend.WORSENING


def test_improvement_percentage():
    assert improvement_percentage(10, 5) == 50
    assert improvement_percentage(6, 8) == -33
    assert improvement_percentage(0, 3) == 0


def test_answers_range_is_enforced():
    with pytest.raises(ValidationError):
        answers(0, 1, 2, 3, 4, 0, 0)
    with pytest.raises(ValidationError):
        Gad7Answers(q1=0, q2=0)


async def test_first_time_is_required(db, factory):
    student = await factory.student()

    status = await check_assessment_required(db, student.id)
    assert (status["required"], status["reason"]) == (True, "first_time")
    assert await get_student_config(db, student.id) is None

    with pytest.raises(NotAuthenticatedError):
        await check_assessment_required(db, None)


async def test_save_scores_and_schedules_next(db, factory):
    student = await factory.student()

    first = await save_assessment(db, student.id, answers(1, 1, 1, 1, 1, 1, 1), notes="primeira")
    assert (first.score, first.severity, first.is_first_assessment) == (7, Gad7Severity.MILD, True)
    assert first.next_assessment_date - first.completed_at == timedelta(days=7)

    config = await get_student_config(db, student.id)
    assert (config.total_assessments, config.average_score, config.trend) == (1, 7.0, Gad7Trend.STABLE)

    second = await save_assessment(db, student.id, answers(0, 0, 0, 1, 0, 0, 0))
    assert (second.score, second.severity, second.is_first_assessment) == (1, Gad7Severity.MINIMAL, False)

    await db.refresh(config)
    assert config.total_assessments == 2
    assert config.average_score == pytest.approx(4.0)
    assert config.trend == Gad7Trend.IMPROVING


async def test_save_for_unknown_student(db):
    with pytest.raises(NotFoundError):
        await save_assessment(db, "ghost", answers(0, 0, 0, 0, 0, 0, 0))
    assert await get_student_config(db, "ghost") is None


async def test_requirement_follows_next_date(db, factory):
    student = await factory.student()
    saved = await save_assessment(db, student.id, answers(0, 0, 0, 0, 0, 0, 0))
    due = saved.next_assessment_date

    soon = await check_assessment_required(db, student.id, now=due - timedelta(days=2, hours=3))
    assert (soon["required"], soon["reason"], soon["days_until_next"]) == (False, "periodic", 3)

    today = await check_assessment_required(db, student.id, now=due + timedelta(hours=1))
    assert (today["required"], today["reason"], today["days_overdue"]) == (True, "periodic", 0)

    late = await check_assessment_required(db, student.id, now=due + timedelta(days=8, hours=1))
    assert (late["required"], late["reason"], late["days_overdue"]) == (True, "overdue", 8)
    assert "8 dias" in late["message"]


async def test_history_and_stats(db, factory):
    student = await factory.student()

    empty = await get_student_stats(db, student.id)
    assert (empty["total_assessments"], empty["last_severity"], empty["improvement_percentage"]) == (
        0, Gad7Severity.MINIMAL, None,
    )

    older = await save_assessment(db, student.id, answers(2, 2, 2, 2, 2, 0, 0))
    newer = await save_assessment(db, student.id, answers(1, 1, 1, 1, 1, 0, 0))
    older.completed_at = datetime.now(timezone.utc) - timedelta(days=7)
    await db.commit()

    history = await get_assessment_history(db, student.id)
    assert [a.id for a in history] == [newer.id, older.id]
    assert [a.id for a in await get_assessment_history(db, student.id, limit=1)] == [newer.id]

    stats = await get_student_stats(db, student.id)
    assert stats["total_assessments"] == 2
    assert stats["average_score"] == 7.5
    assert (stats["last_score"], stats["last_severity"]) == (5, Gad7Severity.MILD)
    assert stats["improvement_percentage"] == 50
    assert stats["trend"] == Gad7Trend.IMPROVING
    assert stats["next_assessment_date"] is not None
