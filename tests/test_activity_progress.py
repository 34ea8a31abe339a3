import pytest
from sqlalchemy import select

from nexus.controllers.activity_progress_controller import (
    activity_state,
    complete_activity,
    get_student_activity_progress,
    save_draft,
    score_quiz,
    start_activity,
)
from nexus.controllers.assignment_controller import (
    assign_program_to_students,
    get_student_assignments,
    remove_assignment,
)
from nexus.core.errors import InvalidAnswerError, NotAuthenticatedError, NotFoundError, ValidationFailedError
from nexus.models.point_award import PointAward
from nexus.models.program import ActivityType
from nexus.models.student import Student
from nexus.models.student_activity import StudentActivityStatus


async def test_never_started_activity_is_locked(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)
    activity, _ = await factory.activities_of(program)

    record = await get_student_activity_progress(db, student.id, activity.id)
    assert record is None
    assert activity_state(record) == {"is_locked": True, "is_in_progress": False, "is_completed": False}


async def test_progress_for_unknown_activity_is_none(db, factory):
    student = await factory.student()
    assert await get_student_activity_progress(db, student.id, "missing") is None


async def test_start_draft_complete_flow(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)
    activity, _ = await factory.activities_of(program)

    started = await start_activity(db, student.id, activity.id, program.id, activity.module_id)
    assert started.status == StudentActivityStatus.IN_PROGRESS
    assert started.started_at is not None
    assert started.time_spent == 0

    draft = await save_draft(db, student.id, activity.id, {"type": "text", "response": "x"}, 5)
    assert draft.status == StudentActivityStatus.IN_PROGRESS
    assert draft.time_spent == 5

    await complete_activity(db, student.id, activity.id, {"type": "text", "response": "x"}, "note")

    record = await get_student_activity_progress(db, student.id, activity.id)
    await db.refresh(record)
    assert record.status == StudentActivityStatus.COMPLETED
    assert record.time_spent == 5
    assert record.answers == {"type": "text", "response": "x"}
    assert record.notes == "note"
    assert record.completed_at is not None
    assert record.started_at <= record.completed_at
    assert activity_state(record)["is_completed"]


async def test_start_is_idempotent_once_in_progress(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)
    activity, _ = await factory.activities_of(program)

    first = await start_activity(db, student.id, activity.id, program.id, activity.module_id)
    await save_draft(db, student.id, activity.id, None, 7)
    again = await start_activity(db, student.id, activity.id, program.id, activity.module_id)

    assert again.id == first.id
    assert again.time_spent == 7


async def test_start_rejects_wrong_program(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)
    other = await factory.program(pro)
    activity, _ = await factory.activities_of(program)

    with pytest.raises(ValidationFailedError):
        await start_activity(db, student.id, activity.id, other.id, activity.module_id)


async def test_start_requires_identity_and_activity(db, factory):
    with pytest.raises(NotAuthenticatedError):
        await start_activity(db, None, "a", "p", "m")

    student = await factory.student()
    with pytest.raises(NotFoundError):
        await start_activity(db, student.id, "missing", "p", "m")


async def test_draft_never_changes_completed_status(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)
    activity, _ = await factory.activities_of(program)

    await complete_activity(db, student.id, activity.id)
    draft = await save_draft(db, student.id, activity.id, {"type": "text", "response": "later"}, 3)

    assert draft.status == StudentActivityStatus.COMPLETED
    assert draft.answers == {"type": "text", "response": "later"}


async def test_draft_rejects_negative_time(db, factory):
    student = await factory.student()
    with pytest.raises(ValidationFailedError):
        await save_draft(db, student.id, "a", None, -1)


async def test_complete_defaults_to_ten_points_and_updates_assignment(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, activities=4)
    activity, *_ = await factory.activities_of(program)
    await assign_program_to_students(db, program.id, [student.id])

    result = await complete_activity(db, student.id, activity.id)

    assert result["points_earned"] == 10
    assert result["progress"] == 25

    [assignment] = await get_student_assignments(db, student.id)
    await db.refresh(assignment)
    assert assignment.completed_activities == [activity.id]
    assert assignment.progress == 25

    fresh = await db.get(Student, student.id, populate_existing=True)
    assert fresh.total_points == 10

    awards = (await db.execute(select(PointAward).where(PointAward.student_id == student.id))).scalars().all()
    assert [(a.activity_id, a.points, a.assignment_id) for a in awards] == [(activity.id, 10, assignment.id)]


async def test_explicit_zero_points_stays_zero(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, points=0)
    activity, _ = await factory.activities_of(program)
    await assign_program_to_students(db, program.id, [student.id])

    result = await complete_activity(db, student.id, activity.id)
    assert result["points_earned"] == 0
    assert result["progress"] == 50


async def test_completing_twice_awards_points_once(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, points=25)
    activity, _ = await factory.activities_of(program)
    await assign_program_to_students(db, program.id, [student.id])

    first = await complete_activity(db, student.id, activity.id)
    second = await complete_activity(db, student.id, activity.id, notes="revisado")

    assert first["points_earned"] == 25
    assert second["points_earned"] == 0

    fresh = await db.get(Student, student.id, populate_existing=True)
    assert fresh.total_points == 25


async def test_complete_for_unknown_student_rolls_back(db, factory):
    pro = await factory.professional()
    program = await factory.program(pro)
    activity, _ = await factory.activities_of(program)

    with pytest.raises(NotFoundError):
        await complete_activity(db, "ghost", activity.id)

    assert await get_student_activity_progress(db, "ghost", activity.id) is None


async def test_answers_must_match_activity_type(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)
    activity, _ = await factory.activities_of(program)

    with pytest.raises(InvalidAnswerError):
        await complete_activity(db, student.id, activity.id, {"type": "quiz", "responses": {}})

    with pytest.raises(InvalidAnswerError):
        await save_draft(db, student.id, activity.id, {"type": "nonsense"}, 1)


async def test_quiz_completion_is_scored(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, types=[ActivityType.QUIZ])
    [quiz] = await factory.activities_of(program)

    result = await complete_activity(
        db, student.id, quiz.id, {"type": "quiz", "responses": {"q1": "4", "q2": "  brasília "}}
    )

    assert result["quiz"].correct == 2
    assert result["quiz"].score == 100
    assert result["quiz"].passed


def test_score_quiz_counts_unanswered_as_wrong():
    content = {
        "type": "quiz",
        "passing_score": 70,
        "questions": [
            {"id": "q1", "question": "a", "type": "true_false", "correct_answer": "true"},
            {"id": "q2", "question": "b", "type": "multiple_choice", "correct_answer": ["x", "y"]},
            {"id": "q3", "question": "c", "type": "short_answer", "correct_answer": "Sim"},
        ],
    }
    score = score_quiz(content, {"type": "quiz", "responses": {"q2": ["y", "x"], "q3": ""}})

    assert (score.correct, score.total, score.score, score.passed) == (1, 3, 33, False)


async def test_no_points_without_active_assignment(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, points=15)
    activity, _ = await factory.activities_of(program)

    result = await complete_activity(db, student.id, activity.id)
    assert (result["points_earned"], result["assignment_id"], result["progress"]) == (0, None, None)

    record = await get_student_activity_progress(db, student.id, activity.id)
    assert record.status == StudentActivityStatus.COMPLETED

    fresh = await db.get(Student, student.id, populate_existing=True)
    assert fresh.total_points == 0
    assert (await db.execute(select(PointAward).where(PointAward.student_id == student.id))).scalars().all() == []


async def test_removed_assignment_stops_the_award(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, points=15)
    first, second = await factory.activities_of(program)
    await assign_program_to_students(db, program.id, [student.id])

    assert (await complete_activity(db, student.id, first.id))["points_earned"] == 15
    [assignment] = await get_student_assignments(db, student.id)
    await remove_assignment(db, assignment.id)

    assert (await complete_activity(db, student.id, second.id))["points_earned"] == 0
    fresh = await db.get(Student, student.id, populate_existing=True)
    assert fresh.total_points == 15
