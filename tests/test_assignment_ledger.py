import pytest
from sqlalchemy import func, select

from nexus.controllers.assignment_controller import (
    assign_program_to_student,
    assign_program_to_students,
    check_student_program_assignment,
    get_student_assignments,
    recompute_progress,
    remove_assignment,
    update_assignment_progress,
)
from nexus.controllers.student_controller import get_assigned_programs
from nexus.core.errors import NotAuthenticatedError, NotFoundError
from nexus.models.assignment import AssignmentStatus
from nexus.models.student import StudentProgram


async def test_assign_program_twice_keeps_single_entry(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)

    assert await assign_program_to_student(db, student.id, program.id) is True
    assert await assign_program_to_student(db, student.id, program.id) is False

    assert await get_assigned_programs(db, student.id) == [program.id]
    count = await db.scalar(
        select(func.count()).select_from(StudentProgram).where(StudentProgram.student_id == student.id)
    )
    assert count == 1


async def test_assign_program_to_missing_student_raises_not_found(db, factory):
    pro = await factory.professional()
    program = await factory.program(pro)

    with pytest.raises(NotFoundError) as exc:
        await assign_program_to_student(db, "nope", program.id)
    assert "nope" in exc.value.message


async def test_assign_unknown_program_raises_not_found(db, factory):
    student = await factory.student()

    with pytest.raises(NotFoundError):
        await assign_program_to_student(db, student.id, "no-such-program")
    assert await get_assigned_programs(db, student.id) == []


async def test_assign_program_requires_identity(db):
    with pytest.raises(NotAuthenticatedError):
        await assign_program_to_student(db, "", "p1")


async def test_bulk_assign_reports_success_skipped_and_failures(db, factory):
    pro = await factory.professional()
    s1 = await factory.student()
    s2 = await factory.student()
    program = await factory.program(pro)

    first = await assign_program_to_students(db, program.id, [s1.id], assigned_by=pro.id)
    assert first["success"] == [s1.id]

    second = await assign_program_to_students(db, program.id, [s1.id, s2.id, "ghost", s2.id], assigned_by=pro.id)
    assert second["success"] == [s2.id]
    assert second["skipped"] == [s1.id]
    assert second["failures"] == [{"student_id": "ghost", "error": "Aluno não encontrado"}]

    assert await check_student_program_assignment(db, s2.id, program.id)
    assert await get_assigned_programs(db, s2.id) == [program.id]

    [assignment] = await get_student_assignments(db, s2.id)
    assert assignment.status == AssignmentStatus.ACTIVE
    assert assignment.progress == 0
    assert assignment.completed_activities == []
    assert assignment.assigned_by == pro.id


async def test_recompute_progress_uses_real_activity_count(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, activities=3)
    a1, a2, _ = await factory.activities_of(program)

    await assign_program_to_students(db, program.id, [student.id])
    [assignment] = await get_student_assignments(db, student.id)

    progress = await recompute_progress(db, assignment, [a1.id, a2.id, a1.id, "not-in-program"])
    assert progress == 67
    assert assignment.completed_activities == [a1.id, a2.id]


async def test_recompute_progress_with_empty_program_is_zero(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, activities=0)

    await assign_program_to_students(db, program.id, [student.id])
    [assignment] = await get_student_assignments(db, student.id)

    assert await recompute_progress(db, assignment, ["x"]) == 0
    assert assignment.completed_activities == []


async def test_update_progress_ignores_supplied_value(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, activities=4)
    a1, *_ = await factory.activities_of(program)

    await assign_program_to_students(db, program.id, [student.id])
    [assignment] = await get_student_assignments(db, student.id)

    updated = await update_assignment_progress(db, assignment.id, progress=90, completed_activities=[a1.id])
    assert updated.progress == 25
    assert updated.completed_activities == [a1.id]


async def test_remove_assignment_is_soft(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)

    await assign_program_to_students(db, program.id, [student.id])
    [assignment] = await get_student_assignments(db, student.id)

    removed = await remove_assignment(db, assignment.id)
    assert removed.status == AssignmentStatus.INACTIVE
    assert await get_student_assignments(db, student.id) == []
    assert not await check_student_program_assignment(db, student.id, program.id)

    with pytest.raises(NotFoundError):
        await remove_assignment(db, "missing")
