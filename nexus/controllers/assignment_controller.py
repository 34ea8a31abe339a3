"""
Assignment ledger: which students hold which programs, and how far along
they are.

Progress is never trusted from the caller. It is always derived from the
assignment's completed activities and the program's real activity count
(see recompute_progress).
"""
import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.controllers._store import insert_unique, store_guard
from nexus.controllers.program_controller import get_program_activity_ids, get_program_or_404
from nexus.controllers.student_controller import get_assigned_programs
from nexus.core.errors import AssignmentError, NotFoundError, require_user
from nexus.core.progress import completion_percentage, merge_completed
from nexus.models.assignment import Assignment, AssignmentStatus
from nexus.models.student import Student, StudentProgram

log = logging.getLogger(__name__)


async def _add_to_assigned_set(db: AsyncSession, student_id: str, program_id: str) -> None:
    await insert_unique(
        db,
        StudentProgram,
        {"student_id": student_id, "program_id": program_id},
        keys=["student_id", "program_id"],
    )


async def assign_program_to_student(db: AsyncSession, student_id: str, program_id: str) -> bool:
    """
    Adds `program_id` to the student's assigned-program set.

    Idempotent: returns False when the program was already there, True when
    it was added. The write is re-read afterwards and AssignmentError is
    raised if the program is still missing.
    """
    student_id = require_user(student_id)
    message = f"Falha ao atribuir programa {program_id} ao aluno {student_id}"

    async with store_guard(db, message, student_id=student_id, program_id=program_id):
        student = await db.get(Student, student_id)
        if student is None:
            raise NotFoundError(f"Aluno com ID {student_id} não encontrado", student_id=student_id)
        await get_program_or_404(db, program_id)

        current = await get_assigned_programs(db, student_id)
        if program_id in current:
            log.info("[assign] program %s already assigned to %s", program_id, student_id)
            return False

        await _add_to_assigned_set(db, student_id, program_id)
        await db.commit()

        updated = await get_assigned_programs(db, student_id)
        if program_id not in updated:
            raise AssignmentError(message, student_id=student_id, program_id=program_id)

    log.info("[assign] program %s assigned to %s", program_id, student_id)
    return True


async def check_student_program_assignment(db: AsyncSession, student_id: str, program_id: str) -> bool:
    res = await db.execute(
        select(Assignment.id).where(
            Assignment.student_id == student_id,
            Assignment.program_id == program_id,
            Assignment.status == AssignmentStatus.ACTIVE,
        )
    )
    return res.first() is not None


async def assign_program_to_students(
    db: AsyncSession,
    program_id: str,
    student_ids: list[str],
    *,
    assigned_by: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    custom_message: str | None = None,
    send_notification: bool = False,
) -> dict:
    """
    Creates one active assignment per student and records the program in
    each student's assigned set. Everything is committed together.

    Students that already hold an active assignment for the program are
    reported in "skipped"; unknown students in "failures".
    """
    results = {"success": [], "skipped": [], "failures": []}

    async with store_guard(db, "Falha na atribuição em lote", program_id=program_id):
        await get_program_or_404(db, program_id)

        for student_id in dict.fromkeys(student_ids):
            student = await db.get(Student, student_id)
            if student is None or not student.is_active:
                results["failures"].append({"student_id": student_id, "error": "Aluno não encontrado"})
                continue

            if await check_student_program_assignment(db, student_id, program_id):
                results["skipped"].append(student_id)
                continue

            db.add(Assignment(
                student_id=student_id,
                program_id=program_id,
                assigned_by=assigned_by,
                start_date=start_date or date.today(),
                end_date=end_date,
                status=AssignmentStatus.ACTIVE,
                progress=0,
                completed_activities=[],
                custom_message=custom_message or "",
                send_notification=send_notification,
            ))
            await _add_to_assigned_set(db, student_id, program_id)
            results["success"].append(student_id)

        await db.commit()

    log.info(
        "[assign] program %s: %d assigned, %d skipped, %d failed",
        program_id, len(results["success"]), len(results["skipped"]), len(results["failures"]),
    )
    return results


async def get_assignment_or_404(db: AsyncSession, assignment_id: str) -> Assignment:
    assignment = await db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Atribuição não encontrada", assignment_id=assignment_id)
    return assignment


async def get_student_assignments(db: AsyncSession, student_id: str) -> list[Assignment]:
    """Active assignments, most recently assigned first."""
    res = await db.execute(
        select(Assignment)
        .where(
            Assignment.student_id == student_id,
            Assignment.status == AssignmentStatus.ACTIVE,
        )
        .order_by(Assignment.assigned_at.desc())
    )
    return list(res.scalars().all())


async def get_program_assignments(db: AsyncSession, program_id: str) -> list[Assignment]:
    res = await db.execute(
        select(Assignment)
        .where(
            Assignment.program_id == program_id,
            Assignment.status == AssignmentStatus.ACTIVE,
        )
        .order_by(Assignment.assigned_at.desc())
    )
    return list(res.scalars().all())


async def get_active_assignment(
    db: AsyncSession, student_id: str, program_id: str, *, for_update: bool = False
) -> Assignment | None:
    q = (
        select(Assignment)
        .where(
            Assignment.student_id == student_id,
            Assignment.program_id == program_id,
            Assignment.status == AssignmentStatus.ACTIVE,
        )
        .order_by(Assignment.assigned_at.desc())
    )
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalars().first()


async def recompute_progress(db: AsyncSession, assignment: Assignment, completed: list[str]) -> int:
    """
    Stores `completed` (restricted to the program's activities, duplicates
    dropped) and the progress derived from it. Does not commit.
    """
    program_activity_ids = await get_program_activity_ids(db, assignment.program_id)

    unique = merge_completed(completed)
    kept = [aid for aid in unique if aid in program_activity_ids]
    dropped = len(unique) - len(kept)
    if dropped:
        log.warning("[assign] %s: ignored %d activity ids outside program %s", assignment.id, dropped, assignment.program_id)

    assignment.completed_activities = kept
    assignment.progress = completion_percentage(len(kept), len(program_activity_ids))
    return assignment.progress


async def update_assignment_progress(
    db: AsyncSession,
    assignment_id: str,
    *,
    progress: int | None = None,
    completed_activities: list[str] | None = None,
) -> Assignment:
    async with store_guard(db, "Não foi possível atualizar o progresso", assignment_id=assignment_id):
        assignment = await get_assignment_or_404(db, assignment_id)

        completed = completed_activities if completed_activities is not None else list(assignment.completed_activities or [])
        derived = await recompute_progress(db, assignment, completed)

        if progress is not None and progress != derived:
            log.warning(
                "[assign] %s: supplied progress %s replaced by derived %s",
                assignment_id, progress, derived,
            )

        await db.commit()
        await db.refresh(assignment)
    return assignment


async def remove_assignment(db: AsyncSession, assignment_id: str) -> Assignment:
    """Soft delete: the row stays, its status flips to inactive."""
    async with store_guard(db, "Não foi possível remover a atribuição", assignment_id=assignment_id):
        assignment = await get_assignment_or_404(db, assignment_id)
        assignment.status = AssignmentStatus.INACTIVE
        await db.commit()
        await db.refresh(assignment)
    return assignment


async def refresh_program_progress(db: AsyncSession, program_id: str) -> int:
    """
    Re-derives progress on every active assignment of a program whose
    activity set changed. Does not commit. Returns how many were touched.
    """
    assignments = await get_program_assignments(db, program_id)
    for assignment in assignments:
        await recompute_progress(db, assignment, list(assignment.completed_activities or []))
    return len(assignments)
