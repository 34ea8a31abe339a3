import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from nexus.controllers import _store
from nexus.controllers import assignment_controller
from nexus.controllers._store import insert_unique, store_guard
from nexus.controllers.assignment_controller import assign_program_to_student
from nexus.controllers.schedule_progress_controller import get_student_schedule_progress
from nexus.controllers.student_controller import get_assigned_programs
from nexus.core.errors import AssignmentError, NotFoundError, StoreError
from nexus.models.student import Student, StudentProgram


def _spy_rollback(db, monkeypatch) -> list:
    calls = []
    real = db.rollback

    async def rollback():
        calls.append(True)
        await real()

    monkeypatch.setattr(db, "rollback", rollback)
    return calls


async def test_store_failure_becomes_store_error_and_rolls_back(db, monkeypatch):
    rollbacks = _spy_rollback(db, monkeypatch)
    pending = Student(name="Pendente", email="pendente@nexus.test")
    db.add(pending)

    async def broken_execute(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "execute", broken_execute)

    with pytest.raises(StoreError) as exc:
        await get_student_schedule_progress(db, "s1", "sch1")

    assert exc.value.status_code == 503
    assert exc.value.message == "Não foi possível carregar o progresso"
    assert exc.value.context == {"student_id": "s1", "schedule_id": "sch1"}
    assert isinstance(exc.value.__cause__, OperationalError)
    assert rollbacks == [True]
    assert pending not in db


async def test_domain_errors_pass_through_with_rollback(db, monkeypatch):
    rollbacks = _spy_rollback(db, monkeypatch)

    with pytest.raises(NotFoundError):
        async with store_guard(db, "falhou"):
            raise NotFoundError("sumiu")

    assert rollbacks == [True]


async def test_store_guard_leaves_success_alone(db, monkeypatch):
    rollbacks = _spy_rollback(db, monkeypatch)

    async with store_guard(db, "falhou"):
        pass

    assert rollbacks == []


async def test_assignment_not_visible_after_write_raises(db, factory, monkeypatch):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)

    async def never_assigned(db, student_id):
        return []

    monkeypatch.setattr(assignment_controller, "get_assigned_programs", never_assigned)

    with pytest.raises(AssignmentError) as exc:
        await assign_program_to_student(db, student.id, program.id)

    assert exc.value.status_code == 409
    assert exc.value.context == {"student_id": student.id, "program_id": program.id}


async def test_insert_unique_without_conflict_clause(db, factory, monkeypatch):
    monkeypatch.setattr(_store, "_CONFLICT_INSERTS", {})
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)
    values = {"student_id": student.id, "program_id": program.id}

    await insert_unique(db, StudentProgram, values, keys=["student_id", "program_id"])
    await insert_unique(db, StudentProgram, dict(values), keys=["student_id", "program_id"])
    await db.commit()

    count = await db.scalar(
        select(func.count()).select_from(StudentProgram).where(StudentProgram.student_id == student.id)
    )
    assert count == 1
    assert await get_assigned_programs(db, student.id) == [program.id]


async def test_assign_through_read_then_add_path(db, factory, monkeypatch):
    monkeypatch.setattr(_store, "_CONFLICT_INSERTS", {})
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)

    assert await assign_program_to_student(db, student.id, program.id) is True
    assert await assign_program_to_student(db, student.id, program.id) is False
    assert await get_assigned_programs(db, student.id) == [program.id]
