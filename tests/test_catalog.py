import pytest
from sqlalchemy import func, select

from nexus.controllers.activity_progress_controller import complete_activity, get_activity_by_id, get_activity_program
from nexus.controllers.assignment_controller import assign_program_to_students, get_student_assignments
from nexus.controllers.program_controller import (
    count_program_activities,
    create_activity,
    create_module,
    create_program,
    delete_activity,
    delete_module,
    delete_program,
    ensure_owner,
    get_professional_programs,
    get_program_by_id,
    update_activity,
    update_module,
    update_program,
)
from nexus.controllers.student_controller import (
    assign_professional_to_student,
    create_professional,
    create_student,
    deactivate_student,
    get_assigned_programs,
    get_professional_students,
    get_student_by_id,
    get_student_professionals,
)
from nexus.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from nexus.models.professional import ProfessionalRole
from nexus.models.assignment import Assignment
from nexus.models.program import Activity, ActivityType, Module, ProgramStatus
from nexus.models.student_activity import StudentActivity
from nexus.schemas.activity import ActivityCreate, ActivityUpdate
from nexus.schemas.program import ModuleCreate, ModuleUpdate, ProgramCreate, ProgramUpdate
from nexus.schemas.student import StudentCreate


async def test_program_tree_is_ordered(db):
    pro = await create_professional(db, name="Dr. Paulo", email="Paulo@Clinica.com.br", role=ProfessionalRole.PSYCHIATRIST)
    assert pro.email == "paulo@clinica.com.br"

    program = await create_program(db, pro.id, ProgramCreate(title="  Sono  "))
    assert program.title == "Sono"

    m2 = await create_module(db, program.id, ModuleCreate(title="Semana 2", order=2))
    m1 = await create_module(db, program.id, ModuleCreate(title="Semana 1", order=1))

    second = await create_activity(db, m1.id, ActivityCreate.model_validate(
        {"title": "B", "order": 2, "content": {"type": "video", "video_url": "https://v.example/b"}}
    ))
    first = await create_activity(db, m1.id, ActivityCreate.model_validate(
        {"title": "A", "order": 1, "points": 5, "content": {"type": "text", "content": "a"}}
    ))
    await create_activity(db, m2.id, ActivityCreate.model_validate(
        {"title": "C", "content": {"type": "habit", "frequency": "weekly"}}
    ))

    tree = await get_program_by_id(db, program.id)
    assert [m.title for m in tree.modules] == ["Semana 1", "Semana 2"]
    assert [a.id for a in tree.modules[0].activities] == [first.id, second.id]
    assert second.type == ActivityType.VIDEO
    assert await count_program_activities(db, program.id) == 3

    assert [p.id for p in await get_professional_programs(db, pro.id)] == [program.id]

    assert (await get_activity_by_id(db, first.id)).points == 5
    assert await get_activity_program(db, first.id) == (program.id, m1.id)
    assert await get_activity_program(db, "missing") is None


async def test_create_activity_in_missing_module(db):
    with pytest.raises(NotFoundError):
        await create_activity(db, "missing", ActivityCreate.model_validate(
            {"title": "x", "content": {"type": "text", "content": "x"}}
        ))


def test_ensure_owner():
    class Item:
        created_by = "p1"

    ensure_owner(Item(), "p1")
    with pytest.raises(ForbiddenError):
        ensure_owner(Item(), "p2")


async def test_students_are_deactivated_not_deleted(db):
    student = await create_student(db, StudentCreate(name=" Júlia ", email="JULIA@escola.com.br", grade="8º ano"))
    assert (student.name, student.email) == ("Júlia", "julia@escola.com.br")
    assert (student.total_points, student.streak, student.level) == (0, 0, 1)
    student_id = student.id

    with pytest.raises(ValidationFailedError):
        await create_student(db, StudentCreate(name="Outra Júlia", email="julia@escola.com.br"))

    await deactivate_student(db, student_id)
    fetched = await get_student_by_id(db, student_id)
    assert fetched is not None
    assert fetched.is_active is False

    with pytest.raises(NotFoundError):
        await deactivate_student(db, "missing")


async def test_program_and_module_partial_updates(db, factory):
    pro = await factory.professional()
    program = await factory.program(pro)
    [module] = (await get_program_by_id(db, program.id)).modules
    module_id = module.id

    updated = await update_program(db, program.id, ProgramUpdate(title=" Ansiedade ", status=ProgramStatus.PAUSED))
    assert (updated.title, updated.status, updated.estimated_duration) == ("Ansiedade", ProgramStatus.PAUSED, 0)

    cleared = await update_program(db, program.id, ProgramUpdate(description=None))
    assert cleared.description is None
    assert cleared.title == "Ansiedade"

    with pytest.raises(ValidationFailedError):
        await update_program(db, program.id, ProgramUpdate(title=None))
    with pytest.raises(NotFoundError):
        await update_program(db, "missing", ProgramUpdate(title="Nada"))

    moved = await update_module(db, module_id, ModuleUpdate(order=3, is_locked=True))
    assert (moved.title, moved.order, moved.is_locked) == ("Módulo 1", 3, True)


async def test_activity_update_keeps_type(db, factory):
    pro = await factory.professional()
    program = await factory.program(pro, points=5)
    activity, _ = await factory.activities_of(program)

    updated = await update_activity(db, activity.id, ActivityUpdate.model_validate(
        {"title": "Nova", "points": None, "content": {"type": "text", "content": "novo texto"}}
    ))
    assert (updated.title, updated.points, updated.type) == ("Nova", None, ActivityType.TEXT)
    assert updated.content["content"] == "novo texto"

    with pytest.raises(ValidationFailedError):
        await update_activity(db, activity.id, ActivityUpdate.model_validate(
            {"content": {"type": "video", "video_url": "https://v.example/x"}}
        ))
    with pytest.raises(NotFoundError):
        await update_activity(db, "missing", ActivityUpdate(title="x"))


async def test_deleting_activity_rederives_progress(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro, activities=4)
    a1, a2, a3, a4 = await factory.activities_of(program)
    await assign_program_to_students(db, program.id, [student.id])
    await complete_activity(db, student.id, a1.id)
    await complete_activity(db, student.id, a2.id)

    [assignment] = await get_student_assignments(db, student.id)
    assert assignment.progress == 50

    await delete_activity(db, a2.id)
    await db.refresh(assignment)
    assert assignment.completed_activities == [a1.id]
    assert assignment.progress == 33
    assert await db.scalar(select(func.count()).select_from(StudentActivity).where(StudentActivity.activity_id == a2.id)) == 0

    with pytest.raises(NotFoundError):
        await delete_activity(db, a2.id)

    await delete_module(db, a1.module_id)
    await db.refresh(assignment)
    assert (assignment.completed_activities, assignment.progress) == ([], 0)
    assert await count_program_activities(db, program.id) == 0


async def test_delete_program_cascades(db, factory):
    pro = await factory.professional()
    student = await factory.student()
    program = await factory.program(pro)
    keep = await factory.program(pro)
    activity, _ = await factory.activities_of(program)
    await assign_program_to_students(db, program.id, [student.id])
    await assign_program_to_students(db, keep.id, [student.id])
    await complete_activity(db, student.id, activity.id)

    await delete_program(db, program.id)

    assert await get_program_by_id(db, program.id) is None
    for model, column in ((Module, Module.program_id), (Activity, Activity.program_id), (Assignment, Assignment.program_id)):
        assert await db.scalar(select(func.count()).select_from(model).where(column == program.id)) == 0
    assert await db.scalar(select(func.count()).select_from(StudentActivity)) == 0
    assert await get_assigned_programs(db, student.id) == [keep.id]
    assert await count_program_activities(db, keep.id) == 2

    with pytest.raises(NotFoundError):
        await delete_program(db, program.id)


async def test_professional_students_and_followers(db, factory):
    manager = await factory.professional()
    monitor = await factory.professional(role=ProfessionalRole.MONITOR, can_manage_students=False)
    s1 = await factory.student()
    s2 = await factory.student()

    assert await assign_professional_to_student(db, s1.id, monitor.id) == [monitor.id]
    assert await assign_professional_to_student(db, s1.id, monitor.id) == [monitor.id]
    assert await assign_professional_to_student(db, s1.id, manager.id) == [monitor.id, manager.id]
    assert await get_student_professionals(db, s2.id) == []

    assert {s.id for s in await get_professional_students(db, manager)} == {s1.id, s2.id}
    assert [s.id for s in await get_professional_students(db, monitor)] == [s1.id]

    with pytest.raises(NotFoundError):
        await assign_professional_to_student(db, "ghost", monitor.id)
    with pytest.raises(NotFoundError):
        await assign_professional_to_student(db, s2.id, "ghost")
