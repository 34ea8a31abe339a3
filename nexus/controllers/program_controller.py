import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nexus.controllers._store import apply_changes, store_guard
from nexus.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from nexus.models.assignment import Assignment
from nexus.models.program import Activity, Module, Program
from nexus.models.student import StudentProgram
from nexus.models.student_activity import StudentActivity
from nexus.schemas.activity import ActivityCreate, ActivityUpdate
from nexus.schemas.program import ModuleCreate, ModuleUpdate, ProgramCreate, ProgramUpdate

log = logging.getLogger(__name__)


async def create_program(db: AsyncSession, professional_id: str, payload: ProgramCreate) -> Program:
    async with store_guard(db, "Não foi possível criar o programa"):
        program = Program(
            title=payload.title.strip(),
            description=payload.description,
            created_by=professional_id,
            status=payload.status,
            estimated_duration=payload.estimated_duration,
            color=payload.color,
            icon=payload.icon,
        )
        db.add(program)
        await db.commit()
        await db.refresh(program)
    return program


async def get_program_or_404(db: AsyncSession, program_id: str) -> Program:
    program = await db.get(Program, program_id)
    if program is None:
        raise NotFoundError("Programa não encontrado", program_id=program_id)
    return program


def ensure_owner(program_or_schedule, professional_id: str) -> None:
    if program_or_schedule.created_by != professional_id:
        raise ForbiddenError("Você não tem permissão para alterar este item")


async def get_program_by_id(db: AsyncSession, program_id: str) -> Program | None:
    """Program with its modules and activities, both in display order."""
    res = await db.execute(
        select(Program)
        .where(Program.id == program_id)
        .options(selectinload(Program.modules).selectinload(Module.activities))
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def get_professional_programs(db: AsyncSession, professional_id: str) -> list[Program]:
    res = await db.execute(
        select(Program)
        .where(Program.created_by == professional_id)
        .order_by(Program.created_at.desc())
    )
    return list(res.scalars().all())


async def create_module(db: AsyncSession, program_id: str, payload: ModuleCreate) -> Module:
    async with store_guard(db, "Não foi possível criar o módulo", program_id=program_id):
        await get_program_or_404(db, program_id)
        module = Module(
            program_id=program_id,
            title=payload.title.strip(),
            description=payload.description,
            order=payload.order,
            is_locked=payload.is_locked,
        )
        db.add(module)
        await db.commit()
        await db.refresh(module)
    return module


async def create_activity(db: AsyncSession, module_id: str, payload: ActivityCreate) -> Activity:
    async with store_guard(db, "Não foi possível criar a atividade", module_id=module_id):
        module = await db.get(Module, module_id)
        if module is None:
            raise NotFoundError("Módulo não encontrado", module_id=module_id)

        activity = Activity(
            module_id=module.id,
            program_id=module.program_id,
            type=payload.type,
            title=payload.title,
            description=payload.description,
            instructions=payload.instructions,
            order=payload.order,
            estimated_time=payload.estimated_time,
            points=payload.points,
            is_required=payload.is_required,
            content=payload.content.model_dump(mode="json"),
        )
        db.add(activity)
        await db.commit()
        await db.refresh(activity)

    log.info("[programs] activity %s (%s) added to module %s", activity.id, activity.type.value, module_id)
    return activity


async def get_program_activity_ids(db: AsyncSession, program_id: str) -> set[str]:
    res = await db.execute(select(Activity.id).where(Activity.program_id == program_id))
    return set(res.scalars().all())


async def count_program_activities(db: AsyncSession, program_id: str) -> int:
    res = await db.execute(select(func.count(Activity.id)).where(Activity.program_id == program_id))
    return int(res.scalar() or 0)


async def get_module_or_404(db: AsyncSession, module_id: str) -> Module:
    module = await db.get(Module, module_id)
    if module is None:
        raise NotFoundError("Módulo não encontrado", module_id=module_id)
    return module


async def _refresh_progress(db: AsyncSession, program_id: str) -> None:
    # assignment_controller imports this module
    from nexus.controllers.assignment_controller import refresh_program_progress

    touched = await refresh_program_progress(db, program_id)
    if touched:
        log.info("[programs] progress re-derived on %d assignments of %s", touched, program_id)


# ───────────────── UPDATES ─────────────────

async def update_program(db: AsyncSession, program_id: str, payload: ProgramUpdate) -> Program:
    async with store_guard(db, "Não foi possível atualizar o programa", program_id=program_id):
        program = await get_program_or_404(db, program_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("title"):
            changes["title"] = changes["title"].strip()
        apply_changes(program, changes, required=("title", "status", "estimated_duration"))
        await db.commit()
        await db.refresh(program)
    return program


async def update_module(db: AsyncSession, module_id: str, payload: ModuleUpdate) -> Module:
    async with store_guard(db, "Não foi possível atualizar o módulo", module_id=module_id):
        module = await get_module_or_404(db, module_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("title"):
            changes["title"] = changes["title"].strip()
        apply_changes(module, changes, required=("title", "order", "is_locked"))
        await db.commit()
        await db.refresh(module)
    return module


async def update_activity(db: AsyncSession, activity_id: str, payload: ActivityUpdate) -> Activity:
    """Partial update. `points` may be set back to None (default award)."""
    async with store_guard(db, "Não foi possível atualizar a atividade", activity_id=activity_id):
        activity = await db.get(Activity, activity_id)
        if activity is None:
            raise NotFoundError("Atividade não encontrada", activity_id=activity_id)

        changes = payload.model_dump(exclude_unset=True, exclude={"content"})
        if "content" in payload.model_fields_set:
            if payload.content is None:
                raise ValidationFailedError(errors=["Campo obrigatório: content"])
            if payload.content.type != activity.type.value:
                raise ValidationFailedError("Conteúdo não corresponde ao tipo da atividade", activity_id=activity_id)
            changes["content"] = payload.content.model_dump(mode="json")

        apply_changes(activity, changes, required=("title", "order", "estimated_time", "is_required"))
        await db.commit()
        await db.refresh(activity)
    return activity


# ───────────────── DELETES ─────────────────
# Explicit deletes, child rows first: SQLite does not enforce the FK cascades.

async def delete_program(db: AsyncSession, program_id: str) -> None:
    """Removes the program with its modules, activities, assignments and student progress."""
    async with store_guard(db, "Não foi possível deletar o programa", program_id=program_id):
        await get_program_or_404(db, program_id)

        activity_ids = select(Activity.id).where(Activity.program_id == program_id)
        await db.execute(delete(StudentActivity).where(StudentActivity.activity_id.in_(activity_ids)))
        await db.execute(delete(Activity).where(Activity.program_id == program_id))
        await db.execute(delete(Module).where(Module.program_id == program_id))
        await db.execute(delete(Assignment).where(Assignment.program_id == program_id))
        await db.execute(delete(StudentProgram).where(StudentProgram.program_id == program_id))
        await db.execute(delete(Program).where(Program.id == program_id))
        await db.commit()

    log.info("[programs] deleted %s", program_id)


async def delete_module(db: AsyncSession, module_id: str) -> None:
    async with store_guard(db, "Não foi possível deletar o módulo", module_id=module_id):
        module = await get_module_or_404(db, module_id)
        program_id = module.program_id

        activity_ids = select(Activity.id).where(Activity.module_id == module_id)
        await db.execute(delete(StudentActivity).where(StudentActivity.activity_id.in_(activity_ids)))
        await db.execute(delete(Activity).where(Activity.module_id == module_id))
        await db.execute(delete(Module).where(Module.id == module_id))
        await _refresh_progress(db, program_id)
        await db.commit()

    log.info("[programs] deleted module %s of %s", module_id, program_id)


async def delete_activity(db: AsyncSession, activity_id: str) -> None:
    async with store_guard(db, "Não foi possível deletar a atividade", activity_id=activity_id):
        activity = await db.get(Activity, activity_id)
        if activity is None:
            raise NotFoundError("Atividade não encontrada", activity_id=activity_id)
        program_id = activity.program_id

        await db.execute(delete(StudentActivity).where(StudentActivity.activity_id == activity_id))
        await db.execute(delete(Activity).where(Activity.id == activity_id))
        await _refresh_progress(db, program_id)
        await db.commit()

    log.info("[programs] deleted activity %s of %s", activity_id, program_id)
