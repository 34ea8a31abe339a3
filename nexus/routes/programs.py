# nexus/routes/programs.py

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.core.database import get_db
from nexus.core.dependencies import get_current_professional
from nexus.core.errors import NotFoundError
from nexus.models.professional import Professional
from nexus.models.program import Activity, Module

from nexus.schemas.activity import ActivityCreate, ActivityOut, ActivityUpdate
from nexus.schemas.assignment import (
    AssignmentOut,
    AssignmentProgressIn,
    AssignProgramIn,
    AssignProgramOut,
)
from nexus.schemas.program import (
    ModuleCreate,
    ModuleOut,
    ModuleUpdate,
    ProgramCreate,
    ProgramDetailOut,
    ProgramOut,
    ProgramUpdate,
)

from nexus.controllers.assignment_controller import (
    assign_program_to_students,
    get_assignment_or_404,
    get_program_assignments,
    remove_assignment,
    update_assignment_progress,
)
from nexus.controllers.program_controller import (
    create_activity,
    create_module,
    count_program_activities,
    create_program,
    delete_activity,
    delete_module,
    delete_program,
    ensure_owner,
    get_program_by_id,
    get_program_or_404,
    get_professional_programs,
    update_activity,
    update_module,
    update_program,
)

router = APIRouter(prefix="/professional/programs", tags=["Professional - Programs"])
assignments_router = APIRouter(prefix="/professional/assignments", tags=["Professional - Assignments"])


def _module_out(module: Module) -> ModuleOut:
    # activities are not loaded here
    return ModuleOut(
        id=module.id,
        program_id=module.program_id,
        title=module.title,
        description=module.description,
        order=module.order,
        is_locked=module.is_locked,
    )


async def _owned_module(db: AsyncSession, program_id: str, module_id: str, professional: Professional) -> Module:
    ensure_owner(await get_program_or_404(db, program_id), professional.id)
    module = await db.get(Module, module_id)
    if module is None or module.program_id != program_id:
        raise NotFoundError("Módulo não encontrado", module_id=module_id)
    return module


async def _owned_activity(
    db: AsyncSession, program_id: str, module_id: str, activity_id: str, professional: Professional
) -> Activity:
    await _owned_module(db, program_id, module_id, professional)
    activity = await db.get(Activity, activity_id)
    if activity is None or activity.module_id != module_id:
        raise NotFoundError("Atividade não encontrada", activity_id=activity_id)
    return activity


# ─────────────────────────────────────────────────────────────
# Programs
# ─────────────────────────────────────────────────────────────
@router.post("", response_model=ProgramOut, status_code=201)
async def create_program_route(
    payload: ProgramCreate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await create_program(db, professional.id, payload)


@router.get("", response_model=list[ProgramOut])
async def list_my_programs(
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await get_professional_programs(db, professional.id)


@router.get("/{program_id}", response_model=ProgramDetailOut)
async def get_program_route(
    program_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    program = await get_program_by_id(db, program_id)
    if program is None:
        raise NotFoundError("Programa não encontrado", program_id=program_id)

    out = ProgramDetailOut.model_validate(program)
    out.total_activities = await count_program_activities(db, program_id)
    return out


@router.put("/{program_id}", response_model=ProgramOut)
async def update_program_route(
    program_id: str,
    payload: ProgramUpdate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    ensure_owner(await get_program_or_404(db, program_id), professional.id)
    return await update_program(db, program_id, payload)


@router.delete("/{program_id}", status_code=204, response_class=Response)
async def delete_program_route(
    program_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    ensure_owner(await get_program_or_404(db, program_id), professional.id)
    await delete_program(db, program_id)
    return Response(status_code=204)


@router.post("/{program_id}/modules", response_model=ModuleOut, status_code=201)
async def create_module_route(
    program_id: str,
    payload: ModuleCreate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    ensure_owner(await get_program_or_404(db, program_id), professional.id)
    return _module_out(await create_module(db, program_id, payload))


@router.post("/{program_id}/modules/{module_id}/activities", response_model=ActivityOut, status_code=201)
async def create_activity_route(
    program_id: str,
    module_id: str,
    payload: ActivityCreate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned_module(db, program_id, module_id, professional)
    return await create_activity(db, module_id, payload)


@router.put("/{program_id}/modules/{module_id}", response_model=ModuleOut)
async def update_module_route(
    program_id: str,
    module_id: str,
    payload: ModuleUpdate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned_module(db, program_id, module_id, professional)
    return _module_out(await update_module(db, module_id, payload))


@router.delete("/{program_id}/modules/{module_id}", status_code=204, response_class=Response)
async def delete_module_route(
    program_id: str,
    module_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned_module(db, program_id, module_id, professional)
    await delete_module(db, module_id)
    return Response(status_code=204)


@router.put("/{program_id}/modules/{module_id}/activities/{activity_id}", response_model=ActivityOut)
async def update_activity_route(
    program_id: str,
    module_id: str,
    activity_id: str,
    payload: ActivityUpdate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned_activity(db, program_id, module_id, activity_id, professional)
    return await update_activity(db, activity_id, payload)


@router.delete("/{program_id}/modules/{module_id}/activities/{activity_id}", status_code=204, response_class=Response)
async def delete_activity_route(
    program_id: str,
    module_id: str,
    activity_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned_activity(db, program_id, module_id, activity_id, professional)
    await delete_activity(db, activity_id)
    return Response(status_code=204)


# ─────────────────────────────────────────────────────────────
# Assignments
# ─────────────────────────────────────────────────────────────
@router.post("/{program_id}/assign", response_model=AssignProgramOut)
async def assign_program_route(
    program_id: str,
    payload: AssignProgramIn,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    ensure_owner(await get_program_or_404(db, program_id), professional.id)
    return await assign_program_to_students(
        db,
        program_id,
        payload.student_ids,
        assigned_by=professional.id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        custom_message=payload.custom_message,
        send_notification=payload.send_notification,
    )


@router.get("/{program_id}/assignments", response_model=list[AssignmentOut])
async def list_program_assignments(
    program_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    ensure_owner(await get_program_or_404(db, program_id), professional.id)
    return await get_program_assignments(db, program_id)


async def _owned_assignment(db: AsyncSession, assignment_id: str, professional: Professional):
    assignment = await get_assignment_or_404(db, assignment_id)
    ensure_owner(await get_program_or_404(db, assignment.program_id), professional.id)
    return assignment


@assignments_router.put("/{assignment_id}/progress", response_model=AssignmentOut)
async def update_assignment_progress_route(
    assignment_id: str,
    payload: AssignmentProgressIn,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned_assignment(db, assignment_id, professional)
    return await update_assignment_progress(
        db,
        assignment_id,
        progress=payload.progress,
        completed_activities=payload.completed_activities,
    )


@assignments_router.delete("/{assignment_id}", response_model=AssignmentOut)
async def remove_assignment_route(
    assignment_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await _owned_assignment(db, assignment_id, professional)
    return await remove_assignment(db, assignment_id)
