# nexus/routes/observations.py

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.core.database import get_db
from nexus.core.dependencies import get_current_professional
from nexus.models.professional import Professional
from nexus.schemas.observation import ObservationCreate, ObservationOut, ObservationUpdate
from nexus.controllers.observation_controller import (
    create_observation,
    delete_observation,
    get_professional_observations,
    get_student_observations,
    update_observation,
)
from nexus.controllers.student_controller import get_student_or_404

router = APIRouter(prefix="/professional", tags=["Professional - Observations"])


@router.get("/students/{student_id}/observations", response_model=list[ObservationOut])
async def list_student_observations(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await get_student_or_404(db, student_id)
    return await get_student_observations(db, student_id, professional.id)


@router.post("/students/{student_id}/observations", response_model=ObservationOut, status_code=201)
async def create_observation_route(
    student_id: str,
    payload: ObservationCreate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await create_observation(db, student_id, professional, payload)


@router.get("/observations", response_model=list[ObservationOut])
async def list_my_observations(
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await get_professional_observations(db, professional.id)


@router.put("/observations/{observation_id}", response_model=ObservationOut)
async def update_observation_route(
    observation_id: str,
    payload: ObservationUpdate,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    return await update_observation(db, observation_id, professional.id, payload)


@router.delete("/observations/{observation_id}", status_code=204, response_class=Response)
async def delete_observation_route(
    observation_id: str,
    db: AsyncSession = Depends(get_db),
    professional: Professional = Depends(get_current_professional),
):
    await delete_observation(db, observation_id, professional.id)
    return Response(status_code=204)
