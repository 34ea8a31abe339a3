"""
Observations: free-text notes professionals write about a student, with an
optional structured form (energy, mood, behaviour, ...).

Private observations are only listed for their author. Only the author
may change or delete an observation.
"""
import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.controllers._store import apply_changes, store_guard
from nexus.controllers.student_controller import get_student_or_404
from nexus.core.errors import ForbiddenError, NotFoundError
from nexus.models._mixins import utcnow
from nexus.models.observation import Observation, ObservationAuthorType
from nexus.models.professional import Professional, ProfessionalRole
from nexus.schemas.observation import ObservationCreate, ObservationUpdate

log = logging.getLogger(__name__)

_AUTHOR_TYPES = {
    ProfessionalRole.MONITOR: ObservationAuthorType.MONITOR,
    ProfessionalRole.PSYCHOLOGIST: ObservationAuthorType.PSYCHOLOGIST,
    ProfessionalRole.PSYCHIATRIST: ObservationAuthorType.PSYCHIATRIST,
}


def author_type_for(role: ProfessionalRole) -> ObservationAuthorType:
    return _AUTHOR_TYPES.get(role, ObservationAuthorType.GENERAL)


async def get_observation_or_404(db: AsyncSession, observation_id: str) -> Observation:
    observation = await db.get(Observation, observation_id)
    if observation is None:
        raise NotFoundError("Observação não encontrada", observation_id=observation_id)
    return observation


def _ensure_author(observation: Observation, professional_id: str) -> None:
    if observation.author_id != professional_id:
        raise ForbiddenError("Apenas o autor pode alterar esta observação")


async def get_student_observations(db: AsyncSession, student_id: str, viewer_id: str) -> list[Observation]:
    """Newest first. Other authors' private notes are left out."""
    async with store_guard(db, "Não foi possível carregar as observações", student_id=student_id):
        res = await db.execute(
            select(Observation)
            .where(
                Observation.student_id == student_id,
                or_(Observation.is_private.is_(False), Observation.author_id == viewer_id),
            )
            .order_by(Observation.created_at.desc())
        )
        return list(res.scalars().all())


async def get_professional_observations(db: AsyncSession, professional_id: str) -> list[Observation]:
    async with store_guard(db, "Não foi possível carregar as observações", professional_id=professional_id):
        res = await db.execute(
            select(Observation)
            .where(Observation.author_id == professional_id)
            .order_by(Observation.created_at.desc())
        )
        return list(res.scalars().all())


async def create_observation(
    db: AsyncSession, student_id: str, author: Professional, payload: ObservationCreate
) -> Observation:
    async with store_guard(db, "Não foi possível criar a observação", student_id=student_id, author_id=author.id):
        await get_student_or_404(db, student_id)

        observation = Observation(
            student_id=student_id,
            author_id=author.id,
            author_name=author.name,
            author_type=author_type_for(author.role),
            text=payload.text,
            form_data=payload.form_data.model_dump(mode="json") if payload.form_data else None,
            time_stamp=utcnow().strftime("%d/%m/%Y"),
            is_private=payload.is_private,
            tags=payload.tags,
        )
        db.add(observation)
        await db.commit()
        await db.refresh(observation)

    log.info("[observations] %s wrote %s about %s", author.id, observation.id, student_id)
    return observation


async def update_observation(
    db: AsyncSession, observation_id: str, author_id: str, payload: ObservationUpdate
) -> Observation:
    async with store_guard(db, "Não foi possível atualizar a observação", observation_id=observation_id):
        observation = await get_observation_or_404(db, observation_id)
        _ensure_author(observation, author_id)

        changes = payload.model_dump(mode="json", exclude_unset=True)
        apply_changes(observation, changes, required=("text", "is_private", "tags"))
        await db.commit()
        await db.refresh(observation)
    return observation


async def delete_observation(db: AsyncSession, observation_id: str, author_id: str) -> None:
    async with store_guard(db, "Não foi possível deletar a observação", observation_id=observation_id):
        observation = await get_observation_or_404(db, observation_id)
        _ensure_author(observation, author_id)
        await db.delete(observation)
        await db.commit()

    log.info("[observations] %s deleted %s", author_id, observation_id)
