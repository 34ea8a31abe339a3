import re
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from nexus.controllers.observation_controller import (
    author_type_for,
    create_observation,
    delete_observation,
    get_professional_observations,
    get_student_observations,
    update_observation,
)
from nexus.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from nexus.models.observation import ObservationAuthorType
from nexus.models.professional import ProfessionalRole
from nexus.schemas.observation import ObservationCreate, ObservationUpdate


@pytest.mark.parametrize("role, expected", [
    (ProfessionalRole.MONITOR, ObservationAuthorType.MONITOR),
    (ProfessionalRole.PSYCHOLOGIST, ObservationAuthorType.PSYCHOLOGIST),
    (ProfessionalRole.PSYCHIATRIST, ObservationAuthorType.PSYCHIATRIST),
    (ProfessionalRole.COORDINATOR, ObservationAuthorType.GENERAL),
])
def test_author_type_follows_role(role, expected):
    assert author_type_for(role) == expected


def test_form_values_are_checked():
    with pytest.raises(ValidationError):
        ObservationCreate(text="ok", form_data={"mood": "ecstatic"})
    with pytest.raises(ValidationError):
        ObservationCreate(text="   ")

    payload = ObservationCreate(text=" ok ", tags=[" sono", "sono", "", "foco "])
    assert payload.text == "ok"
    assert payload.tags == ["sono", "foco"]


async def test_create_signs_and_dates_the_observation(db, factory):
    pro = await factory.professional(name="Dra. Ana", role=ProfessionalRole.PSYCHIATRIST)
    student = await factory.student()

    obs = await create_observation(db, student.id, pro, ObservationCreate(
        text="Dormiu melhor esta semana",
        form_data={"mood": "happy", "energy_level": "high", "custom_fields": {"horas_sono": 8}},
        tags=["sono"],
    ))

    assert (obs.author_id, obs.author_name, obs.author_type) == (pro.id, "Dra. Ana", ObservationAuthorType.PSYCHIATRIST)
    assert re.fullmatch(r"\d{2}/\d{2}/\d{4}", obs.time_stamp)
    assert obs.form_data["mood"] == "happy"
    assert obs.form_data["custom_fields"] == {"horas_sono": 8}
    assert obs.form_data["behavior"] is None
    assert obs.is_private is False


async def test_create_for_unknown_student(db, factory):
    pro = await factory.professional()
    with pytest.raises(NotFoundError):
        await create_observation(db, "ghost", pro, ObservationCreate(text="x"))


async def test_private_notes_only_visible_to_author(db, factory):
    author = await factory.professional()
    colleague = await factory.professional()
    student = await factory.student()

    public = await create_observation(db, student.id, author, ObservationCreate(text="pública"))
    private = await create_observation(db, student.id, author, ObservationCreate(text="privada", is_private=True))
    public.created_at = datetime.now(timezone.utc) - timedelta(hours=1)
    await db.commit()

    assert [o.id for o in await get_student_observations(db, student.id, author.id)] == [private.id, public.id]
    assert [o.id for o in await get_student_observations(db, student.id, colleague.id)] == [public.id]
    assert [o.id for o in await get_professional_observations(db, author.id)] == [private.id, public.id]
    assert await get_professional_observations(db, colleague.id) == []


async def test_only_author_changes_or_deletes(db, factory):
    author = await factory.professional()
    other = await factory.professional()
    student = await factory.student()
    obs = await create_observation(db, student.id, author, ObservationCreate(text="antes", tags=["a"]))
    obs_id = obs.id

    with pytest.raises(ForbiddenError):
        await update_observation(db, obs_id, other.id, ObservationUpdate(text="depois"))
    with pytest.raises(ForbiddenError):
        await delete_observation(db, obs_id, other.id)

    updated = await update_observation(db, obs_id, author.id, ObservationUpdate(text="depois", is_private=True))
    assert (updated.text, updated.is_private, updated.tags) == ("depois", True, ["a"])

    with pytest.raises(ValidationFailedError):
        await update_observation(db, obs_id, author.id, ObservationUpdate(tags=None))

    await delete_observation(db, obs_id, author.id)
    with pytest.raises(NotFoundError):
        await delete_observation(db, obs_id, author.id)
    assert await get_student_observations(db, student.id, author.id) == []
