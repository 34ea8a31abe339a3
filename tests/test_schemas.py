import pytest
from pydantic import ValidationError

from nexus.models.program import ActivityType
from nexus.schemas.activity import ActivityCreate, answers_adapter, content_adapter
from nexus.schemas.assignment import AssignProgramIn
from nexus.schemas.schedule import ScheduleActivity, ScheduleCreate


def test_activity_type_follows_content():
    activity = ActivityCreate.model_validate({
        "title": "Vídeo",
        "content": {"type": "video", "video_url": "https://v.example/1"},
    })
    assert activity.type == ActivityType.VIDEO
    assert activity.points is None


@pytest.mark.parametrize(
    "content, message",
    [
        ({"type": "text", "content": "   "}, "Conteúdo é obrigatório"),
        ({"type": "checklist", "items": ["", " "]}, "pelo menos um item"),
        ({"type": "video", "video_url": ""}, "URL do vídeo"),
        ({"type": "file", "file_url": None}, "URL do arquivo"),
        ({"type": "quiz", "passing_score": 120}, "entre 0 e 100"),
        ({"type": "habit", "frequency": "hourly"}, "Frequência"),
    ],
)
def test_content_validation_messages(content, message):
    with pytest.raises(ValidationError) as exc:
        content_adapter.validate_python(content)
    assert message in str(exc.value)


def test_checklist_accepts_plain_labels():
    content = content_adapter.validate_python({"type": "checklist", "items": ["Acordar cedo", "", "Ler"]})
    assert [i.label for i in content.items] == ["Acordar cedo", "Ler"]


def test_blank_title_rejected():
    with pytest.raises(ValidationError, match="Título é obrigatório"):
        ActivityCreate.model_validate({"title": "  ", "content": {"type": "text", "content": "x"}})


def test_answers_are_tagged_by_type():
    answer = answers_adapter.validate_python({"type": "habit", "completed_on": ["2026-10-01"], "mood": "good"})
    assert answer.type == "habit"

    with pytest.raises(ValidationError):
        answers_adapter.validate_python({"type": "video", "watched_seconds": -1})


def test_assignment_dates_must_be_ordered():
    with pytest.raises(ValidationError, match="data final"):
        AssignProgramIn(student_ids=["s1"], start_date="2026-10-10", end_date="2026-10-01")


def test_schedule_always_has_seven_days():
    schedule = ScheduleCreate.model_validate({
        "title": "Rotina",
        "week_days": [{"day": "friday", "activities": [{"id": "a1", "type": "text", "title": "Diário"}]}],
    })
    assert [d.day.value for d in schedule.week_days] == [
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    ]
    assert schedule.week_days[4].activities[0].id == "a1"


def test_schedule_rejects_repeated_days_and_activity_ids():
    with pytest.raises(ValidationError, match="Dia repetido"):
        ScheduleCreate.model_validate({"title": "Rotina", "week_days": [{"day": "monday"}, {"day": "monday"}]})

    activity = {"id": "a1", "type": "text", "title": "x"}
    with pytest.raises(ValidationError, match="Atividade repetida"):
        ScheduleCreate.model_validate({
            "title": "Rotina",
            "week_days": [{"day": "monday", "activities": [activity]}, {"day": "tuesday", "activities": [activity]}],
        })


def test_schedule_activity_content_must_match_type():
    with pytest.raises(ValidationError, match="não corresponde"):
        ScheduleActivity.model_validate({
            "id": "a1", "type": "quiz", "title": "x",
            "content": {"type": "text", "content": "y"},
        })
