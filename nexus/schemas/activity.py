# nexus/schemas/activity.py
#
# Activity definitions and student answers are tagged unions keyed by "type":
# one variant per activity kind, each with its own payload shape.

from datetime import date, datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from nexus.models.program import ActivityType


def _required_text(v: str | None, message: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError(message)
    return v


# ------------------ CONTENT (what the professional authors) ------------------

class ChecklistItem(BaseModel):
    id: str
    label: str = Field(..., min_length=1, max_length=300)
    order: int = 0


class QuizQuestion(BaseModel):
    id: str
    question: str = Field(..., min_length=1)
    type: Literal["multiple_choice", "true_false", "short_answer"] = "multiple_choice"
    options: list[str] = Field(default_factory=list)
    correct_answer: Union[str, list[str]]
    explanation: Optional[str] = None


class HabitSchedule(BaseModel):
    specific_times: list[str] = Field(default_factory=list)  # ["08:00", "18:00"]
    days_of_week: list[int] = Field(default_factory=list)    # 0-6, sunday first
    reminder: bool = False
    reminder_time: Optional[str] = None

    @field_validator("days_of_week")
    @classmethod
    def _valid_days(cls, v: list[int]):
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("Dias da semana devem estar entre 0 e 6")
        return sorted(set(v))


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    content: str
    rich_text: bool = False

    @field_validator("content", mode="before")
    @classmethod
    def _content_required(cls, v):
        return _required_text(v, "Conteúdo é obrigatório para atividades de texto")


class ChecklistContent(BaseModel):
    type: Literal["checklist"] = "checklist"
    items: list[ChecklistItem]

    @field_validator("items", mode="before")
    @classmethod
    def _coerce_items(cls, v):
        # accepts plain labels and drops blank ones
        out = []
        for i, item in enumerate(v or []):
            if isinstance(item, str):
                if not item.strip():
                    continue
                item = {"id": f"item-{i + 1}", "label": item.strip(), "order": i}
            out.append(item)
        if not out:
            raise ValueError("Checklist deve ter pelo menos um item")
        return out


class VideoContent(BaseModel):
    type: Literal["video"] = "video"
    video_url: str
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)  # seconds

    @field_validator("video_url", mode="before")
    @classmethod
    def _url_required(cls, v):
        return _required_text(v, "URL do vídeo é obrigatória")


class QuizContent(BaseModel):
    type: Literal["quiz"] = "quiz"
    questions: list[QuizQuestion] = Field(default_factory=list)
    passing_score: int = 70

    @field_validator("passing_score")
    @classmethod
    def _score_range(cls, v: int):
        if v < 0 or v > 100:
            raise ValueError("Pontuação de aprovação deve estar entre 0 e 100")
        return v


class FileContent(BaseModel):
    type: Literal["file"] = "file"
    file_url: str
    file_name: str = "Arquivo"
    file_type: str = "application/octet-stream"
    file_size: int = Field(default=0, ge=0)

    @field_validator("file_url", mode="before")
    @classmethod
    def _url_required(cls, v):
        return _required_text(v, "URL do arquivo é obrigatória")


class HabitContent(BaseModel):
    type: Literal["habit"] = "habit"
    frequency: str = "daily"
    schedule: HabitSchedule = Field(default_factory=HabitSchedule)

    @field_validator("frequency")
    @classmethod
    def _valid_frequency(cls, v: str):
        if v not in ("daily", "weekly", "monthly"):
            raise ValueError("Frequência deve ser daily, weekly ou monthly")
        return v


ActivityContent = Annotated[
    Union[TextContent, ChecklistContent, VideoContent, QuizContent, FileContent, HabitContent],
    Field(discriminator="type"),
]
content_adapter = TypeAdapter(ActivityContent)


# ------------------ ANSWERS (what the student submits) ------------------

class TextAnswer(BaseModel):
    type: Literal["text"] = "text"
    response: str = ""


class ChecklistAnswer(BaseModel):
    type: Literal["checklist"] = "checklist"
    checked_items: list[str] = Field(default_factory=list)


class VideoAnswer(BaseModel):
    type: Literal["video"] = "video"
    watched_seconds: int = Field(default=0, ge=0)
    finished: bool = False


class QuizAnswer(BaseModel):
    type: Literal["quiz"] = "quiz"
    responses: dict[str, Union[str, list[str]]] = Field(default_factory=dict)  # question id -> answer


class FileAnswer(BaseModel):
    type: Literal["file"] = "file"
    file_url: str
    file_name: Optional[str] = None


class HabitAnswer(BaseModel):
    type: Literal["habit"] = "habit"
    completed_on: list[date] = Field(default_factory=list)
    mood: Optional[Literal["very_good", "good", "neutral", "bad", "very_bad"]] = None


ActivityAnswers = Annotated[
    Union[TextAnswer, ChecklistAnswer, VideoAnswer, QuizAnswer, FileAnswer, HabitAnswer],
    Field(discriminator="type"),
]
answers_adapter = TypeAdapter(ActivityAnswers)


# ------------------ ACTIVITY IN / OUT ------------------

class ActivityCreate(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    instructions: Optional[str] = None
    order: int = Field(default=1, ge=1)
    estimated_time: int = Field(default=15, ge=0)
    points: Optional[int] = Field(default=None, ge=0)
    is_required: bool = False
    content: ActivityContent

    @field_validator("title", mode="before")
    @classmethod
    def _title_required(cls, v):
        return _required_text(v, "Título é obrigatório")

    @property
    def type(self) -> ActivityType:
        return ActivityType(self.content.type)


class ActivityUpdate(BaseModel):
    """
    Partial update. The activity type never changes, so new content must
    carry the same type (checked by the controller).
    """

    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    instructions: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=1)
    estimated_time: Optional[int] = Field(default=None, ge=0)
    points: Optional[int] = Field(default=None, ge=0)
    is_required: Optional[bool] = None
    content: Optional[ActivityContent] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title_not_blank(cls, v):
        if v is None:
            return v
        return _required_text(v, "Título é obrigatório")


class ActivityOut(BaseModel):
    id: str
    module_id: str
    program_id: str
    type: ActivityType
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    order: int
    estimated_time: int
    points: Optional[int] = None
    is_required: bool
    content: dict
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuizScore(BaseModel):
    score: int
    correct: int
    total: int
    passed: bool


class ActivityDefinitionCheck(BaseModel):
    """Used by embedded schedule activities: content type must match the activity type."""

    type: ActivityType
    content: Optional[ActivityContent] = None

    @model_validator(mode="after")
    def _content_matches_type(self):
        if self.content is not None and self.content.type != self.type.value:
            raise ValueError("Conteúdo não corresponde ao tipo da atividade")
        return self
