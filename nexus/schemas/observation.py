from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nexus.models.observation import ObservationAuthorType


class ObservationForm(BaseModel):
    energy_level: Optional[Literal["very_high", "high", "regular", "low", "very_low"]] = None
    attention_level: Optional[Literal["excellent", "good", "regular", "low", "very_low"]] = None
    participation: Optional[Literal["very_active", "active", "moderate", "little_active", "inactive"]] = None
    mood: Optional[Literal["very_happy", "happy", "neutral", "sad", "very_sad", "anxious", "irritable"]] = None
    behavior: Optional[Literal["exemplary", "good", "regular", "problematic", "very_problematic"]] = None
    academic_performance: Optional[
        Literal["excellent", "good", "regular", "below_expectations", "concerning"]
    ] = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)


def _clean_tags(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    # trimmed, blank dropped, first spelling kept
    return list(dict.fromkeys(t.strip() for t in v if t and t.strip()))


class ObservationCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
    form_data: Optional[ObservationForm] = None
    is_private: bool = False
    tags: List[str] = []

    @field_validator("text")
    @classmethod
    def _text_required(cls, v: str):
        if not v.strip():
            raise ValueError("Texto da observação é obrigatório")
        return v.strip()

    @field_validator("tags")
    @classmethod
    def _tags(cls, v):
        return _clean_tags(v)


class ObservationUpdate(BaseModel):
    text: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    form_data: Optional[ObservationForm] = None
    is_private: Optional[bool] = None
    tags: Optional[List[str]] = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, v: Optional[str]):
        if v is not None and not v.strip():
            raise ValueError("Texto da observação é obrigatório")
        return v.strip() if v else v

    @field_validator("tags")
    @classmethod
    def _tags(cls, v):
        return _clean_tags(v)


class ObservationOut(BaseModel):
    id: str
    student_id: str
    author_id: str
    author_name: str
    author_type: ObservationAuthorType
    text: str
    form_data: Optional[dict] = None
    time_stamp: str
    is_private: bool
    tags: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
