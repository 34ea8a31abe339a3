from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nexus.models.schedule import WEEK_DAYS, DayOfWeek
from nexus.schemas.activity import ActivityContent, ActivityDefinitionCheck


class ScheduleActivity(ActivityDefinitionCheck):
    """Activity definition embedded directly in a weekly schedule."""

    id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    instructions: Optional[str] = None
    estimated_time: int = Field(default=15, ge=0)
    points: int = Field(default=0, ge=0)
    is_required: bool = False
    order: int = Field(default=1, ge=1)


class WeekDaySchedule(BaseModel):
    day: DayOfWeek
    activities: List[ScheduleActivity] = []
    notes: Optional[str] = None


def normalize_week(v: List[WeekDaySchedule]) -> List[WeekDaySchedule]:
    """Always seven entries, monday first; missing days are empty."""
    by_day = {}
    for entry in v:
        if entry.day.value in by_day:
            raise ValueError(f"Dia repetido no cronograma: {entry.day.value}")
        by_day[entry.day.value] = entry

    seen_ids = set()
    for entry in by_day.values():
        for activity in entry.activities:
            if activity.id in seen_ids:
                raise ValueError(f"Atividade repetida no cronograma: {activity.id}")
            seen_ids.add(activity.id)

    return [by_day.get(d) or WeekDaySchedule(day=DayOfWeek(d)) for d in WEEK_DAYS]


class ScheduleCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)
    is_active: bool = True
    week_days: List[WeekDaySchedule] = []

    @field_validator("week_days")
    @classmethod
    def _one_entry_per_day(cls, v: List[WeekDaySchedule]):
        return normalize_week(v)


class ScheduleUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None
    week_days: Optional[List[WeekDaySchedule]] = None

    @field_validator("week_days")
    @classmethod
    def _one_entry_per_day(cls, v: Optional[List[WeekDaySchedule]]):
        return None if v is None else normalize_week(v)


class ScheduleActivityUpdate(BaseModel):
    """Changes merged into one embedded activity. Its id and type stay fixed."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    instructions: Optional[str] = None
    estimated_time: Optional[int] = Field(default=None, ge=0)
    points: Optional[int] = Field(default=None, ge=0)
    is_required: Optional[bool] = None
    order: Optional[int] = Field(default=None, ge=1)
    content: Optional[ActivityContent] = None


class AssignScheduleIn(BaseModel):
    student_ids: List[str] = Field(..., min_length=1)


class ScheduleOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    created_by: str
    is_active: bool
    color: Optional[str] = None
    icon: Optional[str] = None
    week_days: List[WeekDaySchedule]
    assigned_students: List[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
