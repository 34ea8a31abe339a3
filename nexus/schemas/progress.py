from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from nexus.models.schedule import DayOfWeek
from nexus.models.student_activity import StudentActivityStatus
from nexus.schemas.activity import ActivityAnswers, QuizScore


# ------------------ PROGRAM ACTIVITIES ------------------

class StartActivityIn(BaseModel):
    program_id: str
    module_id: str


class DraftIn(BaseModel):
    answers: Optional[ActivityAnswers] = None
    time_spent: int = Field(default=0, ge=0)


class CompleteActivityIn(BaseModel):
    answers: Optional[ActivityAnswers] = None
    notes: Optional[str] = Field(default=None, max_length=5000)


class StudentActivityOut(BaseModel):
    id: str
    student_id: str
    activity_id: str
    program_id: Optional[str] = None
    module_id: Optional[str] = None
    status: StudentActivityStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    time_spent: int = 0
    answers: Optional[dict] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ActivityStateOut(BaseModel):
    progress: Optional[StudentActivityOut] = None
    is_locked: bool
    is_in_progress: bool
    is_completed: bool


class CompletionOut(BaseModel):
    points_earned: int
    assignment_id: Optional[str] = None
    progress: Optional[int] = None
    quiz: Optional[QuizScore] = None


# ------------------ SCHEDULE ACTIVITIES ------------------

class ScheduleCompleteIn(BaseModel):
    day: DayOfWeek
    time_spent: Optional[int] = Field(default=None, ge=0)
    answers: Optional[ActivityAnswers] = None
    notes: Optional[str] = Field(default=None, max_length=5000)


class ActivityTimeIn(BaseModel):
    time_spent: int = Field(..., ge=0)


class ActivityNotesIn(BaseModel):
    notes: str = Field(..., max_length=5000)


class ScheduleProgressOut(BaseModel):
    id: str
    student_id: str
    schedule_id: str
    activity_id: str
    day: Optional[str] = None
    completed: bool
    completed_at: Optional[datetime] = None
    time_spent: int = 0
    answers: Optional[dict] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DayStats(BaseModel):
    completed: int
    total: int
    percentage: int


class ScheduleStatsOut(BaseModel):
    total_activities: int
    completed_activities: int
    completion_percentage: int
    total_points: int
    earned_points: int
    time_spent: int
    by_day: Dict[str, DayStats] = {}


class CompletionHistoryItem(BaseModel):
    date: str
    completed: int
    schedule_id: str
    schedule_title: str


class OverallProgressOut(BaseModel):
    items: List[ScheduleProgressOut] = []
