from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from nexus.models.gad7 import Gad7Severity, Gad7Trend

Answer = Annotated[int, Field(ge=0, le=3)]


class Gad7Answers(BaseModel):
    """0 (not at all) to 3 (nearly every day) for each of the seven items."""

    q1: Answer  # nervous, anxious or on edge
    q2: Answer  # not able to stop or control worrying
    q3: Answer  # worrying too much about different things
    q4: Answer  # trouble relaxing
    q5: Answer  # so restless it is hard to sit still
    q6: Answer  # easily annoyed or irritable
    q7: Answer  # afraid something awful might happen


class Gad7SubmitIn(BaseModel):
    answers: Gad7Answers
    notes: Optional[str] = Field(default=None, max_length=2000)


class Gad7AssessmentOut(BaseModel):
    id: str
    student_id: str
    answers: Gad7Answers
    score: int
    severity: Gad7Severity
    completed_at: datetime
    next_assessment_date: datetime
    is_first_assessment: bool
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Gad7RequirementOut(BaseModel):
    required: bool
    reason: Literal["first_time", "periodic", "overdue"]
    next_assessment_date: Optional[datetime] = None
    days_until_next: Optional[int] = None
    days_overdue: Optional[int] = None
    message: Optional[str] = None


class Gad7StatsOut(BaseModel):
    total_assessments: int
    average_score: float
    last_score: int
    last_severity: Gad7Severity
    trend: Gad7Trend
    next_assessment_date: Optional[datetime] = None
    improvement_percentage: Optional[int] = None
