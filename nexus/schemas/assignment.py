from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nexus.models.assignment import AssignmentStatus


class AssignProgramIn(BaseModel):
    student_ids: List[str] = Field(..., min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    custom_message: Optional[str] = Field(default=None, max_length=1000)
    send_notification: bool = False

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("A data final deve ser posterior à data inicial")
        return self


class AssignmentFailure(BaseModel):
    student_id: str
    error: str


class AssignProgramOut(BaseModel):
    success: List[str] = []
    skipped: List[str] = []
    failures: List[AssignmentFailure] = []


class AssignmentProgressIn(BaseModel):
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    completed_activities: Optional[List[str]] = None


class AssignmentOut(BaseModel):
    id: str
    student_id: str
    program_id: str
    assigned_by: Optional[str] = None
    assigned_at: datetime
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: AssignmentStatus
    progress: int
    completed_activities: List[str] = []
    custom_message: Optional[str] = None
    send_notification: bool = False

    model_config = ConfigDict(from_attributes=True)
