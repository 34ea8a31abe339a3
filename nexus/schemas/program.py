from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from nexus.models.program import ProgramStatus
from nexus.schemas.activity import ActivityOut


class ProgramCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    status: ProgramStatus = ProgramStatus.DRAFT
    estimated_duration: int = Field(default=0, ge=0)
    color: Optional[str] = Field(default=None, max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)


class ModuleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    order: int = Field(default=1, ge=1)
    is_locked: bool = False


class ModuleOut(BaseModel):
    id: str
    program_id: str
    title: str
    description: Optional[str] = None
    order: int
    is_locked: bool
    activities: List[ActivityOut] = []

    model_config = ConfigDict(from_attributes=True)


class ProgramOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    created_by: str
    status: ProgramStatus
    estimated_duration: int
    color: Optional[str] = None
    icon: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProgramDetailOut(ProgramOut):
    modules: List[ModuleOut] = []
    total_activities: int = 0


class ProgramUpdate(BaseModel):
    """Partial update: only the fields sent are changed."""

    title: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = None
    status: Optional[ProgramStatus] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)
    color: Optional[str] = Field(default=None, max_length=20)
    icon: Optional[str] = Field(default=None, max_length=50)


class ModuleUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=1)
    is_locked: Optional[bool] = None
