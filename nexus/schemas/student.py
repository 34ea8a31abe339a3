from typing import Annotated, List

from pydantic import BaseModel, EmailStr, StringConstraints


NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=120)]


class StudentCreate(BaseModel):
    name: NameStr
    email: EmailStr | None = None
    school: str | None = None
    grade: str | None = None


class AssignProfessionalIn(BaseModel):
    # defaults to the calling professional
    professional_id: str | None = None


class StudentOut(BaseModel):
    id: str
    name: str
    email: str | None
    school: str | None = None
    grade: str | None = None
    is_active: bool
    total_points: int
    streak: int
    level: int
    assigned_programs: List[str] = []
    assigned_professionals: List[str] = []

    model_config = {"from_attributes": True}
