from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from nexus.core.database import get_db
from nexus.core.security import decode_access_token
from nexus.models.professional import Professional, ProfessionalRole
from nexus.models.student import Student

bearer = HTTPBearer(auto_error=False)

PROFESSIONAL_ROLES = {"professional"} | {r.value for r in ProfessionalRole}


def _not_authenticated_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Usuário não autenticado",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode(credentials: HTTPAuthorizationCredentials | None) -> dict:
    not_authenticated = _not_authenticated_exception()

    if not credentials:
        raise not_authenticated

    try:
        payload = decode_access_token(credentials.credentials)
        if payload.get("type") != "access":
            raise not_authenticated
        if not str(payload["sub"]).strip():
            raise not_authenticated
    except (JWTError, KeyError, ValueError):
        raise not_authenticated

    return payload


async def get_current_student(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Student:
    payload = _decode(credentials)

    if payload.get("role") != "student":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso restrito a alunos",
        )

    result = await db.execute(select(Student).where(Student.id == str(payload["sub"])))
    student = result.scalar_one_or_none()

    if student is None:
        raise _not_authenticated_exception()

    if not student.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Esta conta de aluno foi desativada",
        )

    return student


async def get_current_professional(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Professional:
    payload = _decode(credentials)

    if payload.get("role") not in PROFESSIONAL_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso restrito a profissionais",
        )

    result = await db.execute(select(Professional).where(Professional.id == str(payload["sub"])))
    professional = result.scalar_one_or_none()

    if professional is None:
        raise _not_authenticated_exception()

    if not professional.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Esta conta de profissional foi desativada",
        )

    return professional
