"""
Typed errors raised by the controllers.

Every error carries a user-facing message (Portuguese, shown as-is by the
UI) and the HTTP status the API answers with. Routes never build
HTTPException for these; main.py maps NexusError to a JSON response.
"""
from starlette import status


class NexusError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Não foi possível concluir a operação"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class NotFoundError(NexusError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Registro não encontrado"


class NotAuthenticatedError(NexusError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Usuário não autenticado"


class ForbiddenError(NexusError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Acesso não permitido"


class ValidationFailedError(NexusError):
    status_code = 422
    default_message = "Dados inválidos"

    def __init__(self, message: str | None = None, errors: list[str] | None = None, **context):
        self.errors = errors or []
        super().__init__(message or "; ".join(self.errors) or None, **context)


class InvalidAnswerError(ValidationFailedError):
    default_message = "As respostas não correspondem ao tipo da atividade"


class AssignmentError(NexusError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Falha ao atribuir programa ao aluno"


class StoreError(NexusError):
    """The database rejected or failed the operation. Never retried here."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Serviço temporariamente indisponível"


def require_user(user_id: str | None) -> str:
    """Identity guard used before any store call."""
    if not user_id or not str(user_id).strip():
        raise NotAuthenticatedError()
    return str(user_id).strip()
