from datetime import datetime, timedelta, timezone

from jose import jwt

from nexus.core.config import get_settings


# ── JWT Token ─────────────────────────────────────────────────────────
def create_access_token(user_id: str, role: str, expires_minutes: int | None = None) -> str:
    """
    Creates a signed JWT. The identity provider issues these in production;
    the API only needs this for seeding and tests.

    Payload contains:
      sub   : user id (standard JWT claim)
      role  : "student" or a professional role
      type  : guards against using wrong token types
      iat   : issued at
      exp   : expiry (ACCESS_TOKEN_EXPIRE_MINUTES in .env)
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub":  str(user_id),
        "role": role,
        "type": "access",
        "iat":  now,
        "exp":  now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decodes and verifies JWT signature + expiry.
    Raises jose.JWTError on any failure.
    """
    settings = get_settings()
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
