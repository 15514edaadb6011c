import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from daycare.settings import get_settings

settings = get_settings()


def create_access_token(user_id: uuid.UUID, organization_id: uuid.UUID, expires_minutes: int | None = None) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    expires = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {"sub": str(user_id), "organization_id": str(organization_id), "type": "access", "exp": expires}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != "access":
        raise JWTError("Wrong token type")
    if "sub" not in payload or "organization_id" not in payload:
        raise JWTError("Missing claims")
    return payload
