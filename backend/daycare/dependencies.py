import uuid
from dataclasses import dataclass
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from daycare.core.auth.security import decode_access_token
from daycare.core.directory.models import StaffMember
from daycare.core.directory.service import get_staff_member
from daycare.db.session import get_session, set_rls_context

bearer = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    staff: StaffMember
    user_id: uuid.UUID
    organization_id: uuid.UUID


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with get_session() as session:
        yield session


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
        user_id = uuid.UUID(payload["sub"])
        organization_id = uuid.UUID(payload["organization_id"])
    except (JWTError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    await set_rls_context(db, organization_id, user_id)

    staff = await get_staff_member(db, user_id)
    if not staff or staff.status != "active" or staff.organization_id != organization_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return CurrentUser(staff=staff, user_id=user_id, organization_id=organization_id)
