import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.base import BaseHTTPMiddleware

from daycare.core.audit.models import AuditLog
from daycare.db.base import utcnow


@dataclass(frozen=True)
class AuditContext:
    ip_address: str | None

    @classmethod
    def from_request(cls, request: Request) -> "AuditContext":
        # first hop of X-Forwarded-For is the original client behind the proxy
        forwarded = request.headers.get("x-forwarded-for", "")
        if forwarded:
            return cls(ip_address=forwarded.split(",")[0].strip() or None)
        return cls(ip_address=request.client.host if request.client else None)


class AuditMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.audit_ctx = AuditContext.from_request(request)
        return await call_next(request)


def client_ip(request: Request) -> str | None:
    ctx = getattr(request.state, "audit_ctx", None)
    return ctx.ip_address if ctx else None


async def audit(
    db: AsyncSession,
    *,
    organization_id: uuid.UUID | None,
    user_id: uuid.UUID | None,
    action: str,
    resource_type: str,
    resource_id: str | None = None,
    detail: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """Append one audit row in the caller's transaction."""
    entry = AuditLog(
        organization_id=organization_id,
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        detail=detail,
        ip_address=ip_address,
        created_at=utcnow(),
    )
    db.add(entry)
    await db.flush()
    return entry


async def list_entries(db: AsyncSession, resource_type: str, resource_id: str) -> list[AuditLog]:
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id)
        .order_by(AuditLog.created_at.asc())
    )
    return list(result.scalars().all())
