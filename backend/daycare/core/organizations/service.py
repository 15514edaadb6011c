import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daycare.core.organizations.models import Organization


async def get_organization(db: AsyncSession, organization_id: uuid.UUID) -> Organization | None:
    result = await db.execute(
        select(Organization).where(Organization.id == organization_id, Organization.is_deleted == False)
    )
    return result.scalar_one_or_none()
