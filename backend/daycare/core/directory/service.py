import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daycare.core.directory.models import Child, Classroom, StaffMember


async def get_staff_member(db: AsyncSession, staff_id: uuid.UUID) -> StaffMember | None:
    result = await db.execute(select(StaffMember).where(StaffMember.id == staff_id, StaffMember.is_deleted == False))
    return result.scalar_one_or_none()


async def list_staff_by_ids(db: AsyncSession, organization_id: uuid.UUID, staff_ids: list[uuid.UUID]) -> list[StaffMember]:
    if not staff_ids:
        return []
    result = await db.execute(
        select(StaffMember)
        .where(StaffMember.organization_id == organization_id, StaffMember.id.in_(staff_ids))
        .order_by(StaffMember.last_name, StaffMember.first_name)
    )
    return list(result.scalars().all())


async def child_in_organization(db: AsyncSession, organization_id: uuid.UUID, child_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(Child.id).where(Child.id == child_id, Child.organization_id == organization_id, Child.is_deleted == False)
    )
    return result.scalar_one_or_none() is not None


async def classroom_in_organization(db: AsyncSession, organization_id: uuid.UUID, classroom_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(Classroom.id).where(
            Classroom.id == classroom_id, Classroom.organization_id == organization_id, Classroom.is_deleted == False,
        )
    )
    return result.scalar_one_or_none() is not None
