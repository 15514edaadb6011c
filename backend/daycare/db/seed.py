import asyncio
import os
import uuid
from datetime import date

from sqlalchemy import select

from daycare.core.auth.security import create_access_token
from daycare.core.directory.models import Child, Classroom, StaffMember
from daycare.core.organizations.models import Organization
from daycare.db.session import get_session, organization_session


async def seed() -> None:
    org_name = os.getenv("SEED_ORG_NAME", "Demo Daycare")
    org_slug = os.getenv("SEED_ORG_SLUG", "demo-daycare")
    staff_email = os.getenv("SEED_STAFF_EMAIL", "director@daycare.local").lower()

    # organizations carry no RLS policy
    async with get_session() as db:
        existing = await db.execute(select(Organization).where(Organization.slug == org_slug))
        org = existing.scalar_one_or_none()

        if not org:
            org = Organization(
                id=uuid.uuid4(), name=org_name, slug=org_slug, status="active",
                address="100 Main St", city="Miami", state="FL", zip="33101",
                phone="(305) 555-0100", license_number="C11MD0001",
            )
            db.add(org)
            await db.flush()
            print(f"✅  Organization: {org.slug} ({org.id})")
        else:
            print(f"⏭️   Organization exists: {org.slug}")
        org_id = org.id

    async with organization_session(org_id) as db:
        existing_staff = await db.execute(
            select(StaffMember).where(StaffMember.organization_id == org_id, StaffMember.email == staff_email)
        )
        staff = existing_staff.scalar_one_or_none()

        if not staff:
            staff = StaffMember(
                id=uuid.uuid4(), organization_id=org_id, email=staff_email,
                first_name="Demo", last_name="Director", role="director",
            )
            db.add(staff)
            classroom = Classroom(id=uuid.uuid4(), organization_id=org_id, name="Mariposas")
            db.add(classroom)
            await db.flush()
            child = Child(
                id=uuid.uuid4(), organization_id=org_id, classroom_id=classroom.id,
                first_name="Sofía", last_name="Demo", date_of_birth=date(2022, 3, 14),
            )
            db.add(child)
            await db.flush()
            print(f"✅  Staff: {staff.email}")
            print(f"✅  Child: {child.first_name} {child.last_name} ({child.id})")
        else:
            print(f"⏭️   Staff exists: {staff.email}")

        token = create_access_token(staff.id, org_id, expires_minutes=60 * 24)
        print(f"🔑  Dev token (24h): {token}")

    print("Done.")


if __name__ == "__main__":
    asyncio.run(seed())
