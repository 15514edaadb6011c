import uuid
from datetime import date

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from daycare.db.base import Base
from daycare.core.audit.models import AuditLog  # noqa: F401
from daycare.core.directory.models import Child, Classroom, StaffMember
from daycare.core.incidents.models import Incident  # noqa: F401
from daycare.core.organizations.models import Organization


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    # pysqlite/aiosqlite emit no BEGIN of their own, which breaks SAVEPOINT
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    async with AsyncSession(engine, expire_on_commit=False, autoflush=False) as session:
        yield session


@pytest.fixture
async def org(db):
    org = Organization(
        name="Little Stars Daycare", slug=f"little-stars-{uuid.uuid4().hex[:6]}",
        address="123 Main St", city="Miami", state="FL", zip="33101",
        phone="(305) 555-0100", license_number="C11MD1234",
    )
    db.add(org)
    await db.flush()
    return org


@pytest.fixture
async def other_org(db):
    org = Organization(name="Other Center", slug=f"other-{uuid.uuid4().hex[:6]}")
    db.add(org)
    await db.flush()
    return org


@pytest.fixture
async def teacher(db, org):
    staff = StaffMember(
        organization_id=org.id, email="maria@example.com",
        first_name="María", last_name="López", role="teacher",
    )
    db.add(staff)
    await db.flush()
    return staff


@pytest.fixture
async def director(db, org):
    staff = StaffMember(
        organization_id=org.id, email="ana@example.com",
        first_name="Ana", last_name="Ruiz", role="director",
    )
    db.add(staff)
    await db.flush()
    return staff


@pytest.fixture
async def classroom(db, org):
    room = Classroom(organization_id=org.id, name="Mariposas")
    db.add(room)
    await db.flush()
    return room


@pytest.fixture
async def child(db, org, classroom):
    kid = Child(
        organization_id=org.id, classroom_id=classroom.id,
        first_name="Sofía", last_name="García", date_of_birth=date(2022, 3, 14),
    )
    db.add(kid)
    await db.flush()
    return kid


@pytest.fixture
async def other_child(db, other_org):
    kid = Child(organization_id=other_org.id, first_name="Otro", last_name="Niño", date_of_birth=date(2021, 1, 5))
    db.add(kid)
    await db.flush()
    return kid


@pytest.fixture
async def other_classroom(db, other_org):
    room = Classroom(organization_id=other_org.id, name="Girasoles")
    db.add(room)
    await db.flush()
    return room


@pytest.fixture
async def other_staff(db, other_org):
    staff = StaffMember(
        organization_id=other_org.id, email="otro@example.com",
        first_name="Pedro", last_name="Otro", role="teacher",
    )
    db.add(staff)
    await db.flush()
    return staff
