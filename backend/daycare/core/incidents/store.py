"""
Persistence for incident records.

Plain queries and writes only; status rules live in the lifecycle service.
Not-found on reads is ``None``. Writes against an unknown id raise
``sqlalchemy.exc.NoResultFound``; every other database error propagates
unchanged.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from daycare.core.incidents.models import SEVERITIES, STATUSES, Incident


def format_incident_number(year: int, seq: int) -> str:
    return f"INC-{year}-{seq:04d}"


def _select_incident():
    # populate_existing so re-reads after a write see the database state
    return select(Incident).execution_options(populate_existing=True)


async def list_all(db: AsyncSession, organization_id: uuid.UUID) -> list[Incident]:
    result = await db.execute(
        _select_incident()
        .where(Incident.organization_id == organization_id)
        .order_by(Incident.occurred_at.desc())
    )
    return list(result.scalars().all())


async def list_pending_signature(db: AsyncSession, organization_id: uuid.UUID) -> list[Incident]:
    result = await db.execute(
        _select_incident()
        .where(Incident.organization_id == organization_id, Incident.status == "pending_signature")
        .order_by(Incident.occurred_at.desc())
    )
    return list(result.scalars().all())


async def list_requiring_follow_up(db: AsyncSession, organization_id: uuid.UUID, as_of: date) -> list[Incident]:
    result = await db.execute(
        _select_incident()
        .where(
            Incident.organization_id == organization_id,
            Incident.follow_up_required == True,
            Incident.follow_up_completed == False,
            Incident.follow_up_date <= as_of,
        )
        .order_by(Incident.follow_up_date.asc())
    )
    return list(result.scalars().all())


async def list_by_child(db: AsyncSession, organization_id: uuid.UUID, child_id: uuid.UUID) -> list[Incident]:
    result = await db.execute(
        _select_incident()
        .where(Incident.organization_id == organization_id, Incident.child_id == child_id)
        .order_by(Incident.occurred_at.desc())
    )
    return list(result.scalars().all())


async def get_by_id(db: AsyncSession, incident_id: uuid.UUID) -> Incident | None:
    result = await db.execute(_select_incident().where(Incident.id == incident_id))
    return result.scalar_one_or_none()


async def lock_by_id(db: AsyncSession, incident_id: uuid.UUID) -> Incident:
    """Read an incident for a read-then-write transition; raises NoResultFound."""
    result = await db.execute(
        _select_incident().where(Incident.id == incident_id).with_for_update()
    )
    return result.scalar_one()


async def insert(db: AsyncSession, organization_id: uuid.UUID, fields: dict[str, Any]) -> Incident:
    incident = Incident(organization_id=organization_id, **fields)
    db.add(incident)
    await db.flush()
    return await get_by_id(db, incident.id)


async def update(db: AsyncSession, incident_id: uuid.UUID, fields: dict[str, Any]) -> Incident:
    result = await db.execute(_select_incident().where(Incident.id == incident_id))
    incident = result.scalar_one()
    for field, value in fields.items():
        setattr(incident, field, value)
    await db.flush()
    return await get_by_id(db, incident_id)


async def compute_next_incident_number(db: AsyncSession, organization_id: uuid.UUID, year: int) -> str:
    year_start = datetime(year, 1, 1, tzinfo=timezone.utc)
    result = await db.execute(
        select(func.count(Incident.id)).where(
            Incident.organization_id == organization_id,
            Incident.created_at >= year_start,
        )
    )
    count = result.scalar_one() or 0
    return format_incident_number(year, count + 1)


async def get_stats(db: AsyncSession, organization_id: uuid.UUID, since: datetime) -> dict[str, Any]:
    scoped = Incident.organization_id == organization_id

    status_rows = await db.execute(
        select(Incident.status, func.count(Incident.id)).where(scoped).group_by(Incident.status)
    )
    by_status = {s: 0 for s in STATUSES}
    by_status.update({status: n for status, n in status_rows.all()})

    severity_rows = await db.execute(
        select(Incident.severity, func.count(Incident.id)).where(scoped).group_by(Incident.severity)
    )
    by_severity = {s: 0 for s in SEVERITIES}
    by_severity.update({severity: n for severity, n in severity_rows.all()})

    totals = await db.execute(
        select(
            func.count(Incident.id),
            func.coalesce(func.sum(case((Incident.created_at >= since, 1), else_=0)), 0),
            func.coalesce(func.sum(case(
                ((Incident.follow_up_required == True) & (Incident.follow_up_completed == False), 1),
                else_=0,
            )), 0),
        ).where(scoped)
    )
    total, created_since, pending_follow_up = totals.one()

    return {
        "total": total,
        "created_since": int(created_since),
        "pending_follow_up": int(pending_follow_up),
        "by_status": by_status,
        "by_severity": by_severity,
    }
