"""
Incident lifecycle.

    open -> pending_signature -> pending_closure -> closed

Status only changes through the named transitions in this module. The
generic ``update`` never touches it. Closing re-reads the row and refuses
to proceed without a guardian signature.
"""
import logging
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daycare.core.audit.service import audit
from daycare.core.directory.schemas import StaffBrief
from daycare.core.directory.service import child_in_organization, classroom_in_organization, list_staff_by_ids
from daycare.core.incidents import store
from daycare.core.incidents.exceptions import (
    IncidentClosureError, IncidentReferenceError, IncidentStateError, UnknownTemplateError,
)
from daycare.core.incidents.models import STATUSES, Incident
from daycare.core.incidents.schemas import (
    IncidentCreate, IncidentStats, IncidentUpdate, IncidentWithDetails,
    RecordSignatureResult, SeverityCounts, SignatureCreate,
)
from daycare.core.incidents.templates import IncidentTemplate, get_template
from daycare.db.base import utcnow
from daycare.settings import get_settings

logger = logging.getLogger(__name__)

SIGNATURE_OK = "Firma registrada exitosamente"
SIGNATURE_FAILED = "Error al registrar la firma"
SIGNATURE_CLOSED = "El incidente ya está cerrado y no admite nuevas firmas"


def _advance(current: str, target: str) -> dict[str, Any]:
    """Status change moving forward to ``target``, or nothing if already there or past it."""
    if STATUSES.index(target) > STATUSES.index(current):
        return {"status": target}
    return {}


def _column_values(fields: dict[str, Any]) -> dict[str, Any]:
    # witness ids are stored as a JSON array of strings
    if fields.get("witness_staff_ids") is not None:
        fields["witness_staff_ids"] = [str(i) for i in fields["witness_staff_ids"]]
    return fields


def _is_number_collision(exc: IntegrityError) -> bool:
    msg = str(exc.orig)
    return "uq_incident_org_number" in msg or "incidents.incident_number" in msg


async def _audit(db: AsyncSession, incident: Incident, action: str, user_id: uuid.UUID | None, **detail) -> None:
    await audit(
        db,
        organization_id=incident.organization_id,
        user_id=user_id,
        action=action,
        resource_type="incident",
        resource_id=str(incident.id),
        detail={"incident_number": incident.incident_number, "status": incident.status, **detail},
        ip_address=detail.get("ip_address"),
    )


async def _check_references(db: AsyncSession, organization_id: uuid.UUID, fields: dict[str, Any]) -> None:
    """Every child, classroom and staff id on the incident must belong to ``organization_id``."""
    child_id = fields.get("child_id")
    if child_id is not None and not await child_in_organization(db, organization_id, child_id):
        raise IncidentReferenceError("child_id", child_id)
    classroom_id = fields.get("classroom_id")
    if classroom_id is not None and not await classroom_in_organization(db, organization_id, classroom_id):
        raise IncidentReferenceError("classroom_id", classroom_id)

    wanted = []
    if fields.get("reporting_teacher_id") is not None:
        wanted.append(("reporting_teacher_id", uuid.UUID(str(fields["reporting_teacher_id"]))))
    wanted += [("witness_staff_ids", uuid.UUID(str(i))) for i in fields.get("witness_staff_ids") or []]
    if not wanted:
        return
    found = {s.id for s in await list_staff_by_ids(db, organization_id, [staff_id for _, staff_id in wanted])}
    for field, staff_id in wanted:
        if staff_id not in found:
            raise IncidentReferenceError(field, staff_id)


async def _insert_numbered(db: AsyncSession, organization_id: uuid.UUID, fields: dict[str, Any]) -> Incident:
    """
    Insert with the next INC-<year>-<seq> number. Two concurrent creates can
    compute the same number; the unique constraint rejects the loser, which
    recomputes inside a fresh savepoint.
    """
    attempts = get_settings().INCIDENT_NUMBER_MAX_ATTEMPTS
    year = utcnow().year
    attempt = 1
    while True:
        number = await store.compute_next_incident_number(db, organization_id, year)
        try:
            async with db.begin_nested():
                return await store.insert(db, organization_id, {**fields, "incident_number": number})
        except IntegrityError as exc:
            if not _is_number_collision(exc) or attempt >= attempts:
                raise
            logger.warning("Incident number %s already taken in org %s, retrying (%d/%d)",
                           number, organization_id, attempt, attempts)
            attempt += 1


# ── Reads ─────────────────────────────────────────────────────────────────────

async def get_incident(db: AsyncSession, organization_id: uuid.UUID, incident_id: uuid.UUID) -> Incident | None:
    incident = await store.get_by_id(db, incident_id)
    if incident is None or incident.organization_id != organization_id:
        return None
    return incident


async def list_all(db: AsyncSession, organization_id: uuid.UUID) -> list[Incident]:
    return await store.list_all(db, organization_id)


async def list_pending_signature(db: AsyncSession, organization_id: uuid.UUID) -> list[Incident]:
    return await store.list_pending_signature(db, organization_id)


async def list_requiring_follow_up(
    db: AsyncSession, organization_id: uuid.UUID, as_of: date | None = None
) -> list[Incident]:
    return await store.list_requiring_follow_up(db, organization_id, as_of or utcnow().date())


async def list_by_child(db: AsyncSession, organization_id: uuid.UUID, child_id: uuid.UUID) -> list[Incident]:
    return await store.list_by_child(db, organization_id, child_id)


async def load_details(db: AsyncSession, incident: Incident) -> IncidentWithDetails:
    details = IncidentWithDetails.model_validate(incident)
    staff_ids = [uuid.UUID(str(i)) for i in incident.witness_staff_ids or []]
    witnesses = await list_staff_by_ids(db, incident.organization_id, staff_ids)
    return details.model_copy(update={"witness_staff": [StaffBrief.model_validate(s) for s in witnesses]})


async def get_stats(db: AsyncSession, organization_id: uuid.UUID, now: datetime | None = None) -> IncidentStats:
    now = now or utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    raw = await store.get_stats(db, organization_id, since=month_start)
    by_status = raw["by_status"]
    return IncidentStats(
        total=raw["total"],
        this_month=raw["created_since"],
        open=by_status["open"],
        pending_signature=by_status["pending_signature"],
        pending_closure=by_status["pending_closure"],
        closed=by_status["closed"],
        pending_follow_up=raw["pending_follow_up"],
        by_severity=SeverityCounts(**raw["by_severity"]),
    )


# ── Creation ──────────────────────────────────────────────────────────────────

async def create_from_template(
    db: AsyncSession,
    organization_id: uuid.UUID,
    template_key: str,
    child_id: uuid.UUID,
    classroom_id: uuid.UUID | None = None,
    reported_by: uuid.UUID | None = None,
) -> tuple[Incident, IncidentTemplate]:
    template = get_template(template_key)
    if template is None:
        raise UnknownTemplateError(template_key)

    fields = {
        "child_id": child_id,
        "classroom_id": classroom_id,
        "incident_type": template.incident_type,
        "severity": template.severity,
        "occurred_at": utcnow(),
        "description": template.description_template,
        "action_taken": template.action_template,
        "reporting_teacher_id": reported_by,
        "parent_notified": False,
        "status": "open",
    }
    await _check_references(db, organization_id, fields)
    incident = await _insert_numbered(db, organization_id, fields)
    await _audit(db, incident, "incident.created", reported_by, template=template_key)
    logger.info("Incident %s created from template %s", incident.incident_number, template_key)
    return incident, template


async def create(
    db: AsyncSession,
    organization_id: uuid.UUID,
    data: IncidentCreate,
    created_by: uuid.UUID | None = None,
) -> Incident:
    fields = _column_values(data.model_dump())
    if fields["reporting_teacher_id"] is None:
        fields["reporting_teacher_id"] = created_by
    if fields["parent_notified"]:
        fields["parent_notified_at"] = utcnow()
        fields["parent_notified_by"] = created_by
    fields["status"] = "open"

    await _check_references(db, organization_id, fields)
    incident = await _insert_numbered(db, organization_id, fields)
    await _audit(db, incident, "incident.created", created_by)
    logger.info("Incident %s created (%s/%s)", incident.incident_number, incident.incident_type, incident.severity)
    return incident


# ── Edits ─────────────────────────────────────────────────────────────────────

async def update(
    db: AsyncSession,
    incident_id: uuid.UUID,
    data: IncidentUpdate,
    updated_by: uuid.UUID | None = None,
) -> Incident:
    current = await store.lock_by_id(db, incident_id)
    if current.status == "closed":
        raise IncidentStateError(current.status, "Closed incidents cannot be edited")

    fields = _column_values(data.model_dump(exclude_unset=True))
    await _check_references(db, current.organization_id, fields)
    if "parent_notified" in fields:
        if fields["parent_notified"]:
            fields["parent_notified_at"] = utcnow()
            fields.setdefault("parent_notified_by", updated_by)
        else:
            fields["parent_notified_at"] = None
    return await store.update(db, incident_id, fields)


# ── Transitions ───────────────────────────────────────────────────────────────

async def mark_parent_notified(
    db: AsyncSession,
    incident_id: uuid.UUID,
    method: str,
    notified_by: uuid.UUID,
) -> Incident:
    current = await store.lock_by_id(db, incident_id)
    fields = {
        "parent_notified": True,
        "parent_notified_at": utcnow(),
        "parent_notified_method": method,
        "parent_notified_by": notified_by,
        **_advance(current.status, "pending_signature"),
    }
    incident = await store.update(db, incident_id, fields)
    await _audit(db, incident, "incident.parent_notified", notified_by, method=method)
    logger.info("Incident %s: parent notified by %s (%s)", incident.incident_number, method, incident.status)
    return incident


async def record_signature(
    db: AsyncSession,
    incident_id: uuid.UUID,
    data: SignatureCreate,
    recorded_by: uuid.UUID | None = None,
    ip_address: str | None = None,
) -> RecordSignatureResult:
    signed_at = utcnow()
    try:
        async with db.begin_nested():
            current = await store.lock_by_id(db, incident_id)
            if current.status == "closed":
                return RecordSignatureResult(success=False, message=SIGNATURE_CLOSED)
            incident = await store.update(db, incident_id, {
                "parent_signature_data": data.signature_data,
                "parent_signed_at": signed_at,
                "parent_signed_by_name": data.signed_by_name,
                "parent_signed_by_relationship": data.signed_by_relationship,
                "signature_ip_address": ip_address,
                **_advance(current.status, "pending_closure"),
            })
            await _audit(db, incident, "incident.signed", recorded_by,
                         signed_by_name=data.signed_by_name, ip_address=ip_address)
    except SQLAlchemyError:
        logger.exception("Error recording signature for incident %s", incident_id)
        return RecordSignatureResult(success=False, message=SIGNATURE_FAILED)

    logger.info("Incident %s signed by %s (%s)", incident.incident_number,
                data.signed_by_name, data.signed_by_relationship)
    return RecordSignatureResult(success=True, message=SIGNATURE_OK, signed_at=signed_at)


async def close_incident(
    db: AsyncSession,
    incident_id: uuid.UUID,
    closed_by: uuid.UUID,
    notes: str | None = None,
) -> Incident:
    current = await store.lock_by_id(db, incident_id)
    if not current.parent_signature_data:
        logger.warning("Refused to close incident %s without guardian signature", current.incident_number)
        raise IncidentClosureError(incident_id)
    if current.status == "closed":
        raise IncidentStateError(current.status, "Incident is already closed")

    incident = await store.update(db, incident_id, {
        "status": "closed",
        "closed_at": utcnow(),
        "closed_by": closed_by,
        "closure_notes": notes or None,
    })
    await _audit(db, incident, "incident.closed", closed_by)
    logger.info("Incident %s closed", incident.incident_number)
    return incident


async def complete_follow_up(
    db: AsyncSession,
    incident_id: uuid.UUID,
    completed_by: uuid.UUID,
) -> Incident:
    current = await store.lock_by_id(db, incident_id)
    if not current.follow_up_required:
        raise IncidentStateError(current.status, "Incident does not require follow-up")
    if current.follow_up_completed:
        raise IncidentStateError(current.status, "Follow-up was already completed")

    incident = await store.update(db, incident_id, {
        "follow_up_completed": True,
        "follow_up_completed_at": utcnow(),
        "follow_up_completed_by": completed_by,
    })
    await _audit(db, incident, "incident.follow_up_completed", completed_by)
    logger.info("Incident %s: follow-up completed", incident.incident_number)
    return incident


async def mark_parent_copy_sent(
    db: AsyncSession,
    incident_id: uuid.UUID,
    method: str,
    sent_by: uuid.UUID,
) -> Incident:
    await store.lock_by_id(db, incident_id)
    incident = await store.update(db, incident_id, {
        "parent_copy_sent": True,
        "parent_copy_sent_at": utcnow(),
        "parent_copy_sent_method": method,
    })
    await _audit(db, incident, "incident.parent_copy_sent", sent_by, method=method)
    logger.info("Incident %s: report copy sent to guardian (%s)", incident.incident_number, method)
    return incident
