import uuid
from datetime import date
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from daycare.core.audit.service import client_ip, list_entries
from daycare.core.incidents import report, service
from daycare.core.incidents.exceptions import IncidentClosureError, IncidentReferenceError, IncidentStateError
from daycare.core.incidents.models import Incident
from daycare.core.incidents.schemas import (
    AuditEntryRead, IncidentClose, IncidentCreate, IncidentRead, IncidentStats,
    IncidentTemplateRead, IncidentUpdate, IncidentWithDetails, ParentCopySent,
    ParentNotification, RecordSignatureResult, SignatureCreate,
    TemplateIncidentCreate, TemplateIncidentCreated,
)
from daycare.core.incidents.templates import INCIDENT_TEMPLATES
from daycare.core.organizations.schemas import OrganizationInfo
from daycare.core.organizations.service import get_organization
from daycare.dependencies import get_db, get_current_user, CurrentUser
from daycare.settings import get_settings

router = APIRouter(tags=["incidents"])


async def _get_or_404(db: AsyncSession, current: CurrentUser, incident_id: uuid.UUID) -> Incident:
    incident = await service.get_incident(db, current.organization_id, incident_id)
    if not incident:
        raise HTTPException(404, "Incident not found")
    return incident


def _template_read(key: str) -> IncidentTemplateRead:
    t = INCIDENT_TEMPLATES[key]
    return IncidentTemplateRead(
        key=key, name=t.name, incident_type=t.incident_type, severity=t.severity,
        description_template=t.description_template, action_template=t.action_template,
    )


@router.get("/incidents", response_model=list[IncidentRead])
async def list_incidents(
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.list_all(db, current.organization_id)


@router.get("/incidents/pending-signature", response_model=list[IncidentRead])
async def list_pending_signature(
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.list_pending_signature(db, current.organization_id)


@router.get("/incidents/follow-up", response_model=list[IncidentRead])
async def list_requiring_follow_up(
    as_of: date | None = None,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.list_requiring_follow_up(db, current.organization_id, as_of)


@router.get("/incidents/stats", response_model=IncidentStats)
async def incident_stats(
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.get_stats(db, current.organization_id)


@router.get("/incidents/templates", response_model=list[IncidentTemplateRead])
async def list_templates(_: CurrentUser = Depends(get_current_user)):
    return [_template_read(key) for key in INCIDENT_TEMPLATES]


@router.get("/children/{child_id}/incidents", response_model=list[IncidentRead])
async def list_child_incidents(
    child_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.list_by_child(db, current.organization_id, child_id)


@router.post("/incidents", response_model=IncidentRead, status_code=201)
async def create_incident(
    data: IncidentCreate,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.create(db, current.organization_id, data, current.user_id)
    except IncidentReferenceError as exc:
        raise HTTPException(422, str(exc))


@router.post("/incidents/from-template", response_model=TemplateIncidentCreated, status_code=201)
async def create_from_template(
    data: TemplateIncidentCreate,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    try:
        incident, _ = await service.create_from_template(
            db, current.organization_id, data.template_key, data.child_id,
            classroom_id=data.classroom_id, reported_by=current.user_id,
        )
    except IncidentReferenceError as exc:
        raise HTTPException(422, str(exc))
    return TemplateIncidentCreated(
        id=incident.id, incident_number=incident.incident_number, template=_template_read(data.template_key),
    )


@router.get("/incidents/{incident_id}", response_model=IncidentWithDetails)
async def get_incident(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    incident = await _get_or_404(db, current, incident_id)
    return await service.load_details(db, incident)


@router.patch("/incidents/{incident_id}", response_model=IncidentRead)
async def update_incident(
    incident_id: uuid.UUID,
    data: IncidentUpdate,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    await _get_or_404(db, current, incident_id)
    try:
        return await service.update(db, incident_id, data, current.user_id)
    except IncidentReferenceError as exc:
        raise HTTPException(422, str(exc))
    except IncidentStateError as exc:
        raise HTTPException(409, str(exc))


@router.post("/incidents/{incident_id}/notify-parent", response_model=IncidentRead)
async def notify_parent(
    incident_id: uuid.UUID,
    data: ParentNotification,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    await _get_or_404(db, current, incident_id)
    return await service.mark_parent_notified(db, incident_id, data.method, current.user_id)


@router.post("/incidents/{incident_id}/signature", response_model=RecordSignatureResult)
async def record_signature(
    incident_id: uuid.UUID,
    data: SignatureCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    await _get_or_404(db, current, incident_id)
    return await service.record_signature(
        db, incident_id, data, recorded_by=current.user_id, ip_address=client_ip(request),
    )


@router.post("/incidents/{incident_id}/close", response_model=IncidentRead)
async def close_incident(
    incident_id: uuid.UUID,
    data: IncidentClose,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    await _get_or_404(db, current, incident_id)
    try:
        return await service.close_incident(db, incident_id, current.user_id, data.notes)
    except (IncidentClosureError, IncidentStateError) as exc:
        raise HTTPException(409, str(exc))


@router.post("/incidents/{incident_id}/follow-up/complete", response_model=IncidentRead)
async def complete_follow_up(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    await _get_or_404(db, current, incident_id)
    try:
        return await service.complete_follow_up(db, incident_id, current.user_id)
    except IncidentStateError as exc:
        raise HTTPException(409, str(exc))


@router.post("/incidents/{incident_id}/parent-copy", response_model=IncidentRead)
async def parent_copy_sent(
    incident_id: uuid.UUID,
    data: ParentCopySent,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    await _get_or_404(db, current, incident_id)
    return await service.mark_parent_copy_sent(db, incident_id, data.method, current.user_id)


@router.get("/incidents/{incident_id}/history", response_model=list[AuditEntryRead])
async def incident_history(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    await _get_or_404(db, current, incident_id)
    return await list_entries(db, "incident", str(incident_id))


# ── Report ────────────────────────────────────────────────────────────────────

async def _render(db: AsyncSession, current: CurrentUser, incident_id: uuid.UUID) -> tuple[str, IncidentWithDetails]:
    incident = await _get_or_404(db, current, incident_id)
    details = await service.load_details(db, incident)
    organization = await get_organization(db, current.organization_id)
    if not organization:
        raise HTTPException(404, "Organization not found")
    document = report.render_incident_report(
        details,
        OrganizationInfo.model_validate(organization),
        tz=ZoneInfo(get_settings().REPORT_TIMEZONE),
    )
    return document, details


@router.get("/incidents/{incident_id}/report")
async def preview_report(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    document, _ = await _render(db, current, incident_id)
    return report.preview_response(document)


@router.get("/incidents/{incident_id}/report/print")
async def print_report(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    document, _ = await _render(db, current, incident_id)
    return report.printable_response(document)


@router.get("/incidents/{incident_id}/report/download")
async def download_report(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    document, details = await _render(db, current, incident_id)
    return report.download_response(document, details)


@router.get("/incidents/{incident_id}/report/pdf")
async def download_report_pdf(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
):
    document, details = await _render(db, current, incident_id)
    return report.pdf_response(document, details)
