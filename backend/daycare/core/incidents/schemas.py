import uuid
from datetime import date, datetime
from typing import Literal
from pydantic import BaseModel, Field, field_validator, model_validator

from daycare.core.directory.schemas import ChildBrief, ClassroomBrief, StaffBrief


IncidentType = Literal["injury", "illness", "behavioral", "medication", "property_damage", "security", "other"]
IncidentSeverity = Literal["minor", "moderate", "serious", "critical"]
IncidentStatus = Literal["open", "pending_signature", "pending_closure", "closed"]
NotificationMethod = Literal["phone", "in_person", "email", "text"]
ParentCopyMethod = Literal["email", "printed", "both"]

TemplateKey = Literal["booboo", "behavioral", "illness", "medication", "accident"]

# Fields that may not be cleared once an incident exists
REQUIRED_FIELDS = ("child_id", "incident_type", "severity", "occurred_at", "description")
NON_NULLABLE_FLAGS = ("parent_notified", "follow_up_required")


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _IncidentFields(BaseModel):
    classroom_id: uuid.UUID | None = None
    location: str | None = Field(None, max_length=255)
    action_taken: str | None = None
    reporting_teacher_id: uuid.UUID | None = None
    witness_staff_ids: list[uuid.UUID] = Field(default_factory=list)
    witness_names: list[str] = Field(default_factory=list)
    parent_notified: bool = False
    parent_notified_method: NotificationMethod | None = None
    parent_response: str | None = None
    follow_up_required: bool = False
    follow_up_date: date | None = None

    @field_validator("location", "action_taken", "parent_response", mode="before")
    @classmethod
    def _empty_text(cls, v):
        return _blank_to_none(v)

    # description is declared on the subclasses; stripped so min_length rejects whitespace-only text
    @field_validator("description", mode="before", check_fields=False)
    @classmethod
    def _strip_description(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("witness_names", mode="before")
    @classmethod
    def _strip_names(cls, v):
        if v is None:
            return []
        return [n.strip() for n in v if isinstance(n, str) and n.strip()]

    @field_validator("witness_staff_ids", mode="before")
    @classmethod
    def _no_null_witnesses(cls, v):
        return [] if v is None else v


class IncidentCreate(_IncidentFields):
    child_id: uuid.UUID
    incident_type: IncidentType
    severity: IncidentSeverity
    occurred_at: datetime
    description: str = Field(..., min_length=1)


class IncidentUpdate(_IncidentFields):
    """
    Partial update. Only fields present in the payload are applied:
    an omitted field is left untouched, an explicit null clears it.
    Status, numbering, signature and closure fields are not editable here.
    """
    child_id: uuid.UUID | None = None
    incident_type: IncidentType | None = None
    severity: IncidentSeverity | None = None
    occurred_at: datetime | None = None
    description: str | None = Field(None, min_length=1)
    witness_staff_ids: list[uuid.UUID] | None = None
    witness_names: list[str] | None = None
    parent_notified: bool | None = None
    follow_up_required: bool | None = None

    @model_validator(mode="after")
    def _required_not_cleared(self):
        cleared = [
            f for f in REQUIRED_FIELDS + NON_NULLABLE_FLAGS
            if f in self.model_fields_set and getattr(self, f) is None
        ]
        if cleared:
            raise ValueError(f"Required fields cannot be cleared: {', '.join(cleared)}")
        return self


class TemplateIncidentCreate(BaseModel):
    template_key: TemplateKey
    child_id: uuid.UUID
    classroom_id: uuid.UUID | None = None


class ParentNotification(BaseModel):
    method: NotificationMethod


class SignatureCreate(BaseModel):
    signature_data: str = Field(..., min_length=1)
    signed_by_name: str = Field(..., min_length=1, max_length=255)
    signed_by_relationship: str = Field(..., min_length=1, max_length=100)

    @field_validator("signed_by_name", "signed_by_relationship")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class RecordSignatureResult(BaseModel):
    success: bool
    message: str
    signed_at: datetime | None = None


class IncidentClose(BaseModel):
    notes: str | None = None


class ParentCopySent(BaseModel):
    method: ParentCopyMethod


class IncidentTemplateRead(BaseModel):
    key: TemplateKey
    name: str
    incident_type: IncidentType
    severity: IncidentSeverity
    description_template: str
    action_template: str


class TemplateIncidentCreated(BaseModel):
    id: uuid.UUID
    incident_number: str
    template: IncidentTemplateRead


class IncidentRead(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    organization_id: uuid.UUID
    incident_number: str
    child_id: uuid.UUID
    classroom_id: uuid.UUID | None
    incident_type: str
    severity: str
    status: str
    occurred_at: datetime
    location: str | None
    description: str
    action_taken: str | None
    reporting_teacher_id: uuid.UUID | None
    witness_staff_ids: list[uuid.UUID]
    witness_names: list[str]
    parent_notified: bool
    parent_notified_at: datetime | None
    parent_notified_method: str | None
    parent_notified_by: uuid.UUID | None
    parent_response: str | None
    parent_copy_sent: bool
    parent_copy_sent_at: datetime | None
    parent_copy_sent_method: str | None
    has_signature: bool
    parent_signed_at: datetime | None
    parent_signed_by_name: str | None
    parent_signed_by_relationship: str | None
    follow_up_required: bool
    follow_up_date: date | None
    follow_up_completed: bool
    follow_up_completed_at: datetime | None
    follow_up_completed_by: uuid.UUID | None
    closed_at: datetime | None
    closed_by: uuid.UUID | None
    closure_notes: str | None
    created_at: datetime
    updated_at: datetime


class IncidentWithDetails(IncidentRead):
    parent_signature_data: str | None
    child: ChildBrief | None = None
    classroom: ClassroomBrief | None = None
    reporting_teacher: StaffBrief | None = None
    witness_staff: list[StaffBrief] = Field(default_factory=list)


class SeverityCounts(BaseModel):
    minor: int = 0
    moderate: int = 0
    serious: int = 0
    critical: int = 0


class IncidentStats(BaseModel):
    total: int
    this_month: int
    open: int
    pending_signature: int
    pending_closure: int
    closed: int
    pending_follow_up: int
    by_severity: SeverityCounts


class AuditEntryRead(BaseModel):
    model_config = {"from_attributes": True}
    action: str
    user_id: uuid.UUID | None
    detail: dict | None
    ip_address: str | None
    created_at: datetime
