import uuid
from datetime import date, datetime
from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from daycare.core.directory.models import Child, Classroom, StaffMember
from daycare.db.base import Base, JSONType, TimestampMixin, OrganizationScopedMixin


SEVERITIES = ("minor", "moderate", "serious", "critical")

# Ordered: a transition may only move an incident forward in this tuple
STATUSES = ("open", "pending_signature", "pending_closure", "closed")


class Incident(Base, TimestampMixin, OrganizationScopedMixin):
    """
    Incident report for a child.
    status flow: open -> pending_signature -> pending_closure -> closed

    Closure requires a guardian signature (parent_signature_data). Incidents
    are never deleted; closed is terminal.
    """
    __tablename__ = "incidents"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    incident_number: Mapped[str] = mapped_column(String(20), nullable=False)
    child_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("children.id", ondelete="RESTRICT"), nullable=False, index=True)
    classroom_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("classrooms.id", ondelete="SET NULL"), nullable=True)
    incident_type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="open")
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    action_taken: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Attribution
    reporting_teacher_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True)
    witness_staff_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    witness_names: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    # Parent notification
    parent_notified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    parent_notified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    parent_notified_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    parent_notified_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True)
    parent_response: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_copy_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    parent_copy_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    parent_copy_sent_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # Guardian signature
    parent_signature_data: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    parent_signed_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    parent_signed_by_relationship: Mapped[str | None] = mapped_column(String(100), nullable=True)
    signature_ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    # Follow-up
    follow_up_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    follow_up_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    follow_up_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    follow_up_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    follow_up_completed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True)
    # Closure
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True)
    closure_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    child: Mapped[Child] = relationship(lazy="selectin")
    classroom: Mapped[Classroom | None] = relationship(lazy="selectin")
    reporting_teacher: Mapped[StaffMember | None] = relationship(foreign_keys=[reporting_teacher_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("organization_id", "incident_number", name="uq_incident_org_number"),
        CheckConstraint(
            "status <> 'closed' OR parent_signature_data IS NOT NULL",
            name="ck_incident_closed_requires_signature",
        ),
        Index("ix_incidents_org_status", "organization_id", "status"),
        Index("ix_incidents_org_occurred", "organization_id", "occurred_at"),
    )

    @property
    def has_signature(self) -> bool:
        return bool(self.parent_signature_data)
