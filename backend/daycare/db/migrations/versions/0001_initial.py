"""Initial schema – organizations, directory, audit log, incidents

Revision ID: 0001_initial
Revises:
Create Date: 2025-01-01 00:00:00
"""
from typing import Sequence, Union
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="active"),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(50), nullable=True),
        sa.Column("zip", sa.String(20), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("logo_url", sa.String(1000), nullable=True),
        sa.Column("license_number", sa.String(100), nullable=True),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "staff_members",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="teacher"),
        sa.Column("status", sa.String(50), nullable=False, server_default="active"),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "email", name="uq_staff_member_org_email"),
    )
    op.create_index("ix_staff_members_organization_id", "staff_members", ["organization_id"])
    op.create_index("ix_staff_members_email", "staff_members", ["email"])

    op.create_table(
        "classrooms",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_classrooms_organization_id", "classrooms", ["organization_id"])

    op.create_table(
        "children",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("classroom_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("photo_url", sa.String(1000), nullable=True),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["classroom_id"], ["classrooms.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_children_organization_id", "children", ["organization_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(100), nullable=False),
        sa.Column("resource_id", sa.String(255), nullable=True),
        sa.Column("detail", postgresql.JSONB, nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_organization_id", "audit_log", ["organization_id"])
    op.create_index("ix_audit_log_user_id", "audit_log", ["user_id"])
    op.create_index("ix_audit_log_org_created", "audit_log", ["organization_id", "created_at"])

    op.create_table(
        "incidents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("incident_number", sa.String(20), nullable=False),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("classroom_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("incident_type", sa.String(50), nullable=False),
        sa.Column("severity", sa.String(50), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="open"),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("action_taken", sa.Text, nullable=True),
        sa.Column("reporting_teacher_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("witness_staff_ids", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("witness_names", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("parent_notified", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("parent_notified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("parent_notified_method", sa.String(20), nullable=True),
        sa.Column("parent_notified_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("parent_response", sa.Text, nullable=True),
        sa.Column("parent_copy_sent", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("parent_copy_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("parent_copy_sent_method", sa.String(20), nullable=True),
        sa.Column("parent_signature_data", sa.Text, nullable=True),
        sa.Column("parent_signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("parent_signed_by_name", sa.String(255), nullable=True),
        sa.Column("parent_signed_by_relationship", sa.String(100), nullable=True),
        sa.Column("signature_ip_address", sa.String(45), nullable=True),
        sa.Column("follow_up_required", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("follow_up_date", sa.Date, nullable=True),
        sa.Column("follow_up_completed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("follow_up_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("follow_up_completed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("closure_notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["child_id"], ["children.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["classroom_id"], ["classrooms.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["reporting_teacher_id"], ["staff_members.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["parent_notified_by"], ["staff_members.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["follow_up_completed_by"], ["staff_members.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["closed_by"], ["staff_members.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "incident_number", name="uq_incident_org_number"),
        # closed implies a guardian signature on record
        sa.CheckConstraint(
            "status <> 'closed' OR parent_signature_data IS NOT NULL",
            name="ck_incident_closed_requires_signature",
        ),
    )
    op.create_index("ix_incidents_organization_id", "incidents", ["organization_id"])
    op.create_index("ix_incidents_child_id", "incidents", ["child_id"])
    op.create_index("ix_incidents_org_status", "incidents", ["organization_id", "status"])
    op.create_index("ix_incidents_org_occurred", "incidents", ["organization_id", "occurred_at"])


def downgrade() -> None:
    op.drop_table("incidents")
    op.drop_table("audit_log")
    op.drop_table("children")
    op.drop_table("classrooms")
    op.drop_table("staff_members")
    op.drop_table("organizations")
