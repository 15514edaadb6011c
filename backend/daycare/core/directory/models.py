import uuid
from datetime import date
from sqlalchemy import Date, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from daycare.db.base import Base, TimestampMixin, SoftDeleteMixin, OrganizationScopedMixin


class StaffMember(Base, TimestampMixin, SoftDeleteMixin, OrganizationScopedMixin):
    __tablename__ = "staff_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="teacher")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")

    __table_args__ = (UniqueConstraint("organization_id", "email", name="uq_staff_member_org_email"),)


class Classroom(Base, TimestampMixin, SoftDeleteMixin, OrganizationScopedMixin):
    __tablename__ = "classrooms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Child(Base, TimestampMixin, SoftDeleteMixin, OrganizationScopedMixin):
    __tablename__ = "children"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    classroom_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("classrooms.id", ondelete="SET NULL"), nullable=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
