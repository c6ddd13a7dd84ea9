"""SQLAlchemy ORM models for the Pravado API.

Maps to migration DDL in migrations/versions/:
  001_create_org_membership_tables.py -> Organization, User, OrgMember

Only the membership relation is load-bearing for the request pipeline:
every org-scoped route resolves the caller's organization through
org_members. Business entities live behind the service layer.
"""

from __future__ import annotations

import uuid as _uuid  # noqa: TC003 -- SQLAlchemy resolves Mapped[] annotations at runtime
from datetime import datetime  # noqa: TC003

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

_UUID = postgresql.UUID(as_uuid=True)
_NOW = sa.text("now()")
_GEN_UUID = sa.text("gen_random_uuid()")


class Base(DeclarativeBase):
    """Declarative base for all Pravado ORM models."""


class Organization(Base):
    """Tenant organization."""

    __tablename__ = "organizations"

    id: Mapped[_uuid.UUID] = mapped_column(
        _UUID,
        primary_key=True,
        server_default=_GEN_UUID,
    )
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    slug: Mapped[str] = mapped_column(sa.String(128), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=_NOW,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=_NOW,
    )

    members: Mapped[list[OrgMember]] = relationship(
        "OrgMember",
        back_populates="organization",
        lazy="select",
    )

    __table_args__ = (sa.Index("ix_organizations_slug", "slug", unique=True),)


class User(Base):
    """Platform user (cross-org identity, id matches the auth provider's subject)."""

    __tablename__ = "users"

    id: Mapped[_uuid.UUID] = mapped_column(
        _UUID,
        primary_key=True,
        server_default=_GEN_UUID,
    )
    email: Mapped[str] = mapped_column(sa.String(320), nullable=False, unique=True)
    full_name: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=_NOW,
    )

    memberships: Mapped[list[OrgMember]] = relationship(
        "OrgMember",
        back_populates="user",
        lazy="select",
    )

    __table_args__ = (sa.Index("ix_users_email", "email", unique=True),)


class OrgMember(Base):
    """Organization membership (user <-> org join with role)."""

    __tablename__ = "org_members"

    id: Mapped[_uuid.UUID] = mapped_column(
        _UUID,
        primary_key=True,
        server_default=_GEN_UUID,
    )
    org_id: Mapped[_uuid.UUID] = mapped_column(
        _UUID,
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[_uuid.UUID] = mapped_column(
        _UUID,
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        sa.String(64),
        nullable=False,
        server_default="member",
    )
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean(),
        nullable=False,
        server_default=sa.text("true"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=_NOW,
    )

    organization: Mapped[Organization] = relationship(
        "Organization",
        back_populates="members",
        lazy="select",
    )
    user: Mapped[User] = relationship(
        "User",
        back_populates="memberships",
        lazy="select",
    )

    __table_args__ = (
        sa.UniqueConstraint("org_id", "user_id", name="uq_org_members_org_user"),
        sa.Index("ix_org_members_org_id", "org_id"),
        sa.Index("ix_org_members_user_id_created_at", "user_id", "created_at"),
    )
