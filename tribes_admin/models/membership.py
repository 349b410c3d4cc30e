"""Tenants and membership requests awaiting approval."""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base


class MembershipStatus(str, Enum):
    """Status of a tenant membership."""
    PENDING = "pending"  # Requested, waiting for an administrator
    ACTIVE = "active"    # Granted
    DENIED = "denied"    # Refused


class MembershipRole(str, Enum):
    """Role granted within a tenant."""
    TENANT_ADMIN = "tenant_admin"
    TENANT_USER = "tenant_user"
    VIEWER = "viewer"


class PortalContext(str, Enum):
    """Workspaces a member can enter."""
    PUBLISHING = "publishing"
    LICENSING = "licensing"


class Tenant(Base):
    """An organization using the platform."""

    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Tenant {self.slug}>"


class TenantMembership(Base):
    """A user's membership (or request for one) in a tenant."""

    __tablename__ = "tenant_memberships"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Requested tenant; the approver may assign another
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=MembershipStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(30), nullable=True)
    allowed_contexts: Mapped[list] = mapped_column(JSON, nullable=True)
    default_context: Mapped[str] = mapped_column(String(30), nullable=True)

    processed_by: Mapped[str] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    tenant: Mapped[Optional["Tenant"]] = relationship("Tenant")

    def __repr__(self) -> str:
        return f"<TenantMembership {self.user_email} status={self.status}>"
