"""Client account model (rights-holders whose catalogue is administered)."""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base


class ClientStatus(str, Enum):
    """Lifecycle of a client account."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClientAccount(Base):
    """A client submitting songs for administration."""

    __tablename__ = "client_accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    primary_email: Mapped[str] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ClientStatus.ACTIVE.value,
        nullable=False,
    )
    notes: Mapped[str] = mapped_column(Text, nullable=True)

    # Timestamps
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

    def __repr__(self) -> str:
        return f"<ClientAccount {self.id} name={self.name}>"
