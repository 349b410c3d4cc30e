"""Writer model for the songwriter registry."""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base

if TYPE_CHECKING:
    from tribes_admin.models.deal import Deal


class Writer(Base):
    """Songwriter known to the registry."""

    __tablename__ = "writers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    # Display name ("first last" when split names are known)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(120), nullable=True)
    last_name: Mapped[str] = mapped_column(String(120), nullable=True)

    # Performing rights organization (ASCAP, BMI, ...)
    pro: Mapped[str] = mapped_column(String(50), nullable=True)
    ipi_number: Mapped[str] = mapped_column(String(20), nullable=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=True)

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

    # Relationships
    deals: Mapped[List["Deal"]] = relationship(
        "Deal",
        back_populates="writer",
    )

    def __repr__(self) -> str:
        return f"<Writer {self.id} name={self.name}>"
