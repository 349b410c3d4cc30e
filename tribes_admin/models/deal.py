"""Deal model: an administration agreement between a writer and publishers."""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List

from sqlalchemy import String, DateTime, Integer, Numeric, ForeignKey, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base

if TYPE_CHECKING:
    from tribes_admin.models.writer import Writer
    from tribes_admin.models.deal_publisher import DealPublisher, DealTerritory


class TerritoryMode(str, Enum):
    """How the territory code list of a deal is interpreted."""
    WORLD = "world"                # Unrestricted, no codes stored
    WORLD_EXCEPT = "world_except"  # Codes are excluded territories
    SELECTED = "selected"          # Codes are the only included territories


class DealStatus(str, Enum):
    """Status of a deal."""
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class Deal(Base):
    """
    Publishing administration deal for one writer.

    Share invariant:
    - When the deal has publisher rows, the sum of their shares equals
      writer_share exactly.

    The `territory` column is a denormalised, human-readable summary of
    territory_mode + deal_territories, stored for display.
    """

    __tablename__ = "deals"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Sequential reference used in URLs (e.g. /deals/42)
    deal_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)

    writer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("writers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Percentage of the work controlled by the writer (0 to 100)
    writer_share: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        nullable=False,
    )

    territory_mode: Mapped[str] = mapped_column(
        String(20),
        default=TerritoryMode.WORLD.value,
        nullable=False,
    )
    territory: Mapped[str] = mapped_column(String(255), nullable=False, default="World")

    status: Mapped[str] = mapped_column(
        String(20),
        default=DealStatus.ACTIVE.value,
        nullable=False,
        index=True,
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

    # Relationships
    writer: Mapped["Writer"] = relationship(
        "Writer",
        back_populates="deals",
    )
    publishers: Mapped[List["DealPublisher"]] = relationship(
        "DealPublisher",
        back_populates="deal",
        cascade="all, delete-orphan",
        order_by="DealPublisher.sort_order",
    )
    territories: Mapped[List["DealTerritory"]] = relationship(
        "DealTerritory",
        back_populates="deal",
        cascade="all, delete-orphan",
    )

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "writer_share >= 0 AND writer_share <= 100",
            name="check_writer_share_range",
        ),
        CheckConstraint(
            "territory_mode IN ('world', 'world_except', 'selected')",
            name="check_territory_mode",
        ),
    )

    @property
    def territory_codes(self) -> list[str]:
        return [t.territory_code for t in self.territories]

    def __repr__(self) -> str:
        return f"<Deal #{self.deal_number} writer={self.writer_id} share={self.writer_share}>"
