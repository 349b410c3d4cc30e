"""Child rows of a deal: publisher shares and territory codes."""
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import String, Integer, Numeric, Boolean, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base

if TYPE_CHECKING:
    from tribes_admin.models.deal import Deal


class DealPublisher(Base):
    """
    A publisher's share within a deal.

    Publisher identity is denormalised (name/PRO/IPI at time of assignment) so
    a deal stays readable when the registry entry changes or is removed.
    Rows are owned by their deal and replaced as a set on every update.
    """

    __tablename__ = "deal_publishers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    deal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Registry reference (optional, publishers can be typed in free-form)
    publisher_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("publishers.id", ondelete="SET NULL"),
        nullable=True,
    )
    publisher_name: Mapped[str] = mapped_column(String(255), nullable=False)
    publisher_pro: Mapped[str] = mapped_column(String(50), nullable=True)
    publisher_ipi: Mapped[str] = mapped_column(String(20), nullable=True)

    # Percentage of the work (0 to 100)
    share: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        nullable=False,
    )

    tribes_administered: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    administrator_entity_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tribes_entities.id", ondelete="SET NULL"),
        nullable=True,
    )

    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    deal: Mapped["Deal"] = relationship(
        "Deal",
        back_populates="publishers",
    )

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "share > 0 AND share <= 100",
            name="check_deal_publisher_share_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<DealPublisher {self.publisher_name} share={self.share}>"


class DealTerritory(Base):
    """A territory code excluded from (world_except) or included in (selected) a deal."""

    __tablename__ = "deal_territories"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    deal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    territory_code: Mapped[str] = mapped_column(
        String(10),
        ForeignKey("territories.code"),
        nullable=False,
    )

    deal: Mapped["Deal"] = relationship(
        "Deal",
        back_populates="territories",
    )

    __table_args__ = (
        UniqueConstraint("deal_id", "territory_code", name="uq_deal_territory"),
    )
