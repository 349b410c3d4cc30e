"""Territory reference data and administering entities."""
import uuid

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base


class Territory(Base):
    """A CISAC territory a deal can include or exclude."""

    __tablename__ = "territories"

    # ISO-style code, e.g. "US", "GB"
    code: Mapped[str] = mapped_column(String(10), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    region: Mapped[str] = mapped_column(String(60), nullable=True, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<Territory {self.code}>"


class TribesEntity(Base):
    """Operator entity that administers publishers affiliated to a PRO."""

    __tablename__ = "tribes_entities"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    pro: Mapped[str] = mapped_column(String(50), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<TribesEntity {self.name} pro={self.pro}>"
