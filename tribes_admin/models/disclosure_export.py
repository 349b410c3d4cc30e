"""History of regulatory disclosure exports."""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import String, DateTime, Integer, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base


class DisclosureExportType(str, Enum):
    """Report packs the backend function can generate."""
    LICENSING_ACTIVITY = "licensing_activity"
    APPROVAL_HISTORY = "approval_history"
    AGREEMENT_REGISTRY = "agreement_registry"


class DisclosureExportStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class DisclosureExport(Base):
    """One export attempt and its outcome."""

    __tablename__ = "disclosure_exports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    export_type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    parameters: Mapped[dict] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    # Traceability marker returned by the backend function
    watermark: Mapped[str] = mapped_column(String(120), nullable=True, index=True)
    record_count: Mapped[int] = mapped_column(Integer, nullable=True)
    error: Mapped[str] = mapped_column(Text, nullable=True)
    generated_by: Mapped[str] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<DisclosureExport {self.export_type} status={self.status}>"
