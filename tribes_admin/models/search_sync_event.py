"""Outbox of pending search-index updates."""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import String, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base


class SearchEntityType(str, Enum):
    """Indexed entity kinds (one Algolia index each)."""
    WRITER = "writer"
    PUBLISHER = "publisher"
    DEAL = "deal"


class SearchSyncAction(str, Enum):
    UPSERT = "upsert"
    DELETE = "delete"


class SearchSyncStatus(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"


class SearchSyncEvent(Base):
    """
    A change that must be pushed to the search index.

    Rows are written in the same transaction as the entity change, so the
    index can lag the database but never silently miss an update.
    """

    __tablename__ = "search_sync_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(10), nullable=False)

    status: Mapped[str] = mapped_column(
        String(10),
        default=SearchSyncStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )
    processed_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<SearchSyncEvent {self.entity_type}:{self.entity_id} {self.action} {self.status}>"
