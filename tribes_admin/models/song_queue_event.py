"""Audit history of a song queue item."""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base

if TYPE_CHECKING:
    from tribes_admin.models.song_queue import SongQueueItem


class QueueAction(str, Enum):
    """Kinds of recorded queue events."""
    SUBMITTED = "submitted"
    STATUS_CHANGED = "status_changed"
    EDITS_SAVED = "edits_saved"
    PUBLISHERS_SAVED = "publishers_saved"
    DEAL_ATTACHED = "deal_attached"
    DEAL_REMOVED = "deal_removed"
    NOTES_UPDATED = "notes_updated"
    SONG_PUBLISHED = "song_published"


class SongQueueEvent(Base):
    """Append-only history entry."""

    __tablename__ = "song_queue_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    queue_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("song_queue.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(40), nullable=False)
    from_status: Mapped[str] = mapped_column(String(30), nullable=True)
    to_status: Mapped[str] = mapped_column(String(30), nullable=True)
    actor: Mapped[str] = mapped_column(String(100), nullable=True)
    details: Mapped[dict] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )

    queue_item: Mapped["SongQueueItem"] = relationship(
        "SongQueueItem",
        back_populates="events",
    )

    def __repr__(self) -> str:
        return f"<SongQueueEvent {self.action} queue={self.queue_id}>"
