"""Message thread attached to a song queue item."""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, Text, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base


class SenderRole(str, Enum):
    """Who sent the message."""
    STAFF = "staff"
    CLIENT = "client"


if TYPE_CHECKING:
    from tribes_admin.models.song_queue import SongQueueItem


class SongQueueMessage(Base):
    """Individual message between staff and the submitting client."""

    __tablename__ = "song_queue_messages"

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

    sender_id: Mapped[str] = mapped_column(String(100), nullable=True)
    sender_name: Mapped[str] = mapped_column(String(255), nullable=True)
    sender_role: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    # Internal note flag (only visible to staff)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    queue_item: Mapped["SongQueueItem"] = relationship(
        "SongQueueItem",
        back_populates="messages",
    )

    def __repr__(self) -> str:
        return f"<SongQueueMessage {self.id} role={self.sender_role}>"
