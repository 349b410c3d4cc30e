"""Song queue: submitted songs awaiting staff review."""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, DateTime, Integer, Text, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID, JSONB

from tribes_admin.core.database import Base

if TYPE_CHECKING:
    from tribes_admin.models.song_queue_message import SongQueueMessage
    from tribes_admin.models.song_queue_event import SongQueueEvent

# JSONB on Postgres, plain JSON elsewhere
SongDataType = JSON().with_variant(JSONB(), "postgresql")


class QueueStatus(str, Enum):
    """Review status of a queue item."""
    SUBMITTED = "submitted"                    # Waiting for staff
    IN_REVIEW = "in_review"                    # Staff is reviewing
    NEEDS_INFO = "needs_info"                  # Revision requested from client
    APPROVED = "approved"                      # Registered, song published to catalogue
    AWAITING_SIGNATURE = "awaiting_signature"  # Agreement sent to client
    AWAITING_PAYMENT = "awaiting_payment"      # Agreement signed, fee outstanding
    DONE = "done"                              # Complete
    DENIED = "denied"                          # Rejected


class SongQueueItem(Base):
    """
    One song submission.

    submitted_data is the client's original snapshot and is never modified.
    current_data is the staff working copy; saves replace it whole.
    """

    __tablename__ = "song_queue"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    submission_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        index=True,
    )

    client_account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("client_accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    submitted_by: Mapped[str] = mapped_column(String(100), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )

    submitted_data: Mapped[dict] = mapped_column(SongDataType, nullable=False)
    current_data: Mapped[dict] = mapped_column(SongDataType, nullable=False)

    status: Mapped[str] = mapped_column(
        String(30),
        default=QueueStatus.SUBMITTED.value,
        nullable=False,
        index=True,
    )

    # Revision round-trip
    revision_request: Mapped[str] = mapped_column(Text, nullable=True)
    revision_requested_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    revision_requested_by: Mapped[str] = mapped_column(String(100), nullable=True)
    revision_submitted_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    # Review
    admin_notes: Mapped[str] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[str] = mapped_column(String(100), nullable=True)
    reviewed_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[str] = mapped_column(Text, nullable=True)
    approved_song_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("songs.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Administration attribution (latest attached deal)
    deal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("deals.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    writer_deals: Mapped[List["SongQueueWriterDeal"]] = relationship(
        "SongQueueWriterDeal",
        back_populates="queue_item",
        cascade="all, delete-orphan",
    )
    messages: Mapped[List["SongQueueMessage"]] = relationship(
        "SongQueueMessage",
        back_populates="queue_item",
        cascade="all, delete-orphan",
        order_by="SongQueueMessage.created_at",
    )
    events: Mapped[List["SongQueueEvent"]] = relationship(
        "SongQueueEvent",
        back_populates="queue_item",
        cascade="all, delete-orphan",
        order_by="SongQueueEvent.created_at",
    )

    @property
    def title(self) -> Optional[str]:
        return (self.current_data or {}).get("title")

    def __repr__(self) -> str:
        return f"<SongQueueItem #{self.submission_number} status={self.status}>"


class SongQueueWriterDeal(Base):
    """Deal attached to one writer of a submission."""

    __tablename__ = "song_queue_writer_deals"

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
    writer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("writers.id", ondelete="CASCADE"),
        nullable=False,
    )
    deal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("deals.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    queue_item: Mapped["SongQueueItem"] = relationship(
        "SongQueueItem",
        back_populates="writer_deals",
    )

    __table_args__ = (
        UniqueConstraint("queue_id", "writer_id", name="uq_queue_writer_deal"),
    )
