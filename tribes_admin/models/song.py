"""Catalogue songs published from approved submissions."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import String, DateTime, Integer, Numeric, Boolean, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from tribes_admin.core.database import Base

if TYPE_CHECKING:
    from tribes_admin.models.writer import Writer


class Song(Base):
    """A song in the active catalogue."""

    __tablename__ = "songs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    song_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    language: Mapped[str] = mapped_column(String(50), nullable=True)
    song_metadata: Mapped[dict] = mapped_column("metadata", JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Queue item this song was published from
    source_queue_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    writers: Mapped[List["SongWriter"]] = relationship(
        "SongWriter",
        back_populates="song",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Song #{self.song_number} title={self.title}>"


class SongWriter(Base):
    """Writer credit on a catalogue song, optionally administered through a deal."""

    __tablename__ = "song_writers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    song_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("songs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    writer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("writers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    share: Mapped[Decimal] = mapped_column(Numeric(precision=5, scale=2), nullable=False)
    credit: Mapped[str] = mapped_column(String(20), nullable=True)
    tribes_administered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("deals.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    song: Mapped["Song"] = relationship(
        "Song",
        back_populates="writers",
    )
    writer: Mapped["Writer"] = relationship("Writer")

    def __repr__(self) -> str:
        return f"<SongWriter song={self.song_id} writer={self.writer_id} share={self.share}>"
