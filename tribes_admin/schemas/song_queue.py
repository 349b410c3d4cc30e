"""
Song submission contract and queue review schemas.

SongSubmissionData is the shape stored in song_queue.submitted_data and
song_queue.current_data. Submissions are parsed here once, at the boundary;
the rest of the code works with the validated model or its JSON dump.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator

from tribes_admin.schemas.deals import DealListItem

SUBMISSION_SCHEMA_VERSION = 1

SONG_TYPES = ['original', 'arrangement', 'public_domain']
COPYRIGHT_STATUSES = ['unknown', 'registered', 'pending']
RELEASE_STATUSES = ['yes', 'no']
WRITER_CREDITS = ['writer', 'composer', 'both']
LYRICS_SECTION_TYPES = [
    'verse', 'chorus', 'bridge', 'pre_chorus', 'outro', 'intro', 'interlude', 'tag',
]


class LyricsSection(BaseModel):
    id: str
    type: str
    content: str = ""

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v not in LYRICS_SECTION_TYPES:
            raise ValueError(f"lyrics section type must be one of {', '.join(LYRICS_SECTION_TYPES)}")
        return v


class QueuePublisher(BaseModel):
    """Publisher embedded in a submission writer (legacy submissions)."""
    publisher_id: Optional[str] = None
    name: str = ""
    pro: Optional[str] = None
    ipi: Optional[str] = None
    share: float = Field(0, ge=0, le=100)
    tribes_administered: bool = True


class QueueWriter(BaseModel):
    """A writer credited on a submission."""
    # Older submissions used "id"
    writer_id: Optional[UUID] = Field(None, validation_alias=AliasChoices("writer_id", "id"))
    name: str = Field(..., min_length=1, max_length=255)
    pro: Optional[str] = None
    ipi: Optional[str] = None
    split: float = Field(..., ge=0, le=100)
    credit: Optional[str] = None
    tribes_administered: bool = False
    publishers: Optional[list[QueuePublisher]] = None

    @field_validator('credit')
    @classmethod
    def validate_credit(cls, v):
        if v is not None and v not in WRITER_CREDITS:
            raise ValueError("credit must be 'writer', 'composer' or 'both'")
        return v


class SongSubmissionData(BaseModel):
    """Versioned song submission payload."""
    schema_version: int = SUBMISSION_SCHEMA_VERSION

    # Required
    title: str = Field(..., min_length=1, max_length=500)
    writers: list[QueueWriter] = Field(..., min_length=1)

    # Song details
    language: Optional[str] = None
    song_type: Optional[str] = None
    publication_year: Optional[str] = None
    copyright_status: Optional[str] = None
    release_status: Optional[str] = None
    original_work_title: Optional[str] = None
    wants_copyright_filing: Optional[bool] = None
    alternate_titles: Optional[list[str]] = None

    # Lyrics
    lyrics: Optional[str] = None
    lyrics_sections: Optional[list[LyricsSection]] = None
    lyrics_confirmed: bool = False

    # Chord chart
    chord_chart_path: Optional[str] = None
    chord_chart_file: Optional[str] = None
    has_chord_chart: bool = False

    creation_year: Optional[str] = None

    @field_validator('schema_version')
    @classmethod
    def validate_version(cls, v):
        if v != SUBMISSION_SCHEMA_VERSION:
            raise ValueError(f"Unsupported submission schema version {v}")
        return v

    @field_validator('title')
    @classmethod
    def strip_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Song title is required")
        return v

    @field_validator('song_type')
    @classmethod
    def validate_song_type(cls, v):
        if v is not None and v not in SONG_TYPES:
            raise ValueError("song_type must be 'original', 'arrangement' or 'public_domain'")
        return v

    @field_validator('copyright_status')
    @classmethod
    def validate_copyright_status(cls, v):
        if v is not None and v not in COPYRIGHT_STATUSES:
            raise ValueError("copyright_status must be 'unknown', 'registered' or 'pending'")
        return v

    @field_validator('release_status')
    @classmethod
    def validate_release_status(cls, v):
        if v is not None and v not in RELEASE_STATUSES:
            raise ValueError("release_status must be 'yes' or 'no'")
        return v


# ============ Requests ============

class SubmissionCreate(BaseModel):
    """Client submission of a new song."""
    client_account_id: Optional[UUID] = None
    submitted_by: Optional[str] = None
    data: SongSubmissionData


class SaveEditsRequest(BaseModel):
    """Full replacement of the working copy."""
    data: SongSubmissionData
    actor: Optional[str] = None


class SavePublishersRequest(BaseModel):
    """Replacement of the writers list with edited embedded publishers."""
    writers: list[QueueWriter] = Field(..., min_length=1)
    actor: Optional[str] = None


class AttachDealRequest(BaseModel):
    writer_id: UUID
    deal_id: UUID
    actor: Optional[str] = None


class TransitionRequest(BaseModel):
    """Move an item to another status."""
    status: str
    actor: Optional[str] = None
    revision_request: Optional[str] = None
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    # Resubmission may carry revised data
    current_data: Optional[SongSubmissionData] = None


class NotesRequest(BaseModel):
    admin_notes: Optional[str] = None
    actor: Optional[str] = None


class MessageCreate(BaseModel):
    message: str = Field(..., min_length=1)
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    sender_role: str = "staff"
    is_internal: bool = False

    @field_validator('sender_role')
    @classmethod
    def validate_sender_role(cls, v):
        if v not in ['staff', 'client']:
            raise ValueError("sender_role must be 'staff' or 'client'")
        return v

    @field_validator('message')
    @classmethod
    def strip_message(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v


# ============ Responses ============

class WriterDealResponse(BaseModel):
    writer_id: UUID
    deal_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class QueueItemResponse(BaseModel):
    """Full queue item for the review screen."""
    id: UUID
    submission_number: int
    client_account_id: Optional[UUID] = None
    submitted_by: Optional[str] = None
    submitted_at: datetime
    submitted_data: dict
    current_data: dict
    status: str
    title: Optional[str] = None
    revision_request: Optional[str] = None
    revision_requested_at: Optional[datetime] = None
    revision_requested_by: Optional[str] = None
    revision_submitted_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    approved_song_id: Optional[UUID] = None
    deal_id: Optional[UUID] = None
    updated_at: datetime
    writer_deals: list[WriterDealResponse] = Field(default_factory=list)
    allowed_transitions: list[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


class QueueListItem(BaseModel):
    id: UUID
    submission_number: int
    title: Optional[str] = None
    status: str
    client_account_id: Optional[UUID] = None
    submitted_by: Optional[str] = None
    submitted_at: datetime
    deal_id: Optional[UUID] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class QueuePage(BaseModel):
    items: list[QueueListItem]
    total: int
    page: int
    page_size: int


class QueueStats(BaseModel):
    total: int
    by_status: dict[str, int]


class ResolvedPublisher(BaseModel):
    publisher_id: Optional[str] = None
    name: str
    pro: Optional[str] = None
    ipi: Optional[str] = None
    share: Decimal
    tribes_administered: bool
    administrator_entity_id: Optional[UUID] = None


class ResolvedWriter(BaseModel):
    """Effective publishers of one writer: from its deal, its submission, or none."""
    writer_id: Optional[UUID] = None
    name: str
    split: Decimal
    credit: Optional[str] = None
    source: str = Field(..., description="'deal', 'submission' or 'unassigned'")
    deal_id: Optional[UUID] = None
    deal_number: Optional[int] = None
    deal_name: Optional[str] = None
    publishers: list[ResolvedPublisher] = Field(default_factory=list)
    publisher_total: Decimal = Decimal("0")
    reconciled: bool = False


class ResolvedView(BaseModel):
    writers: list[ResolvedWriter]
    split_total: Decimal
    splits_reconciled: bool
    label_copy: Optional[str] = None


class CandidateDeals(BaseModel):
    """Active deals a submission writer can be attached to."""
    writer_id: Optional[UUID] = None
    writer_name: str
    attached_deal_id: Optional[UUID] = None
    deals: list[DealListItem] = Field(default_factory=list)


class MessageResponse(BaseModel):
    id: UUID
    queue_id: UUID
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    sender_role: str
    message: str
    is_internal: bool
    created_at: datetime

    class Config:
        from_attributes = True


class EventResponse(BaseModel):
    id: UUID
    action: str
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    actor: Optional[str] = None
    details: Optional[dict] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int
