"""
Song Queue Router

Staff review of song submissions: edits, per-writer deal attachment,
status transitions, messages and history.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.config import settings
from tribes_admin.core.database import get_db
from tribes_admin.models import SongQueueItem
from tribes_admin.schemas.song_queue import (
    AttachDealRequest,
    CandidateDeals,
    EventResponse,
    MessageCreate,
    MessageResponse,
    NotesRequest,
    QueueItemResponse,
    QueuePage,
    QueueStats,
    ResolvedView,
    SaveEditsRequest,
    SavePublishersRequest,
    SignedUrlResponse,
    SubmissionCreate,
    TransitionRequest,
)
from tribes_admin.services import queue_review

router = APIRouter(prefix="/song-queue", tags=["song-queue"])


def _item_response(item: SongQueueItem) -> QueueItemResponse:
    response = QueueItemResponse.model_validate(item)
    response.allowed_transitions = queue_review.allowed_transitions(item.status)
    return response


@router.get("", response_model=QueuePage)
async def list_queue(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    client_account_id: Optional[UUID] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """
    List submissions, oldest first.

    Query params:
    - status: Filter by status
    - search: Submission number (e.g. "#12") or text in the working copy
    - client_account_id: Filter by client
    """
    items, total = await queue_review.list_items(
        db, status_filter, search, client_account_id, page, page_size
    )
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/stats", response_model=QueueStats)
async def get_queue_stats(
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return await queue_review.queue_stats(db)


@router.post("", response_model=QueueItemResponse, status_code=status.HTTP_201_CREATED)
async def submit_song(
    payload: SubmissionCreate,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Submit a song. Writer splits must total 100%."""
    return _item_response(await queue_review.submit(db, payload))


@router.get("/{queue_id}", response_model=QueueItemResponse)
async def get_queue_item(
    queue_id: UUID,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return _item_response(await queue_review.get_item(db, queue_id))


@router.put("/{queue_id}/data", response_model=QueueItemResponse)
async def save_edits(
    queue_id: UUID,
    request: SaveEditsRequest,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Replace the working copy (current_data)."""
    item = await queue_review.save_edits(db, queue_id, request.data, request.actor)
    return _item_response(item)


@router.put("/{queue_id}/publishers", response_model=QueueItemResponse)
async def save_publishers(
    queue_id: UUID,
    request: SavePublishersRequest,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Replace the writers list with edited embedded publishers."""
    item = await queue_review.save_publishers(db, queue_id, request.writers, request.actor)
    return _item_response(item)


@router.put("/{queue_id}/notes", response_model=QueueItemResponse)
async def update_notes(
    queue_id: UUID,
    request: NotesRequest,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    item = await queue_review.update_notes(db, queue_id, request.admin_notes, request.actor)
    return _item_response(item)


@router.post("/{queue_id}/transition", response_model=QueueItemResponse)
async def transition(
    queue_id: UUID,
    request: TransitionRequest,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """
    Change status.

    - needs_info requires revision_request
    - denied requires rejection_reason
    - approved publishes the song to the catalogue
    """
    return _item_response(await queue_review.transition(db, queue_id, request))


@router.get("/{queue_id}/writers", response_model=ResolvedView)
async def get_resolved_writers(
    queue_id: UUID,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Effective publishers per writer, split totals and label copy."""
    return await queue_review.resolved_view(db, queue_id)


@router.get("/{queue_id}/candidate-deals", response_model=list[CandidateDeals])
async def get_candidate_deals(
    queue_id: UUID,
    territory: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return await queue_review.candidate_deals(db, queue_id, territory)


@router.post("/{queue_id}/deals", response_model=QueueItemResponse)
async def attach_deal(
    queue_id: UUID,
    request: AttachDealRequest,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Attach one of a writer's active deals to that writer."""
    item = await queue_review.attach_deal(db, queue_id, request.writer_id, request.deal_id, request.actor)
    return _item_response(item)


@router.delete("/{queue_id}/deals/{writer_id}", response_model=QueueItemResponse)
async def remove_deal(
    queue_id: UUID,
    writer_id: UUID,
    actor: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    item = await queue_review.remove_deal(db, queue_id, writer_id, actor)
    return _item_response(item)


@router.get("/{queue_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    queue_id: UUID,
    view: str = Query("staff", pattern="^(staff|client)$"),
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Message thread. The client view hides internal notes."""
    return await queue_review.list_messages(db, queue_id, include_internal=view == "staff")


@router.post("/{queue_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_message(
    queue_id: UUID,
    data: MessageCreate,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return await queue_review.add_message(db, queue_id, data)


@router.get("/{queue_id}/history", response_model=list[EventResponse])
async def get_history(
    queue_id: UUID,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return await queue_review.list_events(db, queue_id)


@router.get("/{queue_id}/chord-chart", response_model=SignedUrlResponse)
async def get_chord_chart_url(
    queue_id: UUID,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Short-lived download link for the submission's chord chart."""
    url = await queue_review.chord_chart_url(db, queue_id)
    return SignedUrlResponse(url=url, expires_in=settings.SIGNED_URL_TTL_SECONDS)
