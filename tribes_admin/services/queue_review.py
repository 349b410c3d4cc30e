"""
Song queue review workflow.

Status lifecycle:

    submitted ──> in_review ──> approved ──> awaiting_signature ──> awaiting_payment ──> done
        │             │  └──> needs_info ──> submitted (resubmission)
        └─────────────┴──────────┴──> denied

done and denied are terminal. Every mutation writes a song_queue_events row.

Administration attribution is per writer: each credited writer can have one
active deal of their own attached. Attaching a deal does not copy its
publishers into current_data; the resolved view reads them from the deal.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func, cast, String
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tribes_admin.models.deal import Deal, DealStatus
from tribes_admin.models.song import Song, SongWriter
from tribes_admin.models.song_queue import SongQueueItem, SongQueueWriterDeal, QueueStatus
from tribes_admin.models.song_queue_event import SongQueueEvent, QueueAction
from tribes_admin.models.song_queue_message import SongQueueMessage, SenderRole
from tribes_admin.models.writer import Writer
from tribes_admin.schemas.deals import DealListItem
from tribes_admin.schemas.song_queue import (
    CandidateDeals,
    MessageCreate,
    QueueWriter,
    ResolvedPublisher,
    ResolvedView,
    ResolvedWriter,
    SongSubmissionData,
    SubmissionCreate,
    TransitionRequest,
)
from tribes_admin.services import storage
from tribes_admin.services.allocation import active_deals_for_writers, format_percent, has_share_precision
from tribes_admin.services.errors import ConflictError, NotFoundError, ValidationError
from tribes_admin.services.label_copy import generate_label_copy

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, list[str]] = {
    QueueStatus.SUBMITTED.value: [QueueStatus.IN_REVIEW.value, QueueStatus.DENIED.value],
    QueueStatus.IN_REVIEW.value: [
        QueueStatus.NEEDS_INFO.value,
        QueueStatus.APPROVED.value,
        QueueStatus.DENIED.value,
    ],
    QueueStatus.NEEDS_INFO.value: [QueueStatus.SUBMITTED.value, QueueStatus.DENIED.value],
    QueueStatus.APPROVED.value: [QueueStatus.AWAITING_SIGNATURE.value],
    QueueStatus.AWAITING_SIGNATURE.value: [QueueStatus.AWAITING_PAYMENT.value],
    QueueStatus.AWAITING_PAYMENT.value: [QueueStatus.DONE.value],
    QueueStatus.DONE.value: [],
    QueueStatus.DENIED.value: [],
}

# Statuses in which the working copy and deal attachments can change
EDITABLE_STATUSES = {
    QueueStatus.SUBMITTED.value,
    QueueStatus.IN_REVIEW.value,
    QueueStatus.NEEDS_INFO.value,
}

# Keys of current_data carried into songs.metadata on approval
SONG_METADATA_KEYS = [
    "song_type",
    "publication_year",
    "copyright_status",
    "release_status",
    "original_work_title",
    "wants_copyright_filing",
    "alternate_titles",
    "lyrics",
    "lyrics_sections",
    "lyrics_confirmed",
    "chord_chart_path",
    "chord_chart_file",
    "has_chord_chart",
]

FULL_SPLIT = Decimal("100")


def to_decimal(value) -> Decimal:
    return Decimal(str(value or 0))


def allowed_transitions(status: str) -> list[str]:
    return list(TRANSITIONS.get(status, []))


def validate_splits(writers: list[QueueWriter]) -> None:
    """Writer splits must reconcile to 100."""
    if any(not has_share_precision(to_decimal(w.split)) for w in writers):
        raise ValidationError("Writer splits allow at most 2 decimals")
    total = sum((to_decimal(w.split) for w in writers), Decimal("0"))
    if total != FULL_SPLIT:
        raise ValidationError(f"Writer splits must total 100% (got {format_percent(total)}%)")


def validate_embedded_publishers(writers: list[QueueWriter]) -> None:
    """For every writer with publishers, the publisher shares must equal the writer's split."""
    for writer in writers:
        if not writer.publishers:
            continue
        if any(not p.name.strip() for p in writer.publishers):
            raise ValidationError(f"All publishers for {writer.name} must have a name")
        total = sum((to_decimal(p.share) for p in writer.publishers), Decimal("0"))
        split = to_decimal(writer.split)
        if total != split:
            raise ValidationError(
                f"Publisher shares for {writer.name} must equal {format_percent(split)}% "
                f"(got {format_percent(total)}%)"
            )


def _validate_submission(data: SongSubmissionData) -> None:
    validate_splits(data.writers)
    validate_embedded_publishers(data.writers)


def _parse_writers(current_data: Optional[dict]) -> list[QueueWriter]:
    return [QueueWriter.model_validate(w) for w in (current_data or {}).get("writers") or []]


def _credited_writer_ids(current_data: Optional[dict]) -> set[UUID]:
    return {w.writer_id for w in _parse_writers(current_data) if w.writer_id}


async def next_submission_number(db: AsyncSession) -> int:
    result = await db.execute(select(func.max(SongQueueItem.submission_number)))
    return (result.scalar() or 0) + 1


async def get_item(db: AsyncSession, queue_id: UUID) -> SongQueueItem:
    """Load a queue item with its deal attachments."""
    result = await db.execute(
        select(SongQueueItem)
        .options(selectinload(SongQueueItem.writer_deals))
        .where(SongQueueItem.id == queue_id)
        .execution_options(populate_existing=True)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError(f"Queue item {queue_id} not found")
    return item


def _require_editable(item: SongQueueItem) -> None:
    if item.status not in EDITABLE_STATUSES:
        raise ConflictError(
            f"Submission #{item.submission_number} is {item.status} and can no longer be edited"
        )


def _record(
    db: AsyncSession,
    item: SongQueueItem,
    action: QueueAction,
    actor: Optional[str] = None,
    from_status: Optional[str] = None,
    to_status: Optional[str] = None,
    details: Optional[dict] = None,
) -> None:
    db.add(SongQueueEvent(
        queue_id=item.id,
        action=action.value,
        from_status=from_status,
        to_status=to_status,
        actor=actor,
        details=details,
    ))


def _sync_primary_deal(item: SongQueueItem) -> None:
    """song_queue.deal_id follows the most recent attachment."""
    if not item.writer_deals:
        item.deal_id = None
        return
    latest = max(item.writer_deals, key=lambda link: link.created_at or datetime.min)
    item.deal_id = latest.deal_id


def _prune_attachments(item: SongQueueItem, current_data: dict) -> list[str]:
    """Drop attachments of writers no longer credited. Returns their ids."""
    credited = _credited_writer_ids(current_data)
    dropped = [link for link in item.writer_deals if link.writer_id not in credited]
    for link in dropped:
        item.writer_deals.remove(link)
    if dropped:
        _sync_primary_deal(item)
    return [str(link.writer_id) for link in dropped]


# ============ Listing ============

async def list_items(
    db: AsyncSession,
    status: Optional[str] = None,
    search: Optional[str] = None,
    client_account_id: Optional[UUID] = None,
    page: int = 1,
    page_size: int = 25,
) -> tuple[list[SongQueueItem], int]:
    """Paginated queue, oldest submission first."""
    query = select(SongQueueItem)
    if status:
        query = query.where(SongQueueItem.status == status)
    if client_account_id:
        query = query.where(SongQueueItem.client_account_id == client_account_id)
    if search:
        term = search.strip().lstrip("#")
        if term.isdigit():
            query = query.where(SongQueueItem.submission_number == int(term))
        else:
            query = query.where(cast(SongQueueItem.current_data, String).ilike(f"%{term}%"))

    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    query = query.order_by(SongQueueItem.submitted_at).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return list(result.scalars().all()), total or 0


async def queue_stats(db: AsyncSession) -> dict:
    result = await db.execute(
        select(SongQueueItem.status, func.count(SongQueueItem.id)).group_by(SongQueueItem.status)
    )
    by_status = {s.value: 0 for s in QueueStatus}
    by_status.update({status: count for status, count in result.all()})
    return {"total": sum(by_status.values()), "by_status": by_status}


# ============ Submission and edits ============

async def submit(db: AsyncSession, payload: SubmissionCreate) -> SongQueueItem:
    """Store a new submission as both the original and the working copy."""
    _validate_submission(payload.data)
    data = payload.data.model_dump(mode="json")

    item = SongQueueItem(
        submission_number=await next_submission_number(db),
        client_account_id=payload.client_account_id,
        submitted_by=payload.submitted_by,
        submitted_data=data,
        current_data=data,
        status=QueueStatus.SUBMITTED.value,
    )
    db.add(item)
    await db.flush()

    _record(db, item, QueueAction.SUBMITTED, actor=payload.submitted_by, to_status=item.status)
    await db.flush()
    logger.info(f"Song submission #{item.submission_number} received: {payload.data.title}")
    return await get_item(db, item.id)


async def save_edits(
    db: AsyncSession,
    queue_id: UUID,
    data: SongSubmissionData,
    actor: Optional[str] = None,
) -> SongQueueItem:
    """Replace the working copy. submitted_data is left untouched."""
    item = await get_item(db, queue_id)
    _require_editable(item)
    _validate_submission(data)

    item.current_data = data.model_dump(mode="json")
    dropped = _prune_attachments(item, item.current_data)
    _record(db, item, QueueAction.EDITS_SAVED, actor=actor, details={"dropped_attachments": dropped} if dropped else None)
    await db.flush()

    logger.info(f"Saved edits on submission #{item.submission_number}")
    return await get_item(db, queue_id)


async def save_publishers(
    db: AsyncSession,
    queue_id: UUID,
    writers: list[QueueWriter],
    actor: Optional[str] = None,
) -> SongQueueItem:
    """
    Replace the writers list with edited embedded publishers.

    For each writer that has publishers their shares must equal the
    writer's split; the first writer that does not reconcile is named.
    """
    item = await get_item(db, queue_id)
    _require_editable(item)
    validate_embedded_publishers(writers)

    current = dict(item.current_data or {})
    current["writers"] = [w.model_dump(mode="json") for w in writers]
    # Re-validate the whole document so stored data keeps the schema
    _validate_submission(SongSubmissionData.model_validate(current))

    item.current_data = current
    dropped = _prune_attachments(item, current)
    _record(db, item, QueueAction.PUBLISHERS_SAVED, actor=actor, details={"dropped_attachments": dropped} if dropped else None)
    await db.flush()
    return await get_item(db, queue_id)


async def update_notes(
    db: AsyncSession,
    queue_id: UUID,
    admin_notes: Optional[str],
    actor: Optional[str] = None,
) -> SongQueueItem:
    item = await get_item(db, queue_id)
    item.admin_notes = admin_notes or None
    _record(db, item, QueueAction.NOTES_UPDATED, actor=actor)
    await db.flush()
    return await get_item(db, queue_id)


# ============ Deal attachment ============

async def attach_deal(
    db: AsyncSession,
    queue_id: UUID,
    writer_id: UUID,
    deal_id: UUID,
    actor: Optional[str] = None,
) -> SongQueueItem:
    """Attach one of a writer's active deals to that writer on a submission."""
    item = await get_item(db, queue_id)
    _require_editable(item)

    if writer_id not in _credited_writer_ids(item.current_data):
        raise ValidationError("This writer is not credited on the submission")

    deal = await db.get(Deal, deal_id)
    if not deal:
        raise NotFoundError(f"Deal {deal_id} not found")
    if deal.writer_id != writer_id:
        raise ValidationError(f"Deal #{deal.deal_number} belongs to another writer")
    if deal.status != DealStatus.ACTIVE.value:
        raise ValidationError(f"Deal #{deal.deal_number} is not active")

    now = datetime.utcnow()
    link = next((link for link in item.writer_deals if link.writer_id == writer_id), None)
    if link:
        link.deal_id = deal.id
        link.created_at = now
    else:
        item.writer_deals.append(SongQueueWriterDeal(writer_id=writer_id, deal_id=deal.id, created_at=now))
    item.deal_id = deal.id

    _record(db, item, QueueAction.DEAL_ATTACHED, actor=actor, details={
        "writer_id": str(writer_id),
        "deal_id": str(deal.id),
        "deal_number": deal.deal_number,
    })
    await db.flush()
    logger.info(f"Attached deal #{deal.deal_number} to writer {writer_id} on submission #{item.submission_number}")
    return await get_item(db, queue_id)


async def remove_deal(
    db: AsyncSession,
    queue_id: UUID,
    writer_id: UUID,
    actor: Optional[str] = None,
) -> SongQueueItem:
    """Detach a writer's deal; the item falls back to another attachment or none."""
    item = await get_item(db, queue_id)
    _require_editable(item)

    link = next((link for link in item.writer_deals if link.writer_id == writer_id), None)
    if not link:
        raise NotFoundError("No deal is attached for this writer")

    removed_deal_id = link.deal_id
    item.writer_deals.remove(link)
    _sync_primary_deal(item)

    _record(db, item, QueueAction.DEAL_REMOVED, actor=actor, details={
        "writer_id": str(writer_id),
        "deal_id": str(removed_deal_id),
    })
    await db.flush()
    return await get_item(db, queue_id)


# ============ Resolved view ============

def resolve_writers(current_data: Optional[dict], deals_by_writer: dict[UUID, Deal]) -> ResolvedView:
    """
    Effective publishers per writer.

    A writer with an attached deal shows the deal's publishers; otherwise the
    publishers embedded in the submission; otherwise nothing (unassigned).
    deals_by_writer maps writer_id to its attached deal, publishers loaded.
    """
    resolved = []
    for writer in _parse_writers(current_data):
        split = to_decimal(writer.split)
        deal = deals_by_writer.get(writer.writer_id) if writer.writer_id else None

        if deal is not None:
            source = "deal"
            publishers = [
                ResolvedPublisher(
                    publisher_id=str(p.publisher_id) if p.publisher_id else None,
                    name=p.publisher_name,
                    pro=p.publisher_pro,
                    ipi=p.publisher_ipi,
                    share=to_decimal(p.share),
                    tribes_administered=p.tribes_administered,
                    administrator_entity_id=p.administrator_entity_id,
                )
                for p in deal.publishers
            ]
        elif writer.publishers:
            source = "submission"
            publishers = [
                ResolvedPublisher(
                    publisher_id=p.publisher_id,
                    name=p.name,
                    pro=p.pro,
                    ipi=p.ipi,
                    share=to_decimal(p.share),
                    tribes_administered=p.tribes_administered,
                )
                for p in writer.publishers
            ]
        else:
            source = "unassigned"
            publishers = []

        total = sum((p.share for p in publishers), Decimal("0"))
        resolved.append(ResolvedWriter(
            writer_id=writer.writer_id,
            name=writer.name,
            split=split,
            credit=writer.credit,
            source=source,
            deal_id=deal.id if deal is not None else None,
            deal_number=deal.deal_number if deal is not None else None,
            deal_name=deal.name if deal is not None else None,
            publishers=publishers,
            publisher_total=total,
            reconciled=bool(publishers) and total == split,
        ))

    split_total = sum((w.split for w in resolved), Decimal("0"))
    label_copy = generate_label_copy(
        (current_data or {}).get("publication_year"),
        [p.model_dump() for w in resolved for p in w.publishers],
    )
    return ResolvedView(
        writers=resolved,
        split_total=split_total,
        splits_reconciled=split_total == FULL_SPLIT,
        label_copy=label_copy,
    )


async def _attached_deals(db: AsyncSession, item: SongQueueItem) -> dict[UUID, Deal]:
    deal_ids = {link.deal_id for link in item.writer_deals}
    if not deal_ids:
        return {}
    result = await db.execute(
        select(Deal).options(selectinload(Deal.publishers)).where(Deal.id.in_(deal_ids))
    )
    deals = {deal.id: deal for deal in result.scalars().all()}
    return {link.writer_id: deals[link.deal_id] for link in item.writer_deals if link.deal_id in deals}


async def resolved_view(db: AsyncSession, queue_id: UUID) -> ResolvedView:
    item = await get_item(db, queue_id)
    return resolve_writers(item.current_data, await _attached_deals(db, item))


async def candidate_deals(
    db: AsyncSession,
    queue_id: UUID,
    territory: Optional[str] = None,
) -> list[CandidateDeals]:
    """Active deals each credited writer could be attached to."""
    item = await get_item(db, queue_id)
    writers = _parse_writers(item.current_data)
    attached = {link.writer_id: link.deal_id for link in item.writer_deals}

    deals_by_writer = await active_deals_for_writers(
        db, [w.writer_id for w in writers], territory=territory.upper() if territory else None
    )
    return [
        CandidateDeals(
            writer_id=w.writer_id,
            writer_name=w.name,
            attached_deal_id=attached.get(w.writer_id),
            deals=[DealListItem.model_validate(d) for d in deals_by_writer.get(w.writer_id, [])],
        )
        for w in writers
    ]


# ============ Status transitions ============

async def _publish_song(db: AsyncSession, item: SongQueueItem, actor: Optional[str]) -> Song:
    """Create the catalogue song and its writer credits from the working copy."""
    data = item.current_data or {}
    attached = {link.writer_id: link.deal_id for link in item.writer_deals}

    next_number = (await db.scalar(select(func.max(Song.song_number))) or 0) + 1
    song = Song(
        song_number=next_number,
        title=data.get("title"),
        language=data.get("language"),
        song_metadata={k: data[k] for k in SONG_METADATA_KEYS if data.get(k) is not None},
        source_queue_id=item.id,
    )
    db.add(song)
    await db.flush()

    for writer in _parse_writers(data):
        if not writer.writer_id or not await db.get(Writer, writer.writer_id):
            logger.warning(
                f"Submission #{item.submission_number}: writer {writer.name} is not in the registry, "
                f"skipping catalogue credit"
            )
            continue
        deal_id = attached.get(writer.writer_id)
        db.add(SongWriter(
            song_id=song.id,
            writer_id=writer.writer_id,
            share=to_decimal(writer.split),
            credit=writer.credit,
            tribes_administered=writer.tribes_administered or deal_id is not None,
            deal_id=deal_id,
        ))

    _record(db, item, QueueAction.SONG_PUBLISHED, actor=actor, details={
        "song_id": str(song.id),
        "song_number": song.song_number,
    })
    logger.info(f"Published song #{song.song_number} from submission #{item.submission_number}")
    return song


async def transition(db: AsyncSession, queue_id: UUID, request: TransitionRequest) -> SongQueueItem:
    """Move a queue item to another status, recording the side data each step requires."""
    item = await get_item(db, queue_id)
    target = request.status
    if target not in TRANSITIONS:
        raise ValidationError(f"Unknown status '{target}'")

    current = item.status
    if target not in TRANSITIONS.get(current, []):
        raise ConflictError(f"Cannot move submission #{item.submission_number} from {current} to {target}")

    now = datetime.utcnow()
    actor = request.actor
    details = {}

    if target == QueueStatus.IN_REVIEW.value:
        item.reviewed_by = actor

    elif target == QueueStatus.NEEDS_INFO.value:
        revision_request = (request.revision_request or "").strip()
        if not revision_request:
            raise ValidationError("A revision request is required")
        item.revision_request = revision_request
        item.revision_requested_at = now
        item.revision_requested_by = actor
        details["revision_request"] = revision_request

    elif target == QueueStatus.DENIED.value:
        reason = (request.rejection_reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
        item.rejection_reason = reason
        item.reviewed_by = actor
        item.reviewed_at = now
        details["rejection_reason"] = reason

    elif target == QueueStatus.APPROVED.value:
        _validate_submission(SongSubmissionData.model_validate(item.current_data))
        item.reviewed_by = actor
        item.reviewed_at = now
        song = await _publish_song(db, item, actor)
        item.approved_song_id = song.id

    elif target == QueueStatus.SUBMITTED.value:
        item.revision_submitted_at = now
        if request.current_data is not None:
            _validate_submission(request.current_data)
            item.current_data = request.current_data.model_dump(mode="json")
            dropped = _prune_attachments(item, item.current_data)
            if dropped:
                details["dropped_attachments"] = dropped

    if request.admin_notes is not None:
        item.admin_notes = request.admin_notes or None

    item.status = target
    _record(
        db, item, QueueAction.STATUS_CHANGED,
        actor=actor, from_status=current, to_status=target, details=details or None,
    )
    await db.flush()

    logger.info(f"Submission #{item.submission_number}: {current} -> {target}")
    return await get_item(db, queue_id)


# ============ Messages and history ============

async def add_message(db: AsyncSession, queue_id: UUID, data: MessageCreate) -> SongQueueMessage:
    item = await get_item(db, queue_id)
    if data.sender_role == SenderRole.CLIENT.value and data.is_internal:
        raise ValidationError("Clients cannot post internal notes")

    message = SongQueueMessage(
        queue_id=item.id,
        sender_id=data.sender_id,
        sender_name=data.sender_name,
        sender_role=data.sender_role,
        message=data.message,
        is_internal=data.is_internal,
    )
    db.add(message)
    await db.flush()
    return message


async def list_messages(db: AsyncSession, queue_id: UUID, include_internal: bool = True) -> list[SongQueueMessage]:
    """Thread of an item. The client view passes include_internal=False."""
    await get_item(db, queue_id)
    query = select(SongQueueMessage).where(SongQueueMessage.queue_id == queue_id)
    if not include_internal:
        query = query.where(SongQueueMessage.is_internal.is_(False))
    result = await db.execute(query.order_by(SongQueueMessage.created_at))
    return list(result.scalars().all())


async def list_events(db: AsyncSession, queue_id: UUID) -> list[SongQueueEvent]:
    await get_item(db, queue_id)
    result = await db.execute(
        select(SongQueueEvent)
        .where(SongQueueEvent.queue_id == queue_id)
        .order_by(SongQueueEvent.created_at)
    )
    return list(result.scalars().all())


async def chord_chart_url(db: AsyncSession, queue_id: UUID) -> str:
    """Signed download URL for the submission's chord chart."""
    item = await get_item(db, queue_id)
    path = (item.current_data or {}).get("chord_chart_path")
    if not path:
        raise NotFoundError("This submission has no chord chart")
    return storage.create_signed_url(path)
