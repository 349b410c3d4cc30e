"""
Search-index outbox.

Registry and deal writes call enqueue() inside their own transaction. After
the response is sent, flush_in_background() pushes pending rows to Algolia.
Rows that fail are marked failed and picked up again by reconcile.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional
from uuid import UUID

import httpx
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core import database
from tribes_admin.models.deal import Deal
from tribes_admin.models.publisher import Publisher
from tribes_admin.models.writer import Writer
from tribes_admin.models.search_sync_event import (
    SearchSyncEvent,
    SearchEntityType,
    SearchSyncAction,
    SearchSyncStatus,
)
from tribes_admin.services.errors import ExternalServiceError
from tribes_admin.services.search import AlgoliaService, algolia_service

logger = logging.getLogger(__name__)

INDEX_NAMES = {
    SearchEntityType.WRITER.value: "writers",
    SearchEntityType.PUBLISHER.value: "publishers",
    SearchEntityType.DEAL.value: "deals",
}

MODELS = {
    SearchEntityType.WRITER.value: Writer,
    SearchEntityType.PUBLISHER.value: Publisher,
    SearchEntityType.DEAL.value: Deal,
}

FLUSH_BATCH_SIZE = 200


async def enqueue(
    db: AsyncSession,
    entity_type: SearchEntityType,
    entity_id: UUID,
    action: SearchSyncAction,
) -> SearchSyncEvent:
    """Record that an entity must be re-indexed or removed from the index."""
    event = SearchSyncEvent(
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        status=SearchSyncStatus.PENDING.value,
    )
    db.add(event)
    await db.flush()
    return event


def to_document(entity_type: str, row) -> dict:
    """Index document for a writer, publisher or deal."""
    doc = {"objectID": str(row.id), "name": row.name}
    if entity_type == SearchEntityType.WRITER.value:
        doc.update({
            "first_name": row.first_name,
            "last_name": row.last_name,
            "pro": row.pro,
            "ipi_number": row.ipi_number,
        })
    elif entity_type == SearchEntityType.PUBLISHER.value:
        doc.update({"pro": row.pro, "ipi_number": row.ipi_number})
    elif entity_type == SearchEntityType.DEAL.value:
        doc.update({
            "deal_number": row.deal_number,
            "writer_id": str(row.writer_id),
            "territory": row.territory,
            "status": row.status,
        })
    return doc


async def _build_request(db: AsyncSession, event: SearchSyncEvent) -> dict:
    object_id = str(event.entity_id)
    if event.action == SearchSyncAction.UPSERT.value:
        row = await db.get(MODELS[event.entity_type], event.entity_id)
        if row is not None:
            return {"action": "updateObject", "body": to_document(event.entity_type, row)}
    # Deleted entities, and upserts whose row is gone, are removed from the index
    return {"action": "deleteObject", "body": {"objectID": object_id}}


async def flush_pending(
    db: AsyncSession,
    include_failed: bool = False,
    service: AlgoliaService = algolia_service,
) -> dict:
    """
    Push outbox rows to Algolia, one batch call per index.

    Returns:
        Counts of rows synced and failed in this run.
    """
    summary = {"synced": 0, "failed": 0, "skipped": False}

    if not service.admin_configured:
        logger.debug("Algolia admin key not configured, leaving search sync events pending")
        summary["skipped"] = True
        return summary

    statuses = [SearchSyncStatus.PENDING.value]
    if include_failed:
        statuses.append(SearchSyncStatus.FAILED.value)

    result = await db.execute(
        select(SearchSyncEvent)
        .where(SearchSyncEvent.status.in_(statuses))
        .order_by(SearchSyncEvent.created_at)
        .limit(FLUSH_BATCH_SIZE)
    )
    events = list(result.scalars().all())
    if not events:
        return summary

    by_index: dict[str, list[SearchSyncEvent]] = defaultdict(list)
    for event in events:
        by_index[INDEX_NAMES[event.entity_type]].append(event)

    for index, index_events in by_index.items():
        requests = [await _build_request(db, e) for e in index_events]
        now = datetime.utcnow()
        try:
            await service.batch(index, requests)
        except (ExternalServiceError, httpx.HTTPError) as e:
            logger.error(f"Search sync to index {index} failed: {e}")
            for event in index_events:
                event.status = SearchSyncStatus.FAILED.value
                event.attempts += 1
                event.last_error = str(e)
                event.processed_at = now
            summary["failed"] += len(index_events)
            continue

        for event in index_events:
            event.status = SearchSyncStatus.SYNCED.value
            event.attempts += 1
            event.last_error = None
            event.processed_at = now
        summary["synced"] += len(index_events)

    await db.flush()
    logger.info(f"Search sync: {summary['synced']} synced, {summary['failed']} failed")
    return summary


async def flush_in_background() -> None:
    """Background task entry point: flush pending rows in a fresh session."""
    async with database.async_session_maker() as session:
        try:
            await flush_pending(session)
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Background search sync failed: {e}")


async def sync_status(db: AsyncSession) -> dict:
    """Outbox row counts per status, plus the oldest pending row's age."""
    result = await db.execute(
        select(SearchSyncEvent.status, func.count(SearchSyncEvent.id)).group_by(SearchSyncEvent.status)
    )
    counts = {s.value: 0 for s in SearchSyncStatus}
    counts.update({status: count for status, count in result.all()})

    oldest: Optional[datetime] = await db.scalar(
        select(func.min(SearchSyncEvent.created_at)).where(
            SearchSyncEvent.status == SearchSyncStatus.PENDING.value
        )
    )
    return {
        "counts": counts,
        "oldest_pending_at": oldest,
        "algolia_configured": algolia_service.admin_configured,
    }
