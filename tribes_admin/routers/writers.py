"""
Writers Router

Registry of songwriters. Search goes through Algolia when configured.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.database import get_db
from tribes_admin.models import Deal, SongWriter, Writer
from tribes_admin.models.search_sync_event import SearchEntityType, SearchSyncAction
from tribes_admin.schemas.registries import WriterCreate, WriterPage, WriterResponse, WriterUpdate
from tribes_admin.services import search_sync
from tribes_admin.services.errors import ConflictError, NotFoundError
from tribes_admin.services.search import search_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/writers", tags=["writers"])


async def _get_writer(db: AsyncSession, writer_id: UUID) -> Writer:
    writer = await db.get(Writer, writer_id)
    if not writer:
        raise NotFoundError(f"Writer {writer_id} not found")
    return writer


@router.get("", response_model=WriterPage)
async def list_writers(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """
    List writers.

    Query params:
    - search: Name search (Algolia, or ILIKE fallback)
    - page / page_size: Pagination
    """
    items, total, source = await search_registry(db, Writer, "writers", search, page, page_size)
    return {"items": items, "total": total, "page": page, "page_size": page_size, "source": source}


@router.get("/{writer_id}", response_model=WriterResponse)
async def get_writer(
    writer_id: UUID,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return await _get_writer(db, writer_id)


@router.post("", response_model=WriterResponse, status_code=status.HTTP_201_CREATED)
async def create_writer(
    data: WriterCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    writer = Writer(**data.model_dump())
    db.add(writer)
    await db.flush()

    await search_sync.enqueue(db, SearchEntityType.WRITER, writer.id, SearchSyncAction.UPSERT)
    background_tasks.add_task(search_sync.flush_in_background)
    logger.info(f"Created writer {writer.id} ({writer.name})")
    return writer


@router.put("/{writer_id}", response_model=WriterResponse)
async def update_writer(
    writer_id: UUID,
    data: WriterUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Update a writer. Only provided fields are changed."""
    writer = await _get_writer(db, writer_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "name" and not (value or "").strip():
            continue
        setattr(writer, field, value)
    await db.flush()
    await db.refresh(writer)

    await search_sync.enqueue(db, SearchEntityType.WRITER, writer.id, SearchSyncAction.UPSERT)
    background_tasks.add_task(search_sync.flush_in_background)
    return writer


@router.delete("/{writer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_writer(
    writer_id: UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Delete a writer that has no deals and no catalogue credits."""
    writer = await _get_writer(db, writer_id)

    deal_count = await db.scalar(select(func.count(Deal.id)).where(Deal.writer_id == writer_id))
    credit_count = await db.scalar(select(func.count(SongWriter.id)).where(SongWriter.writer_id == writer_id))
    if deal_count or credit_count:
        raise ConflictError(
            f"This writer has {deal_count} deal(s) and {credit_count} song credit(s). Remove those first."
        )

    await db.delete(writer)
    await search_sync.enqueue(db, SearchEntityType.WRITER, writer_id, SearchSyncAction.DELETE)
    background_tasks.add_task(search_sync.flush_in_background)
    logger.info(f"Deleted writer {writer_id}")
