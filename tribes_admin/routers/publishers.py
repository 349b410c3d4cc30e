"""
Publishers Router

Registry of publishers that deal publisher rows can reference.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.database import get_db
from tribes_admin.models import Publisher
from tribes_admin.models.search_sync_event import SearchEntityType, SearchSyncAction
from tribes_admin.schemas.registries import (
    PublisherCreate,
    PublisherPage,
    PublisherResponse,
    PublisherUpdate,
)
from tribes_admin.services import search_sync
from tribes_admin.services.errors import NotFoundError
from tribes_admin.services.search import search_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/publishers", tags=["publishers"])


async def _get_publisher(db: AsyncSession, publisher_id: UUID) -> Publisher:
    publisher = await db.get(Publisher, publisher_id)
    if not publisher:
        raise NotFoundError(f"Publisher {publisher_id} not found")
    return publisher


@router.get("", response_model=PublisherPage)
async def list_publishers(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    items, total, source = await search_registry(db, Publisher, "publishers", search, page, page_size)
    return {"items": items, "total": total, "page": page, "page_size": page_size, "source": source}


@router.get("/{publisher_id}", response_model=PublisherResponse)
async def get_publisher(
    publisher_id: UUID,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return await _get_publisher(db, publisher_id)


@router.post("", response_model=PublisherResponse, status_code=status.HTTP_201_CREATED)
async def create_publisher(
    data: PublisherCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    publisher = Publisher(**data.model_dump())
    db.add(publisher)
    await db.flush()

    await search_sync.enqueue(db, SearchEntityType.PUBLISHER, publisher.id, SearchSyncAction.UPSERT)
    background_tasks.add_task(search_sync.flush_in_background)
    logger.info(f"Created publisher {publisher.id} ({publisher.name})")
    return publisher


@router.put("/{publisher_id}", response_model=PublisherResponse)
async def update_publisher(
    publisher_id: UUID,
    data: PublisherUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    publisher = await _get_publisher(db, publisher_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(publisher, field, value.strip() if field == "name" and value else value)
    await db.flush()
    await db.refresh(publisher)

    await search_sync.enqueue(db, SearchEntityType.PUBLISHER, publisher.id, SearchSyncAction.UPSERT)
    background_tasks.add_task(search_sync.flush_in_background)
    return publisher


@router.delete("/{publisher_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_publisher(
    publisher_id: UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """
    Delete a publisher.

    Deal publisher rows keep their denormalised name/PRO/IPI and lose the
    registry link.
    """
    publisher = await _get_publisher(db, publisher_id)
    await db.delete(publisher)
    await search_sync.enqueue(db, SearchEntityType.PUBLISHER, publisher_id, SearchSyncAction.DELETE)
    background_tasks.add_task(search_sync.flush_in_background)
    logger.info(f"Deleted publisher {publisher_id}")
