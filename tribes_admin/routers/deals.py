"""
Deals Router

Publishing deals: writer share split across publishers, scoped by territory.
All validation lives in services.allocation.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.database import get_db
from tribes_admin.schemas.deals import DealInput, DealPage, DealResponse, DealSongItem
from tribes_admin.services import allocation, search_sync

router = APIRouter(prefix="/deals", tags=["deals"])


@router.get("", response_model=DealPage)
async def list_deals(
    search: Optional[str] = None,
    writer_id: Optional[UUID] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """
    List deals, newest first.

    Query params:
    - search: Deal name or territory summary contains
    - writer_id: Filter by writer
    - status: active / expired / terminated
    """
    items, total = await allocation.list_deals(db, page, page_size, search, writer_id, status_filter)
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{deal_number}", response_model=DealResponse)
async def get_deal(
    deal_number: int,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return await allocation.get_deal(db, deal_number)


@router.post("", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    data: DealInput,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """
    Create a deal with its publishers and territories.

    Validates, in order:
    - Writer selected and exists
    - At least one publisher, each named with a share > 0
    - Publisher shares total the writer share exactly
    - Territory codes exist
    """
    deal = await allocation.create_deal(db, data)
    background_tasks.add_task(search_sync.flush_in_background)
    return deal


@router.put("/{deal_number}", response_model=DealResponse)
async def update_deal(
    deal_number: int,
    data: DealInput,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Replace a deal's terms. Publishers and territories are replaced as a set."""
    deal = await allocation.update_deal(db, deal_number, data)
    background_tasks.add_task(search_sync.flush_in_background)
    return deal


@router.delete("/{deal_number}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deal(
    deal_number: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Delete a deal. Refused while songs or submissions reference it."""
    await allocation.delete_deal(db, deal_number)
    background_tasks.add_task(search_sync.flush_in_background)


@router.get("/{deal_number}/songs", response_model=list[DealSongItem])
async def get_deal_songs(
    deal_number: int,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Catalogue songs administered through this deal."""
    return await allocation.deal_songs(db, deal_number)
