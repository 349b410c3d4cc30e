"""
Search Sync Router

Status and manual reconciliation of the search-index outbox.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.database import get_db
from tribes_admin.services import search_sync

router = APIRouter(prefix="/search-sync", tags=["search-sync"])


@router.get("/status")
async def get_sync_status(
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Outbox counts per status and the oldest pending change."""
    return await search_sync.sync_status(db)


@router.post("/reconcile")
async def reconcile(
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Push pending and previously failed changes to the index now."""
    summary = await search_sync.flush_pending(db, include_failed=True)
    summary["status"] = await search_sync.sync_status(db)
    return summary
