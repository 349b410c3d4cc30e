"""
Disclosures Router

Regulatory disclosure exports generated by the backend function.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.database import get_db
from tribes_admin.schemas.disclosures import DisclosureExportResponse, ExportRequest, ExportResult
from tribes_admin.services import disclosures

router = APIRouter(prefix="/disclosures", tags=["disclosures"])


@router.post("/exports", response_model=ExportResult)
async def generate_export(
    request: ExportRequest,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """
    Generate a disclosure pack.

    Returns the pack data with its record count and watermark. A failure in
    the backend function is returned as 502 with its message.
    """
    _record, result = await disclosures.generate_export(db, request)
    return result


@router.get("/exports", response_model=list[DisclosureExportResponse])
async def list_exports(
    export_type: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Export history, newest first."""
    return await disclosures.list_exports(db, export_type, limit)
