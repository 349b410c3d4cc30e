"""
Reference Data Router

Territories and administering entities used by the deal editor.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.database import get_db
from tribes_admin.models import Territory, TribesEntity
from tribes_admin.schemas.registries import TerritoryResponse, TribesEntityResponse

router = APIRouter(tags=["reference"])


@router.get("/territories", response_model=list[TerritoryResponse])
async def list_territories(
    region: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    query = select(Territory)
    if region:
        query = query.where(Territory.region == region)
    result = await db.execute(query.order_by(Territory.sort_order, Territory.name))
    return result.scalars().all()


@router.get("/tribes-entities", response_model=list[TribesEntityResponse])
async def list_tribes_entities(
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    result = await db.execute(select(TribesEntity).order_by(TribesEntity.name))
    return result.scalars().all()
