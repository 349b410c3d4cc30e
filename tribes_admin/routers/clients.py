"""
Clients Router

Client accounts that submit songs.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.database import get_db
from tribes_admin.models import ClientAccount, SongQueueItem
from tribes_admin.schemas.registries import ClientCreate, ClientPage, ClientResponse, ClientUpdate
from tribes_admin.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])


async def _get_client(db: AsyncSession, client_id: UUID) -> ClientAccount:
    client = await db.get(ClientAccount, client_id)
    if not client:
        raise NotFoundError(f"Client {client_id} not found")
    return client


@router.get("", response_model=ClientPage)
async def list_clients(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """
    List client accounts.

    Query params:
    - search: Name or email contains
    - status: active / inactive
    """
    query = select(ClientAccount)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(ClientAccount.name.ilike(pattern) | ClientAccount.primary_email.ilike(pattern))
    if status_filter:
        query = query.where(ClientAccount.status == status_filter)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    result = await db.execute(
        query.order_by(ClientAccount.name).offset((page - 1) * page_size).limit(page_size)
    )
    return {"items": result.scalars().all(), "total": total or 0, "page": page, "page_size": page_size}


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    return await _get_client(db, client_id)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    client = ClientAccount(**data.model_dump())
    db.add(client)
    await db.flush()
    logger.info(f"Created client account {client.id} ({client.name})")
    return client


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: UUID,
    data: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    client = await _get_client(db, client_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(client, field, value)
    await db.flush()
    await db.refresh(client)
    return client


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Delete a client account without submissions. Deactivate it otherwise."""
    client = await _get_client(db, client_id)
    count = await db.scalar(
        select(func.count(SongQueueItem.id)).where(SongQueueItem.client_account_id == client_id)
    )
    if count:
        raise ConflictError(f"This client has {count} submission(s). Set it inactive instead.")
    await db.delete(client)
    logger.info(f"Deleted client account {client_id}")
