"""
Approvals Router

Pending tenant membership requests: approve with a role and workspace
access, or deny.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.auth import verify_admin_token
from tribes_admin.core.database import get_db
from tribes_admin.models import Tenant, TenantMembership, MembershipStatus
from tribes_admin.schemas.approvals import (
    ApproveRequest,
    DenyRequest,
    MembershipResponse,
    TenantResponse,
)
from tribes_admin.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/approvals", tags=["approvals"])


async def _get_pending(db: AsyncSession, membership_id: UUID) -> TenantMembership:
    membership = await db.get(TenantMembership, membership_id)
    if not membership:
        raise NotFoundError(f"Membership {membership_id} not found")
    if membership.status != MembershipStatus.PENDING.value:
        raise ConflictError(f"This request has already been processed ({membership.status})")
    return membership


@router.get("", response_model=list[MembershipResponse])
async def list_pending(
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Pending membership requests, oldest first."""
    result = await db.execute(
        select(TenantMembership)
        .where(TenantMembership.status == MembershipStatus.PENDING.value)
        .order_by(TenantMembership.created_at)
    )
    return result.scalars().all()


@router.get("/tenants", response_model=list[TenantResponse])
async def list_tenants(
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Tenants an approver can assign a member to."""
    result = await db.execute(select(Tenant).order_by(Tenant.name))
    return result.scalars().all()


@router.post("/{membership_id}/approve", response_model=MembershipResponse)
async def approve_membership(
    membership_id: UUID,
    request: ApproveRequest,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    """Activate a pending membership with tenant, role and allowed contexts."""
    membership = await _get_pending(db, membership_id)

    if not await db.get(Tenant, request.tenant_id):
        raise NotFoundError(f"Tenant {request.tenant_id} not found")

    membership.tenant_id = request.tenant_id
    membership.role = request.role
    membership.allowed_contexts = request.allowed_contexts
    membership.default_context = request.default_context
    membership.status = MembershipStatus.ACTIVE.value
    membership.processed_by = request.actor
    await db.flush()
    await db.refresh(membership)

    logger.info(f"Approved membership {membership.id} for {membership.user_email} as {membership.role}")
    return membership


@router.post("/{membership_id}/deny", response_model=MembershipResponse)
async def deny_membership(
    membership_id: UUID,
    request: DenyRequest,
    db: AsyncSession = Depends(get_db),
    _token: str = Depends(verify_admin_token),
):
    membership = await _get_pending(db, membership_id)
    membership.status = MembershipStatus.DENIED.value
    membership.processed_by = request.actor
    await db.flush()
    await db.refresh(membership)

    logger.info(f"Denied membership {membership.id} for {membership.user_email}")
    return membership
