"""Schemas for membership approvals."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

ROLES = ['tenant_admin', 'tenant_user', 'viewer']
CONTEXTS = ['publishing', 'licensing']


class MembershipResponse(BaseModel):
    id: UUID
    user_id: str
    user_email: str
    tenant_id: Optional[UUID] = None
    status: str
    role: Optional[str] = None
    allowed_contexts: Optional[list[str]] = None
    default_context: Optional[str] = None
    processed_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ApproveRequest(BaseModel):
    """Grant access: tenant, role and the workspaces the member may enter."""
    tenant_id: UUID
    role: str
    allowed_contexts: list[str] = Field(..., min_length=1)
    default_context: str
    actor: Optional[str] = None

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v not in ROLES:
            raise ValueError(f"role must be one of {', '.join(ROLES)}")
        return v

    @field_validator('allowed_contexts')
    @classmethod
    def validate_contexts(cls, v):
        for context in v:
            if context not in CONTEXTS:
                raise ValueError(f"Unknown context '{context}'")
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def default_in_allowed(self):
        if self.default_context not in self.allowed_contexts:
            raise ValueError("default_context must be one of allowed_contexts")
        return self


class DenyRequest(BaseModel):
    actor: Optional[str] = None


class TenantResponse(BaseModel):
    id: UUID
    name: str
    slug: str

    class Config:
        from_attributes = True
