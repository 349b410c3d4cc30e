"""Schemas for deals and their publisher allocations."""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class DealPublisherInput(BaseModel):
    """
    One publisher row of a deal as sent by the editor.

    Rows are checked by the allocation engine rather than here, so an
    incomplete row yields the same ordered, human-readable errors the
    editor shows.
    """
    publisher_id: Optional[UUID] = Field(None, description="Registry publisher, fills name/PRO/IPI when omitted")
    publisher_name: Optional[str] = Field(None, max_length=255)
    publisher_pro: Optional[str] = Field(None, max_length=50)
    publisher_ipi: Optional[str] = Field(None, max_length=20)
    share: Decimal = Field(Decimal("0"), le=100, description="Percentage of the work (0 to 100)")
    tribes_administered: bool = True
    administrator_entity_id: Optional[UUID] = None


class DealInput(BaseModel):
    """Schema for creating or replacing a deal."""
    writer_id: Optional[UUID] = None
    writer_share: Decimal = Field(Decimal("100"), ge=0, le=100, description="Writer's share of the work (0 to 100)")
    territory_mode: str = Field("world", description="world, world_except or selected")
    territories: list[str] = Field(default_factory=list, description="Territory codes excluded or included")
    publishers: list[DealPublisherInput] = Field(default_factory=list)
    status: str = Field("active", description="active, expired or terminated")
    notes: Optional[str] = None

    @field_validator('territory_mode')
    @classmethod
    def validate_territory_mode(cls, v):
        if v not in ['world', 'world_except', 'selected']:
            raise ValueError("territory_mode must be 'world', 'world_except' or 'selected'")
        return v

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v not in ['active', 'expired', 'terminated']:
            raise ValueError("status must be 'active', 'expired' or 'terminated'")
        return v

    @field_validator('territories')
    @classmethod
    def normalize_codes(cls, v):
        seen = []
        for code in v:
            code = code.strip().upper()
            if code and code not in seen:
                seen.append(code)
        return seen


class DealPublisherResponse(BaseModel):
    id: UUID
    publisher_id: Optional[UUID] = None
    publisher_name: str
    publisher_pro: Optional[str] = None
    publisher_ipi: Optional[str] = None
    share: Decimal
    tribes_administered: bool
    administrator_entity_id: Optional[UUID] = None
    sort_order: int

    class Config:
        from_attributes = True


class DealResponse(BaseModel):
    """Schema for deal response."""
    id: UUID
    deal_number: int
    name: str
    writer_id: UUID
    writer_share: Decimal
    territory_mode: str
    territory: str
    territory_codes: list[str] = Field(default_factory=list)
    status: str
    notes: Optional[str] = None
    publishers: list[DealPublisherResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DealListItem(BaseModel):
    """Lightweight deal for list and picker views."""
    id: UUID
    deal_number: int
    name: str
    writer_id: UUID
    writer_share: Decimal
    territory: str
    status: str

    class Config:
        from_attributes = True


class DealPage(BaseModel):
    items: list[DealListItem]
    total: int
    page: int
    page_size: int


class DealSongItem(BaseModel):
    """Song associated with a deal."""
    id: UUID
    song_number: int
    title: str
    writer_id: UUID
    share: Decimal
