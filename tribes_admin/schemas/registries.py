"""Schemas for the writer, publisher and client registries."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class WriterBase(BaseModel):
    """Base schema for a writer."""
    name: Optional[str] = Field(None, max_length=255, description="Display name, derived from first/last when omitted")
    first_name: Optional[str] = Field(None, max_length=120)
    last_name: Optional[str] = Field(None, max_length=120)
    pro: Optional[str] = Field(None, max_length=50, description="Performing rights organisation, e.g. ASCAP")
    ipi_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)


class WriterCreate(WriterBase):
    """Schema for creating a writer."""

    @model_validator(mode="after")
    def derive_name(self):
        if not self.name or not self.name.strip():
            parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
            if not parts:
                raise ValueError("Writer name or first/last name is required")
            self.name = " ".join(parts)
        else:
            self.name = self.name.strip()
        return self


class WriterUpdate(WriterBase):
    """Schema for updating a writer. Only provided fields change."""
    pass


class WriterResponse(WriterBase):
    """Schema for writer response."""
    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PublisherBase(BaseModel):
    """Base schema for a publisher."""
    name: str = Field(..., min_length=1, max_length=255)
    pro: Optional[str] = Field(None, max_length=50)
    ipi_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Publisher name is required")
        return v


class PublisherCreate(PublisherBase):
    pass


class PublisherUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    pro: Optional[str] = Field(None, max_length=50)
    ipi_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        # Runs only when name is sent
        if v is None or not v.strip():
            raise ValueError("Publisher name cannot be empty")
        return v.strip()


class PublisherResponse(PublisherBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientBase(BaseModel):
    """Base schema for a client account."""
    name: str = Field(..., min_length=1, max_length=255)
    primary_email: Optional[str] = Field(None, max_length=255)
    status: str = Field("active", description="active or inactive")
    notes: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Client name is required")
        return v

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v not in ['active', 'inactive']:
            raise ValueError("status must be 'active' or 'inactive'")
        return v


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    primary_email: Optional[str] = Field(None, max_length=255)
    status: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        if v is None or not v.strip():
            raise ValueError("Client name cannot be empty")
        return v.strip()

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v not in ['active', 'inactive']:
            raise ValueError("status must be 'active' or 'inactive'")
        return v


class ClientResponse(ClientBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WriterPage(BaseModel):
    """Paginated writers."""
    items: list[WriterResponse]
    total: int
    page: int
    page_size: int
    source: str = Field("database", description="'algolia' or 'database'")


class PublisherPage(BaseModel):
    """Paginated publishers."""
    items: list[PublisherResponse]
    total: int
    page: int
    page_size: int
    source: str = "database"


class ClientPage(BaseModel):
    """Paginated client accounts."""
    items: list[ClientResponse]
    total: int
    page: int
    page_size: int


class TerritoryResponse(BaseModel):
    code: str
    name: str
    region: Optional[str] = None
    sort_order: int = 0

    class Config:
        from_attributes = True


class TribesEntityResponse(BaseModel):
    id: UUID
    name: str
    pro: Optional[str] = None

    class Config:
        from_attributes = True
