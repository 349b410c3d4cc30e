"""Schemas for disclosure exports."""
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

EXPORT_TYPES = ['licensing_activity', 'approval_history', 'agreement_registry']


class ExportParameters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class ExportRequest(BaseModel):
    export_type: str
    parameters: ExportParameters = Field(default_factory=ExportParameters)
    generated_by: Optional[str] = None

    @field_validator('export_type')
    @classmethod
    def validate_export_type(cls, v):
        if v not in EXPORT_TYPES:
            raise ValueError(f"export_type must be one of {', '.join(EXPORT_TYPES)}")
        return v


class ExportResult(BaseModel):
    """What the backend function returned."""
    success: bool
    data: Any = None
    record_count: int = 0
    watermark: Optional[str] = None


class DisclosureExportResponse(BaseModel):
    id: UUID
    export_type: str
    parameters: Optional[dict] = None
    status: str
    watermark: Optional[str] = None
    record_count: Optional[int] = None
    error: Optional[str] = None
    generated_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
