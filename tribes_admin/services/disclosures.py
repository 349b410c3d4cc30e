"""
Regulatory disclosure exports.

The report packs are assembled by the generate-disclosure-export edge
function; this service invokes it and keeps a history of every attempt.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.config import settings
from tribes_admin.core.supabase_client import get_functions_url
from tribes_admin.models.disclosure_export import DisclosureExport, DisclosureExportStatus
from tribes_admin.schemas.disclosures import ExportRequest, ExportResult
from tribes_admin.services.errors import ExternalServiceError

logger = logging.getLogger(__name__)

FUNCTION_TIMEOUT = 60.0


async def invoke_function(function_name: str, body: dict) -> dict:
    """
    Call an edge function with the service role key.

    Raises:
        ExternalServiceError: transport failure, non-2xx response or an
            "error" field in the body.
    """
    try:
        url = get_functions_url(function_name)
    except ValueError as e:
        raise ExternalServiceError(str(e))

    headers = {
        "Authorization": f"Bearer {settings.SUPABASE_SERVICE_ROLE_KEY}",
        "apikey": settings.SUPABASE_SERVICE_ROLE_KEY,
        "Content-Type": "application/json",
    }
    try:
        async with httpx.AsyncClient(timeout=FUNCTION_TIMEOUT) as client:
            response = await client.post(url, headers=headers, json=body)
    except httpx.HTTPError as e:
        raise ExternalServiceError(f"{function_name} unreachable: {e}")

    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.status_code >= 400 or data.get("error"):
        message = data.get("error") or response.text or f"HTTP {response.status_code}"
        raise ExternalServiceError(message)
    return data


async def generate_export(db: AsyncSession, request: ExportRequest) -> tuple[DisclosureExport, ExportResult]:
    """
    Generate a disclosure pack and record the attempt.

    A failed attempt is committed before the error propagates, so history
    keeps failures too.
    """
    parameters = request.parameters.model_dump(mode="json", exclude_none=True)
    record = DisclosureExport(
        export_type=request.export_type,
        parameters=parameters,
        generated_by=request.generated_by,
        status=DisclosureExportStatus.FAILED.value,
    )
    db.add(record)

    try:
        data = await invoke_function(
            settings.DISCLOSURE_FUNCTION_NAME,
            {"export_type": request.export_type, "parameters": parameters},
        )
        if not data.get("success"):
            raise ExternalServiceError(data.get("error") or "Export generation failed")
    except ExternalServiceError as e:
        logger.error(f"Disclosure export {request.export_type} failed: {e.detail}")
        record.error = e.detail
        await db.commit()
        raise

    result = ExportResult(
        success=True,
        data=data.get("data"),
        record_count=data.get("record_count") or 0,
        watermark=data.get("watermark"),
    )
    record.status = DisclosureExportStatus.COMPLETED.value
    record.watermark = result.watermark
    record.record_count = result.record_count
    await db.flush()

    logger.info(f"Generated {request.export_type} export {result.watermark} ({result.record_count} records)")
    return record, result


async def list_exports(db: AsyncSession, export_type: Optional[str] = None, limit: int = 50) -> list[DisclosureExport]:
    query = select(DisclosureExport)
    if export_type:
        query = query.where(DisclosureExport.export_type == export_type)
    query = query.order_by(DisclosureExport.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())
