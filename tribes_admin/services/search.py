"""
Registry search backed by Algolia, with a database fallback.

Uses the Algolia REST API directly over httpx.
https://www.algolia.com/doc/rest-api/search/

One index per entity kind (writers, publishers, deals). When no query is
given, Algolia is not configured, or the call fails, the registry is
searched with ILIKE on name instead and the result says so.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Type
from uuid import UUID

import httpx
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from tribes_admin.core.config import settings
from tribes_admin.services.errors import ExternalServiceError

logger = logging.getLogger(__name__)

SOURCE_ALGOLIA = "algolia"
SOURCE_DATABASE = "database"


class AlgoliaService:
    """Thin client for the Algolia search and batch endpoints."""

    TIMEOUT = 10.0

    @property
    def search_configured(self) -> bool:
        return bool(settings.ALGOLIA_APP_ID and settings.ALGOLIA_SEARCH_KEY)

    @property
    def admin_configured(self) -> bool:
        return bool(settings.ALGOLIA_APP_ID and settings.ALGOLIA_ADMIN_KEY)

    def _headers(self, api_key: str) -> dict:
        return {
            "X-Algolia-API-Key": api_key,
            "X-Algolia-Application-Id": settings.ALGOLIA_APP_ID,
        }

    async def search(self, index: str, query: str, page: int = 0, hits_per_page: int = 25) -> dict:
        """
        Query an index.

        Returns:
            The raw Algolia response (hits, nbHits, page, ...).
        """
        url = f"https://{settings.ALGOLIA_APP_ID}-dsn.algolia.net/1/indexes/{index}/query"
        async with httpx.AsyncClient(timeout=self.TIMEOUT) as client:
            response = await client.post(
                url,
                headers=self._headers(settings.ALGOLIA_SEARCH_KEY),
                json={"query": query, "page": page, "hitsPerPage": hits_per_page},
            )

        if response.status_code != 200:
            raise ExternalServiceError(f"Algolia search failed: {response.status_code} - {response.text}")
        return response.json()

    async def batch(self, index: str, requests: list[dict]) -> dict:
        """Send updateObject / deleteObject operations to an index."""
        url = f"https://{settings.ALGOLIA_APP_ID}.algolia.net/1/indexes/{index}/batch"
        async with httpx.AsyncClient(timeout=self.TIMEOUT) as client:
            response = await client.post(
                url,
                headers=self._headers(settings.ALGOLIA_ADMIN_KEY),
                json={"requests": requests},
            )

        if response.status_code != 200:
            raise ExternalServiceError(f"Algolia batch failed: {response.status_code} - {response.text}")
        return response.json()


algolia_service = AlgoliaService()


async def _database_search(
    db: AsyncSession,
    model: Type[Any],
    query: Optional[str],
    page: int,
    page_size: int,
) -> tuple[list[Any], int]:
    stmt = select(model)
    if query:
        stmt = stmt.where(model.name.ilike(f"%{query.strip()}%"))

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))
    stmt = stmt.order_by(model.name).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(stmt)
    return list(result.scalars().all()), total or 0


async def search_registry(
    db: AsyncSession,
    model: Type[Any],
    index: str,
    query: Optional[str] = None,
    page: int = 1,
    page_size: int = 25,
    service: AlgoliaService = algolia_service,
) -> tuple[list[Any], int, str]:
    """
    Paginated registry listing with optional text search.

    Returns:
        (rows, total, source) where source is "algolia" or "database".
    """
    if query and query.strip() and service.search_configured:
        try:
            data = await service.search(index, query.strip(), page=page - 1, hits_per_page=page_size)
        except (ExternalServiceError, httpx.HTTPError) as e:
            logger.warning(f"Algolia search on {index} failed, falling back to database: {e}")
        else:
            ids = [hit["objectID"] for hit in data.get("hits", []) if hit.get("objectID")]
            rows = []
            if ids:
                result = await db.execute(select(model).where(model.id.in_([UUID(i) for i in ids])))
                by_id = {str(row.id): row for row in result.scalars().all()}
                # Keep Algolia's ranking, skip hits deleted since indexing
                rows = [by_id[i] for i in ids if i in by_id]
            return rows, data.get("nbHits", len(rows)), SOURCE_ALGOLIA

    rows, total = await _database_search(db, model, query, page, page_size)
    return rows, total, SOURCE_DATABASE
