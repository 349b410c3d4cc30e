"""
Deal / allocation engine.

Business rules:
1. A deal belongs to one writer and controls writer_share percent of a work.
2. Publisher rows split the writer's share: their shares are > 0 and sum
   to writer_share exactly (Decimal arithmetic, no tolerance).
3. Territory scope:
   - world: no codes stored
   - world_except: codes are excluded
   - selected: codes are the only territories covered
4. Name and territory summary are derived on every save:
   "{writer name} — {territory summary} Deal".
5. A deal referenced by songs or queue submissions cannot be deleted, and
   keeps its writer.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tribes_admin.models.deal import Deal, DealStatus, TerritoryMode
from tribes_admin.models.deal_publisher import DealPublisher, DealTerritory
from tribes_admin.models.publisher import Publisher
from tribes_admin.models.song import Song, SongWriter
from tribes_admin.models.song_queue import SongQueueItem, SongQueueWriterDeal
from tribes_admin.models.territory import Territory, TribesEntity
from tribes_admin.models.writer import Writer
from tribes_admin.models.search_sync_event import SearchEntityType, SearchSyncAction
from tribes_admin.schemas.deals import DealInput, DealPublisherInput
from tribes_admin.services import search_sync
from tribes_admin.services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Above this many names the summary shows a count instead of the list
SUMMARY_MAX_NAMES = 3

# Share columns are Numeric(5, 2)
SHARE_QUANTUM = Decimal("0.01")


def format_percent(value: Decimal) -> str:
    """Render a percentage without trailing zeros (50.00 -> '50')."""
    value = Decimal(value)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return format(value.normalize(), "f")


def territory_summary(mode: str, names: list[str]) -> str:
    """
    Human-readable territory scope of a deal.

    >>> territory_summary("world_except", ["France", "Japan"])
    'World except France, Japan'
    """
    if mode == TerritoryMode.WORLD.value:
        return "World"

    if mode == TerritoryMode.WORLD_EXCEPT.value:
        if not names:
            return "World"
        if len(names) <= SUMMARY_MAX_NAMES:
            return f"World except {', '.join(names)}"
        return f"World except {len(names)} territories"

    if not names:
        return "No territories selected"
    if len(names) <= SUMMARY_MAX_NAMES:
        return ", ".join(names)
    return f"{len(names)} territories"


def deal_name(writer_name: str, summary: str) -> str:
    return f"{writer_name} — {summary} Deal"


def has_share_precision(value) -> bool:
    """Whether a percentage fits the stored precision of two decimals."""
    value = Decimal(value)
    return value == value.quantize(SHARE_QUANTUM)


def covers_territory(mode: str, codes: Iterable[str], territory: Optional[str]) -> bool:
    """Whether a deal with this scope applies in the given territory."""
    if not territory or mode == TerritoryMode.WORLD.value:
        return True
    codes = set(codes)
    if mode == TerritoryMode.WORLD_EXCEPT.value:
        return territory not in codes
    return territory in codes


def validate_allocation(
    writer_id: Optional[UUID],
    writer_share: Decimal,
    publishers: list[DealPublisherInput],
) -> None:
    """
    Check the allocation rules in the order the deal editor reports them.

    Publisher names must already be filled from the registry.
    Raises ValidationError on the first failure.
    """
    if writer_id is None:
        raise ValidationError("Select a writer")

    if not publishers:
        raise ValidationError("Add at least one publisher")

    if any(not (p.publisher_name or "").strip() for p in publishers):
        raise ValidationError("All publishers must have a name")

    if any(p.share <= 0 for p in publishers):
        raise ValidationError("All publishers must have a share > 0%")

    if not has_share_precision(writer_share) or any(not has_share_precision(p.share) for p in publishers):
        raise ValidationError("Shares allow at most 2 decimals")

    total = sum((Decimal(p.share) for p in publishers), Decimal("0"))
    if total != Decimal(writer_share):
        raise ValidationError(
            f"Publisher shares must equal {format_percent(writer_share)}% "
            f"(got {format_percent(total)}%)"
        )


async def next_deal_number(db: AsyncSession) -> int:
    result = await db.execute(select(func.max(Deal.deal_number)))
    return (result.scalar() or 0) + 1


async def get_deal(db: AsyncSession, deal_number: int) -> Deal:
    """Load a deal with its publishers and territories."""
    result = await db.execute(
        select(Deal)
        .options(selectinload(Deal.publishers), selectinload(Deal.territories))
        .where(Deal.deal_number == deal_number)
        .execution_options(populate_existing=True)
    )
    deal = result.scalar_one_or_none()
    if not deal:
        raise NotFoundError(f"Deal #{deal_number} not found")
    return deal


async def _get_writer(db: AsyncSession, writer_id: UUID) -> Writer:
    writer = await db.get(Writer, writer_id)
    if not writer:
        raise NotFoundError(f"Writer {writer_id} not found")
    return writer


async def _fill_from_registry(
    db: AsyncSession,
    publishers: list[DealPublisherInput],
) -> list[DealPublisherInput]:
    """Copy name/PRO/IPI from the publisher registry where the row leaves them blank."""
    ids = {p.publisher_id for p in publishers if p.publisher_id}
    registry = {}
    if ids:
        result = await db.execute(select(Publisher).where(Publisher.id.in_(ids)))
        registry = {pub.id: pub for pub in result.scalars().all()}

    filled = []
    for row in publishers:
        if row.publisher_id:
            pub = registry.get(row.publisher_id)
            if not pub:
                raise ValidationError(f"Publisher {row.publisher_id} not found")
            row = row.model_copy(update={
                "publisher_name": (row.publisher_name or "").strip() or pub.name,
                "publisher_pro": row.publisher_pro or pub.pro,
                "publisher_ipi": row.publisher_ipi or pub.ipi_number,
            })
        filled.append(row)
    return filled


async def _territory_names(db: AsyncSession, codes: list[str]) -> list[str]:
    """Resolve codes to names, in the order given. Unknown codes are rejected."""
    if not codes:
        return []
    result = await db.execute(select(Territory).where(Territory.code.in_(codes)))
    by_code = {t.code: t.name for t in result.scalars().all()}

    unknown = [c for c in codes if c not in by_code]
    if unknown:
        raise ValidationError(f"Unknown territory code(s): {', '.join(unknown)}")
    return [by_code[c] for c in codes]


async def _entities_by_pro(db: AsyncSession) -> dict[str, UUID]:
    result = await db.execute(select(TribesEntity).where(TribesEntity.pro.is_not(None)))
    entities = {}
    for entity in result.scalars().all():
        entities.setdefault(entity.pro.upper(), entity.id)
    return entities


async def _prepare(db: AsyncSession, data: DealInput) -> tuple[Writer, list[DealPublisherInput], list[str], str]:
    """Run every check for a create or update and return the derived values."""
    if data.writer_id is None:
        raise ValidationError("Select a writer")
    writer = await _get_writer(db, data.writer_id)

    if not data.publishers:
        raise ValidationError("Add at least one publisher")
    publishers = await _fill_from_registry(db, data.publishers)
    validate_allocation(data.writer_id, data.writer_share, publishers)

    codes = [] if data.territory_mode == TerritoryMode.WORLD.value else data.territories
    names = await _territory_names(db, codes)
    summary = territory_summary(data.territory_mode, names)

    return writer, publishers, codes, summary


async def _build_publisher_rows(db: AsyncSession, publishers: list[DealPublisherInput]) -> list[DealPublisher]:
    entities = await _entities_by_pro(db)
    rows = []
    for i, p in enumerate(publishers):
        entity_id = p.administrator_entity_id
        if entity_id is None and p.tribes_administered and p.publisher_pro:
            entity_id = entities.get(p.publisher_pro.upper())
        rows.append(DealPublisher(
            publisher_id=p.publisher_id,
            publisher_name=p.publisher_name.strip(),
            publisher_pro=p.publisher_pro,
            publisher_ipi=p.publisher_ipi,
            share=p.share,
            tribes_administered=p.tribes_administered,
            administrator_entity_id=entity_id,
            sort_order=i,
        ))
    return rows


async def create_deal(db: AsyncSession, data: DealInput) -> Deal:
    """Validate and insert a deal with its publishers and territories."""
    writer, publishers, codes, summary = await _prepare(db, data)

    deal = Deal(
        deal_number=await next_deal_number(db),
        name=deal_name(writer.name, summary),
        writer_id=writer.id,
        writer_share=data.writer_share,
        territory_mode=data.territory_mode,
        territory=summary,
        status=data.status,
        notes=data.notes or None,
    )
    deal.publishers = await _build_publisher_rows(db, publishers)
    deal.territories = [DealTerritory(territory_code=code) for code in codes]
    db.add(deal)
    await db.flush()

    await search_sync.enqueue(db, SearchEntityType.DEAL, deal.id, SearchSyncAction.UPSERT)
    logger.info(f"Created deal #{deal.deal_number} for writer {writer.id}")

    return await get_deal(db, deal.deal_number)


async def update_deal(db: AsyncSession, deal_number: int, data: DealInput) -> Deal:
    """Replace a deal's terms, publishers and territories."""
    deal = await get_deal(db, deal_number)
    writer, publishers, codes, summary = await _prepare(db, data)

    # Attachments are per writer, so a referenced deal keeps its writer
    if writer.id != deal.writer_id:
        count = await count_deal_associations(db, deal.id)
        if count:
            raise ConflictError(
                f"Deal #{deal_number} is associated with {count} song(s) of its current writer. "
                f"Remove those associations before changing the writer."
            )

    deal.writer_id = writer.id
    deal.name = deal_name(writer.name, summary)
    deal.writer_share = data.writer_share
    deal.territory_mode = data.territory_mode
    deal.territory = summary
    deal.status = data.status
    deal.notes = data.notes or None

    # Delete the old child rows before inserting the new set
    deal.publishers.clear()
    deal.territories.clear()
    await db.flush()

    deal.publishers.extend(await _build_publisher_rows(db, publishers))
    deal.territories.extend(DealTerritory(territory_code=code) for code in codes)
    await db.flush()

    await search_sync.enqueue(db, SearchEntityType.DEAL, deal.id, SearchSyncAction.UPSERT)
    logger.info(f"Updated deal #{deal.deal_number}")

    return await get_deal(db, deal_number)


async def count_deal_associations(db: AsyncSession, deal_id: UUID) -> int:
    """Songs and queue submissions that reference a deal."""
    song_count = await db.scalar(
        select(func.count(SongWriter.id)).where(SongWriter.deal_id == deal_id)
    )

    queue_ids = set(
        (await db.execute(select(SongQueueItem.id).where(SongQueueItem.deal_id == deal_id))).scalars().all()
    )
    queue_ids.update(
        (await db.execute(
            select(SongQueueWriterDeal.queue_id).where(SongQueueWriterDeal.deal_id == deal_id)
        )).scalars().all()
    )

    return (song_count or 0) + len(queue_ids)


async def delete_deal(db: AsyncSession, deal_number: int) -> None:
    deal = await get_deal(db, deal_number)

    count = await count_deal_associations(db, deal.id)
    if count:
        raise ConflictError(
            f"This deal is associated with {count} song(s). Remove those associations first."
        )

    deal_id = deal.id
    await db.delete(deal)
    await db.flush()

    await search_sync.enqueue(db, SearchEntityType.DEAL, deal_id, SearchSyncAction.DELETE)
    logger.info(f"Deleted deal #{deal_number}")


async def list_deals(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 25,
    search: Optional[str] = None,
    writer_id: Optional[UUID] = None,
    status: Optional[str] = None,
) -> tuple[list[Deal], int]:
    """Paginated deals, newest number first."""
    query = select(Deal)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Deal.name.ilike(pattern), Deal.territory.ilike(pattern)))
    if writer_id:
        query = query.where(Deal.writer_id == writer_id)
    if status:
        query = query.where(Deal.status == status)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(Deal.deal_number.desc()).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return list(result.scalars().all()), total or 0


async def active_deals_for_writers(
    db: AsyncSession,
    writer_ids: Iterable[UUID],
    territory: Optional[str] = None,
) -> dict[UUID, list[Deal]]:
    """Active deals per writer, optionally restricted to those covering a territory."""
    writer_ids = [w for w in writer_ids if w]
    deals_by_writer: dict[UUID, list[Deal]] = {w: [] for w in writer_ids}
    if not writer_ids:
        return deals_by_writer

    result = await db.execute(
        select(Deal)
        .options(selectinload(Deal.territories))
        .where(Deal.writer_id.in_(writer_ids), Deal.status == DealStatus.ACTIVE.value)
        .order_by(Deal.deal_number)
    )
    for deal in result.scalars().all():
        if covers_territory(deal.territory_mode, deal.territory_codes, territory):
            deals_by_writer[deal.writer_id].append(deal)
    return deals_by_writer


async def deal_songs(db: AsyncSession, deal_number: int) -> list[dict]:
    """Catalogue songs whose writer credits are administered through a deal."""
    deal = await get_deal(db, deal_number)
    result = await db.execute(
        select(SongWriter, Song)
        .join(Song, Song.id == SongWriter.song_id)
        .where(SongWriter.deal_id == deal.id)
        .order_by(Song.song_number)
    )
    return [
        {
            "id": song.id,
            "song_number": song.song_number,
            "title": song.title,
            "writer_id": sw.writer_id,
            "share": sw.share,
        }
        for sw, song in result.all()
    ]
