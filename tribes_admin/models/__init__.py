from tribes_admin.models.writer import Writer
from tribes_admin.models.publisher import Publisher
from tribes_admin.models.client_account import ClientAccount, ClientStatus
from tribes_admin.models.territory import Territory, TribesEntity
from tribes_admin.models.deal import Deal, DealStatus, TerritoryMode
from tribes_admin.models.deal_publisher import DealPublisher, DealTerritory
from tribes_admin.models.song import Song, SongWriter
from tribes_admin.models.song_queue import SongQueueItem, SongQueueWriterDeal, QueueStatus
from tribes_admin.models.song_queue_message import SongQueueMessage, SenderRole
from tribes_admin.models.song_queue_event import SongQueueEvent, QueueAction
from tribes_admin.models.membership import (
    Tenant,
    TenantMembership,
    MembershipStatus,
    MembershipRole,
    PortalContext,
)
from tribes_admin.models.disclosure_export import (
    DisclosureExport,
    DisclosureExportType,
    DisclosureExportStatus,
)
from tribes_admin.models.search_sync_event import (
    SearchSyncEvent,
    SearchEntityType,
    SearchSyncAction,
    SearchSyncStatus,
)

__all__ = [
    # Registries
    "Writer",
    "Publisher",
    "ClientAccount",
    "ClientStatus",
    "Territory",
    "TribesEntity",
    # Deals
    "Deal",
    "DealStatus",
    "TerritoryMode",
    "DealPublisher",
    "DealTerritory",
    # Catalogue
    "Song",
    "SongWriter",
    # Queue
    "SongQueueItem",
    "SongQueueWriterDeal",
    "QueueStatus",
    "SongQueueMessage",
    "SenderRole",
    "SongQueueEvent",
    "QueueAction",
    # Approvals
    "Tenant",
    "TenantMembership",
    "MembershipStatus",
    "MembershipRole",
    "PortalContext",
    # Disclosures
    "DisclosureExport",
    "DisclosureExportType",
    "DisclosureExportStatus",
    # Search outbox
    "SearchSyncEvent",
    "SearchEntityType",
    "SearchSyncAction",
    "SearchSyncStatus",
]
