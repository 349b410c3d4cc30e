"""Create rights-management schema

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18

This migration creates:
- writers, publishers, client_accounts: registries
- territories, tribes_entities: reference data
- deals, deal_publishers, deal_territories: publishing deals
- songs, song_writers: catalogue
- song_queue, song_queue_writer_deals, song_queue_messages, song_queue_events: review queue
- tenants, tenant_memberships: approvals
- disclosure_exports: export history
- search_sync_events: search-index outbox
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Registries
    op.create_table(
        'writers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('first_name', sa.String(120), nullable=True),
        sa.Column('last_name', sa.String(120), nullable=True),
        sa.Column('pro', sa.String(50), nullable=True),
        sa.Column('ipi_number', sa.String(20), nullable=True, index=True),
        sa.Column('email', sa.String(255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'publishers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('pro', sa.String(50), nullable=True),
        sa.Column('ipi_number', sa.String(20), nullable=True, index=True),
        sa.Column('email', sa.String(255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'client_accounts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('primary_email', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )

    # Reference data
    op.create_table(
        'territories',
        sa.Column('code', sa.String(10), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('region', sa.String(60), nullable=True, index=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'tribes_entities',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('pro', sa.String(50), nullable=True, index=True),
    )

    # Deals
    op.create_table(
        'deals',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('deal_number', sa.Integer(), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('writer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('writers.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('writer_share', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('territory_mode', sa.String(20), nullable=False, server_default='world'),
        sa.Column('territory', sa.String(255), nullable=False, server_default='World'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active', index=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('writer_share >= 0 AND writer_share <= 100', name='check_writer_share_range'),
        sa.CheckConstraint("territory_mode IN ('world', 'world_except', 'selected')", name='check_territory_mode'),
    )

    op.create_table(
        'deal_publishers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('deal_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('deals.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('publisher_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('publishers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('publisher_name', sa.String(255), nullable=False),
        sa.Column('publisher_pro', sa.String(50), nullable=True),
        sa.Column('publisher_ipi', sa.String(20), nullable=True),
        sa.Column('share', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('tribes_administered', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('administrator_entity_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tribes_entities.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('share > 0 AND share <= 100', name='check_deal_publisher_share_range'),
    )

    op.create_table(
        'deal_territories',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('deal_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('deals.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('territory_code', sa.String(10), sa.ForeignKey('territories.code'), nullable=False),
        sa.UniqueConstraint('deal_id', 'territory_code', name='uq_deal_territory'),
    )

    # Catalogue
    op.create_table(
        'songs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('song_number', sa.Integer(), nullable=False, unique=True, index=True),
        sa.Column('title', sa.String(500), nullable=False, index=True),
        sa.Column('language', sa.String(50), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('source_queue_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'song_writers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('song_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('songs.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('writer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('writers.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('share', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('credit', sa.String(20), nullable=True),
        sa.Column('tribes_administered', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('deal_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('deals.id', ondelete='RESTRICT'), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Review queue
    op.create_table(
        'song_queue',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('submission_number', sa.Integer(), nullable=False, unique=True, index=True),
        sa.Column('client_account_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('client_accounts.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('submitted_by', sa.String(100), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        sa.Column('submitted_data', postgresql.JSONB(), nullable=False),
        sa.Column('current_data', postgresql.JSONB(), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='submitted', index=True),
        sa.Column('revision_request', sa.Text(), nullable=True),
        sa.Column('revision_requested_at', sa.DateTime(), nullable=True),
        sa.Column('revision_requested_by', sa.String(100), nullable=True),
        sa.Column('revision_submitted_at', sa.DateTime(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.String(100), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('approved_song_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('songs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('deal_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('deals.id', ondelete='RESTRICT'), nullable=True, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'song_queue_writer_deals',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('queue_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('song_queue.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('writer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('writers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('deal_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('deals.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('queue_id', 'writer_id', name='uq_queue_writer_deal'),
    )

    op.create_table(
        'song_queue_messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('queue_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('song_queue.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sender_id', sa.String(100), nullable=True),
        sa.Column('sender_name', sa.String(255), nullable=True),
        sa.Column('sender_role', sa.String(20), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_internal', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'song_queue_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('queue_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('song_queue.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('action', sa.String(40), nullable=False),
        sa.Column('from_status', sa.String(30), nullable=True),
        sa.Column('to_status', sa.String(30), nullable=True),
        sa.Column('actor', sa.String(100), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
    )

    # Approvals
    op.create_table(
        'tenants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'tenant_memberships',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(100), nullable=False, index=True),
        sa.Column('user_email', sa.String(255), nullable=False),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
        sa.Column('role', sa.String(30), nullable=True),
        sa.Column('allowed_contexts', sa.JSON(), nullable=True),
        sa.Column('default_context', sa.String(30), nullable=True),
        sa.Column('processed_by', sa.String(100), nullable=True),
        *_timestamps(),
    )

    # Disclosures
    op.create_table(
        'disclosure_exports',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('export_type', sa.String(40), nullable=False, index=True),
        sa.Column('parameters', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('watermark', sa.String(120), nullable=True, index=True),
        sa.Column('record_count', sa.Integer(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('generated_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Search-index outbox
    op.create_table(
        'search_sync_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('entity_type', sa.String(20), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column('action', sa.String(10), nullable=False),
        sa.Column('status', sa.String(10), nullable=False, server_default='pending', index=True),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('search_sync_events')
    op.drop_table('disclosure_exports')
    op.drop_table('tenant_memberships')
    op.drop_table('tenants')
    op.drop_table('song_queue_events')
    op.drop_table('song_queue_messages')
    op.drop_table('song_queue_writer_deals')
    op.drop_table('song_queue')
    op.drop_table('song_writers')
    op.drop_table('songs')
    op.drop_table('deal_territories')
    op.drop_table('deal_publishers')
    op.drop_table('deals')
    op.drop_table('tribes_entities')
    op.drop_table('territories')
    op.drop_table('client_accounts')
    op.drop_table('publishers')
    op.drop_table('writers')
