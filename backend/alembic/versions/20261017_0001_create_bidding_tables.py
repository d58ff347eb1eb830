"""create accounts, bid requests, bids, messages and activity log

Revision ID: 1b2c3d4e5f60
Revises:
Create Date: 2026-10-17 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '1b2c3d4e5f60'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('api_key_hash', sa.String(256), nullable=False),
        sa.Column('phone', sa.String(40), nullable=True),
        sa.Column('address', sa.String(255), nullable=False),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('latitude', sa.Float, nullable=True),
        sa.Column('longitude', sa.Float, nullable=True),
        sa.Column('certifications', sa.JSON, nullable=False),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    op.create_index('ix_accounts_role', 'accounts', ['role'])
    op.create_index('ix_accounts_api_key_hash', 'accounts', ['api_key_hash'])

    op.create_table(
        'bid_requests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('warehouse_id', sa.String(36), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_name', sa.String(200), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('custom_requirements', sa.Text, nullable=True),
        sa.Column('quality_standards', sa.Text, nullable=True),
        sa.Column('packaging_requirements', sa.Text, nullable=True),
        sa.Column('delivery_location', sa.JSON, nullable=False),
        sa.Column('budget_min', sa.Numeric(14, 2), nullable=False),
        sa.Column('budget_max', sa.Numeric(14, 2), nullable=False),
        sa.Column('budget_preferred', sa.Numeric(14, 2), nullable=False),
        sa.Column('requested_delivery_date', sa.TIMESTAMP, nullable=True),
        sa.Column('urgency', sa.String(10), nullable=False, server_default='medium'),
        sa.Column('minimum_factory_rating', sa.Float, nullable=True),
        sa.Column('preferred_max_distance', sa.Float, nullable=True),
        sa.Column('required_certifications', sa.JSON, nullable=False),
        sa.Column('payment_terms', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('bidding_deadline', sa.TIMESTAMP, nullable=False),
        sa.Column('awarded_bid_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('awarded_at', sa.TIMESTAMP, nullable=True),
        sa.Column('cancelled_at', sa.TIMESTAMP, nullable=True),
    )
    op.create_index('ix_bid_requests_warehouse_id', 'bid_requests', ['warehouse_id'])
    op.create_index('ix_bid_requests_category', 'bid_requests', ['category'])
    op.create_index('ix_bid_requests_created_at', 'bid_requests', ['created_at'])
    op.create_index('ix_bid_requests_status_deadline', 'bid_requests', ['status', 'bidding_deadline'])

    op.create_table(
        'bids',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('bid_request_id', sa.String(36), sa.ForeignKey('bid_requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('factory_id', sa.String(36), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unit_price', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(16, 2), nullable=False),
        sa.Column('discount_offered', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('payment_terms', sa.String(100), nullable=False),
        sa.Column('price_breakdown', sa.JSON, nullable=True),
        sa.Column('estimated_delivery_date', sa.TIMESTAMP, nullable=False),
        sa.Column('delivery_method', sa.String(100), nullable=False),
        sa.Column('shipping_cost', sa.Numeric(14, 2), nullable=False),
        sa.Column('production_time_days', sa.Integer, nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('value_proposition', sa.Text, nullable=False),
        sa.Column('risk_mitigation', sa.Text, nullable=True),
        sa.Column('alternative_specs', sa.Text, nullable=True),
        sa.Column('competitive_advantages', sa.JSON, nullable=False),
        sa.Column('quality_assurance', sa.JSON, nullable=True),
        sa.Column('factory_capacity', sa.JSON, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='submitted'),
        sa.Column('valid_until', sa.TIMESTAMP, nullable=False),
        sa.Column('submitted_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('decided_at', sa.TIMESTAMP, nullable=True),
        sa.Column('withdrawn_at', sa.TIMESTAMP, nullable=True),
    )
    op.create_index('ix_bids_bid_request_id', 'bids', ['bid_request_id'])
    op.create_index('ix_bids_factory_id', 'bids', ['factory_id'])
    op.create_index('ix_bids_total_price', 'bids', ['total_price'])
    op.create_index('ix_bids_status', 'bids', ['status'])
    op.create_index('ix_bids_factory_status', 'bids', ['factory_id', 'status'])
    op.create_index(
        'uq_bids_request_factory_live',
        'bids',
        ['bid_request_id', 'factory_id'],
        unique=True,
        postgresql_where=sa.text("status <> 'withdrawn'"),
        sqlite_where=sa.text("status <> 'withdrawn'"),
    )

    op.create_table(
        'messages',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('from_account_id', sa.String(36), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('to_account_id', sa.String(36), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('bid_request_id', sa.String(36), sa.ForeignKey('bid_requests.id', ondelete='CASCADE'), nullable=True),
        sa.Column('bid_id', sa.String(36), sa.ForeignKey('bids.id', ondelete='CASCADE'), nullable=True),
        sa.Column('message_type', sa.String(50), nullable=False),
        sa.Column('content', sa.JSON, nullable=False),
        sa.Column('read_at', sa.TIMESTAMP, nullable=True),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_messages_to_account_id', 'messages', ['to_account_id'])
    op.create_index('ix_messages_bid_request_id', 'messages', ['bid_request_id'])
    op.create_index('ix_messages_read_at', 'messages', ['read_at'])

    op.create_table(
        'activity_log',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('event_type', sa.String(50), nullable=False),
        sa.Column('account_id', sa.String(36), nullable=True),
        sa.Column('bid_request_id', sa.String(36), nullable=True),
        sa.Column('bid_id', sa.String(36), nullable=True),
        sa.Column('data', sa.JSON, nullable=False),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_activity_log_bid_request_id', 'activity_log', ['bid_request_id'])
    op.create_index('idx_activity_created', 'activity_log', ['created_at'])
    op.create_index('idx_activity_type', 'activity_log', ['event_type'])


def downgrade() -> None:
    op.drop_table('activity_log')
    op.drop_table('messages')
    op.drop_index('uq_bids_request_factory_live', table_name='bids')
    op.drop_table('bids')
    op.drop_table('bid_requests')
    op.drop_table('accounts')
