"""Create payment provider catalog and cooperative bindings.

Revision ID: 001_payment_providers
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_payment_providers'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create payment provider tables."""
    # Create payment_providers table
    op.create_table(
        'payment_providers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('logo_url', sa.String(500), nullable=True),
        sa.Column('website_url', sa.String(500), nullable=True),
        sa.Column('api_base_url', sa.String(500), nullable=True),
        sa.Column('api_version', sa.String(50), nullable=True),
        sa.Column('documentation_url', sa.String(500), nullable=True),
        sa.Column('supports_webhooks', sa.Boolean(), nullable=False),
        sa.Column('supports_cards', sa.Boolean(), nullable=False),
        sa.Column('supports_transfers', sa.Boolean(), nullable=False),
        sa.Column('supports_cash', sa.Boolean(), nullable=False),
        sa.Column('supports_recurring', sa.Boolean(), nullable=False),
        sa.Column('min_amount', sa.Integer(), nullable=True),
        sa.Column('max_amount', sa.Integer(), nullable=True),
        sa.Column('fee_percentage', sa.Numeric(precision=7, scale=4), nullable=True),
        sa.Column('fixed_fee', sa.Integer(), nullable=True),
        sa.Column('expiration_minutes', sa.Integer(), nullable=False),
        sa.Column('confirmation_hours', sa.Integer(), nullable=False),
        sa.Column('countries', sa.JSON(), nullable=False),
        sa.Column('currencies', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('idx_provider_type', 'payment_providers', ['type'])
    op.create_index('idx_provider_status', 'payment_providers', ['status'])
    op.create_index('ix_payment_providers_is_active', 'payment_providers', ['is_active'])

    # Create cooperative_payment_providers table
    op.create_table(
        'cooperative_payment_providers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('cooperative_id', sa.String(64), nullable=False),
        sa.Column('provider_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_principal', sa.Boolean(), nullable=False),
        sa.Column('test_environment', sa.Boolean(), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('public_key', sa.Text(), nullable=True),
        sa.Column('private_key', sa.Text(), nullable=True),
        sa.Column('webhook_secret', sa.Text(), nullable=True),
        sa.Column('webhook_url', sa.String(500), nullable=True),
        sa.Column('custom_config', sa.JSON(), nullable=False),
        sa.Column('min_amount', sa.Integer(), nullable=True),
        sa.Column('max_amount', sa.Integer(), nullable=True),
        sa.Column('additional_fee', sa.Numeric(precision=7, scale=4), nullable=True),
        sa.Column('connectivity_status', sa.String(20), nullable=False),
        sa.Column('last_connection_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_connection_error', sa.Text(), nullable=True),
        sa.Column('transaction_count', sa.Integer(), nullable=False),
        sa.Column('total_amount_processed', sa.BigInteger(), nullable=False),
        sa.Column('last_transaction_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('integrated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['provider_id'], ['payment_providers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cooperative_id'),
    )
    op.create_index(
        'ix_cooperative_payment_providers_provider_id',
        'cooperative_payment_providers',
        ['provider_id'],
    )
    op.create_index(
        'idx_binding_cooperative_principal',
        'cooperative_payment_providers',
        ['cooperative_id', 'is_principal'],
    )


def downgrade() -> None:
    """Drop payment provider tables."""
    op.drop_index('idx_binding_cooperative_principal', table_name='cooperative_payment_providers')
    op.drop_index('ix_cooperative_payment_providers_provider_id', table_name='cooperative_payment_providers')
    op.drop_table('cooperative_payment_providers')
    op.drop_index('ix_payment_providers_is_active', table_name='payment_providers')
    op.drop_index('idx_provider_status', table_name='payment_providers')
    op.drop_index('idx_provider_type', table_name='payment_providers')
    op.drop_table('payment_providers')
