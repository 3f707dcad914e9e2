"""initial delivery notes schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-01-12 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _tenant_columns():
    return [
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    ]


def _line_table(name, note_table):
    op.create_table(
        name,
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('delivery_note_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey(f'{note_table}.id', ondelete='CASCADE'), nullable=False),
        sa.Column('article_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('articles.id'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('article_code', sa.String(length=10), nullable=False),
        sa.Column('article_name', sa.String(length=50), nullable=False),
        sa.Column('quantity', sa.Numeric(18, 4), nullable=False),
        sa.Column('price', sa.Numeric(18, 4), nullable=False),
        sa.Column('iva_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(18, 4), nullable=False),
        sa.Column('iva_amount', sa.Numeric(18, 4), nullable=False),
        sa.Column('total', sa.Numeric(18, 4), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(f'ix_{name}_delivery_note_id', name, ['delivery_note_id'])
    op.create_index(f'ix_{name}_article_id', name, ['article_id'])


def _note_table(name, partner_column, partner_table):
    op.create_table(
        name,
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(partner_column, postgresql.UUID(as_uuid=True), sa.ForeignKey(f'{partner_table}.id'), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reference', sa.String(length=100), nullable=True),
        sa.Column('billing_status', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('subtotal', sa.Numeric(18, 4), nullable=False, server_default='0'),
        sa.Column('iva_total', sa.Numeric(18, 4), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(18, 4), nullable=False, server_default='0'),
        *_tenant_columns(),
    )
    op.create_index(f'ix_{name}_company_id', name, ['company_id'])
    op.create_index(f'ix_{name}_{partner_column}', name, [partner_column])
    op.create_index(f'ix_{name}_reference', name, ['reference'])
    op.create_index(f'ix_{name}_company_date', name, ['company_id', 'date'])


def upgrade() -> None:
    op.create_table(
        'families',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('iva_percentage', sa.Numeric(5, 2), nullable=False),
        *_tenant_columns(),
        sa.CheckConstraint('iva_percentage >= 0', name='ck_family_iva_nonneg'),
    )
    op.create_index('ix_families_company_id', 'families', ['company_id'])

    op.create_table(
        'articles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('family_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('families.id'), nullable=False),
        sa.Column('code', sa.String(length=10), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('buy_price', sa.Numeric(18, 4), nullable=False),
        sa.Column('sell_price', sa.Numeric(18, 4), nullable=False),
        sa.Column('stock', sa.Numeric(18, 4), nullable=False),
        *_tenant_columns(),
        sa.UniqueConstraint('company_id', 'code', name='uq_article_company_code'),
        sa.CheckConstraint('buy_price >= 0', name='ck_article_buy_price_nonneg'),
        sa.CheckConstraint('sell_price >= 0', name='ck_article_sell_price_nonneg'),
        sa.CheckConstraint('stock >= 0', name='ck_article_stock_nonneg'),
    )
    op.create_index('ix_articles_company_id', 'articles', ['company_id'])
    op.create_index('ix_articles_family_id', 'articles', ['family_id'])
    op.create_index('ix_articles_name', 'articles', ['name'])

    op.create_table(
        'tariffs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('type', sa.Enum('BUY', 'SELL', name='tarifftype'), nullable=False),
        *_tenant_columns(),
    )
    op.create_index('ix_tariffs_company_id', 'tariffs', ['company_id'])
    op.create_index('ix_tariffs_name', 'tariffs', ['name'])

    op.create_table(
        'tariff_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tariff_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tariffs.id'), nullable=False),
        sa.Column('article_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('articles.id'), nullable=False),
        sa.Column('price', sa.Numeric(18, 4), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_tariff_items_tariff_id', 'tariff_items', ['tariff_id'])
    op.create_index('ix_tariff_items_article_id', 'tariff_items', ['article_id'])

    for table, tariff_column in (('suppliers', 'buy_tariff_id'), ('customers', 'sell_tariff_id')):
        op.create_table(
            table,
            sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('tax_id', sa.String(length=50), nullable=True),
            sa.Column('email', sa.String(length=100), nullable=True),
            sa.Column('phone', sa.String(length=50), nullable=True),
            sa.Column('address', sa.Text(), nullable=True),
            sa.Column(tariff_column, postgresql.UUID(as_uuid=True), sa.ForeignKey('tariffs.id'), nullable=True),
            *_tenant_columns(),
        )
        op.create_index(f'ix_{table}_company_id', table, ['company_id'])
        op.create_index(f'ix_{table}_name', table, ['name'])

    op.create_table(
        'stock_movements',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('article_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('articles.id'), nullable=False),
        sa.Column('movement_type', sa.String(length=10), nullable=False),
        sa.Column('quantity', sa.Numeric(18, 4), nullable=False),
        sa.Column('reference', sa.String(length=100), nullable=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('quantity > 0', name='ck_stock_movement_qty_pos'),
    )
    op.create_index('ix_stock_movements_company_id', 'stock_movements', ['company_id'])
    op.create_index('ix_stock_movements_article_id', 'stock_movements', ['article_id'])

    _note_table('purchase_delivery_notes', 'supplier_id', 'suppliers')
    _line_table('purchase_delivery_note_lines', 'purchase_delivery_notes')
    _note_table('sales_delivery_notes', 'customer_id', 'customers')
    _line_table('sales_delivery_note_lines', 'sales_delivery_notes')


def downgrade() -> None:
    op.drop_table('sales_delivery_note_lines')
    op.drop_table('sales_delivery_notes')
    op.drop_table('purchase_delivery_note_lines')
    op.drop_table('purchase_delivery_notes')
    op.drop_table('stock_movements')
    op.drop_table('customers')
    op.drop_table('suppliers')
    op.drop_table('tariff_items')
    op.drop_table('tariffs')
    op.drop_table('articles')
    op.drop_table('families')
    sa.Enum(name='tarifftype').drop(op.get_bind(), checkfirst=True)
