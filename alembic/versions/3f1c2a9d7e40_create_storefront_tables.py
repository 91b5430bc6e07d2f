"""create_storefront_tables

Revision ID: 3f1c2a9d7e40
Revises:
Create Date: 2026-10-19 10:02:11.418337

"""
from alembic import op
import sqlalchemy as sa


revision = '3f1c2a9d7e40'
down_revision = None
branch_labels = None
depends_on = None

order_status = sa.Enum('PROCESSING', 'SHIPPED', 'DELIVERED', 'CANCELLED', name='orderstatus')


def upgrade() -> None:
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customers_id', 'customers', ['id'])
    op.create_index('ix_customers_email', 'customers', ['email'], unique=True)

    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=100), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', order_status, nullable=False),
        sa.Column('shipping_full_name', sa.String(length=255), nullable=False),
        sa.Column('shipping_phone', sa.String(length=50), nullable=False),
        sa.Column('shipping_address', sa.String(length=500), nullable=False),
        sa.Column('shipping_city', sa.String(length=100), nullable=False),
        sa.Column('shipping_postal_code', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_owner_id', 'orders', ['owner_id'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=32), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_items_id', 'order_items', ['id'])
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])


def downgrade() -> None:
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_index('ix_order_items_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('ix_orders_created_at', table_name='orders')
    op.drop_index('ix_orders_owner_id', table_name='orders')
    op.drop_table('orders')
    order_status.drop(op.get_bind(), checkfirst=True)
    op.drop_index('ix_customers_email', table_name='customers')
    op.drop_index('ix_customers_id', table_name='customers')
    op.drop_table('customers')
