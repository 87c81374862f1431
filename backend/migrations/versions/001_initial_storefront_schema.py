"""
Alembic migration: Create storefront schema for catalog, orders and payments.

Creates reference tables (products, delivery methods, shops, order
statuses), addresses, payments, coupons with per-customer redemptions,
orders and order lines, and seeds the order status taxonomy.

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ORDER_STATUSES = ('pending', 'processing', 'completed', 'cancelled')


def _id_column() -> sa.Column:
    return sa.Column('id', sa.Integer(), nullable=False, autoincrement=True, comment='Surrogate identifier')


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            comment='Timestamp when record was created',
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            comment='Timestamp when record was last updated',
        ),
    ]


def upgrade() -> None:
    """
    Upgrade database schema to the initial storefront tables.

    Money columns are NUMERIC(10, 2). Every order references exactly one
    payment, and a coupon can be redeemed once per customer.
    """
    # Reference data
    op.create_table(
        'products',
        _id_column(),
        *_timestamp_columns(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        comment='Sellable products',
    )

    for table in ('delivery_methods', 'shops'):
        op.create_table(
            table,
            _id_column(),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.PrimaryKeyConstraint('id', name=f'pk_{table}'),
            sa.UniqueConstraint('name', name=f'uq_{table}_name'),
        )

    op.create_table(
        'order_statuses',
        _id_column(),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_order_statuses'),
        sa.UniqueConstraint('name', name='uq_order_statuses_name'),
    )

    op.create_table(
        'addresses',
        _id_column(),
        *_timestamp_columns(),
        sa.Column('postal_code', sa.String(length=10), nullable=False),
        sa.Column('street', sa.String(length=200), nullable=False),
        sa.Column('house_number', sa.Integer(), nullable=False),
        sa.CheckConstraint('house_number > 0', name='ck_addresses_house_number_positive'),
        sa.PrimaryKeyConstraint('id', name='pk_addresses'),
        comment='Delivery addresses',
    )

    # Payments
    op.create_table(
        'payments',
        _id_column(),
        *_timestamp_columns(),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('method', sa.String(length=10), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False, server_default=sa.text('0')),
        sa.Column('card_last4', sa.String(length=4), nullable=True),
        sa.Column('cash_accepted', sa.Numeric(10, 2), nullable=True),
        sa.Column('cash_change', sa.Numeric(10, 2), nullable=True),
        sa.Column('coupon_code', sa.String(length=50), nullable=True),
        sa.Column('coupon_bonus', sa.Numeric(10, 2), nullable=True),
        sa.Column('coupon_expires_on', sa.Date(), nullable=True),
        sa.CheckConstraint(
            "method IN ('card', 'cash', 'coupon')",
            name='ck_payments_method_supported',
        ),
        sa.CheckConstraint('amount >= 0', name='ck_payments_amount_non_negative'),
        sa.CheckConstraint(
            'cash_change IS NULL OR cash_change >= 0',
            name='ck_payments_cash_change_non_negative',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_payments'),
        comment='Order payments',
    )
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])

    # Coupons
    op.create_table(
        'coupons',
        _id_column(),
        *_timestamp_columns(),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('bonus', sa.Numeric(10, 2), nullable=False),
        sa.Column('expires_on', sa.Date(), nullable=False),
        sa.CheckConstraint('bonus > 0', name='ck_coupons_bonus_positive'),
        sa.PrimaryKeyConstraint('id', name='pk_coupons'),
        sa.UniqueConstraint('code', name='uq_coupons_code'),
        comment='Discount coupons',
    )

    op.create_table(
        'coupon_redemptions',
        _id_column(),
        sa.Column('coupon_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('payment_id', sa.Integer(), nullable=False),
        sa.Column(
            'redeemed_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ['coupon_id'],
            ['coupons.id'],
            name='fk_coupon_redemptions_coupon_id_coupons',
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['payment_id'],
            ['payments.id'],
            name='fk_coupon_redemptions_payment_id_payments',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_coupon_redemptions'),
        sa.UniqueConstraint('coupon_id', 'user_id', name='uq_coupon_redemptions_coupon_user'),
        comment='One coupon redemption per customer',
    )

    # Orders
    op.create_table(
        'orders',
        _id_column(),
        *_timestamp_columns(),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('delivery_method_id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('address_id', sa.Integer(), nullable=False),
        sa.Column('payment_id', sa.Integer(), nullable=False),
        sa.Column('status_id', sa.Integer(), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False, server_default=sa.text('0')),
        sa.CheckConstraint('total >= 0', name='ck_orders_total_non_negative'),
        sa.ForeignKeyConstraint(
            ['delivery_method_id'],
            ['delivery_methods.id'],
            name='fk_orders_delivery_method_id_delivery_methods',
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_orders_shop_id_shops', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(
            ['address_id'],
            ['addresses.id'],
            name='fk_orders_address_id_addresses',
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['payment_id'],
            ['payments.id'],
            name='fk_orders_payment_id_payments',
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['status_id'],
            ['order_statuses.id'],
            name='fk_orders_status_id_order_statuses',
            ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
        sa.UniqueConstraint('order_number', name='uq_orders_order_number'),
        sa.UniqueConstraint('payment_id', name='uq_orders_payment_id'),
        comment='Customer orders',
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])

    op.create_table(
        'order_lines',
        _id_column(),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('line_total', sa.Numeric(10, 2), nullable=False, server_default=sa.text('0')),
        sa.CheckConstraint('quantity > 0', name='ck_order_lines_quantity_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_order_lines_unit_price_non_negative'),
        sa.ForeignKeyConstraint(
            ['order_id'],
            ['orders.id'],
            name='fk_order_lines_order_id_orders',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['product_id'],
            ['products.id'],
            name='fk_order_lines_product_id_products',
            ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_order_lines'),
        sa.UniqueConstraint('order_id', 'product_id', name='uq_order_lines_order_product'),
        comment='Order line items',
    )
    op.create_index('ix_order_lines_order_id', 'order_lines', ['order_id'])

    # Seed the order status taxonomy; checkout requires 'pending'
    statuses = sa.table('order_statuses', sa.column('name', sa.String))
    op.bulk_insert(statuses, [{'name': name} for name in ORDER_STATUSES])


def downgrade() -> None:
    """Drop every storefront table in reverse dependency order."""
    op.drop_index('ix_order_lines_order_id', table_name='order_lines')
    op.drop_table('order_lines')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_table('orders')
    op.drop_table('coupon_redemptions')
    op.drop_table('coupons')
    op.drop_index('ix_payments_user_id', table_name='payments')
    op.drop_table('payments')
    op.drop_table('addresses')
    op.drop_table('order_statuses')
    op.drop_table('shops')
    op.drop_table('delivery_methods')
    op.drop_table('products')
