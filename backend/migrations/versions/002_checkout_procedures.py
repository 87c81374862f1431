"""
Alembic migration: Install PL/pgSQL checkout procedures.

Installs the server-side functions called by the procedure checkout store.
Business failures are raised with custom SQLSTATE codes:

- FL404: referenced payment, order or product does not exist, or the
  order has no lines
- FL501: coupon expired
- FL502: coupon already redeemed by this customer
- FL503: insufficient stock
- FL504: negative cash change

PostgreSQL only; on other dialects the migration is a no-op.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 09:30:00.000000
"""

from typing import Sequence, Union

from alembic import op

# Revision identifiers, used by Alembic
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROCEDURES = {
    'prc_create_payment(integer, varchar)': """
        CREATE OR REPLACE FUNCTION prc_create_payment(p_user_id integer, p_method varchar)
        RETURNS integer LANGUAGE plpgsql AS $$
        DECLARE
            v_id integer;
        BEGIN
            INSERT INTO payments (user_id, method, amount)
            VALUES (p_user_id, lower(p_method), 0)
            RETURNING id INTO v_id;
            RETURN v_id;
        END;
        $$
    """,
    'prc_payment_attach_card(integer, varchar)': """
        CREATE OR REPLACE FUNCTION prc_payment_attach_card(p_payment_id integer, p_card_last4 varchar)
        RETURNS void LANGUAGE plpgsql AS $$
        BEGIN
            UPDATE payments SET card_last4 = p_card_last4, updated_at = now()
             WHERE id = p_payment_id;
            IF NOT FOUND THEN
                RAISE EXCEPTION 'payment % not found', p_payment_id USING ERRCODE = 'FL404';
            END IF;
        END;
        $$
    """,
    'prc_payment_attach_cash(integer, numeric)': """
        CREATE OR REPLACE FUNCTION prc_payment_attach_cash(p_payment_id integer, p_accepted numeric)
        RETURNS void LANGUAGE plpgsql AS $$
        BEGIN
            UPDATE payments SET cash_accepted = round(p_accepted, 2), updated_at = now()
             WHERE id = p_payment_id;
            IF NOT FOUND THEN
                RAISE EXCEPTION 'payment % not found', p_payment_id USING ERRCODE = 'FL404';
            END IF;
        END;
        $$
    """,
    'prc_payment_set_change(integer, numeric)': """
        CREATE OR REPLACE FUNCTION prc_payment_set_change(p_payment_id integer, p_change numeric)
        RETURNS void LANGUAGE plpgsql AS $$
        BEGIN
            IF p_change < 0 THEN
                RAISE EXCEPTION 'negative change % for payment %', p_change, p_payment_id
                      USING ERRCODE = 'FL504';
            END IF;
            UPDATE payments SET cash_change = round(p_change, 2), updated_at = now()
             WHERE id = p_payment_id;
            IF NOT FOUND THEN
                RAISE EXCEPTION 'payment % not found', p_payment_id USING ERRCODE = 'FL404';
            END IF;
        END;
        $$
    """,
    'prc_create_address(varchar, varchar, integer)': """
        CREATE OR REPLACE FUNCTION prc_create_address(
            p_postal_code varchar, p_street varchar, p_house_number integer
        )
        RETURNS integer LANGUAGE plpgsql AS $$
        DECLARE
            v_id integer;
        BEGIN
            INSERT INTO addresses (postal_code, street, house_number)
            VALUES (p_postal_code, p_street, p_house_number)
            RETURNING id INTO v_id;
            RETURN v_id;
        END;
        $$
    """,
    'prc_create_order(integer, integer, integer, integer, integer, integer)': """
        CREATE OR REPLACE FUNCTION prc_create_order(
            p_user_id integer,
            p_delivery_method_id integer,
            p_status_id integer,
            p_shop_id integer,
            p_address_id integer,
            p_payment_id integer
        )
        RETURNS integer LANGUAGE plpgsql AS $$
        DECLARE
            v_id integer;
            v_number varchar(32);
        BEGIN
            v_number := 'FL-' || to_char(now() AT TIME ZONE 'UTC', 'YYYYMMDD') || '-'
                        || upper(substr(md5(random()::text || clock_timestamp()::text), 1, 6));
            INSERT INTO orders (
                order_number, user_id, delivery_method_id, status_id,
                shop_id, address_id, payment_id, total
            )
            VALUES (
                v_number, p_user_id, p_delivery_method_id, p_status_id,
                p_shop_id, p_address_id, p_payment_id, 0
            )
            RETURNING id INTO v_id;
            RETURN v_id;
        END;
        $$
    """,
    'prc_add_item(integer, integer, integer)': """
        CREATE OR REPLACE FUNCTION prc_add_item(p_order_id integer, p_product_id integer, p_quantity integer)
        RETURNS void LANGUAGE plpgsql AS $$
        DECLARE
            v_price numeric(10, 2);
        BEGIN
            SELECT price INTO v_price FROM products WHERE id = p_product_id;
            IF NOT FOUND THEN
                RAISE EXCEPTION 'product % not found', p_product_id USING ERRCODE = 'FL404';
            END IF;
            INSERT INTO order_lines (order_id, product_id, quantity, unit_price, line_total)
            VALUES (p_order_id, p_product_id, p_quantity, v_price, 0)
            ON CONFLICT (order_id, product_id)
            DO UPDATE SET quantity = order_lines.quantity + EXCLUDED.quantity;
        END;
        $$
    """,
    'prc_finalize_order(integer)': """
        CREATE OR REPLACE FUNCTION prc_finalize_order(p_order_id integer)
        RETURNS void LANGUAGE plpgsql AS $$
        DECLARE
            v_line record;
            v_total numeric(10, 2) := 0;
            v_payment_id integer;
            v_line_count integer := 0;
        BEGIN
            SELECT payment_id INTO v_payment_id FROM orders WHERE id = p_order_id;
            IF NOT FOUND THEN
                RAISE EXCEPTION 'order % not found', p_order_id USING ERRCODE = 'FL404';
            END IF;

            FOR v_line IN
                SELECT l.id, l.quantity, p.id AS product_id, p.price, p.stock
                  FROM order_lines l
                  JOIN products p ON p.id = l.product_id
                 WHERE l.order_id = p_order_id
                 ORDER BY p.id
                   FOR UPDATE OF p
            LOOP
                IF v_line.stock < v_line.quantity THEN
                    RAISE EXCEPTION 'insufficient stock for product %', v_line.product_id
                          USING ERRCODE = 'FL503';
                END IF;
                UPDATE products SET stock = stock - v_line.quantity, updated_at = now()
                 WHERE id = v_line.product_id;
                UPDATE order_lines
                   SET unit_price = v_line.price,
                       line_total = round(v_line.price * v_line.quantity, 2)
                 WHERE id = v_line.id;
                v_total := v_total + round(v_line.price * v_line.quantity, 2);
                v_line_count := v_line_count + 1;
            END LOOP;

            IF v_line_count = 0 THEN
                RAISE EXCEPTION 'order % has no lines', p_order_id USING ERRCODE = 'FL404';
            END IF;

            UPDATE orders SET total = v_total, updated_at = now() WHERE id = p_order_id;
            UPDATE payments SET amount = v_total, updated_at = now() WHERE id = v_payment_id;
        END;
        $$
    """,
    'prc_coupon_apply(integer, varchar)': """
        CREATE OR REPLACE FUNCTION prc_coupon_apply(p_payment_id integer, p_code varchar)
        RETURNS integer LANGUAGE plpgsql AS $$
        DECLARE
            v_payment payments%ROWTYPE;
            v_coupon coupons%ROWTYPE;
        BEGIN
            SELECT * INTO v_payment FROM payments WHERE id = p_payment_id;
            IF NOT FOUND THEN
                RAISE EXCEPTION 'payment % not found', p_payment_id USING ERRCODE = 'FL404';
            END IF;

            SELECT * INTO v_coupon FROM coupons WHERE code = trim(p_code);
            IF NOT FOUND THEN
                RETURN 1;
            END IF;
            IF v_coupon.expires_on < current_date THEN
                RETURN 2;
            END IF;
            IF v_coupon.bonus < v_payment.amount THEN
                RETURN 3;
            END IF;

            BEGIN
                INSERT INTO coupon_redemptions (coupon_id, user_id, payment_id)
                VALUES (v_coupon.id, v_payment.user_id, p_payment_id);
            EXCEPTION WHEN unique_violation THEN
                RAISE EXCEPTION 'coupon % already redeemed by user %', v_coupon.id, v_payment.user_id
                      USING ERRCODE = 'FL502';
            END;

            UPDATE payments
               SET coupon_code = v_coupon.code,
                   coupon_bonus = v_coupon.bonus,
                   coupon_expires_on = v_coupon.expires_on,
                   updated_at = now()
             WHERE id = p_payment_id;
            RETURN 0;
        END;
        $$
    """,
}


def upgrade() -> None:
    """Create or replace every checkout procedure."""
    if op.get_bind().dialect.name != 'postgresql':
        return
    for ddl in PROCEDURES.values():
        op.execute(ddl)


def downgrade() -> None:
    """Drop every checkout procedure."""
    if op.get_bind().dialect.name != 'postgresql':
        return
    for signature in reversed(list(PROCEDURES)):
        op.execute(f'DROP FUNCTION IF EXISTS {signature}')
