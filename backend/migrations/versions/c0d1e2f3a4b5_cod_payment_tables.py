"""cod payment tables

Revision ID: c0d1e2f3a4b5
Revises:
Create Date: 2026-10-18 09:12:31.204118

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c0d1e2f3a4b5'
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(insp, name):
    return name in set(insp.get_table_names())


def _index_names(insp, table):
    try:
        return {i['name'] for i in insp.get_indexes(table)}
    except Exception:
        return set()


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if not _table_exists(insp, 'carts'):
        op.create_table(
            'carts',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('customer_id', sa.String(length=64), nullable=True),
            sa.Column('customer_email', sa.String(length=254), nullable=True),
            sa.Column('currency', sa.String(length=3), nullable=True),
            sa.Column('subtotal', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('items_json', sa.Text(), nullable=True),
            sa.Column('purchased_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )
    if 'ix_carts_customer_id' not in _index_names(insp, 'carts'):
        op.create_index('ix_carts_customer_id', 'carts', ['customer_id'])

    if not _table_exists(insp, 'orders'):
        op.create_table(
            'orders',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('amount', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('currency', sa.String(length=3), nullable=False),
            sa.Column('customer_id', sa.String(length=64), nullable=True),
            sa.Column('customer_email', sa.String(length=254), nullable=True),
            sa.Column('items_json', sa.Text(), nullable=False, server_default='[]'),
            sa.Column('shipping_address_json', sa.Text(), nullable=True),
            sa.Column('status', sa.String(length=24), nullable=False, server_default='processing'),
            sa.Column('transaction_id', sa.String(length=64), nullable=True),
            sa.Column('transaction_ids_json', sa.Text(), nullable=False, server_default='[]'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )
    idx = _index_names(insp, 'orders')
    if 'ix_orders_customer_id' not in idx:
        op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    if 'ix_orders_transaction_id' not in idx:
        op.create_index('ix_orders_transaction_id', 'orders', ['transaction_id'])

    if not _table_exists(insp, 'transactions'):
        op.create_table(
            'transactions',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('customer_id', sa.String(length=64), nullable=True),
            sa.Column('customer_email', sa.String(length=254), nullable=True),
            sa.Column('currency', sa.String(length=3), nullable=False),
            sa.Column('amount', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('billing_address_json', sa.Text(), nullable=True),
            sa.Column('cart_id', sa.String(length=64), nullable=True),
            sa.Column('items_json', sa.Text(), nullable=True),
            sa.Column('payment_method', sa.String(length=32), nullable=False, server_default='cod'),
            sa.Column('status', sa.String(length=24), nullable=False, server_default='pending'),
            sa.Column('order_id', sa.String(length=64), nullable=True),
            sa.Column('cod_order_id', sa.String(length=64), nullable=True),
            sa.Column('cod_validation_status', sa.String(length=16), nullable=True),
            sa.Column('cod_delivery_status', sa.String(length=24), nullable=True),
            sa.Column('cod_payment_collected', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('cod_collection_date', sa.Date(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )
    idx = _index_names(insp, 'transactions')
    if 'ix_transactions_customer_id' not in idx:
        op.create_index('ix_transactions_customer_id', 'transactions', ['customer_id'])
    if 'ix_transactions_cart_id' not in idx:
        op.create_index('ix_transactions_cart_id', 'transactions', ['cart_id'])
    if 'ix_transactions_status' not in idx:
        op.create_index('ix_transactions_status', 'transactions', ['status'])
    if 'ix_transactions_cod_order_id' not in idx:
        op.create_index('ix_transactions_cod_order_id', 'transactions', ['cod_order_id'], unique=True)


def downgrade():
    op.drop_index('ix_transactions_cod_order_id', table_name='transactions')
    op.drop_index('ix_transactions_status', table_name='transactions')
    op.drop_index('ix_transactions_cart_id', table_name='transactions')
    op.drop_index('ix_transactions_customer_id', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_orders_transaction_id', table_name='orders')
    op.drop_index('ix_orders_customer_id', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_carts_customer_id', table_name='carts')
    op.drop_table('carts')
