
from alembic import op
import sqlalchemy as sa

revision = "20261019120000"
down_revision = None

NOW = sa.text("(now() at time zone 'utc')")
ORDER_STATUS = sa.Enum('PENDING', 'PAID', 'SHIPPED', 'COMPLETED', 'CANCELLED', name='order_status')

def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=NOW),
    ]

def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='user'),
        *_timestamps(),
    )
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False, unique=True),
        sa.Column('description', sa.Text(), server_default=''),
        *_timestamps(),
    )
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), server_default=''),
        sa.Column('price_cents', sa.BigInteger(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('image_key', sa.String(length=255), nullable=True),
        sa.Column('image_url', sa.String(length=1024), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'carts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'user_addresses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('label', sa.String(length=120), server_default=''),
        sa.Column('recipient_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('address_line_1', sa.String(length=255), nullable=False),
        sa.Column('address_line_2', sa.String(length=255), server_default=''),
        sa.Column('city', sa.String(length=120), nullable=False),
        sa.Column('state', sa.String(length=120), nullable=False),
        sa.Column('postal_code', sa.String(length=32), nullable=False),
        sa.Column('country', sa.String(length=120), server_default='Indonesia'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
    )
    op.create_index(
        'uq_user_addresses_one_default', 'user_addresses', ['user_id'],
        unique=True, postgresql_where=sa.text('is_default'),
    )
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_address_id', sa.Integer(), sa.ForeignKey('user_addresses.id'), nullable=False, index=True),
        sa.Column('total_price_cents', sa.BigInteger(), nullable=False),
        sa.Column('payment_proof', sa.String(length=1024), nullable=True),
        sa.Column('status', ORDER_STATUS, nullable=False, server_default='PENDING'),
        *_timestamps(),
    )
    op.create_table(
        'order_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.BigInteger(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'contents',
        sa.Column('key', sa.String(length=191), primary_key=True),
        sa.Column('value', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'guest_messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
    )

def downgrade():
    op.drop_table('guest_messages')
    op.drop_table('contents')
    op.drop_table('order_details')
    op.drop_table('orders')
    op.drop_index('uq_user_addresses_one_default', table_name='user_addresses')
    op.drop_table('user_addresses')
    op.drop_table('carts')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('users')
    ORDER_STATUS.drop(op.get_bind(), checkfirst=True)
