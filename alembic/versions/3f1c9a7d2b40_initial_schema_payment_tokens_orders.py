"""Initial schema with payment_tokens, orders and order_payment_tokens tables

Revision ID: 3f1c9a7d2b40
Revises:
Create Date: 2026-10-19 10:12:31.204118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

token_id_type = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')


def upgrade() -> None:
    """Upgrade schema."""
    # Create payment_tokens table
    op.create_table(
        'payment_tokens',
        sa.Column('id', token_id_type, autoincrement=True, nullable=False, comment='Local token id'),
        sa.Column('token', sa.String(length=255), nullable=False, comment='Reepay payment method id'),
        sa.Column('gateway_id', sa.String(length=100), nullable=False, comment='Owning payment-method integration'),
        sa.Column('user_id', sa.BigInteger(), nullable=False, comment='Owning customer id'),
        sa.Column('token_type', sa.String(length=32), nullable=False, comment='card | wallet_recurring'),
        sa.Column('last4', sa.String(length=4), nullable=True),
        sa.Column('expiry_month', sa.String(length=2), nullable=True),
        sa.Column('expiry_year', sa.SmallInteger(), nullable=True),
        sa.Column('card_type', sa.String(length=50), nullable=True),
        sa.Column('masked_card', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Token creation timestamp'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index(op.f('ix_payment_tokens_user_id'), 'payment_tokens', ['user_id'])
    op.create_index('idx_payment_tokens_user_gateway', 'payment_tokens', ['user_id', 'gateway_id'])

    # Create orders table
    op.create_table(
        'orders',
        sa.Column('id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('customer_id', sa.BigInteger(), nullable=False, comment='0 for guest orders'),
        sa.Column('order_type', sa.String(length=20), nullable=False, comment='order | subscription'),
        sa.Column('parent_id', sa.BigInteger(), nullable=True, comment='Parent order of a subscription'),
        sa.Column('meta', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['parent_id'], ['orders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )

    # Create order_payment_tokens table
    op.create_table(
        'order_payment_tokens',
        sa.Column('order_id', sa.BigInteger(), nullable=False),
        sa.Column('token_id', token_id_type, nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['token_id'], ['payment_tokens.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('order_id', 'token_id'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('order_payment_tokens')
    op.drop_table('orders')
    op.drop_index('idx_payment_tokens_user_gateway', table_name='payment_tokens')
    op.drop_index(op.f('ix_payment_tokens_user_id'), table_name='payment_tokens')
    op.drop_table('payment_tokens')
