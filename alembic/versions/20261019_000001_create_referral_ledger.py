"""Create referral ledger tables.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, referral_codes, referrals and transactions."""

    op.create_table(
        'users',
        sa.Column('id', sa.String(128), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('photo_url', sa.String(1024), nullable=True),
        sa.Column('referral_code', sa.String(20), nullable=True),
        sa.Column('referred_by', sa.String(128), nullable=True),
        sa.Column('referred_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('referral_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('referral_count_valid', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('referral_balance', sa.DECIMAL(18, 8), nullable=False, server_default='0', comment='Pending referral earnings, swept at settlement'),
        sa.Column('wallet_balance', sa.DECIMAL(18, 8), nullable=False, server_default='0', comment='Withdrawable balance'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('referral_balance >= 0', name='ck_users_referral_balance_non_negative'),
        sa.CheckConstraint('wallet_balance >= 0', name='ck_users_wallet_balance_non_negative'),
        sa.CheckConstraint('referral_count >= 0', name='ck_users_referral_count_non_negative'),
        sa.CheckConstraint(
            'referral_count_valid >= 0 AND referral_count_valid <= referral_count',
            name='ck_users_referral_count_valid_bounded',
        ),
        sa.CheckConstraint('referred_by IS NULL OR referred_by <> id', name='ck_users_no_self_referral'),
        sa.ForeignKeyConstraint(['referred_by'], ['users.id'], name='fk_users_referred_by_users', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_referral_code', 'users', ['referral_code'], unique=True)
    op.create_index('ix_users_referred_by', 'users', ['referred_by'])
    op.create_index('ix_users_referral_balance', 'users', ['referral_balance'])

    op.create_table(
        'referral_codes',
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_referral_codes_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('code', name='pk_referral_codes'),
        sa.UniqueConstraint('user_id', name='uq_referral_codes_user_id'),
    )

    op.create_table(
        'referrals',
        sa.Column('id', sa.String(300), nullable=False),
        sa.Column('referrer_id', sa.String(128), nullable=False),
        sa.Column('referred_user_id', sa.String(128), nullable=False),
        sa.Column('referral_code', sa.String(20), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('tournament_type', sa.String(20), nullable=True, comment='Tournament type of the qualifying payment'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('validated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], name='fk_referrals_referrer_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referred_user_id'], ['users.id'], name='fk_referrals_referred_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_referrals'),
        sa.UniqueConstraint('referred_user_id', name='uq_referrals_referred_user_id'),
    )
    op.create_index('ix_referrals_referrer_id', 'referrals', ['referrer_id'])
    op.create_index('ix_referrals_status', 'referrals', ['status'])
    op.create_index('idx_referrals_referrer_created', 'referrals', ['referrer_id', 'created_at'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('currency', sa.String(10), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('amount > 0', name='ck_transactions_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_transactions_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_transactions'),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_type', 'transactions', ['type'])


def downgrade() -> None:
    """Drop referral ledger tables."""
    op.drop_index('ix_transactions_type', table_name='transactions')
    op.drop_index('ix_transactions_user_id', table_name='transactions')
    op.drop_table('transactions')

    op.drop_index('idx_referrals_referrer_created', table_name='referrals')
    op.drop_index('ix_referrals_status', table_name='referrals')
    op.drop_index('ix_referrals_referrer_id', table_name='referrals')
    op.drop_table('referrals')

    op.drop_table('referral_codes')

    op.drop_index('ix_users_referral_balance', table_name='users')
    op.drop_index('ix_users_referred_by', table_name='users')
    op.drop_index('ix_users_referral_code', table_name='users')
    op.drop_table('users')
