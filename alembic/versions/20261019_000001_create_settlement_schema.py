"""Create settlement engine schema

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

"""
from datetime import UTC, datetime
from decimal import Decimal
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SURROGATE_KEY = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')
SEEDED_AT = datetime(2026, 10, 19, tzinfo=UTC)


def upgrade() -> None:
    # Members and sponsor graph
    op.create_table(
        'members',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('sponsor_id', sa.String(length=36), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'sponsor_assigned_at', sa.DateTime(timezone=True), nullable=True
        ),
        sa.CheckConstraint(
            'sponsor_id IS NULL OR sponsor_id <> id',
            name='ck_members_member_not_own_sponsor',
        ),
        sa.ForeignKeyConstraint(
            ['sponsor_id'], ['members.id'],
            name='fk_members_sponsor_id_members', ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_members'),
    )
    op.create_index('ix_members_sponsor_id', 'members', ['sponsor_id'])
    op.create_index('ix_members_is_active', 'members', ['is_active'])
    op.create_index(
        'ix_members_sponsor_enrolled', 'members', ['sponsor_id', 'enrolled_at']
    )

    # Phase configuration and state
    phase_tiers = op.create_table(
        'phase_tiers',
        sa.Column('tier', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column(
            'commission_rate', sa.Numeric(precision=6, scale=4), nullable=False
        ),
        sa.Column('credit_cents', sa.BigInteger(), nullable=False),
        sa.Column('free_product_value_cents', sa.BigInteger(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'commission_rate >= 0 AND commission_rate <= 1',
            name='ck_phase_tiers_phase_tier_rate_range',
        ),
        sa.CheckConstraint(
            'credit_cents >= 0',
            name='ck_phase_tiers_phase_tier_credit_non_negative',
        ),
        sa.CheckConstraint(
            'free_product_value_cents >= 0',
            name='ck_phase_tiers_phase_tier_free_product_non_negative',
        ),
        sa.PrimaryKeyConstraint('tier', name='pk_phase_tiers'),
    )

    op.create_table(
        'member_phases',
        sa.Column('member_id', sa.String(length=36), nullable=False),
        sa.Column('computed_tier', sa.Integer(), nullable=False),
        sa.Column('direct_active_count', sa.Integer(), nullable=False),
        sa.Column('total_direct_count', sa.Integer(), nullable=False),
        sa.Column('second_level_total', sa.Integer(), nullable=False),
        sa.Column('min_branch_second_level', sa.Integer(), nullable=False),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('override_tier', sa.Integer(), nullable=True),
        sa.Column('override_set_by', sa.String(length=64), nullable=True),
        sa.Column('override_reason', sa.Text(), nullable=True),
        sa.Column(
            'override_set_at', sa.DateTime(timezone=True), nullable=True
        ),
        sa.ForeignKeyConstraint(
            ['member_id'], ['members.id'],
            name='fk_member_phases_member_id_members', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('member_id', name='pk_member_phases'),
    )

    op.create_table(
        'phase_rewards',
        sa.Column('member_id', sa.String(length=36), nullable=False),
        sa.Column('tier', sa.Integer(), nullable=False),
        sa.Column('credit_granted_cents', sa.BigInteger(), nullable=False),
        sa.Column('credit_remaining_cents', sa.BigInteger(), nullable=False),
        sa.Column('free_product_value_cents', sa.BigInteger(), nullable=False),
        sa.Column('free_product_used', sa.Boolean(), nullable=False),
        sa.Column('granted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'credit_remaining_cents >= 0',
            name='ck_phase_rewards_phase_reward_credit_non_negative',
        ),
        sa.CheckConstraint(
            'credit_remaining_cents <= credit_granted_cents',
            name='ck_phase_rewards_phase_reward_credit_within_grant',
        ),
        sa.ForeignKeyConstraint(
            ['member_id'], ['members.id'],
            name='fk_phase_rewards_member_id_members', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('member_id', 'tier', name='pk_phase_rewards'),
    )

    # Wallet ledger
    op.create_table(
        'wallet_transactions',
        sa.Column('id', SURROGATE_KEY, autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('delta_cents', sa.BigInteger(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'delta_cents <> 0',
            name='ck_wallet_transactions_wallet_delta_non_zero',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['members.id'],
            name='fk_wallet_transactions_user_id_members', ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_wallet_transactions'),
    )
    op.create_index(
        'ix_wallet_transactions_user_id', 'wallet_transactions', ['user_id']
    )
    op.create_index(
        'ix_wallet_transactions_reference', 'wallet_transactions', ['reference']
    )
    op.create_index(
        'ix_wallet_transactions_user_created', 'wallet_transactions',
        ['user_id', 'created_at'],
    )

    # Commission settlement
    op.create_table(
        'order_settlements',
        sa.Column('order_id', sa.String(length=64), nullable=False),
        sa.Column('buyer_id', sa.String(length=36), nullable=False),
        sa.Column('paid_amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('total_distributed_cents', sa.BigInteger(), nullable=False),
        sa.Column('plan_version', sa.String(length=64), nullable=False),
        sa.Column('settled_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'paid_amount_cents > 0',
            name='ck_order_settlements_order_paid_amount_positive',
        ),
        sa.CheckConstraint(
            'total_distributed_cents >= 0',
            name='ck_order_settlements_order_distributed_non_negative',
        ),
        sa.ForeignKeyConstraint(
            ['buyer_id'], ['members.id'],
            name='fk_order_settlements_buyer_id_members', ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('order_id', name='pk_order_settlements'),
    )
    op.create_index(
        'ix_order_settlements_buyer_id', 'order_settlements', ['buyer_id']
    )

    op.create_table(
        'commission_records',
        sa.Column('id', SURROGATE_KEY, autoincrement=True, nullable=False),
        sa.Column('order_id', sa.String(length=64), nullable=False),
        sa.Column('recipient_id', sa.String(length=36), nullable=False),
        sa.Column('buyer_id', sa.String(length=36), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('tier', sa.Integer(), nullable=False),
        sa.Column('rate', sa.Numeric(precision=6, scale=4), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('wallet_transaction_id', SURROGATE_KEY, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'amount_cents > 0',
            name='ck_commission_records_commission_amount_positive',
        ),
        sa.CheckConstraint(
            'level >= 1',
            name='ck_commission_records_commission_level_positive',
        ),
        sa.ForeignKeyConstraint(
            ['order_id'], ['order_settlements.order_id'],
            name='fk_commission_records_order_id_order_settlements',
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['recipient_id'], ['members.id'],
            name='fk_commission_records_recipient_id_members',
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['wallet_transaction_id'], ['wallet_transactions.id'],
            name='fk_commission_records_wallet_transaction_id_wallet_transactions',
            ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_commission_records'),
        sa.UniqueConstraint(
            'order_id', 'recipient_id', 'level',
            name='uq_commission_order_recipient_level',
        ),
    )
    op.create_index(
        'ix_commission_records_order_id', 'commission_records', ['order_id']
    )
    op.create_index(
        'ix_commission_records_recipient_id', 'commission_records',
        ['recipient_id'],
    )

    # Payouts
    op.create_table(
        'payment_wallets',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('provider', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('min_amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('max_amount_cents', sa.BigInteger(), nullable=False),
        sa.CheckConstraint(
            'min_amount_cents > 0',
            name='ck_payment_wallets_payment_wallet_min_positive',
        ),
        sa.CheckConstraint(
            'max_amount_cents >= min_amount_cents',
            name='ck_payment_wallets_payment_wallet_max_above_min',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_payment_wallets'),
    )

    op.create_table(
        'withdrawal_limits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column(
            'single_transaction_limit_cents', sa.BigInteger(), nullable=False
        ),
        sa.Column('daily_limit_cents', sa.BigInteger(), nullable=False),
        sa.Column('monthly_limit_cents', sa.BigInteger(), nullable=False),
        sa.CheckConstraint(
            'single_transaction_limit_cents > 0',
            name='ck_withdrawal_limits_withdrawal_limit_single_positive',
        ),
        sa.CheckConstraint(
            'daily_limit_cents > 0',
            name='ck_withdrawal_limits_withdrawal_limit_daily_positive',
        ),
        sa.CheckConstraint(
            'monthly_limit_cents >= daily_limit_cents',
            name='ck_withdrawal_limits_withdrawal_limit_monthly_above_daily',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['members.id'],
            name='fk_withdrawal_limits_user_id_members', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_withdrawal_limits'),
        sa.UniqueConstraint('user_id', name='uq_withdrawal_limits_user_id'),
    )

    op.create_table(
        'payment_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('wallet_id', sa.String(length=36), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column(
            'status', sa.String(length=20),
            nullable=False, server_default='pending'
        ),
        sa.Column('proof_url', sa.Text(), nullable=True),
        sa.Column('transaction_hash', sa.String(length=255), nullable=True),
        sa.Column('processed_by', sa.String(length=64), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('debit_transaction_id', SURROGATE_KEY, nullable=True),
        sa.Column('refund_transaction_id', SURROGATE_KEY, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'amount_cents > 0',
            name='ck_payment_requests_payment_request_amount_positive',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['members.id'],
            name='fk_payment_requests_user_id_members', ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['wallet_id'], ['payment_wallets.id'],
            name='fk_payment_requests_wallet_id_payment_wallets',
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['debit_transaction_id'], ['wallet_transactions.id'],
            name='fk_payment_requests_debit_transaction_id_wallet_transactions',
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['refund_transaction_id'], ['wallet_transactions.id'],
            name='fk_payment_requests_refund_transaction_id_wallet_transactions',
            ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_payment_requests'),
    )
    op.create_index('ix_payment_requests_status', 'payment_requests', ['status'])
    op.create_index(
        'ix_payment_requests_user_status', 'payment_requests',
        ['user_id', 'status'],
    )
    op.create_index(
        'ix_payment_requests_user_created', 'payment_requests',
        ['user_id', 'created_at'],
    )

    # Default tiers: 10 levels at the top rate stay within a 100% payout
    op.bulk_insert(
        phase_tiers,
        [
            {
                'tier': 0, 'name': 'Registered', 'commission_rate': Decimal('0'),
                'credit_cents': 0, 'free_product_value_cents': 0,
                'is_active': True, 'display_order': 0,
                'updated_at': SEEDED_AT,
            },
            {
                'tier': 1, 'name': 'Phase 1', 'commission_rate': Decimal('0.05'),
                'credit_cents': 0, 'free_product_value_cents': 6500,
                'is_active': True, 'display_order': 1,
                'updated_at': SEEDED_AT,
            },
            {
                'tier': 2, 'name': 'Phase 2', 'commission_rate': Decimal('0.08'),
                'credit_cents': 12500, 'free_product_value_cents': 0,
                'is_active': True, 'display_order': 2,
                'updated_at': SEEDED_AT,
            },
            {
                'tier': 3, 'name': 'Phase 3', 'commission_rate': Decimal('0.10'),
                'credit_cents': 24000, 'free_product_value_cents': 0,
                'is_active': True, 'display_order': 3,
                'updated_at': SEEDED_AT,
            },
        ],
    )


def downgrade() -> None:
    op.drop_index('ix_payment_requests_user_created', table_name='payment_requests')
    op.drop_index('ix_payment_requests_user_status', table_name='payment_requests')
    op.drop_index('ix_payment_requests_status', table_name='payment_requests')
    op.drop_table('payment_requests')
    op.drop_table('withdrawal_limits')
    op.drop_table('payment_wallets')
    op.drop_index(
        'ix_commission_records_recipient_id', table_name='commission_records'
    )
    op.drop_index(
        'ix_commission_records_order_id', table_name='commission_records'
    )
    op.drop_table('commission_records')
    op.drop_index(
        'ix_order_settlements_buyer_id', table_name='order_settlements'
    )
    op.drop_table('order_settlements')
    op.drop_index(
        'ix_wallet_transactions_user_created', table_name='wallet_transactions'
    )
    op.drop_index(
        'ix_wallet_transactions_reference', table_name='wallet_transactions'
    )
    op.drop_index(
        'ix_wallet_transactions_user_id', table_name='wallet_transactions'
    )
    op.drop_table('wallet_transactions')
    op.drop_table('phase_rewards')
    op.drop_table('member_phases')
    op.drop_table('phase_tiers')
    op.drop_index('ix_members_sponsor_enrolled', table_name='members')
    op.drop_index('ix_members_is_active', table_name='members')
    op.drop_index('ix_members_sponsor_id', table_name='members')
    op.drop_table('members')
