"""initial earnings schema

Revision ID: 3f2a9c1d7e10
Revises:
Create Date: 2026-10-18 09:12:31.418220

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f2a9c1d7e10'
down_revision = None
branch_labels = None
depends_on = None


transaction_kind = sa.Enum(
    'deposit', 'withdrawal', 'package_purchase', 'task_reward', 'referral_bonus',
    name='transaction_kind',
)
deposit_status = sa.Enum('pending', 'approved', 'rejected', name='deposit_status')
withdrawal_status = sa.Enum('pending', 'paid', 'rejected', name='withdrawal_status')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('full_name', sa.String(length=150), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('balance', sa.Numeric(18, 2), server_default=sa.text('0'), nullable=False),
        sa.Column('referral_code', sa.String(length=20), nullable=False),
        sa.Column('referred_by', sa.Integer(), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('balance >= 0', name='ck_users_balance_non_negative'),
        sa.ForeignKeyConstraint(['referred_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone'),
        sa.UniqueConstraint('referral_code'),
    )
    op.create_index('ix_users_referred_by', 'users', ['referred_by'], unique=False)

    op.create_table(
        'packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Numeric(18, 2), nullable=False),
        sa.Column('daily_task_cap', sa.Integer(), nullable=False),
        sa.Column('daily_return', sa.Numeric(18, 2), nullable=False),
        sa.Column('duration_days', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('price > 0', name='ck_packages_price_positive'),
        sa.CheckConstraint('daily_task_cap >= 0', name='ck_packages_task_cap'),
        sa.CheckConstraint('duration_days > 0', name='ck_packages_duration'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'customer_bank_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('bank_name', sa.String(length=120), nullable=False),
        sa.Column('account_number', sa.String(length=64), nullable=False),
        sa.Column('account_holder', sa.String(length=150), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('reward_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('reward_amount > 0', name='ck_tasks_reward_positive'),
        sa.ForeignKeyConstraint(['package_id'], ['packages.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tasks_package_id', 'tasks', ['package_id'], unique=False)

    op.create_table(
        'user_packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=False),
        sa.Column('purchase_date', sa.DateTime(), nullable=False),
        sa.Column('expiry_date', sa.DateTime(), nullable=False),
        sa.Column('tasks_completed_today', sa.Integer(), nullable=False),
        sa.Column('last_task_date', sa.Date(), nullable=True),
        sa.Column('total_earned', sa.Numeric(18, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['package_id'], ['packages.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_packages_user_id', 'user_packages', ['user_id'], unique=False)
    op.create_index('ix_user_packages_package_id', 'user_packages', ['package_id'], unique=False)
    op.create_index('idx_user_packages_user_active', 'user_packages', ['user_id', 'is_active'], unique=False)
    op.create_index('idx_user_packages_expiry', 'user_packages', ['expiry_date'], unique=False)

    op.create_table(
        'user_task_completions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.Column('user_package_id', sa.Integer(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=False),
        sa.Column('completed_on', sa.Date(), nullable=False),
        sa.Column('reward_earned', sa.Numeric(18, 2), nullable=False),
        sa.ForeignKeyConstraint(['task_id'], ['tasks.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_package_id'], ['user_packages.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('task_id', 'user_package_id', 'completed_on', name='uq_task_completion_per_day'),
    )
    op.create_index('ix_user_task_completions_user_id', 'user_task_completions', ['user_id'], unique=False)

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('kind', transaction_kind, nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('balance_after', sa.Numeric(18, 2), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('reference', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_transactions_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'], unique=False)
    op.create_index('ix_transactions_reference', 'transactions', ['reference'], unique=False)
    op.create_index('idx_transactions_user_created', 'transactions', ['user_id', 'created_at'], unique=False)

    op.create_table(
        'deposits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('proof_ref', sa.String(length=255), nullable=True),
        sa.Column('status', deposit_status, nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_deposits_amount_positive'),
        sa.ForeignKeyConstraint(['processed_by'], ['users.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_deposits_user_id', 'deposits', ['user_id'], unique=False)
    op.create_index('idx_deposits_status', 'deposits', ['status'], unique=False)

    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('status', withdrawal_status, nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_withdrawals_amount_positive'),
        sa.ForeignKeyConstraint(['processed_by'], ['users.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_withdrawals_user_id', 'withdrawals', ['user_id'], unique=False)
    op.create_index(
        'uq_withdrawals_one_pending_per_user', 'withdrawals', ['user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=False),
        sa.Column('referred_id', sa.Integer(), nullable=False),
        sa.Column('bonus_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['referred_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('referred_id'),
    )
    op.create_index('ix_referrals_referrer_id', 'referrals', ['referrer_id'], unique=False)


def downgrade():
    op.drop_index('ix_referrals_referrer_id', table_name='referrals')
    op.drop_table('referrals')
    op.drop_index('uq_withdrawals_one_pending_per_user', table_name='withdrawals')
    op.drop_index('ix_withdrawals_user_id', table_name='withdrawals')
    op.drop_table('withdrawals')
    op.drop_index('idx_deposits_status', table_name='deposits')
    op.drop_index('ix_deposits_user_id', table_name='deposits')
    op.drop_table('deposits')
    op.drop_index('idx_transactions_user_created', table_name='transactions')
    op.drop_index('ix_transactions_reference', table_name='transactions')
    op.drop_index('ix_transactions_user_id', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_user_task_completions_user_id', table_name='user_task_completions')
    op.drop_table('user_task_completions')
    op.drop_index('idx_user_packages_expiry', table_name='user_packages')
    op.drop_index('idx_user_packages_user_active', table_name='user_packages')
    op.drop_index('ix_user_packages_package_id', table_name='user_packages')
    op.drop_index('ix_user_packages_user_id', table_name='user_packages')
    op.drop_table('user_packages')
    op.drop_index('ix_tasks_package_id', table_name='tasks')
    op.drop_table('tasks')
    op.drop_table('customer_bank_accounts')
    op.drop_table('packages')
    op.drop_index('ix_users_referred_by', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (withdrawal_status, deposit_status, transaction_kind):
        enum_type.drop(bind, checkfirst=True)
