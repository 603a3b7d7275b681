"""add deposit accounts

Revision ID: 8b41e07c5d22
Revises: 3f2a9c1d7e10
Create Date: 2026-10-18 14:40:07.102945

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '8b41e07c5d22'
down_revision = '3f2a9c1d7e10'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'deposit_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bank_name', sa.String(length=120), nullable=False),
        sa.Column('account_number', sa.String(length=64), nullable=False),
        sa.Column('account_holder', sa.String(length=150), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('deposit_accounts')
