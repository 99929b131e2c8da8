"""Balance sheet ledger entries and account profile pictures

Revision ID: 20261017_ledger_avatars
Revises: 20261016_initial
Create Date: 2026-10-17

Creates:
1. ledger_entries (manual income/expense lines for the balance sheet)
2. accounts.avatar_path (stored-file path of the profile picture)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261017_ledger_avatars'
down_revision = '20261016_initial'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('ledger_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('entry_type', sa.String(length=16), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint("entry_type IN ('income', 'expense')", name='ck_ledger_entries_type'),
        sa.CheckConstraint('amount > 0', name='ck_ledger_entries_amount_positive'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('ledger_entries', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_ledger_entries_account_id'), ['account_id'], unique=False)
        batch_op.create_index('ix_ledger_entries_account_date', ['account_id', 'entry_date'], unique=False)

    with op.batch_alter_table('accounts', schema=None) as batch_op:
        batch_op.add_column(sa.Column('avatar_path', sa.String(length=512), nullable=True))


def downgrade():
    with op.batch_alter_table('accounts', schema=None) as batch_op:
        batch_op.drop_column('avatar_path')

    with op.batch_alter_table('ledger_entries', schema=None) as batch_op:
        batch_op.drop_index('ix_ledger_entries_account_date')
        batch_op.drop_index(batch_op.f('ix_ledger_entries_account_id'))
    op.drop_table('ledger_entries')
