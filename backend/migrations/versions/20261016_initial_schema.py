"""Initial schema: accounts, settings, catalogue, clients, invoices and bills

Revision ID: 20261016_initial
Revises:
Create Date: 2026-10-16

Creates:
1. accounts, session_tokens, user_pins (authentication)
2. user_settings, company_profiles (per-account configuration)
3. clients, products (address book and catalogue)
4. documents, document_lines, document_sequences (invoices and bills)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261016_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # 1. AUTHENTICATION
    # ==========================================================================
    op.create_table('accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('company_name', sa.String(length=200), nullable=True),
        sa.Column('mobile', sa.String(length=32), nullable=True),
        sa.Column('pin_enabled', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('accounts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_accounts_email'), ['email'], unique=True)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_session_tokens_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_token_hash'), ['token_hash'], unique=True)

    op.create_table('user_pins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('pin_hash', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 2. PER-ACCOUNT CONFIGURATION
    # ==========================================================================
    op.create_table('user_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('currency_symbol', sa.String(length=8), nullable=False),
        sa.Column('currency_code', sa.String(length=8), nullable=False),
        sa.Column('default_tax_rate', sa.Numeric(precision=6, scale=3), nullable=False),
        sa.Column('tax_name', sa.String(length=32), nullable=False),
        sa.Column('tax_enabled', sa.Boolean(), nullable=False),
        sa.Column('email_notifications', sa.Boolean(), nullable=False),
        sa.Column('low_stock_alerts', sa.Boolean(), nullable=False),
        sa.Column('invoice_reminders', sa.Boolean(), nullable=False),
        sa.Column('bill_due_alerts', sa.Boolean(), nullable=False),
        sa.Column('show_dashboard', sa.Boolean(), nullable=False),
        sa.Column('show_sales', sa.Boolean(), nullable=False),
        sa.Column('show_inventory', sa.Boolean(), nullable=False),
        sa.Column('show_clients', sa.Boolean(), nullable=False),
        sa.Column('invoice_prefix', sa.String(length=16), nullable=False),
        sa.Column('bill_prefix', sa.String(length=16), nullable=False),
        sa.Column('default_payment_terms', sa.Integer(), nullable=False),
        sa.Column('items_per_page', sa.Integer(), nullable=False),
        sa.Column('date_format', sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id'),
        sqlite_autoincrement=True
    )

    op.create_table('company_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('company_name', sa.String(length=200), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('gst_number', sa.String(length=32), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('logo_path', sa.String(length=512), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 3. CLIENTS AND PRODUCTS
    # ==========================================================================
    op.create_table('clients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('clients', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_clients_account_id'), ['account_id'], unique=False)
        batch_op.create_index('ix_clients_account_name', ['account_id', 'name'], unique=False)

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('purchase_price', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.CheckConstraint('quantity >= 0', name='ck_products_quantity_nonneg'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_products_account_id'), ['account_id'], unique=False)
        batch_op.create_index('ix_products_account_name', ['account_id', 'name'], unique=False)

    # ==========================================================================
    # 4. INVOICES AND BILLS
    # ==========================================================================
    op.create_table('documents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('document_number', sa.String(length=64), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(length=200), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('document_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('subtotal', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=6, scale=3), nullable=False),
        sa.Column('tax', sa.Numeric(precision=20, scale=8), nullable=False),
        sa.Column('total', sa.Numeric(precision=20, scale=8), nullable=False),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('documents', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_documents_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_documents_client_id'), ['client_id'], unique=False)
        batch_op.create_index('ix_documents_account_kind_date', ['account_id', 'kind', 'document_date'], unique=False)
        batch_op.create_index('ix_documents_account_status', ['account_id', 'status'], unique=False)

    op.create_table('document_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('stock_delta', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('document_lines', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_document_lines_document_id'), ['document_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_document_lines_product_id'), ['product_id'], unique=False)

    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'kind', name='uq_document_sequences_account_kind'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('document_sequences')
    with op.batch_alter_table('document_lines', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_document_lines_product_id'))
        batch_op.drop_index(batch_op.f('ix_document_lines_document_id'))
    op.drop_table('document_lines')
    with op.batch_alter_table('documents', schema=None) as batch_op:
        batch_op.drop_index('ix_documents_account_status')
        batch_op.drop_index('ix_documents_account_kind_date')
        batch_op.drop_index(batch_op.f('ix_documents_client_id'))
        batch_op.drop_index(batch_op.f('ix_documents_account_id'))
    op.drop_table('documents')
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.drop_index('ix_products_account_name')
        batch_op.drop_index(batch_op.f('ix_products_account_id'))
    op.drop_table('products')
    with op.batch_alter_table('clients', schema=None) as batch_op:
        batch_op.drop_index('ix_clients_account_name')
        batch_op.drop_index(batch_op.f('ix_clients_account_id'))
    op.drop_table('clients')
    op.drop_table('company_profiles')
    op.drop_table('user_settings')
    op.drop_table('user_pins')
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_session_tokens_token_hash'))
        batch_op.drop_index(batch_op.f('ix_session_tokens_account_id'))
    op.drop_table('session_tokens')
    with op.batch_alter_table('accounts', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_accounts_email'))
    op.drop_table('accounts')
