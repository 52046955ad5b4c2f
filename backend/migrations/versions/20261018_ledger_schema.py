"""Workshop ledger schema: versioned sales/expenses, stock ledger, audit, job cards, vendors

1. Creates sales / expenses and their append-only version tables
2. Adds the current-version pointers (circular FK, added after both tables exist)
3. Creates inventory items and stock transactions (no stored quantity)
4. Creates audit log, job cards, vendors and vendor bills

Revision ID: 20261018_ledger_schema
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_ledger_schema'
down_revision = None
branch_labels = None
depends_on = None


def _versioned_tables(record, version, parent_key, counterparty, counterparty_length, unique_name):
    op.create_table(record,
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('current_version_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('row_version', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_table(version,
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(parent_key, sa.Integer(), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=True),
        sa.Column(counterparty, sa.String(length=counterparty_length), nullable=True),
        sa.Column('payment_mode', sa.String(length=16), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint([parent_key], [f'{record}.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(parent_key, 'version_number', name=unique_name),
        sqlite_autoincrement=True,
    )
    op.create_index(f'ix_{version}_{parent_key}', version, [parent_key])
    op.create_index(f'ix_{version}_date', version, ['date'])

    with op.batch_alter_table(record, schema=None) as batch_op:
        batch_op.create_foreign_key(
            f'fk_{record}_current_version', version, ['current_version_id'], ['id']
        )


def upgrade():
    # ==========================================================================
    # STEP 1-2: Versioned money records
    # ==========================================================================
    _versioned_tables('sales', 'sale_versions', 'sale_id', 'received_by', 120, 'uq_sale_versions_sale_number')
    _versioned_tables('expenses', 'expense_versions', 'expense_id', 'vendor', 255, 'uq_expense_versions_expense_number')

    # ==========================================================================
    # STEP 3: Stock ledger
    # ==========================================================================
    op.create_table('inventory_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('brand', sa.String(length=120), nullable=True),
        sa.Column('unit', sa.String(length=32), nullable=True),
        sa.Column('min_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_inventory_items_name', 'inventory_items', ['name'])
    op.create_index('ix_inventory_items_sku', 'inventory_items', ['sku'])

    op.create_table('stock_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=8), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_stock_transactions_item_id', 'stock_transactions', ['item_id'])
    op.create_index('ix_stock_tx_item_date', 'stock_transactions', ['item_id', 'date'])

    # ==========================================================================
    # STEP 4: Audit, job cards, vendors
    # ==========================================================================
    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('entity_type', sa.String(length=32), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])

    op.create_table('job_cards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_number', sa.String(length=64), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('in_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='OPEN'),
        sa.Column('labour_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('parts_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('grand_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('advance_paid_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pending_amount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('template_used', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_number', name='uq_job_cards_job_number'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_job_cards_status', 'job_cards', ['status'])
    op.create_index('ix_job_cards_in_date', 'job_cards', ['in_date'])

    op.create_table('vendors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_vendors_name', 'vendors', ['name'])
    op.create_index('ix_vendors_is_active', 'vendors', ['is_active'])

    op.create_table('vendor_bills',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('amount_paid_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('payment_mode', sa.String(length=16), nullable=True),
        sa.Column('invoice_number', sa.String(length=128), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('related_expense_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id']),
        sa.ForeignKeyConstraint(['related_expense_id'], ['expenses.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('related_expense_id', name='uq_vendor_bills_related_expense'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_vendor_bills_vendor_id', 'vendor_bills', ['vendor_id'])
    op.create_index('ix_vendor_bills_vendor_date', 'vendor_bills', ['vendor_id', 'date'])


def downgrade():
    op.drop_table('vendor_bills')
    op.drop_table('vendors')
    op.drop_table('job_cards')
    op.drop_table('audit_logs')
    op.drop_table('stock_transactions')
    op.drop_table('inventory_items')

    for record, version in (('expenses', 'expense_versions'), ('sales', 'sale_versions')):
        with op.batch_alter_table(record, schema=None) as batch_op:
            batch_op.drop_constraint(f'fk_{record}_current_version', type_='foreignkey')
        op.drop_table(version)
        op.drop_table(record)
