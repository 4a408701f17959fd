"""Service orders, invoices and RFP documents.

Revision ID: 0002
Revises: 0001
Create Date: 2025-07-14 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0002'
down_revision = '0001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'service_orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('proposal_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('po_number', sa.String(length=100), nullable=False),
        sa.Column('pdf_url', sa.String(length=512), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='emitida'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['proposal_id'], ['proposals.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_service_orders_proposal_id', 'service_orders', ['proposal_id'], unique=True)
    op.create_index('ix_service_orders_po_number', 'service_orders', ['po_number'], unique=True)
    op.create_index('ix_service_orders_status', 'service_orders', ['status'])
    op.create_index('ix_service_orders_created_at', 'service_orders', ['created_at'])

    op.create_table(
        'invoices',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('proposal_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('service_order_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('invoice_url', sa.String(length=512), nullable=False),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='recibida'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['proposal_id'], ['proposals.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['service_order_id'], ['service_orders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='ck_invoices_amount_positive'),
    )
    op.create_index('ix_invoices_proposal_id', 'invoices', ['proposal_id'])
    op.create_index('ix_invoices_service_order_id', 'invoices', ['service_order_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_created_at', 'invoices', ['created_at'])

    op.create_table(
        'rfp_docs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tender_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('file_url', sa.String(length=512), nullable=True),
        sa.Column('required_fields', sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column('is_mandatory', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tender_id'], ['tenders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_rfp_docs_tender_id', 'rfp_docs', ['tender_id'])
    op.create_index('ix_rfp_docs_created_at', 'rfp_docs', ['created_at'])


def downgrade() -> None:
    op.drop_table('rfp_docs')
    op.drop_table('invoices')
    op.drop_table('service_orders')
