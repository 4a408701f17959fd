"""Initial procurement schema: suppliers, profiles, tenders, proposals, approvals, events, notifications.

Revision ID: 0001
Revises:
Create Date: 2025-06-02 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'suppliers',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('rnc', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='activo'),
        sa.Column('certified', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('certifications', sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column('experience_years', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('support_months', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_suppliers_name', 'suppliers', ['name'])
    op.create_index('ix_suppliers_rnc', 'suppliers', ['rnc'])
    op.create_index('ix_suppliers_status', 'suppliers', ['status'])
    op.create_index('ix_suppliers_created_at', 'suppliers', ['created_at'])

    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='user'),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)
    op.create_index('ix_profiles_role', 'profiles', ['role'])
    op.create_index('ix_profiles_supplier_id', 'profiles', ['supplier_id'])

    op.create_table(
        'tenders',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('code', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('budget', sa.Numeric(14, 2), nullable=False),
        sa.Column('delivery_max_months', sa.Integer(), nullable=False),
        sa.Column('deadline', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='borrador'),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenders_code', 'tenders', ['code'], unique=True)
    op.create_index('ix_tenders_deadline', 'tenders', ['deadline'])
    op.create_index('ix_tenders_status', 'tenders', ['status'])
    op.create_index('ix_tenders_created_at', 'tenders', ['created_at'])

    op.create_table(
        'proposals',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tender_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('delivery_months', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='recibida'),
        sa.Column('doc_url', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tender_id'], ['tenders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tender_id', 'supplier_id', name='uq_proposals_tender_supplier'),
    )
    op.create_index('ix_proposals_tender_id', 'proposals', ['tender_id'])
    op.create_index('ix_proposals_supplier_id', 'proposals', ['supplier_id'])
    op.create_index('ix_proposals_status', 'proposals', ['status'])
    op.create_index('ix_proposals_created_at', 'proposals', ['created_at'])

    # One approval per (target, scope); exactly one target per row
    op.create_table(
        'approvals',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('scope', sa.String(length=50), nullable=False),
        sa.Column('proposal_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('tender_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('approver_email', sa.String(length=255), nullable=False),
        sa.Column('decision', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.Column('decided_by', sa.String(length=255), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['proposal_id'], ['proposals.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['tender_id'], ['tenders.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('(proposal_id IS NULL) <> (tender_id IS NULL)', name='ck_approvals_exactly_one_target'),
        sa.UniqueConstraint('proposal_id', 'scope', name='uq_approvals_proposal_scope'),
        sa.UniqueConstraint('tender_id', 'scope', name='uq_approvals_tender_scope'),
    )
    op.create_index('ix_approvals_scope', 'approvals', ['scope'])
    op.create_index('ix_approvals_proposal_id', 'approvals', ['proposal_id'])
    op.create_index('ix_approvals_tender_id', 'approvals', ['tender_id'])
    op.create_index('ix_approvals_approver_email', 'approvals', ['approver_email'])
    op.create_index('ix_approvals_decision', 'approvals', ['decision'])
    op.create_index('ix_approvals_token', 'approvals', ['token'], unique=True)
    op.create_index('ix_approvals_created_at', 'approvals', ['created_at'])

    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_entity_type', 'events', ['entity_type'])
    op.create_index('ix_events_entity_id', 'events', ['entity_id'])
    op.create_index('ix_events_action', 'events', ['action'])
    op.create_index('ix_events_user_id', 'events', ['user_id'])
    op.create_index('ix_events_created_at', 'events', ['created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='info'),
        sa.Column('entity_type', sa.String(length=50), nullable=True),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action_url', sa.String(length=512), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_type', 'notifications', ['type'])
    op.create_index('ix_notifications_entity_type', 'notifications', ['entity_type'])
    op.create_index('ix_notifications_read', 'notifications', ['read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('events')
    op.drop_table('approvals')
    op.drop_table('proposals')
    op.drop_table('tenders')
    op.drop_table('profiles')
    op.drop_table('suppliers')
