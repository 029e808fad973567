"""Create rental contract tables (users, properties, contracts, documents, notifications)

Revision ID: 001_create_rental_contract_tables
Revises:
Create Date: 2026-10-19

Note: users and properties mirror the identity and listing stores; only the
columns the contract lifecycle reads are created here.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_create_rental_contract_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create rental contract tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('phone', sa.String(30)),
        sa.Column('role', sa.String(20), nullable=False, server_default='TENANT'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )

    op.create_table(
        'properties',
        sa.Column('id', sa.Uuid(), primary_key=True, index=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('address', sa.String(255)),
        sa.Column('city', sa.String(100)),
        sa.Column('postal_code', sa.String(20)),
        sa.Column('status', sa.String(20), nullable=False, server_default='AVAILABLE'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )

    op.create_table(
        'contracts',
        sa.Column('id', sa.Uuid(), primary_key=True, index=True),
        sa.Column('property_id', sa.Uuid(), sa.ForeignKey('properties.id'), nullable=False, index=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False, index=True),
        sa.Column('monthly_rent', sa.Numeric(10, 2), nullable=False),
        sa.Column('charges', sa.Numeric(10, 2)),
        sa.Column('deposit', sa.Numeric(10, 2)),
        sa.Column('terms', sa.Text()),
        sa.Column('content', sa.JSON()),
        sa.Column('custom_clauses', sa.JSON()),
        sa.Column('owner_signature', sa.Text()),
        sa.Column('signed_by_owner', sa.DateTime(timezone=True)),
        sa.Column('tenant_signature', sa.Text()),
        sa.Column('signed_by_tenant', sa.DateTime(timezone=True)),
        sa.Column('signed_at', sa.DateTime(timezone=True)),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT', index=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
        sa.CheckConstraint('start_date < end_date', name='ck_contracts_date_range'),
    )
    # Overlap guard lookups
    op.create_index('ix_contracts_property_dates', 'contracts', ['property_id', 'start_date', 'end_date'])

    op.create_table(
        'contract_documents',
        sa.Column('id', sa.Uuid(), primary_key=True, index=True),
        sa.Column(
            'contract_id', sa.Uuid(),
            sa.ForeignKey('contracts.id', ondelete='CASCADE'), nullable=False, index=True,
        ),
        sa.Column('uploaded_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('category', sa.String(100), nullable=False, index=True),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_url', sa.String(500), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='UPLOADED'),
        sa.Column('rejection_reason', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('type', sa.String(50), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), server_default=sa.false(), index=True),
        sa.Column('read_at', sa.DateTime(timezone=True)),
        sa.Column('link', sa.String(500)),
        sa.Column('metadata', sa.JSON()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )


def downgrade():
    """Drop rental contract tables."""
    op.drop_table('notifications')
    op.drop_table('contract_documents')
    op.drop_index('ix_contracts_property_dates', table_name='contracts')
    op.drop_table('contracts')
    op.drop_table('properties')
    op.drop_table('users')
