"""create_contract_lifecycle_tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:12:31.408223

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'contracts',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('first_party', sa.String(length=255), nullable=True),
        sa.Column('second_party', sa.String(length=255), nullable=True),
        sa.Column('value_rp', sa.Numeric(precision=20, scale=2), nullable=True),
        sa.Column('duration_months', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('risk', sa.String(length=10), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('file_url', sa.String(length=500), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('clock_timestamp()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('value_rp IS NULL OR value_rp >= 0', name=op.f('ck_contracts_value_non_negative')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_contracts')),
    )
    op.create_index('ix_contracts_status', 'contracts', ['status'])
    op.create_index('ix_contracts_end_date', 'contracts', ['end_date'])
    op.create_index('ix_contracts_company_id', 'contracts', ['company_id'])

    op.create_table(
        'legal_notes',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('contract_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=True),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('clock_timestamp()'), nullable=False),
        sa.ForeignKeyConstraint(
            ['contract_id'], ['contracts.id'],
            name=op.f('fk_legal_notes_contract_id_contracts'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_legal_notes')),
    )
    op.create_index('ix_legal_notes_contract_created', 'legal_notes', ['contract_id', 'created_at'])

    op.create_table(
        'contract_lifecycle',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('contract_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('stage', sa.String(length=64), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.text('clock_timestamp()'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(
            ['contract_id'], ['contracts.id'],
            name=op.f('fk_contract_lifecycle_contract_id_contracts'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_contract_lifecycle')),
    )
    op.create_index(
        'ix_contract_lifecycle_contract_started', 'contract_lifecycle', ['contract_id', 'started_at']
    )


def downgrade() -> None:
    op.drop_index('ix_contract_lifecycle_contract_started', table_name='contract_lifecycle')
    op.drop_table('contract_lifecycle')
    op.drop_index('ix_legal_notes_contract_created', table_name='legal_notes')
    op.drop_table('legal_notes')
    op.drop_index('ix_contracts_company_id', table_name='contracts')
    op.drop_index('ix_contracts_end_date', table_name='contracts')
    op.drop_index('ix_contracts_status', table_name='contracts')
    op.drop_table('contracts')
