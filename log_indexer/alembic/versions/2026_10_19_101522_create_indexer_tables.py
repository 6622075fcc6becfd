"""create_indexer_tables

Revision ID: 2026_10_19_101522
Revises:
Create Date: 2026-10-19 10:15:22.418907

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '2026_10_19_101522'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS indexer")

    op.create_table(
        'ethereum_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('block_hash', sa.Text(), nullable=False),
        sa.Column('transaction_hash', sa.Text(), nullable=False),
        sa.Column('transaction_index', sa.Integer(), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('data', sa.Text(), nullable=False),
        sa.Column('topics', postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column('removed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'block_number', 'log_index', 'transaction_hash',
            name='uq_ethereum_logs_block_log_tx',
        ),
        schema='indexer',
    )
    op.create_index(
        'ix_ethereum_logs_block_log', 'ethereum_logs',
        ['block_number', 'log_index'], schema='indexer',
    )
    op.create_index(
        'ix_ethereum_logs_transaction_hash', 'ethereum_logs',
        ['transaction_hash'], schema='indexer',
    )
    op.create_index(
        'ix_ethereum_logs_address_lower', 'ethereum_logs',
        [sa.text('lower(address)')], schema='indexer',
    )

    op.create_table(
        'indexing_progress',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('chain_id', sa.Integer(), nullable=False),
        sa.Column('last_indexed_block', sa.BigInteger(), nullable=False),
        sa.Column('rpc_url', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('chain_id', name='uq_indexing_progress_chain_id'),
        schema='indexer',
    )


def downgrade() -> None:
    op.drop_table('indexing_progress', schema='indexer')
    op.drop_index('ix_ethereum_logs_address_lower', table_name='ethereum_logs', schema='indexer')
    op.drop_index('ix_ethereum_logs_transaction_hash', table_name='ethereum_logs', schema='indexer')
    op.drop_index('ix_ethereum_logs_block_log', table_name='ethereum_logs', schema='indexer')
    op.drop_table('ethereum_logs', schema='indexer')
