"""Create pipeline_runs table

Revision ID: 0002_create_pipeline_runs
Revises: 0001_create_records
Create Date: 2025-11-08

Tracks every ingest and analysis run for /stats and /health.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0002_create_pipeline_runs'
down_revision = '0001_create_records'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'pipeline_runs',
        sa.Column('run_id', sa.Uuid(), primary_key=True),
        sa.Column('kind', sa.String(), nullable=False, comment='ingest | analyze'),
        sa.Column('status', sa.String(), nullable=False, comment='running | success | failure'),
        sa.Column('records_processed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('records_failed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('metadata', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_index('ix_pipeline_runs_kind_started_at', 'pipeline_runs', ['kind', 'started_at'])


def downgrade() -> None:
    op.drop_index('ix_pipeline_runs_kind_started_at', 'pipeline_runs')
    op.drop_table('pipeline_runs')
