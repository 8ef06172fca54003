"""Create records table

Revision ID: 0001_create_records
Revises:
Create Date: 2025-11-08

Single table holding normalized scraped items and their AI analysis.
external_item_id is unique so ingestion can merge on conflict; NULL keys
never conflict and are always inserted as new rows.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_create_records'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'records',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('external_item_id', sa.String(255), nullable=True, comment='Scraping provider item id, used as the upsert key'),
        sa.Column('source', sa.String(255), nullable=False),
        sa.Column('url', sa.String(2048), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('inserted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('keywords', sa.JSON(), nullable=True),
        sa.Column('sentiment', sa.String(16), nullable=True),
        sa.Column('sentiment_score', sa.Float(), nullable=True),
        sa.Column('analyzed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('external_item_id', name='uq_records_external_item_id'),
    )

    op.create_index('ix_records_created_at', 'records', ['created_at'])
    op.create_index('ix_records_analyzed_at', 'records', ['analyzed_at'])
    op.create_index('ix_records_inserted_at_id', 'records', ['inserted_at', 'id'])


def downgrade() -> None:
    op.drop_index('ix_records_inserted_at_id', 'records')
    op.drop_index('ix_records_analyzed_at', 'records')
    op.drop_index('ix_records_created_at', 'records')
    op.drop_table('records')
