"""Add min/max takestamps to albums

Revision ID: 002
Revises: 001
Create Date: 2026-09-21

The new columns are backfilled with a full recomputation, so this
migration must run while the gallery is offline.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.orm import sessionmaker

from gallery.db.store import SQLAlchemyTreeStore
from gallery.takestamps import recompute_all

# revision identifiers
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    op.add_column('albums', sa.Column('min_takestamp', sa.BigInteger(), nullable=True))
    op.add_column('albums', sa.Column('max_takestamp', sa.BigInteger(), nullable=True))

    # Sessions join the migration's connection and transaction
    session_factory = sessionmaker(
        bind=op.get_bind(),
        join_transaction_mode="create_savepoint",
    )
    recompute_all(SQLAlchemyTreeStore(session_factory))


def downgrade():
    op.drop_column('albums', 'max_takestamp')
    op.drop_column('albums', 'min_takestamp')
