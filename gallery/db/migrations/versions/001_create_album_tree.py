"""Create album tree tables

Revision ID: 001
Revises:
Create Date: 2026-09-14

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('albums',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_albums_parent_id'), 'albums', ['parent_id'], unique=False)

    op.create_table('photos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('album_id', sa.Integer(), nullable=True),
        sa.Column('takestamp', sa.BigInteger(), nullable=True),
        sa.Column('star', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_photos_album_id'), 'photos', ['album_id'], unique=False)
    op.create_index(op.f('ix_photos_takestamp'), 'photos', ['takestamp'], unique=False)
    op.create_index(op.f('ix_photos_star'), 'photos', ['star'], unique=False)
    op.create_index('idx_photo_album_takestamp', 'photos', ['album_id', 'takestamp'], unique=False)


def downgrade():
    op.drop_index('idx_photo_album_takestamp', table_name='photos')
    op.drop_index(op.f('ix_photos_star'), table_name='photos')
    op.drop_index(op.f('ix_photos_takestamp'), table_name='photos')
    op.drop_index(op.f('ix_photos_album_id'), table_name='photos')
    op.drop_table('photos')
    op.drop_index(op.f('ix_albums_parent_id'), table_name='albums')
    op.drop_table('albums')
