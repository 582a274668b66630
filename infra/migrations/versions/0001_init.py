"""initial schema: users, watch_progress, my_list

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    mediakind = sa.Enum('movie', 'tv', name='mediakind')

    # users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('avatar', sa.String, nullable=True),
        sa.Column('language', sa.String(8), server_default='it', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # watch_progress: id is derived from user/tmdb_id/media_type/season/episode,
    # so the primary key is the upsert conflict target. user ids are not
    # foreign keys, callers own their identity
    op.create_table(
        'watch_progress',
        sa.Column('id', sa.String(96), primary_key=True),
        sa.Column('user_id', sa.Integer, nullable=False),
        sa.Column('tmdb_id', sa.Integer, nullable=False),
        sa.Column('media_type', mediakind, nullable=False),
        sa.Column('title', sa.String, nullable=False),
        sa.Column('poster_path', sa.String, nullable=True),
        sa.Column('current_time', sa.Integer, server_default='0', nullable=False),
        sa.Column('duration', sa.Integer, server_default='0', nullable=False),
        sa.Column('season', sa.Integer, nullable=True),
        sa.Column('episode', sa.Integer, nullable=True),
        sa.Column('last_watched', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('"current_time" >= 0 AND duration >= 0', name='ck_watch_progress_nonneg'),
    )
    op.create_index('ix_watch_progress_user_id', 'watch_progress', ['user_id'])
    op.create_index('ix_watch_progress_last_watched', 'watch_progress', ['last_watched'])

    # my_list
    op.create_table(
        'my_list',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, nullable=False),
        sa.Column('tmdb_id', sa.Integer, nullable=False),
        sa.Column('media_type', mediakind, nullable=False),
        sa.Column('title', sa.String, nullable=False),
        sa.Column('poster_path', sa.String, nullable=True),
        sa.Column('added_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        # backs the ON CONFLICT DO NOTHING adds
        sa.UniqueConstraint('user_id', 'tmdb_id', 'media_type', name='uq_my_list_user_tmdb_type'),
    )
    op.create_index('ix_my_list_user_id', 'my_list', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_my_list_user_id', table_name='my_list')
    op.drop_table('my_list')
    op.drop_index('ix_watch_progress_last_watched', table_name='watch_progress')
    op.drop_index('ix_watch_progress_user_id', table_name='watch_progress')
    op.drop_table('watch_progress')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    sa.Enum(name='mediakind').drop(op.get_bind(), checkfirst=True)
