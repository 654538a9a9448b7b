"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- songs ---
    op.create_table(
        "songs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("spotify_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("artist", sa.String(256), nullable=False),
        sa.Column("album_image", sa.String(512), nullable=True),
        sa.Column("release_year", sa.Integer(), nullable=True),
        sa.Column("preview_url", sa.String(512), nullable=True),
        sa.Column("difficulty_tag", sa.String(32), nullable=False, server_default="easy"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_songs_id", "songs", ["id"])
    op.create_index("ix_songs_spotify_id", "songs", ["spotify_id"], unique=True)

    # --- daily_song ---
    op.create_table(
        "daily_song",
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("song_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["song_id"], ["songs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("date"),
    )
    op.create_index("ix_daily_song_song_id", "daily_song", ["song_id"])

    # --- game_results ---
    op.create_table(
        "game_results",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("song_id", sa.Integer(), nullable=True),
        sa.Column("guesses", sa.JSON(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("won", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["song_id"], ["songs.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_game_results_user_date"),
    )
    op.create_index("ix_game_results_id", "game_results", ["id"])
    op.create_index("ix_game_results_user_id", "game_results", ["user_id"])
    op.create_index("ix_game_results_date", "game_results", ["date"])

    # --- guess_sessions ---
    op.create_table(
        "guess_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("guesses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hint_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("won", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_guess_sessions_user_date"),
    )
    op.create_index("ix_guess_sessions_id", "guess_sessions", ["id"])
    op.create_index("ix_guess_sessions_user_id", "guess_sessions", ["user_id"])

    # --- user_stats ---
    op.create_table(
        "user_stats",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_games", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_result_date", sa.Date(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
        sa.CheckConstraint("longest_streak >= streak", name="ck_user_stats_longest_streak"),
    )
    op.create_index("ix_user_stats_updated_at", "user_stats", ["updated_at"])

    # --- user_profiles ---
    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("username", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_user_profiles_username", "user_profiles", ["username"], unique=True)


def downgrade() -> None:
    op.drop_table("user_profiles")
    op.drop_table("user_stats")
    op.drop_table("guess_sessions")
    op.drop_table("game_results")
    op.drop_table("daily_song")
    op.drop_table("songs")
