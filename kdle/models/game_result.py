"""
GameResult: one row per (user_id, date).

Upserted on completion, never appended. `guesses` holds the ordered
attempts as a JSON list of
{artist, title, artist_correct, title_correct, guess_text, is_correct, attempt_number}.
"""
import datetime as dt
from typing import Any
from sqlalchemy import Integer, String, Boolean, Date, DateTime, JSON, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from kdle.db.base import Base


class GameResult(Base):
    __tablename__ = "game_results"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_game_results_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    song_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("songs.id", ondelete="SET NULL"), nullable=True
    )
    guesses: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    won: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
