import datetime as dt
from sqlalchemy import Integer, String, Boolean, Date, DateTime, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from kdle.db.base import Base


class GuessSession(Base):
    """Server-side guess state for a signed-in player. Last write wins."""

    __tablename__ = "guess_sessions"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_guess_sessions_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    guesses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hint_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    won: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
