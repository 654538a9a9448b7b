import datetime as dt
from sqlalchemy import Integer, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kdle.db.base import Base
from kdle.models.song import Song


class DailySong(Base):
    """The song assigned to a calendar day. One row per date."""

    __tablename__ = "daily_song"

    date: Mapped[dt.date] = mapped_column(Date, primary_key=True)
    song_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("songs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    song: Mapped[Song] = relationship(Song, lazy="joined")
