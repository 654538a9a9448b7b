"""
Per-day guess state storage for signed-in players.

Mirrors the anonymous cookie: the same GuessState shape, one row per
(user, day). Concurrent tabs are not reconciled; the last write wins.
"""
from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from kdle.models.guess_session import GuessSession
from kdle.services.game import GuessState, sanitize_state


def _find(db: Session, user_id: str, day: date) -> GuessSession | None:
    return (
        db.query(GuessSession)
        .filter(GuessSession.user_id == user_id, GuessSession.date == day)
        .first()
    )


def load_state(db: Session, user_id: str, day: date) -> GuessState:
    row = _find(db, user_id, day)
    raw = None
    if row is not None:
        raw = {
            "date": row.date,
            "guesses": row.guesses,
            "hint_level": row.hint_level,
            "won": row.won,
        }
    return sanitize_state(raw, day)


def save_state(db: Session, user_id: str, state: GuessState) -> None:
    row = _find(db, user_id, state.date)
    if row is None:
        row = GuessSession(user_id=user_id, date=state.date)
        db.add(row)
    row.guesses = state.guesses
    row.hint_level = state.hint_level
    row.won = state.won
    db.commit()


def clear_state(db: Session, user_id: str, day: date) -> None:
    db.query(GuessSession).filter(
        GuessSession.user_id == user_id, GuessSession.date == day
    ).delete()
    db.commit()
