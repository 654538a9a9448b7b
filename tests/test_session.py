"""
Tests for the signed anonymous-play cookies.
"""
from datetime import date

import jwt

from kdle.core.config import settings
from kdle.services.game import GuessState, Stats, default_stats, new_state
from kdle.services.session import (
    decode_state,
    decode_stats,
    encode_state,
    encode_stats,
)

DAY = date(2026, 4, 1)


class TestStateCookie:
    def test_decodes_own_token(self):
        state = GuessState(date=DAY, guesses=3, hint_level=3)
        assert decode_state(encode_state(state), DAY) == state

    def test_missing_cookie(self):
        assert decode_state(None, DAY) == new_state(DAY)
        assert decode_state("", DAY) == new_state(DAY)

    def test_tampered_signature(self):
        forged = jwt.encode(
            {"v": 1, "kind": "state", "data": {"date": "2026-04-01", "guesses": 1, "hint_level": 0, "won": True}},
            "not-the-secret",
            algorithm="HS256",
        )
        assert decode_state(forged, DAY) == new_state(DAY)

    def test_garbage_token(self):
        assert decode_state("definitely.not.jwt", DAY) == new_state(DAY)

    def test_unknown_version(self):
        token = jwt.encode(
            {"v": 99, "kind": "state", "data": {"date": "2026-04-01", "guesses": 1, "hint_level": 1, "won": False}},
            settings.SECRET_KEY,
            algorithm="HS256",
        )
        assert decode_state(token, DAY) == new_state(DAY)

    def test_stats_token_is_not_a_state(self):
        token = encode_stats(Stats(streak=1, longest_streak=1, total_games=1, total_wins=1))
        assert decode_state(token, DAY) == new_state(DAY)

    def test_yesterdays_state_is_discarded(self):
        old = GuessState(date=date(2026, 3, 31), guesses=6, hint_level=5)
        assert decode_state(encode_state(old), DAY) == new_state(DAY)

    def test_out_of_range_payload(self):
        token = jwt.encode(
            {"v": 1, "kind": "state", "data": {"date": "2026-04-01", "guesses": 40, "hint_level": 1, "won": False}},
            settings.SECRET_KEY,
            algorithm="HS256",
        )
        assert decode_state(token, DAY) == new_state(DAY)


class TestStatsCookie:
    def test_decodes_own_token(self):
        stats = Stats(streak=2, longest_streak=4, total_games=9, total_wins=6, last_result_date=DAY)
        assert decode_stats(encode_stats(stats)) == stats

    def test_tampered(self):
        assert decode_stats("abc.def.ghi") == default_stats()
