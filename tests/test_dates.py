"""
Tests for the Pacific-day calendar helpers.
"""
from datetime import date, datetime

import pytz

from kdle.core.dates import game_today, month_bounds, today_in_tz


class TestGameDay:
    def test_late_utc_is_still_yesterday_in_pacific(self):
        now = datetime(2026, 3, 15, 5, 0, tzinfo=pytz.utc)
        assert game_today(now) == date(2026, 3, 14)

    def test_rollover_at_pacific_midnight(self):
        now = datetime(2026, 7, 1, 7, 0, tzinfo=pytz.utc)  # 00:00 PDT
        assert game_today(now) == date(2026, 7, 1)

    def test_naive_treated_as_utc(self):
        assert today_in_tz("Asia/Seoul", datetime(2026, 1, 1, 16, 0)) == date(2026, 1, 2)


class TestMonthBounds:
    def test_february(self):
        assert month_bounds(2028, 2) == (date(2028, 2, 1), date(2028, 2, 29))

    def test_december(self):
        assert month_bounds(2026, 12) == (date(2026, 12, 1), date(2026, 12, 31))
