"""Unit tests for accounting period boundaries"""

import pytest
from datetime import datetime

from src.domain.accounting_period import current_period_start, is_known_zone, period_elapsed
from src.domain.subscription import ResetPeriod


class TestCurrentPeriodStart:

    def test_daily_starts_at_utc_midnight(self):
        now = datetime(2024, 3, 14, 15, 30)

        assert current_period_start(ResetPeriod.DAILY, now) == datetime(2024, 3, 14)

    def test_weekly_starts_on_monday(self):
        # 2024-03-14 is a Thursday
        now = datetime(2024, 3, 14, 15, 30)

        assert current_period_start(ResetPeriod.WEEKLY, now) == datetime(2024, 3, 11)

    def test_monthly_starts_on_the_first(self):
        now = datetime(2024, 3, 14, 15, 30)

        assert current_period_start(ResetPeriod.MONTHLY, now) == datetime(2024, 3, 1)

    def test_never_has_no_boundary(self):
        assert current_period_start(ResetPeriod.NEVER, datetime(2024, 3, 14)) is None

    def test_daily_boundary_in_subscription_zone(self):
        # 20:00 UTC is 01:30 next day in Kolkata (+05:30)
        now = datetime(2024, 3, 14, 20, 0)

        start = current_period_start(ResetPeriod.DAILY, now, "Asia/Kolkata")

        assert start == datetime(2024, 3, 14, 18, 30)

    def test_monthly_boundary_in_subscription_zone(self):
        # 2024-03-31 22:00 UTC is already April 1st in Kolkata
        now = datetime(2024, 3, 31, 22, 0)

        start = current_period_start(ResetPeriod.MONTHLY, now, "Asia/Kolkata")

        assert start == datetime(2024, 3, 31, 18, 30)


class TestPeriodElapsed:

    def test_reset_from_yesterday_is_due(self):
        now = datetime(2024, 3, 14, 9, 0)

        assert period_elapsed(ResetPeriod.DAILY, datetime(2024, 3, 13, 23, 59), now) is True

    def test_reset_today_is_not_due(self):
        now = datetime(2024, 3, 14, 9, 0)

        assert period_elapsed(ResetPeriod.DAILY, datetime(2024, 3, 14, 0, 0), now) is False

    def test_previous_month_is_due(self):
        now = datetime(2024, 3, 2, 0, 0)

        assert period_elapsed(ResetPeriod.MONTHLY, datetime(2024, 2, 20), now) is True

    def test_never_is_never_due(self):
        assert period_elapsed(ResetPeriod.NEVER, datetime(2000, 1, 1), datetime(2024, 3, 14)) is False

    def test_missing_anchor_is_due(self):
        assert period_elapsed(ResetPeriod.WEEKLY, None, datetime(2024, 3, 14)) is True


class TestKnownZone:

    @pytest.mark.parametrize("name", ["UTC", "Asia/Kolkata", "America/New_York"])
    def test_iana_zones_are_known(self, name):
        assert is_known_zone(name) is True

    @pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "", "../etc/passwd"])
    def test_unknown_or_malformed_zones(self, name):
        assert is_known_zone(name) is False
