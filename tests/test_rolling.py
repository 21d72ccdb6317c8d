"""Tests for rolling period comparisons."""

from datetime import date, timedelta

import polars as pl
import pytest

from delivery_analytics.analytics import (
    RoasBasis,
    compare_periods,
    percent_change,
    rolling_periods,
)
from delivery_analytics.analytics.rolling import period_windows

from conftest import ACME, date_span, make_frame


class TestRollingPeriods:
    """Tests for rolling_periods()."""

    def test_complete_periods_only(self, august_frame: pl.DataFrame) -> None:
        """Twenty days give two full weeks, most recent first."""
        periods = rolling_periods(august_frame, 7)
        assert [(p.period_start, p.period_end) for p in periods] == [
            (date(2025, 8, 14), date(2025, 8, 20)),
            (date(2025, 8, 7), date(2025, 8, 13)),
        ]
        assert [p.count for p in periods] == [7, 7]
        assert periods[0].impressions == 7000.0

    def test_non_overlapping_and_contiguous(self, august_frame: pl.DataFrame) -> None:
        """Each period should end the day before the next one starts."""
        periods = rolling_periods(august_frame, 3)
        for newer, older in zip(periods, periods[1:]):
            assert older.period_end == newer.period_start - timedelta(days=1)
            assert (newer.period_end - newer.period_start).days == 2

    def test_too_little_data(self, august_frame: pl.DataFrame) -> None:
        """Fewer days than one period should give nothing."""
        assert rolling_periods(august_frame, 30) == []

    @pytest.mark.parametrize("period_days", [0, -7])
    def test_invalid_period(self, august_frame: pl.DataFrame, period_days: int) -> None:
        """Non-positive periods are a malformed call."""
        with pytest.raises(ValueError, match="period_days"):
            rolling_periods(august_frame, period_days)

    def test_empty_window_dropped(self) -> None:
        """A window with no rows should be omitted."""
        days = date_span(date(2025, 8, 1), date(2025, 8, 3)) + date_span(
            date(2025, 8, 7), date(2025, 8, 9)
        )
        frame = make_frame([(day, ACME, 100, 1, 0, 0.0, 1.0) for day in days])
        periods = rolling_periods(frame, 3)
        assert [p.period_start for p in periods] == [date(2025, 8, 7), date(2025, 8, 1)]

    def test_impressions_roas_basis(self, august_frame: pl.DataFrame) -> None:
        """Rolling ROAS is revenue per thousand impressions."""
        period = rolling_periods(august_frame, 7)[0]
        assert period.roas == pytest.approx(10.0)
        assert period.ctr == pytest.approx(1.0)
        assert period.aov == pytest.approx(10.0)

    def test_spend_roas_basis(self, august_frame: pl.DataFrame) -> None:
        """The basis can be switched to spend."""
        period = rolling_periods(august_frame, 7, roas_basis=RoasBasis.SPEND)[0]
        assert period.roas == pytest.approx(2.0)

    def test_label(self, august_frame: pl.DataFrame) -> None:
        """Label should use MM/DD/YY."""
        period = rolling_periods(august_frame, 7)[0]
        assert period.label == "08/14/25 - 08/20/25"
        assert period.to_dict()["label"] == "08/14/25 - 08/20/25"


class TestPeriodWindows:
    """Tests for period_windows()."""

    def test_single_day_periods(self) -> None:
        """One-day periods should cover every day."""
        windows = period_windows(date(2025, 8, 1), date(2025, 8, 3), 1)
        assert [start for start, _ in windows] == [
            date(2025, 8, 3),
            date(2025, 8, 2),
            date(2025, 8, 1),
        ]


class TestComparison:
    """Tests for percent_change() and compare_periods()."""

    @pytest.mark.parametrize(
        "current, previous, expected",
        [
            (0, 0, 0.0),
            (5, 0, 100.0),
            (150, 100, 50.0),
            (50, 100, -50.0),
        ],
    )
    def test_percent_change(self, current: float, previous: float, expected: float) -> None:
        """Zero baselines read as 0% or 100% growth."""
        assert percent_change(current, previous) == pytest.approx(expected)

    def test_compare_periods(self) -> None:
        """Each period should be compared with the one before it."""
        days = date_span(date(2025, 8, 1), date(2025, 8, 14))
        frame = make_frame(
            [(day, ACME, 100 if day.day <= 7 else 150, 1, 1, 10.0, 5.0) for day in days]
        )
        comparisons = compare_periods(rolling_periods(frame, 7))
        assert len(comparisons) == 2
        assert comparisons[0].changes["impressions"] == pytest.approx(50.0)
        assert comparisons[0].changes["spend"] == pytest.approx(0.0)
        assert comparisons[1].previous is None
        assert comparisons[1].changes == {}
