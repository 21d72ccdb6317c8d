"""Tests for month-end forecasts."""

from datetime import date

import polars as pl
import pytest

from delivery_analytics.analytics import (
    TrailingRate,
    forecast_as_of,
    forecast_by_io,
    forecast_month,
    forecast_summary,
    project,
    projection_trend,
    remaining_days_in_month,
)
from delivery_analytics.identity import IdentityResolver

from conftest import ACME, date_span, make_frame


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def september_frame() -> pl.DataFrame:
    """$100/day on 9/1-9/9, $50 on 9/10, plus rows outside the window."""
    rows = [(day, ACME, 1000, 10, 0, 0.0, 100.0) for day in date_span(date(2025, 9, 1), date(2025, 9, 9))]
    rows.append((date(2025, 9, 10), ACME, 500, 5, 0, 0.0, 50.0))
    rows.append((date(2025, 8, 31), ACME, 1000, 10, 0, 0.0, 999.0))
    rows.append((date(2025, 9, 11), ACME, 1000, 10, 0, 0.0, 999.0))
    return make_frame(rows)


# =============================================================================
# FORMULA
# =============================================================================


class TestFormula:
    """Tests for the projection formula and month arithmetic."""

    def test_project(self) -> None:
        """projected = total + rate * remaining."""
        assert project(950.0, 50.0, 20) == 1950.0

    def test_last_day_of_month(self) -> None:
        """With no days left the projection equals the total."""
        assert project(950.0, 50.0, 0) == 950.0

    @pytest.mark.parametrize(
        "as_of, expected",
        [
            (date(2025, 9, 30), 0),
            (date(2025, 9, 10), 20),
            (date(2024, 2, 28), 1),
            (date(2025, 2, 28), 0),
        ],
    )
    def test_remaining_days(self, as_of: date, expected: int) -> None:
        """Remaining days exclude as_of itself."""
        assert remaining_days_in_month(as_of) == expected


# =============================================================================
# MONTH FORECAST
# =============================================================================


class TestForecastMonth:
    """Tests for forecast_month()."""

    def test_last_day_rate(self, september_frame: pl.DataFrame) -> None:
        """Last observed day's value is the trailing rate."""
        result = forecast_month(september_frame, date(2025, 9, 10))
        assert result.period_to_date_total == 950.0
        assert result.trailing_rate == 50.0
        assert result.remaining_days == 20
        assert result.projected_total == 1950.0

    def test_period_average_rate(self, september_frame: pl.DataFrame) -> None:
        """Period average divides by days elapsed in the month."""
        result = forecast_month(september_frame, date(2025, 9, 10), TrailingRate.PERIOD_AVERAGE)
        assert result.trailing_rate == pytest.approx(95.0)
        assert result.projected_total == pytest.approx(2850.0)

    def test_other_metric(self, september_frame: pl.DataFrame) -> None:
        """Any additive metric can be projected."""
        result = forecast_month(september_frame, date(2025, 9, 10), metric="impressions")
        assert result.period_to_date_total == 9500.0
        assert result.projected_total == 19500.0

    def test_zero_total_unprojected(self) -> None:
        """A zero month-to-date total stays at zero."""
        frame = make_frame([(date(2025, 9, 1), ACME, 0, 0, 0, 0.0, 0.0)])
        result = forecast_month(frame, date(2025, 9, 5))
        assert result.projected_total == 0.0
        assert result.trailing_rate == 0.0

    def test_no_rows_in_month(self, september_frame: pl.DataFrame) -> None:
        """A month without data projects nothing."""
        assert forecast_month(september_frame, date(2025, 10, 3)).projected_total == 0.0

    def test_forecast_as_of_past_date(self, september_frame: pl.DataFrame) -> None:
        """Should ignore rows after the historical as_of."""
        result = forecast_as_of(september_frame, date(2025, 9, 5))
        assert result.period_to_date_total == 500.0
        assert result.projected_total == 500.0 + 100.0 * 25

    def test_to_dict(self, september_frame: pl.DataFrame) -> None:
        """Dates and enums serialize to plain values."""
        data = forecast_month(september_frame, date(2025, 9, 10)).to_dict()
        assert data["as_of"] == "2025-09-10"
        assert data["strategy"] == "last_day"


class TestProjectionTrend:
    """Tests for projection_trend()."""

    def test_one_point_per_day(self, september_frame: pl.DataFrame) -> None:
        """Should cover the whole month."""
        points = projection_trend(september_frame, date(2025, 9, 10))
        assert len(points) == 30
        assert points[0].projected_total == pytest.approx(3000.0)
        assert points[9].projected_total == pytest.approx(1950.0)

    def test_future_days_carry_current_projection(self, september_frame: pl.DataFrame) -> None:
        """Days after as_of are flagged and hold the current projection."""
        points = projection_trend(september_frame, date(2025, 9, 10))
        future = points[10:]
        assert all(p.is_projection for p in future)
        assert {p.projected_total for p in future} == {1950.0}
        assert not points[9].is_projection
        assert points[9].actual == 50.0


# =============================================================================
# SUMMARIES
# =============================================================================


class TestForecastSummary:
    """Tests for forecast_summary()."""

    def test_direct_and_channel_partner(self, resolver: IdentityResolver) -> None:
        """Direct is the in-house agency; everyone else is a channel partner."""
        days = date_span(date(2025, 9, 1), date(2025, 9, 5))
        frame = make_frame(
            [(day, ACME, 1000, 0, 0, 0.0, 10.0) for day in days]
            + [(day, "2001600: HG: Leaf-Fall", 500, 0, 0, 0.0, 4.0) for day in days]
        )
        direct, partner = forecast_summary(frame, date(2025, 9, 5), resolver)

        assert direct.agency_type == "Direct"
        assert direct.mtd_spend == 50.0
        assert direct.forecast_spend == 50.0 + 10.0 * 25
        assert direct.daily_trend == "stable"
        assert direct.days_with_data == 5

        assert partner.agency_type == "Channel Partner"
        assert partner.mtd_impressions == 2500.0
        assert partner.daily_average_spend == 4.0

    def test_missing_type_is_zero(self, resolver: IdentityResolver) -> None:
        """An agency type without campaigns still reports zeros."""
        frame = make_frame([(date(2025, 9, 1), ACME, 1000, 0, 0, 0.0, 10.0)])
        partner = forecast_summary(frame, date(2025, 9, 1), resolver)[1]
        assert partner.mtd_spend == 0.0
        assert partner.forecast_spend == 0.0
        assert partner.days_with_data == 0


class TestForecastByIO:
    """Tests for forecast_by_io()."""

    def test_groups_by_io_display_format(self) -> None:
        """Campaigns sharing an IO are forecast together."""
        frame = make_frame(
            [
                (date(2025, 8, 15), ACME, 0, 0, 0, 0.0, 300.0),
                (date(2025, 9, 1), ACME, 0, 0, 0, 0.0, 40.0),
                (date(2025, 9, 2), "2001567: MJ: Acme-Winter", 0, 0, 0, 0.0, 20.0),
                (date(2025, 9, 2), "2001570/2001571: HG: Leaf-Fall", 0, 0, 0, 0.0, 10.0),
                (date(2025, 9, 2), "Untitled order", 0, 0, 0, 0.0, 99.0),
            ]
        )
        forecasts = forecast_by_io(frame, date(2025, 9, 2))
        assert [f.io_display_format for f in forecasts] == ["2001567", "2001570/2001571"]

        acme = forecasts[0]
        assert acme.campaign_count == 2
        assert acme.mtd_spend == 60.0
        assert acme.forecast_spend == pytest.approx(60.0 + 30.0 * 28)
        assert acme.last_month_spend == 300.0

        pair = forecasts[1]
        assert pair.io_numbers == ["2001570", "2001571"]
        assert pair.last_month_spend == 0.0
