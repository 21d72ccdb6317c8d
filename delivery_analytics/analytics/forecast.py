"""Month-end forecast projections."""

import calendar
import logging
from datetime import date, timedelta

import polars as pl

from ..config import ResolverConfig
from ..identity import IdentityResolver, extract_io_numbers, io_display_format
from .expressions import campaign_filter_expr
from .gap_fill import daily_series
from .models import (
    AgencyType,
    ForecastResult,
    ForecastSummary,
    IOForecast,
    ProjectionPoint,
    TrailingRate,
)
from .stats import detect_trend

logger = logging.getLogger(__name__)

AGENCY_TYPES: tuple[AgencyType, ...] = ("Direct", "Channel Partner")


# =============================================================================
# PROJECTION FORMULA
# =============================================================================


def project(
    period_to_date_total: float, trailing_daily_value: float, remaining_days: int
) -> float:
    """projected = period_to_date_total + trailing_daily_value * remaining_days."""
    return period_to_date_total + trailing_daily_value * remaining_days


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def remaining_days_in_month(as_of: date) -> int:
    """Days left in the month after ``as_of`` (0 on the last day)."""
    return days_in_month(as_of) - as_of.day


def month_start(day: date) -> date:
    return day.replace(day=1)


def previous_month_range(day: date) -> tuple[date, date]:
    last_of_previous = month_start(day) - timedelta(days=1)
    return month_start(last_of_previous), last_of_previous


# =============================================================================
# MONTH-TO-DATE FORECAST
# =============================================================================


def month_to_date_daily(frame: pl.DataFrame, as_of: date) -> pl.DataFrame:
    """Per-day metric sums for the month of ``as_of``, up to and including it."""
    in_month = frame.filter(
        pl.col("date").is_between(month_start(as_of), as_of, closed="both")
    )
    return daily_series(in_month)


def _forecast_from_daily(
    daily: dict[date, float], as_of: date, strategy: TrailingRate, metric: str
) -> ForecastResult:
    observed = {day: value for day, value in daily.items() if day <= as_of}
    total = sum(observed.values())
    remaining = remaining_days_in_month(as_of)

    if total == 0:
        rate = 0.0
    elif strategy == TrailingRate.LAST_DAY:
        rate = observed[max(observed)]
    else:
        rate = total / as_of.day

    return ForecastResult(
        period_to_date_total=total,
        trailing_rate=rate,
        remaining_days=remaining,
        projected_total=project(total, rate, remaining),
        strategy=strategy,
        as_of=as_of,
        metric=metric,
    )


def _daily_values(frame: pl.DataFrame, as_of: date, metric: str) -> dict[date, float]:
    mtd = month_to_date_daily(frame, as_of)
    return dict(zip(mtd["date"].to_list(), mtd[metric].to_list()))


def forecast_month(
    frame: pl.DataFrame,
    as_of: date,
    strategy: TrailingRate = TrailingRate.LAST_DAY,
    metric: str = "spend",
) -> ForecastResult:
    """Project the month-end total of ``metric`` from month-to-date delivery.

    Only rows in the month of ``as_of`` and on or before it are used. When the
    month-to-date total is 0 the total is returned unprojected.
    """
    return _forecast_from_daily(_daily_values(frame, as_of, metric), as_of, strategy, metric)


def forecast_as_of(
    frame: pl.DataFrame,
    as_of: date,
    strategy: TrailingRate = TrailingRate.LAST_DAY,
    metric: str = "spend",
) -> ForecastResult:
    """What the projection would have been on a past date.

    Same formula as forecast_month with data observed up to ``as_of``.
    """
    return forecast_month(frame, as_of, strategy, metric)


def projection_trend(
    frame: pl.DataFrame,
    as_of: date,
    strategy: TrailingRate = TrailingRate.LAST_DAY,
    metric: str = "spend",
) -> list[ProjectionPoint]:
    """One point per day of the month with the projection as of that day.

    Days after ``as_of`` carry the current projection and ``is_projection``.
    """
    daily = _daily_values(frame, as_of, metric)
    current = _forecast_from_daily(daily, as_of, strategy, metric).projected_total

    points: list[ProjectionPoint] = []
    for offset in range(days_in_month(as_of)):
        day = month_start(as_of) + timedelta(days=offset)
        if day > as_of:
            points.append(
                ProjectionPoint(date=day, actual=0.0, projected_total=current, is_projection=True)
            )
            continue
        points.append(
            ProjectionPoint(
                date=day,
                actual=daily.get(day, 0.0),
                projected_total=_forecast_from_daily(daily, day, strategy, metric).projected_total,
                is_projection=False,
            )
        )
    return points


# =============================================================================
# AGENCY-TYPE AND IO SUMMARIES
# =============================================================================


def agency_type(abbreviation: str, config: ResolverConfig) -> AgencyType:
    """Direct for the in-house agency abbreviation, Channel Partner otherwise."""
    return "Direct" if abbreviation == config.direct_agency_abbreviation else "Channel Partner"


def forecast_summary(
    frame: pl.DataFrame, as_of: date, resolver: IdentityResolver
) -> list[ForecastSummary]:
    """Month-to-date spend and last-day-rate forecast per agency type."""
    names = frame["campaign_name"].unique().to_list()
    types = {
        name: agency_type(resolver.resolve_agency(name).abbreviation, resolver.config)
        for name in names
    }

    summaries: list[ForecastSummary] = []
    for kind in AGENCY_TYPES:
        members = [name for name, value in types.items() if value == kind]
        mtd = month_to_date_daily(frame.filter(campaign_filter_expr(members)), as_of)
        spend = mtd["spend"].to_list()
        mtd_spend = float(sum(spend))
        forecast = _forecast_from_daily(
            dict(zip(mtd["date"].to_list(), spend)), as_of, TrailingRate.LAST_DAY, "spend"
        )
        summaries.append(
            ForecastSummary(
                agency_type=kind,
                mtd_impressions=float(mtd["impressions"].sum()),
                mtd_spend=mtd_spend,
                forecast_spend=forecast.projected_total,
                daily_average_spend=mtd_spend / len(spend) if spend else 0.0,
                most_recent_day_spend=spend[-1] if spend else 0.0,
                days_with_data=len(spend),
                daily_trend=detect_trend(spend),
            )
        )
    return summaries


def forecast_by_io(frame: pl.DataFrame, as_of: date) -> list[IOForecast]:
    """Spend forecast per insertion order, using the period-average rate."""
    by_io: dict[str, list[str]] = {}
    for name in frame["campaign_name"].unique(maintain_order=True).to_list():
        display = io_display_format(name)
        if display:
            by_io.setdefault(display, []).append(name)

    last_month = previous_month_range(as_of)
    forecasts: list[IOForecast] = []
    for display, members in sorted(by_io.items()):
        rows = frame.filter(campaign_filter_expr(members))
        forecast = forecast_month(rows, as_of, TrailingRate.PERIOD_AVERAGE, "spend")
        last_month_spend = rows.filter(
            pl.col("date").is_between(*last_month, closed="both")
        )["spend"].sum()
        forecasts.append(
            IOForecast(
                io_display_format=display,
                io_numbers=extract_io_numbers(members[0]),
                mtd_spend=forecast.period_to_date_total,
                forecast_spend=forecast.projected_total,
                last_month_spend=float(last_month_spend),
                campaign_count=len(members),
            )
        )
    logger.info("Generated forecasts for %d insertion orders", len(forecasts))
    return forecasts
