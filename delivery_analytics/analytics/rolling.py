"""Rolling period engine: non-overlapping N-day windows for comparison cards."""

import logging
from datetime import date, timedelta

import polars as pl

from ..models.delivery_record import METRIC_COLUMNS
from .expressions import ctr, roas, safe_ratio
from .models import PeriodComparison, RoasBasis, RollingPeriod

logger = logging.getLogger(__name__)

COMPARED_METRICS = [*METRIC_COLUMNS, "ctr", "roas", "aov"]


def percent_change(current: float, previous: float) -> float:
    """Percent change; a zero baseline reads as 100% growth (or 0% if still zero)."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def period_windows(earliest: date, latest: date, period_days: int) -> list[tuple[date, date]]:
    """Complete windows walking backward from ``latest``, most recent first."""
    if period_days < 1:
        raise ValueError(f"period_days must be >= 1, got {period_days}")

    total_days = (latest - earliest).days + 1
    if total_days // period_days < 1:
        return []

    windows: list[tuple[date, date]] = []
    end = latest
    while True:
        start = end - timedelta(days=period_days - 1)
        if start < earliest:
            break
        windows.append((start, end))
        end = start - timedelta(days=1)
    return windows


def rolling_periods(
    frame: pl.DataFrame,
    period_days: int,
    roas_basis: RoasBasis = RoasBasis.IMPRESSIONS,
) -> list[RollingPeriod]:
    """Sum delivery into contiguous, non-overlapping periods of ``period_days``.

    A trailing partial period at the start of the data is not emitted, and
    windows that received no rows are dropped.

    Raises:
        ValueError: If period_days < 1
    """
    if period_days < 1:
        raise ValueError(f"period_days must be >= 1, got {period_days}")

    frame = frame.filter(pl.col("date").is_not_null())
    if frame.is_empty():
        return []

    windows = period_windows(frame["date"].min(), frame["date"].max(), period_days)
    iso = frame.with_columns(pl.col("date").dt.strftime("%Y-%m-%d").alias("_iso"))

    periods: list[RollingPeriod] = []
    for start, end in windows:
        rows = iso.filter(
            (pl.col("_iso") >= start.isoformat()) & (pl.col("_iso") <= end.isoformat())
        )
        if rows.is_empty():
            logger.debug("Dropping empty period %s - %s", start, end)
            continue

        sums = rows.select([pl.col(metric).sum() for metric in METRIC_COLUMNS]).row(0, named=True)
        periods.append(
            RollingPeriod(
                period_start=start,
                period_end=end,
                **sums,
                count=rows.height,
                ctr=ctr(sums["clicks"], sums["impressions"]),
                roas=roas(sums["revenue"], sums["spend"], sums["impressions"], roas_basis),
                aov=safe_ratio(sums["revenue"], sums["transactions"]),
            )
        )
    return periods


def compare_periods(periods: list[RollingPeriod]) -> list[PeriodComparison]:
    """Pair each period with the next one in the most-recent-first list."""
    comparisons: list[PeriodComparison] = []
    for index, current in enumerate(periods):
        previous = periods[index + 1] if index + 1 < len(periods) else None
        changes = (
            {
                metric: percent_change(getattr(current, metric), getattr(previous, metric))
                for metric in COMPARED_METRICS
            }
            if previous is not None
            else {}
        )
        comparisons.append(PeriodComparison(current=current, previous=previous, changes=changes))
    return comparisons
