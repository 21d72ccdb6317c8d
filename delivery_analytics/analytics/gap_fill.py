"""Gap-filled daily series for chart consumers."""

from collections.abc import Iterable
from datetime import date, timedelta
from typing import Any

import polars as pl

from ..ingestion.cleaner import parse_date
from ..ingestion.enricher import WEEKDAY_NAMES, add_day_of_week
from ..models.delivery_record import METRIC_COLUMNS
from .expressions import campaign_filter_expr, ctr, roas
from .models import GapFilledPoint, RoasBasis

_WEEKDAY_PREFIXES = {name[:3].lower() for name in WEEKDAY_NAMES}


def daily_series(
    frame: pl.DataFrame, campaign_names: Iterable[str] | None = None
) -> pl.DataFrame:
    """Per-date metric sums, optionally restricted to some campaigns."""
    if campaign_names is not None:
        frame = frame.filter(campaign_filter_expr(campaign_names))
    return (
        frame.group_by("date")
        .agg([pl.col(metric).sum() for metric in METRIC_COLUMNS])
        .sort("date")
    )


def day_of_week_series(
    frame: pl.DataFrame, campaign_names: Iterable[str] | None = None
) -> pl.DataFrame:
    """Per-weekday metric sums (Monday first); one row per weekday observed."""
    if campaign_names is not None:
        frame = frame.filter(campaign_filter_expr(campaign_names))
    order = {name: index for index, name in enumerate(WEEKDAY_NAMES)}
    return (
        add_day_of_week(frame)
        .group_by("day_of_week")
        .agg([pl.col(metric).sum() for metric in METRIC_COLUMNS])
        .sort(pl.col("day_of_week").replace_strict(order, return_dtype=pl.Int32))
    )


def is_day_of_week_series(series: pl.DataFrame) -> bool:
    """True for weekday-bucketed series, which have no calendar gaps."""
    if "day_of_week" in series.columns:
        return True
    if series.schema.get("date") != pl.Utf8:
        return False
    labels = series["date"].drop_nulls().to_list()
    return bool(labels) and all(
        str(label).strip()[:3].lower() in _WEEKDAY_PREFIXES for label in labels
    )


def _point(
    label: str,
    raw_date: date | None,
    row: dict[str, Any],
    roas_basis: RoasBasis,
) -> GapFilledPoint:
    metrics = {metric: float(row.get(metric) or 0.0) for metric in METRIC_COLUMNS}
    return GapFilledPoint(
        date=label,
        raw_date=raw_date,
        **metrics,
        ctr=ctr(metrics["clicks"], metrics["impressions"]),
        roas=roas(metrics["revenue"], metrics["spend"], metrics["impressions"], roas_basis),
    )


def _with_date_column(series: pl.DataFrame) -> pl.DataFrame:
    """Calendar series with its `date` column as pl.Date (text and datetimes accepted)."""
    dtype = series.schema["date"]
    if dtype == pl.Utf8:
        return series.with_columns(
            pl.col("date").map_elements(parse_date, return_dtype=pl.Date)
        )
    if dtype == pl.Datetime:
        return series.with_columns(pl.col("date").dt.date())
    return series


def _filler(day: date) -> GapFilledPoint:
    return GapFilledPoint(
        date=day.isoformat(),
        raw_date=day,
        impressions=0.0,
        clicks=0.0,
        transactions=0.0,
        revenue=0.0,
        spend=0.0,
        ctr=None,
        roas=None,
        is_filled=True,
    )


def fill_gaps(
    series: pl.DataFrame,
    calendar_dates: Iterable[date | str] | None = None,
    roas_basis: RoasBasis = RoasBasis.SPEND,
) -> list[GapFilledPoint]:
    """Fill missing days inside the observed date range with zero points.

    Args:
        series: Frame with a ``date`` column (or ``day_of_week``) and metric sums
        calendar_dates: Candidate dates; defaults to every day of the observed range
        roas_basis: Denominator for ROAS on observed days

    Returns:
        Points in date order. Dates before the first or after the last
        observed date are never emitted. Day-of-week series pass through as-is.
    """
    if series.is_empty():
        return []

    if is_day_of_week_series(series):
        label_col = "day_of_week" if "day_of_week" in series.columns else "date"
        return [
            _point(str(row[label_col]), None, row, roas_basis)
            for row in series.to_dicts()
        ]

    observed_df = (
        _with_date_column(series)
        .filter(pl.col("date").is_not_null())
        .group_by("date")
        .agg([pl.col(metric).sum() for metric in METRIC_COLUMNS if metric in series.columns])
    )
    if observed_df.is_empty():
        return []
    observed = {row["date"]: row for row in observed_df.to_dicts()}
    first, last = min(observed), max(observed)

    if calendar_dates is None:
        candidates = [first + timedelta(days=i) for i in range((last - first).days + 1)]
    else:
        parsed = (parse_date(day) for day in calendar_dates)
        candidates = sorted({day for day in parsed if day is not None})

    points: list[GapFilledPoint] = []
    for day in candidates:
        if day < first or day > last:
            continue
        if day in observed:
            points.append(_point(day.isoformat(), day, observed[day], roas_basis))
        else:
            points.append(_filler(day))
    return points
