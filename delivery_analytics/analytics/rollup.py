"""Grouping and rollup of delivery rows into (group, time) buckets."""

from collections.abc import Callable, Iterable
from datetime import date, timedelta

import polars as pl

from ..identity import IdentityResolver, io_display_format
from .expressions import metric_sums_expr, ratio_exprs
from .models import UNATTRIBUTED_LABEL, Bucket, GroupLevel, RoasBasis, TimeAggregation

GroupKeyFn = Callable[[str], str]
TimeKeyFn = Callable[[date], str]

ROLLING_PERIOD_DAYS = {TimeAggregation.WEEKLY: 7, TimeAggregation.MONTHLY: 30}


def normalize_name(text: str) -> str:
    """Case/whitespace-insensitive grouping key."""
    return " ".join(text.split()).lower()


def rolling_window(day: date, anchor: date, period_days: int) -> tuple[date, date]:
    """Inclusive window of ``period_days`` containing ``day``, counted back from ``anchor``."""
    index = (anchor - day).days // period_days
    end = anchor - timedelta(days=index * period_days)
    return end - timedelta(days=period_days - 1), end


def rolling_label(start: date, end: date) -> str:
    return f"{start:%m/%d/%y} - {end:%m/%d/%y}"


def group_keys(
    names: Iterable[str],
    group_by: GroupLevel | GroupKeyFn,
    resolver: IdentityResolver,
) -> dict[str, tuple[str, str]]:
    """{campaign_name: (group_key, display_name)}; unresolved names get ("", label)."""
    keys: dict[str, tuple[str, str]] = {}
    for name in names:
        key, display = _group_key(name, group_by, resolver)
        keys[name] = (key, display) if key else ("", UNATTRIBUTED_LABEL)
    return keys


def _group_key(
    name: str, group_by: GroupLevel | GroupKeyFn, resolver: IdentityResolver
) -> tuple[str, str]:
    if not isinstance(group_by, GroupLevel):
        key = group_by(name) or ""
        return key, key

    if group_by == GroupLevel.CAMPAIGN:
        return name, name
    if group_by == GroupLevel.IO:
        io = io_display_format(name) or ""
        return io, io
    if group_by == GroupLevel.AGENCY:
        agency = resolver.resolve_agency(name).agency
        return agency, agency

    # Same-named advertisers under different agencies stay separate
    advertiser = resolver.resolve_advertiser(name)
    if not advertiser:
        return "", ""
    agency = resolver.resolve_agency(name).agency
    key = f"{normalize_name(advertiser)} ({agency})"
    display = f"{advertiser} ({agency})" if agency else advertiser
    return key, display


def time_keys(
    dates: Iterable[date], time_by: TimeAggregation | TimeKeyFn
) -> dict[date, str]:
    """{date: time_key} for each distinct date."""
    distinct = sorted(set(dates))
    if not distinct:
        return {}
    if not isinstance(time_by, TimeAggregation):
        return {day: time_by(day) for day in distinct}

    if time_by == TimeAggregation.DAILY:
        return {day: day.isoformat() for day in distinct}
    if time_by == TimeAggregation.CALENDAR_MONTH:
        return {day: f"{day:%Y-%m}" for day in distinct}
    if time_by == TimeAggregation.TOTAL:
        return {day: "total" for day in distinct}

    period_days = ROLLING_PERIOD_DAYS[time_by]
    anchor = distinct[-1]
    return {
        day: rolling_label(*rolling_window(day, anchor, period_days)) for day in distinct
    }


def rollup(
    frame: pl.DataFrame,
    group_by: GroupLevel | GroupKeyFn = GroupLevel.CAMPAIGN,
    time_by: TimeAggregation | TimeKeyFn = TimeAggregation.DAILY,
    resolver: IdentityResolver | None = None,
    roas_basis: RoasBasis = RoasBasis.SPEND,
) -> list[Bucket]:
    """Sum delivery rows per (group key, time key) bucket.

    Args:
        frame: Delivery frame from the ingestion pipeline
        group_by: Grouping level, or a callable campaign_name -> key
        time_by: Time aggregation, or a callable date -> key
        resolver: Identity resolver for advertiser/agency grouping
        roas_basis: Denominator for the bucket ROAS

    Returns:
        Buckets sorted by group key, then chronologically. Unattributed rows
        are kept under the empty group key so bucket totals reconcile.
    """
    frame = frame.filter(pl.col("date").is_not_null())
    if frame.is_empty():
        return []

    resolver = resolver if resolver is not None else IdentityResolver()
    by_name = group_keys(frame["campaign_name"].unique().to_list(), group_by, resolver)
    by_date = time_keys(frame["date"].unique().to_list(), time_by)

    group_lookup = pl.DataFrame(
        {
            "campaign_name": list(by_name),
            "group_key": [key for key, _ in by_name.values()],
            "display_name": [display for _, display in by_name.values()],
        },
        schema={"campaign_name": pl.Utf8, "group_key": pl.Utf8, "display_name": pl.Utf8},
    )
    time_lookup = pl.DataFrame(
        {"date": list(by_date), "time_key": list(by_date.values())},
        schema={"date": pl.Date, "time_key": pl.Utf8},
    )

    keyed = (
        frame.with_row_index("_row")
        .join(group_lookup, on="campaign_name", how="left")
        .join(time_lookup, on="date", how="left")
        .sort("_row")
    )

    buckets_df = (
        keyed.group_by(["group_key", "time_key"], maintain_order=True)
        .agg(
            [
                pl.col("display_name").first(),
                pl.col("date").min().alias("_first_date"),
                *metric_sums_expr(),
            ]
        )
        .with_columns(ratio_exprs(roas_basis))
        .sort(["group_key", "_first_date"])
    )

    return [
        Bucket(
            group_key=row["group_key"],
            display_name=row["display_name"],
            time_key=row["time_key"],
            impressions=row["impressions"],
            clicks=row["clicks"],
            transactions=row["transactions"],
            revenue=row["revenue"],
            spend=row["spend"],
            row_count=row["row_count"],
            ctr=row["ctr"],
            roas=row["roas"],
        )
        for row in buckets_df.to_dicts()
    ]
