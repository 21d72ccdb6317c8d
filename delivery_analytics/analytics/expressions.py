"""Reusable Polars expressions for analytics calculations."""

from collections.abc import Iterable

import polars as pl

from ..models.delivery_record import METRIC_COLUMNS
from .models import RoasBasis


# =============================================================================
# SUMS
# =============================================================================


def metric_sums_expr() -> list[pl.Expr]:
    """Per-group sums of every additive metric plus the row count."""
    return [pl.col(metric).sum().alias(metric) for metric in METRIC_COLUMNS] + [
        pl.len().alias("row_count")
    ]


# =============================================================================
# RATIOS (always computed from sums, never averaged per row)
# =============================================================================


def safe_ratio_expr(numerator: str, denominator: str, scale: float = 1.0) -> pl.Expr:
    """numerator / denominator * scale, 0 when the denominator is 0."""
    return (
        pl.when(pl.col(denominator) > 0)
        .then(pl.col(numerator) / pl.col(denominator) * scale)
        .otherwise(0.0)
    )


def ctr_expr() -> pl.Expr:
    """CTR = clicks / impressions * 100."""
    return safe_ratio_expr("clicks", "impressions", 100.0).alias("ctr")


def roas_expr(basis: RoasBasis = RoasBasis.SPEND) -> pl.Expr:
    """ROAS = revenue / spend, or revenue per thousand impressions."""
    if basis == RoasBasis.IMPRESSIONS:
        return safe_ratio_expr("revenue", "impressions", 1000.0).alias("roas")
    return safe_ratio_expr("revenue", "spend").alias("roas")


def aov_expr() -> pl.Expr:
    """Average order value = revenue / transactions."""
    return safe_ratio_expr("revenue", "transactions").alias("aov")


def ratio_exprs(basis: RoasBasis = RoasBasis.SPEND) -> list[pl.Expr]:
    return [ctr_expr(), roas_expr(basis)]


# =============================================================================
# SCALAR COUNTERPARTS
# =============================================================================


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    return numerator / denominator * scale if denominator > 0 else 0.0


def ctr(clicks: float, impressions: float) -> float:
    return safe_ratio(clicks, impressions, 100.0)


def roas(revenue: float, spend: float, impressions: float, basis: RoasBasis) -> float:
    if basis == RoasBasis.IMPRESSIONS:
        return safe_ratio(revenue, impressions, 1000.0)
    return safe_ratio(revenue, spend)


# =============================================================================
# FILTERS
# =============================================================================


def campaign_filter_expr(names: Iterable[str]) -> pl.Expr:
    """Rows whose campaign_name is one of ``names`` (empty -> no rows)."""
    names = list(names)
    if not names:
        return pl.lit(False)
    return pl.col("campaign_name").is_in(names)
