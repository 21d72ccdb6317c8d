"""Shared fixtures for delivery analytics tests."""

from datetime import date, timedelta

import polars as pl
import pytest

from delivery_analytics.identity import ClassificationCache, IdentityResolver
from delivery_analytics.models.delivery_record import DELIVERY_SCHEMA

ACME = "2001567: MJ: Acme-Fall-250901"


def make_frame(records: list[tuple]) -> pl.DataFrame:
    """Delivery frame from (date, campaign, impressions, clicks, transactions, revenue, spend)."""
    return pl.DataFrame(
        {
            "date": [r[0] for r in records],
            "raw_date": [r[0].isoformat() for r in records],
            "campaign_name": [r[1] for r in records],
            "impressions": [float(r[2]) for r in records],
            "clicks": [float(r[3]) for r in records],
            "transactions": [float(r[4]) for r in records],
            "revenue": [float(r[5]) for r in records],
            "spend": [float(r[6]) for r in records],
        },
        schema=DELIVERY_SCHEMA,
    )


def date_span(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


@pytest.fixture
def resolver() -> IdentityResolver:
    """Resolver over the bundled rules with a fresh cache."""
    return IdentityResolver(cache=ClassificationCache())


@pytest.fixture
def august_frame() -> pl.DataFrame:
    """One row per day, 8/1-8/20/2025: 1000 impressions, 10 clicks, $10 revenue, $5 spend."""
    return make_frame(
        [(day, ACME, 1000, 10, 1, 10.0, 5.0) for day in date_span(date(2025, 8, 1), date(2025, 8, 20))]
    )
