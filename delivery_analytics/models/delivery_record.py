"""Pydantic model and frame schema for ingested delivery rows."""

from datetime import date

import polars as pl
from pydantic import BaseModel, ConfigDict

METRIC_COLUMNS: list[str] = ["impressions", "clicks", "transactions", "revenue", "spend"]

DELIVERY_SCHEMA: dict[str, pl.DataType] = {
    "date": pl.Date,
    "raw_date": pl.Utf8,
    "campaign_name": pl.Utf8,
    **{metric: pl.Float64 for metric in METRIC_COLUMNS},
}


def empty_delivery_frame() -> pl.DataFrame:
    return pl.DataFrame(schema=DELIVERY_SCHEMA)


class DeliveryRecord(BaseModel):
    """Single campaign-day observation after cleaning.

    The "Totals" sentinel row never becomes a DeliveryRecord.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    date: date
    raw_date: str
    campaign_name: str

    impressions: float
    clicks: float
    transactions: float
    revenue: float
    spend: float
