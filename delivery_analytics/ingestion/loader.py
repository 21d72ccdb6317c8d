"""Main data ingestion pipeline."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

import polars as pl

from ..config import DeliverySchema, load_schema_registry
from ..exceptions import ColumnMappingError, ConfigLoadError
from ..models.delivery_record import (
    DELIVERY_SCHEMA,
    DeliveryRecord,
    empty_delivery_frame,
)
from .cleaner import apply_cleaning, date_lookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestedDelivery:
    """Cleaned delivery frame plus an account of what was left out."""

    frame: pl.DataFrame
    total_rows: int
    totals_rows: int = 0
    unparsable_dates: tuple[str, ...] = ()

    @property
    def skipped_rows(self) -> int:
        return self.totals_rows + len(self.unparsable_dates)

    def records(self) -> list[DeliveryRecord]:
        return [DeliveryRecord.model_validate(row) for row in self.frame.to_dicts()]

    def summary(self) -> str:
        """Human-readable skip report, e.g. for an upload dialog."""
        if not self.unparsable_dates:
            return f"{len(self.frame)} of {self.total_rows} rows loaded"
        return (
            f"{len(self.frame)} of {self.total_rows} rows loaded; "
            f"{len(self.unparsable_dates)} rows skipped (unparsable date)"
        )


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class DeliveryIngestionPipeline:
    """Pipeline for turning raw delivery rows into a typed Polars frame.

    Usage:
        pipeline = DeliveryIngestionPipeline()
        ingested = pipeline.ingest(rows)  # rows keyed "DATE", "CAMPAIGN ORDER NAME", ...
        df = ingested.frame
    """

    def __init__(self, schema_path: Path | None = None, schema_name: str = "delivery_report"):
        registry = load_schema_registry(schema_path)
        if schema_name not in registry:
            raise ConfigLoadError(
                f"Schema {schema_name!r} not in registry. Available: {sorted(registry)}"
            )
        self.schema: DeliverySchema = registry[schema_name]

    def ingest(self, rows: Iterable[Mapping[str, Any]]) -> IngestedDelivery:
        """Full pipeline: Load -> Rename -> Clean -> Parse dates.

        Args:
            rows: Raw flat records as supplied by the upload layer

        Returns:
            IngestedDelivery with the cleaned frame and skip counts
        """
        rows = list(rows)
        if not rows:
            return IngestedDelivery(frame=empty_delivery_frame(), total_rows=0)
        return self.ingest_frame(self._load(rows))

    def ingest_frame(self, df: pl.DataFrame) -> IngestedDelivery:
        """Same pipeline for a frame that still carries raw column headers."""
        if df.is_empty():
            return IngestedDelivery(frame=empty_delivery_frame(), total_rows=0)

        total_rows = len(df)
        df = self._rename_columns(df, self.schema.column_map)
        df = self._clean(df)
        df, totals_rows = self._drop_totals(df)
        df, unparsable = self._parse_dates(df)

        return IngestedDelivery(
            frame=df.select(list(DELIVERY_SCHEMA)),
            total_rows=total_rows,
            totals_rows=totals_rows,
            unparsable_dates=unparsable,
        )

    def _load(self, rows: list[Mapping[str, Any]]) -> pl.DataFrame:
        """Build an all-string frame; mixed str/number cells are common in exports."""
        headers = list(dict.fromkeys(key for row in rows for key in row))
        return pl.DataFrame(
            {header: [_to_text(row.get(header)) for row in rows] for header in headers},
            schema={header: pl.Utf8 for header in headers},
        )

    def _rename_columns(
        self, df: pl.DataFrame, column_map: dict[str, str]
    ) -> pl.DataFrame:
        """Rename columns from raw names to internal names.

        column_map: {internal_name: raw_column_name}
        """
        raw_to_internal = {v: k for k, v in column_map.items()}
        available = set(df.columns)

        missing = [
            column_map[internal]
            for internal in self.schema.required_columns
            if column_map.get(internal) not in available
        ]
        if missing:
            raise ColumnMappingError(missing, list(df.columns))

        rename_dict = {
            raw: internal
            for raw, internal in raw_to_internal.items()
            if raw in available
        }
        return df.rename(rename_dict)

    def _clean(self, df: pl.DataFrame) -> pl.DataFrame:
        return apply_cleaning(
            df,
            metric_cols=self.schema.metric_columns,
            string_cols=["campaign_name"],
        ).with_columns(pl.col("raw_date").cast(pl.Utf8).str.strip_chars())

    def _drop_totals(self, df: pl.DataFrame) -> tuple[pl.DataFrame, int]:
        is_totals = pl.col("raw_date") == self.schema.totals_sentinel
        totals_rows = df.filter(is_totals).height
        if totals_rows:
            logger.debug("Dropped %d %r sentinel rows", totals_rows, self.schema.totals_sentinel)
        return df.filter(is_totals.not_() | pl.col("raw_date").is_null()), totals_rows

    def _parse_dates(self, df: pl.DataFrame) -> tuple[pl.DataFrame, tuple[str, ...]]:
        """Attach parsed dates; rows that do not parse are skipped, not fatal."""
        lookup = date_lookup(df["raw_date"].to_list(), self.schema.date_formats)
        df = df.join(lookup, on="raw_date", how="left")

        bad = df.filter(pl.col("date").is_null())
        unparsable = tuple(value or "" for value in bad["raw_date"].to_list())
        if unparsable:
            logger.warning(
                "Skipped %d rows with unparsable dates (e.g. %s)",
                len(unparsable),
                sorted(set(unparsable))[:5],
            )
        return df.filter(pl.col("date").is_not_null()), unparsable
