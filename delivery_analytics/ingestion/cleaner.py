"""Data cleaning functions using Polars expressions."""

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime

import polars as pl

DEFAULT_DATE_FORMATS: tuple[str, ...] = ("%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d", "%m-%d-%Y")


def clean_number_column(col_name: str) -> pl.Expr:
    """Coerce to float without failing: strip $ , and spaces; bad values -> 0.

    Handles "1,234", "$56.78", " 9 ", "", null, "NaN" and "Infinity".
    """
    parsed = (
        pl.col(col_name)
        .cast(pl.Utf8)
        .str.strip_chars()
        .str.replace_all(",", "", literal=True)
        .str.replace_all("$", "", literal=True)
        .cast(pl.Float64, strict=False)
    )
    return (
        pl.when(parsed.is_null() | parsed.is_nan() | parsed.is_infinite())
        .then(0.0)
        .otherwise(parsed)
        .alias(col_name)
    )


def clean_string_column(col_name: str) -> pl.Expr:
    """Cast to string and strip whitespace; nulls become empty strings."""
    return pl.col(col_name).cast(pl.Utf8).str.strip_chars().fill_null("").alias(col_name)


def to_number(value: object) -> float:
    """Scalar counterpart of clean_number_column for one-off values."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "").replace("$", "")
        try:
            number = float(text)
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0


def parse_date(value: object, formats: Sequence[str] = DEFAULT_DATE_FORMATS) -> date | None:
    """Parse an M/D/YYYY-family or ISO date; None when nothing fits."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None
    # Tolerate a trailing time component ("9/1/2025 00:00:00")
    text = text.split(" ")[0].split("T")[0]
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def date_lookup(raw_dates: Iterable[str | None], formats: Sequence[str]) -> pl.DataFrame:
    """Map each distinct raw date string to its parsed date (null if unparsable)."""
    distinct = [raw for raw in dict.fromkeys(raw_dates) if raw is not None]
    return pl.DataFrame(
        {
            "raw_date": distinct,
            "date": [parse_date(raw, formats) for raw in distinct],
        },
        schema={"raw_date": pl.Utf8, "date": pl.Date},
    )


def apply_cleaning(
    df: pl.DataFrame,
    metric_cols: list[str],
    string_cols: list[str] | None = None,
) -> pl.DataFrame:
    """Apply all cleaning transformations to DataFrame.

    Only cleans columns that exist in the DataFrame; missing metric columns
    are added as zeros.
    """
    existing_cols = set(df.columns)
    exprs: list[pl.Expr] = []

    for col in metric_cols:
        if col in existing_cols:
            exprs.append(clean_number_column(col))
        else:
            exprs.append(pl.lit(0.0, dtype=pl.Float64).alias(col))

    for col in string_cols or []:
        if col in existing_cols:
            exprs.append(clean_string_column(col))

    if exprs:
        return df.with_columns(exprs)
    return df
