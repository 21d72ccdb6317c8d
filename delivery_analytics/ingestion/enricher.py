"""Data enrichment functions - add derived columns."""

import logging

import polars as pl

from ..identity import IdentityResolver, io_display_format

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

IDENTITY_SCHEMA: dict[str, pl.DataType] = {
    "campaign_name": pl.Utf8,
    "agency": pl.Utf8,
    "agency_abbreviation": pl.Utf8,
    "advertiser": pl.Utf8,
    "is_test": pl.Boolean,
}


def identity_frame(names: list[str], resolver: IdentityResolver) -> pl.DataFrame:
    """One row per distinct campaign name with its resolved identity."""
    resolved = resolver.resolve_many(names)
    return pl.DataFrame(
        [{"campaign_name": name, **identity.to_dict()} for name, identity in resolved.items()],
        schema=IDENTITY_SCHEMA,
    )


def add_identity(
    df: pl.DataFrame, resolver: IdentityResolver, name_col: str = "campaign_name"
) -> pl.DataFrame:
    """Add agency, agency_abbreviation, advertiser and is_test columns.

    Each distinct name is resolved once and joined back.
    """
    lookup = identity_frame(df[name_col].unique().to_list(), resolver)
    if name_col != "campaign_name":
        lookup = lookup.rename({"campaign_name": name_col})
    return df.join(lookup, on=name_col, how="left")


def add_io_number(df: pl.DataFrame, name_col: str = "campaign_name") -> pl.DataFrame:
    """Add io_number as written in the name ("2001567/2001568"), null if absent."""
    return df.with_columns(
        pl.col(name_col)
        .map_elements(io_display_format, return_dtype=pl.Utf8)
        .alias("io_number")
    )


def add_day_of_week(df: pl.DataFrame, date_col: str = "date") -> pl.DataFrame:
    """Add day_of_week name (Monday..Sunday) from the ISO weekday."""
    return df.with_columns(
        pl.col(date_col)
        .dt.weekday()
        .replace_strict(
            list(range(1, 8)), WEEKDAY_NAMES, return_dtype=pl.Utf8
        )
        .alias("day_of_week")
    )


def drop_test_campaigns(df: pl.DataFrame, resolver: IdentityResolver) -> pl.DataFrame:
    """Remove rows whose campaign resolves as a test/demo/draft order."""
    if df.is_empty():
        return df
    if "is_test" in df.columns:
        return df.filter(~pl.col("is_test"))
    names = df["campaign_name"].unique().to_list()
    test_names = [name for name in names if resolver.is_test_campaign(name)]
    if not test_names:
        return df
    return df.filter(~pl.col("campaign_name").is_in(test_names))


def spend_correction_cpms(names: list[str], resolver: IdentityResolver) -> dict[str, float]:
    """{campaign_name: cpm} for the names whose spend gets restated."""
    corrections = resolver.config.spend_corrections
    cpms = {}
    for name in names:
        if not isinstance(name, str):
            continue
        cpm = corrections.cpm_for(name, resolver.resolve_agency(name).abbreviation)
        if cpm is not None:
            cpms[name] = cpm
    return cpms


def apply_spend_corrections(
    df: pl.DataFrame, resolver: IdentityResolver, keep_original: bool = False
) -> pl.DataFrame:
    """Restate spend as impressions / 1000 * cpm where a corrected CPM applies.

    Rates come from ``spend_corrections`` in the resolver rules: a CPM override
    matched on the order name wins over the agency-wide rate. Other rows keep
    their reported spend. ``keep_original`` adds an ``original_spend`` column.
    """
    if keep_original:
        df = df.with_columns(pl.col("spend").alias("original_spend"))
    if df.is_empty():
        return df

    cpms = spend_correction_cpms(df["campaign_name"].unique().to_list(), resolver)
    if not cpms:
        return df

    corrected = df.filter(pl.col("campaign_name").is_in(list(cpms))).height
    logger.info("Restated spend on %d rows across %d campaigns", corrected, len(cpms))
    cpm = pl.col("campaign_name").replace_strict(cpms, default=None, return_dtype=pl.Float64)
    return df.with_columns(
        pl.when(cpm.is_not_null())
        .then(pl.col("impressions") / 1000 * cpm)
        .otherwise(pl.col("spend"))
        .alias("spend")
    )


def enrich(df: pl.DataFrame, resolver: IdentityResolver) -> pl.DataFrame:
    """Apply all enrichment transformations."""
    df = add_identity(df, resolver)
    df = add_io_number(df)
    df = add_day_of_week(df)
    return df
