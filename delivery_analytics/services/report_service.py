"""Report service - orchestrates data ingestion and analytics."""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

import polars as pl

from ..analytics import (
    Bucket,
    ContractTerms,
    ForecastResult,
    GapFilledPoint,
    GroupLevel,
    PeriodComparison,
    RoasBasis,
    TimeAggregation,
    TrailingRate,
    compare_periods,
    daily_series,
    day_of_week_series,
    fill_gaps,
    find_missing_contract_terms,
    forecast_by_io,
    forecast_month,
    forecast_summary,
    process_campaigns,
    projection_trend,
    score_campaigns,
    rolling_periods,
    rollup,
)
from ..config import load_resolver_config
from ..identity import IdentityResolver
from ..ingestion import (
    DeliveryIngestionPipeline,
    IngestedDelivery,
    apply_spend_corrections,
    drop_test_campaigns,
)
from ..models.delivery_report import DeliveryReport

logger = logging.getLogger(__name__)


class DeliveryReportService:
    """Service for generating delivery reports from raw upload rows.

    Orchestrates:
    1. Ingestion of raw rows (Totals and bad dates skipped)
    2. Spend corrections and test/demo campaign filtering
    3. Rollups, gap-filled series, rolling comparisons
    4. Month-end forecasts and, given contract terms, pacing and health scores

    Usage:
        service = DeliveryReportService()
        report = service.generate_report(rows, as_of=date(2025, 9, 15))
        print(report.to_json())
    """

    def __init__(
        self,
        schema_path: Path | None = None,
        rules_path: Path | None = None,
        resolver: IdentityResolver | None = None,
    ):
        """Initialize service with bundled or custom configuration.

        Args:
            schema_path: Path to schema_registry.yaml. Defaults to bundled config.
            rules_path: Path to resolver_rules.yaml. Defaults to bundled config.
            resolver: Pre-built resolver (its cache is shared across calls)
        """
        self.pipeline = DeliveryIngestionPipeline(schema_path)
        self.resolver = resolver or IdentityResolver(load_resolver_config(rules_path))

    def ingest(
        self,
        rows: Iterable[Mapping[str, Any]],
        exclude_tests: bool = False,
        correct_spend: bool = True,
    ) -> IngestedDelivery:
        """Parse raw rows, restate corrected spend, optionally drop test campaigns."""
        ingested = self.pipeline.ingest(rows)
        frame = ingested.frame
        if correct_spend:
            frame = apply_spend_corrections(frame, self.resolver)
        if exclude_tests:
            before = len(frame)
            frame = drop_test_campaigns(frame, self.resolver)
            if len(frame) < before:
                logger.info("Excluded %d rows from test/demo/draft campaigns", before - len(frame))
        return IngestedDelivery(
            frame=frame,
            total_rows=ingested.total_rows,
            totals_rows=ingested.totals_rows,
            unparsable_dates=ingested.unparsable_dates,
        )

    def rollup(
        self,
        frame: pl.DataFrame,
        group_by: GroupLevel = GroupLevel.CAMPAIGN,
        time_by: TimeAggregation = TimeAggregation.DAILY,
        roas_basis: RoasBasis = RoasBasis.SPEND,
    ) -> list[Bucket]:
        return rollup(frame, group_by, time_by, self.resolver, roas_basis)

    def campaign_series(
        self,
        frame: pl.DataFrame,
        campaign_names: Iterable[str] | None = None,
        calendar_dates: Iterable[date] | None = None,
        by_day_of_week: bool = False,
    ) -> list[GapFilledPoint]:
        """Chart series for some (or all) campaigns, gaps filled inside the flight."""
        if by_day_of_week:
            return fill_gaps(day_of_week_series(frame, campaign_names))
        return fill_gaps(daily_series(frame, campaign_names), calendar_dates)

    def rolling_comparison(
        self, frame: pl.DataFrame, period_days: int = 7
    ) -> list[PeriodComparison]:
        return compare_periods(rolling_periods(frame, period_days))

    def forecast(
        self,
        frame: pl.DataFrame,
        as_of: date | None = None,
        strategy: TrailingRate = TrailingRate.LAST_DAY,
        metric: str = "spend",
    ) -> ForecastResult | None:
        """Month-end projection; None when there is no dated data to anchor on."""
        as_of = as_of or _latest_date(frame)
        if as_of is None:
            return None
        return forecast_month(frame, as_of, strategy, metric)

    def generate_report(
        self,
        rows: Iterable[Mapping[str, Any]],
        as_of: date | None = None,
        period_days: int = 7,
        exclude_tests: bool = True,
        contract_terms: Iterable[ContractTerms | Mapping[str, Any]] | None = None,
        correct_spend: bool = True,
    ) -> DeliveryReport:
        """Generate the full delivery report.

        Args:
            rows: Raw delivery rows keyed by export headers
            as_of: Forecast anchor date (defaults to the latest delivery date)
            period_days: Length of rolling comparison periods
            exclude_tests: Drop test/demo/draft campaigns before aggregating
            contract_terms: Contract-sheet rows; enables pacing when given
            correct_spend: Restate spend for repriced campaigns (see resolver rules)

        Returns:
            DeliveryReport with all rollups, series and forecasts
        """
        ingested = self.ingest(rows, exclude_tests=exclude_tests, correct_spend=correct_spend)
        frame = ingested.frame
        latest = _latest_date(frame)
        as_of = as_of or latest

        report = DeliveryReport(
            generated_at=datetime.now(),
            date_range=(frame["date"].min(), latest) if latest else None,
            total_rows=ingested.total_rows,
            rows_loaded=len(frame),
            skipped_summary=ingested.summary(),
            agencies=self.rollup(frame, GroupLevel.AGENCY, TimeAggregation.TOTAL),
            advertisers=self.rollup(frame, GroupLevel.ADVERTISER, TimeAggregation.TOTAL),
            campaigns=self.rollup(frame, GroupLevel.CAMPAIGN, TimeAggregation.TOTAL),
            daily=self.campaign_series(frame),
            period_comparisons=self.rolling_comparison(frame, period_days),
        )

        if as_of is not None:
            report.forecast = forecast_month(frame, as_of)
            report.projection_trend = projection_trend(frame, as_of)
            report.forecast_summary = forecast_summary(frame, as_of, self.resolver)
            report.io_forecasts = forecast_by_io(frame, as_of)

        if contract_terms is not None:
            terms = list(contract_terms)
            report.pacing = process_campaigns(terms, frame)
            report.missing_contract_terms = find_missing_contract_terms(frame, terms)
            report.health = score_campaigns(terms, frame)

        logger.info(
            "Generated report: %d rows, %d campaigns, %s",
            report.rows_loaded,
            len(report.campaigns),
            ingested.summary(),
        )
        return report


def _latest_date(frame: pl.DataFrame) -> date | None:
    return frame["date"].max() if not frame.is_empty() else None
