"""Analytics module for campaign delivery data."""

from .forecast import (
    agency_type,
    forecast_as_of,
    forecast_by_io,
    forecast_month,
    forecast_summary,
    month_to_date_daily,
    project,
    projection_trend,
    remaining_days_in_month,
)
from .gap_fill import daily_series, day_of_week_series, fill_gaps, is_day_of_week_series
from .health import (
    burn_rate,
    burn_rate_score,
    campaign_health,
    ctr_score,
    delivery_pacing_score,
    overspend_score,
    roas_score,
    score_campaigns,
    spend_burn_rate,
)
from .models import (
    Bucket,
    BurnRate,
    BurnRateConfidence,
    CampaignHealth,
    ForecastResult,
    ForecastSummary,
    GapFilledPoint,
    GroupLevel,
    HealthBatch,
    IOForecast,
    MissingContractTerms,
    PacingBatch,
    PacingMetrics,
    PeriodComparison,
    ProjectionPoint,
    RoasBasis,
    RollingPeriod,
    SkippedCampaign,
    SpendBurnRate,
    TimeAggregation,
    TrailingRate,
)
from .pacing import (
    ContractTerms,
    campaign_pacing,
    derive_contract_terms,
    find_missing_contract_terms,
    parse_contract_terms,
    process_campaigns,
)
from .rolling import compare_periods, percent_change, rolling_periods
from .rollup import rollup

__all__ = [
    "Bucket",
    "BurnRate",
    "BurnRateConfidence",
    "CampaignHealth",
    "ContractTerms",
    "ForecastResult",
    "ForecastSummary",
    "GapFilledPoint",
    "GroupLevel",
    "HealthBatch",
    "IOForecast",
    "MissingContractTerms",
    "PacingBatch",
    "PacingMetrics",
    "PeriodComparison",
    "ProjectionPoint",
    "RoasBasis",
    "RollingPeriod",
    "SkippedCampaign",
    "SpendBurnRate",
    "TimeAggregation",
    "TrailingRate",
    "agency_type",
    "burn_rate",
    "burn_rate_score",
    "campaign_health",
    "campaign_pacing",
    "compare_periods",
    "ctr_score",
    "daily_series",
    "day_of_week_series",
    "delivery_pacing_score",
    "derive_contract_terms",
    "fill_gaps",
    "find_missing_contract_terms",
    "forecast_as_of",
    "forecast_by_io",
    "forecast_month",
    "forecast_summary",
    "is_day_of_week_series",
    "month_to_date_daily",
    "overspend_score",
    "parse_contract_terms",
    "percent_change",
    "process_campaigns",
    "project",
    "projection_trend",
    "remaining_days_in_month",
    "roas_score",
    "rolling_periods",
    "rollup",
    "score_campaigns",
    "spend_burn_rate",
]
