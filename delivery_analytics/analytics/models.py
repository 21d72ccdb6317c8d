"""Output models for analytics calculations."""

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Literal

TrendDirection = Literal["increasing", "decreasing", "stable"]
AgencyType = Literal["Direct", "Channel Partner"]

UNATTRIBUTED_LABEL = "(unattributed)"


class RoasBasis(str, Enum):
    """Denominator used for ROAS."""

    SPEND = "spend"  # revenue / spend
    IMPRESSIONS = "impressions"  # revenue / impressions * 1000


class TrailingRate(str, Enum):
    """Daily rate used to extrapolate a month-to-date total."""

    LAST_DAY = "last_day"
    PERIOD_AVERAGE = "period_average"


class GroupLevel(str, Enum):
    CAMPAIGN = "campaign"
    ADVERTISER = "advertiser"
    AGENCY = "agency"
    IO = "io"


class TimeAggregation(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"  # 7-day rolling, anchored on the latest date
    MONTHLY = "monthly"  # 30-day rolling, anchored on the latest date
    CALENDAR_MONTH = "calendar_month"
    TOTAL = "total"


class BurnRateConfidence(str, Enum):
    """Which window a burn rate was taken from."""

    SEVEN_DAY = "7-day"
    THREE_DAY = "3-day"
    ONE_DAY = "1-day"
    OVERALL_AVERAGE = "overall-average"
    NO_DATA = "no-data"


def _serialize(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return _serialize(asdict(self))


@dataclass(frozen=True)
class Bucket(_Serializable):
    """Metric sums for one (group, time) cell of a rollup."""

    group_key: str
    display_name: str
    time_key: str
    impressions: float
    clicks: float
    transactions: float
    revenue: float
    spend: float
    row_count: int
    ctr: float  # clicks / impressions * 100
    roas: float  # see RoasBasis


@dataclass(frozen=True)
class GapFilledPoint(_Serializable):
    """One day of a chart series; filled days carry zeros and no ratios."""

    date: str  # ISO date, or weekday name in day-of-week mode
    raw_date: date | None
    impressions: float
    clicks: float
    transactions: float
    revenue: float
    spend: float
    ctr: float | None
    roas: float | None
    is_filled: bool = False


@dataclass(frozen=True)
class RollingPeriod(_Serializable):
    """Non-overlapping N-day window, walking backward from the latest date."""

    period_start: date
    period_end: date
    impressions: float
    clicks: float
    transactions: float
    revenue: float
    spend: float
    count: int  # rows that landed in the window
    ctr: float
    roas: float
    aov: float  # revenue / transactions

    @property
    def label(self) -> str:
        return f"{self.period_start:%m/%d/%y} - {self.period_end:%m/%d/%y}"

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "label": self.label}


@dataclass(frozen=True)
class PeriodComparison(_Serializable):
    """A period against its immediate predecessor."""

    current: RollingPeriod
    previous: RollingPeriod | None
    changes: dict[str, float] = field(default_factory=dict)  # metric -> percent change

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "previous": self.previous.to_dict() if self.previous else None,
            "changes": dict(self.changes),
        }


@dataclass(frozen=True)
class ForecastResult(_Serializable):
    """Month-end projection from a month-to-date total."""

    period_to_date_total: float
    trailing_rate: float
    remaining_days: int
    projected_total: float
    strategy: TrailingRate
    as_of: date
    metric: str = "spend"


@dataclass(frozen=True)
class ProjectionPoint(_Serializable):
    """One day of the historical projection trend line."""

    date: date
    actual: float
    projected_total: float  # projection as of this day (current one for future days)
    is_projection: bool  # True for days after as_of


@dataclass(frozen=True)
class ForecastSummary(_Serializable):
    """Month-to-date delivery and forecast for one agency type."""

    agency_type: AgencyType
    mtd_impressions: float
    mtd_spend: float
    forecast_spend: float
    daily_average_spend: float  # mtd_spend / days with data
    most_recent_day_spend: float
    days_with_data: int
    daily_trend: TrendDirection


@dataclass(frozen=True)
class IOForecast(_Serializable):
    """Spend forecast for one insertion order."""

    io_display_format: str  # "2001567" or "2001567/2001568"
    io_numbers: list[str]
    mtd_spend: float
    forecast_spend: float
    last_month_spend: float
    campaign_count: int


@dataclass(frozen=True)
class PacingMetrics(_Serializable):
    """Delivery pacing of one campaign against its contract."""

    campaign_name: str
    start_date: date
    end_date: date
    budget: float
    cpm: float
    impressions_goal: int
    total_days: int
    days_elapsed: int
    days_remaining: int
    expected_impressions: float
    actual_impressions: float
    pacing: float  # actual / expected, 0 when nothing expected yet
    remaining_impressions: float
    remaining_daily_needed: float
    yesterday_impressions: float  # second most recent observed day
    yesterday_vs_needed: float


@dataclass(frozen=True)
class SkippedCampaign(_Serializable):
    campaign_name: str
    reason: str


@dataclass(frozen=True)
class PacingBatch(_Serializable):
    """Pacing for a list of contracts; invalid contracts are skipped."""

    campaigns: list[PacingMetrics]
    skipped: list[SkippedCampaign]


@dataclass(frozen=True)
class MissingContractTerms(_Serializable):
    """Campaign delivering impressions with no contract on file."""

    campaign_name: str
    impressions: float
    spend: float
    revenue: float


@dataclass(frozen=True)
class BurnRate(_Serializable):
    """Recent daily impressions against the daily rate the goal requires.

    The most recent observed day is left out as possibly incomplete.
    Percentages are rate / required * 100 (0 when nothing is required).
    """

    one_day_rate: float
    three_day_rate: float
    seven_day_rate: float
    confidence: BurnRateConfidence
    one_day_percentage: float = 0.0
    three_day_percentage: float = 0.0
    seven_day_percentage: float = 0.0

    @property
    def current_rate(self) -> float:
        """Rate for the widest window with enough data."""
        if self.confidence == BurnRateConfidence.SEVEN_DAY:
            return self.seven_day_rate
        if self.confidence == BurnRateConfidence.THREE_DAY:
            return self.three_day_rate
        if self.confidence == BurnRateConfidence.ONE_DAY:
            return self.one_day_rate
        return 0.0


@dataclass(frozen=True)
class SpendBurnRate(_Serializable):
    """Daily spend rate used to project spend to the end of the flight."""

    daily_rate: float
    confidence: BurnRateConfidence
    capped: bool = False  # limited to twice the flight-to-date average


@dataclass(frozen=True)
class CampaignHealth(_Serializable):
    """Weighted 0-10 health score of one contracted campaign.

    health = 0.40 roas + 0.30 delivery pacing + 0.15 burn rate + 0.15 overspend.
    The CTR score is reported but not weighted.
    """

    campaign_name: str
    impressions: float
    clicks: float
    transactions: float
    revenue: float
    spend: float
    roas: float
    ctr: float
    roas_score: float
    delivery_pacing_score: float
    burn_rate_score: float
    ctr_score: float
    overspend_score: float
    health_score: float
    completion_percentage: float
    expected_impressions: float
    delivery_pacing: float  # actual / expected * 100
    required_daily_impressions: float
    burn_rate: BurnRate
    burn_rate_percentage: float
    spend_burn_rate: SpendBurnRate
    budget: float
    days_left: int
    projected_overspend: float


@dataclass(frozen=True)
class HealthBatch(_Serializable):
    """Health for a list of contracts; invalid contracts are skipped."""

    campaigns: list[CampaignHealth]
    skipped: list[SkippedCampaign] = field(default_factory=list)
