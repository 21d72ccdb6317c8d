"""DeliveryReport - consolidated analytics output for dashboards and exports."""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from ..analytics.models import (
    Bucket,
    ForecastResult,
    ForecastSummary,
    GapFilledPoint,
    HealthBatch,
    IOForecast,
    MissingContractTerms,
    PacingBatch,
    PeriodComparison,
    ProjectionPoint,
)


@dataclass
class DeliveryReport:
    """All analytics for one delivery upload.

    Every section is pre-computed and JSON-serializable.
    """

    # Metadata
    generated_at: datetime
    date_range: tuple[date, date] | None
    total_rows: int
    rows_loaded: int
    skipped_summary: str

    # Rollups (TOTAL time key)
    agencies: list[Bucket]
    advertisers: list[Bucket]
    campaigns: list[Bucket]

    # Time series
    daily: list[GapFilledPoint]
    period_comparisons: list[PeriodComparison]

    # Forecasts
    forecast: ForecastResult | None = None
    projection_trend: list[ProjectionPoint] = field(default_factory=list)
    forecast_summary: list[ForecastSummary] = field(default_factory=list)
    io_forecasts: list[IOForecast] = field(default_factory=list)

    # Pacing (only when contract terms were supplied)
    pacing: PacingBatch | None = None
    missing_contract_terms: list[MissingContractTerms] = field(default_factory=list)
    health: HealthBatch | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "meta": {
                "generated_at": self.generated_at.isoformat(),
                "date_range": (
                    {
                        "start": self.date_range[0].isoformat(),
                        "end": self.date_range[1].isoformat(),
                    }
                    if self.date_range
                    else None
                ),
                "total_rows": self.total_rows,
                "rows_loaded": self.rows_loaded,
                "skipped": self.skipped_summary,
            },
            "rollups": {
                "agencies": [b.to_dict() for b in self.agencies],
                "advertisers": [b.to_dict() for b in self.advertisers],
                "campaigns": [b.to_dict() for b in self.campaigns],
            },
            "temporal": {
                "daily": [p.to_dict() for p in self.daily],
                "period_comparisons": [c.to_dict() for c in self.period_comparisons],
            },
            "forecast": {
                "month": self.forecast.to_dict() if self.forecast else None,
                "trend": [p.to_dict() for p in self.projection_trend],
                "by_agency_type": [s.to_dict() for s in self.forecast_summary],
                "by_io": [f.to_dict() for f in self.io_forecasts],
            },
            "pacing": {
                "campaigns": (
                    [c.to_dict() for c in self.pacing.campaigns] if self.pacing else []
                ),
                "skipped": [s.to_dict() for s in self.pacing.skipped] if self.pacing else [],
                "missing_contract_terms": [m.to_dict() for m in self.missing_contract_terms],
                "health": (
                    [h.to_dict() for h in self.health.campaigns] if self.health else []
                ),
            },
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def get_executive_summary(self) -> dict[str, Any]:
        """Condensed headline numbers for report headers."""
        impressions = sum(b.impressions for b in self.campaigns)
        spend = sum(b.spend for b in self.campaigns)
        return {
            "total_impressions": impressions,
            "total_spend": round(spend, 2),
            "campaign_count": len(self.campaigns),
            "agency_count": len([b for b in self.agencies if b.group_key]),
            "forecast_spend": (
                round(self.forecast.projected_total, 2) if self.forecast else None
            ),
        }
