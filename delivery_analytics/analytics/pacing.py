"""Contract terms and delivery pacing."""

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

import polars as pl
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ..exceptions import ContractTermsError
from ..ingestion.cleaner import parse_date
from .expressions import safe_ratio
from .gap_fill import daily_series
from .models import MissingContractTerms, PacingBatch, PacingMetrics, SkippedCampaign

logger = logging.getLogger(__name__)

NAME_FIELDS = (
    "Name",
    "NAME",
    "name",
    "Campaign",
    "CAMPAIGN",
    "campaign",
    "Campaign Name",
    "CAMPAIGN NAME",
)

# Goal assumed when terms are derived from delivery alone
DERIVED_GOAL_BUFFER = 1.1


class ContractTerms(BaseModel):
    """Contracted flight, budget and goal for one campaign.

    Accepts the header spellings seen in uploaded contract sheets; currency
    values may carry "$" and thousands separators.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1, validation_alias=AliasChoices(*NAME_FIELDS))
    start_date: date = Field(
        validation_alias=AliasChoices("Start Date", "START DATE", "start_date")
    )
    end_date: date = Field(validation_alias=AliasChoices("End Date", "END DATE", "end_date"))
    budget: float = Field(ge=0, validation_alias=AliasChoices("Budget", "BUDGET", "budget"))
    cpm: float = Field(ge=0, validation_alias=AliasChoices("CPM", "cpm"))
    impressions_goal: int | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "Impressions Goal", "IMPRESSIONS_GOAL", "GOAL IMPRESSIONS", "impressions_goal"
        ),
    )

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return str(value).strip() if value is not None else value

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> date:
        parsed = parse_date(value)
        if parsed is None:
            raise ValueError(f"Invalid date format: {value!r}")
        return parsed

    @field_validator("budget", "cpm", mode="before")
    @classmethod
    def _parse_money(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip().replace("$", "").replace(",", "")
            if not text:
                raise ValueError("value is required")
            return text
        return value

    @field_validator("impressions_goal", mode="before")
    @classmethod
    def _parse_goal(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            text = value.strip().replace(",", "")
            return round(float(text)) if text else None
        if isinstance(value, float):
            return round(value)
        return value

    @model_validator(mode="after")
    def _check_flight(self) -> "ContractTerms":
        if self.end_date < self.start_date:
            raise ValueError(f"end date {self.end_date} is before start date {self.start_date}")
        if self.impressions_goal is None and self.cpm == 0:
            raise ValueError("impressions goal missing and CPM is 0; cannot derive a goal")
        return self

    @property
    def goal(self) -> int:
        """Impressions goal, or budget / CPM * 1000 when none was contracted."""
        if self.impressions_goal is not None:
            return self.impressions_goal
        return round(self.budget / self.cpm * 1000)

    @property
    def total_days(self) -> int:
        """Flight length, inclusive of both ends."""
        return (self.end_date - self.start_date).days + 1

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ContractTerms":
        """Parse a raw contract-sheet row.

        Raises:
            ContractTermsError: If required fields are missing or unparsable
        """
        try:
            return cls.model_validate(dict(record))
        except ValidationError as e:
            raise ContractTermsError(record_campaign_name(record), e.errors()) from e


def record_campaign_name(record: Mapping[str, Any]) -> str:
    """First non-empty name field of a contract-sheet row."""
    for field in NAME_FIELDS:
        value = record.get(field)
        if value:
            return str(value).strip()
    return ""


# =============================================================================
# DERIVED TERMS
# =============================================================================


def derive_contract_terms(frame: pl.DataFrame) -> list[ContractTerms]:
    """Equivalent terms built from delivery when no contract sheet exists.

    Flight = first/last delivery date, budget = total spend,
    CPM = spend / impressions * 1000, goal = impressions * 1.1.
    """
    if frame.is_empty():
        return []

    per_campaign = (
        frame.filter(pl.col("campaign_name") != "")
        .group_by("campaign_name")
        .agg(
            pl.col("date").min().alias("start_date"),
            pl.col("date").max().alias("end_date"),
            pl.col("spend").sum(),
            pl.col("impressions").sum(),
        )
        .sort("campaign_name")
    )
    return [
        ContractTerms(
            name=row["campaign_name"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            budget=row["spend"],
            cpm=safe_ratio(row["spend"], row["impressions"], 1000.0),
            impressions_goal=round(row["impressions"] * DERIVED_GOAL_BUFFER),
        )
        for row in per_campaign.to_dicts()
    ]


# =============================================================================
# PACING
# =============================================================================


def campaign_pacing(
    terms: ContractTerms,
    frame: pl.DataFrame,
    global_most_recent: date | None = None,
) -> PacingMetrics:
    """Pacing of one campaign as of its most recent delivery date.

    Falls back to ``global_most_recent`` (then the flight start) when the
    campaign has no delivery rows yet.
    """
    daily = daily_series(frame.filter(pl.col("campaign_name") == terms.name))
    dates = daily["date"].to_list()
    impressions = daily["impressions"].to_list()

    if dates:
        most_recent = dates[-1]
    else:
        most_recent = global_most_recent or terms.start_date

    total_days = terms.total_days
    days_elapsed = max(0, min((most_recent - terms.start_date).days, total_days))
    days_remaining = max(0, (terms.end_date - most_recent).days)

    goal = terms.goal
    expected = goal / total_days * days_elapsed
    actual = float(sum(impressions))
    remaining = max(0.0, goal - actual)
    remaining_daily_needed = safe_ratio(remaining, days_remaining)
    yesterday = impressions[-2] if len(impressions) > 1 else 0.0

    return PacingMetrics(
        campaign_name=terms.name,
        start_date=terms.start_date,
        end_date=terms.end_date,
        budget=terms.budget,
        cpm=terms.cpm,
        impressions_goal=goal,
        total_days=total_days,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        expected_impressions=expected,
        actual_impressions=actual,
        pacing=safe_ratio(actual, expected),
        remaining_impressions=remaining,
        remaining_daily_needed=remaining_daily_needed,
        yesterday_impressions=yesterday,
        yesterday_vs_needed=safe_ratio(yesterday, remaining_daily_needed),
    )


def parse_contract_terms(
    terms_list: Iterable[ContractTerms | Mapping[str, Any]],
) -> tuple[list[ContractTerms], list[SkippedCampaign]]:
    """Parse contract-sheet rows; unparsable rows are logged and returned as skipped."""
    parsed: list[ContractTerms] = []
    skipped: list[SkippedCampaign] = []
    for record in terms_list:
        try:
            terms = (
                record if isinstance(record, ContractTerms) else ContractTerms.from_record(record)
            )
        except ContractTermsError as e:
            logger.warning("Skipping campaign %r: %s", e.campaign_name, e)
            skipped.append(SkippedCampaign(campaign_name=e.campaign_name, reason=str(e)))
            continue
        parsed.append(terms)
    return parsed, skipped


def process_campaigns(
    terms_list: Iterable[ContractTerms | Mapping[str, Any]],
    frame: pl.DataFrame,
) -> PacingBatch:
    """Pacing for every contract; unparsable contracts are skipped and reported."""
    global_most_recent = frame["date"].max() if not frame.is_empty() else None

    parsed, skipped = parse_contract_terms(terms_list)
    campaigns = [campaign_pacing(terms, frame, global_most_recent) for terms in parsed]

    if skipped:
        logger.info(
            "Processed %d campaigns, skipped %d with invalid contract terms",
            len(campaigns),
            len(skipped),
        )
    return PacingBatch(campaigns=campaigns, skipped=skipped)


def find_missing_contract_terms(
    frame: pl.DataFrame,
    terms_list: Iterable[ContractTerms | Mapping[str, Any]],
) -> list[MissingContractTerms]:
    """Campaigns delivering impressions with no contract, most impressions first."""
    contracted = {
        record.name if isinstance(record, ContractTerms) else record_campaign_name(record)
        for record in terms_list
    }
    delivering = (
        frame.filter((pl.col("impressions") > 0) & (pl.col("campaign_name") != ""))
        .group_by("campaign_name")
        .agg(pl.col("impressions").sum(), pl.col("spend").sum(), pl.col("revenue").sum())
        .sort(["impressions", "campaign_name"], descending=[True, False])
    )
    return [
        MissingContractTerms(
            campaign_name=row["campaign_name"],
            impressions=row["impressions"],
            spend=row["spend"],
            revenue=row["revenue"],
        )
        for row in delivering.to_dicts()
        if row["campaign_name"] not in contracted
    ]
