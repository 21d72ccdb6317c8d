"""Campaign health scoring.

Each component is scored 0-10 and combined with fixed weights:

    health = 0.40 * roas + 0.30 * delivery pacing + 0.15 * burn rate + 0.15 * overspend

Expected impressions, days left and flight completion come from
``campaign_pacing``, so every campaign is measured at its most recent
delivery date rather than the wall clock.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

import polars as pl

from ..models.delivery_record import METRIC_COLUMNS
from .expressions import ctr, roas, safe_ratio
from .gap_fill import daily_series
from .models import (
    BurnRate,
    BurnRateConfidence,
    CampaignHealth,
    HealthBatch,
    RoasBasis,
    SpendBurnRate,
)
from .pacing import ContractTerms, campaign_pacing, parse_contract_terms
from .stats import trailing_mean

logger = logging.getLogger(__name__)

CTR_BENCHMARK = 0.5  # percent

HEALTH_WEIGHTS = {
    "roas": 0.40,
    "delivery_pacing": 0.30,
    "burn_rate": 0.15,
    "overspend": 0.15,
}

# Overspend score multiplier per spend-rate window
CONFIDENCE_MULTIPLIERS = {
    BurnRateConfidence.SEVEN_DAY: 1.0,
    BurnRateConfidence.THREE_DAY: 0.8,
    BurnRateConfidence.ONE_DAY: 0.6,
    BurnRateConfidence.OVERALL_AVERAGE: 0.9,
}
CAPPED_MULTIPLIER = 0.7

# A recent spend rate further than this many averages from the flight
# average is replaced by the average
SPEND_RATE_TOLERANCE = {
    BurnRateConfidence.SEVEN_DAY: 2.0,
    BurnRateConfidence.THREE_DAY: 2.0,
    BurnRateConfidence.ONE_DAY: 3.0,
}
SPEND_RATE_CAP = 2.0


# =============================================================================
# COMPONENT SCORES
# =============================================================================


def roas_score(value: float) -> float:
    if value >= 4.0:
        return 10.0
    if value >= 3.0:
        return 7.5
    if value >= 2.0:
        return 5.0
    if value >= 1.0:
        return 2.5
    if value > 0:
        return 1.0
    return 0.0


def delivery_pacing_score(actual: float, expected: float) -> float:
    """10 within 5% of expected delivery, falling to 3 beyond 20%."""
    if expected <= 0:
        return 0.0
    percent = actual / expected * 100
    if 95 <= percent <= 105:
        return 10.0
    if 90 <= percent <= 110:
        return 8.0
    if 80 <= percent <= 120:
        return 6.0
    return 3.0


def ctr_score(value: float, benchmark: float = CTR_BENCHMARK) -> float:
    """Score CTR (percent) against a benchmark CTR."""
    if value == 0 or benchmark == 0:
        return 0.0
    deviation = (value - benchmark) / benchmark
    if deviation > 0.1:
        return 10.0
    if deviation >= -0.1:
        return 8.0
    return 5.0


def burn_rate(daily_impressions: Sequence[float], required_daily: float = 0.0) -> BurnRate:
    """Impression burn rates over the 1, 3 and 7 days before the latest day.

    Args:
        daily_impressions: Impressions per delivery day, oldest first
        required_daily: Goal / flight days
    """
    recent = list(daily_impressions)[:-1][-7:]
    if not recent:
        return BurnRate(0.0, 0.0, 0.0, BurnRateConfidence.NO_DATA)

    one_day = float(recent[-1])
    three_day = trailing_mean(recent, 3)
    seven_day = trailing_mean(recent, 7)
    if len(recent) >= 7:
        confidence = BurnRateConfidence.SEVEN_DAY
    elif len(recent) >= 3:
        confidence = BurnRateConfidence.THREE_DAY
    else:
        confidence = BurnRateConfidence.ONE_DAY

    return BurnRate(
        one_day_rate=one_day,
        three_day_rate=three_day,
        seven_day_rate=seven_day,
        confidence=confidence,
        one_day_percentage=safe_ratio(one_day, required_daily, 100.0),
        three_day_percentage=safe_ratio(three_day, required_daily, 100.0),
        seven_day_percentage=safe_ratio(seven_day, required_daily, 100.0),
    )


def burn_rate_score(rate: BurnRate, required_daily: float) -> float:
    if required_daily <= 0 or rate.confidence == BurnRateConfidence.NO_DATA:
        return 0.0
    ratio = rate.current_rate / required_daily
    if 0.95 <= ratio <= 1.05:
        return 10.0
    if 0.85 <= ratio <= 1.15:
        return 8.0
    return 5.0


def spend_burn_rate(
    daily_spend: Sequence[float], total_spend: float, days_into_flight: int
) -> SpendBurnRate:
    """Daily spend rate from the last 7 delivery days, sanity-checked.

    A recent rate far from the flight average falls back to the average,
    and no rate may exceed twice the average.
    """
    average = safe_ratio(total_spend, days_into_flight)
    recent = list(daily_spend)[-7:]

    if len(recent) >= 7:
        confidence = BurnRateConfidence.SEVEN_DAY
        rate = trailing_mean(recent, 7)
    elif len(recent) >= 3:
        confidence = BurnRateConfidence.THREE_DAY
        rate = trailing_mean(recent, 3)
    elif recent:
        confidence = BurnRateConfidence.ONE_DAY
        rate = float(recent[-1])
    elif average > 0:
        return SpendBurnRate(average, BurnRateConfidence.OVERALL_AVERAGE)
    else:
        return SpendBurnRate(0.0, BurnRateConfidence.NO_DATA)

    if average <= 0:
        return SpendBurnRate(rate, confidence)
    if abs(rate - average) > average * SPEND_RATE_TOLERANCE[confidence]:
        logger.debug("Spend rate %.2f is anomalous; using flight average %.2f", rate, average)
        rate = average
    if rate > average * SPEND_RATE_CAP:
        return SpendBurnRate(average * SPEND_RATE_CAP, confidence, capped=True)
    return SpendBurnRate(rate, confidence)


def projected_overspend(spend: float, budget: float, daily_rate: float, days_left: int) -> float:
    """Spend beyond budget if the daily rate holds to the end of the flight."""
    return max(0.0, spend + daily_rate * max(0, days_left) - budget)


def overspend_score(spend: float, budget: float, rate: SpendBurnRate, days_left: int) -> float:
    """10 when spend stays within budget, discounted by how reliable the rate is."""
    if budget <= 0 or days_left < 0:
        return 0.0
    multiplier = CONFIDENCE_MULTIPLIERS.get(rate.confidence)
    if multiplier is None:
        return 0.0
    if rate.capped:
        multiplier *= CAPPED_MULTIPLIER

    percent = projected_overspend(spend, budget, rate.daily_rate, days_left) / budget * 100
    if percent == 0:
        base = 10.0
    elif percent <= 5:
        base = 8.0
    elif percent <= 10:
        base = 6.0
    elif percent <= 20:
        base = 3.0
    else:
        base = 0.0
    return round(base * multiplier, 1)


def health_score(scores: Mapping[str, float]) -> float:
    """Weighted sum of component scores, rounded to one decimal."""
    return round(sum(scores[name] * weight for name, weight in HEALTH_WEIGHTS.items()), 1)


# =============================================================================
# CAMPAIGN HEALTH
# =============================================================================


def campaign_health(
    terms: ContractTerms,
    frame: pl.DataFrame,
    global_most_recent: date | None = None,
    ctr_benchmark: float = CTR_BENCHMARK,
) -> CampaignHealth:
    """Score one campaign against its contract.

    A campaign with no delivery yet scores 0 on every component.
    """
    daily = daily_series(frame.filter(pl.col("campaign_name") == terms.name))
    pacing = campaign_pacing(terms, frame, global_most_recent)
    totals = {metric: float(daily[metric].sum()) for metric in METRIC_COLUMNS}

    campaign_roas = roas(totals["revenue"], totals["spend"], totals["impressions"], RoasBasis.SPEND)
    campaign_ctr = ctr(totals["clicks"], totals["impressions"])
    required_daily = safe_ratio(terms.goal, terms.total_days)

    impressions_rate = burn_rate(daily["impressions"].to_list(), required_daily)
    spend_rate = spend_burn_rate(daily["spend"].to_list(), totals["spend"], max(1, daily.height))
    days_left = pacing.days_remaining

    scores = {
        "roas": roas_score(campaign_roas),
        "delivery_pacing": delivery_pacing_score(
            pacing.actual_impressions, pacing.expected_impressions
        ),
        "burn_rate": burn_rate_score(impressions_rate, required_daily),
        "ctr": ctr_score(campaign_ctr, ctr_benchmark),
        "overspend": overspend_score(totals["spend"], terms.budget, spend_rate, days_left),
    }
    if daily.is_empty():
        scores = dict.fromkeys(scores, 0.0)

    return CampaignHealth(
        campaign_name=terms.name,
        impressions=totals["impressions"],
        clicks=totals["clicks"],
        transactions=totals["transactions"],
        revenue=totals["revenue"],
        spend=totals["spend"],
        roas=campaign_roas,
        ctr=campaign_ctr,
        roas_score=scores["roas"],
        delivery_pacing_score=scores["delivery_pacing"],
        burn_rate_score=scores["burn_rate"],
        ctr_score=scores["ctr"],
        overspend_score=scores["overspend"],
        health_score=health_score(scores),
        completion_percentage=round(
            safe_ratio(pacing.days_elapsed, pacing.total_days, 100.0), 1
        ),
        expected_impressions=pacing.expected_impressions,
        delivery_pacing=round(
            safe_ratio(pacing.actual_impressions, pacing.expected_impressions, 100.0), 1
        ),
        required_daily_impressions=required_daily,
        burn_rate=impressions_rate,
        burn_rate_percentage=round(
            safe_ratio(impressions_rate.current_rate, required_daily, 100.0), 1
        ),
        spend_burn_rate=spend_rate,
        budget=terms.budget,
        days_left=days_left,
        projected_overspend=round(
            projected_overspend(totals["spend"], terms.budget, spend_rate.daily_rate, days_left),
            2,
        ),
    )


def score_campaigns(
    terms_list: Iterable[ContractTerms | Mapping[str, Any]],
    frame: pl.DataFrame,
    ctr_benchmark: float = CTR_BENCHMARK,
) -> HealthBatch:
    """Health for every contract, least healthy first."""
    global_most_recent = frame["date"].max() if not frame.is_empty() else None

    parsed, skipped = parse_contract_terms(terms_list)
    campaigns = sorted(
        (campaign_health(terms, frame, global_most_recent, ctr_benchmark) for terms in parsed),
        key=lambda health: (health.health_score, health.campaign_name),
    )
    logger.info("Scored %d campaigns, skipped %d", len(campaigns), len(skipped))
    return HealthBatch(campaigns=campaigns, skipped=skipped)
