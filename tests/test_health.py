"""Tests for campaign health scoring."""

from datetime import date

import polars as pl
import pytest

from delivery_analytics.analytics import (
    BurnRate,
    BurnRateConfidence,
    ContractTerms,
    SpendBurnRate,
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

from conftest import ACME, date_span, make_frame

OTHER = "2001600: HG: Leaf-Fall"


# =============================================================================
# FIXTURES
# =============================================================================


def contract(name: str = ACME) -> dict[str, str]:
    return {
        "Campaign Name": name,
        "Start Date": "9/1/2025",
        "End Date": "9/30/2025",
        "Budget": "$3,000",
        "CPM": "$10.00",
        "Impressions Goal": "300,000",
    }


@pytest.fixture
def delivery() -> pl.DataFrame:
    """ACME on plan for 9/1-9/10 ($100, 10,000 impressions, 0.6% CTR, 4x ROAS a day).

    OTHER delivers a single unprofitable day on 9/5.
    """
    rows = [
        (day, ACME, 10000, 60, 2, 400.0, 100.0)
        for day in date_span(date(2025, 9, 1), date(2025, 9, 10))
    ]
    rows.append((date(2025, 9, 5), OTHER, 500, 0, 0, 0.0, 5.0))
    return make_frame(rows)


# =============================================================================
# COMPONENT SCORES
# =============================================================================


class TestRoasScore:
    """Tests for roas_score()."""

    @pytest.mark.parametrize(
        "value, expected",
        [(5.0, 10.0), (4.0, 10.0), (3.5, 7.5), (2.0, 5.0), (1.0, 2.5), (0.5, 1.0), (0.0, 0.0)],
    )
    def test_bands(self, value: float, expected: float) -> None:
        """Higher ROAS earns a higher band."""
        assert roas_score(value) == expected


class TestDeliveryPacingScore:
    """Tests for delivery_pacing_score()."""

    @pytest.mark.parametrize(
        "actual, expected",
        [
            (100.0, 10.0),
            (93.0, 8.0),
            (108.0, 8.0),
            (85.0, 6.0),
            (115.0, 6.0),
            (70.0, 3.0),
            (130.0, 3.0),
        ],
    )
    def test_bands(self, actual: float, expected: float) -> None:
        """Both under- and over-delivery lose points symmetrically."""
        assert delivery_pacing_score(actual, 100.0) == expected

    def test_nothing_expected(self) -> None:
        """No expected delivery scores 0."""
        assert delivery_pacing_score(500.0, 0.0) == 0.0


class TestCtrScore:
    """Tests for ctr_score()."""

    @pytest.mark.parametrize(
        "value, expected",
        [(0.6, 10.0), (0.52, 8.0), (0.47, 8.0), (0.3, 5.0), (0.0, 0.0)],
    )
    def test_against_default_benchmark(self, value: float, expected: float) -> None:
        """Within 10% of a 0.5% benchmark scores 8."""
        assert ctr_score(value) == expected

    def test_custom_benchmark(self) -> None:
        """A zero benchmark cannot be scored against."""
        assert ctr_score(0.6, benchmark=1.0) == 5.0
        assert ctr_score(0.6, benchmark=0.0) == 0.0


# =============================================================================
# BURN RATES
# =============================================================================


class TestBurnRate:
    """Tests for burn_rate()."""

    def test_excludes_latest_day(self) -> None:
        """The most recent day is left out of every window."""
        rate = burn_rate([10.0, 20.0, 30.0, 40.0, 50.0], required_daily=20.0)
        assert rate.confidence == BurnRateConfidence.THREE_DAY
        assert rate.one_day_rate == 40.0
        assert rate.three_day_rate == pytest.approx(30.0)
        assert rate.seven_day_rate == 0.0
        assert rate.one_day_percentage == pytest.approx(200.0)
        assert rate.three_day_percentage == pytest.approx(150.0)
        assert rate.current_rate == pytest.approx(30.0)

    def test_seven_day_window(self) -> None:
        """Only the seven days before the latest are averaged."""
        rate = burn_rate([0.0, 0.0] + [70.0] * 7 + [999.0])
        assert rate.confidence == BurnRateConfidence.SEVEN_DAY
        assert rate.seven_day_rate == pytest.approx(70.0)
        assert rate.seven_day_percentage == 0.0

    @pytest.mark.parametrize(
        "daily, confidence",
        [
            ([], BurnRateConfidence.NO_DATA),
            ([500.0], BurnRateConfidence.NO_DATA),
            ([100.0, 999.0], BurnRateConfidence.ONE_DAY),
        ],
    )
    def test_short_series(self, daily: list[float], confidence: BurnRateConfidence) -> None:
        """One delivered day gives nothing to measure."""
        assert burn_rate(daily).confidence == confidence


class TestBurnRateScore:
    """Tests for burn_rate_score()."""

    @pytest.mark.parametrize(
        "seven_day, expected", [(10000.0, 10.0), (9000.0, 8.0), (11200.0, 8.0), (5000.0, 5.0)]
    )
    def test_bands(self, seven_day: float, expected: float) -> None:
        """Score by the ratio of the current rate to the required rate."""
        rate = BurnRate(0.0, 0.0, seven_day, BurnRateConfidence.SEVEN_DAY)
        assert burn_rate_score(rate, 10000.0) == expected

    def test_unscorable(self) -> None:
        """No requirement or no data scores 0."""
        rate = BurnRate(10000.0, 0.0, 0.0, BurnRateConfidence.ONE_DAY)
        assert burn_rate_score(rate, 0.0) == 0.0
        assert burn_rate_score(BurnRate(0.0, 0.0, 0.0, BurnRateConfidence.NO_DATA), 100.0) == 0.0


class TestSpendBurnRate:
    """Tests for spend_burn_rate()."""

    def test_seven_day_average(self) -> None:
        """Seven steady days give the seven-day average."""
        rate = spend_burn_rate([100.0] * 7, 700.0, 7)
        assert rate == SpendBurnRate(100.0, BurnRateConfidence.SEVEN_DAY)

    def test_anomalous_rate_uses_flight_average(self) -> None:
        """A three-day average more than 2x away from the average is replaced."""
        rate = spend_burn_rate([400.0, 400.0, 400.0], 300.0, 3)
        assert rate == SpendBurnRate(100.0, BurnRateConfidence.THREE_DAY)

    def test_rate_capped_at_twice_average(self) -> None:
        """A plausible but high rate is capped and flagged."""
        rate = spend_burn_rate([250.0, 250.0, 250.0], 300.0, 3)
        assert rate == SpendBurnRate(200.0, BurnRateConfidence.THREE_DAY, capped=True)

    def test_single_day_tolerance(self) -> None:
        """A single day is allowed up to 3x from the average before falling back."""
        assert spend_burn_rate([350.0], 100.0, 1).capped
        assert spend_burn_rate([500.0], 100.0, 1) == SpendBurnRate(100.0, BurnRateConfidence.ONE_DAY)

    def test_no_daily_rows(self) -> None:
        """Without daily rows the flight average is the only rate."""
        assert spend_burn_rate([], 500.0, 5) == SpendBurnRate(
            100.0, BurnRateConfidence.OVERALL_AVERAGE
        )
        assert spend_burn_rate([], 0.0, 0).confidence == BurnRateConfidence.NO_DATA


class TestOverspendScore:
    """Tests for overspend_score()."""

    @pytest.mark.parametrize(
        "spend, expected",
        [(1000.0, 10.0), (1100.0, 8.0), (1200.0, 6.0), (1450.0, 3.0), (2000.0, 0.0)],
    )
    def test_bands(self, spend: float, expected: float) -> None:
        """Projected overspend as a share of budget sets the base score."""
        rate = SpendBurnRate(100.0, BurnRateConfidence.SEVEN_DAY)
        assert overspend_score(spend, 3000.0, rate, 20) == expected

    @pytest.mark.parametrize(
        "confidence, capped, expected",
        [
            (BurnRateConfidence.THREE_DAY, False, 8.0),
            (BurnRateConfidence.ONE_DAY, False, 6.0),
            (BurnRateConfidence.OVERALL_AVERAGE, False, 9.0),
            (BurnRateConfidence.SEVEN_DAY, True, 7.0),
            (BurnRateConfidence.THREE_DAY, True, 5.6),
            (BurnRateConfidence.NO_DATA, False, 0.0),
        ],
    )
    def test_confidence_discount(
        self, confidence: BurnRateConfidence, capped: bool, expected: float
    ) -> None:
        """Less reliable rates scale the score down."""
        rate = SpendBurnRate(100.0, confidence, capped)
        assert overspend_score(1000.0, 3000.0, rate, 20) == pytest.approx(expected)

    def test_no_budget(self) -> None:
        """Without a budget there is nothing to overspend."""
        rate = SpendBurnRate(100.0, BurnRateConfidence.SEVEN_DAY)
        assert overspend_score(1000.0, 0.0, rate, 20) == 0.0


# =============================================================================
# CAMPAIGN HEALTH
# =============================================================================


class TestCampaignHealth:
    """Tests for campaign_health()."""

    def test_worked_example(self, delivery: pl.DataFrame) -> None:
        """Ten on-plan days measured as of 9/10 against a 300,000 goal."""
        health = campaign_health(ContractTerms.from_record(contract()), delivery)

        assert health.roas == pytest.approx(4.0)
        assert health.ctr == pytest.approx(0.6)
        assert health.roas_score == 10.0
        assert health.delivery_pacing_score == 6.0
        assert health.burn_rate_score == 10.0
        assert health.ctr_score == 10.0
        assert health.overspend_score == 10.0
        assert health.health_score == pytest.approx(8.8)

        assert health.expected_impressions == pytest.approx(90000.0)
        assert health.delivery_pacing == pytest.approx(111.1)
        assert health.completion_percentage == pytest.approx(30.0)
        assert health.required_daily_impressions == pytest.approx(10000.0)
        assert health.burn_rate_percentage == pytest.approx(100.0)
        assert health.days_left == 20
        assert health.projected_overspend == 0.0

    def test_overspend_projection(self, delivery: pl.DataFrame) -> None:
        """A smaller budget shows the projected overspend."""
        terms = ContractTerms.from_record({**contract(), "Budget": "$2,600"})
        health = campaign_health(terms, delivery)
        assert health.projected_overspend == pytest.approx(400.0)
        assert health.overspend_score == 3.0

    def test_no_delivery_scores_zero(self) -> None:
        """A contracted campaign with no delivery scores 0 everywhere."""
        terms = ContractTerms.from_record(contract())
        health = campaign_health(terms, make_frame([]), global_most_recent=date(2025, 9, 11))
        assert health.health_score == 0.0
        assert health.delivery_pacing_score == 0.0
        assert health.completion_percentage == pytest.approx(33.3)
        assert health.burn_rate.confidence == BurnRateConfidence.NO_DATA

    def test_to_dict(self, delivery: pl.DataFrame) -> None:
        """Nested burn rates serialize with plain confidence labels."""
        data = campaign_health(ContractTerms.from_record(contract()), delivery).to_dict()
        assert data["burn_rate"]["confidence"] == "7-day"
        assert data["spend_burn_rate"] == {
            "daily_rate": 100.0,
            "confidence": "7-day",
            "capped": False,
        }


class TestScoreCampaigns:
    """Tests for score_campaigns()."""

    def test_least_healthy_first(self, delivery: pl.DataFrame) -> None:
        """Campaigns are ordered by ascending health score."""
        batch = score_campaigns([contract(), contract(OTHER)], delivery)
        assert [h.campaign_name for h in batch.campaigns] == [OTHER, ACME]
        assert batch.campaigns[0].health_score == pytest.approx(1.8)

    def test_skips_invalid_terms(self, delivery: pl.DataFrame) -> None:
        """Unparsable contracts are reported, not raised."""
        broken = {**contract(OTHER), "Start Date": "someday"}
        batch = score_campaigns([contract(), broken], delivery)
        assert [h.campaign_name for h in batch.campaigns] == [ACME]
        assert [s.campaign_name for s in batch.skipped] == [OTHER]
