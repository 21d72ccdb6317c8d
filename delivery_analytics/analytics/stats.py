"""Small numeric helpers over ordered daily series (numpy / scipy)."""

from collections.abc import Sequence

import numpy as np
from scipy import stats

from .models import TrendDirection

# Fewer observed days than this never count as a trend
MIN_TREND_DAYS = 3


def detect_trend(
    daily_spend: Sequence[float] | np.ndarray,
    max_p_value: float = 0.05,
    min_correlation: float = 0.3,
) -> TrendDirection:
    """Direction of a month-to-date daily spend series.

    Fits spend against day index; the series is trending only when the slope
    is significant (p below ``max_p_value``) and spend correlates with time
    at least ``min_correlation``. Short or flat series are "stable".
    """
    spend = np.asarray(daily_spend, dtype=float)
    if spend.size < MIN_TREND_DAYS or np.ptp(spend) == 0:
        return "stable"

    fit = stats.linregress(np.arange(spend.size), spend)
    if fit.pvalue >= max_p_value or abs(fit.rvalue) <= min_correlation:
        return "stable"
    return "increasing" if fit.slope > 0 else "decreasing"


def trailing_mean(values: Sequence[float], window: int) -> float:
    """Mean of the last ``window`` values; 0 when fewer are available."""
    if window <= 0 or len(values) < window:
        return 0.0
    return float(np.mean(values[-window:]))
