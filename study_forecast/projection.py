"""
PURPOSE: Forecast a future mean score from score histories.

Two strategies share one confidence penalty, one horizon damping and one clamp:

- "regression": day-indexed OLS over a single time-stamped history, anchored
  on the latest score.
- "weighted": per-subject means combined by normalised weight, each nudged by
  its own damped adaptive slope.

CONSTRAINTS:
- Every function sorts its input by date; callers may pass any order
- Degenerate regressions (one point, one distinct timestamp) give a slope of exactly 0
- Projected scores are clamped to [0, 100]
"""

import logging
import math
from typing import Any, Iterable, Mapping, Optional

import numpy as np

from study_forecast.config import (
    DAMPING_DAYS,
    DEFAULT_PROJECTION_DAYS,
    DEFAULT_VOLATILITY,
    HISTORY_BOOST_BASE,
    HISTORY_BOOST_SAMPLES,
    MAX_DAILY_SLOPE,
    SCORE_MAX,
    SCORE_MIN,
    VOLATILITY_SCALE,
)
from study_forecast.models import RegressionFit
from study_forecast.records import coerce_score, sort_history
from study_forecast.variance import stat_field

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0

__all__ = [
    "clamp_score",
    "calculate_regression",
    "calculate_volatility",
    "calculate_confidence_factor",
    "calculate_adaptive_slope",
    "calculate_slope",
    "effective_days",
    "project_score",
    "calculate_current_weighted_mean",
    "calculate_weighted_projected_mean",
    "ProjectionModel",
]


def clamp_score(value: float) -> float:
    """Clamp a score to [0, 100]."""
    return float(min(SCORE_MAX, max(SCORE_MIN, value)))


def calculate_regression(history) -> RegressionFit:
    """
    Fit score = intercept + slope * day by ordinary least squares.

    x is the fractional number of days since the first record.

    Returns:
        RegressionFit; slope and std_error are 0 when the fit is undefined
    """
    records = sort_history(history)
    n = len(records)
    if n == 0:
        return RegressionFit(slope=0.0, intercept=0.0, std_error=0.0, n=0)

    y = np.array([r.score for r in records], dtype=float)
    if n < 2:
        return RegressionFit(slope=0.0, intercept=float(y[0]), std_error=0.0, n=n)

    first = records[0].date
    x = np.array([(r.date - first).total_seconds() / SECONDS_PER_DAY for r in records], dtype=float)

    denom = n * float(np.sum(x * x)) - float(np.sum(x)) ** 2
    if denom == 0:
        return RegressionFit(slope=0.0, intercept=float(np.mean(y)), std_error=0.0, n=n)

    slope = (n * float(np.sum(x * y)) - float(np.sum(x)) * float(np.sum(y))) / denom
    intercept = (float(np.sum(y)) - slope * float(np.sum(x))) / n

    std_error = 0.0
    if n > 2:
        residuals = y - (slope * x + intercept)
        std_error = math.sqrt(float(np.sum(residuals ** 2)) / (n - 2))

    return RegressionFit(slope=slope, intercept=intercept, std_error=std_error, n=n)


def calculate_volatility(history) -> float:
    """
    Step-to-step noise of a history.

    Population SD of successive score differences. A level shift counts as a
    single jump, so a student who moved from 50% to a steady 90% is not
    reported as erratic.

    Returns:
        Volatility in score points; DEFAULT_VOLATILITY for fewer than 2 points
    """
    records = sort_history(history)
    if len(records) < 2:
        return DEFAULT_VOLATILITY

    scores = np.array([r.score for r in records], dtype=float)
    diffs = np.diff(scores)
    return float(np.std(diffs))


def calculate_confidence_factor(n: int, volatility: float) -> float:
    """
    Multiplier in (0, 1] applied to regression slopes.

    Grows with the sample count, min(1, 0.9 + n/15), and shrinks with
    volatility, 1 / (1 + volatility/10).
    """
    history_factor = min(1.0, HISTORY_BOOST_BASE + n / HISTORY_BOOST_SAMPLES)
    consistency_factor = 1.0 / (1.0 + max(0.0, volatility) / VOLATILITY_SCALE)
    return history_factor * consistency_factor


def calculate_adaptive_slope(history) -> float:
    """
    Daily slope of a history, clamped and discounted by confidence.

    Returns:
        Points per day; exactly 0 for fewer than 2 points or a single distinct timestamp
    """
    records = sort_history(history)
    if len(records) < 2:
        return 0.0

    fit = calculate_regression(records)
    if fit.slope == 0:
        return 0.0

    clamped = max(-MAX_DAILY_SLOPE, min(MAX_DAILY_SLOPE, fit.slope))
    confidence = calculate_confidence_factor(len(records), calculate_volatility(records))
    return clamped * confidence


calculate_slope = calculate_adaptive_slope


def effective_days(days: float, damping: float = DAMPING_DAYS) -> float:
    """Logarithmically damped horizon: damping * log(1 + days / damping)."""
    days = coerce_score(days)
    if days <= 0:
        return 0.0
    return damping * math.log1p(days / damping)


def project_score(history, project_days: float = DEFAULT_PROJECTION_DAYS,
                  damping: float = DAMPING_DAYS) -> float:
    """
    Project the latest score `project_days` ahead along the adaptive slope.

    Returns:
        Projected score in [0, 100]; 0 for an empty history
    """
    records = sort_history(history)
    if not records:
        return 0.0

    slope = calculate_adaptive_slope(records)
    current = records[-1].score
    return clamp_score(current + slope * effective_days(project_days, damping))


def _stat_history(stat: Any) -> Optional[Iterable[Any]]:
    if isinstance(stat, Mapping):
        return stat.get("history")
    return getattr(stat, "history", None)


def calculate_current_weighted_mean(stats, total_weight) -> float:
    """Weighted mean of subject means (no projection); 0 when total_weight is 0."""
    total = coerce_score(total_weight)
    if total == 0:
        return 0.0
    return sum(
        stat_field(stat, "mean") * stat_field(stat, "weight") / total
        for stat in stats or []
    )


def calculate_weighted_projected_mean(stats, total_weight, project_days,
                                      damping: float = DAMPING_DAYS) -> float:
    """
    Weighted mean of subject means, each moved along its own damped slope.

    Subjects with fewer than 2 records keep their current mean. At 0 days the
    result equals calculate_current_weighted_mean.
    """
    total = coerce_score(total_weight)
    if total == 0:
        return 0.0

    horizon = effective_days(project_days, damping)
    result = 0.0
    for stat in stats or []:
        normalized_weight = stat_field(stat, "weight") / total
        subject_mean = stat_field(stat, "mean")
        history = _stat_history(stat)
        slope = calculate_adaptive_slope(history) if history is not None else 0.0
        projected = clamp_score(subject_mean + slope * horizon)
        result += projected * normalized_weight
    return result


class ProjectionModel:
    """
    Forecast a future mean with an explicitly selected strategy.

    Strategies:
    - "regression": `data` is one score history
    - "weighted": `data` is a list of SubjectStats (or mappings) and
      `total_weight` their weight sum (computed when omitted)
    """

    STRATEGIES = ("weighted", "regression")

    def __init__(self, strategy: str = "regression", damping_days: float = DAMPING_DAYS):
        if strategy not in self.STRATEGIES:
            raise ValueError(
                f"Unknown projection strategy: {strategy}. Must be 'weighted' or 'regression'"
            )
        self.strategy = strategy
        self.damping_days = damping_days

    def project(self, data, project_days: float = DEFAULT_PROJECTION_DAYS,
                total_weight: Optional[float] = None) -> float:
        if self.strategy == "regression":
            return project_score(data, project_days, damping=self.damping_days)

        stats = list(data or [])
        if total_weight is None:
            total_weight = sum(stat_field(stat, "weight") for stat in stats)
        projected = calculate_weighted_projected_mean(
            stats, total_weight, project_days, damping=self.damping_days
        )
        logger.debug(
            "Weighted projection over %d subjects, %s days: %.2f",
            len(stats), project_days, projected,
        )
        return projected

    def current(self, data, total_weight: Optional[float] = None) -> float:
        """Estimate for today (0-day horizon)."""
        return self.project(data, 0, total_weight=total_weight)

    def __repr__(self) -> str:
        return f"ProjectionModel(strategy={self.strategy!r}, damping_days={self.damping_days})"
