"""
PURPOSE: Pooled uncertainty for the global forecast.

RESPONSIBILITIES:
- Variance of a weighted sum of independent subject scores
- Sublinear time-decay uncertainty over the forecast horizon
- Pooled SD combining both, plus an audit breakdown

Var(sum w_i X_i) = sum w_i^2 Var(X_i) for independent X_i, with w_i the
normalised subject weights. The time term only ever adds variance.
"""

import math
from typing import Any, Iterable, Mapping

from study_forecast.config import TIME_UNCERTAINTY_FACTOR
from study_forecast.models import VarianceBreakdown
from study_forecast.records import coerce_score

__all__ = [
    "stat_field",
    "compute_weighted_variance",
    "compute_time_uncertainty",
    "compute_pooled_sd",
    "get_variance_breakdown",
]


def stat_field(stat: Any, name: str, default: float = 0.0) -> float:
    """Read a numeric field from a SubjectStats-like object or a plain mapping."""
    if isinstance(stat, Mapping):
        value = stat.get(name, default)
    else:
        value = getattr(stat, name, default)
    return coerce_score(value, default=default)


def compute_weighted_variance(stats: Iterable[Any], total_weight: float) -> float:
    """
    Variance of the weighted global score.

    Args:
        stats: Items exposing `sd` and `weight`
        total_weight: Sum of all weights

    Returns:
        sum((weight / total_weight)^2 * sd^2), or 0 if total_weight is 0
    """
    total = coerce_score(total_weight)
    if total == 0:
        return 0.0

    variance = 0.0
    for stat in stats or []:
        w = stat_field(stat, "weight") / total
        sd = stat_field(stat, "sd")
        variance += w * w * sd * sd
    return variance


def compute_time_uncertainty(days: float) -> float:
    """Time-decay SD: sqrt(days) * 0.5; 0 for a non-positive horizon."""
    days = coerce_score(days)
    if days <= 0:
        return 0.0
    return math.sqrt(days) * TIME_UNCERTAINTY_FACTOR


def compute_pooled_sd(stats: Iterable[Any], total_weight: float, days: float) -> float:
    """sqrt(weighted variance + time uncertainty^2)."""
    weighted_variance = compute_weighted_variance(stats, total_weight)
    time_uncertainty = compute_time_uncertainty(days)
    return math.sqrt(weighted_variance + time_uncertainty * time_uncertainty)


def get_variance_breakdown(stats, total_weight, days) -> VarianceBreakdown:
    """Itemise the pooled SD for debugging and audit display."""
    stats = list(stats or [])
    weighted_variance = compute_weighted_variance(stats, total_weight)
    time_uncertainty = compute_time_uncertainty(days)
    time_variance = time_uncertainty * time_uncertainty
    pooled_variance = weighted_variance + time_variance
    return VarianceBreakdown(
        weighted_variance=weighted_variance,
        time_uncertainty=time_uncertainty,
        time_variance=time_variance,
        pooled_variance=pooled_variance,
        pooled_sd=math.sqrt(pooled_variance),
    )
