"""
PURPOSE: Descriptive statistics for a single subject's score series.

RESPONSIBILITIES:
- Mean and Bayesian-shrunk standard deviation
- Significance-gated OLS trend over the most recent scores
- Exponential moving average
- Optional 2-SD outlier filter for the mean/SD estimate
- Per-subject SubjectStats orchestration (sorting, floors, trend labels)

Small samples are the normal case here (a handful of mock exams), so every
statistic degrades to a usable value instead of raising.
"""

import math
from typing import Any, Iterable, Optional

import numpy as np

from study_forecast.config import (
    EMA_ALPHA,
    OUTLIER_MIN_SCORES,
    OUTLIER_THRESHOLD,
    POPULATION_SD,
    PRIOR_STRENGTH,
    SD_FLOOR_RATIO,
    T_CRITICAL_95,
    T_CRITICAL_DEFAULT,
    TREND_DEADZONE,
    TREND_MIN_SCORES,
    TREND_SCALE,
    TREND_WINDOW,
)
from study_forecast.models import SubjectStats
from study_forecast.records import coerce_score, sort_history

__all__ = [
    "mean",
    "standard_deviation",
    "calculate_trend",
    "calculate_ema",
    "classify_trend",
    "filter_outliers",
    "compute_category_stats",
]


def _as_array(values: Optional[Iterable[Any]]) -> np.ndarray:
    if values is None:
        return np.zeros(0)
    return np.array([coerce_score(v) for v in values], dtype=float)


def mean(values) -> float:
    """Arithmetic mean; 0 for empty input."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.mean(arr))


def standard_deviation(values) -> float:
    """
    Sample standard deviation shrunk toward a population prior.

    The Bessel-corrected sample variance is blended with PRIOR_STRENGTH phantom
    exams at POPULATION_SD:

        adjusted = ((n-1) * s^2 + k * pop_sd^2) / ((n-1) + k)

    Args:
        values: Scores (numbers or numeric strings)

    Returns:
        sqrt(adjusted), or 0 for fewer than 2 values
    """
    arr = _as_array(values)
    n = arr.size
    if n < 2:
        return 0.0
    sample_variance = float(np.var(arr, ddof=1))
    dof = n - 1
    adjusted = (dof * sample_variance + PRIOR_STRENGTH * POPULATION_SD ** 2) / (dof + PRIOR_STRENGTH)
    return math.sqrt(adjusted)


def _critical_value(dof: int) -> float:
    return T_CRITICAL_95.get(dof, T_CRITICAL_DEFAULT)


def calculate_trend(scores) -> float:
    """
    Slope of the last TREND_WINDOW scores, in points per 10 exams.

    The OLS slope (score vs. index) is kept only if its t-statistic clears the
    95% Student's t critical value for n-2 degrees of freedom; otherwise the
    series is treated as flat.

    Returns:
        Rescaled slope, or 0 for fewer than TREND_MIN_SCORES scores
    """
    arr = _as_array(scores)[-TREND_WINDOW:]
    n = arr.size
    if n < TREND_MIN_SCORES:
        return 0.0

    x = np.arange(n, dtype=float)
    x_mean = x.mean()
    y_mean = arr.mean()
    sxx = float(np.sum((x - x_mean) ** 2))
    if sxx == 0:
        return 0.0

    slope = float(np.sum((x - x_mean) * (arr - y_mean)) / sxx)
    intercept = y_mean - slope * x_mean
    residuals = arr - (intercept + slope * x)
    dof = n - 2
    residual_variance = float(np.sum(residuals ** 2)) / dof
    std_error = math.sqrt(residual_variance / sxx)

    if std_error == 0:
        # Perfect fit: any non-zero slope is real
        return slope * TREND_SCALE

    t_stat = slope / std_error
    if abs(t_stat) < _critical_value(dof):
        return 0.0
    return slope * TREND_SCALE


def calculate_ema(scores, alpha: float = EMA_ALPHA) -> float:
    """Exponential moving average of chronologically ordered scores; 0 for empty input."""
    arr = _as_array(scores)
    if arr.size == 0:
        return 0.0
    ema = arr[0]
    for score in arr[1:]:
        ema = alpha * score + (1 - alpha) * ema
    return float(ema)


def classify_trend(trend_value: float) -> str:
    """Label a rescaled slope as up/down/stable with a +/-TREND_DEADZONE deadzone."""
    if trend_value > TREND_DEADZONE:
        return "up"
    if trend_value < -TREND_DEADZONE:
        return "down"
    return "stable"


def filter_outliers(scores, threshold: float = OUTLIER_THRESHOLD) -> list:
    """
    Drop scores more than `threshold` sample SDs from the mean.

    Samples smaller than OUTLIER_MIN_SCORES and constant samples are returned
    unchanged.
    """
    arr = _as_array(scores)
    if arr.size < OUTLIER_MIN_SCORES:
        return arr.tolist()

    sample_mean = float(np.mean(arr))
    sample_sd = float(np.std(arr, ddof=1))
    if sample_sd == 0:
        return arr.tolist()

    z_scores = np.abs((arr - sample_mean) / sample_sd)
    return arr[z_scores <= threshold].tolist()


def compute_category_stats(history, weight, exclude_outliers: bool = False) -> Optional[SubjectStats]:
    """
    Compute SubjectStats for one subject.

    Args:
        history: Iterable of score records (mappings, objects or ScoreRecords),
            in any order
        weight: Subject weight in the global aggregate
        exclude_outliers: Estimate mean and SD from filter_outliers(scores);
            trend and EMA still use every score

    Returns:
        SubjectStats, or None for an empty history
    """
    records = sort_history(history)
    if not records:
        return None

    scores = [r.score for r in records]
    estimate_scores = filter_outliers(scores) if exclude_outliers else scores
    subject_mean = mean(estimate_scores)
    sd = standard_deviation(estimate_scores)
    sd = max(sd, subject_mean * SD_FLOOR_RATIO)
    trend_value = calculate_trend(scores)

    return SubjectStats(
        mean=subject_mean,
        sd=sd,
        n=len(scores),
        weight=coerce_score(weight),
        trend=classify_trend(trend_value),
        trend_value=trend_value,
        ema=calculate_ema(scores),
        history=tuple(records),
    )
