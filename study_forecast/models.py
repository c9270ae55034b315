"""
Derived value types shared by the forecast modules.

None of these are persisted; they are recomputed from score histories on demand.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from study_forecast.config import ROUND_BREAKDOWN
from study_forecast.records import ScoreRecord


@dataclass
class SubjectStats:
    """Statistics of one subject's score history.

    Attributes:
        mean (float): Mean score.
        sd (float): Shrunk standard deviation with the proportional floor applied.
        n (int): Number of scores.
        weight (float): Subject weight in the global aggregate.
        trend (str): "up", "down" or "stable".
        trend_value (float): Significance-gated slope in points per 10 exams.
        ema (float): Exponential moving average of the scores.
        history (tuple): Date-sorted ScoreRecords the stats were computed from.
    """
    mean: float
    sd: float
    n: int
    weight: float
    trend: str
    trend_value: float
    ema: float = 0.0
    history: Tuple[ScoreRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary consumed by the dashboard."""
        return {
            "mean": self.mean,
            "sd": self.sd,
            "n": self.n,
            "weight": self.weight,
            "trend": self.trend,
            "trendValue": self.trend_value,
            "ema": self.ema,
        }


@dataclass
class PooledEstimate:
    """Global weighted mean and pooled SD fed into the simulator."""
    weighted_mean: float
    pooled_sd: float
    total_weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weightedMean": self.weighted_mean,
            "pooledSD": self.pooled_sd,
            "totalWeight": self.total_weight,
        }


@dataclass
class RegressionFit:
    """Ordinary least squares fit of score against days since the first record."""
    slope: float
    intercept: float
    std_error: float
    n: int


@dataclass
class VarianceBreakdown:
    """Audit view of the pooled SD components."""
    weighted_variance: float
    time_uncertainty: float
    time_variance: float
    pooled_variance: float
    pooled_sd: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "weightedVariance": round(self.weighted_variance, ROUND_BREAKDOWN),
            "timeUncertainty": round(self.time_uncertainty, ROUND_BREAKDOWN),
            "timeVariance": round(self.time_variance, ROUND_BREAKDOWN),
            "pooledVariance": round(self.pooled_variance, ROUND_BREAKDOWN),
            "pooledSD": round(self.pooled_sd, ROUND_BREAKDOWN),
        }


@dataclass
class ForecastStatus:
    """Whether enough data exists to forecast.

    Attributes:
        status (str): "waiting" or "ready".
        missing (str, optional): "count" or "days" while waiting.
        needed (int): How many more points or days are required.
    """
    status: str
    missing: Optional[str] = None
    needed: int = 0

    @property
    def is_ready(self) -> bool:
        return self.status == "ready"

    def to_dict(self) -> Dict[str, Any]:
        result = {"status": self.status}
        if self.missing is not None:
            result["missing"] = self.missing
            result["needed"] = self.needed
        return result
