"""
Statistical forecasting engine for a study-progress dashboard.

PURPOSE:
    Turn a student's quiz and exam history into a smoothed trend, a pooled
    uncertainty and a Monte Carlo probability of reaching a target score.

RESPONSIBILITIES:
    - Seeded uniform/normal generators (LCG, mulberry32)
    - Shrunk SD, significance-gated trend and per-subject stats
    - Weighted and time-decay variance pooling
    - Regression and weighted-mean projections
    - Monte Carlo simulation and dashboard result shape
    - Multi-subject aggregation and readiness

SRP/DRY CHECK:
    Each submodule has a single responsibility:
    - random_source.py: Random number generation only
    - descriptive_stats.py: Single-series statistics only
    - variance.py: Variance pooling only
    - projection.py: Mean forecasting only
    - simulation.py: Monte Carlo draws and aggregation only
    - aggregation.py: Multi-subject orchestration only
    - outputs.py: Result shape and outlook only
"""

from .aggregation import WeightedAggregator, build_global_history, classify_readiness, forecast
from .descriptive_stats import calculate_trend, compute_category_stats, mean, standard_deviation
from .models import ForecastStatus, PooledEstimate, SubjectStats
from .outputs import ForecastSummary, OutputFormatter, SimulationResult
from .projection import ProjectionModel, calculate_slope, project_score
from .random_source import create_random, mulberry32, random_normal
from .records import ScoreRecord
from .simulation import MonteCarloSimulation, monte_carlo_simulation, run_monte_carlo_analysis
from .variance import compute_pooled_sd, compute_time_uncertainty, compute_weighted_variance

__version__ = "0.1.0"

__all__ = [
    "create_random",
    "mulberry32",
    "random_normal",
    "ScoreRecord",
    "SubjectStats",
    "PooledEstimate",
    "ForecastStatus",
    "mean",
    "standard_deviation",
    "calculate_trend",
    "compute_category_stats",
    "compute_weighted_variance",
    "compute_time_uncertainty",
    "compute_pooled_sd",
    "calculate_slope",
    "project_score",
    "ProjectionModel",
    "MonteCarloSimulation",
    "run_monte_carlo_analysis",
    "monte_carlo_simulation",
    "SimulationResult",
    "ForecastSummary",
    "OutputFormatter",
    "WeightedAggregator",
    "build_global_history",
    "classify_readiness",
    "forecast",
]
