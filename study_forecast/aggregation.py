"""
PURPOSE: Combine several subjects into one forecast.

RESPONSIBILITIES:
- Per-subject SubjectStats for the weighted subjects
- Global history: running weighted average of each subject's latest score
- Pooled estimate (weighted mean + pooled SD) for the simulator
- Readiness classification: waiting(count) -> waiting(days) -> ready
- Top-level forecast orchestration

Readiness is recomputed from the data on every call; nothing is remembered
between calls.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from study_forecast.config import (
    DEFAULT_GENERATOR,
    DEFAULT_SIMULATION_DAYS,
    MIN_DISTINCT_DATES,
    MIN_TOTAL_POINTS,
    NUM_RUNS,
    RANDOM_SEED,
)
from study_forecast.descriptive_stats import compute_category_stats
from study_forecast.models import ForecastStatus, PooledEstimate, SubjectStats
from study_forecast.outputs import SimulationResult
from study_forecast.projection import ProjectionModel, calculate_current_weighted_mean
from study_forecast.records import ScoreRecord, coerce_score, normalize_history
from study_forecast.simulation import MonteCarloSimulation, monte_carlo_simulation
from study_forecast.variance import compute_pooled_sd

logger = logging.getLogger(__name__)

__all__ = [
    "ForecastReport",
    "WeightedAggregator",
    "build_global_history",
    "pooled_estimate",
    "classify_readiness",
    "forecast",
]

SubjectHistories = Mapping[str, Iterable[Any]]


def _weight_for(subject: str, weights: Optional[Mapping[str, Any]]) -> float:
    if not weights or subject not in weights:
        return 1.0
    return coerce_score(weights[subject])


def build_global_history(subject_histories: SubjectHistories,
                         weights: Optional[Mapping[str, Any]] = None) -> List[ScoreRecord]:
    """
    Build one day-indexed history from several subjects.

    Records of all subjects are replayed in date order. After each record the
    weighted average of every subject's most recent score is taken; the last
    value computed on a calendar day is that day's global score. Subjects with
    a weight <= 0 are left out; missing weights count as 1.

    Returns:
        Date-sorted ScoreRecords, one per calendar day with any result
    """
    points = []
    for subject, history in (subject_histories or {}).items():
        weight = _weight_for(subject, weights)
        if weight <= 0:
            continue
        for record in normalize_history(history):
            points.append((record, subject, weight))
    points.sort(key=lambda point: point[0].date)

    latest = {}
    by_day = {}
    for record, subject, weight in points:
        latest[subject] = (record.score, weight)
        total_weight = sum(w for _, w in latest.values())
        by_day[record.day] = sum(score * w for score, w in latest.values()) / total_weight

    return [ScoreRecord(date=day, score=score) for day, score in by_day.items()]


def classify_readiness(total_points: int, distinct_dates: int) -> ForecastStatus:
    """Classify whether enough data exists to run a forecast."""
    if total_points < MIN_TOTAL_POINTS:
        return ForecastStatus(status="waiting", missing="count",
                              needed=MIN_TOTAL_POINTS - total_points)
    if distinct_dates < MIN_DISTINCT_DATES:
        return ForecastStatus(status="waiting", missing="days",
                              needed=MIN_DISTINCT_DATES - distinct_dates)
    return ForecastStatus(status="ready")


def pooled_estimate(stats: List[SubjectStats], project_days=DEFAULT_SIMULATION_DAYS,
                    strategy: str = "weighted") -> PooledEstimate:
    """
    Combine subject statistics into the simulator input.

    With strategy "weighted" each subject's mean is nudged along its damped
    slope; with "regression" each subject's latest score is projected instead.
    Either way the SD is the pooled SD over subjects plus time uncertainty.
    """
    stats = list(stats or [])
    total_weight = sum(s.weight for s in stats)
    if total_weight == 0:
        return PooledEstimate(weighted_mean=0.0, pooled_sd=0.0, total_weight=0.0)

    model = ProjectionModel(strategy=strategy)
    if strategy == "weighted":
        weighted_mean = model.project(stats, project_days, total_weight=total_weight)
    else:
        weighted_mean = sum(
            model.project(s.history, project_days) * s.weight / total_weight for s in stats
        )

    return PooledEstimate(
        weighted_mean=weighted_mean,
        pooled_sd=compute_pooled_sd(stats, total_weight, project_days),
        total_weight=total_weight,
    )


@dataclass
class ForecastReport:
    """Everything the dashboard gauge needs for one forecast request.

    Attributes:
        status (ForecastStatus): waiting/ready classification.
        subjects (dict): SubjectStats per weighted subject.
        pooled (PooledEstimate, optional): Simulator input (ready only).
        result (SimulationResult, optional): Simulation outcome (ready only).
    """
    status: ForecastStatus
    subjects: Dict[str, SubjectStats] = field(default_factory=dict)
    pooled: Optional[PooledEstimate] = None
    result: Optional[SimulationResult] = None

    def to_dict(self) -> Dict[str, Any]:
        report = self.status.to_dict()
        report["subjects"] = {name: s.to_dict() for name, s in self.subjects.items()}
        if self.pooled is not None:
            report["pooled"] = self.pooled.to_dict()
        if self.result is not None:
            report["result"] = self.result.to_dict()
        return report


class WeightedAggregator:
    """
    Multi-subject forecaster.

    strategy "weighted" simulates around the pooled estimate of the subjects;
    strategy "regression" simulates from the global history.
    """

    def __init__(self, weights: Optional[Mapping[str, Any]] = None,
                 project_days=DEFAULT_SIMULATION_DAYS, simulations=NUM_RUNS,
                 seed=RANDOM_SEED, strategy: str = "weighted",
                 generator: str = DEFAULT_GENERATOR):
        if strategy not in ProjectionModel.STRATEGIES:
            raise ValueError(
                f"Unknown projection strategy: {strategy}. Must be 'weighted' or 'regression'"
            )
        self.weights = dict(weights or {})
        self.project_days = project_days
        self.simulations = simulations
        self.seed = seed
        self.strategy = strategy
        self.generator = generator

    def _included(self, subject_histories: SubjectHistories):
        for subject, history in (subject_histories or {}).items():
            weight = _weight_for(subject, self.weights)
            if weight > 0:
                yield subject, history, weight

    def subject_stats(self, subject_histories: SubjectHistories) -> Dict[str, SubjectStats]:
        """SubjectStats for every weighted subject that has at least one record."""
        stats = {}
        for subject, history, weight in self._included(subject_histories):
            subject_stats = compute_category_stats(history, weight)
            if subject_stats is not None:
                stats[subject] = subject_stats
        return stats

    def readiness(self, subject_histories: SubjectHistories) -> ForecastStatus:
        """Classify the weighted subjects' data as waiting or ready."""
        total_points = 0
        days = set()
        for _, history, _ in self._included(subject_histories):
            records = normalize_history(history)
            total_points += len(records)
            days.update(r.day for r in records)
        return classify_readiness(total_points, len(days))

    def pooled(self, stats: Iterable[SubjectStats]) -> PooledEstimate:
        return pooled_estimate(list(stats), self.project_days, strategy=self.strategy)

    def forecast(self, subject_histories: SubjectHistories, target) -> ForecastReport:
        """
        Run the full forecast.

        Returns:
            ForecastReport; `result` is None while the status is waiting
        """
        stats = self.subject_stats(subject_histories)
        status = self.readiness(subject_histories)
        if not status.is_ready:
            logger.debug("Forecast waiting: missing %s (%d more)", status.missing, status.needed)
            return ForecastReport(status=status, subjects=stats)

        pooled = self.pooled(stats.values())
        if self.strategy == "weighted":
            simulator = MonteCarloSimulation(
                num_runs=self.simulations, random_seed=self.seed, generator=self.generator
            )
            current = calculate_current_weighted_mean(list(stats.values()), pooled.total_weight)
            result = simulator.run(pooled.weighted_mean, pooled.pooled_sd, target,
                                   current_mean=current)
        else:
            global_history = build_global_history(subject_histories, self.weights)
            result = monte_carlo_simulation(
                global_history, target, project_days=self.project_days,
                simulations=self.simulations, seed=self.seed, generator=self.generator,
            )

        return ForecastReport(status=status, subjects=stats, pooled=pooled, result=result)

    def forecast_subjects(self, subject_histories: SubjectHistories, target) -> Dict[str, SimulationResult]:
        """Independent per-subject simulations, each with its own generator."""
        return {
            subject: monte_carlo_simulation(
                history, target, project_days=self.project_days,
                simulations=self.simulations, seed=self.seed, generator=self.generator,
            )
            for subject, history, _ in self._included(subject_histories)
        }


def forecast(subject_histories: SubjectHistories, target, weights=None,
             project_days=DEFAULT_SIMULATION_DAYS, simulations=NUM_RUNS,
             seed=RANDOM_SEED, strategy: str = "weighted") -> ForecastReport:
    """Functional wrapper around WeightedAggregator.forecast."""
    aggregator = WeightedAggregator(
        weights=weights, project_days=project_days, simulations=simulations,
        seed=seed, strategy=strategy,
    )
    return aggregator.forecast(subject_histories, target)
