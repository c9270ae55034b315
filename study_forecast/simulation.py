"""
PURPOSE: Monte Carlo estimate of the probability of reaching a target score.

Draws N independent outcomes from a normal distribution around a projected
mean, clamps them to the score scale, and reports the empirical success rate,
the empirical mean/SD of the outcomes and a 95% interval.

SINGLE RESPONSIBILITY:
- Sanitise simulation inputs (never raise on bad numbers)
- Execute N seeded draws and aggregate them
- Bridge score histories to the regression projection before simulating

CONSTRAINTS:
- Each run builds its own RandomSource; same seed gives identical results
- Does NOT format results for display (see outputs.py)
"""

import logging
import math
from collections.abc import Mapping
from datetime import date, timedelta
from typing import Any, Optional

import numpy as np
from scipy.stats import norm

from study_forecast.config import (
    CI95_Z,
    DEFAULT_GENERATOR,
    DEFAULT_SD,
    DEFAULT_SIMULATION_DAYS,
    DEFAULT_TARGET,
    MIN_RUNS,
    MIN_SD,
    NUM_RUNS,
    PERCENTILES,
    RANDOM_SEED,
    SCORE_MAX,
    SCORE_MIN,
)
from study_forecast.outputs import SimulationResult
from study_forecast.projection import (
    calculate_adaptive_slope,
    calculate_volatility,
    project_score,
)
from study_forecast.random_source import GENERATORS, make_random_source, random_normal
from study_forecast.records import coerce_score, sort_history
from study_forecast.variance import compute_time_uncertainty

logger = logging.getLogger(__name__)

__all__ = [
    "MonteCarloSimulation",
    "run_monte_carlo_analysis",
    "monte_carlo_simulation",
]

_NAN = float("nan")


def _finite(value: Any, default: float, label: str) -> float:
    number = coerce_score(value, default=_NAN)
    if math.isnan(number):
        logger.debug("Invalid %s %r; using %s", label, value, default)
        return default
    return number


def _sanitize_runs(num_runs: Any) -> int:
    runs = _finite(num_runs, NUM_RUNS, "simulation count")
    return max(MIN_RUNS, int(runs))


def _sanitize_seed(seed: Any) -> int:
    return int(_finite(seed, RANDOM_SEED, "seed"))


class MonteCarloSimulation:
    """
    Monte Carlo simulator for a normally distributed future score.

    Each of the N runs draws mean + Z * sd with Z ~ N(0, 1) from a seeded
    generator, clamps the draw to [0, 100] and counts it as a success when it
    reaches the target.
    """

    def __init__(self, num_runs=NUM_RUNS, random_seed=RANDOM_SEED, generator=DEFAULT_GENERATOR):
        """
        Initialize simulation engine.

        Args:
            num_runs: Number of simulated outcomes (default 2000, floored at 1)
            random_seed: Seed for the generator (default 42)
            generator: "lcg" or "mulberry32"

        Raises:
            ValueError: If the generator name is unknown
        """
        if generator not in GENERATORS:
            raise ValueError(
                f"Unknown generator: {generator}. Must be one of {sorted(GENERATORS)}"
            )
        self.num_runs = _sanitize_runs(num_runs)
        self.random_seed = _sanitize_seed(random_seed)
        self.generator = generator

    def run(self, mean, sd, target, current_mean: Optional[float] = None) -> SimulationResult:
        """
        Execute the simulation.

        Args:
            mean: Projected mean score
            sd: Standard deviation of the projected score (floored at 0.1)
            target: Score to reach
            current_mean: Reported starting point (defaults to `mean`)

        Returns:
            SimulationResult with probability on the 0-100 scale
        """
        mean = _finite(mean, 0.0, "mean")
        sd = max(MIN_SD, _finite(sd, DEFAULT_SD, "sd"))
        target = _finite(target, DEFAULT_TARGET, "target")

        rng = make_random_source(self.random_seed, self.generator)
        samples = np.empty(self.num_runs)
        for run_idx in range(self.num_runs):
            samples[run_idx] = mean + random_normal(rng) * sd
        samples = np.clip(samples, SCORE_MIN, SCORE_MAX)

        success_count = int(np.sum(samples >= target))
        probability = success_count / self.num_runs * 100

        sim_mean = float(np.mean(samples))
        sim_sd = float(np.std(samples))
        ci95_low = max(SCORE_MIN, sim_mean - CI95_Z * sim_sd)
        ci95_high = min(SCORE_MAX, sim_mean + CI95_Z * sim_sd)

        percentiles = {p: float(np.percentile(samples, p)) for p in PERCENTILES}
        analytic_probability = float(norm.sf(target, loc=mean, scale=sd)) * 100

        logger.debug(
            "Simulated %d runs (seed=%s, %s): mean=%.2f sd=%.2f target=%.1f -> %.1f%%",
            self.num_runs, self.random_seed, self.generator, mean, sd, target, probability,
        )

        return SimulationResult(
            probability=probability,
            mean=sim_mean,
            sd=sim_sd,
            ci95_low=ci95_low,
            ci95_high=ci95_high,
            current_mean=mean if current_mean is None else _finite(current_mean, mean, "current mean"),
            target=target,
            num_runs=self.num_runs,
            percentiles=percentiles,
            analytic_probability=analytic_probability,
        )


def monte_carlo_simulation(history, target, project_days=DEFAULT_SIMULATION_DAYS,
                           simulations=NUM_RUNS, seed=RANDOM_SEED,
                           generator=DEFAULT_GENERATOR) -> SimulationResult:
    """
    Simulate from a single score history (regression path).

    The mean is the regression projection of the latest score; the SD combines
    the history's volatility with the time uncertainty of the horizon.

    Args:
        history: Score records in any order
        target: Score to reach
        project_days: Forecast horizon in days
        simulations: Number of runs
        seed: Generator seed
        generator: "lcg" or "mulberry32"

    Returns:
        SimulationResult carrying `drift` and `volatility`; a zero result for
        an empty history
    """
    records = sort_history(history)
    if not records:
        return SimulationResult.empty(_finite(target, DEFAULT_TARGET, "target"))

    projected = project_score(records, project_days)
    drift = calculate_adaptive_slope(records)
    volatility = calculate_volatility(records)
    time_uncertainty = compute_time_uncertainty(project_days)
    sd = math.sqrt(volatility ** 2 + time_uncertainty ** 2)

    simulator = MonteCarloSimulation(num_runs=simulations, random_seed=seed, generator=generator)
    result = simulator.run(projected, sd, target, current_mean=records[-1].score)
    result.drift = drift
    result.volatility = volatility
    return result


def _history_from_values(values, dates):
    if dates is not None and len(dates) == len(values):
        return [{"date": d, "score": v} for d, v in zip(dates, values)]

    # No usable dates: one result per day, ending today
    today = date.today()
    n = len(values)
    return [
        {"date": today - timedelta(days=n - 1 - idx), "score": v}
        for idx, v in enumerate(values)
    ]


def _run_from_request(request: Mapping) -> SimulationResult:
    values = request.get("values")
    values = [] if values is None else list(values)
    target = _finite(request.get("meta"), DEFAULT_TARGET, "target")
    if len(values) < 2:
        return SimulationResult.empty(target)

    history = _history_from_values(values, request.get("dates"))
    return monte_carlo_simulation(
        history,
        target,
        project_days=request.get("projectionDays", DEFAULT_SIMULATION_DAYS),
        simulations=request.get("simulations", NUM_RUNS),
        seed=request.get("seed", RANDOM_SEED),
        generator=request.get("generator", DEFAULT_GENERATOR),
    )


def run_monte_carlo_analysis(mean_or_request=None, sd=None, target=None, options=None) -> SimulationResult:
    """
    Run a simulation from either call form.

    - run_monte_carlo_analysis(mean, sd, target, {"seed", "simulations",
      "currentMean", "generator"}) samples directly around `mean`
      (or `currentMean` when given).
    - run_monte_carlo_analysis({"values", "dates", "meta", "simulations",
      "projectionDays", "seed"}) rebuilds the history and takes the
      regression path.
    """
    if isinstance(mean_or_request, Mapping) and "values" in mean_or_request:
        return _run_from_request(mean_or_request)

    options = options or {}
    center = options.get("currentMean")
    if center is None:
        center = mean_or_request

    simulator = MonteCarloSimulation(
        num_runs=options.get("simulations", NUM_RUNS),
        random_seed=options.get("seed", RANDOM_SEED),
        generator=options.get("generator", DEFAULT_GENERATOR),
    )
    return simulator.run(center, sd, target)
