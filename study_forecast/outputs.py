"""
PURPOSE: Simulation result type and dashboard-facing formatting.

This module defines the single canonical SimulationResult (numeric fields) and
renders it into the dictionary shape the dashboard reads, including the
one-decimal string fields and the numeric projectedMean/projectedSD aliases.
It also turns a result into an ON TRACK / AT RISK / OFF TRACK outlook with a
short narrative.

SRP/DRY: Single responsibility = output shape and outlook logic.
         No simulation, no statistics.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from study_forecast.config import AT_RISK_THRESHOLD, ON_TRACK_THRESHOLD, ROUND_DISPLAY

__all__ = ["SimulationResult", "ForecastSummary", "OutputFormatter"]


def _fmt(value: float) -> str:
    return f"{value:.{ROUND_DISPLAY}f}"


@dataclass
class SimulationResult:
    """Outcome of one Monte Carlo run.

    Attributes:
        probability (float): Share of simulated scores reaching the target (0-100).
        mean (float): Empirical mean of the simulated scores.
        sd (float): Empirical (population) SD of the simulated scores.
        ci95_low (float): mean - 1.96 sd, clamped to [0, 100].
        ci95_high (float): mean + 1.96 sd, clamped to [0, 100].
        current_mean (float): Starting point of the simulation.
        target (float): Score the probability refers to.
        num_runs (int): Number of simulated outcomes.
        percentiles (dict): P10/P50/P90 of the simulated scores.
        analytic_probability (float): Normal-tail probability for comparison (0-100).
        drift (float, optional): Daily slope used by the history path.
        volatility (float, optional): Per-observation noise used by the history path.
    """
    probability: float
    mean: float
    sd: float
    ci95_low: float
    ci95_high: float
    current_mean: float
    target: float
    num_runs: int
    percentiles: Dict[int, float] = field(default_factory=dict)
    analytic_probability: float = 0.0
    drift: Optional[float] = None
    volatility: Optional[float] = None

    @property
    def projected_mean(self) -> float:
        return self.mean

    @property
    def projected_sd(self) -> float:
        return self.sd

    @classmethod
    def empty(cls, target: float = 0.0) -> "SimulationResult":
        """Zero result returned when there is not enough data to simulate."""
        return cls(
            probability=0.0,
            mean=0.0,
            sd=0.0,
            ci95_low=0.0,
            ci95_high=0.0,
            current_mean=0.0,
            target=target,
            num_runs=0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render the dashboard contract (camelCase keys)."""
        result = {
            "probability": self.probability,
            "mean": _fmt(self.mean),
            "sd": _fmt(self.sd),
            "ci95Low": _fmt(self.ci95_low),
            "ci95High": _fmt(self.ci95_high),
            "currentMean": _fmt(self.current_mean),
            "projectedMean": self.mean,
            "projectedSD": self.sd,
            "analyticProbability": self.analytic_probability,
            "percentiles": {f"p{k}": v for k, v in self.percentiles.items()},
            "simulations": self.num_runs,
        }
        if self.drift is not None:
            result["drift"] = f"{self.drift:.3f}"
        if self.volatility is not None:
            result["volatility"] = f"{self.volatility:.3f}"
        return result


@dataclass
class ForecastSummary:
    """Outlook label and narrative for one SimulationResult."""
    outlook: str
    narrative: str
    probability: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outlook": self.outlook,
            "narrative": self.narrative,
            "probability": round(self.probability, ROUND_DISPLAY),
        }


class OutputFormatter:
    """
    Turns SimulationResults into outlooks.

    Thresholds:
    - ON TRACK: probability >= 70%
    - AT RISK: 40% <= probability < 70%
    - OFF TRACK: probability < 40%
    """

    ON_TRACK_THRESHOLD = ON_TRACK_THRESHOLD
    AT_RISK_THRESHOLD = AT_RISK_THRESHOLD

    @staticmethod
    def format_result(
        result: SimulationResult,
        on_track: float = ON_TRACK_THRESHOLD,
        at_risk: float = AT_RISK_THRESHOLD,
    ) -> ForecastSummary:
        """
        Build the outlook for a result.

        Raises:
            ValueError: If the probability is outside [0, 100].
        """
        if not (0 <= result.probability <= 100):
            raise ValueError(f"probability must be in [0, 100], got {result.probability}")

        outlook = OutputFormatter._compute_outlook(result.probability, on_track, at_risk)
        return ForecastSummary(
            outlook=outlook,
            narrative=OutputFormatter._generate_narrative(result, outlook),
            probability=result.probability,
        )

    @staticmethod
    def _compute_outlook(probability: float, on_track: float, at_risk: float) -> str:
        if probability >= on_track:
            return "ON TRACK"
        elif probability >= at_risk:
            return "AT RISK"
        else:
            return "OFF TRACK"

    @staticmethod
    def _generate_narrative(result: SimulationResult, outlook: str) -> str:
        narrative = f"Probability of reaching {result.target:.1f}: {result.probability:.1f}%. "
        narrative += f"Projected score: {result.mean:.1f} (±{result.sd:.1f}). "
        narrative += f"95% range: {result.ci95_low:.1f} to {result.ci95_high:.1f}. "
        narrative += f"Outlook: {outlook}. "

        if outlook == "ON TRACK":
            narrative += "Keep the current study rhythm."
        elif outlook == "AT RISK":
            narrative += "Focus review time on the weakest subjects."
        else:  # OFF TRACK
            narrative += "The gap to the target is large; revisit the plan or the target date."

        return narrative
