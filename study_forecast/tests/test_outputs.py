"""
PURPOSE: Unit tests for outputs.py module.

Tests cover:
1. Dashboard dictionary shape (string display fields + numeric aliases)
2. Outlook thresholds (ON TRACK/AT RISK/OFF TRACK)
3. Narrative content
4. Error handling for invalid probabilities
"""

import pytest

from study_forecast.outputs import ForecastSummary, OutputFormatter, SimulationResult


def _result(probability=75.0, **overrides):
    fields = dict(
        probability=probability,
        mean=72.345,
        sd=6.78,
        ci95_low=59.06,
        ci95_high=85.63,
        current_mean=70.0,
        target=70.0,
        num_runs=2000,
        percentiles={10: 63.6, 50: 72.3, 90: 81.0},
        analytic_probability=74.2,
    )
    fields.update(overrides)
    return SimulationResult(**fields)


class TestSimulationResult:

    def test_to_dict_display_strings(self):
        data = _result().to_dict()
        assert data["mean"] == "72.3"
        assert data["sd"] == "6.8"
        assert data["ci95Low"] == "59.1"
        assert data["ci95High"] == "85.6"
        assert data["currentMean"] == "70.0"

    def test_to_dict_numeric_aliases(self):
        data = _result().to_dict()
        assert data["probability"] == 75.0
        assert data["projectedMean"] == pytest.approx(72.345)
        assert data["projectedSD"] == pytest.approx(6.78)
        assert data["percentiles"] == {"p10": 63.6, "p50": 72.3, "p90": 81.0}

    def test_history_fields_only_when_present(self):
        assert "drift" not in _result().to_dict()
        data = _result(drift=0.41234, volatility=3.2).to_dict()
        assert data["drift"] == "0.412"
        assert data["volatility"] == "3.200"

    def test_projected_properties(self):
        result = _result()
        assert result.projected_mean == result.mean
        assert result.projected_sd == result.sd

    def test_empty(self):
        empty = SimulationResult.empty(70)
        assert empty.probability == 0.0
        assert empty.target == 70
        assert empty.to_dict()["ci95High"] == "0.0"


class TestOutputFormatter:

    @pytest.mark.parametrize("probability, outlook", [
        (100.0, "ON TRACK"),
        (70.0, "ON TRACK"),
        (69.9, "AT RISK"),
        (40.0, "AT RISK"),
        (39.9, "OFF TRACK"),
        (0.0, "OFF TRACK"),
    ])
    def test_outlook_thresholds(self, probability, outlook):
        summary = OutputFormatter.format_result(_result(probability))
        assert isinstance(summary, ForecastSummary)
        assert summary.outlook == outlook

    def test_custom_thresholds(self):
        summary = OutputFormatter.format_result(_result(60.0), on_track=50.0, at_risk=20.0)
        assert summary.outlook == "ON TRACK"

    def test_narrative(self):
        summary = OutputFormatter.format_result(_result(75.0))
        assert "Probability of reaching 70.0: 75.0%" in summary.narrative
        assert "Outlook: ON TRACK" in summary.narrative

    def test_invalid_probability(self):
        with pytest.raises(ValueError):
            OutputFormatter.format_result(_result(750.0))
        with pytest.raises(ValueError):
            OutputFormatter.format_result(_result(-1.0))

    def test_summary_to_dict(self):
        data = OutputFormatter.format_result(_result(55.24)).to_dict()
        assert data["outlook"] == "AT RISK"
        assert data["probability"] == 55.2
