"""
PURPOSE: Engine constants and threshold parameters for the study forecast engine.

RESPONSIBILITIES:
- Define simulation hyperparameters (number of runs, seed, generator)
- Shrinkage prior and trend-significance parameters for descriptive stats
- Projection damping and slope limits
- Readiness and outlook thresholds
- Single responsibility: configuration only, no statistics
"""

# Simulation Parameters
NUM_RUNS = 2000  # Default Monte Carlo sample size
RANDOM_SEED = 42  # Default seed; results are reproducible per seed
DEFAULT_GENERATOR = "lcg"  # "lcg" or "mulberry32"

# Fallbacks for invalid simulation inputs
DEFAULT_SD = 5.0
MIN_SD = 0.1
DEFAULT_TARGET = 70.0
MIN_RUNS = 1

# Score scale
SCORE_MIN = 0.0
SCORE_MAX = 100.0

# Bayesian shrinkage of the sample SD
# Three phantom exams at population-typical volatility of 12 points
POPULATION_SD = 12.0
PRIOR_STRENGTH = 3.0

# SD floor as a fraction of the mean
SD_FLOOR_RATIO = 0.02

# Trend detection
TREND_WINDOW = 10  # Only the last N scores enter the trend fit
TREND_MIN_SCORES = 3
TREND_SCALE = 10.0  # Slope reported as points per 10 exams
TREND_DEADZONE = 0.5
EMA_ALPHA = 0.3
OUTLIER_THRESHOLD = 2.0  # |z| above this is dropped from the mean/SD estimate
OUTLIER_MIN_SCORES = 5  # Smaller samples are never filtered

# Student's t two-sided 95% critical values keyed by degrees of freedom
T_CRITICAL_95 = {
    1: 12.71,
    2: 4.30,
    3: 3.18,
    4: 2.78,
    5: 2.57,
    6: 2.45,
    7: 2.36,
    8: 2.31,
    9: 2.26,
    10: 2.23,
}
T_CRITICAL_DEFAULT = 2.0

# Time uncertainty: sqrt(days) * factor
TIME_UNCERTAINTY_FACTOR = 0.5

# Projection
DAMPING_DAYS = 45.0  # Logarithmic horizon damping denominator
MAX_DAILY_SLOPE = 1.2  # Points per day
HISTORY_BOOST_BASE = 0.9
HISTORY_BOOST_SAMPLES = 15.0
VOLATILITY_SCALE = 10.0
DEFAULT_VOLATILITY = 1.0
DEFAULT_PROJECTION_DAYS = 60
DEFAULT_SIMULATION_DAYS = 30

# Confidence interval
CI95_Z = 1.96
PERCENTILES = [10, 50, 90]  # P10, P50, P90

# Readiness: a forecast needs this much data
MIN_TOTAL_POINTS = 5
MIN_DISTINCT_DATES = 1

# Outlook thresholds (probability, 0-100)
ON_TRACK_THRESHOLD = 70.0
AT_RISK_THRESHOLD = 40.0

# Output Configuration
ROUND_DISPLAY = 1  # Decimal places for UI strings
ROUND_BREAKDOWN = 4  # Decimal places for variance audit


def get_shrinkage_prior():
    """Return the population prior used to shrink small-sample SDs."""
    return {
        "population_sd": POPULATION_SD,
        "prior_strength": PRIOR_STRENGTH,
    }


def get_readiness_thresholds():
    """Return the minimum data required before a forecast is attempted."""
    return {
        "min_total_points": MIN_TOTAL_POINTS,
        "min_distinct_dates": MIN_DISTINCT_DATES,
    }


def get_outlook_thresholds():
    """Return probability thresholds for ON TRACK / AT RISK / OFF TRACK labels."""
    return {
        "on_track": ON_TRACK_THRESHOLD,
        "at_risk": AT_RISK_THRESHOLD,
    }
