"""Default configuration constants for the Budget Scenario & Cost Allocation Engine."""

# Fully loaded cost policy: overhead applied to (adjusted) salary only, not benefits.
# Simplification pending product confirmation of a configurable overhead model.
OVERHEAD_RATE = 0.30

# What-If adjustment defaults (the modeller's reset values)
DEFAULT_INFLATION_RATE_PCT = 3.0
DEFAULT_ATTRITION_RATE_PCT = 10.0
DEFAULT_REPLACEMENT_COST_MULTIPLIER = 1.2  # New hires cost 20% more
DEFAULT_ATTRITION_SAVINGS_FRACTION = 0.5   # ~6 months of salary saved while vacant

# UI-suggested slider ranges (min, max). Advisory only; the projector accepts any value.
ADJUSTMENT_RANGES = {
    "salary_adjustment_pct": (-20.0, 20.0),
    "headcount_delta": (-50, 50),
    "benefits_adjustment_pct": (-30.0, 30.0),
    "inflation_rate_pct": (0.0, 10.0),
    "attrition_rate_pct": (0.0, 25.0),
}

# Levers whose sweep needs a feature flag switched on
LEVER_FLAGS = {
    "inflation_rate_pct": "inflation_enabled",
    "attrition_rate_pct": "attrition_enabled",
}

# Sensitivity analysis
SENSITIVITY_STEPS = 7               # Points on a sensitivity curve
SENSITIVITY_RANGE_FRACTION = 0.30   # Sweep +/- 30% of the lever's range

# Allocation tolerances
ALLOCATION_EPSILON = 1e-6  # Tolerance on percentage sums (in percent points)
FULL_ALLOCATION_PCT = 100.0

# Allocation methods as stored by the GL module
ALLOCATION_METHODS = ["percentage", "fixed_amount", "headcount", "hours_worked"]

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER_NAMES = ["engine", "data", "models", "config"]
