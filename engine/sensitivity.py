"""Deterministic one-lever sensitivity sweeps over the scenario projector."""

import logging
from typing import List, Optional, Tuple

import pandas as pd

from models.budget import BaselineTotals
from models.scenario import ScenarioAdjustment
from engine.scenario_engine import project
from config.defaults import (
    ADJUSTMENT_RANGES, LEVER_FLAGS,
    SENSITIVITY_STEPS, SENSITIVITY_RANGE_FRACTION,
)

logger = logging.getLogger(__name__)

LEVERS = list(ADJUSTMENT_RANGES)

CURVE_COLUMNS = ["lever", "value", "projected_fully_loaded", "cost_delta", "cost_delta_pct"]
TORNADO_COLUMNS = [
    "lever", "low_value", "high_value",
    "low_outcome", "high_outcome", "impact", "impact_pct",
]


def _check_lever(lever: str):
    if lever not in ADJUSTMENT_RANGES:
        raise ValueError(f"Unknown lever '{lever}'. Expected one of: {LEVERS}")


def sweep_bounds(lever: str, current: float) -> Tuple[float, float]:
    """Low/high sweep values: +/- a fraction of the lever's range, clamped to it."""
    _check_lever(lever)
    low, high = ADJUSTMENT_RANGES[lever]
    current = max(low, min(high, current))
    span = (high - low) * SENSITIVITY_RANGE_FRACTION
    return max(low, current - span), min(high, current + span)


def _with_lever(adjustment: ScenarioAdjustment, lever: str, value: float) -> ScenarioAdjustment:
    changes = {lever: int(round(value)) if lever == "headcount_delta" else value}
    flag = LEVER_FLAGS.get(lever)
    if flag:
        changes[flag] = True
    return adjustment.with_changes(**changes)


def sensitivity_curve(
    baseline: BaselineTotals,
    adjustment: ScenarioAdjustment,
    lever: str,
    steps: int = SENSITIVITY_STEPS,
    rule_config: Optional[dict] = None,
) -> pd.DataFrame:
    """Project the scenario at evenly spaced values of one lever."""
    _check_lever(lever)
    if steps < 2:
        raise ValueError(f"A sensitivity curve needs at least 2 steps, got {steps}")

    low, high = sweep_bounds(lever, getattr(adjustment, lever))
    step_size = (high - low) / (steps - 1)

    rows = []
    for i in range(steps):
        value = low + i * step_size
        swept = _with_lever(adjustment, lever, value)
        result = project(baseline, swept, rule_config)
        rows.append({
            "lever": lever,
            "value": getattr(swept, lever),
            "projected_fully_loaded": result.projected.projected_fully_loaded,
            "cost_delta": result.cost_delta,
            "cost_delta_pct": result.cost_delta_pct,
        })
    return pd.DataFrame(rows, columns=CURVE_COLUMNS)


def tornado(
    baseline: BaselineTotals,
    adjustment: ScenarioAdjustment,
    levers: Optional[List[str]] = None,
    rule_config: Optional[dict] = None,
) -> pd.DataFrame:
    """Rank levers by how far their low/high settings move fully loaded cost."""
    levers = LEVERS if levers is None else levers
    for lever in levers:
        _check_lever(lever)

    base_outcome = project(baseline, adjustment, rule_config).projected.projected_fully_loaded

    rows = []
    for lever in levers:
        low, high = sweep_bounds(lever, getattr(adjustment, lever))
        low_outcome = project(baseline, _with_lever(adjustment, lever, low), rule_config)
        high_outcome = project(baseline, _with_lever(adjustment, lever, high), rule_config)
        low_value = low_outcome.projected.projected_fully_loaded
        high_value = high_outcome.projected.projected_fully_loaded
        impact = abs(high_value - low_value)
        rows.append({
            "lever": lever,
            "low_value": low,
            "high_value": high,
            "low_outcome": low_value,
            "high_outcome": high_value,
            "impact": impact,
            "impact_pct": impact / base_outcome if base_outcome else 0.0,
        })

    df = pd.DataFrame(rows, columns=TORNADO_COLUMNS)
    df = df.sort_values("impact", ascending=False, kind="stable").reset_index(drop=True)
    logger.debug("Tornado over %d levers, top lever: %s", len(df), df["lever"].iloc[0] if len(df) else None)
    return df
