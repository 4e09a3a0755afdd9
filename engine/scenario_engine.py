"""What-If scenario projector — apply adjustments to a baseline, recompute cost."""

import logging
import math
from typing import Iterable, List, Optional

from models.budget import BudgetLineItem, BaselineTotals
from models.scenario import ScenarioAdjustment, ProjectedTotals, AdjustmentImpact, ScenarioProjection
from models.findings import FindingCode, ValidationResult
from engine.baseline_aggregator import aggregate
from engine.explainer import explain_projection
from config.defaults import OVERHEAD_RATE, ADJUSTMENT_RANGES

logger = logging.getLogger(__name__)


def _attrition_headcount(projected_headcount: int, attrition_rate_pct: float) -> int:
    """Whole leavers only; non-finite inputs yield no leavers."""
    raw = projected_headcount * attrition_rate_pct / 100
    if not math.isfinite(raw):
        logger.warning("Non-finite attrition headcount (%s HC at %s%%); treating as 0",
                       projected_headcount, attrition_rate_pct)
        return 0
    return math.floor(raw)


def project(
    baseline: BaselineTotals,
    adjustment: ScenarioAdjustment,
    rule_config: Optional[dict] = None,
) -> ScenarioProjection:
    """Project salary, benefits, headcount and fully loaded cost under an adjustment.

    Steps run in a fixed order on the running figures. Per-head averages are
    taken once from the untouched baseline, so added or removed heads are
    valued at baseline cost, not at percentage-adjusted cost. Never raises
    for numeric edge cases; out-of-range levers are accepted as-is.
    """
    cfg = rule_config or {}
    overhead_rate = cfg.get("overhead_rate", OVERHEAD_RATE)
    adj = adjustment
    impacts: List[AdjustmentImpact] = []

    # Step 1: Per-head averages from the untouched baseline
    avg_salary = baseline.avg_salary_per_head
    avg_benefits = baseline.avg_benefits_per_head

    # Step 2: Salary adjustment
    salary = baseline.total_base_salary * (1 + adj.salary_adjustment_pct / 100)
    salary_after_pct = salary
    if adj.salary_adjustment_pct:
        impacts.append(AdjustmentImpact(
            "salary_adjustment", "Salary adjustment", adj.salary_adjustment_pct,
            salary - baseline.total_base_salary, 0.0,
        ))

    # Step 3: Benefits adjustment
    benefits = baseline.total_benefits * (1 + adj.benefits_adjustment_pct / 100)
    benefits_after_pct = benefits
    if adj.benefits_adjustment_pct:
        impacts.append(AdjustmentImpact(
            "benefits_change", "Benefits change", adj.benefits_adjustment_pct,
            0.0, benefits - baseline.total_benefits,
        ))

    # Step 4: Headcount delta valued at baseline averages
    headcount = baseline.total_headcount + adj.headcount_delta
    salary += adj.headcount_delta * avg_salary
    benefits += adj.headcount_delta * avg_benefits
    salary_after_headcount = salary
    if adj.headcount_delta:
        impacts.append(AdjustmentImpact(
            "headcount_change", "Headcount change", adj.headcount_delta,
            adj.headcount_delta * avg_salary, adj.headcount_delta * avg_benefits,
        ))

    # Step 5: Inflation (salary only)
    if adj.inflation_enabled:
        before = salary
        salary *= 1 + adj.inflation_rate_pct / 100
        impacts.append(AdjustmentImpact(
            "inflation", "Inflation", adj.inflation_rate_pct, salary - before, 0.0,
        ))
    salary_after_inflation = salary

    # Step 6: Attrition replacement cost (salary only, headcount unchanged)
    attrition_hc = 0
    if adj.attrition_enabled:
        attrition_hc = _attrition_headcount(headcount, adj.attrition_rate_pct)
        vacancy_savings = attrition_hc * avg_salary * adj.attrition_savings_fraction
        replacement_cost = vacancy_savings * adj.replacement_cost_multiplier
        salary -= vacancy_savings
        salary += replacement_cost
        impacts.append(AdjustmentImpact(
            "attrition", "Attrition replacement", adj.attrition_rate_pct,
            replacement_cost - vacancy_savings, 0.0,
        ))

    # Step 7: Fully loaded cost with flat overhead on salary
    fully_loaded = salary + benefits + salary * overhead_rate

    projected = ProjectedTotals(
        projected_salary=salary,
        projected_benefits=benefits,
        projected_headcount=headcount,
        projected_fully_loaded=fully_loaded,
        attrition_headcount=attrition_hc,
    )

    cost_delta = fully_loaded - baseline.total_fully_loaded
    cost_delta_pct = cost_delta / baseline.total_fully_loaded if baseline.total_fully_loaded else 0.0

    explanation = explain_projection(
        baseline=baseline,
        adjustment=adj,
        projected=projected,
        salary_after_pct=salary_after_pct,
        benefits_after_pct=benefits_after_pct,
        salary_after_headcount=salary_after_headcount,
        salary_after_inflation=salary_after_inflation,
        overhead_rate=overhead_rate,
        cost_delta=cost_delta,
        cost_delta_pct=cost_delta_pct,
    )

    logger.debug("Projected fully loaded %.2f (delta %+.2f) for %s", fully_loaded, cost_delta, adj)

    return ScenarioProjection(
        baseline=baseline,
        adjustment=adj,
        projected=projected,
        cost_delta=cost_delta,
        cost_delta_pct=cost_delta_pct,
        impacts=impacts,
        explanation_steps=explanation,
    )


def run_projection(
    items: Iterable[BudgetLineItem],
    adjustment: ScenarioAdjustment,
    rule_config: Optional[dict] = None,
) -> ScenarioProjection:
    """Full pipeline: aggregate line items then project."""
    return project(aggregate(items), adjustment, rule_config)


def check_adjustment_ranges(adjustment: ScenarioAdjustment) -> ValidationResult:
    """Flag levers outside the modeller's suggested ranges. Advisory only."""
    result = ValidationResult()
    for lever, (low, high) in ADJUSTMENT_RANGES.items():
        value = getattr(adjustment, lever)
        if value < low or value > high:
            result.warning(
                FindingCode.OUT_OF_RANGE,
                f"{lever} = {value} is outside the suggested range [{low}, {high}]",
            )

    if adjustment.salary_adjustment_pct < -100:
        result.warning(FindingCode.OUT_OF_RANGE, "Salary adjustment below -100% yields negative salary")
    if adjustment.replacement_cost_multiplier < 1:
        result.warning(
            FindingCode.OUT_OF_RANGE,
            f"Replacement cost multiplier {adjustment.replacement_cost_multiplier} is below 1",
        )
    if not 0 <= adjustment.attrition_savings_fraction <= 1:
        result.warning(
            FindingCode.OUT_OF_RANGE,
            f"Attrition savings fraction {adjustment.attrition_savings_fraction} is outside [0, 1]",
        )
    return result


def compare_projections(
    projection_a: ScenarioProjection,
    projection_b: ScenarioProjection,
    name_a: str = "A",
    name_b: str = "B",
) -> List[dict]:
    """Compare two projections metric by metric."""
    metrics = [
        ("Headcount", "projected_headcount"),
        ("Salary", "projected_salary"),
        ("Benefits", "projected_benefits"),
        ("Fully Loaded", "projected_fully_loaded"),
    ]
    rows = []
    for label, attr in metrics:
        a = getattr(projection_a.projected, attr)
        b = getattr(projection_b.projected, attr)
        change = b - a
        rows.append({
            "Metric": label,
            name_a: a,
            name_b: b,
            "Change": change,
            "Change %": change / a if a else 0.0,
        })
    rows.append({
        "Metric": "Cost Delta vs Baseline",
        name_a: projection_a.cost_delta,
        name_b: projection_b.cost_delta,
        "Change": projection_b.cost_delta - projection_a.cost_delta,
        "Change %": 0.0,
    })
    return rows
