"""Generates human-readable explanations for projections and distributions."""

from typing import List

from models.budget import BaselineTotals
from models.scenario import ScenarioAdjustment, ProjectedTotals
from models.allocation import DistributionResult
from models.findings import Severity
from models.reallocation import CostReallocationRule


def explain_projection(
    baseline: BaselineTotals,
    adjustment: ScenarioAdjustment,
    projected: ProjectedTotals,
    salary_after_pct: float,
    benefits_after_pct: float,
    salary_after_headcount: float,
    salary_after_inflation: float,
    overhead_rate: float,
    cost_delta: float,
    cost_delta_pct: float,
) -> List[str]:
    """Produce step-by-step explanation for a What-If projection."""
    steps = []

    steps.append(
        f"Step 1 - Baseline: {baseline.total_headcount} HC, salary {baseline.total_base_salary:,.0f}, "
        f"benefits {baseline.total_benefits:,.0f} => avg {baseline.avg_salary_per_head:,.0f} salary "
        f"and {baseline.avg_benefits_per_head:,.0f} benefits per head"
    )

    steps.append(
        f"Step 2 - Salary adjustment: {adjustment.salary_adjustment_pct:+.1f}% => {salary_after_pct:,.0f}"
    )

    steps.append(
        f"Step 3 - Benefits adjustment: {adjustment.benefits_adjustment_pct:+.1f}% => {benefits_after_pct:,.0f}"
    )

    steps.append(
        f"Step 4 - Headcount change: {adjustment.headcount_delta:+g} HC at baseline averages "
        f"=> {projected.projected_headcount} HC, salary {salary_after_headcount:,.0f}, "
        f"benefits {projected.projected_benefits:,.0f}"
    )

    if adjustment.inflation_enabled:
        steps.append(
            f"Step 5 - Inflation: {adjustment.inflation_rate_pct:.1f}% on salary => {salary_after_inflation:,.0f}"
        )
    else:
        steps.append("Step 5 - Inflation: not applied")

    if adjustment.attrition_enabled:
        steps.append(
            f"Step 6 - Attrition: {adjustment.attrition_rate_pct:.1f}% => {projected.attrition_headcount} leavers, "
            f"{adjustment.attrition_savings_fraction:.0%} salary saved while vacant, replaced at "
            f"x{adjustment.replacement_cost_multiplier:.2f} => salary {projected.projected_salary:,.0f}"
        )
    else:
        steps.append("Step 6 - Attrition: not applied")

    steps.append(
        f"Step 7 - Fully loaded: {projected.projected_salary:,.0f} salary + "
        f"{projected.projected_benefits:,.0f} benefits + {overhead_rate:.0%} overhead on salary "
        f"= {projected.projected_fully_loaded:,.0f}"
    )

    steps.append(
        f"Cost impact: {cost_delta:+,.0f} ({cost_delta_pct:+.1%}) vs baseline fully loaded "
        f"{baseline.total_fully_loaded:,.0f}"
    )

    return steps


def explain_distribution(
    rule: CostReallocationRule,
    result: DistributionResult,
) -> List[str]:
    """Summarise how a source amount was split across targets."""
    steps = [
        f"Rule {rule.rule_code} ({rule.allocation_method.value}): distributing "
        f"{result.source_amount:,.2f} from cost center {rule.source_cost_center_id}"
    ]

    if result.is_blocked:
        steps.append("Distribution blocked: " + "; ".join(result.findings.messages([Severity.ERROR])))
        return steps

    for alloc in result.allocations:
        steps.append(f"  -> {alloc.target_cost_center_id}: {alloc.amount:,.2f}")

    steps.append(
        f"Allocated {result.total_allocated:,.2f}, residual {result.residual:,.2f} stays with source"
    )
    return steps
