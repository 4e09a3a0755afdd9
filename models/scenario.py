from dataclasses import dataclass, field, replace
from typing import List

from config.defaults import (
    DEFAULT_INFLATION_RATE_PCT, DEFAULT_ATTRITION_RATE_PCT,
    DEFAULT_REPLACEMENT_COST_MULTIPLIER, DEFAULT_ATTRITION_SAVINGS_FRACTION,
)
from models.budget import BaselineTotals


@dataclass(frozen=True)
class ScenarioAdjustment:
    """What-If parameters. Percentages are in percent, e.g. 5.0 for +5%.

    The defaults are the modeller's reset values, so ``ScenarioAdjustment()``
    is a neutral adjustment with inflation and attrition switched off.
    """
    salary_adjustment_pct: float = 0.0
    headcount_delta: int = 0
    benefits_adjustment_pct: float = 0.0
    inflation_enabled: bool = False
    inflation_rate_pct: float = DEFAULT_INFLATION_RATE_PCT
    attrition_enabled: bool = False
    attrition_rate_pct: float = DEFAULT_ATTRITION_RATE_PCT
    replacement_cost_multiplier: float = DEFAULT_REPLACEMENT_COST_MULTIPLIER
    attrition_savings_fraction: float = DEFAULT_ATTRITION_SAVINGS_FRACTION

    def with_changes(self, **changes) -> "ScenarioAdjustment":
        return replace(self, **changes)


@dataclass(frozen=True)
class ProjectedTotals:
    projected_salary: float
    projected_benefits: float
    projected_headcount: int
    projected_fully_loaded: float
    attrition_headcount: int = 0  # Leavers replaced during the horizon (0 if attrition off)


@dataclass
class AdjustmentImpact:
    """Effect of a single lever on the running projection."""
    lever: str           # "salary_adjustment", "benefits_change", "headcount_change", "inflation", "attrition"
    label: str
    value: float         # Lever setting as entered (percent or heads)
    salary_impact: float
    benefits_impact: float

    @property
    def total_impact(self) -> float:
        return self.salary_impact + self.benefits_impact


@dataclass
class ScenarioProjection:
    baseline: BaselineTotals
    adjustment: ScenarioAdjustment
    projected: ProjectedTotals
    cost_delta: float       # projected fully loaded - baseline fully loaded
    cost_delta_pct: float   # Fraction of baseline fully loaded, e.g. 0.05 for 5%
    impacts: List[AdjustmentImpact] = field(default_factory=list)
    explanation_steps: List[str] = field(default_factory=list)
