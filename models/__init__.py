from models.budget import BudgetLineItem, BaselineTotals
from models.scenario import ScenarioAdjustment, ProjectedTotals, AdjustmentImpact, ScenarioProjection
from models.reallocation import AllocationMethod, CostReallocationRule, ReallocationTarget
from models.allocation import (
    PercentageShare, FixedAmountShare, WeightedShare, TargetShare,
    AllocatedAmount, DistributionResult,
)
from models.findings import Severity, FindingCode, Finding, ValidationResult
