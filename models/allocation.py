from dataclasses import dataclass, field
from typing import List, Optional, Union

from models.findings import ValidationResult
from models.reallocation import AllocationMethod


@dataclass(frozen=True)
class PercentageShare:
    target_id: str
    cost_center_id: str
    percentage: Optional[float]     # None when the stored row has no percentage


@dataclass(frozen=True)
class FixedAmountShare:
    target_id: str
    cost_center_id: str
    amount: Optional[float]


@dataclass(frozen=True)
class WeightedShare:
    target_id: str
    cost_center_id: str
    kind: AllocationMethod          # HEADCOUNT or HOURS_WORKED; weight supplied at distribution time


TargetShare = Union[PercentageShare, FixedAmountShare, WeightedShare]


@dataclass
class AllocatedAmount:
    target_id: str
    target_cost_center_id: str
    amount: float


@dataclass
class DistributionResult:
    rule_id: str
    source_amount: float
    allocations: List[AllocatedAmount] = field(default_factory=list)
    residual: float = 0.0           # Left with the source cost center
    findings: ValidationResult = field(default_factory=ValidationResult)
    explanation_steps: List[str] = field(default_factory=list)

    @property
    def total_allocated(self) -> float:
        return sum(a.amount for a in self.allocations)

    @property
    def is_blocked(self) -> bool:
        return not self.findings.is_valid

    def amount_for(self, target_id: str) -> float:
        for a in self.allocations:
            if a.target_id == target_id:
                return a.amount
        return 0.0
