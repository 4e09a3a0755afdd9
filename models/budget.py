from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BudgetLineItem:
    """One position's contribution to a budget scenario."""
    headcount: Optional[int] = 0
    base_salary: Optional[float] = 0.0        # Annualized
    benefits_amount: Optional[float] = 0.0
    fully_loaded_cost: Optional[float] = 0.0  # As supplied by the budgeting workflow
    position_id: Optional[str] = None
    position_title: Optional[str] = None
    cost_center_id: Optional[str] = None
    fte: float = 1.0


@dataclass(frozen=True)
class BaselineTotals:
    total_headcount: int = 0
    total_base_salary: float = 0.0
    total_benefits: float = 0.0
    total_fully_loaded: float = 0.0

    @property
    def avg_salary_per_head(self) -> float:
        if self.total_headcount <= 0:
            return 0.0
        return self.total_base_salary / self.total_headcount

    @property
    def avg_benefits_per_head(self) -> float:
        if self.total_headcount <= 0:
            return 0.0
        return self.total_benefits / self.total_headcount

    def __add__(self, other: "BaselineTotals") -> "BaselineTotals":
        if not isinstance(other, BaselineTotals):
            return NotImplemented
        return BaselineTotals(
            total_headcount=self.total_headcount + other.total_headcount,
            total_base_salary=self.total_base_salary + other.total_base_salary,
            total_benefits=self.total_benefits + other.total_benefits,
            total_fully_loaded=self.total_fully_loaded + other.total_fully_loaded,
        )
