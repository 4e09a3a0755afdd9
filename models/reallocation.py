from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class AllocationMethod(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    HEADCOUNT = "headcount"
    HOURS_WORKED = "hours_worked"

    @property
    def is_weighted(self) -> bool:
        return self in (AllocationMethod.HEADCOUNT, AllocationMethod.HOURS_WORKED)


@dataclass
class CostReallocationRule:
    id: str
    rule_code: str                  # Unique within company
    rule_name: str
    source_cost_center_id: str
    allocation_method: AllocationMethod
    effective_date: Optional[date]
    end_date: Optional[date] = None
    is_active: bool = True
    company_id: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ReallocationTarget:
    """Stored target row. Both value fields may be present; the rule's method decides which counts."""
    id: str
    reallocation_rule_id: str
    target_cost_center_id: str
    allocation_percentage: Optional[float] = None  # 0-100
    allocation_amount: Optional[float] = None
    notes: Optional[str] = None
    is_active: bool = True
