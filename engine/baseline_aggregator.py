"""Reduce per-position budget line items into baseline totals."""

import logging
from typing import Dict, Iterable, Optional

from models.budget import BudgetLineItem, BaselineTotals

logger = logging.getLogger(__name__)


def _num(value) -> float:
    return value if value is not None else 0


def aggregate(items: Iterable[BudgetLineItem]) -> BaselineTotals:
    """Field-wise sums across line items; missing numbers count as zero.

    ``fully_loaded_cost`` is summed as supplied, never re-derived.
    """
    headcount = 0
    salary = 0.0
    benefits = 0.0
    fully_loaded = 0.0
    count = 0
    for item in items:
        headcount += _num(item.headcount)
        salary += _num(item.base_salary)
        benefits += _num(item.benefits_amount)
        fully_loaded += _num(item.fully_loaded_cost)
        count += 1

    logger.debug("Aggregated %d line items: hc=%s salary=%.2f benefits=%.2f loaded=%.2f",
                 count, headcount, salary, benefits, fully_loaded)
    return BaselineTotals(
        total_headcount=headcount,
        total_base_salary=salary,
        total_benefits=benefits,
        total_fully_loaded=fully_loaded,
    )


def aggregate_by_cost_center(
    items: Iterable[BudgetLineItem],
) -> Dict[Optional[str], BaselineTotals]:
    """Baseline totals per cost center. Items without one are grouped under None."""
    groups: Dict[Optional[str], list] = {}
    for item in items:
        groups.setdefault(item.cost_center_id, []).append(item)
    return {cc: aggregate(group) for cc, group in groups.items()}
