"""Cost reallocation rules: structural validation and distribution of a source amount."""

import logging
import math
from datetime import date
from typing import Dict, List, Optional

from models.reallocation import AllocationMethod, CostReallocationRule, ReallocationTarget
from models.allocation import (
    PercentageShare, FixedAmountShare, WeightedShare, TargetShare,
    AllocatedAmount, DistributionResult,
)
from models.findings import FindingCode, Severity, ValidationResult
from engine.explainer import explain_distribution
from config.defaults import ALLOCATION_EPSILON, FULL_ALLOCATION_PCT

logger = logging.getLogger(__name__)


# --- Helpers ---

def active_targets(targets: List[ReallocationTarget]) -> List[ReallocationTarget]:
    return [t for t in targets if t.is_active]


def total_percentage(targets: List[ReallocationTarget]) -> float:
    """Sum of stored percentages over active targets (missing counts as 0)."""
    return sum(t.allocation_percentage or 0.0 for t in active_targets(targets))


def is_rule_in_effect(rule: CostReallocationRule, as_of: date) -> bool:
    """True if the rule is active and ``as_of`` lies in [effective_date, end_date]."""
    if not rule.is_active or rule.effective_date is None:
        return False
    if as_of < rule.effective_date:
        return False
    if rule.end_date is not None and as_of > rule.end_date:
        return False
    return True


def filter_rules(rules: List[CostReallocationRule], query: str) -> List[CostReallocationRule]:
    """Case-insensitive match on rule name or code. Empty query returns all rules."""
    q = (query or "").strip().lower()
    if not q:
        return list(rules)
    return [r for r in rules if q in r.rule_name.lower() or q in r.rule_code.lower()]


def resolve_share(method: AllocationMethod, target: ReallocationTarget) -> TargetShare:
    """Pick the one stored field that counts for ``method``; the other is ignored."""
    if method == AllocationMethod.PERCENTAGE:
        return PercentageShare(target.id, target.target_cost_center_id, target.allocation_percentage)
    if method == AllocationMethod.FIXED_AMOUNT:
        return FixedAmountShare(target.id, target.target_cost_center_id, target.allocation_amount)
    return WeightedShare(target.id, target.target_cost_center_id, method)


def resolve_shares(method: AllocationMethod, targets: List[ReallocationTarget]) -> List[TargetShare]:
    return [resolve_share(method, t) for t in targets]


def check_rule_codes(rules: List[CostReallocationRule]) -> ValidationResult:
    """Report rule codes used by more than one active rule of the same company."""
    result = ValidationResult()
    seen: Dict[tuple, List[str]] = {}
    for rule in rules:
        if not rule.is_active:
            continue
        key = (rule.company_id, rule.rule_code.strip())
        seen.setdefault(key, []).append(rule.id)

    for (company_id, code), rule_ids in seen.items():
        if len(rule_ids) > 1:
            result.error(
                FindingCode.DUPLICATE_RULE_CODE,
                f"Rule code '{code}' is used by {len(rule_ids)} active rules"
                + (f" in company {company_id}" if company_id else "")
                + f": {', '.join(rule_ids)}",
            )
    return result


# --- Validation ---

def _check_target_cost_centers(
    rule: CostReallocationRule,
    targets: List[ReallocationTarget],
    result: ValidationResult,
):
    seen = set()
    for t in targets:
        if t.target_cost_center_id == rule.source_cost_center_id:
            result.warning(
                FindingCode.SELF_TARGET,
                f"Target {t.id} reallocates back to the source cost center {rule.source_cost_center_id}",
                t.id,
            )
        if t.target_cost_center_id in seen:
            result.warning(
                FindingCode.DUPLICATE_TARGET,
                f"Cost center {t.target_cost_center_id} is targeted more than once",
                t.id,
            )
        seen.add(t.target_cost_center_id)


def _validate_percentages(shares: List[PercentageShare], result: ValidationResult, epsilon: float):
    total = 0.0
    for share in shares:
        if share.percentage is None:
            result.warning(
                FindingCode.MISSING_VALUE,
                f"Target {share.target_id} has no allocation percentage; it receives nothing",
                share.target_id,
            )
            continue
        if share.percentage < 0 or share.percentage > FULL_ALLOCATION_PCT:
            result.error(
                FindingCode.STRUCTURAL,
                f"Target {share.target_id} percentage {share.percentage}% is outside 0-100%",
                share.target_id,
            )
        total += share.percentage

    if total > FULL_ALLOCATION_PCT + epsilon:
        result.error(
            FindingCode.STRUCTURAL,
            f"Target percentages sum to {total:.4g}%, exceeding 100%",
        )
    elif total < FULL_ALLOCATION_PCT - epsilon:
        result.info(
            FindingCode.UNALLOCATED_RESIDUAL,
            f"Target percentages sum to {total:.4g}%; {FULL_ALLOCATION_PCT - total:.4g}% "
            "of the source amount remains with the source cost center",
        )


def _validate_fixed_amounts(shares: List[FixedAmountShare], result: ValidationResult):
    for share in shares:
        if share.amount is None:
            result.warning(
                FindingCode.MISSING_VALUE,
                f"Target {share.target_id} has no allocation amount; it receives nothing",
                share.target_id,
            )
        elif share.amount < 0:
            result.error(
                FindingCode.STRUCTURAL,
                f"Target {share.target_id} amount {share.amount} is negative",
                share.target_id,
            )


def validate(
    rule: CostReallocationRule,
    targets: List[ReallocationTarget],
    rule_config: Optional[dict] = None,
) -> ValidationResult:
    """Check a rule and its targets for structural consistency.

    Sums against the source amount (fixed amounts) and weight figures
    (headcount / hours) can only be checked by ``distribute``.
    """
    cfg = rule_config or {}
    epsilon = cfg.get("allocation_epsilon", ALLOCATION_EPSILON)
    result = ValidationResult()

    if rule.effective_date is None:
        result.error(
            FindingCode.STRUCTURAL,
            f"Rule {rule.rule_code} has no effective date",
        )
    elif rule.end_date is not None and rule.end_date < rule.effective_date:
        result.error(
            FindingCode.STRUCTURAL,
            f"Rule {rule.rule_code} ends ({rule.end_date}) before it takes effect ({rule.effective_date})",
        )

    active = active_targets(targets)
    if not active:
        result.info(
            FindingCode.NO_OP_RULE,
            f"Rule {rule.rule_code} has no active targets; the source keeps 100% of its amount",
        )
        return result

    _check_target_cost_centers(rule, active, result)

    shares = resolve_shares(rule.allocation_method, active)
    if rule.allocation_method == AllocationMethod.PERCENTAGE:
        _validate_percentages(shares, result, epsilon)
    elif rule.allocation_method == AllocationMethod.FIXED_AMOUNT:
        _validate_fixed_amounts(shares, result)

    return result


# --- Distribution ---

def _distribute_percentage(shares: List[PercentageShare], source_amount: float) -> List[float]:
    return [source_amount * (s.percentage or 0.0) / 100 for s in shares]


def _distribute_fixed(
    shares: List[FixedAmountShare],
    source_amount: float,
    findings: ValidationResult,
) -> Optional[List[float]]:
    if source_amount < 0:
        findings.error(
            FindingCode.STRUCTURAL,
            f"Fixed-amount allocation needs a non-negative source amount, got {source_amount:,.2f}",
        )
        return None

    declared = [s.amount or 0.0 for s in shares]
    total = sum(declared)

    if total <= source_amount:
        if total < source_amount:
            findings.info(
                FindingCode.UNALLOCATED_RESIDUAL,
                f"Fixed amounts total {total:,.2f}; {source_amount - total:,.2f} "
                "remains with the source cost center",
            )
        return declared

    # Over-declared: scale every target by the same factor
    scale = source_amount / total
    findings.warning(
        FindingCode.FIXED_AMOUNT_SHORTFALL,
        f"Fixed amounts total {total:,.2f}, exceeding the source {source_amount:,.2f} by "
        f"{total - source_amount:,.2f}; each target scaled to {scale:.2%} of its declared amount",
    )

    amounts = []
    running = 0.0
    for i, amount in enumerate(declared):
        if i == len(declared) - 1:
            scaled = source_amount - running
        else:
            scaled = min(amount * scale, source_amount - running)
        amounts.append(scaled)
        running += scaled
    return amounts


def _distribute_weighted(
    shares: List[WeightedShare],
    source_amount: float,
    weights: Dict[str, float],
    findings: ValidationResult,
) -> Optional[List[float]]:
    resolved = []
    has_negative = False
    for share in shares:
        weight = weights.get(share.cost_center_id)
        if weight is None or not math.isfinite(weight):
            findings.warning(
                FindingCode.MISSING_VALUE,
                f"No {share.kind.value} figure for cost center {share.cost_center_id}; weight treated as 0",
                share.target_id,
            )
            weight = 0.0
        elif weight < 0:
            findings.error(
                FindingCode.STRUCTURAL,
                f"Negative {share.kind.value} figure {weight} for cost center {share.cost_center_id}",
                share.target_id,
            )
            has_negative = True
        resolved.append(weight)

    if has_negative:
        return None

    total = sum(resolved)
    if total == 0:
        findings.warning(
            FindingCode.DEGENERATE_INPUT,
            f"All {len(shares)} targets have zero {shares[0].kind.value}; "
            "source amount split equally across targets",
        )
        return [source_amount / len(shares)] * len(shares)

    return [source_amount * w / total for w in resolved]


def _clean_residual(residual: float, source_amount: float) -> float:
    """Drop floating noise so a full allocation reports a residual of exactly 0."""
    if abs(residual) <= 1e-9 * max(1.0, abs(source_amount)):
        return 0.0
    return residual


def _blocked(
    rule: CostReallocationRule,
    targets: List[ReallocationTarget],
    result: DistributionResult,
) -> DistributionResult:
    result.allocations = [AllocatedAmount(t.id, t.target_cost_center_id, 0.0) for t in targets]
    result.residual = result.source_amount
    result.explanation_steps = explain_distribution(rule, result)
    logger.warning(
        "Distribution blocked for rule %s: %s",
        rule.rule_code, "; ".join(result.findings.messages([Severity.ERROR])),
    )
    return result


def distribute(
    rule: CostReallocationRule,
    targets: List[ReallocationTarget],
    source_amount: float,
    as_of: Optional[date] = None,
    weights: Optional[Dict[str, float]] = None,
    rule_config: Optional[dict] = None,
) -> DistributionResult:
    """Split ``source_amount`` across the rule's active targets.

    ``weights`` maps target cost center id to its headcount or hours figure
    and is only read for weighted methods. Problems are reported in
    ``result.findings``; when any is an error, every target receives 0 and the
    whole amount stays with the source.
    """
    as_of = as_of or date.today()
    active = active_targets(targets)
    result = DistributionResult(rule_id=rule.id, source_amount=source_amount)

    result.findings.extend(validate(rule, targets, rule_config))

    # A missing effective date is already a structural error from validate
    if not rule.is_active:
        result.findings.error(FindingCode.OUT_OF_WINDOW, f"Rule {rule.rule_code} is inactive")
    elif rule.effective_date is not None and not is_rule_in_effect(rule, as_of):
        window_end = rule.end_date.isoformat() if rule.end_date else "open-ended"
        result.findings.error(
            FindingCode.OUT_OF_WINDOW,
            f"Distribution date {as_of.isoformat()} is outside rule {rule.rule_code} window "
            f"[{rule.effective_date.isoformat()}, {window_end}]",
        )

    if not result.findings.is_valid:
        return _blocked(rule, active, result)

    if not active:
        result.residual = source_amount
        result.explanation_steps = explain_distribution(rule, result)
        return result

    shares = resolve_shares(rule.allocation_method, active)
    method = rule.allocation_method
    if method == AllocationMethod.PERCENTAGE:
        amounts = _distribute_percentage(shares, source_amount)
    elif method == AllocationMethod.FIXED_AMOUNT:
        amounts = _distribute_fixed(shares, source_amount, result.findings)
    else:
        amounts = _distribute_weighted(shares, source_amount, weights or {}, result.findings)

    if amounts is None:
        return _blocked(rule, active, result)

    result.allocations = [
        AllocatedAmount(share.target_id, share.cost_center_id, amount)
        for share, amount in zip(shares, amounts)
    ]
    result.residual = _clean_residual(source_amount - result.total_allocated, source_amount)
    result.explanation_steps = explain_distribution(rule, result)

    logger.debug("Rule %s distributed %.2f of %.2f across %d targets",
                 rule.rule_code, result.total_allocated, source_amount, len(result.allocations))
    return result


def distribute_all(
    rules: List[CostReallocationRule],
    targets_by_rule: Dict[str, List[ReallocationTarget]],
    source_amounts: Dict[str, float],
    as_of: Optional[date] = None,
    weights_by_method: Optional[Dict[AllocationMethod, Dict[str, float]]] = None,
    rule_config: Optional[dict] = None,
) -> List[DistributionResult]:
    """Distribute each rule's source cost center amount. Rules without an amount are skipped.

    ``weights_by_method`` holds one cost center -> figure map per weighted
    method, so headcount rules and hours-worked rules read their own figures.
    """
    weights_by_method = weights_by_method or {}
    results = []
    for rule in rules:
        if rule.source_cost_center_id not in source_amounts:
            logger.debug("No source amount for cost center %s; skipping rule %s",
                         rule.source_cost_center_id, rule.rule_code)
            continue
        results.append(distribute(
            rule,
            targets_by_rule.get(rule.id, []),
            source_amounts[rule.source_cost_center_id],
            as_of=as_of,
            weights=weights_by_method.get(rule.allocation_method),
            rule_config=rule_config,
        ))
    return results
