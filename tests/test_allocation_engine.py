"""Tests for the cost reallocation validator and distributor."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging
from datetime import date

import pytest

from models.reallocation import AllocationMethod, CostReallocationRule, ReallocationTarget
from models.allocation import PercentageShare, FixedAmountShare, WeightedShare
from models.findings import FindingCode, Severity
from engine.allocation_engine import (
    validate,
    distribute,
    distribute_all,
    resolve_share,
    is_rule_in_effect,
    total_percentage,
    filter_rules,
    check_rule_codes,
)

AS_OF = date(2025, 6, 30)


def make_rule(method="percentage", rule_id="R1", code="ADM-SPLIT", source="CC-ADM",
              effective=date(2025, 1, 1), end=None, active=True, company="C1"):
    return CostReallocationRule(
        id=rule_id,
        rule_code=code,
        rule_name=f"Rule {code}",
        source_cost_center_id=source,
        allocation_method=AllocationMethod(method),
        effective_date=effective,
        end_date=end,
        is_active=active,
        company_id=company,
    )


def make_target(target_id, cc, pct=None, amount=None, active=True, rule_id="R1"):
    return ReallocationTarget(target_id, rule_id, cc, pct, amount, is_active=active)


def pct_targets(*pcts):
    return [make_target(f"T{i}", f"CC-{i}", pct=p) for i, p in enumerate(pcts, start=1)]


def amount_targets(*amounts):
    return [make_target(f"T{i}", f"CC-{i}", amount=a) for i, a in enumerate(amounts, start=1)]


class TestResolveShare:
    def test_percentage_ignores_amount(self):
        share = resolve_share(AllocationMethod.PERCENTAGE, make_target("T1", "CC-1", pct=40, amount=999))
        assert share == PercentageShare("T1", "CC-1", 40)

    def test_fixed_ignores_percentage(self):
        share = resolve_share(AllocationMethod.FIXED_AMOUNT, make_target("T1", "CC-1", pct=40, amount=999))
        assert share == FixedAmountShare("T1", "CC-1", 999)

    def test_weighted(self):
        share = resolve_share(AllocationMethod.HOURS_WORKED, make_target("T1", "CC-1", pct=40))
        assert share == WeightedShare("T1", "CC-1", AllocationMethod.HOURS_WORKED)


class TestValidate:
    def test_full_percentage_is_clean(self):
        result = validate(make_rule(), pct_targets(50, 30, 20))
        assert result.is_valid
        assert result.findings == []

    def test_under_allocation_is_informational(self):
        result = validate(make_rule(), pct_targets(40, 20))
        assert result.is_valid
        assert [f.code for f in result.infos] == [FindingCode.UNALLOCATED_RESIDUAL]
        assert "40%" in result.infos[0].message

    def test_over_allocation_is_error(self):
        result = validate(make_rule(), pct_targets(70, 40))
        assert not result.is_valid
        assert result.errors[0].code == FindingCode.STRUCTURAL

    def test_epsilon_tolerance(self):
        result = validate(make_rule(), pct_targets(33.3333333, 33.3333333, 33.3333334 + 5e-7))
        assert result.is_valid
        assert result.findings == []

    def test_percentage_out_of_bounds(self):
        result = validate(make_rule(), pct_targets(-10, 50))
        assert not result.is_valid
        assert result.errors[0].target_id == "T1"

    def test_missing_percentage_warns(self):
        targets = pct_targets(60, 40) + [make_target("T3", "CC-3")]
        result = validate(make_rule(), targets)
        assert result.is_valid
        assert result.warnings[0].code == FindingCode.MISSING_VALUE
        assert result.warnings[0].target_id == "T3"

    def test_inactive_targets_excluded_from_sum(self):
        targets = pct_targets(60, 40) + [make_target("T3", "CC-3", pct=50, active=False)]
        assert validate(make_rule(), targets).is_valid
        assert total_percentage(targets) == pytest.approx(100)

    def test_end_before_effective(self):
        rule = make_rule(effective=date(2025, 6, 1), end=date(2025, 1, 1))
        result = validate(rule, pct_targets(100))
        assert not result.is_valid
        assert result.errors[0].code == FindingCode.STRUCTURAL

    def test_no_targets_is_no_op(self):
        result = validate(make_rule(), [])
        assert result.is_valid
        assert result.infos[0].code == FindingCode.NO_OP_RULE

    def test_duplicate_and_self_targets_warn(self):
        targets = [
            make_target("T1", "CC-ENG", pct=50),
            make_target("T2", "CC-ENG", pct=25),
            make_target("T3", "CC-ADM", pct=25),
        ]
        result = validate(make_rule(source="CC-ADM"), targets)
        codes = {f.code for f in result.warnings}
        assert codes == {FindingCode.DUPLICATE_TARGET, FindingCode.SELF_TARGET}

    def test_negative_fixed_amount(self):
        result = validate(make_rule("fixed_amount"), amount_targets(100, -5))
        assert not result.is_valid
        assert result.errors[0].target_id == "T2"

    def test_weighted_has_no_structural_checks(self):
        result = validate(make_rule("headcount"), [make_target("T1", "CC-1"), make_target("T2", "CC-2")])
        assert result.findings == []


class TestPercentageDistribution:
    def test_full_allocation_sums_to_source(self):
        result = distribute(make_rule(), pct_targets(50, 30, 20), 90_000, as_of=AS_OF)

        assert [a.amount for a in result.allocations] == pytest.approx([45_000, 27_000, 18_000])
        assert result.total_allocated == pytest.approx(90_000)
        assert result.residual == 0.0
        assert not result.findings.has(FindingCode.UNALLOCATED_RESIDUAL)

    def test_thirds_sum_to_source(self):
        result = distribute(make_rule(), pct_targets(100 / 3, 100 / 3, 100 / 3), 1_000, as_of=AS_OF)
        assert result.total_allocated == pytest.approx(1_000)
        assert result.residual == pytest.approx(0.0, abs=1e-6)

    def test_under_allocation_reports_residual(self):
        result = distribute(make_rule(), pct_targets(40, 20), 1_000, as_of=AS_OF)

        assert result.total_allocated == pytest.approx(600)
        assert result.residual == pytest.approx(400)
        residual = [f for f in result.findings.findings if f.code == FindingCode.UNALLOCATED_RESIDUAL]
        assert len(residual) == 1
        assert residual[0].severity == Severity.INFO
        assert "40%" in residual[0].message

    def test_over_allocation_blocks(self):
        result = distribute(make_rule(), pct_targets(70, 40), 1_000, as_of=AS_OF)

        assert result.is_blocked
        assert all(a.amount == 0 for a in result.allocations)
        assert len(result.allocations) == 2
        assert result.residual == 1_000

    def test_amount_for(self):
        result = distribute(make_rule(), pct_targets(25, 75), 400, as_of=AS_OF)
        assert result.amount_for("T2") == pytest.approx(300)
        assert result.amount_for("missing") == 0.0


class TestFixedAmountDistribution:
    def test_within_source(self):
        result = distribute(make_rule("fixed_amount"), amount_targets(300, 200), 1_000, as_of=AS_OF)

        assert [a.amount for a in result.allocations] == [300, 200]
        assert result.residual == pytest.approx(500)
        assert result.findings.has(FindingCode.UNALLOCATED_RESIDUAL)

    def test_overflow_scaled_proportionally(self):
        result = distribute(make_rule("fixed_amount"), amount_targets(900, 600), 1_000, as_of=AS_OF)

        assert [a.amount for a in result.allocations] == pytest.approx([600, 400])
        assert result.total_allocated == pytest.approx(1_000)
        assert result.residual == 0.0
        shortfall = [f for f in result.findings.warnings if f.code == FindingCode.FIXED_AMOUNT_SHORTFALL]
        assert len(shortfall) == 1
        assert "500.00" in shortfall[0].message

    def test_running_total_never_exceeds_source(self):
        result = distribute(make_rule("fixed_amount"), amount_targets(0.1, 0.2, 0.4), 0.3, as_of=AS_OF)
        running = 0.0
        for alloc in result.allocations:
            running += alloc.amount
            assert running <= 0.3 + 1e-12
        assert result.total_allocated == pytest.approx(0.3)

    def test_negative_source_blocks(self):
        result = distribute(make_rule("fixed_amount"), amount_targets(100), -50, as_of=AS_OF)
        assert result.is_blocked
        assert result.residual == -50


class TestWeightedDistribution:
    def test_headcount_weights(self):
        targets = [make_target("T1", "CC-ENG"), make_target("T2", "CC-SAL")]
        result = distribute(make_rule("headcount"), targets, 1_000, as_of=AS_OF,
                            weights={"CC-ENG": 30, "CC-SAL": 10})

        assert [a.amount for a in result.allocations] == pytest.approx([750, 250])
        assert result.residual == 0.0
        assert result.findings.findings == []

    def test_zero_weight_target_gets_nothing(self):
        targets = [make_target("T1", "CC-ENG"), make_target("T2", "CC-SAL")]
        result = distribute(make_rule("hours_worked"), targets, 1_000, as_of=AS_OF,
                            weights={"CC-ENG": 120.5, "CC-SAL": 0})
        assert [a.amount for a in result.allocations] == pytest.approx([1_000, 0])

    def test_all_zero_weights_split_equally(self):
        targets = [make_target(f"T{i}", f"CC-{i}") for i in range(1, 4)]
        weights = {"CC-1": 0, "CC-2": 0, "CC-3": 0}
        result = distribute(make_rule("headcount"), targets, 900, as_of=AS_OF, weights=weights)

        assert [a.amount for a in result.allocations] == pytest.approx([300, 300, 300])
        assert result.total_allocated == pytest.approx(900)
        degenerate = [f for f in result.findings.warnings if f.code == FindingCode.DEGENERATE_INPUT]
        assert len(degenerate) == 1

    def test_missing_weight_treated_as_zero(self):
        targets = [make_target("T1", "CC-ENG"), make_target("T2", "CC-SAL")]
        result = distribute(make_rule("headcount"), targets, 500, as_of=AS_OF, weights={"CC-ENG": 5})

        assert [a.amount for a in result.allocations] == pytest.approx([500, 0])
        assert result.findings.warnings[0].code == FindingCode.MISSING_VALUE
        assert result.findings.warnings[0].target_id == "T2"

    def test_nan_weight_treated_as_missing(self):
        targets = [make_target("T1", "CC-ENG"), make_target("T2", "CC-SAL")]
        result = distribute(make_rule("headcount"), targets, 1_000, as_of=AS_OF,
                            weights={"CC-ENG": 10, "CC-SAL": float("nan")})

        assert [a.amount for a in result.allocations] == pytest.approx([1_000, 0])
        assert result.residual == 0.0
        assert result.findings.warnings[0].code == FindingCode.MISSING_VALUE
        assert result.findings.warnings[0].target_id == "T2"

    def test_negative_weight_blocks(self):
        targets = [make_target("T1", "CC-ENG"), make_target("T2", "CC-SAL")]
        result = distribute(make_rule("headcount"), targets, 500, as_of=AS_OF,
                            weights={"CC-ENG": 5, "CC-SAL": -1})
        assert result.is_blocked
        assert result.residual == 500


class TestEffectiveWindow:
    def test_before_effective_date(self):
        rule = make_rule(effective=date(2025, 7, 1))
        result = distribute(rule, pct_targets(100), 1_000, as_of=AS_OF)

        assert result.findings.errors[0].code == FindingCode.OUT_OF_WINDOW
        assert [a.amount for a in result.allocations] == [0.0]
        assert result.residual == 1_000

    def test_after_end_date(self):
        rule = make_rule(end=date(2025, 3, 31))
        result = distribute(rule, pct_targets(100), 1_000, as_of=AS_OF)
        assert result.findings.has(FindingCode.OUT_OF_WINDOW)
        assert result.total_allocated == 0

    def test_window_bounds_inclusive(self):
        rule = make_rule(effective=date(2025, 1, 1), end=date(2025, 6, 30))
        assert is_rule_in_effect(rule, date(2025, 1, 1))
        assert is_rule_in_effect(rule, date(2025, 6, 30))
        assert not is_rule_in_effect(rule, date(2025, 7, 1))

    def test_open_ended_window(self):
        assert is_rule_in_effect(make_rule(end=None), date(2099, 1, 1))

    def test_inactive_rule_treated_as_out_of_window(self):
        rule = make_rule(active=False)
        result = distribute(rule, pct_targets(100), 1_000, as_of=AS_OF)

        assert result.findings.errors[0].code == FindingCode.OUT_OF_WINDOW
        assert "inactive" in result.findings.errors[0].message
        assert result.residual == 1_000

    def test_missing_effective_date_is_structural(self):
        rule = make_rule(effective=None)
        assert not is_rule_in_effect(rule, AS_OF)

        findings = validate(rule, pct_targets(100))
        assert findings.errors[0].code == FindingCode.STRUCTURAL
        assert "no effective date" in findings.errors[0].message

        result = distribute(rule, pct_targets(100), 1_000, as_of=AS_OF)
        assert result.is_blocked
        assert not result.findings.has(FindingCode.OUT_OF_WINDOW)
        assert result.residual == 1_000

    def test_blocked_explanation_lists_errors(self):
        result = distribute(make_rule(effective=None), pct_targets(100), 1_000, as_of=AS_OF)
        assert result.explanation_steps[-1] == (
            "Distribution blocked: " + "; ".join(result.findings.messages([Severity.ERROR]))
        )
        assert "no effective date" in result.explanation_steps[-1]

    def test_blocked_distribution_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            distribute(make_rule(active=False), pct_targets(100), 1_000, as_of=AS_OF)
        assert "Distribution blocked" in caplog.text


class TestNoOpAndInactiveTargets:
    def test_no_targets(self):
        result = distribute(make_rule(), [], 1_000, as_of=AS_OF)

        assert result.allocations == []
        assert result.residual == 1_000
        assert result.findings.infos[0].code == FindingCode.NO_OP_RULE
        assert not result.is_blocked

    def test_inactive_target_gets_no_row(self):
        targets = pct_targets(100) + [make_target("T9", "CC-9", pct=20, active=False)]
        result = distribute(make_rule(), targets, 1_000, as_of=AS_OF)
        assert [a.target_id for a in result.allocations] == ["T1"]

    def test_explanation_steps(self):
        result = distribute(make_rule(), pct_targets(50, 50), 1_000, as_of=AS_OF)
        assert result.explanation_steps[0].startswith("Rule ADM-SPLIT (percentage)")
        assert "residual 0.00" in result.explanation_steps[-1]


class TestRuleHelpers:
    def test_check_rule_codes_flags_duplicates(self):
        rules = [
            make_rule(rule_id="R1", code="ADM"),
            make_rule(rule_id="R2", code="ADM"),
            make_rule(rule_id="R3", code="ADM", company="C2"),
            make_rule(rule_id="R4", code="ADM", active=False),
        ]
        result = check_rule_codes(rules)

        assert len(result.errors) == 1
        assert result.errors[0].code == FindingCode.DUPLICATE_RULE_CODE
        assert "R1, R2" in result.errors[0].message

    def test_filter_rules(self):
        rules = [make_rule(rule_id="R1", code="ADM-SPLIT"), make_rule(rule_id="R2", code="HR-HC")]
        assert [r.id for r in filter_rules(rules, "hr")] == ["R2"]
        assert [r.id for r in filter_rules(rules, "rule")] == ["R1", "R2"]
        assert len(filter_rules(rules, "  ")) == 2

    def test_distribute_all(self):
        rules = [
            make_rule(rule_id="R1", source="CC-ADM"),
            make_rule("headcount", rule_id="R2", code="HR-HC", source="CC-HR"),
            make_rule(rule_id="R3", code="NOAMT", source="CC-NONE"),
        ]
        targets_by_rule = {
            "R1": pct_targets(100),
            "R2": [make_target("T5", "CC-ENG", rule_id="R2")],
        }
        results = distribute_all(rules, targets_by_rule, {"CC-ADM": 100, "CC-HR": 50},
                                 as_of=AS_OF,
                                 weights_by_method={AllocationMethod.HEADCOUNT: {"CC-ENG": 3}})

        assert [r.rule_id for r in results] == ["R1", "R2"]
        assert results[1].total_allocated == pytest.approx(50)

    def test_distribute_all_weights_per_method(self):
        rules = [
            make_rule("headcount", rule_id="R1", code="HR-HC", source="CC-HR"),
            make_rule("hours_worked", rule_id="R2", code="IT-HRS", source="CC-IT"),
        ]
        targets_by_rule = {
            rule_id: [make_target(f"{rule_id}-T1", "CC-ENG", rule_id=rule_id),
                      make_target(f"{rule_id}-T2", "CC-SAL", rule_id=rule_id)]
            for rule_id in ("R1", "R2")
        }
        weights_by_method = {
            AllocationMethod.HEADCOUNT: {"CC-ENG": 10, "CC-SAL": 10},
            AllocationMethod.HOURS_WORKED: {"CC-ENG": 300, "CC-SAL": 100},
        }
        results = distribute_all(rules, targets_by_rule, {"CC-HR": 100, "CC-IT": 100},
                                 as_of=AS_OF, weights_by_method=weights_by_method)

        assert [a.amount for a in results[0].allocations] == pytest.approx([50, 50])
        assert [a.amount for a in results[1].allocations] == pytest.approx([75, 25])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
