"""Findings reported by the allocation validator and distributor.

Findings are returned, never raised, so callers can show every problem with
a rule at once and decide for themselves whether to block an action.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class FindingCode(str, Enum):
    STRUCTURAL = "structural"                  # Rule/targets internally inconsistent
    OUT_OF_WINDOW = "out_of_window"            # Distribution date outside rule window, or rule inactive
    DEGENERATE_INPUT = "degenerate_input"      # All weights zero; fallback applied
    UNALLOCATED_RESIDUAL = "unallocated_residual"
    NO_OP_RULE = "no_op_rule"                  # No active targets
    FIXED_AMOUNT_SHORTFALL = "fixed_amount_shortfall"
    MISSING_VALUE = "missing_value"
    DUPLICATE_TARGET = "duplicate_target"
    SELF_TARGET = "self_target"
    DUPLICATE_RULE_CODE = "duplicate_rule_code"
    OUT_OF_RANGE = "out_of_range"              # Adjustment outside suggested UI range


@dataclass(frozen=True)
class Finding:
    severity: Severity
    code: FindingCode
    message: str
    target_id: Optional[str] = None


@dataclass
class ValidationResult:
    findings: List[Finding] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> List[Finding]:
        return [f for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Finding]:
        return [f for f in self.findings if f.severity == Severity.WARNING]

    @property
    def infos(self) -> List[Finding]:
        return [f for f in self.findings if f.severity == Severity.INFO]

    def has(self, code: FindingCode) -> bool:
        return any(f.code == code for f in self.findings)

    def add(self, severity: Severity, code: FindingCode, message: str,
            target_id: Optional[str] = None) -> Finding:
        finding = Finding(severity, code, message, target_id)
        self.findings.append(finding)
        return finding

    def error(self, code: FindingCode, message: str, target_id: Optional[str] = None) -> Finding:
        return self.add(Severity.ERROR, code, message, target_id)

    def warning(self, code: FindingCode, message: str, target_id: Optional[str] = None) -> Finding:
        return self.add(Severity.WARNING, code, message, target_id)

    def info(self, code: FindingCode, message: str, target_id: Optional[str] = None) -> Finding:
        return self.add(Severity.INFO, code, message, target_id)

    def extend(self, other: "ValidationResult") -> None:
        self.findings.extend(other.findings)

    def messages(self, severities: Optional[Iterable[Severity]] = None) -> List[str]:
        wanted = set(severities) if severities is not None else set(Severity)
        return [f.message for f in self.findings if f.severity in wanted]
