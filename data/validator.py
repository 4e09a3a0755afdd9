"""Schema validation for uploaded data files."""

from dataclasses import dataclass, field
from typing import List
import pandas as pd

from config.defaults import ALLOCATION_METHODS


@dataclass
class SchemaCheck:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


LINE_ITEM_REQUIRED_COLUMNS = [
    "Headcount",
    "Base Salary",
    "Benefits Amount",
    "Fully Loaded Cost",
]

RULE_REQUIRED_COLUMNS = [
    "Rule ID",
    "Rule Code",
    "Rule Name",
    "Source Cost Center",
    "Allocation Method",
    "Effective Date",
]

TARGET_REQUIRED_COLUMNS = [
    "Target ID",
    "Rule ID",
    "Target Cost Center",
]


def _check_required_columns(df: pd.DataFrame, required: List[str], file_label: str) -> SchemaCheck:
    result = SchemaCheck()
    missing = [col for col in required if col not in df.columns]
    if missing:
        result.is_valid = False
        result.errors.append(f"{file_label}: Missing required columns: {', '.join(missing)}")
    if df.empty:
        result.is_valid = False
        result.errors.append(f"{file_label}: File contains no data rows.")
    return result


def validate_line_items(df: pd.DataFrame) -> SchemaCheck:
    result = _check_required_columns(df, LINE_ITEM_REQUIRED_COLUMNS, "Position Budget")
    if not result.is_valid:
        return result

    for col in LINE_ITEM_REQUIRED_COLUMNS:
        if (df[col] < 0).any():
            result.is_valid = False
            result.errors.append(f"Position Budget: {col} cannot be negative.")

    blanks = df[LINE_ITEM_REQUIRED_COLUMNS].isna().sum()
    for col, count in blanks.items():
        if count:
            result.warnings.append(f"Position Budget: {count} blank {col} value(s) will be treated as 0.")

    return result


def validate_rules(df: pd.DataFrame) -> SchemaCheck:
    result = _check_required_columns(df, RULE_REQUIRED_COLUMNS, "Reallocation Rules")
    if not result.is_valid:
        return result

    methods = df["Allocation Method"].astype(str).str.strip().str.lower()
    bad = sorted(set(methods[~methods.isin(ALLOCATION_METHODS)]))
    if bad:
        result.is_valid = False
        result.errors.append(
            f"Reallocation Rules: Unknown allocation methods {bad}. Expected one of {ALLOCATION_METHODS}."
        )

    if df["Effective Date"].isna().any():
        result.is_valid = False
        result.errors.append("Reallocation Rules: Effective Date is required for every rule.")

    dupes = df.duplicated(subset=["Rule ID"], keep=False)
    if dupes.any():
        result.is_valid = False
        result.errors.append(f"Reallocation Rules: Duplicate rule ids: {df[dupes]['Rule ID'].unique().tolist()}")

    code_cols = ["Company ID", "Rule Code"] if "Company ID" in df.columns else ["Rule Code"]
    code_dupes = df.duplicated(subset=code_cols, keep=False)
    if code_dupes.any():
        result.warnings.append(
            f"Reallocation Rules: Rule codes used more than once: "
            f"{df[code_dupes]['Rule Code'].unique().tolist()}. Only one may be active."
        )

    return result


def validate_targets(df: pd.DataFrame) -> SchemaCheck:
    result = _check_required_columns(df, TARGET_REQUIRED_COLUMNS, "Reallocation Targets")
    if not result.is_valid:
        return result

    if "Allocation %" not in df.columns and "Allocation Amount" not in df.columns:
        result.is_valid = False
        result.errors.append(
            "Reallocation Targets: Need an 'Allocation %' or 'Allocation Amount' column."
        )
        return result

    if "Allocation %" in df.columns:
        pct = df["Allocation %"].dropna()
        if ((pct < 0) | (pct > 100)).any():
            result.is_valid = False
            result.errors.append("Reallocation Targets: Allocation % must be between 0 and 100.")

    if "Allocation Amount" in df.columns and (df["Allocation Amount"].dropna() < 0).any():
        result.is_valid = False
        result.errors.append("Reallocation Targets: Allocation Amount cannot be negative.")

    return result


def validate_cross_file(rules_df: pd.DataFrame, targets_df: pd.DataFrame) -> SchemaCheck:
    """Check that targets point at rules that exist."""
    result = SchemaCheck()
    rule_ids = set(rules_df["Rule ID"].astype(str).str.strip())
    target_rule_ids = set(targets_df["Rule ID"].astype(str).str.strip())

    orphans = target_rule_ids - rule_ids
    without_targets = rule_ids - target_rule_ids

    if orphans:
        result.warnings.append(
            f"Targets for unknown rules: {', '.join(sorted(orphans))}. These will be ignored."
        )
    if without_targets:
        result.warnings.append(
            f"Rules without targets: {', '.join(sorted(without_targets))}. "
            "They will not move any cost."
        )
    return result
