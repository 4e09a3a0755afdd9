"""File upload parsing — CSV/XLSX into typed model lists."""

import pandas as pd
from datetime import date
from typing import Dict, List, Optional, Tuple
from models.budget import BudgetLineItem
from models.reallocation import AllocationMethod, CostReallocationRule, ReallocationTarget

TRUE_STRINGS = {"true", "yes", "y", "1", "active"}


def _opt_float(row, col: str) -> Optional[float]:
    if col not in row.index or pd.isna(row[col]):
        return None
    return float(row[col])


def _opt_int(row, col: str) -> Optional[int]:
    value = _opt_float(row, col)
    return None if value is None else int(value)


def _opt_str(row, col: str) -> Optional[str]:
    if col not in row.index or pd.isna(row[col]):
        return None
    text = str(row[col]).strip()
    return text or None


def _opt_date(row, col: str) -> Optional[date]:
    if col not in row.index or pd.isna(row[col]):
        return None
    return pd.to_datetime(row[col]).date()


def _bool(row, col: str, default: bool = True) -> bool:
    if col not in row.index or pd.isna(row[col]):
        return default
    value = row[col]
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def parse_line_items(df: pd.DataFrame) -> List[BudgetLineItem]:
    """Convert a position budget DataFrame into BudgetLineItem objects. Blank numbers stay None."""
    items = []
    for _, row in df.iterrows():
        fte = _opt_float(row, "FTE")
        items.append(BudgetLineItem(
            headcount=_opt_int(row, "Headcount"),
            base_salary=_opt_float(row, "Base Salary"),
            benefits_amount=_opt_float(row, "Benefits Amount"),
            fully_loaded_cost=_opt_float(row, "Fully Loaded Cost"),
            position_id=_opt_str(row, "Position ID"),
            position_title=_opt_str(row, "Position Title"),
            cost_center_id=_opt_str(row, "Cost Center"),
            fte=fte if fte is not None else 1.0,
        ))
    return items


def parse_rules(df: pd.DataFrame) -> List[CostReallocationRule]:
    """Convert a reallocation rules DataFrame into CostReallocationRule objects."""
    rules = []
    for _, row in df.iterrows():
        rules.append(CostReallocationRule(
            id=str(row["Rule ID"]).strip(),
            rule_code=str(row["Rule Code"]).strip(),
            rule_name=str(row["Rule Name"]).strip(),
            source_cost_center_id=str(row["Source Cost Center"]).strip(),
            allocation_method=AllocationMethod(str(row["Allocation Method"]).strip().lower()),
            effective_date=_opt_date(row, "Effective Date"),
            end_date=_opt_date(row, "End Date"),
            is_active=_bool(row, "Is Active"),
            company_id=_opt_str(row, "Company ID"),
            description=_opt_str(row, "Description"),
        ))
    return rules


def parse_targets(df: pd.DataFrame) -> List[ReallocationTarget]:
    """Convert a reallocation targets DataFrame into ReallocationTarget objects, in file order."""
    targets = []
    for _, row in df.iterrows():
        targets.append(ReallocationTarget(
            id=str(row["Target ID"]).strip(),
            reallocation_rule_id=str(row["Rule ID"]).strip(),
            target_cost_center_id=str(row["Target Cost Center"]).strip(),
            allocation_percentage=_opt_float(row, "Allocation %"),
            allocation_amount=_opt_float(row, "Allocation Amount"),
            notes=_opt_str(row, "Notes"),
            is_active=_bool(row, "Is Active"),
        ))
    return targets


def group_targets(targets: List[ReallocationTarget]) -> Dict[str, List[ReallocationTarget]]:
    """Targets keyed by owning rule id, persisted order preserved."""
    grouped: Dict[str, List[ReallocationTarget]] = {}
    for t in targets:
        grouped.setdefault(t.reallocation_rule_id, []).append(t)
    return grouped


def parse_weights(df: pd.DataFrame) -> Dict[str, float]:
    """Convert a cost center weights DataFrame (headcount or hours) into a lookup.

    Rows with a blank weight are left out, so the cost center counts as missing.
    """
    weights = {}
    for _, row in df.iterrows():
        if pd.isna(row["Weight"]):
            continue
        weights[str(row["Cost Center"]).strip()] = float(row["Weight"])
    return weights


def load_file(uploaded_file) -> pd.DataFrame:
    """Load an uploaded file (CSV or XLSX) into a DataFrame."""
    name = uploaded_file.name.lower()
    if name.endswith(".csv"):
        return pd.read_csv(uploaded_file)
    elif name.endswith(".xlsx") or name.endswith(".xls"):
        return pd.read_excel(uploaded_file, engine="openpyxl")
    else:
        raise ValueError(f"Unsupported file format: {name}. Use CSV or XLSX.")


# Expected sheet names for a reallocation workbook (case-insensitive matching)
SHEET_ALIASES = {
    "rules": ["rules", "reallocation rules", "cost reallocations", "reallocations"],
    "targets": ["targets", "reallocation targets", "rule targets"],
}


def _match_sheet(sheet_names: List[str], category: str) -> str:
    """Find a sheet name matching the given category. Returns the matched name or raises."""
    aliases = SHEET_ALIASES[category]
    lower_map = {s.lower().strip(): s for s in sheet_names}
    for alias in aliases:
        if alias in lower_map:
            return lower_map[alias]
    raise ValueError(
        f"Could not find a sheet for '{category}'. "
        f"Expected one of: {aliases}. "
        f"Found sheets: {sheet_names}"
    )


def load_reallocation_workbook(uploaded_file) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Load an Excel workbook with a rules tab and a targets tab.

    Returns (rules_df, targets_df).
    """
    xl = pd.ExcelFile(uploaded_file, engine="openpyxl")
    rules_df = pd.read_excel(xl, sheet_name=_match_sheet(xl.sheet_names, "rules"))
    targets_df = pd.read_excel(xl, sheet_name=_match_sheet(xl.sheet_names, "targets"))
    return rules_df, targets_df


def load_csv_path(path: str) -> pd.DataFrame:
    """Load a CSV file from a local path."""
    return pd.read_csv(path)
