"""Generate synthetic datasets for the budget scenario and cost allocation engine."""

import pandas as pd
import random
import os


def generate_line_items_df() -> pd.DataFrame:
    """Position budget line items: one row per position across five cost centers."""
    random.seed(42)
    positions = [
        ("P-001", "Software Engineer",   "CC-ENG", 12, 95_000),
        ("P-002", "Engineering Manager", "CC-ENG", 2,  140_000),
        ("P-003", "Account Executive",   "CC-SAL", 8,  70_000),
        ("P-004", "Sales Manager",       "CC-SAL", 1,  115_000),
        ("P-005", "HR Generalist",       "CC-HR",  3,  60_000),
        ("P-006", "Payroll Specialist",  "CC-HR",  2,  58_000),
        ("P-007", "Financial Analyst",   "CC-FIN", 4,  75_000),
        ("P-008", "Office Coordinator",  "CC-ADM", 2,  45_000),
    ]
    rows = []
    for pos_id, title, cc, hc, salary in positions:
        base = hc * salary
        benefits = round(base * random.uniform(0.15, 0.25))
        rows.append({
            "Position ID": pos_id,
            "Position Title": title,
            "Cost Center": cc,
            "Headcount": hc,
            "FTE": 1.0,
            "Base Salary": base,
            "Benefits Amount": benefits,
            "Fully Loaded Cost": round(base * 1.3 + benefits),
        })
    return pd.DataFrame(rows)


def generate_rules_df() -> pd.DataFrame:
    """Reallocation rules moving shared-service cost out of admin and HR."""
    return pd.DataFrame([
        {"Rule ID": "R1", "Rule Code": "ADM-SPLIT", "Rule Name": "Admin overhead split",
         "Company ID": "C1", "Source Cost Center": "CC-ADM", "Allocation Method": "percentage",
         "Effective Date": "2025-01-01", "End Date": None, "Is Active": True},
        {"Rule ID": "R2", "Rule Code": "HR-HC", "Rule Name": "HR services by headcount",
         "Company ID": "C1", "Source Cost Center": "CC-HR", "Allocation Method": "headcount",
         "Effective Date": "2025-01-01", "End Date": "2025-12-31", "Is Active": True},
        {"Rule ID": "R3", "Rule Code": "FIN-FIX", "Rule Name": "Finance chargebacks",
         "Company ID": "C1", "Source Cost Center": "CC-FIN", "Allocation Method": "fixed_amount",
         "Effective Date": "2025-01-01", "End Date": None, "Is Active": True},
    ])


def generate_targets_df() -> pd.DataFrame:
    """Targets for the sample rules, in persisted order."""
    return pd.DataFrame([
        {"Target ID": "T1", "Rule ID": "R1", "Target Cost Center": "CC-ENG", "Allocation %": 50.0, "Allocation Amount": None},
        {"Target ID": "T2", "Rule ID": "R1", "Target Cost Center": "CC-SAL", "Allocation %": 30.0, "Allocation Amount": None},
        {"Target ID": "T3", "Rule ID": "R1", "Target Cost Center": "CC-FIN", "Allocation %": 20.0, "Allocation Amount": None},
        {"Target ID": "T4", "Rule ID": "R2", "Target Cost Center": "CC-ENG", "Allocation %": None, "Allocation Amount": None},
        {"Target ID": "T5", "Rule ID": "R2", "Target Cost Center": "CC-SAL", "Allocation %": None, "Allocation Amount": None},
        {"Target ID": "T6", "Rule ID": "R3", "Target Cost Center": "CC-ENG", "Allocation %": None, "Allocation Amount": 40_000.0},
        {"Target ID": "T7", "Rule ID": "R3", "Target Cost Center": "CC-SAL", "Allocation %": None, "Allocation Amount": 20_000.0},
    ])


def generate_weights_df() -> pd.DataFrame:
    """Headcount per cost center, matching the sample line items."""
    items = generate_line_items_df()
    hc = items.groupby("Cost Center", as_index=False)["Headcount"].sum()
    return hc.rename(columns={"Headcount": "Weight"})


def generate_sample_csvs(output_dir: str):
    """Write sample CSV files to the given directory."""
    os.makedirs(output_dir, exist_ok=True)
    generate_line_items_df().to_csv(os.path.join(output_dir, "line_items.csv"), index=False)
    generate_rules_df().to_csv(os.path.join(output_dir, "rules.csv"), index=False)
    generate_targets_df().to_csv(os.path.join(output_dir, "targets.csv"), index=False)
    generate_weights_df().to_csv(os.path.join(output_dir, "weights.csv"), index=False)


def generate_sample_excel(output_dir: str):
    """Write a reallocation workbook with rules and targets tabs."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "reallocations.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        generate_rules_df().to_excel(writer, sheet_name="Rules", index=False)
        generate_targets_df().to_excel(writer, sheet_name="Targets", index=False)


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    generate_sample_csvs(out)
    generate_sample_excel(out)
    print("Sample CSV and Excel files generated in sample_files/")
