# data/plan_loader.py — Read household plan files, write plan outputs

import json
import os
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import pandas as pd

from config import DEFAULT_BUFFER_MONTHS, EMERGENCY_FUND_DEFAULT_RATE, OUTPUT_DIR
from planner.allocator import AllocationPlan
from planner.goals import (
    Goal, PayoutSchedule, RetirementPlan,
    build_emergency_fund, build_retirement_goal, available_budget, check_unique_ids,
)
from planner.retirement import FamilyRetirementProfile, default_inflation_rate
from planner.time_value import ReturnPhase


@dataclass
class HouseholdPlan:
    """Everything a plan file describes, ready for pricing and allocation."""
    reference_date: date
    monthly_budget: float
    funding_style: str
    goals: list = field(default_factory=list)
    monthly_income: Optional[float] = None
    monthly_expenses: Optional[float] = None
    location: Optional[str] = None
    scenarios: dict = field(default_factory=dict)    # goal_id -> RetirementScenario


# ─────────────────────────────────────────────────────────────────────────────
# PARSING
# ─────────────────────────────────────────────────────────────────────────────

def parse_date(value) -> date:
    """ISO dates; "YYYY-MM" means the first of the month."""
    return pd.Timestamp(value).date()


def parse_phases(raw: list) -> tuple:
    return tuple(ReturnPhase(int(p["length"]), float(p["rate"])) for p in raw)


def parse_goal(raw: dict) -> Goal:
    category = raw.get("category", "Other")
    details  = None
    if raw.get("payment_frequency") or raw.get("payment_period_years"):
        details = PayoutSchedule(
            frequency    = raw.get("payment_frequency", "Once"),
            period_years = raw.get("payment_period_years"),
        )
    phases = raw.get("return_phases")
    return Goal(
        id            = str(raw["id"]),
        name          = raw.get("name", str(raw["id"])),
        category      = category,
        amount        = float(raw.get("amount", 0.0)),
        target_date   = parse_date(raw["target_date"]),
        profile       = raw.get("profile"),
        return_phases = parse_phases(phases) if phases else None,
        custom_rates  = raw.get("custom_rates"),
        details       = details,
    )


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


def parse_household(raw: dict) -> FamilyRetirementProfile:
    return FamilyRetirementProfile(
        primary_age            = int(raw["primary_age"]),
        spouse_age             = int(raw["spouse_age"]),
        primary_retirement_age = int(raw["primary_retirement_age"]),
        spouse_retirement_age  = int(raw["spouse_retirement_age"]),
        strategy               = raw.get("strategy", "joint"),
        expense_ratio          = float(raw.get("expense_ratio", 1.0)),
    )


def parse_plan(raw: dict, as_of: Optional[date] = None) -> HouseholdPlan:
    """
    Build a HouseholdPlan from a decoded plan document. `as_of` replaces the
    file's reference_date, so dated goals (retirement) are built from it.
    """
    if "funding_style" not in raw:
        raise ValueError("Plan is missing 'funding_style' (waterfall | hybrid | parallel).")

    reference_date = as_of or parse_date(raw.get("reference_date", date.today()))
    income   = raw.get("monthly_income")
    expenses = raw.get("monthly_expenses")
    location = raw.get("location")

    if raw.get("budget") is not None:
        budget = float(raw["budget"])
    elif income is not None and expenses is not None:
        budget = available_budget(float(income), float(expenses))
    else:
        raise ValueError("Plan needs either 'budget' or both 'monthly_income' and 'monthly_expenses'.")

    goals     = []
    scenarios = {}

    ef = raw.get("emergency_fund")
    if ef is not None:
        ef_expenses = ef.get("monthly_expenses", expenses)
        if ef_expenses is None:
            raise ValueError("Emergency fund needs 'monthly_expenses' (in the fund or the plan).")
        goals.append(build_emergency_fund(
            monthly_expenses = float(ef_expenses),
            buffer_months    = int(ef.get("buffer_months", DEFAULT_BUFFER_MONTHS)),
            target_date      = parse_date(ef["target_date"]),
            bank_rate        = float(ef.get("bank_rate", EMERGENCY_FUND_DEFAULT_RATE)),
        ))

    goals.extend(parse_goal(g) for g in raw.get("goals", []))

    ret = raw.get("retirement")
    if ret is not None:
        household = ret.get("household")
        plan = RetirementPlan(
            today_monthly_cost = float(ret["today_monthly_cost"]),
            inflation_pct      = float(ret.get("inflation_pct", default_inflation_rate(location))),
            current_age        = _optional_int(ret.get("current_age")),
            retirement_age     = _optional_int(ret.get("retirement_age")),
            household          = parse_household(household) if household else None,
        )
        goal, scenario = build_retirement_goal(
            plan, reference_date,
            goal_id = ret.get("id", "retirement"),
            name    = ret.get("name", "Retirement"),
            profile = ret.get("profile"),
        )
        goals.append(goal)
        scenarios[goal.id] = scenario

    check_unique_ids(goals)

    return HouseholdPlan(
        reference_date   = reference_date,
        monthly_budget   = budget,
        funding_style    = raw["funding_style"],
        goals            = goals,
        monthly_income   = income,
        monthly_expenses = expenses,
        location         = location,
        scenarios        = scenarios,
    )


def load_plan(path: str, as_of: Optional[date] = None) -> HouseholdPlan:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return parse_plan(raw, as_of)


def load_actuals(path: str) -> pd.DataFrame:
    """Recorded contributions CSV: goal_id, month_index, actual_amount."""
    df = pd.read_csv(path, dtype={"goal_id": str})
    missing = {"goal_id", "month_index", "actual_amount"} - set(df.columns)
    if missing:
        raise ValueError(f"Actuals file is missing columns: {sorted(missing)}")
    return df


# ─────────────────────────────────────────────────────────────────────────────
# SAVE
# ─────────────────────────────────────────────────────────────────────────────

def save_plan_outputs(
    plan: AllocationPlan,
    report: str,
    output_dir: str = OUTPUT_DIR,
) -> dict:
    """Write schedule, goal summary and text report; returns the paths."""
    os.makedirs(output_dir, exist_ok=True)
    paths = {
        "schedule": os.path.join(output_dir, "allocation_plan.csv"),
        "summary":  os.path.join(output_dir, "goal_summary.csv"),
        "report":   os.path.join(output_dir, "plan_report.txt"),
    }
    plan.to_frame().to_csv(paths["schedule"])
    plan.summary_frame().to_csv(paths["summary"])
    with open(paths["report"], "w", encoding="utf-8") as f:
        f.write(report)
    print(f"  ✓ Reports saved to '{output_dir}'")
    return paths
