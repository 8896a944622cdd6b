# planner/progress.py — Planned vs actual contributions

from typing import Optional

import pandas as pd

from planner.allocator import AllocationPlan

PROGRESS_COLUMNS = [
    "goal_id", "month_index", "planned_amount", "actual_amount",
    "cumulative_planned", "cumulative_actual", "variance",
]


def track_progress(
    plan: AllocationPlan,
    actuals: pd.DataFrame,
    goal_ids: Optional[list[str]] = None,
) -> pd.DataFrame:
    """
    Join recorded contributions with the plan.

    actuals: columns goal_id | month_index | actual_amount. Several rows for
    the same goal and month are summed. Months with a plan but no record count
    as zero actual; records past the end of the plan count as unplanned.

    Returns one row per goal and month, with running totals and
    variance = cumulative_actual - cumulative_planned (negative = behind).
    """
    planned = plan.to_frame().drop(columns=["total_allocation", "unallocated"])
    planned = (
        planned.reset_index()
        .melt(id_vars="month_index", var_name="goal_id", value_name="planned_amount")
    )

    actual = actuals.astype({"goal_id": str, "month_index": "int64", "actual_amount": float})
    actual = actual.groupby(["goal_id", "month_index"], as_index=False)["actual_amount"].sum()
    planned["month_index"] = planned["month_index"].astype("int64")

    df = planned.merge(actual, on=["goal_id", "month_index"], how="outer")
    if goal_ids is not None:
        df = df[df["goal_id"].isin(goal_ids)]
    if df.empty:
        return pd.DataFrame(columns=PROGRESS_COLUMNS)

    df["planned_amount"] = df["planned_amount"].fillna(0.0).astype(float)
    df["actual_amount"]  = df["actual_amount"].fillna(0.0).astype(float)
    df["month_index"]    = df["month_index"].astype(int)
    df = df.sort_values(["goal_id", "month_index"]).reset_index(drop=True)

    df["cumulative_planned"] = df.groupby("goal_id")["planned_amount"].cumsum()
    df["cumulative_actual"]  = df.groupby("goal_id")["actual_amount"].cumsum()
    df["variance"]           = df["cumulative_actual"] - df["cumulative_planned"]
    return df[PROGRESS_COLUMNS]


def current_progress(progress: pd.DataFrame, as_of_month: Optional[int] = None) -> pd.DataFrame:
    """Latest cumulative figures per goal, optionally up to a month."""
    if as_of_month is not None:
        progress = progress[progress["month_index"] <= as_of_month]
    if progress.empty:
        return pd.DataFrame(columns=["cumulative_planned", "cumulative_actual", "variance"])
    latest = progress.sort_values("month_index").groupby("goal_id").tail(1)
    return latest.set_index("goal_id")[["cumulative_planned", "cumulative_actual", "variance"]]
