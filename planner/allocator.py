# planner/allocator.py — Spread a fixed monthly budget across priced goals

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

from config import FUNDING_STYLES, MAX_PLAN_MONTHS, COMPLETION_TOL
from planner.goals import PricedGoal, check_unique_ids, is_near_goal
from planner.time_value import monthly_rates

logger = logging.getLogger(__name__)

NOT_STARTED = "NotStarted"
FUNDING     = "Funding"
COMPLETED   = "Completed"


@dataclass(frozen=True)
class MonthlyAllocation:
    month_index: int
    per_goal_contribution: dict
    total_allocation: float
    unallocated: float


@dataclass(frozen=True)
class GoalFundingSummary:
    goal_id: str
    name: str
    amount: float
    required_pmt: float
    nominal_horizon: int
    completion_month: Optional[int]     # month index the target was reached in
    total_contributed: float
    final_balance: float

    @property
    def completed(self) -> bool:
        return self.completion_month is not None

    @property
    def months_late(self) -> Optional[int]:
        """Months past the nominal horizon (negative when early)."""
        if self.completion_month is None:
            return None
        return self.completion_month + 1 - self.nominal_horizon


@dataclass
class AllocationPlan:
    monthly_budget: float
    funding_style: str
    entries: list = field(default_factory=list)       # MonthlyAllocation per month
    states: list = field(default_factory=list)        # {goal_id: state} after each month
    summaries: list = field(default_factory=list)     # GoalFundingSummary per goal

    @property
    def goal_ids(self) -> list[str]:
        return [s.goal_id for s in self.summaries]

    @property
    def shortfall_goals(self) -> list[GoalFundingSummary]:
        """Goals finishing after their horizon, or not at all within the plan."""
        return [s for s in self.summaries if not s.completed or s.months_late > 0]

    def to_frame(self) -> pd.DataFrame:
        """One row per month: a column per goal plus total_allocation and unallocated."""
        columns = self.goal_ids + ["total_allocation", "unallocated"]
        if not self.entries:
            return pd.DataFrame(columns=columns, index=pd.Index([], name="month_index"))
        rows = [
            {**e.per_goal_contribution,
             "total_allocation": e.total_allocation,
             "unallocated": e.unallocated}
            for e in self.entries
        ]
        df = pd.DataFrame(rows, index=pd.Index([e.month_index for e in self.entries], name="month_index"))
        return df[columns]

    def state_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.states, columns=self.goal_ids).rename_axis("month_index")

    def summary_frame(self) -> pd.DataFrame:
        rows = [{
            "goal_id":           s.goal_id,
            "name":              s.name,
            "amount":            s.amount,
            "required_pmt":      s.required_pmt,
            "nominal_horizon":   s.nominal_horizon,
            "completion_month":  s.completion_month,
            "months_late":       s.months_late,
            "total_contributed": s.total_contributed,
            "final_balance":     s.final_balance,
        } for s in self.summaries]
        return pd.DataFrame(rows).set_index("goal_id") if rows else pd.DataFrame()


# ─────────────────────────────────────────────────────────────────────────────
# ACTIVE SET PER FUNDING STYLE
# ─────────────────────────────────────────────────────────────────────────────

def _hybrid_buckets(goals: list[PricedGoal]) -> list[list[int]]:
    """Emergency fund, then goals due within 5 years, then the rest."""
    emergency = [i for i, g in enumerate(goals) if g.is_emergency_fund]
    near      = [i for i, g in enumerate(goals) if not g.is_emergency_fund and is_near_goal(g)]
    far       = [i for i, g in enumerate(goals) if not g.is_emergency_fund and not is_near_goal(g)]
    return [b for b in (emergency, near, far) if b]


def _active_goals(style: str, open_goals: list[int], buckets: list[list[int]]) -> list[int]:
    if not open_goals:
        return []
    if style == "parallel":
        return open_goals
    if style == "waterfall":
        return open_goals[:1]
    # hybrid
    open_set = set(open_goals)
    for bucket in buckets:
        active = [i for i in bucket if i in open_set]
        if active:
            return active
    return []


# ─────────────────────────────────────────────────────────────────────────────
# PLANNER
# ─────────────────────────────────────────────────────────────────────────────

def allocate_budget(
    goals: list[PricedGoal],
    monthly_budget: float,
    funding_style: str,
    max_months: int = MAX_PLAN_MONTHS,
) -> AllocationPlan:
    """
    Month-by-month funding schedule for priced goals under a fixed budget.

    Algorithm (waterfall with carry-forward):
    1. Order goals: emergency fund, then by horizon, retirement last
    2. Each month the funding style decides which unfinished goals are open:
         waterfall — only the highest-priority one
         hybrid    — the first bucket (emergency / <=5y / later) with work left
         parallel  — all of them
    3. In priority order each open goal takes up to its required PMT, capped
       at what it still needs this month and at the budget left. Once a goal
       is short, lower-priority goals get nothing that month.
    4. Balances grow at each goal's phase rate; a goal completes the month its
       balance reaches the target and takes nothing afterwards.
    5. Goals not finished by their horizon keep being funded (carried
       forward) until done or max_months is reached. Required PMTs are not
       re-solved.
    """
    if funding_style not in FUNDING_STYLES:
        raise ValueError(
            f"Unknown funding style: '{funding_style}'. "
            f"Choose from: {list(FUNDING_STYLES)}"
        )
    check_unique_ids(goals)

    plan = AllocationPlan(monthly_budget=monthly_budget, funding_style=funding_style)
    if not goals or monthly_budget <= 0:
        return plan

    goals = [goals[i] for i in sorted(
        range(len(goals)), key=lambda i: (goals[i].priority, goals[i].horizon_months, i)
    )]
    n = len(goals)

    total_required = sum(g.required_pmt for g in goals)
    if total_required > monthly_budget:
        logger.warning(
            "Total required PMT (%.2f) exceeds monthly budget (%.2f); lower-priority goals will finish late",
            total_required, monthly_budget,
        )

    amounts     = np.array([g.amount for g in goals])
    pmts        = np.array([g.required_pmt for g in goals])
    rates       = [monthly_rates(g.return_phases, max_months) for g in goals]
    balances    = np.zeros(n)
    contributed = np.zeros(n)
    states      = [NOT_STARTED] * n
    completion  = [None] * n

    for i in range(n):
        if amounts[i] <= 0:
            states[i]     = COMPLETED
            completion[i] = 0

    buckets = _hybrid_buckets(goals)

    for month in range(max_months):
        open_goals = [i for i in range(n) if states[i] != COMPLETED]
        if not open_goals:
            break
        active = _active_goals(funding_style, open_goals, buckets)
        for i in active:
            if states[i] == NOT_STARTED:
                states[i] = FUNDING

        remaining     = monthly_budget
        contributions = np.zeros(n)
        short         = False

        for i in active:
            if short:
                continue
            r      = rates[i][month]
            needed = max(0.0, amounts[i] / (1 + r) - balances[i])
            due    = min(pmts[i], needed)
            if remaining < due:
                contributions[i] = remaining
                short = True
            else:
                contributions[i] = due
            remaining -= contributions[i]

        for i in open_goals:
            r = rates[i][month]
            contributed[i] += contributions[i]
            balances[i]     = (balances[i] + contributions[i]) * (1 + r)
            if states[i] == FUNDING and balances[i] >= amounts[i] * (1 - COMPLETION_TOL):
                states[i]     = COMPLETED
                completion[i] = month

        total = float(contributions.sum())
        plan.entries.append(MonthlyAllocation(
            month_index           = month,
            per_goal_contribution = {g.id: float(c) for g, c in zip(goals, contributions)},
            total_allocation      = total,
            unallocated           = max(0.0, monthly_budget - total),
        ))
        plan.states.append({g.id: s for g, s in zip(goals, states)})

    plan.summaries = [
        GoalFundingSummary(
            goal_id           = g.id,
            name              = g.name,
            amount            = float(amounts[i]),
            required_pmt      = float(pmts[i]),
            nominal_horizon   = g.horizon_months,
            completion_month  = completion[i],
            total_contributed = float(contributed[i]),
            final_balance     = float(balances[i]),
        )
        for i, g in enumerate(goals)
    ]
    return plan


# ─────────────────────────────────────────────────────────────────────────────
# REPORT
# ─────────────────────────────────────────────────────────────────────────────

def format_allocation_report(plan: AllocationPlan, preview_months: int = 12) -> str:
    """Generate a human-readable funding schedule report."""
    lines = []
    lines.append("=" * 74)
    lines.append(f"  MONTHLY FUNDING PLAN")
    lines.append(f"  Budget        : {plan.monthly_budget:,.2f} / month")
    lines.append(f"  Funding style : {plan.funding_style}")
    lines.append(f"  Plan length   : {len(plan.entries)} months")
    lines.append("=" * 74)

    if not plan.entries:
        lines.append("  Nothing to allocate (no goals or no budget).")
        lines.append("=" * 74)
        return "\n".join(lines)

    lines.append(f"  {'Goal':<24} {'Amount':>12} {'PMT':>10} {'Horizon':>8} {'Done':>6} {'Late':>6}")
    lines.append("─" * 74)
    for s in plan.summaries:
        done = f"{s.completion_month + 1}" if s.completed else "—"
        late = f"{s.months_late:+d}" if s.completed else "n/a"
        lines.append(
            f"  {s.name[:24]:<24} {s.amount:>12,.0f} {s.required_pmt:>10,.2f} "
            f"{s.nominal_horizon:>8} {done:>6} {late:>6}"
        )
    lines.append("─" * 74)

    shortfall = plan.shortfall_goals
    if shortfall:
        lines.append("\n  ⚠  SHORTFALL")
        for s in shortfall:
            if s.completed:
                lines.append(f"  • {s.name}: reaches target {s.months_late} months after its date")
            else:
                lines.append(
                    f"  • {s.name}: not reached within {len(plan.entries)} months "
                    f"({s.final_balance:,.0f} of {s.amount:,.0f})"
                )
        lines.append("  → Raise the budget, lower a target or move a date out")

    df = plan.to_frame().head(preview_months)
    names = {s.goal_id: s.name[:12] for s in plan.summaries}
    lines.append(f"\n  FIRST {len(df)} MONTHS")
    lines.append(df.rename(columns=names).round(2).to_string())
    lines.append("=" * 74)
    return "\n".join(lines)
