# planner/feasibility.py — Budget feasibility and what-if suggestions
#
# When the goals need more per month than the budget allows, suggest the two
# adjustments a user can make to a single goal: a smaller target or a later
# date. Suggestions are re-priced with the real engine, so the quoted saving
# is exact for that goal. The emergency fund is never adjusted.

import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from config import REDUCE_AMOUNT_PCT, EXTEND_MONTHS, MAX_SUGGESTIONS
from planner.goals import Goal, PricedGoal, price_goal, with_updates
from planner.time_value import add_months


@dataclass(frozen=True)
class Suggestion:
    kind: str                       # reduce_amount | extend_timeline
    goal_id: str
    goal_name: str
    description: str
    monthly_saving: float
    new_amount: Optional[float] = None
    new_target_date: Optional[date] = None


def check_feasibility(goals: list[PricedGoal], monthly_budget: float) -> dict:
    """Compare the sum of required PMTs with the budget."""
    total_required = sum(g.required_pmt for g in goals)
    return {
        "is_feasible":    total_required <= monthly_budget,
        "total_required": total_required,
        "over_budget":    max(0.0, total_required - monthly_budget),
    }


def suggest_adjustments(
    goals: list[Goal],
    monthly_budget: float,
    reference_date: date,
    limit: int = MAX_SUGGESTIONS,
) -> list[Suggestion]:
    """
    Up to `limit` suggestions, most flexible goals (furthest target date)
    first. Empty when the plan already fits the budget.
    """
    priced = {g.id: price_goal(g, reference_date) for g in goals}
    if check_feasibility(list(priced.values()), monthly_budget)["is_feasible"]:
        return []

    candidates = sorted(
        (g for g in goals if not g.is_emergency_fund),
        key=lambda g: g.target_date,
        reverse=True,
    )

    suggestions = []
    for goal in candidates:
        current = priced[goal.id].required_pmt

        reduction  = math.ceil(goal.amount * REDUCE_AMOUNT_PCT)
        new_amount = goal.amount - reduction
        reduced    = price_goal(with_updates(goal, amount=new_amount), reference_date)
        suggestions.append(Suggestion(
            kind           = "reduce_amount",
            goal_id        = goal.id,
            goal_name      = goal.name,
            description    = f"Reduce {goal.name} target by {reduction:,.0f}",
            monthly_saving = current - reduced.required_pmt,
            new_amount     = new_amount,
        ))

        new_date = add_months(goal.target_date, EXTEND_MONTHS)
        extended = price_goal(with_updates(goal, target_date=new_date, return_phases=None), reference_date)
        suggestions.append(Suggestion(
            kind            = "extend_timeline",
            goal_id         = goal.id,
            goal_name       = goal.name,
            description     = f"Extend {goal.name} timeline by {EXTEND_MONTHS} months",
            monthly_saving  = current - extended.required_pmt,
            new_target_date = new_date,
        ))

    return suggestions[:limit]


def apply_suggestion(goals: list[Goal], suggestion: Suggestion) -> list[Goal]:
    """New goal list with the suggestion applied to its goal."""
    updated = []
    for goal in goals:
        if goal.id != suggestion.goal_id:
            updated.append(goal)
        elif suggestion.kind == "reduce_amount":
            updated.append(with_updates(goal, amount=suggestion.new_amount))
        elif suggestion.kind == "extend_timeline":
            updated.append(with_updates(goal, target_date=suggestion.new_target_date, return_phases=None))
        else:
            raise ValueError(f"Unknown suggestion kind: {suggestion.kind}")
    return updated
