# planner/goals.py — Goal model, return-phase glide paths and goal pricing
#
# Categories: Education, Travel, Gift, Home, Retirement, Other
# (the emergency fund is an "Other" goal with a fixed id)
#
# Each goal category defines:
#   - Typical horizon and guidance notes
#   - Whether funds are paid out in instalments after the target date
#   - Which category-specific details it accepts
#
# Pricing a goal derives its horizon from the reference date, builds the
# return phases from the risk profile glide path and solves the monthly PMT.

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Union

from config import (
    DEFAULT_RATES, SHORT_HORIZON_YEARS, MEDIUM_HORIZON_YEARS, DERISK_MONTHS,
    GLIDEPATH_SPLIT, PAYOUT_PHASE_RATE, FALLBACK_PHASE, NEAR_GOAL_MONTHS,
    EMERGENCY_FUND_ID, EMERGENCY_FUND_NAME, EMERGENCY_FUND_DEFAULT_RATE,
    EMERGENCY_FUND_MIN_RATE, DEFAULT_BUFFER_MONTHS,
)
from planner.retirement import (
    FamilyRetirementProfile, RetirementScenario, resolve_retirement_scenario, inflation_label,
)
from planner.time_value import (
    ReturnPhase, PAYMENT_FREQUENCIES, Ok, Err, PMTResult,
    add_months, horizon_months, try_required_pmt,
)

logger = logging.getLogger(__name__)

GOAL_CATEGORIES = ("Education", "Travel", "Gift", "Home", "Retirement", "Other")
RISK_PROFILES   = ("Conservative", "Balanced", "Growth")

# ─────────────────────────────────────────────────────────────────────────────
# GOAL PROFILES
# ─────────────────────────────────────────────────────────────────────────────

GOAL_PROFILES = {

    "Education": {
        "display_name": "Education",
        "typical_horizon": (2, 18),
        "allows_payout": True,
        "default_frequency": "Annual",
        "notes": [
            "Tuition is usually paid per term: set a payout schedule",
            "De-risk in the last two years before the first instalment",
            "School fees abroad often rise faster than general inflation",
        ],
    },

    "Travel": {
        "display_name": "Travel",
        "typical_horizon": (1, 5),
        "allows_payout": False,
        "default_frequency": "Once",
        "notes": [
            "Short horizon: keep this money in savings, not markets",
            "Book early to lock in prices",
        ],
    },

    "Gift": {
        "display_name": "Gift",
        "typical_horizon": (1, 10),
        "allows_payout": False,
        "default_frequency": "Once",
        "notes": [
            "Fixed-date goal: protect the balance as the date approaches",
        ],
    },

    "Home": {
        "display_name": "Home",
        "typical_horizon": (3, 15),
        "allows_payout": True,
        "default_frequency": "Once",
        "notes": [
            "Down payment plus fees: budget 5-10% above the deposit",
            "Payments spread over years work like a mortgage schedule",
        ],
    },

    "Retirement": {
        "display_name": "Retirement",
        "typical_horizon": (10, 45),
        "allows_payout": False,
        "default_frequency": "Once",
        "notes": [
            "Sized with the 4% rule: 25x annual spend at retirement",
            "Revisit the plan when either partner changes retirement age",
            "Check pension portability when moving between countries",
        ],
    },

    "Other": {
        "display_name": "Other",
        "typical_horizon": (1, 40),
        "allows_payout": False,
        "default_frequency": "Once",
        "notes": [
            "Give the goal a clear amount and date so it can be tracked",
        ],
    },
}


# ─────────────────────────────────────────────────────────────────────────────
# CATEGORY DETAILS
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PayoutSchedule:
    """Education/Home: funds disbursed in instalments after the target date."""
    frequency: str = "Once"
    period_years: Optional[float] = None

    def __post_init__(self):
        if self.frequency not in PAYMENT_FREQUENCIES:
            raise ValueError(
                f"Unknown payment frequency: '{self.frequency}'. "
                f"Choose from: {list(PAYMENT_FREQUENCIES)}"
            )


@dataclass(frozen=True)
class RetirementPlan:
    """Retirement: today's spend, inflation and either one person or a household."""
    today_monthly_cost: float
    inflation_pct: float
    current_age: Optional[int] = None
    retirement_age: Optional[int] = None
    household: Optional[FamilyRetirementProfile] = None

    def scenario(self) -> RetirementScenario:
        return resolve_retirement_scenario(
            today_monthly_cost = self.today_monthly_cost,
            inflation_rate_pct = self.inflation_pct,
            current_age        = self.current_age,
            retirement_age     = self.retirement_age,
            household          = self.household,
        )


@dataclass(frozen=True)
class EmergencyBuffer:
    """Emergency fund: months of expenses held in a savings account."""
    monthly_expenses: float
    buffer_months: int = DEFAULT_BUFFER_MONTHS
    bank_rate: float = EMERGENCY_FUND_DEFAULT_RATE


GoalDetails = Union[PayoutSchedule, RetirementPlan, EmergencyBuffer, None]

_ALLOWED_DETAILS = {
    "Education":  (PayoutSchedule,),
    "Home":       (PayoutSchedule,),
    "Retirement": (RetirementPlan,),
    "Other":      (EmergencyBuffer,),
    "Travel":     (),
    "Gift":       (),
}


# ─────────────────────────────────────────────────────────────────────────────
# GOAL
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Goal:
    """
    A savings target. Amount may still be zero while a goal is a draft; the
    horizon and PMT are never stored here, see price_goal.
    """
    id: str
    name: str
    category: str
    amount: float
    target_date: date
    profile: Optional[str] = None                      # None -> recommended for horizon
    return_phases: Optional[tuple] = None              # None -> glide path from profile
    custom_rates: Optional[dict] = None                # {"high", "mid", "low"}
    details: GoalDetails = None

    def __post_init__(self):
        if self.category not in GOAL_CATEGORIES:
            raise ValueError(
                f"Unknown goal category: '{self.category}'. "
                f"Choose from: {list(GOAL_CATEGORIES)}"
            )
        if self.profile is not None and self.profile not in RISK_PROFILES:
            raise ValueError(
                f"Unknown risk profile: '{self.profile}'. "
                f"Choose from: {list(RISK_PROFILES)}"
            )
        if self.details is not None and not isinstance(self.details, _ALLOWED_DETAILS[self.category]):
            raise ValueError(
                f"{type(self.details).__name__} is not valid for a {self.category} goal."
            )
        if isinstance(self.details, EmergencyBuffer) and self.id != EMERGENCY_FUND_ID:
            raise ValueError(f"Emergency buffer details require goal id '{EMERGENCY_FUND_ID}'.")
        if self.return_phases is not None:
            object.__setattr__(self, "return_phases", tuple(self.return_phases))

    @property
    def is_emergency_fund(self) -> bool:
        return self.id == EMERGENCY_FUND_ID

    @property
    def payout(self) -> Optional[PayoutSchedule]:
        return self.details if isinstance(self.details, PayoutSchedule) else None


@dataclass(frozen=True)
class PricedGoal:
    """A goal with everything derived from it: horizon, phases, PMT and priority."""
    goal: Goal
    horizon_months: int
    return_phases: tuple
    required_pmt: float
    priority: int
    status: PMTResult = field(default=None)

    @property
    def id(self) -> str:
        return self.goal.id

    @property
    def name(self) -> str:
        return self.goal.name

    @property
    def amount(self) -> float:
        return max(0.0, self.goal.amount)

    @property
    def is_emergency_fund(self) -> bool:
        return self.goal.is_emergency_fund

    @property
    def fell_back(self) -> bool:
        return isinstance(self.status, Err)


# ─────────────────────────────────────────────────────────────────────────────
# RISK PROFILE & GLIDE PATH
# ─────────────────────────────────────────────────────────────────────────────

def recommended_profile(horizon: int) -> str:
    """Conservative up to 3 years, Balanced up to 7, Growth beyond."""
    years = horizon / 12
    if years <= SHORT_HORIZON_YEARS:
        return "Conservative"
    if years <= MEDIUM_HORIZON_YEARS:
        return "Balanced"
    return "Growth"


def build_return_phases(
    horizon: int,
    profile: str,
    payment_period_years: Optional[float] = None,
    custom_rates: Optional[dict] = None,
) -> list[ReturnPhase]:
    """
    Glide path for a horizon:
      <= 3 years : low rate throughout
      <= 7 years : high rate, then the last 24 months at the low rate
      longer     : high 72% / mid 16% / low for the remainder
    A payout period appends a drawdown phase after the horizon.
    """
    if custom_rates is None:
        if profile not in DEFAULT_RATES:
            raise ValueError(f"Unknown risk profile: '{profile}'. Choose from: {list(RISK_PROFILES)}")
        rates = DEFAULT_RATES[profile]
    else:
        rates = custom_rates

    years = horizon / 12
    if years <= SHORT_HORIZON_YEARS:
        phases = [ReturnPhase(horizon, rates["low"])]
    elif years <= MEDIUM_HORIZON_YEARS:
        phases = [
            ReturnPhase(horizon - DERISK_MONTHS, rates["high"]),
            ReturnPhase(DERISK_MONTHS, rates["low"]),
        ]
    else:
        high = math.floor(horizon * GLIDEPATH_SPLIT[0])
        mid  = math.floor(horizon * GLIDEPATH_SPLIT[1])
        low  = horizon - high - mid
        phases = [
            ReturnPhase(high, rates["high"]),
            ReturnPhase(mid,  rates["mid"]),
            ReturnPhase(low,  rates["low"]),
        ]

    if payment_period_years:
        drawdown = max(1, int(round(payment_period_years * 12)))
        phases.append(ReturnPhase(drawdown, PAYOUT_PHASE_RATE))
    return phases


# ─────────────────────────────────────────────────────────────────────────────
# PRICING
# ─────────────────────────────────────────────────────────────────────────────

def goal_priority(goal: Goal) -> int:
    """0 = emergency fund, 1 = ordinary goals, 2 = retirement."""
    if goal.is_emergency_fund:
        return 0
    if goal.category == "Retirement":
        return 2
    return 1


def _phases_for(goal: Goal, horizon: int) -> list[ReturnPhase]:
    if goal.return_phases is not None:
        return list(goal.return_phases)
    if isinstance(goal.details, EmergencyBuffer):
        rate = max(EMERGENCY_FUND_MIN_RATE, goal.details.bank_rate or EMERGENCY_FUND_DEFAULT_RATE)
        return [ReturnPhase(horizon, rate)]
    profile = goal.profile or recommended_profile(horizon)
    period  = goal.payout.period_years if goal.payout else None
    return build_return_phases(horizon, profile, period, goal.custom_rates)


def price_goal(goal: Goal, reference_date: date) -> PricedGoal:
    """
    Derive horizon, phases and required PMT for a goal as of reference_date.
    A failed calculation is logged and priced at the full amount over a
    single one-month phase, so the plan still shows an obviously-wrong number.
    """
    horizon = horizon_months(reference_date, goal.target_date)
    amount  = max(0.0, goal.amount)

    try:
        phases = _phases_for(goal, horizon)
    except (ValueError, TypeError, KeyError) as e:
        phases = None
        result = Err(f"{type(e).__name__}: {e}")
    else:
        payout = goal.payout
        result = try_required_pmt(
            amount, phases, horizon,
            payout.frequency if payout else None,
            payout.period_years if payout else None,
        )

    if isinstance(result, Ok):
        pmt = result.value
    else:
        logger.warning("PMT calculation failed for goal %s (%s); using amount as PMT",
                       goal.id, result.reason)
        pmt    = amount
        phases = [ReturnPhase(*FALLBACK_PHASE)]

    return PricedGoal(
        goal           = goal,
        horizon_months = horizon,
        return_phases  = tuple(phases),
        required_pmt   = pmt,
        priority       = goal_priority(goal),
        status         = result,
    )


def price_goals(goals: list[Goal], reference_date: date) -> list[PricedGoal]:
    """Price every goal and order them by funding priority, then horizon."""
    priced = [price_goal(g, reference_date) for g in goals]
    order  = sorted(range(len(priced)), key=lambda i: (priced[i].priority, priced[i].horizon_months, i))
    return [priced[i] for i in order]


# ─────────────────────────────────────────────────────────────────────────────
# BUILDERS
# ─────────────────────────────────────────────────────────────────────────────

def build_emergency_fund(
    monthly_expenses: float,
    buffer_months: int,
    target_date: date,
    bank_rate: float = EMERGENCY_FUND_DEFAULT_RATE,
) -> Goal:
    """Emergency fund goal: buffer_months of expenses, saved in a bank account."""
    return Goal(
        id          = EMERGENCY_FUND_ID,
        name        = EMERGENCY_FUND_NAME,
        category    = "Other",
        amount      = max(0.0, monthly_expenses * buffer_months),
        target_date = target_date,
        profile     = "Conservative",
        details     = EmergencyBuffer(monthly_expenses, buffer_months, bank_rate),
    )


def build_retirement_goal(
    plan: RetirementPlan,
    reference_date: date,
    goal_id: str = "retirement",
    name: str = "Retirement",
    profile: Optional[str] = None,
) -> tuple[Goal, RetirementScenario]:
    """Turn a retirement plan into a Retirement goal dated at the retirement horizon."""
    scenario = plan.scenario()
    goal = Goal(
        id          = goal_id,
        name        = name,
        category    = "Retirement",
        amount      = scenario.total_amount_needed,
        target_date = add_months(reference_date, scenario.years_to_retirement * 12),
        profile     = profile,
        details     = plan,
    )
    return goal, scenario


def with_updates(goal: Goal, **changes) -> Goal:
    """Copy of a goal with fields changed (goals are immutable)."""
    return replace(goal, **changes)


def available_budget(monthly_income: float, monthly_expenses: float) -> float:
    """Monthly savings capacity: income left after expenses, never negative."""
    return max(0.0, monthly_income - monthly_expenses)


def check_unique_ids(goals) -> None:
    """Goals (or priced goals) are keyed by id everywhere downstream."""
    seen = set()
    for g in goals:
        if g.id in seen:
            raise ValueError(f"Duplicate goal id: '{g.id}'. Every goal needs its own id.")
        seen.add(g.id)


def is_near_goal(priced: PricedGoal) -> bool:
    return priced.horizon_months <= NEAR_GOAL_MONTHS


# ─────────────────────────────────────────────────────────────────────────────
# VALIDATION
# ─────────────────────────────────────────────────────────────────────────────

def validate_goal_inputs(goal: Goal, reference_date: date) -> list[str]:
    """Returns list of warnings for the user (not errors — just guidance)."""
    warnings_list = []
    profile = GOAL_PROFILES[goal.category]
    horizon = horizon_months(reference_date, goal.target_date)
    years   = horizon / 12

    if goal.amount <= 0:
        warnings_list.append(f"'{goal.name}' has no target amount yet.")

    if goal.target_date <= reference_date:
        warnings_list.append(
            f"'{goal.name}' target date is not in the future; it is treated as due next month."
        )

    min_h, max_h = profile["typical_horizon"]
    if not goal.is_emergency_fund and years < min_h:
        warnings_list.append(
            f"Typical horizon for {goal.category} is {min_h}-{max_h} years. "
            f"'{goal.name}' is {years:.1f} years away — the monthly amount will be high."
        )
    if years > max_h:
        warnings_list.append(
            f"Horizon of {years:.0f} years is unusually long for {goal.category}."
        )

    if isinstance(goal.details, RetirementPlan):
        plan = goal.details
        if plan.household is not None:
            hh = plan.household
            if hh.primary_years <= 0 or hh.spouse_years <= 0:
                warnings_list.append("Retirement age must be above current age for both partners.")
        elif plan.current_age is not None and plan.retirement_age is not None:
            if plan.retirement_age <= plan.current_age:
                warnings_list.append("Retirement age must be above current age.")

    if goal.payout and goal.payout.frequency != "Once" and not goal.payout.period_years:
        warnings_list.append(
            f"'{goal.name}' pays out {goal.payout.frequency.lower()} but has no payout period; "
            f"it is priced as a lump sum."
        )

    return warnings_list


# ─────────────────────────────────────────────────────────────────────────────
# GOAL REPORT FORMATTER
# ─────────────────────────────────────────────────────────────────────────────

def format_goal_report(priced: PricedGoal, scenario: Optional[RetirementScenario] = None) -> str:
    """Text summary of one priced goal."""
    goal    = priced.goal
    profile = GOAL_PROFILES[goal.category]
    years, months = divmod(priced.horizon_months, 12)

    lines = []
    lines.append("╔" + "═" * 62 + "╗")
    lines.append(f"║  {goal.name[:58]:<60}║")
    lines.append("╠" + "═" * 62 + "╣")
    lines.append(f"║  Category    : {profile['display_name']:<47}║")
    lines.append(f"║  Target      : {goal.target_date.isoformat():<47}║")
    lines.append(f"║  Horizon     : {f'{years}y {months}m ({priced.horizon_months} months)':<47}║")
    lines.append(f"║  Amount      : {priced.amount:>14,.0f}" + " " * 33 + "║")
    lines.append(f"║  Monthly PMT : {priced.required_pmt:>14,.2f}" + " " * 33 + "║")
    lines.append("╚" + "═" * 62 + "╝")

    if priced.fell_back:
        lines.append(f"\n  ⚠  Calculation failed ({priced.status.reason}).")
        lines.append(f"  → Showing the full amount as the monthly figure; correct the inputs and retry.")

    lines.append(f"\n  RETURN PHASES")
    start = 0
    for phase in priced.return_phases:
        end = start + phase.length_months
        tag = "  (payout)" if start >= priced.horizon_months else ""
        lines.append(f"  months {start + 1:>4}-{end:<4} {phase.annual_rate * 100:>5.1f}% p.a.{tag}")
        start = end

    if goal.payout and goal.payout.period_years:
        lines.append(
            f"\n  Paid out {goal.payout.frequency.lower()} over {goal.payout.period_years:g} years"
        )

    if scenario is not None:
        lines.append(f"\n  RETIREMENT SCENARIO ({scenario.strategy})")
        lines.append(f"  Years to retirement          : {scenario.years_to_retirement}")
        if isinstance(goal.details, RetirementPlan):
            pct = goal.details.inflation_pct
            lines.append(f"  Inflation                    : {pct:.1f}% ({inflation_label(pct)})")
        lines.append(f"  Monthly cost at retirement   : {scenario.monthly_cost_at_retirement:>14,.0f}")
        lines.append(f"  Nest egg needed (4% rule)    : {scenario.total_amount_needed:>14,.0f}")
        lines.append(f"  Safe annual withdrawal       : {scenario.annual_safe_withdrawal:>14,.0f}")
        if scenario.transition_details is not None:
            t = scenario.transition_details
            lines.append(
                f"  Transition ({t.years}y at {t.expense_ratio:.0%} spend) : {t.needs:>14,.0f}"
            )

    lines.append(f"\n  GUIDANCE")
    for note in profile["notes"]:
        lines.append(f"  • {note}")
    lines.append("─" * 64)
    return "\n".join(lines)
