# planner/retirement.py — Retirement nest-egg scenarios
#
# Strategies:
#   individual — one person, no household context
#   joint      — household retires together at the later retirement age
#   staggered  — each partner retires on their own schedule; the gap between
#                the two retirements is a reduced-expense transition period
#
# Targets are inflation-adjusted and sized with the 4% rule (25x annual spend).
# Ages are not checked here: retirement_age <= current_age gives a negative
# horizon and a deflated (nonsensical but finite) cost.

from dataclasses import dataclass
from typing import Optional

from config import (
    SAFE_WITHDRAWAL_MULTIPLIER, SAFE_WITHDRAWAL_RATE, TRANSITION_EXPENSE_RATIO,
    DEFAULT_INFLATION_PCT, INFLATION_BY_COUNTRY, INFLATION_OPTIONS,
)

RETIREMENT_STRATEGIES = ("joint", "staggered")


@dataclass(frozen=True)
class FamilyRetirementProfile:
    """Household retirement inputs for a two-person plan."""
    primary_age: int
    spouse_age: int
    primary_retirement_age: int
    spouse_retirement_age: int
    strategy: str = "joint"
    expense_ratio: float = 1.0    # carried through for reporting only

    def __post_init__(self):
        if self.strategy not in RETIREMENT_STRATEGIES:
            raise ValueError(
                f"Unknown retirement strategy: '{self.strategy}'. "
                f"Choose from: {list(RETIREMENT_STRATEGIES)}"
            )

    @property
    def primary_years(self) -> int:
        return self.primary_retirement_age - self.primary_age

    @property
    def spouse_years(self) -> int:
        return self.spouse_retirement_age - self.spouse_age


@dataclass(frozen=True)
class TransitionDetails:
    """One-earner, one-retiree window of a staggered retirement."""
    years: int
    starts_in_years: int
    monthly_cost: float           # inflated to the first retirement
    expense_ratio: float
    needs: float


@dataclass(frozen=True)
class RetirementScenario:
    strategy: str
    years_to_retirement: int
    monthly_cost_at_retirement: float
    total_amount_needed: float
    transition_details: Optional[TransitionDetails] = None

    @property
    def annual_safe_withdrawal(self) -> float:
        return annual_safe_withdrawal(self.total_amount_needed)


# ─────────────────────────────────────────────────────────────────────────────
# CORE FORMULAS
# ─────────────────────────────────────────────────────────────────────────────

def project_future_monthly_cost(
    today_monthly_cost: float,
    inflation_rate_pct: float,
    years: float,
) -> float:
    """Today's monthly cost compounded by inflation (in percent) over `years`."""
    return today_monthly_cost * (1 + inflation_rate_pct / 100) ** years


def total_retirement_needed(monthly_cost_at_retirement: float) -> float:
    """Nest egg supporting a 4% annual withdrawal: 25x annual spend."""
    return monthly_cost_at_retirement * 12 * SAFE_WITHDRAWAL_MULTIPLIER


def annual_safe_withdrawal(total_amount: float) -> float:
    return total_amount * SAFE_WITHDRAWAL_RATE


def default_inflation_rate(location: Optional[str] = None) -> float:
    """
    Regional inflation default (percent) from a "City, Country" string.
    The country is whatever follows the last comma.
    """
    if not location:
        return DEFAULT_INFLATION_PCT
    country = location.split(",")[-1].strip()
    return INFLATION_BY_COUNTRY.get(country, DEFAULT_INFLATION_PCT)


def inflation_label(inflation_rate_pct: float) -> str:
    return INFLATION_OPTIONS.get(round(inflation_rate_pct, 1), "Custom")


# ─────────────────────────────────────────────────────────────────────────────
# STRATEGIES
# ─────────────────────────────────────────────────────────────────────────────

def individual_scenario(
    current_age: int,
    retirement_age: int,
    today_monthly_cost: float,
    inflation_rate_pct: float,
) -> RetirementScenario:
    years   = retirement_age - current_age
    monthly = project_future_monthly_cost(today_monthly_cost, inflation_rate_pct, years)
    return RetirementScenario(
        strategy                   = "individual",
        years_to_retirement        = years,
        monthly_cost_at_retirement = monthly,
        total_amount_needed        = total_retirement_needed(monthly),
    )


def joint_scenario(
    household: FamilyRetirementProfile,
    today_monthly_cost: float,
    inflation_rate_pct: float,
) -> RetirementScenario:
    """
    Both partners stop at the later retirement age. The horizon pairs that age
    with the younger partner's current age: the longest accumulation need.
    """
    joint_age = max(household.primary_retirement_age, household.spouse_retirement_age)
    years     = joint_age - min(household.primary_age, household.spouse_age)
    monthly   = project_future_monthly_cost(today_monthly_cost, inflation_rate_pct, years)
    return RetirementScenario(
        strategy                   = "joint",
        years_to_retirement        = years,
        monthly_cost_at_retirement = monthly,
        total_amount_needed        = total_retirement_needed(monthly),
    )


def staggered_scenario(
    household: FamilyRetirementProfile,
    today_monthly_cost: float,
    inflation_rate_pct: float,
) -> RetirementScenario:
    """
    Each partner keeps their own (age, retirement age). The plan horizon is the
    longer of the two years-to-retirement. On top of the full nest egg the
    household needs to cover the gap between the two retirements at 70% of
    the cost inflated to the first retirement.
    """
    longer  = max(household.primary_years, household.spouse_years)
    shorter = min(household.primary_years, household.spouse_years)

    monthly     = project_future_monthly_cost(today_monthly_cost, inflation_rate_pct, longer)
    full_needs  = total_retirement_needed(monthly)

    transition_years   = longer - shorter
    transition_monthly = project_future_monthly_cost(today_monthly_cost, inflation_rate_pct, shorter)
    transition_needs   = transition_monthly * 12 * TRANSITION_EXPENSE_RATIO * transition_years

    transition = None
    if transition_years > 0:
        transition = TransitionDetails(
            years           = transition_years,
            starts_in_years = shorter,
            monthly_cost    = transition_monthly,
            expense_ratio   = TRANSITION_EXPENSE_RATIO,
            needs           = transition_needs,
        )

    return RetirementScenario(
        strategy                   = "staggered",
        years_to_retirement        = longer,
        monthly_cost_at_retirement = monthly,
        total_amount_needed        = full_needs + transition_needs,
        transition_details         = transition,
    )


def resolve_retirement_scenario(
    today_monthly_cost: float,
    inflation_rate_pct: float,
    current_age: Optional[int] = None,
    retirement_age: Optional[int] = None,
    household: Optional[FamilyRetirementProfile] = None,
) -> RetirementScenario:
    """Pick the strategy from the inputs: a household plan wins over individual ages."""
    if household is None:
        if current_age is None or retirement_age is None:
            raise ValueError("Individual retirement needs current_age and retirement_age.")
        return individual_scenario(current_age, retirement_age, today_monthly_cost, inflation_rate_pct)
    if household.strategy == "joint":
        return joint_scenario(household, today_monthly_cost, inflation_rate_pct)
    return staggered_scenario(household, today_monthly_cost, inflation_rate_pct)
