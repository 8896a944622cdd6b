# planner/time_value.py — Time-value-of-money engine
#
# Contributions are monthly and paid at the START of each month (annuity-due).
# A goal's horizon is split into ReturnPhases, each with its own nominal annual
# rate; the monthly rate is annual_rate / 12 (simple, not geometric).
#
# Nothing in here clamps or validates its inputs: callers clamp
# (horizon >= 1, amount >= 0) before calling and choose their own fallback
# when a calculation fails (see try_required_pmt).

import calendar
import math
from dataclasses import dataclass
from datetime import date
from typing import Sequence, Union

import numpy as np

PAYMENT_FREQUENCIES = ("Once", "Monthly", "Quarterly", "Biannual", "Annual")

PAYMENTS_PER_YEAR = {
    "Monthly":   12,
    "Quarterly": 4,
    "Biannual":  2,
    "Annual":    1,
}


@dataclass(frozen=True)
class ReturnPhase:
    """A contiguous stretch of the horizon earning one annual rate."""
    length_months: int
    annual_rate: float

    def __post_init__(self):
        if isinstance(self.length_months, bool) or not isinstance(self.length_months, (int, np.integer)):
            raise ValueError(f"Phase length must be a whole number of months, got {self.length_months!r}.")
        if self.length_months < 1:
            raise ValueError("Phase length must be at least 1 month.")
        if self.annual_rate < 0:
            raise ValueError("Phase rate cannot be negative.")

    @property
    def monthly_rate(self) -> float:
        return self.annual_rate / 12

    def to_dict(self) -> dict:
        return {"length": int(self.length_months), "rate": float(self.annual_rate)}


# ─────────────────────────────────────────────────────────────────────────────
# CALENDAR HELPERS
# ─────────────────────────────────────────────────────────────────────────────

def month_diff(from_date: date, to_date: date) -> int:
    """
    Whole months between two dates by year*12 + month arithmetic.
    Day-of-month is ignored; the result is negative when to_date is earlier.
    """
    return (to_date.year - from_date.year) * 12 + (to_date.month - from_date.month)


def horizon_months(reference_date: date, target_date: date) -> int:
    """Months until target_date, never less than 1."""
    return max(1, month_diff(reference_date, target_date))


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's end."""
    idx   = d.year * 12 + (d.month - 1) + months
    year  = idx // 12
    month = idx % 12 + 1
    day   = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


# ─────────────────────────────────────────────────────────────────────────────
# PHASE WALKING
# ─────────────────────────────────────────────────────────────────────────────

def _segments(phases: Sequence[ReturnPhase], months: int) -> list[tuple[int, float]]:
    """
    (length, monthly_rate) pairs covering exactly `months` months.
    Phases running past `months` are cut; if the phases end early the last
    phase's rate carries on to the end.
    """
    segments = []
    covered  = 0
    for phase in phases:
        if covered >= months:
            break
        length = min(int(phase.length_months), months - covered)
        segments.append((length, phase.annual_rate / 12))
        covered += length
    if covered < months:
        segments.append((months - covered, phases[-1].annual_rate / 12))
    return segments


def monthly_rates(phases: Sequence[ReturnPhase], months: int) -> np.ndarray:
    """Per-month rate vector of length `months`."""
    if months <= 0:
        return np.zeros(0)
    return np.concatenate([np.full(n, r) for n, r in _segments(phases, months)])


def _annuity_due(length: int, r: float) -> float:
    """Value at the end of `length` months of 1/month paid at the start of each month."""
    if r == 0:
        return float(length)
    return (1 + r) * ((1 + r) ** length - 1) / r


# ─────────────────────────────────────────────────────────────────────────────
# PROJECTION
# ─────────────────────────────────────────────────────────────────────────────

def future_value(
    contribution: float,
    phases: Sequence[ReturnPhase],
    periods_elapsed: int,
) -> float:
    """Balance after `periods_elapsed` monthly contributions, walking phases in order."""
    balance = 0.0
    for length, r in _segments(phases, periods_elapsed):
        balance = balance * (1 + r) ** length + contribution * _annuity_due(length, r)
    return balance


def project_balances(
    contribution: float,
    phases: Sequence[ReturnPhase],
    months: int,
) -> np.ndarray:
    """End-of-month balances for months 1..months."""
    rates    = monthly_rates(phases, months)
    balances = np.empty(len(rates))
    balance  = 0.0
    for i, r in enumerate(rates):
        balance     = (balance + contribution) * (1 + r)
        balances[i] = balance
    return balances


# ─────────────────────────────────────────────────────────────────────────────
# REQUIRED CONTRIBUTION
# ─────────────────────────────────────────────────────────────────────────────

def annuity_factor(phases: Sequence[ReturnPhase], horizon: int) -> float:
    """
    Blended annuity factor A: what 1/month grows to by the end of the horizon.

    Each phase contributes its own annuity-due factor, carried to the end of
    the horizon by the growth of every later phase. Walking the phases from
    the last one back keeps that later growth as a running product.
    """
    factor      = 0.0
    tail_growth = 1.0
    for length, r in reversed(_segments(phases, horizon)):
        factor      += _annuity_due(length, r) * tail_growth
        tail_growth *= (1 + r) ** length
    return factor


def calculate_required_pmt(
    target_amount: float,
    phases: Sequence[ReturnPhase],
    horizon: int,
) -> float:
    """
    Monthly contribution that grows to target_amount over `horizon` months.
    A zero annuity factor (empty horizon) means the whole amount is due now.
    """
    A = annuity_factor(phases, horizon)
    if A == 0:
        return target_amount
    return target_amount / A


def calculate_payout_pmt(
    target_amount: float,
    phases: Sequence[ReturnPhase],
    horizon: int,
    payment_frequency: str = None,
    payment_period_years: float = None,
) -> float:
    """
    Contribution for a goal that is paid out in instalments after the target
    date (tuition, mortgage-style). The amount is split into
    period * payments_per_year instalments, discounted at the first phase's
    rate per instalment period. Without a period, or paid "Once", this is the
    plain lump-sum PMT.
    """
    if not payment_frequency or payment_frequency == "Once" or not payment_period_years:
        return calculate_required_pmt(target_amount, phases, horizon)
    if payment_frequency not in PAYMENTS_PER_YEAR:
        raise ValueError(
            f"Unknown payment frequency: '{payment_frequency}'. "
            f"Choose from: {list(PAYMENT_FREQUENCIES)}"
        )

    per_year       = PAYMENTS_PER_YEAR[payment_frequency]
    total_payments = payment_period_years * per_year
    instalment     = target_amount / total_payments
    r              = phases[0].annual_rate / per_year

    if r == 0:
        pv_factor = total_payments
    else:
        pv_factor = (1 - (1 + r) ** -total_payments) / r
    return instalment / pv_factor


# ─────────────────────────────────────────────────────────────────────────────
# EXPLICIT RESULT
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Ok:
    value: float

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    reason: str

    @property
    def ok(self) -> bool:
        return False


PMTResult = Union[Ok, Err]

_CALCULATION_ERRORS = (ValueError, TypeError, IndexError, ZeroDivisionError, OverflowError, AttributeError)


def try_required_pmt(
    target_amount: float,
    phases: Sequence[ReturnPhase],
    horizon: int,
    payment_frequency: str = None,
    payment_period_years: float = None,
) -> PMTResult:
    """
    calculate_payout_pmt wrapped into Ok(pmt) | Err(reason).
    Non-finite results (inf/nan from absurd inputs) are reported as Err too.
    """
    try:
        pmt = calculate_payout_pmt(
            target_amount, phases, horizon, payment_frequency, payment_period_years
        )
    except _CALCULATION_ERRORS as e:
        return Err(f"{type(e).__name__}: {e}")
    if not math.isfinite(pmt):
        return Err(f"non-finite contribution ({pmt})")
    return Ok(pmt)
