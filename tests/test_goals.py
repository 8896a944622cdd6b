from datetime import date

import pytest

from planner.goals import (
    Goal, PayoutSchedule, RetirementPlan, EmergencyBuffer,
    recommended_profile, build_return_phases, price_goal, price_goals,
    build_emergency_fund, build_retirement_goal, with_updates,
    available_budget, validate_goal_inputs, format_goal_report,
)
from planner.time_value import ReturnPhase, Ok, calculate_required_pmt, calculate_payout_pmt

REF = date(2025, 1, 1)


def _goal(**kw):
    base = dict(id="g1", name="Car", category="Other", amount=30_000, target_date=date(2027, 1, 1))
    base.update(kw)
    return Goal(**base)


def test_recommended_profile_by_horizon():
    assert recommended_profile(12) == "Conservative"
    assert recommended_profile(36) == "Conservative"
    assert recommended_profile(37) == "Balanced"
    assert recommended_profile(84) == "Balanced"
    assert recommended_profile(85) == "Growth"


def test_glide_path_shapes():
    short = build_return_phases(36, "Balanced")
    assert short == [ReturnPhase(36, 0.03)]

    medium = build_return_phases(60, "Balanced")
    assert medium == [ReturnPhase(36, 0.06), ReturnPhase(24, 0.03)]

    long = build_return_phases(120, "Growth")
    assert [p.length_months for p in long] == [86, 19, 15]
    assert [p.annual_rate for p in long] == [0.08, 0.07, 0.05]
    assert sum(p.length_months for p in long) == 120


def test_glide_path_with_payout_and_custom_rates():
    phases = build_return_phases(60, "Growth", payment_period_years=4)
    assert phases[-1] == ReturnPhase(48, 0.02)
    custom = build_return_phases(24, "Growth", custom_rates={"high": 0.1, "mid": 0.09, "low": 0.07})
    assert custom == [ReturnPhase(24, 0.07)]
    with pytest.raises(ValueError):
        build_return_phases(24, "Aggressive")


def test_details_must_match_category():
    with pytest.raises(ValueError):
        _goal(category="Travel", details=PayoutSchedule("Annual", 2))
    with pytest.raises(ValueError):
        _goal(category="Education", details=RetirementPlan(5_000, 3.0, 30, 60))
    with pytest.raises(ValueError):
        _goal(category="Other", details=EmergencyBuffer(4_000))
    with pytest.raises(ValueError):
        _goal(category="Holiday")
    with pytest.raises(ValueError):
        _goal(profile="Aggressive")
    with pytest.raises(ValueError):
        PayoutSchedule("Weekly", 2)

    home = _goal(category="Home", details=PayoutSchedule("Monthly", 5))
    assert home.payout.period_years == 5


def test_price_goal_derives_horizon_and_pmt():
    goal   = _goal(profile="Balanced")
    priced = price_goal(goal, REF)
    assert priced.horizon_months == 24
    assert priced.return_phases == (ReturnPhase(24, 0.03),)
    assert priced.required_pmt == pytest.approx(calculate_required_pmt(30_000, priced.return_phases, 24))
    assert isinstance(priced.status, Ok)
    assert not priced.fell_back


def test_price_goal_uses_explicit_phases():
    phases = (ReturnPhase(6, 0.06), ReturnPhase(6, 0.12))
    priced = price_goal(_goal(amount=100_000, target_date=date(2026, 1, 1), return_phases=list(phases)), REF)
    assert priced.return_phases == phases
    assert priced.required_pmt < 100_000 / 12


def test_price_goal_with_payout_schedule():
    goal   = _goal(category="Education", target_date=date(2030, 1, 1), profile="Balanced",
                   details=PayoutSchedule("Annual", 4))
    priced = price_goal(goal, REF)
    assert priced.return_phases[-1] == ReturnPhase(48, 0.02)
    assert priced.required_pmt == pytest.approx(
        calculate_payout_pmt(30_000, priced.return_phases, 60, "Annual", 4)
    )


def test_price_goal_falls_back_on_failure():
    goal   = _goal(target_date=date(2035, 1, 1), custom_rates={"high": 0.05})
    priced = price_goal(goal, REF)
    assert priced.fell_back
    assert "KeyError" in priced.status.reason
    assert priced.required_pmt == 30_000
    assert priced.return_phases == (ReturnPhase(1, 0.01),)


def test_price_goal_clamps_amount_and_horizon():
    priced = price_goal(_goal(amount=-500, target_date=date(2024, 6, 1)), REF)
    assert priced.horizon_months == 1
    assert priced.amount == 0.0
    assert priced.required_pmt == 0.0


def test_emergency_fund():
    goal = build_emergency_fund(4_000, 3, date(2025, 7, 1))
    assert goal.id == "emergency-fund"
    assert goal.amount == 12_000
    assert goal.is_emergency_fund
    priced = price_goal(goal, REF)
    assert priced.priority == 0
    assert priced.return_phases == (ReturnPhase(6, 0.01),)

    no_bank = price_goal(build_emergency_fund(4_000, 3, date(2025, 7, 1), bank_rate=0.0), REF)
    assert no_bank.return_phases == (ReturnPhase(6, 0.01),)
    tiny = price_goal(build_emergency_fund(4_000, 3, date(2025, 7, 1), bank_rate=0.0005), REF)
    assert tiny.return_phases == (ReturnPhase(6, 0.001),)


def test_retirement_goal():
    plan = RetirementPlan(today_monthly_cost=8_000, inflation_pct=2.5, current_age=35, retirement_age=60)
    goal, scenario = build_retirement_goal(plan, date(2025, 1, 15))
    assert goal.category == "Retirement"
    assert goal.target_date == date(2050, 1, 15)
    assert goal.amount == pytest.approx(scenario.total_amount_needed)
    priced = price_goal(goal, date(2025, 1, 15))
    assert priced.horizon_months == 300
    assert priced.priority == 2
    assert len(priced.return_phases) == 3
    assert sum(p.length_months for p in priced.return_phases) == 300


def test_price_goals_orders_by_priority_then_horizon():
    plan = RetirementPlan(6_000, 3.0, 40, 65)
    retirement, _ = build_retirement_goal(plan, REF)
    goals = [
        retirement,
        _goal(id="uni", name="University", category="Education", target_date=date(2035, 1, 1)),
        build_emergency_fund(3_000, 6, date(2026, 1, 1)),
        _goal(id="trip", name="Trip", category="Travel", amount=6_000, target_date=date(2026, 6, 1)),
    ]
    assert [p.id for p in price_goals(goals, REF)] == ["emergency-fund", "trip", "uni", "retirement"]


def test_with_updates_and_budget():
    goal = _goal()
    assert with_updates(goal, amount=10_000).amount == 10_000
    assert goal.amount == 30_000
    assert available_budget(20_000, 14_500) == 5_500
    assert available_budget(10_000, 12_000) == 0.0


def test_validation_warnings():
    warnings = validate_goal_inputs(_goal(amount=0, target_date=date(2024, 12, 1)), REF)
    assert any("no target amount" in w for w in warnings)
    assert any("not in the future" in w for w in warnings)

    plan = RetirementPlan(5_000, 3.0, current_age=60, retirement_age=55)
    goal = _goal(id="r", category="Retirement", target_date=date(2045, 1, 1), details=plan)
    assert any("Retirement age" in w for w in validate_goal_inputs(goal, REF))


def test_goal_report_mentions_phases_and_scenario():
    plan = RetirementPlan(8_000, 2.5, 35, 60)
    goal, scenario = build_retirement_goal(plan, REF)
    text = format_goal_report(price_goal(goal, REF), scenario)
    assert "RETURN PHASES" in text
    assert "RETIREMENT SCENARIO (individual)" in text
    assert "2.5% (Moderate-Conservative)" in text
