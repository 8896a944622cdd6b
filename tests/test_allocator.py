import logging
from datetime import date

import pytest

from planner.allocator import allocate_budget, format_allocation_report, NOT_STARTED, FUNDING, COMPLETED
from planner.goals import Goal, price_goal, price_goals, build_emergency_fund
from planner.time_value import ReturnPhase, add_months

REF = date(2025, 1, 1)


def _flat(goal_id, amount, months, rate=0.0):
    goal = Goal(
        id            = goal_id,
        name          = goal_id.title(),
        category      = "Other",
        amount        = amount,
        target_date   = add_months(REF, months),
        return_phases = [ReturnPhase(months, rate)],
    )
    return price_goal(goal, REF)


def _assert_ceilings(plan, goals):
    df = plan.to_frame()
    assert (df["total_allocation"] <= plan.monthly_budget + 1e-9).all()
    for g in goals:
        assert df[g.id].sum() <= g.amount + 1e-6
        assert (df[g.id] >= 0).all()


def test_waterfall_funds_one_goal_at_a_time():
    a, b = _flat("a", 1_200, 12), _flat("b", 1_200, 24)
    assert a.required_pmt == pytest.approx(100)
    assert b.required_pmt == pytest.approx(50)

    plan = allocate_budget([b, a], 100, "waterfall")
    df   = plan.to_frame()

    assert df.loc[0:11, "a"].tolist() == pytest.approx([100] * 12)
    assert (df.loc[0:11, "b"] == 0).all()
    assert df.loc[12, "b"] == pytest.approx(50)

    summary = {s.goal_id: s for s in plan.summaries}
    assert summary["a"].completion_month == 11
    assert summary["a"].months_late == 0
    assert summary["b"].completion_month == 35
    assert summary["b"].months_late == 12
    assert [s.goal_id for s in plan.shortfall_goals] == ["b"]
    assert len(plan.entries) == 36
    _assert_ceilings(plan, [a, b])


def test_parallel_funds_everything_that_fits():
    a, b = _flat("a", 1_200, 12), _flat("b", 1_200, 24)
    plan = allocate_budget([a, b], 150, "parallel")
    df   = plan.to_frame()

    assert df.loc[0, "a"] == pytest.approx(100)
    assert df.loc[0, "b"] == pytest.approx(50)
    assert df.loc[0, "unallocated"] == pytest.approx(0)
    assert df.loc[12, "a"] == 0
    assert df.loc[12, "unallocated"] == pytest.approx(100)
    assert plan.shortfall_goals == []
    _assert_ceilings(plan, [a, b])


def test_shortfall_starves_lower_priority_goals(caplog):
    a, b, c = _flat("a", 1_200, 12), _flat("b", 1_200, 24), _flat("c", 2_400, 36)
    with caplog.at_level(logging.WARNING):
        plan = allocate_budget([a, b, c], 120, "parallel")
    assert "exceeds monthly budget" in caplog.text

    first = plan.entries[0].per_goal_contribution
    assert first["a"] == pytest.approx(100)
    assert first["b"] == pytest.approx(20)
    assert first["c"] == 0
    assert plan.entries[0].unallocated == pytest.approx(0)
    _assert_ceilings(plan, [a, b, c])


def test_hybrid_funds_emergency_then_near_then_far():
    ef   = price_goal(build_emergency_fund(1_000, 3, add_months(REF, 6)), REF)
    near = _flat("near", 6_000, 24, rate=0.03)
    far  = _flat("far", 60_000, 120, rate=0.06)
    plan = allocate_budget([far, near, ef], 10_000, "hybrid")
    df   = plan.to_frame()

    assert df.loc[0, "emergency-fund"] > 0
    assert df.loc[0, "near"] == 0
    assert df.loc[0, "far"] == 0
    assert plan.state_frame().loc[0, "near"] == NOT_STARTED

    done = {s.goal_id: s.completion_month for s in plan.summaries}
    assert done["emergency-fund"] == 5
    assert df.loc[6, "near"] > 0
    assert df.loc[6, "far"] == 0
    assert plan.state_frame().loc[6, "near"] in (FUNDING, COMPLETED)
    assert df.loc[done["near"] + 1, "far"] > 0
    _assert_ceilings(plan, [ef, near, far])


def test_growing_goals_never_overfund():
    goals = price_goals([
        build_emergency_fund(2_500, 6, add_months(REF, 9)),
        Goal("home", "Home deposit", "Home", 80_000, add_months(REF, 60), profile="Growth"),
        Goal("trip", "Trip", "Travel", 5_000, add_months(REF, 14)),
    ], REF)
    for style in ("waterfall", "hybrid", "parallel"):
        plan = allocate_budget(goals, 2_000, style)
        _assert_ceilings(plan, goals)
        for s in plan.summaries:
            assert s.completed
            assert s.final_balance == pytest.approx(s.amount, rel=1e-6)


def test_zero_amount_goal_is_complete_from_the_start():
    draft = _flat("draft", 0, 12)
    real  = _flat("real", 600, 6)
    plan  = allocate_budget([draft, real], 500, "parallel")
    summary = {s.goal_id: s for s in plan.summaries}
    assert summary["draft"].completion_month == 0
    assert summary["draft"].total_contributed == 0
    assert plan.to_frame()["draft"].sum() == 0


def test_unreached_goal_within_plan_length():
    big  = _flat("big", 100_000, 12)
    plan = allocate_budget([big], 100, "waterfall", max_months=24)
    s = plan.summaries[0]
    assert not s.completed
    assert s.months_late is None
    assert s.total_contributed == pytest.approx(2_400)
    assert plan.shortfall_goals == [s]
    assert "not reached within 24 months" in format_allocation_report(plan)


def test_empty_plans():
    goal = _flat("a", 1_200, 12)
    for plan in (allocate_budget([goal], 0, "hybrid"), allocate_budget([], 1_000, "parallel")):
        assert plan.entries == []
        assert plan.to_frame().empty
        assert "Nothing to allocate" in format_allocation_report(plan)


def test_unknown_style_rejected():
    with pytest.raises(ValueError):
        allocate_budget([_flat("a", 1_200, 12)], 100, "sequential")


def test_duplicate_goal_ids_rejected():
    first, second = _flat("car", 1_200, 12), _flat("car", 4_800, 24)
    with pytest.raises(ValueError, match="Duplicate goal id"):
        allocate_budget([first, second], 1_000, "parallel")
