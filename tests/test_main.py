import json
import os
from datetime import date

from main import run_pipeline, parse_args


def _write_plan(tmp_path, plan):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(plan), encoding="utf-8")
    return str(path)


def test_pipeline_without_charts(tmp_path, capsys, sample_plan):
    out = tmp_path / "out"
    results = run_pipeline(_write_plan(tmp_path, sample_plan), output_dir=str(out), charts=False)

    assert results["plan"].funding_style == "hybrid"
    assert len(results["priced"]) == 4
    for path in results["paths"].values():
        assert os.path.exists(path)
    assert not any(name.endswith(".png") for name in os.listdir(out))

    printed = capsys.readouterr().out
    assert "EXPAT GOAL-FUNDING PLAN" in printed
    assert "MONTHLY FUNDING PLAN" in printed


def test_pipeline_overrides_and_suggestions(tmp_path, sample_plan):
    results = run_pipeline(
        _write_plan(tmp_path, sample_plan),
        budget        = 1_000,
        funding_style = "waterfall",
        as_of         = date(2025, 3, 1),
        output_dir    = str(tmp_path / "out"),
        charts        = False,
    )
    assert results["plan"].monthly_budget == 1_000
    assert results["plan"].funding_style == "waterfall"
    assert results["priced"][0].horizon_months == 4
    assert not results["feasibility"]["is_feasible"]
    assert 0 < len(results["suggestions"]) <= 4


def test_pipeline_with_actuals_and_charts(tmp_path, sample_plan):
    actuals = tmp_path / "actuals.csv"
    actuals.write_text("goal_id,month_index,actual_amount\nemergency-fund,0,3000\n", encoding="utf-8")
    out = tmp_path / "out"
    results = run_pipeline(_write_plan(tmp_path, sample_plan), output_dir=str(out), actuals_path=str(actuals))

    assert results["progress"] is not None
    assert os.path.exists(out / "allocation_plan.png")
    assert os.path.exists(out / "goal_emergency-fund.png")


def test_parse_args():
    args = parse_args(["--plan", "plan.json", "--style", "parallel", "--as-of", "2025-03-01", "--no-charts"])
    assert args.plan == "plan.json"
    assert args.style == "parallel"
    assert args.as_of == date(2025, 3, 1)
    assert args.no_charts
    assert args.budget is None


def test_as_of_keeps_full_retirement_horizon(tmp_path, sample_plan):
    results = run_pipeline(
        _write_plan(tmp_path, sample_plan),
        as_of      = date(2030, 1, 1),
        output_dir = str(tmp_path / "out"),
        charts     = False,
    )
    scenario   = results["household"].scenarios["retirement"]
    retirement = next(p for p in results["priced"] if p.id == "retirement")
    assert retirement.horizon_months == scenario.years_to_retirement * 12
