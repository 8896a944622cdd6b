#!/usr/bin/env python3
"""
main.py — Expat Goal-Funding Pipeline
         emergency fund, life goals and retirement on one monthly budget

Usage:
  python main.py --plan examples/household.json
  python main.py --plan examples/household.json --budget 6000 --style parallel
  python main.py --plan examples/household.json --as-of 2026-01-01 --no-charts
  python main.py --plan examples/household.json --actuals contributions.csv
"""

import argparse
import logging
import os
import re
from datetime import date
from typing import Optional

from config import FUNDING_STYLES, OUTPUT_DIR
from data.plan_loader import load_plan, load_actuals, parse_date, save_plan_outputs
from planner.allocator import allocate_budget, format_allocation_report
from planner.feasibility import check_feasibility, suggest_adjustments
from planner.goals import price_goals, validate_goal_inputs, format_goal_report
from planner.progress import track_progress, current_progress


# ─────────────────────────────────────────────────────────────────────────────
# PIPELINE
# ─────────────────────────────────────────────────────────────────────────────

def run_pipeline(
    plan_path: str,
    budget: Optional[float]      = None,
    funding_style: Optional[str] = None,
    as_of: Optional[date]        = None,
    output_dir: str              = OUTPUT_DIR,
    charts: bool                 = True,
    actuals_path: Optional[str]  = None,
) -> dict:
    """Full pipeline: load → price → check → allocate → report."""

    household      = load_plan(plan_path, as_of)
    reference_date = household.reference_date
    monthly_budget = household.monthly_budget if budget is None else budget
    style          = funding_style or household.funding_style

    print(f"""
╔══════════════════════════════════════════════════════════╗
║           EXPAT GOAL-FUNDING PLAN                        ║
╠══════════════════════════════════════════════════════════╣
║  As of       : {reference_date.isoformat():<42}║
║  Budget      : {monthly_budget:>14,.2f} / month{' ' * 21}║
║  Style       : {style:<42}║
║  Goals       : {len(household.goals):<42}║
╚══════════════════════════════════════════════════════════╝""")

    # ──────────────────────────────────────────────────────────────────────
    # STEP 1: Price goals
    # ──────────────────────────────────────────────────────────────────────
    print("\n[STEP 1] Goal Pricing")
    warnings_list = []
    for goal in household.goals:
        warnings_list.extend(validate_goal_inputs(goal, reference_date))
    if warnings_list:
        print("\n  WARNINGS:")
        for w in warnings_list:
            print(f"  * {w}")

    priced = price_goals(household.goals, reference_date)
    goal_reports = []
    for p in priced:
        report = format_goal_report(p, household.scenarios.get(p.id))
        goal_reports.append(report)
        print(report)

    # ──────────────────────────────────────────────────────────────────────
    # STEP 2: Feasibility
    # ──────────────────────────────────────────────────────────────────────
    print("\n[STEP 2] Budget Feasibility")
    feasibility = check_feasibility(priced, monthly_budget)
    print(f"  Required : {feasibility['total_required']:>14,.2f} / month")
    print(f"  Budget   : {monthly_budget:>14,.2f} / month")
    suggestions = []
    if feasibility["is_feasible"]:
        print("  ✓ All goals fit the budget")
    else:
        print(f"  ⚠ Over budget by {feasibility['over_budget']:,.2f} / month")
        suggestions = suggest_adjustments(household.goals, monthly_budget, reference_date)
        for s in suggestions:
            print(f"  → {s.description}  (saves {s.monthly_saving:,.2f} / month)")

    # ──────────────────────────────────────────────────────────────────────
    # STEP 3: Allocation
    # ──────────────────────────────────────────────────────────────────────
    print("\n[STEP 3] Monthly Allocation")
    plan = allocate_budget(priced, monthly_budget, style)
    alloc_report = format_allocation_report(plan)
    print(alloc_report)

    # ──────────────────────────────────────────────────────────────────────
    # STEP 4: Progress (optional)
    # ──────────────────────────────────────────────────────────────────────
    progress = None
    if actuals_path:
        print("\n[STEP 4] Progress vs Plan")
        progress = track_progress(plan, load_actuals(actuals_path))
        latest   = current_progress(progress)
        print(latest.round(2).to_string())

    # ──────────────────────────────────────────────────────────────────────
    # OUTPUTS
    # ──────────────────────────────────────────────────────────────────────
    full_report = "\n\n".join(goal_reports + [alloc_report])
    paths = save_plan_outputs(plan, full_report, output_dir)

    if charts:
        print("\n[STEP 5] Generating Charts...")
        from utils.visualization import plot_allocation_plan, plot_goal_projection
        plot_allocation_plan(plan, os.path.join(output_dir, "allocation_plan.png"))
        for p in priced:
            plot_goal_projection(p, os.path.join(output_dir, f"goal_{_slug(p.id)}.png"))

    return {
        "household":   household,
        "priced":      priced,
        "feasibility": feasibility,
        "suggestions": suggestions,
        "plan":        plan,
        "progress":    progress,
        "paths":       paths,
    }


def _slug(text: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "_", text)


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Expat Goal-Funding Pipeline — emergency fund, goals, retirement",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --plan household.json
  python main.py --plan household.json --budget 6000 --style waterfall
  python main.py --plan household.json --as-of 2026-01-01 --output out/ --no-charts
        """
    )
    parser.add_argument("--plan",      type=str,   required=True,  help="Household plan JSON file")
    parser.add_argument("--budget",    type=float, default=None,   help="Monthly budget (overrides the plan)")
    parser.add_argument("--style",     type=str,   default=None,   choices=list(FUNDING_STYLES),
                        help="Funding style (overrides the plan)")
    parser.add_argument("--as-of",     type=parse_date, default=None, help="Reference date YYYY-MM-DD")
    parser.add_argument("--output",    type=str,   default=OUTPUT_DIR, help="Output directory")
    parser.add_argument("--actuals",   type=str,   default=None,   help="CSV of recorded contributions")
    parser.add_argument("--no-charts", action="store_true",        help="Skip chart generation")
    parser.add_argument("--log-level", type=str,   default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    results = run_pipeline(
        plan_path     = args.plan,
        budget        = args.budget,
        funding_style = args.style,
        as_of         = args.as_of,
        output_dir    = args.output,
        charts        = not args.no_charts,
        actuals_path  = args.actuals,
    )
