# utils/visualization.py — Charts: funding schedule, goal balance projection

import os

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns

from planner.allocator import AllocationPlan
from planner.goals import PricedGoal
from planner.time_value import project_balances

plt.rcParams["figure.facecolor"]  = "#0d1117"
plt.rcParams["axes.facecolor"]    = "#161b22"
plt.rcParams["axes.edgecolor"]    = "#30363d"
plt.rcParams["axes.labelcolor"]   = "#c9d1d9"
plt.rcParams["text.color"]        = "#c9d1d9"
plt.rcParams["xtick.color"]       = "#8b949e"
plt.rcParams["ytick.color"]       = "#8b949e"
plt.rcParams["grid.color"]        = "#21262d"
plt.rcParams["font.family"]       = "monospace"


def _save(fig, save_path: str):
    folder = os.path.dirname(save_path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    fig.tight_layout()
    fig.savefig(save_path, dpi=150, bbox_inches="tight", facecolor="#0d1117")
    plt.close(fig)
    print(f"  ✓ Saved: {save_path}")


def plot_allocation_plan(
    plan: AllocationPlan,
    save_path: str = "outputs/allocation_plan.png",
):
    """
    2-panel funding chart:
      Panel 1: Stacked monthly contributions per goal vs budget
      Panel 2: Cumulative contributions per goal, with completion markers
    """
    df = plan.to_frame()
    goal_ids = plan.goal_ids
    names    = {s.goal_id: s.name for s in plan.summaries}
    colors   = sns.color_palette("husl", max(len(goal_ids), 1))
    months   = df.index.values + 1

    fig, axes = plt.subplots(2, 1, figsize=(12, 9), sharex=True)

    ax = axes[0]
    if len(df):
        ax.stackplot(
            months,
            [df[g].values for g in goal_ids],
            labels=[names[g] for g in goal_ids],
            colors=colors,
            alpha=0.85,
        )
    ax.axhline(plan.monthly_budget, color="#ffe66d", linestyle="--", lw=1.5, label="Budget")
    ax.set_ylabel("Contribution / month")
    ax.set_title(f"Monthly Funding Plan  |  style={plan.funding_style}", fontsize=13, pad=10)
    ax.legend(loc="upper right", fontsize=8)
    ax.grid(True, alpha=0.3)

    ax2 = axes[1]
    for color, s in zip(colors, plan.summaries):
        if not len(df):
            break
        cumulative = df[s.goal_id].cumsum().values
        ax2.plot(months, cumulative, color=color, lw=2, label=s.name)
        if s.completed:
            ax2.scatter([s.completion_month + 1], [cumulative[s.completion_month]],
                        color=color, s=60, zorder=5, marker="o")
        ax2.axvline(s.nominal_horizon, color=color, linestyle=":", alpha=0.5)
    ax2.set_xlabel("Month")
    ax2.set_ylabel("Cumulative contributions")
    ax2.set_title("Progress per Goal  (dotted = target month)", fontsize=11)
    ax2.legend(loc="upper left", fontsize=8)
    ax2.grid(True, alpha=0.3)

    _save(fig, save_path)


def plot_goal_projection(
    priced: PricedGoal,
    save_path: str = "outputs/goal_projection.png",
):
    """Balance path at the required PMT against money paid in and the target."""
    months   = priced.horizon_months
    balances = project_balances(priced.required_pmt, priced.return_phases, months)
    invested = priced.required_pmt * np.arange(1, months + 1)
    x        = np.arange(1, months + 1)

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.fill_between(x, invested, balances, alpha=0.25, color="#00ff88")
    ax.plot(x, balances, color="#00ff88", lw=2.5, label="Projected balance")
    ax.plot(x, invested, color="#ff6b35", lw=1.8, linestyle="--", label="Contributed")
    ax.axhline(priced.amount, color="#ffe66d", linestyle=":", lw=1.5, label="Target")

    start = 0
    for phase in priced.return_phases:
        start += phase.length_months
        if start < months:
            ax.axvline(start, color="#8b949e", linestyle=":", alpha=0.6)

    ax.set_title(
        f"{priced.name}  |  {priced.required_pmt:,.2f}/month  |  {months} months",
        fontsize=12, pad=10,
    )
    ax.set_xlabel("Month")
    ax.set_ylabel("Balance")
    ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)

    _save(fig, save_path)
