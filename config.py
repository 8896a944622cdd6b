# config.py — Central configuration for the Expat Goal-Funding Engine

# ─────────────────────────────────────────────
# RISK PROFILES: annual return per glide-path stage
# ─────────────────────────────────────────────
DEFAULT_RATES = {
    "Conservative": {"high": 0.04, "mid": 0.03, "low": 0.02},
    "Balanced":     {"high": 0.06, "mid": 0.05, "low": 0.03},
    "Growth":       {"high": 0.08, "mid": 0.07, "low": 0.05},
}

SHORT_HORIZON_YEARS  = 3          # <= 3y: single low-rate phase, Conservative
MEDIUM_HORIZON_YEARS = 7          # <= 7y: growth then 24m de-risk, Balanced
DERISK_MONTHS        = 24         # final low-rate stretch for medium horizons
GLIDEPATH_SPLIT      = (0.72, 0.16)   # high / mid share of long horizons, rest low
PAYOUT_PHASE_RATE    = 0.02       # drawdown phase after target date (tuition, mortgage)

# ─────────────────────────────────────────────
# EMERGENCY FUND
# ─────────────────────────────────────────────
EMERGENCY_FUND_ID           = "emergency-fund"
EMERGENCY_FUND_NAME         = "Emergency Fund"
EMERGENCY_FUND_DEFAULT_RATE = 0.01    # savings account rate when no bank chosen
EMERGENCY_FUND_MIN_RATE     = 0.001   # floor applied to bank rates
DEFAULT_BUFFER_MONTHS       = 3

# Fallback when a PMT calculation fails: amount-as-PMT over (length, rate)
FALLBACK_PHASE = (1, 0.01)

# ─────────────────────────────────────────────
# RETIREMENT
# ─────────────────────────────────────────────
SAFE_WITHDRAWAL_MULTIPLIER = 25       # 4% rule: nest egg = 25x annual spend
SAFE_WITHDRAWAL_RATE       = 0.04
TRANSITION_EXPENSE_RATIO   = 0.70     # one earner + one retiree (staggered)

DEFAULT_INFLATION_PCT = 3.0           # industry standard long-run assumption
INFLATION_BY_COUNTRY = {
    # USD-pegged GCC currencies
    "UAE": 2.5, "Saudi Arabia": 2.5, "Qatar": 2.5,
    "Kuwait": 3.0, "Bahrain": 3.0, "Oman": 3.0,
}
INFLATION_OPTIONS = {
    2.0: "Conservative",
    2.5: "Moderate-Conservative",
    3.0: "Industry Standard",
    3.5: "Moderate-Aggressive",
    4.0: "Aggressive",
}

# ─────────────────────────────────────────────
# ALLOCATION PLANNER
# ─────────────────────────────────────────────
FUNDING_STYLES   = ("waterfall", "hybrid", "parallel")
NEAR_GOAL_MONTHS = 60             # hybrid: near-term bucket boundary
MAX_PLAN_MONTHS  = 600            # 50 years
COMPLETION_TOL   = 1e-9           # relative tolerance on "balance reached target"

# ─────────────────────────────────────────────
# FEASIBILITY SUGGESTIONS
# ─────────────────────────────────────────────
REDUCE_AMOUNT_PCT   = 0.15
EXTEND_MONTHS       = 8
MAX_SUGGESTIONS     = 4

# ─────────────────────────────────────────────
# OUTPUT
# ─────────────────────────────────────────────
OUTPUT_DIR = "outputs/"
