import pytest


@pytest.fixture
def sample_plan():
    """Household plan document: Dubai couple, three goals plus retirement."""
    return {
        "reference_date":   "2025-01-01",
        "funding_style":    "hybrid",
        "monthly_income":   20_000,
        "monthly_expenses": 14_000,
        "location":         "Dubai, UAE",
        "emergency_fund":   {"buffer_months": 3, "target_date": "2025-07-01"},
        "goals": [
            {"id": "uni", "name": "University", "category": "Education", "amount": 120_000,
             "target_date": "2035-09-01", "payment_frequency": "Annual", "payment_period_years": 4},
            {"id": "trip", "name": "Japan trip", "category": "Travel", "amount": 8_000,
             "target_date": "2026-04", "return_phases": [{"length": 15, "rate": 0.02}]},
        ],
        "retirement": {
            "today_monthly_cost": 9_000,
            "household": {
                "primary_age": 40, "spouse_age": 36,
                "primary_retirement_age": 60, "spouse_retirement_age": 58,
                "strategy": "staggered",
            },
        },
    }
