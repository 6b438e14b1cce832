# apps/backend/bookster/plans.py
from dataclasses import dataclass
from typing import Optional, Dict

@dataclass(frozen=True)
class PlanRules:
    name: str
    monthly_credits: Optional[int]  # None = unlimited
    label: str

# Credits granted at signup and on every monthly reset
PLANS: Dict[str, PlanRules] = {
    "FREE": PlanRules(name="FREE", monthly_credits=1, label="Free"),
    "LITE": PlanRules(name="LITE", monthly_credits=10, label="Lite"),
    "PRO": PlanRules(name="PRO", monthly_credits=10, label="Pro"),
    "AGENCY": PlanRules(name="AGENCY", monthly_credits=10, label="Agency"),
    "ADMIN": PlanRules(name="ADMIN", monthly_credits=None, label="Admin"),
}

# Aliases (case-insensitive) for older plan names
PLAN_ALIASES = {
    "free": "FREE",
    "start": "FREE",
    "lite": "LITE",
    "pro": "PRO",
    "agency": "AGENCY",
    "admin": "ADMIN",
    "owner": "ADMIN",
    "owner_full": "ADMIN",
}

# Stored credits for unlimited plans
UNLIMITED_CREDITS = 999

ACTIVE_STATUSES = {"active", "trialing"}

def normalize_plan(plan: Optional[str]) -> str:
    if not plan:
        return "FREE"
    up = plan.strip().upper()
    if up in PLANS:
        return up
    low = plan.strip().lower()
    return PLAN_ALIASES.get(low, "FREE")

def credits_for_plan(plan: Optional[str]) -> int:
    rules = PLANS[normalize_plan(plan)]
    if rules.monthly_credits is None:
        return UNLIMITED_CREDITS
    return rules.monthly_credits
