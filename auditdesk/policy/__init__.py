"""
AuditDesk — Policy Engine Module

Centralized audit policy state. Single source of truth for risk rule
weights, risk bands, the fiscal year end boundary and how heuristic and
AI risk scores are reconciled.

Architecture:
  - DEFAULT_POLICY: base policy with env var overrides
  - _active_policy: mutable runtime state, updated via API
  - get_policy() / update_policy() / reset_policy(): accessors
  - POLICY_PRESETS: named configurations applied with apply_preset()

Risk source policies:
  floor      — final score is max(AI, heuristic); heuristic acts as a floor
  fallback   — AI score when the AI scored the transaction, heuristic otherwise
  heuristic  — heuristic only, the AI scorer is never called
"""

import os
import copy as _copy

from auditdesk.config import FISCAL_YEAR_END
from auditdesk.dates import parse_date

RISK_SOURCE_POLICIES = ("floor", "fallback", "heuristic")


# ============================================================
# DEFAULT POLICY (env var overrides)
# ============================================================
DEFAULT_POLICY = {
    # ── RISK RULES ──
    "round_number_unit": 1000,
    "round_number_min_amount": 1000,
    "round_number_score": 40,
    "weekend_score": 35,
    "duplicate_amount_score": 30,
    "outlier_multiple": 3.0,
    "outlier_score": 50,

    # ── RISK BANDS ──
    "high_risk_threshold": 75,
    "medium_risk_threshold": 30,
    "report_high_risk_threshold": 70,

    # ── SCORE RECONCILIATION ──
    "risk_source_policy": os.environ.get("RISK_SOURCE_POLICY", "floor"),

    # ── CUT-OFF ──
    "fiscal_year_end": FISCAL_YEAR_END,
}

SCORE_FIELDS = {"round_number_score", "weekend_score", "duplicate_amount_score", "outlier_score",
                "high_risk_threshold", "medium_risk_threshold", "report_high_risk_threshold"}
AMOUNT_FIELDS = {"round_number_unit", "round_number_min_amount", "outlier_multiple"}


# ============================================================
# RUNTIME STATE
# ============================================================
_active_policy = _copy.deepcopy(DEFAULT_POLICY)


def get_policy() -> dict:
    """Get the active audit policy."""
    return _active_policy


def update_policy(updates: dict) -> dict:
    """Update specific policy fields. Invalid values are ignored. Returns the full policy."""
    for key, value in (updates or {}).items():
        if key not in _active_policy:
            continue
        if key == "risk_source_policy":
            if value in RISK_SOURCE_POLICIES:
                _active_policy[key] = value
        elif key == "fiscal_year_end":
            parsed = parse_date(value)
            if parsed:
                _active_policy[key] = parsed.isoformat()
        elif isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        elif key in SCORE_FIELDS:
            _active_policy[key] = int(max(0, min(100, value)))
        elif key in AMOUNT_FIELDS:
            coerced = type(DEFAULT_POLICY[key])(value)
            if coerced > 0:
                _active_policy[key] = coerced
    return _active_policy


def reset_policy():
    """Reset policy to defaults. Used in testing."""
    _active_policy.clear()
    _active_policy.update(_copy.deepcopy(DEFAULT_POLICY))


def get_fiscal_year_end():
    return parse_date(_active_policy["fiscal_year_end"])


# ============================================================
# POLICY PRESETS
# ============================================================
POLICY_PRESETS = {
    "standard": {
        "name": "Standard AR Audit",
        "description": "Heuristic rules as a floor under AI scoring",
        "risk_source_policy": "floor",
    },
    "strict_audit": {
        "name": "Strict Audit",
        "description": "Lower outlier multiple and heavier weekend weighting",
        "risk_source_policy": "floor",
        "outlier_multiple": 2.0,
        "weekend_score": 45,
        "round_number_min_amount": 500,
        "round_number_unit": 500,
    },
    "ai_assisted": {
        "name": "AI Assisted",
        "description": "Trust AI scores when available, heuristics only as fallback",
        "risk_source_policy": "fallback",
    },
}


def apply_preset(name: str) -> dict:
    """Reset to defaults and apply a named preset. Raises KeyError for unknown presets."""
    preset = POLICY_PRESETS[name]
    reset_policy()
    return update_policy({k: v for k, v in preset.items() if k not in ("name", "description")})
