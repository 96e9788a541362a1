from datetime import date

import pytest

from auditdesk.policy import (
    DEFAULT_POLICY,
    apply_preset,
    get_fiscal_year_end,
    get_policy,
    reset_policy,
    update_policy,
)


def test_defaults_match_rule_table():
    p = get_policy()
    assert (p["round_number_score"], p["weekend_score"], p["duplicate_amount_score"], p["outlier_score"]) == (40, 35, 30, 50)
    assert p["outlier_multiple"] == 3.0
    assert (p["high_risk_threshold"], p["medium_risk_threshold"]) == (75, 30)
    assert p["risk_source_policy"] == "floor"


def test_update_policy_validates():
    update_policy({"weekend_score": 250, "outlier_multiple": 2, "risk_source_policy": "whatever",
                   "unknown_key": 1, "duplicate_amount_score": "high", "round_number_unit": -5})
    p = get_policy()
    assert p["weekend_score"] == 100
    assert p["outlier_multiple"] == 2.0
    assert isinstance(p["outlier_multiple"], float)
    assert p["risk_source_policy"] == "floor"
    assert "unknown_key" not in p
    assert p["duplicate_amount_score"] == 30
    assert p["round_number_unit"] == 1000


def test_fiscal_year_end_update():
    update_policy({"fiscal_year_end": "2025-06-30T00:00:00"})
    assert get_fiscal_year_end() == date(2025, 6, 30)
    update_policy({"fiscal_year_end": "30/06/2026"})
    assert get_fiscal_year_end() == date(2025, 6, 30)


def test_presets():
    policy = apply_preset("ai_assisted")
    assert policy["risk_source_policy"] == "fallback"
    policy = apply_preset("strict_audit")
    assert policy["outlier_multiple"] == 2.0
    assert policy["risk_source_policy"] == "floor"
    with pytest.raises(KeyError):
        apply_preset("lenient")


def test_reset_policy():
    update_policy({"weekend_score": 1})
    reset_policy()
    assert get_policy() == DEFAULT_POLICY


def test_amount_fields_checked_after_cast():
    update_policy({"round_number_unit": 0.5, "round_number_min_amount": 0.9, "outlier_multiple": 0.0})
    p = get_policy()
    assert p["round_number_unit"] == 1000
    assert p["round_number_min_amount"] == 1000
    assert p["outlier_multiple"] == 3.0

    update_policy({"round_number_unit": 500.7})
    assert get_policy()["round_number_unit"] == 500
