"""
Unit tests for config_flags module.
"""
import pytest

from src.lib.config_flags import (
    EngagementRules,
    get_engagement_rules,
    set_engagement_rules,
    reset_all_configs,
)


@pytest.mark.unit
def test_engagement_rules_defaults():
    rules = EngagementRules()

    assert rules.strict_booking_transitions is True
    assert rules.strict_inquiry_transitions is True
    assert rules.require_verified_payout_account is True
    assert rules.default_page_size == 20
    assert rules.max_page_size == 100
    assert rules.recent_activity_limit == 50
    assert rules.daily_stats_default_days == 30
    assert rules.daily_stats_max_days == 365


@pytest.mark.unit
def test_engagement_rules_validation():
    with pytest.raises(ValueError):
        EngagementRules(default_page_size=0)

    with pytest.raises(ValueError):
        EngagementRules(recent_activity_limit=10_000)


@pytest.mark.unit
def test_get_engagement_rules_is_cached():
    assert get_engagement_rules() is get_engagement_rules()


@pytest.mark.unit
def test_set_and_reset_engagement_rules():
    set_engagement_rules(EngagementRules(strict_booking_transitions=False))
    assert get_engagement_rules().strict_booking_transitions is False

    reset_all_configs()
    assert get_engagement_rules().strict_booking_transitions is True
