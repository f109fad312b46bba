"""
Unit tests for metrics collection and Prometheus export.
"""

import pytest
from src.lib.metrics import MetricsCollector, get_metrics_collector, reset_metrics


@pytest.fixture
def metrics():
    """Fresh metrics collector for each test."""
    return MetricsCollector()


@pytest.mark.unit
def test_metrics_collector_initialization(metrics):
    assert metrics.export_prometheus() == ""


@pytest.mark.unit
def test_increment_activity(metrics):
    metrics.increment_activity("profile_viewed")
    metrics.increment_activity("PROFILE_VIEWED", amount=2)

    assert metrics.get_counter_value("activity_events_total", {"event_type": "profile_viewed"}) == 3


@pytest.mark.unit
def test_booking_transitions_labelled_by_both_states(metrics):
    metrics.increment_booking_transition("pending", "confirmed")
    metrics.increment_booking_transition("in_progress", "completed")
    metrics.increment_booking_transition("in_progress", "completed")

    assert metrics.get_counter_value(
        "booking_transitions_total", {"from_status": "pending", "to_status": "confirmed"}
    ) == 1
    assert metrics.get_counter_value(
        "booking_transitions_total", {"from_status": "in_progress", "to_status": "completed"}
    ) == 2
    assert metrics.get_counter_value(
        "booking_transitions_total", {"from_status": "pending", "to_status": "completed"}
    ) == 0


@pytest.mark.unit
def test_review_and_inquiry_counters_are_separate(metrics):
    metrics.increment_review_mutation("created")
    metrics.increment_inquiry_event("created")
    metrics.increment_inquiry_event("created")

    assert metrics.get_counter_value("review_mutations_total", {"action": "created"}) == 1
    assert metrics.get_counter_value("inquiry_events_total", {"action": "created"}) == 2


@pytest.mark.unit
def test_export_prometheus_format(metrics):
    metrics.increment_activity("job_completed")
    metrics.increment_rating_recompute_failures()

    output = metrics.export_prometheus()

    assert "# HELP activity_events_total" in output
    assert "# TYPE activity_events_total counter" in output
    assert 'activity_events_total{event_type="job_completed"} 1' in output
    # Unlabelled counter
    assert "rating_recompute_failures_total 1" in output


@pytest.mark.unit
def test_export_sorted_by_metric_name(metrics):
    metrics.increment_review_mutation("deleted")
    metrics.increment_activity("contact_clicked")

    output = metrics.export_prometheus()

    assert output.index("activity_events_total") < output.index("review_mutations_total")


@pytest.mark.unit
def test_reset_all(metrics):
    metrics.increment_inquiry_event("responded")
    metrics.reset_all()

    assert metrics.export_prometheus() == ""


@pytest.mark.unit
def test_global_collector_singleton():
    first = get_metrics_collector()
    first.increment_activity("profile_updated")

    assert get_metrics_collector() is first
    reset_metrics()
    assert first.get_counter_value("activity_events_total", {"event_type": "profile_updated"}) == 0
