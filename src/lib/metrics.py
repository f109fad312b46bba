"""
Prometheus-compatible metrics for observability.

Tracks engagement engine activity:
- Activity log appends (by event_type)
- Booking status transitions (by from/to status)
- Review and inquiry mutations (by action)
- Failed rating recomputations (reconciliation candidates)

Usage:
    from src.lib.metrics import get_metrics_collector

    metrics = get_metrics_collector()
    metrics.increment_activity(event_type="profile_viewed")
    metrics.increment_booking_transition("pending", "confirmed")

    # Export for Prometheus
    prometheus_output = metrics.export_prometheus()
"""

from typing import Dict, Tuple
from threading import Lock


class MetricsCollector:
    """
    Prometheus-style metrics collector.

    Counters:
    - activity_events_total: Activity log appends (labels: event_type)
    - booking_transitions_total: Booking status changes (labels: from_status, to_status)
    - review_mutations_total: Review writes (labels: action)
    - inquiry_events_total: Inquiry writes (labels: action)
    - rating_recompute_failures_total: Aggregate rating refreshes that failed after a review write

    Thread-safe for concurrent increments.
    """

    def __init__(self):
        self._lock = Lock()

        # Counters: key = (metric_name, labels_tuple), value = count
        self._counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = {}

    def _get_counter_key(self, metric_name: str, labels: Dict[str, str]) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        """Generate unique key for counter with sorted labels."""
        sorted_labels = tuple(sorted(labels.items()))
        return (metric_name, sorted_labels)

    def _increment(self, metric_name: str, labels: Dict[str, str], amount: int = 1):
        """Thread-safe increment of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def _get_value(self, metric_name: str, labels: Dict[str, str]) -> int:
        """Get current value of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    # ===== Engagement Metrics =====

    def increment_activity(self, event_type: str, amount: int = 1):
        """Increment activity log appends for one event type."""
        self._increment("activity_events_total", {"event_type": event_type.lower()}, amount)

    def increment_booking_transition(self, from_status: str, to_status: str, amount: int = 1):
        """
        Increment booking status transitions.

        Args:
            from_status: Status before the change
            to_status: Status after the change
            amount: Increment amount (default 1)
        """
        labels = {
            "from_status": from_status.lower(),
            "to_status": to_status.lower(),
        }
        self._increment("booking_transitions_total", labels, amount)

    def increment_review_mutation(self, action: str, amount: int = 1):
        """Increment review writes (created, updated, deleted, responded)."""
        self._increment("review_mutations_total", {"action": action.lower()}, amount)

    def increment_inquiry_event(self, action: str, amount: int = 1):
        """Increment inquiry writes (created, responded, status_changed)."""
        self._increment("inquiry_events_total", {"action": action.lower()}, amount)

    def increment_rating_recompute_failures(self, amount: int = 1):
        """Increment failed aggregate rating refreshes."""
        self._increment("rating_recompute_failures_total", {}, amount)

    # ===== Export =====

    def export_prometheus(self) -> str:
        """
        Export all metrics in Prometheus text format.

        Returns:
            Prometheus-compatible text output
        """
        output_lines = []

        metrics_by_name: Dict[str, list] = {}
        with self._lock:
            for (metric_name, labels_tuple), value in self._counters.items():
                metrics_by_name.setdefault(metric_name, []).append((dict(labels_tuple), value))

        for metric_name in sorted(metrics_by_name.keys()):
            help_text = self._get_help_text(metric_name)
            output_lines.append(f"# HELP {metric_name} {help_text}")
            output_lines.append(f"# TYPE {metric_name} counter")

            for labels_dict, value in sorted(metrics_by_name[metric_name], key=lambda x: str(x[0])):
                if labels_dict:
                    labels_str = ",".join([f'{k}="{v}"' for k, v in sorted(labels_dict.items())])
                    output_lines.append(f"{metric_name}{{{labels_str}}} {value}")
                else:
                    output_lines.append(f"{metric_name} {value}")

            output_lines.append("")  # Blank line between metrics

        return "\n".join(output_lines)

    def _get_help_text(self, metric_name: str) -> str:
        """Get help text for metric."""
        help_texts = {
            "activity_events_total": "Total number of business activity events recorded",
            "booking_transitions_total": "Total number of booking status transitions",
            "review_mutations_total": "Total number of review writes",
            "inquiry_events_total": "Total number of inquiry writes",
            "rating_recompute_failures_total": "Aggregate rating refreshes that failed after a review write",
        }
        return help_texts.get(metric_name, "Counter metric")

    def get_counter_value(self, metric_name: str, labels: Dict[str, str]) -> int:
        """
        Get current value of a specific counter.

        Args:
            metric_name: Name of the metric
            labels: Label filters

        Returns:
            Current counter value
        """
        return self._get_value(metric_name, labels)

    def reset_all(self):
        """Reset all counters (for testing)."""
        with self._lock:
            self._counters.clear()


# Global singleton instance
_metrics_collector: MetricsCollector | None = None
_metrics_lock = Lock()


def get_metrics_collector() -> MetricsCollector:
    """
    Get global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        with _metrics_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics():
    """Reset global metrics collector (for testing)."""
    global _metrics_collector
    with _metrics_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset_all()
