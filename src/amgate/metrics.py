"""
Dispatch metrics.

Counters are created against the global OpenTelemetry meter provider, so
they are no-ops until the hosting process installs an SDK provider (for
example with ``opentelemetry-instrument``).

Metrics:
- amgate.webhook.alerts: alerts received
- amgate.dispatch.matches: (alert, action) matches, by action
- amgate.action.runs: action executions, by action and status
"""

from __future__ import annotations

from opentelemetry import metrics

WEBHOOK_ALERTS_METRIC = "amgate.webhook.alerts"
DISPATCH_MATCHES_METRIC = "amgate.dispatch.matches"
ACTION_RUNS_METRIC = "amgate.action.runs"


class DispatchMetrics:
    """Counters for the webhook → dispatch → action pipeline."""

    def __init__(self, meter_name: str = "amgate"):
        self._meter = metrics.get_meter(meter_name)

        self._alerts = self._meter.create_counter(
            name=WEBHOOK_ALERTS_METRIC,
            description="Alerts received on the webhook endpoint",
            unit="{alerts}",
        )
        self._matches = self._meter.create_counter(
            name=DISPATCH_MATCHES_METRIC,
            description="Alert/action pairs selected by dispatch",
            unit="{matches}",
        )
        self._runs = self._meter.create_counter(
            name=ACTION_RUNS_METRIC,
            description="Action executions",
            unit="{runs}",
        )

    def record_alerts(self, count: int, receiver: str = "") -> None:
        self._alerts.add(count, {"receiver": receiver})

    def record_match(self, action: str) -> None:
        self._matches.add(1, {"action": action})

    def record_run(self, action: str, status: str) -> None:
        self._runs.add(1, {"action": action, "status": status})
