"""
Dispatch engine.

Evaluates every alert of a webhook payload against every configured action
rule and returns one ``DispatchResult`` per (alert, action) pair whose
conditions all hold.  Results are ordered by alert position in the payload,
then by action position in the configuration.

The engine is a pure function of (configuration, payload): no I/O, no
shared state, and it never raises.  A rule that does not match for an alert
only means that rule is skipped; every other rule is still evaluated for
that alert and for the remaining alerts.

Usage::

    from amgate.dispatcher import dispatch

    for result in dispatch(holder.current, payload):
        registry.execute(result)
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from amgate.alertmanager import Alert, WebhookPayload
from amgate.dispatcher.matching import evaluate, evaluate_all
from amgate.rules.schema import ActionMatcher, ActionRule, GatewayConfig


class DispatchAlert(BaseModel):
    """An alert denormalized with the batch-level fields of its payload."""

    model_config = ConfigDict(frozen=True)

    alert: Alert
    version: str = ""
    group_key: str = ""
    truncated_alerts: int = 0
    status: str = ""
    receiver: str = ""
    group_labels: dict[str, str] = Field(default_factory=dict)
    common_labels: dict[str, str] = Field(default_factory=dict)
    common_annotations: dict[str, str] = Field(default_factory=dict)
    external_url: str = ""

    @classmethod
    def from_payload(cls, alert: Alert, payload: WebhookPayload) -> "DispatchAlert":
        return cls(
            alert=alert,
            version=payload.version,
            group_key=payload.group_key,
            truncated_alerts=payload.truncated_alerts,
            status=payload.status,
            receiver=payload.receiver,
            group_labels=dict(payload.group_labels),
            common_labels=dict(payload.common_labels),
            common_annotations=dict(payload.common_annotations),
            external_url=payload.external_url,
        )


class DispatchResult(BaseModel):
    """One action to run for one alert."""

    model_config = ConfigDict(frozen=True)

    action_name: str
    alert: DispatchAlert
    attrs: dict[str, str] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def matcher_holds(matcher: ActionMatcher, alert: Alert, payload: WebhookPayload) -> bool:
    """Label-set checks first, then the flat alert-field comparison."""
    return (
        evaluate_all(alert.labels, matcher.labels)
        and evaluate_all(alert.annotations, matcher.annotations)
        and evaluate_all(payload.common_labels, matcher.common_labels)
        and evaluate_all(payload.common_annotations, matcher.common_annotations)
        and evaluate(alert.field_values(), matcher)
    )


def rule_matches(rule: ActionRule, alert: Alert, payload: WebhookPayload) -> bool:
    """True iff every matcher of the rule holds; a rule without matchers always fires."""
    return all(matcher_holds(m, alert, payload) for m in rule.matchers)


def dispatch(config: GatewayConfig, payload: WebhookPayload) -> list[DispatchResult]:
    """Map a webhook payload to the ordered list of actions to run."""
    return [
        DispatchResult(
            action_name=rule.name,
            alert=DispatchAlert.from_payload(alert, payload),
            attrs=dict(rule.attrs),
        )
        for alert in payload.alerts
        for rule in config.actions
        if rule_matches(rule, alert, payload)
    ]
