"""
Alertmanager webhook payload models.

Mirrors the Alertmanager webhook (version 4) JSON body.  Field names are
snake_case in Python and camelCase on the wire; unknown keys are ignored
so newer Alertmanager releases do not break decoding.  Missing strings
decode as ``""`` and missing maps as ``{}``.

Usage::

    from amgate.alertmanager import WebhookPayload

    payload = WebhookPayload.model_validate(request.get_json())
    for alert in payload.alerts:
        print(alert.status, alert.labels.get("alertname"))
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

# JSON null decodes the same as an absent key.
Str = Annotated[str, BeforeValidator(lambda v: "" if v is None else v)]
StrMap = Annotated[dict[str, str], BeforeValidator(lambda v: {} if v is None else v)]


class Alert(BaseModel):
    """A single alert within a webhook notification."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    status: Str = ""
    labels: StrMap = Field(default_factory=dict)
    annotations: StrMap = Field(default_factory=dict)
    starts_at: Str = Field("", alias="startsAt")
    ends_at: Str = Field("", alias="endsAt")
    generator_url: Str = Field("", alias="generatorURL")
    fingerprint: Str = ""

    def field_values(self) -> dict[str, str]:
        """Flat field map that top-level action matchers are evaluated against."""
        return {
            "status": self.status,
            "startsAt": self.starts_at,
            "endsAt": self.ends_at,
            "generatorURL": self.generator_url,
            "fingerprint": self.fingerprint,
        }


class WebhookPayload(BaseModel):
    """A batch of grouped alerts delivered to a webhook receiver."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    version: Str = ""
    group_key: Str = Field("", alias="groupKey")
    truncated_alerts: int = Field(0, alias="truncatedAlerts")
    status: Str = ""
    receiver: Str = ""
    group_labels: StrMap = Field(default_factory=dict, alias="groupLabels")
    common_labels: StrMap = Field(default_factory=dict, alias="commonLabels")
    common_annotations: StrMap = Field(
        default_factory=dict, alias="commonAnnotations"
    )
    external_url: Str = Field("", alias="externalURL")
    alerts: list[Alert] = Field(default_factory=list)

    @field_validator("truncated_alerts", mode="before")
    @classmethod
    def none_is_zero(cls, v: object) -> object:
        return 0 if v is None else v

    @field_validator("alerts", mode="before")
    @classmethod
    def none_is_empty(cls, v: object) -> object:
        return [] if v is None else v
