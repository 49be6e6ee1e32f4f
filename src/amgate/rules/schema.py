"""
Pydantic v2 models for the gateway configuration YAML format.

The configuration binds named actions to matching rules evaluated against
incoming Alertmanager alerts.  Each action carries a list of matchers; a
matcher compares one flat alert field (``status``, ``startsAt``,
``endsAt``, ``generatorURL``, ``fingerprint``) and may additionally
constrain the alert's labels and annotations and the batch-level common
labels and annotations.

All models use ``extra="forbid"`` to reject unknown keys at parse time and
``frozen=True`` so that a loaded configuration is an immutable snapshot.

Usage::

    from amgate.rules.schema import GatewayConfig
    import yaml

    with open("amgate.yaml") as fh:
        raw = yaml.safe_load(fh)
    config = GatewayConfig.model_validate(raw)
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Flat per-alert fields a top-level action matcher may reference.
ALERT_FIELDS = ("status", "startsAt", "endsAt", "generatorURL", "fingerprint")


class MatchOperator(str, Enum):
    """Comparison applied between the actual value and ``Matcher.value``."""

    EQUAL = "="
    NOT_EQUAL = "!="
    REGEX = "=~"


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


class Matcher(BaseModel):
    """A single ``key op value`` comparison against a flat string mapping."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    key: str = Field(..., min_length=1, description="Attribute key to look up")
    operator: MatchOperator = Field(
        ..., alias="op", description="One of =, != or =~"
    )
    value: str = Field(..., min_length=1, description="Expected value or pattern")


class LabelMatcher(BaseModel):
    """Conjunction of matchers evaluated against a label or annotation map."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    matchers: list[Matcher] = Field(default_factory=list)

    @field_validator("matchers", mode="before")
    @classmethod
    def none_is_empty(cls, v: object) -> object:
        return [] if v is None else v


class ActionMatcher(Matcher):
    """
    Matcher on a flat alert field, optionally narrowed by label sets.

    The nested label matchers default to empty, which matches anything.
    """

    labels: LabelMatcher = Field(default_factory=LabelMatcher)
    annotations: LabelMatcher = Field(default_factory=LabelMatcher)
    common_labels: LabelMatcher = Field(
        default_factory=LabelMatcher, alias="commonLabels"
    )
    common_annotations: LabelMatcher = Field(
        default_factory=LabelMatcher, alias="commonAnnotations"
    )

    @field_validator(
        "labels", "annotations", "common_labels", "common_annotations",
        mode="before",
    )
    @classmethod
    def none_is_default(cls, v: object) -> object:
        return {} if v is None else v


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class ActionRule(BaseModel):
    """A named action and the conditions under which it fires."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1, description="Registered action name")
    matchers: list[ActionMatcher] = Field(default_factory=list)
    attrs: dict[str, str] = Field(
        default_factory=dict,
        description="Static parameters forwarded to the action",
    )

    @field_validator("matchers", mode="before")
    @classmethod
    def matchers_none_is_empty(cls, v: object) -> object:
        return [] if v is None else v

    @field_validator("attrs", mode="before")
    @classmethod
    def attrs_none_is_empty(cls, v: object) -> object:
        return {} if v is None else v


# ---------------------------------------------------------------------------
# Top-level document
# ---------------------------------------------------------------------------


class ServerConfig(BaseModel):
    """Listen address of the webhook server."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(8080, ge=1, le=65535)

    # Empty host or port 0 (also "0" or "") in YAML means "use the default".
    @field_validator("host", mode="before")
    @classmethod
    def default_host(cls, v: object) -> object:
        return v or "0.0.0.0"

    @field_validator("port", mode="before")
    @classmethod
    def default_port(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip()
            if v.isdigit():
                v = int(v)
        return v or 8080


class GatewayConfig(BaseModel):
    """
    Root model of the gateway configuration.

    Action names must be unique; rule order is significant and is the
    order in which matches are emitted for each alert.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    server: ServerConfig = Field(default_factory=ServerConfig)
    actions: list[ActionRule] = Field(default_factory=list)

    @field_validator("server", mode="before")
    @classmethod
    def server_none_is_default(cls, v: object) -> object:
        return {} if v is None else v

    @field_validator("actions", mode="before")
    @classmethod
    def actions_none_is_empty(cls, v: object) -> object:
        return [] if v is None else v

    @model_validator(mode="after")
    def check_unique_names(self) -> "GatewayConfig":
        seen: set[str] = set()
        for action in self.actions:
            if action.name in seen:
                raise ValueError(f"duplicate action name: {action.name}")
            seen.add(action.name)
        return self

    def action_names(self) -> list[str]:
        return [a.name for a in self.actions]
