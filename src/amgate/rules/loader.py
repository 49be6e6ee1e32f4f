"""
Gateway configuration loader.

Loads the gateway configuration from a YAML file, a YAML string, or a
Kubernetes ConfigMap, and validates it against the Pydantic schema models.
Every failure (missing file, malformed YAML, schema violation, API error)
surfaces as a single ``ConfigError`` so callers have one thing to catch.

The ConfigMap layout keeps ``server`` and ``actions`` as two separate YAML
documents under the data keys of the same name::

    data:
      server: |
        port: 8080
      actions: |
        - name: k8s-rollout
          matchers:
            - key: status
              op: "="
              value: firing

Usage::

    from amgate.rules.loader import ConfigLoader

    loader = ConfigLoader()
    config = loader.load(Path("amgate.yaml"))
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from amgate.rules.schema import ALERT_FIELDS, GatewayConfig, Matcher, MatchOperator

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the gateway configuration cannot be loaded or is invalid."""


class ConfigLoader:
    """Loads and validates gateway configuration documents."""

    def load(self, path: Path) -> GatewayConfig:
        """Load a configuration from a YAML file.

        Raises:
            ConfigError: If the file is missing, unparsable or invalid.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            with open(path, encoding="utf-8") as fh:
                text = fh.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        config = self.load_from_string(text, source=str(path))
        self._log_loaded(config, str(path))
        return config

    def load_from_string(self, yaml_str: str, source: str = "<string>") -> GatewayConfig:
        """Load a configuration from a YAML string."""
        raw = _parse_yaml(yaml_str, source)
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Expected YAML mapping at root of {source}, got {type(raw).__name__}"
            )
        return _validate(raw, source)

    def load_from_configmap(
        self,
        core_api: Any,
        namespace: str,
        name: str,
    ) -> GatewayConfig:
        """Load a configuration from the ``server``/``actions`` keys of a ConfigMap.

        Args:
            core_api: A ``kubernetes.client.CoreV1Api`` (or compatible) instance.
            namespace: ConfigMap namespace.
            name: ConfigMap name.
        """
        source = f"configmap {namespace}/{name}"
        try:
            cm = core_api.read_namespaced_config_map(name=name, namespace=namespace)
        except Exception as e:
            raise ConfigError(f"Failed to read {source}: {e}") from e

        data = cm.data or {}
        raw: dict[str, Any] = {}

        if "server" in data:
            raw["server"] = _parse_yaml(data["server"], f"{source} key 'server'")
        if "actions" in data:
            raw["actions"] = _parse_yaml(data["actions"], f"{source} key 'actions'")

        config = _validate(raw, source)
        self._log_loaded(config, source)
        return config

    def _log_loaded(self, config: GatewayConfig, source: str) -> None:
        logger.debug(
            "Loaded gateway config from %s: actions=%d",
            source,
            len(config.actions),
        )


def _parse_yaml(text: str, source: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e


def _validate(raw: dict[str, Any], source: str) -> GatewayConfig:
    try:
        return GatewayConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid gateway config in {source}: {e}") from e


def find_config_problems(config: GatewayConfig) -> list[str]:
    """
    Report non-fatal issues in a valid configuration.

    Regex patterns are compiled lazily at dispatch time and a pattern that
    does not compile simply never matches; this surfaces such patterns (and
    flat matchers on keys an alert never carries) ahead of time.
    """
    problems: list[str] = []

    for action in config.actions:
        for i, m in enumerate(action.matchers):
            where = f"action '{action.name}' matcher[{i}]"
            if m.key not in ALERT_FIELDS:
                problems.append(
                    f"{where}: key '{m.key}' is not an alert field "
                    f"({', '.join(ALERT_FIELDS)}) and will never match"
                )
            problems.extend(_regex_problems(where, [m]))
            for dimension, label_matcher in (
                ("labels", m.labels),
                ("annotations", m.annotations),
                ("commonLabels", m.common_labels),
                ("commonAnnotations", m.common_annotations),
            ):
                problems.extend(
                    _regex_problems(f"{where} {dimension}", label_matcher.matchers)
                )

    return problems


def _regex_problems(where: str, matchers: list[Matcher]) -> list[str]:
    problems = []
    for m in matchers:
        if m.operator is not MatchOperator.REGEX:
            continue
        error = _regex_error(m.value)
        if error:
            problems.append(f"{where}: pattern {m.value!r} does not compile: {error}")
    return problems


def _regex_error(pattern: str) -> Optional[str]:
    try:
        re.compile(pattern)
    except re.error as e:
        return str(e)
    return None
