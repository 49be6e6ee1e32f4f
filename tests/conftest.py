"""
Pytest configuration and fixtures for amgate tests.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Generator
from unittest.mock import MagicMock

import pytest

from amgate.alertmanager import WebhookPayload
from amgate.config import reset_config
from amgate.rules.loader import ConfigLoader
from amgate.rules.schema import GatewayConfig


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Strip AMGATE_* variables and reset the settings singleton around each test."""
    original = {k: v for k, v in os.environ.items() if k.startswith("AMGATE_")}
    for key in original:
        del os.environ[key]
    reset_config()

    yield

    for key in [k for k in os.environ if k.startswith("AMGATE_")]:
        del os.environ[key]
    os.environ.update(original)
    reset_config()


# ============================================================================
# Config Fixtures
# ============================================================================


SAMPLE_CONFIG_YAML = """\
server:
  host: 127.0.0.1
  port: 9093
actions:
  - name: k8s-rollout
    matchers:
      - key: status
        op: "="
        value: firing
        labels:
          matchers:
            - key: severity
              op: "="
              value: critical
    attrs:
      kind: Deployment
      namespace: shop
      name: checkout
  - name: log
    matchers:
      - key: status
        op: "=~"
        value: "fir.*|resolved"
"""


@pytest.fixture
def sample_config_yaml() -> str:
    return SAMPLE_CONFIG_YAML


@pytest.fixture
def sample_config() -> GatewayConfig:
    return ConfigLoader().load_from_string(SAMPLE_CONFIG_YAML)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "amgate.yaml"
    path.write_text(SAMPLE_CONFIG_YAML)
    return path


# ============================================================================
# Payload Fixtures
# ============================================================================


@pytest.fixture
def alertmanager_body() -> Dict[str, Any]:
    """A two-alert Alertmanager webhook body (wire format)."""
    return {
        "version": "4",
        "groupKey": '{}:{alertname="PodCrashLooping"}',
        "truncatedAlerts": 0,
        "status": "firing",
        "receiver": "amgate",
        "groupLabels": {"alertname": "PodCrashLooping"},
        "commonLabels": {"alertname": "PodCrashLooping", "namespace": "shop"},
        "commonAnnotations": {"runbook": "https://runbooks.test/crashloop"},
        "externalURL": "http://alertmanager.test",
        "alerts": [
            {
                "status": "firing",
                "labels": {
                    "alertname": "PodCrashLooping",
                    "namespace": "shop",
                    "severity": "critical",
                },
                "annotations": {"summary": "checkout is crashlooping"},
                "startsAt": "2024-05-01T10:00:00Z",
                "endsAt": "0001-01-01T00:00:00Z",
                "generatorURL": "http://prometheus.test/graph",
                "fingerprint": "aaa111",
            },
            {
                "status": "resolved",
                "labels": {
                    "alertname": "PodCrashLooping",
                    "namespace": "shop",
                    "severity": "warning",
                },
                "annotations": {},
                "startsAt": "2024-05-01T09:00:00Z",
                "endsAt": "2024-05-01T09:30:00Z",
                "generatorURL": "http://prometheus.test/graph",
                "fingerprint": "bbb222",
            },
        ],
    }


@pytest.fixture
def sample_payload(alertmanager_body) -> WebhookPayload:
    return WebhookPayload.model_validate(alertmanager_body)


# ============================================================================
# Kubernetes Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_apps_api() -> MagicMock:
    """Mock AppsV1Api for rollout tests."""
    return MagicMock()


@pytest.fixture
def mock_core_api() -> MagicMock:
    """Mock CoreV1Api returning a ConfigMap with server and actions keys."""
    api = MagicMock()
    cm = MagicMock()
    cm.data = {
        "server": "port: 9000\n",
        "actions": (
            "- name: log\n"
            "  matchers:\n"
            "    - key: status\n"
            "      op: \"=\"\n"
            "      value: firing\n"
        ),
    }
    api.read_namespaced_config_map.return_value = cm
    return api
