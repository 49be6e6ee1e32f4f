"""
Kubernetes client bootstrap.

Resolution order for credentials:
1. an explicit kubeconfig path
2. the in-cluster service account
3. the default kubeconfig (``~/.kube/config`` or ``$KUBECONFIG``)
"""

from __future__ import annotations

import logging
from typing import Optional

from kubernetes import client, config

logger = logging.getLogger(__name__)


def load_kube_config(kubeconfig: Optional[str] = None) -> None:
    """Load credentials into the kubernetes client's default configuration."""
    if kubeconfig:
        config.load_kube_config(config_file=kubeconfig)
        logger.debug("Loaded kubeconfig from %s", kubeconfig)
        return

    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes config")
    except config.ConfigException:
        config.load_kube_config()
        logger.debug("Loaded default kubeconfig")


def core_api() -> client.CoreV1Api:
    return client.CoreV1Api()


def apps_api() -> client.AppsV1Api:
    return client.AppsV1Api()
