"""
Kubernetes rollout action - restarts a workload like ``kubectl rollout restart``.

The target comes from the rule's ``attrs``::

    attrs:
      kind: Deployment        # Deployment, StatefulSet or DaemonSet
      namespace: shop
      name: checkout
      dry_run: "false"        # optional; only logs when true

The restart is a patch to the pod template: the ``amgate.io/rollout``
label is set and ``amgate.io/restartedAt`` is stamped with the current
time, which makes the controller roll every pod.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from amgate import kube
from amgate.actions.base import Action, ActionResult, ActionStatus, action_registry
from amgate.dispatcher.engine import DispatchResult

logger = logging.getLogger(__name__)

ROLLOUT_LABEL = "amgate.io/rollout"
RESTARTED_AT_ANNOTATION = "amgate.io/restartedAt"

# kind -> AppsV1Api patch method
PATCH_METHODS: Dict[str, str] = {
    "Deployment": "patch_namespaced_deployment",
    "StatefulSet": "patch_namespaced_stateful_set",
    "DaemonSet": "patch_namespaced_daemon_set",
}

_TRUE = {"1", "t", "true"}
_FALSE = {"0", "f", "false"}


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse 1/t/true and 0/f/false (any case); anything else is ``default``."""
    if value is None:
        return default
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


@dataclass(frozen=True)
class RolloutTarget:
    """Workload selected by a rule's attrs."""
    kind: str
    namespace: str
    name: str
    dry_run: bool = False

    @classmethod
    def from_attrs(cls, attrs: Dict[str, str]) -> "RolloutTarget":
        return cls(
            kind=attrs.get("kind", ""),
            namespace=attrs.get("namespace", ""),
            name=attrs.get("name", ""),
            dry_run=parse_bool(attrs.get("dry_run")),
        )


def restart_patch(restarted_at: datetime) -> Dict[str, Any]:
    """Pod template patch that triggers a rolling restart."""
    return {
        "spec": {
            "template": {
                "metadata": {
                    "labels": {ROLLOUT_LABEL: "true"},
                    "annotations": {
                        RESTARTED_AT_ANNOTATION: restarted_at.isoformat(timespec="seconds"),
                    },
                }
            }
        }
    }


@action_registry.register("k8s-rollout")
class K8sRolloutAction(Action):
    """Rolling restart of a Deployment, StatefulSet or DaemonSet."""

    name = "k8s-rollout"
    description = "Restart a Kubernetes workload (kubectl rollout restart)"

    def __init__(
        self,
        apps_api: Optional[Any] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._apps_api = apps_api
        self._clock = clock

    @property
    def apps_api(self) -> Any:
        if self._apps_api is None:
            self._apps_api = kube.apps_api()
        return self._apps_api

    def validate(self, result: DispatchResult) -> Optional[str]:
        target = RolloutTarget.from_attrs(result.attrs)
        if target.kind not in PATCH_METHODS:
            return (
                f"unsupported kind {target.kind!r} "
                f"(expected one of {', '.join(PATCH_METHODS)})"
            )
        if not target.namespace:
            return "attrs.namespace is required"
        if not target.name:
            return "attrs.name is required"
        return None

    def run(self, result: DispatchResult) -> ActionResult:
        target = RolloutTarget.from_attrs(result.attrs)
        data = {"kind": target.kind, "namespace": target.namespace, "name": target.name}

        if target.dry_run:
            logger.info(
                "dry-run: would restart %s %s/%s",
                target.kind, target.namespace, target.name,
            )
            return ActionResult(
                status=ActionStatus.SKIPPED,
                action_name=self.name,
                message="dry-run",
                data=data,
            )

        patch = getattr(self.apps_api, PATCH_METHODS[target.kind])
        patch(name=target.name, namespace=target.namespace, body=restart_patch(self._clock()))
        logger.info("Restarted %s %s/%s", target.kind, target.namespace, target.name)

        return ActionResult(
            status=ActionStatus.SUCCESS,
            action_name=self.name,
            message=f"Rollout restart triggered for {target.kind} {target.namespace}/{target.name}",
            data=data,
        )
