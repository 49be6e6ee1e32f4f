"""
Actions run for dispatch results.

Importing this package registers the built-in actions (``log`` and
``k8s-rollout``) with the global ``action_registry``.
"""

from amgate.actions.base import (
    Action,
    ActionExistsError,
    ActionRegistry,
    ActionResult,
    ActionStatus,
    action_registry,
)
from amgate.actions.k8s_rollout import K8sRolloutAction
from amgate.actions.log import LogAction

__all__ = [
    "Action",
    "ActionExistsError",
    "ActionRegistry",
    "ActionResult",
    "ActionStatus",
    "K8sRolloutAction",
    "LogAction",
    "action_registry",
]
