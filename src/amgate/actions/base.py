"""
Action framework for amgate.

An action is the remediation step bound to a rule name in the gateway
configuration.  The server resolves each ``DispatchResult.action_name``
through an ``ActionRegistry`` and runs the action with that result.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type

from amgate.dispatcher.engine import DispatchResult

logger = logging.getLogger(__name__)


class ActionStatus(Enum):
    """Result status of an action execution."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ActionResult:
    """Result of an action execution."""
    status: ActionStatus
    action_name: str
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def ok(self) -> bool:
        return self.status != ActionStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "action_name": self.action_name,
            "message": self.message,
            "data": self.data,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


class ActionExistsError(ValueError):
    """Raised when a second action is registered under an existing name."""


class Action(ABC):
    """
    Base class for amgate actions.

    Actions receive one dispatch result - the matched alert, its batch
    context and the static ``attrs`` of the rule - and perform a single
    remediation.  They should not retry; the caller decides what a
    failure means.
    """

    name: str = "base_action"
    description: str = "Base action class"

    @abstractmethod
    def run(self, result: DispatchResult) -> ActionResult:
        """
        Execute the action.

        Args:
            result: The dispatch result that selected this action

        Returns:
            ActionResult indicating success/failure
        """

    def validate(self, result: DispatchResult) -> Optional[str]:
        """
        Validate the dispatch result before execution.

        Returns:
            Error message if invalid, None if valid
        """
        return None


class ActionRegistry:
    """
    Registry for amgate actions.

    Actions can be registered as classes (instantiated lazily on first use)
    via decorator, or added as ready-made instances when they need
    constructor dependencies.
    """

    def __init__(self):
        self._actions: Dict[str, Type[Action]] = {}
        self._instances: Dict[str, Action] = {}

    def register(self, name: str) -> Callable[[Type[Action]], Type[Action]]:
        """
        Decorator to register an action class.

        Usage:
            @action_registry.register("my_action")
            class MyAction(Action):
                ...
        """
        def decorator(cls: Type[Action]) -> Type[Action]:
            self.register_class(name, cls)
            return cls
        return decorator

    def register_class(self, name: str, cls: Type[Action]) -> None:
        """Register an action class directly."""
        existing = self._actions.get(name)
        if (existing is not None and existing is not cls) or name in self._instances:
            raise ActionExistsError(f"action with name {name} already exists")
        cls.name = name
        self._actions[name] = cls
        logger.debug("Registered action: %s", name)

    def add(self, action: Action) -> None:
        """Register an already constructed action under ``action.name``."""
        if action.name in self._actions or action.name in self._instances:
            raise ActionExistsError(f"action with name {action.name} already exists")
        self._instances[action.name] = action
        logger.debug("Added action: %s", action.name)

    def get(self, name: str) -> Optional[Action]:
        """Get an action instance by name."""
        if name in self._instances:
            return self._instances[name]
        if name not in self._actions:
            return None

        # Lazy instantiation
        self._instances[name] = self._actions[name]()
        return self._instances[name]

    def __contains__(self, name: str) -> bool:
        return name in self._instances or name in self._actions

    def names(self) -> List[str]:
        return sorted(set(self._actions) | set(self._instances))

    def list_actions(self) -> List[Dict[str, str]]:
        """List all registered actions."""
        actions = []
        for name in self.names():
            source = self._instances.get(name) or self._actions[name]
            actions.append({"name": name, "description": source.description})
        return actions

    def execute(self, result: DispatchResult) -> ActionResult:
        """
        Run the action named by a dispatch result.

        Never raises: a missing action, a validation error or an exception
        inside the action are all reported as a FAILED result.
        """
        start_time = time.time()
        action_name = result.action_name

        action = self.get(action_name)
        if not action:
            return ActionResult(
                status=ActionStatus.FAILED,
                action_name=action_name,
                message=f"Action not found: {action_name}",
            )

        error = action.validate(result)
        if error:
            return ActionResult(
                status=ActionStatus.FAILED,
                action_name=action_name,
                message=f"Validation failed: {error}",
            )

        try:
            outcome = action.run(result)
            outcome.duration_ms = (time.time() - start_time) * 1000
            return outcome
        except Exception as e:
            logger.exception("Action %s failed", action_name)
            return ActionResult(
                status=ActionStatus.FAILED,
                action_name=action_name,
                message=str(e),
                duration_ms=(time.time() - start_time) * 1000,
            )


# Global registry instance; built-in actions register here on import
action_registry = ActionRegistry()
