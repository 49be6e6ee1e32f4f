"""
Log action - writes dispatch results to the log.

A simple built-in action for debugging and testing rule configurations.
"""

import logging

from amgate.actions.base import Action, ActionResult, ActionStatus, action_registry
from amgate.dispatcher.engine import DispatchResult

logger = logging.getLogger(__name__)


@action_registry.register("log")
class LogAction(Action):
    """
    Log action - writes the matched alert and attrs to logs.

    Useful for debugging webhook integrations.
    """

    name = "log"
    description = "Log the matched alert and rule attrs"

    def run(self, result: DispatchResult) -> ActionResult:
        alert = result.alert.alert
        logger.info(
            "[LogAction] alert=%s status=%s fingerprint=%s attrs=%s",
            alert.labels.get("alertname", ""),
            alert.status,
            alert.fingerprint,
            result.attrs,
        )
        logger.debug("[LogAction] labels=%s annotations=%s", alert.labels, alert.annotations)

        return ActionResult(
            status=ActionStatus.SUCCESS,
            action_name=self.name,
            message="Alert logged successfully",
            data={"fingerprint": alert.fingerprint, "attr_keys": sorted(result.attrs)},
        )
