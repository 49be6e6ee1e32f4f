"""
Holder for the active gateway configuration.

Request handlers read ``holder.current`` once per request and use that
snapshot start to finish.  Reloading builds a complete new
``GatewayConfig`` and installs it with a single reference assignment, so a
request never observes a partially updated rule set.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from amgate.rules.schema import GatewayConfig

logger = logging.getLogger(__name__)


class ConfigHolder:
    """Atomically swappable reference to an immutable ``GatewayConfig``."""

    def __init__(
        self,
        config: GatewayConfig,
        source: Optional[Callable[[], GatewayConfig]] = None,
    ):
        """
        Args:
            config: Initial configuration snapshot.
            source: Callable producing a fresh snapshot; required for ``reload()``.
        """
        self._config = config
        self._source = source
        # Serializes reloads only; readers never take the lock.
        self._reload_lock = threading.Lock()

    @property
    def current(self) -> GatewayConfig:
        return self._config

    @property
    def can_reload(self) -> bool:
        return self._source is not None

    def replace(self, config: GatewayConfig) -> GatewayConfig:
        """Install a new snapshot and return the previous one."""
        previous, self._config = self._config, config
        logger.info(
            "Installed gateway config: actions=%d (was %d)",
            len(config.actions),
            len(previous.actions),
        )
        return previous

    def reload(self) -> GatewayConfig:
        """
        Rebuild the snapshot from the configured source.

        On failure the current snapshot stays in place and the error
        propagates to the caller.
        """
        if self._source is None:
            raise RuntimeError("ConfigHolder has no source to reload from")

        with self._reload_lock:
            config = self._source()
            self.replace(config)
        return config
