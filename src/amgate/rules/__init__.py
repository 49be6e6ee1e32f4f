"""
Gateway configuration: schema, YAML/ConfigMap loading and hot-reload snapshots.

Example:
    from amgate.rules import ConfigLoader, ConfigHolder

    loader = ConfigLoader()
    holder = ConfigHolder(loader.load(Path("amgate.yaml")))
    config = holder.current
"""

from amgate.rules.loader import ConfigError, ConfigLoader, find_config_problems
from amgate.rules.schema import (
    ActionMatcher,
    ActionRule,
    GatewayConfig,
    LabelMatcher,
    MatchOperator,
    Matcher,
    ServerConfig,
)
from amgate.rules.snapshot import ConfigHolder

__all__ = [
    "ActionMatcher",
    "ActionRule",
    "ConfigError",
    "ConfigHolder",
    "ConfigLoader",
    "GatewayConfig",
    "LabelMatcher",
    "MatchOperator",
    "Matcher",
    "ServerConfig",
    "find_config_problems",
]
