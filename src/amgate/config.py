"""
Process settings for amgate.

Uses Pydantic BaseSettings for environment variable integration
and validation. These settings describe where the gateway configuration
lives and how the process logs; the routing rules themselves are in
``amgate.rules``.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (AMGATE_*)
3. .env file
4. Default values

Example:
    from amgate.config import get_config

    config = get_config()
    print(config.configmap_name)  # From AMGATE_CONFIGMAP_NAME or default
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("debug", "info", "warning", "error")


class AmgateSettings(BaseSettings):
    """
    Central process settings for amgate.

    All settings can be overridden via environment variables
    prefixed with AMGATE_.

    Example:
        export AMGATE_NAMESPACE=monitoring
        export AMGATE_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="AMGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Gateway configuration source
    namespace: str = Field(
        default="amgate-system",
        description="Namespace of the ConfigMap holding the gateway config",
    )
    configmap_name: str = Field(
        default="amgate-config",
        description="Name of the ConfigMap holding the gateway config",
    )
    config_file: Optional[str] = Field(
        default=None,
        description="Read the gateway config from this YAML file instead of a ConfigMap",
    )

    # Kubernetes
    kubeconfig: Optional[str] = Field(
        default=None,
        description="Path to kubeconfig file (auto-detected if not set)",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for amgate",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format (json for collectors, text for console)",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> str:
        """Unknown levels fall back to info."""
        level = str(v or "").strip().lower()
        if level == "warn":
            level = "warning"
        return level if level in LOG_LEVELS else "info"

    @field_validator("config_file", "kubeconfig")
    @classmethod
    def expand_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ and environment variables in paths."""
        if not v:
            return None
        return os.path.expanduser(os.path.expandvars(v))


# Global singleton
_config: Optional[AmgateSettings] = None


def get_config(**overrides) -> AmgateSettings:
    """
    Get the global settings instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = AmgateSettings(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global settings (for testing)."""
    global _config
    _config = None
