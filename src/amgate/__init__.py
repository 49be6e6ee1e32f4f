"""
amgate - Alertmanager webhook gateway.

Receives Alertmanager webhook notifications, matches every alert against
declarative rules and runs the remediation actions bound to the rules that
match (for example a rolling restart of a Kubernetes workload).

Example usage:
    from amgate import ConfigLoader, WebhookPayload, dispatch

    config = ConfigLoader().load(Path("amgate.yaml"))
    payload = WebhookPayload.model_validate(body)
    for result in dispatch(config, payload):
        print(result.action_name, result.attrs)
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigLoader",
    "DispatchResult",
    "GatewayConfig",
    "WebhookPayload",
    "WebhookServer",
    "dispatch",
    "__version__",
]


# Lazy imports to avoid loading Flask and the Kubernetes client at import time
def __getattr__(name: str):
    if name in ("ConfigLoader", "GatewayConfig"):
        from amgate import rules
        return getattr(rules, name)
    if name in ("DispatchResult", "dispatch"):
        from amgate import dispatcher
        return getattr(dispatcher, name)
    if name == "WebhookPayload":
        from amgate.alertmanager import WebhookPayload
        return WebhookPayload
    if name == "WebhookServer":
        from amgate.server import WebhookServer
        return WebhookServer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
