"""
amgate CLI.

Commands:
    amgate serve      Run the webhook server
    amgate check      Validate a gateway config file
    amgate dispatch   Show which actions a payload would trigger (no execution)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from amgate.alertmanager import WebhookPayload
from amgate.config import get_config
from amgate.dispatcher import dispatch as dispatch_payload
from amgate.logger import configure_logging
from amgate.rules.loader import ConfigError, ConfigLoader, find_config_problems
from amgate.rules.schema import GatewayConfig


def _config_source(settings, loader: ConfigLoader):
    """Callable that loads the gateway config from the configured location."""
    if settings.config_file:
        path = Path(settings.config_file)
        return lambda: loader.load(path)

    from amgate import kube

    core = kube.core_api()
    return lambda: loader.load_from_configmap(
        core, settings.namespace, settings.configmap_name
    )


def _load_or_fail(path: str) -> GatewayConfig:
    try:
        return ConfigLoader().load(Path(path))
    except ConfigError as e:
        raise click.ClickException(str(e))


@click.group()
@click.version_option(package_name="amgate")
def main():
    """amgate - route Alertmanager alerts to remediation actions."""
    pass


@main.command()
@click.option("--config-file", "-c", type=click.Path(exists=True, dir_okay=False),
              help="Gateway config YAML (default: ConfigMap)")
@click.option("--host", default=None, help="Override server.host")
@click.option("--port", type=int, default=None, help="Override server.port")
@click.option("--debug", is_flag=True, help="Enable Flask debug mode")
def serve(config_file: Optional[str], host: Optional[str], port: Optional[int], debug: bool):
    """Run the webhook server."""
    overrides = {"config_file": config_file} if config_file else {}
    settings = get_config(**overrides)
    configure_logging(settings.log_level, settings.log_format)

    from kubernetes.config import ConfigException

    from amgate import kube

    # Actions talk to the cluster whatever the config source is
    try:
        kube.load_kube_config(settings.kubeconfig)
    except ConfigException as e:
        raise click.ClickException(f"Failed to load Kubernetes credentials: {e}")

    # Import here so the built-in actions register with the global registry
    from amgate import actions  # noqa: F401
    from amgate.rules.snapshot import ConfigHolder
    from amgate.server import WebhookServer

    source = _config_source(settings, ConfigLoader())
    try:
        holder = ConfigHolder(source(), source=source)
    except ConfigError as e:
        raise click.ClickException(str(e))

    for problem in find_config_problems(holder.current):
        click.echo(f"warning: {problem}", err=True)

    WebhookServer(holder).run(host=host, port=port, debug=debug)


@main.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def check(config_file: str):
    """Validate CONFIG_FILE and report patterns that can never match."""
    config = _load_or_fail(config_file)

    click.echo(f"server: {config.server.host}:{config.server.port}")
    click.echo(f"actions: {len(config.actions)}")
    for action in config.actions:
        click.echo(f"  - {action.name} ({len(action.matchers)} matchers)")

    problems = find_config_problems(config)
    for problem in problems:
        click.echo(f"warning: {problem}", err=True)

    if not problems:
        click.echo("OK")


@main.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("payload_file", type=click.File("r"))
def dispatch(config_file: str, payload_file):
    """Print the dispatch results for PAYLOAD_FILE ("-" for stdin) as JSON."""
    config = _load_or_fail(config_file)

    try:
        payload = WebhookPayload.model_validate(json.load(payload_file))
    except ValueError as e:
        raise click.ClickException(f"Invalid payload: {e}")

    results = dispatch_payload(config, payload)
    click.echo(json.dumps([r.to_dict() for r in results], indent=2))


if __name__ == "__main__":
    main()
