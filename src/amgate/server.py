"""
Webhook server for amgate.

Receives Alertmanager webhooks, dispatches each alert against the active
gateway configuration and runs the matched actions in order.
"""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from amgate.actions.base import ActionRegistry, action_registry
from amgate.alertmanager import WebhookPayload
from amgate.dispatcher import dispatch
from amgate.logger import DispatchLogger
from amgate.metrics import DispatchMetrics
from amgate.rules.loader import ConfigError
from amgate.rules.snapshot import ConfigHolder

logger = logging.getLogger(__name__)


class WebhookServer:
    """
    Flask-based webhook server.

    Each request reads one configuration snapshot from the holder and uses
    it for the whole dispatch, so a concurrent reload never mixes rule sets.
    Matched actions run synchronously; the first failure ends the request
    with HTTP 500.
    """

    def __init__(
        self,
        holder: ConfigHolder,
        registry: Optional[ActionRegistry] = None,
        events: Optional[DispatchLogger] = None,
        metrics: Optional[DispatchMetrics] = None,
    ):
        self.holder = holder
        self.registry = registry if registry is not None else action_registry
        self.events = events or DispatchLogger()
        self.metrics = metrics or DispatchMetrics()

        self.app = Flask(__name__)
        CORS(self.app)

        self._setup_routes()

    def _setup_routes(self):
        """Set up Flask routes."""

        @self.app.route("/healthz", methods=["GET"])
        def health():
            return jsonify({"status": "ok"})

        @self.app.route("/actions", methods=["GET"])
        def list_actions():
            """List registered actions and the rules that reference them."""
            return jsonify({
                "actions": self.registry.list_actions(),
                "rules": self.holder.current.action_names(),
            })

        @self.app.route("/webhook", methods=["POST"])
        def webhook():
            """
            Handle an Alertmanager webhook.

            Response (200):
                {"status": "ok", "dispatched": [ActionResult, ...]}

            Response (400): malformed payload
            Response (500): action not found or action failed
            """
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return jsonify({"error": "request body must be a JSON object"}), 400

            try:
                payload = WebhookPayload.model_validate(data)
            except ValidationError as e:
                logger.warning("Rejected webhook payload: %s", e)
                return jsonify({"error": str(e)}), 400

            logger.debug("Received webhook payload: %s", payload.model_dump())
            self.events.log_webhook_received(
                group_key=payload.group_key,
                status=payload.status,
                alert_count=len(payload.alerts),
                truncated_alerts=payload.truncated_alerts,
            )
            self.metrics.record_alerts(len(payload.alerts), payload.receiver)

            config = self.holder.current
            outcomes = []

            for result in dispatch(config, payload):
                alert = result.alert.alert
                self.events.log_matched(
                    action=result.action_name,
                    fingerprint=alert.fingerprint,
                    alert_status=alert.status,
                    alertname=alert.labels.get("alertname"),
                )
                self.metrics.record_match(result.action_name)

                if result.action_name not in self.registry:
                    self.events.log_action_not_found(result.action_name, alert.fingerprint)
                    return jsonify({"error": "action not found"}), 500

                outcome = self.registry.execute(result)
                self.metrics.record_run(result.action_name, outcome.status.value)

                if not outcome.ok:
                    self.events.log_action_failed(
                        action=result.action_name,
                        fingerprint=alert.fingerprint,
                        error=outcome.message,
                        duration_ms=outcome.duration_ms,
                    )
                    return jsonify({"error": outcome.message}), 500

                self.events.log_action_succeeded(
                    action=result.action_name,
                    fingerprint=alert.fingerprint,
                    duration_ms=outcome.duration_ms,
                    message=outcome.message,
                )
                outcomes.append(outcome.to_dict())

            return jsonify({"status": "ok", "dispatched": outcomes})

        @self.app.route("/-/reload", methods=["POST"])
        def reload_config():
            """Rebuild the gateway configuration from its source."""
            if not self.holder.can_reload:
                return jsonify({"error": "reload is not configured"}), 501

            try:
                config = self.holder.reload()
            except ConfigError as e:
                logger.error("Config reload failed: %s", e)
                return jsonify({"error": str(e)}), 500

            return jsonify({"status": "ok", "actions": config.action_names()})

    def run(self, host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
        """Start the webhook server on the configured (or given) address."""
        server = self.holder.current.server
        host = host or server.host
        port = port or server.port

        logger.info("Starting amgate webhook server on %s:%s", host, port)
        logger.info("Registered actions: %s", self.registry.names())

        self.app.run(host=host, port=port, debug=debug)
