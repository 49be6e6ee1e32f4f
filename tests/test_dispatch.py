"""Tests for amgate.dispatcher.engine - dispatching payloads to action rules."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from amgate.alertmanager import Alert, WebhookPayload
from amgate.dispatcher import DispatchAlert, DispatchResult, dispatch, rule_matches
from amgate.rules.schema import GatewayConfig


def make_config(actions: List[Dict[str, Any]]) -> GatewayConfig:
    return GatewayConfig.model_validate({"actions": actions})


def make_payload(*alerts: Dict[str, Any], **batch: Any) -> WebhookPayload:
    return WebhookPayload.model_validate({**batch, "alerts": list(alerts)})


STATUS_FIRING = {"key": "status", "op": "=", "value": "firing"}


@pytest.fixture()
def firing_action() -> Dict[str, Any]:
    return {"name": "test", "matchers": [STATUS_FIRING]}


# =========================================================================
# Scenarios
# =========================================================================


class TestScenarios:

    def test_empty_config_yields_no_results(self) -> None:
        results = dispatch(GatewayConfig(), make_payload({"status": "firing"}))
        assert results == []

    def test_empty_payload_yields_no_results(self, firing_action) -> None:
        assert dispatch(make_config([firing_action]), WebhookPayload()) == []

    def test_empty_alert_list_yields_no_results(self, firing_action) -> None:
        assert dispatch(make_config([firing_action]), make_payload()) == []

    def test_status_equal_match(self, firing_action) -> None:
        results = dispatch(make_config([firing_action]), make_payload({"status": "firing"}))

        assert len(results) == 1
        assert results[0].action_name == "test"
        assert results[0].alert.alert.status == "firing"

    def test_status_equal_mismatch(self, firing_action) -> None:
        results = dispatch(make_config([firing_action]), make_payload({"status": "resolved"}))
        assert results == []

    def test_label_submatcher_failure_blocks_match(self) -> None:
        config = make_config([{
            "name": "test",
            "matchers": [{
                **STATUS_FIRING,
                "labels": {"matchers": [{"key": "severity", "op": "=", "value": "critical"}]},
            }],
        }])
        payload = make_payload({"status": "firing", "labels": {"severity": "warning"}})

        assert dispatch(config, payload) == []

    def test_regex_flat_matcher(self) -> None:
        config = make_config([{
            "name": "test",
            "matchers": [{"key": "status", "op": "=~", "value": "fir.*"}],
        }])
        results = dispatch(config, make_payload({"status": "firing"}))
        assert [r.action_name for r in results] == ["test"]

    def test_two_alerts_two_actions_ordered_by_alert_then_action(self) -> None:
        config = make_config([
            {"name": "on-resolved", "matchers": [{"key": "status", "op": "=", "value": "resolved"}]},
            {"name": "on-firing", "matchers": [STATUS_FIRING]},
        ])
        payload = make_payload(
            {"status": "firing", "fingerprint": "a1"},
            {"status": "resolved", "fingerprint": "a2"},
        )

        results = dispatch(config, payload)

        assert [(r.alert.alert.fingerprint, r.action_name) for r in results] == [
            ("a1", "on-firing"),
            ("a2", "on-resolved"),
        ]


# =========================================================================
# Ordering and independence
# =========================================================================


class TestOrdering:

    def test_multiple_matches_per_alert_follow_config_order(self) -> None:
        config = make_config([
            {"name": "third", "matchers": []},
            {"name": "first", "matchers": [STATUS_FIRING]},
            {"name": "second", "matchers": [{"key": "fingerprint", "op": "=~", "value": "."}]},
        ])
        payload = make_payload(
            {"status": "firing", "fingerprint": "x"},
            {"status": "firing", "fingerprint": "y"},
        )

        results = dispatch(config, payload)

        assert [(r.alert.alert.fingerprint, r.action_name) for r in results] == [
            ("x", "third"), ("x", "first"), ("x", "second"),
            ("y", "third"), ("y", "first"), ("y", "second"),
        ]

    def test_repeated_calls_are_identical(self, sample_config, sample_payload) -> None:
        first = dispatch(sample_config, sample_payload)
        second = dispatch(sample_config, sample_payload)
        assert first == second
        assert [r.to_dict() for r in first] == [r.to_dict() for r in second]

    def test_failing_rule_does_not_suppress_later_rules(self) -> None:
        config = make_config([
            {"name": "bad-regex", "matchers": [{"key": "status", "op": "=~", "value": "("}]},
            {"name": "missing-key", "matchers": [{"key": "nope", "op": "!=", "value": "x"}]},
            {"name": "good", "matchers": [STATUS_FIRING]},
        ])
        payload = make_payload({"status": "firing"}, {"status": "firing"})

        assert [r.action_name for r in dispatch(config, payload)] == ["good", "good"]

    def test_failing_alert_does_not_suppress_later_alerts(self) -> None:
        config = make_config([{"name": "test", "matchers": [STATUS_FIRING]}])
        payload = make_payload(
            {"status": "resolved", "fingerprint": "r"},
            {"status": "firing", "fingerprint": "f"},
        )

        results = dispatch(config, payload)
        assert [r.alert.alert.fingerprint for r in results] == ["f"]


# =========================================================================
# Rule evaluation details
# =========================================================================


class TestRuleMatches:

    def test_all_matchers_of_a_rule_must_hold(self) -> None:
        config = make_config([{
            "name": "test",
            "matchers": [
                STATUS_FIRING,
                {"key": "fingerprint", "op": "=", "value": "abc"},
            ],
        }])
        rule = config.actions[0]
        payload = WebhookPayload()

        assert rule_matches(rule, Alert(status="firing", fingerprint="abc"), payload) is True
        assert rule_matches(rule, Alert(status="firing", fingerprint="def"), payload) is False

    def test_rule_without_matchers_matches_everything(self) -> None:
        rule = make_config([{"name": "catch-all"}]).actions[0]
        assert rule_matches(rule, Alert(), WebhookPayload()) is True

    @pytest.mark.parametrize(
        "dimension, alert_fields, batch_fields",
        [
            ("labels", {"labels": {"team": "shop"}}, {}),
            ("annotations", {"annotations": {"team": "shop"}}, {}),
            ("commonLabels", {}, {"commonLabels": {"team": "shop"}}),
            ("commonAnnotations", {}, {"commonAnnotations": {"team": "shop"}}),
        ],
    )
    def test_each_label_dimension_reads_its_own_map(
        self, dimension, alert_fields, batch_fields
    ) -> None:
        config = make_config([{
            "name": "test",
            "matchers": [{
                **STATUS_FIRING,
                dimension: {"matchers": [{"key": "team", "op": "=", "value": "shop"}]},
            }],
        }])

        hit = make_payload({"status": "firing", **alert_fields}, **batch_fields)
        miss = make_payload({"status": "firing"})

        assert len(dispatch(config, hit)) == 1
        assert dispatch(config, miss) == []

    def test_flat_matcher_must_hold_even_if_labels_pass(self) -> None:
        config = make_config([{
            "name": "test",
            "matchers": [{
                **STATUS_FIRING,
                "labels": {"matchers": [{"key": "severity", "op": "=", "value": "critical"}]},
            }],
        }])
        payload = make_payload({"status": "resolved", "labels": {"severity": "critical"}})
        assert dispatch(config, payload) == []

    @pytest.mark.parametrize(
        "key, value",
        [
            ("startsAt", "2024-05-01T10:00:00Z"),
            ("endsAt", "2024-05-01T11:00:00Z"),
            ("generatorURL", "http://prom.test/graph"),
            ("fingerprint", "deadbeef"),
        ],
    )
    def test_flat_fields_are_matchable(self, key, value) -> None:
        config = make_config([{"name": "t", "matchers": [{"key": key, "op": "=", "value": value}]}])
        assert len(dispatch(config, make_payload({key: value}))) == 1

    def test_label_keys_are_not_flat_fields(self) -> None:
        config = make_config([{"name": "t", "matchers": [{"key": "severity", "op": "=", "value": "critical"}]}])
        payload = make_payload({"status": "firing", "labels": {"severity": "critical"}})
        assert dispatch(config, payload) == []


# =========================================================================
# Result shaping
# =========================================================================


class TestDispatchResult:

    def test_batch_fields_are_denormalized(self, sample_config, sample_payload) -> None:
        results = dispatch(sample_config, sample_payload)
        view = results[0].alert

        assert isinstance(view, DispatchAlert)
        assert view.version == "4"
        assert view.group_key == sample_payload.group_key
        assert view.receiver == "amgate"
        assert view.status == "firing"
        assert view.truncated_alerts == 0
        assert view.group_labels == {"alertname": "PodCrashLooping"}
        assert view.common_labels["namespace"] == "shop"
        assert view.common_annotations == {"runbook": "https://runbooks.test/crashloop"}
        assert view.external_url == "http://alertmanager.test"
        assert view.alert.fingerprint == "aaa111"

    def test_attrs_are_forwarded(self, sample_config, sample_payload) -> None:
        rollout = [r for r in dispatch(sample_config, sample_payload) if r.action_name == "k8s-rollout"]

        assert len(rollout) == 1
        assert rollout[0].attrs == {"kind": "Deployment", "namespace": "shop", "name": "checkout"}

    def test_attrs_are_copied_not_shared(self, sample_config, sample_payload) -> None:
        result = dispatch(sample_config, sample_payload)[0]
        result.attrs["kind"] = "mutated"

        assert sample_config.actions[0].attrs["kind"] == "Deployment"

    def test_sample_payload_results(self, sample_config, sample_payload) -> None:
        results = dispatch(sample_config, sample_payload)
        # critical firing alert hits both rules; resolved warning only "log"
        assert [(r.alert.alert.fingerprint, r.action_name) for r in results] == [
            ("aaa111", "k8s-rollout"),
            ("aaa111", "log"),
            ("bbb222", "log"),
        ]

    def test_to_dict_is_json_friendly(self, sample_config, sample_payload) -> None:
        data = dispatch(sample_config, sample_payload)[0].to_dict()

        assert data["action_name"] == "k8s-rollout"
        assert data["alert"]["alert"]["fingerprint"] == "aaa111"
        assert data["alert"]["group_key"] == sample_payload.group_key

    def test_result_is_immutable(self, sample_config, sample_payload) -> None:
        result: DispatchResult = dispatch(sample_config, sample_payload)[0]
        with pytest.raises(Exception):
            result.action_name = "other"  # type: ignore[misc]
