"""Matching and dispatch of Alertmanager alerts to configured actions."""

from amgate.dispatcher.engine import (
    DispatchAlert,
    DispatchResult,
    dispatch,
    matcher_holds,
    rule_matches,
)
from amgate.dispatcher.matching import compare, evaluate, evaluate_all

__all__ = [
    "DispatchAlert",
    "DispatchResult",
    "compare",
    "dispatch",
    "evaluate",
    "evaluate_all",
    "matcher_holds",
    "rule_matches",
]
