"""
Matcher evaluation.

A matcher compares one value from a flat string mapping against an
expected value.  Evaluation is fail-closed:

- a key missing from the mapping never matches, whatever the operator
  (``!=`` included);
- a ``=~`` pattern that does not compile never matches;
- an operator outside ``=``, ``!=``, ``=~`` never matches.

None of these raise, so one bad rule cannot stop dispatch for others.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping, Optional

from amgate.rules.schema import LabelMatcher, Matcher, MatchOperator

logger = logging.getLogger(__name__)


def compare(matcher: Matcher, actual: str) -> bool:
    """Apply the matcher's operator to a value known to be present."""
    op = matcher.operator
    if op is MatchOperator.EQUAL:
        return actual == matcher.value
    if op is MatchOperator.NOT_EQUAL:
        return actual != matcher.value
    if op is MatchOperator.REGEX:
        pattern = _compile(matcher.value)
        return pattern is not None and pattern.search(actual) is not None
    return False


def evaluate(actual_values: Mapping[str, str], matcher: Matcher) -> bool:
    """True iff ``matcher.key`` is present in ``actual_values`` and satisfies the matcher."""
    actual: Optional[str] = actual_values.get(matcher.key)
    if actual is None:
        return False
    return compare(matcher, actual)


def evaluate_all(actual_values: Mapping[str, str], label_matcher: LabelMatcher) -> bool:
    """AND of every matcher in the set; an empty set matches anything."""
    return all(evaluate(actual_values, m) for m in label_matcher.matchers)


def _compile(pattern: str) -> Optional[re.Pattern]:
    # re keeps its own cache of compiled patterns.
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning("Ignoring matcher with invalid pattern %r: %s", pattern, e)
        return None
