"""Criteria tree evaluation.

Evaluates a definition's AND/OR criteria tree over test results that have
already been computed. Evaluation is pure: every child is evaluated (no
short-circuit) and no host access happens here.

Leaf semantics:
    value = (status == pass), then negated if the leaf says so.
    "error" and "unknown" results count as False for the boolean and set
    the matching flag. A test id with no result, or one listed as
    unresolved, counts as an error. A node without children (only
    possible when built in code; the parser rejects it) is unknown.

Definition status:
    any error   -> error
    any unknown -> unknown
    otherwise   -> pass / fail from the root boolean

Example:
-------
    >>> outcome = evaluate(definition.criteria, results_by_id)
    >>> definition_status(outcome)
    <Status.PASS: 'pass'>

"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass

from ovalscan._types import Status, TestResult
from ovalscan.model import Criteria, CriteriaNode, Criterion, Operator


@dataclass(frozen=True)
class CriteriaOutcome:
    """Boolean value of a (sub)tree plus whether any input was inconclusive."""

    value: bool
    has_error: bool = False
    has_unknown: bool = False


def _evaluate_leaf(
    leaf: Criterion,
    results: Mapping[str, TestResult],
    unresolved: Collection[str],
) -> CriteriaOutcome:
    result = results.get(leaf.test_ref)
    if leaf.test_ref in unresolved or result is None:
        return CriteriaOutcome(value=leaf.negate, has_error=True)

    value = result.status is Status.PASS
    return CriteriaOutcome(
        value=value != leaf.negate,
        has_error=result.status is Status.ERROR,
        has_unknown=result.status is Status.UNKNOWN,
    )


def _evaluate_node(
    node: CriteriaNode,
    results: Mapping[str, TestResult],
    unresolved: Collection[str],
) -> CriteriaOutcome:
    if isinstance(node, Criterion):
        return _evaluate_leaf(node, results, unresolved)
    if not node.children:
        # Nothing was assessed, whatever the operator or negation.
        return CriteriaOutcome(value=False, has_unknown=True)

    outcomes = [_evaluate_node(child, results, unresolved) for child in node.children]
    if node.operator is Operator.AND:
        value = all(o.value for o in outcomes)
    else:
        value = any(o.value for o in outcomes)

    return CriteriaOutcome(
        value=value != node.negate,
        has_error=any(o.has_error for o in outcomes),
        has_unknown=any(o.has_unknown for o in outcomes),
    )


def evaluate(
    criteria: Criteria,
    results: Mapping[str, TestResult],
    unresolved: Collection[str] = (),
) -> CriteriaOutcome:
    """Evaluate a criteria tree.

    Args:
        criteria: Root node of a definition's criteria tree.
        results: Test results keyed by test id.
        unresolved: Test ids known not to exist in the document.

    Returns:
        CriteriaOutcome for the root.

    """
    return _evaluate_node(criteria, results, frozenset(unresolved))


def definition_status(outcome: CriteriaOutcome) -> Status:
    """Map a root outcome to a definition verdict."""
    if outcome.has_error:
        return Status.ERROR
    if outcome.has_unknown:
        return Status.UNKNOWN
    return Status.PASS if outcome.value else Status.FAIL
