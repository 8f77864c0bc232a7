"""Result aggregation.

Collects the TestResults of a finished scan and builds one
DefinitionResult per definition through the criteria evaluator. Ordering
is stable for deterministic output: definitions and tests in document
order, and the tests of a definition in the order its criteria name them.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping

from ovalscan._types import DefinitionResult, ScanReport, TestResult
from ovalscan.criteria import definition_status, evaluate
from ovalscan.model import Definition, Document
from ovalscan.resolver import Resolution

logger = logging.getLogger(__name__)


def build_definition_result(
    definition: Definition,
    results: Mapping[str, TestResult],
    unresolved: Collection[str] = (),
) -> DefinitionResult:
    """Evaluate one definition and gather the results it depends on."""
    outcome = evaluate(definition.criteria, results, unresolved)

    contributing: list[TestResult] = []
    missing: list[str] = []
    seen: set[str] = set()
    for test_ref in definition.criteria.iter_test_refs():
        if test_ref in seen:
            continue
        seen.add(test_ref)
        if test_ref in results:
            contributing.append(results[test_ref])
        else:
            missing.append(test_ref)

    return DefinitionResult(
        definition_id=definition.id,
        status=definition_status(outcome),
        definition_class=definition.definition_class,
        title=definition.title,
        test_results=tuple(contributing),
        unresolved_refs=tuple(missing),
    )


def aggregate(
    document: Document,
    test_results: Iterable[TestResult],
    resolution: Resolution,
    *,
    started_at: str = "",
    finished_at: str = "",
) -> ScanReport:
    """Build the final ScanReport.

    Args:
        document: The scanned document.
        test_results: One result per test, in any order.
        resolution: Resolver output (errors and unresolved criteria).
        started_at: ISO-8601 scan start time.
        finished_at: ISO-8601 scan finish time.

    Returns:
        ScanReport in document order.

    """
    by_id = {r.test_id: r for r in test_results}
    ordered = tuple(by_id[test_id] for test_id in document.tests if test_id in by_id)

    definition_results = tuple(
        build_definition_result(definition, by_id, resolution.unresolved_criteria)
        for definition in document.definitions.values()
    )

    logger.debug("Aggregated %d test results into %d definitions", len(ordered), len(definition_results))
    return ScanReport(
        test_results=ordered,
        definition_results=definition_results,
        resolution_errors=resolution.errors,
        started_at=started_at,
        finished_at=finished_at,
        source=document.source,
    )
