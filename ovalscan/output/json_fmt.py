"""JSON output formatter for scan reports.

Output Structure:
    {
        "source": "definitions.xml",
        "started_at": "ISO-8601 datetime",
        "finished_at": "ISO-8601 datetime",
        "definitions": [...],
        "tests": [...],
        "resolution_errors": [...],
        "summary": {counts}
    }

Each definition entry lists the ids of the tests it depends on; full test
records live once in "tests".

Example:
-------
    >>> from ovalscan.output import format_json
    >>> data = json.loads(format_json(report))
    >>> data["summary"]["definitions"]["pass"]

"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ovalscan._types import Status

if TYPE_CHECKING:
    from ovalscan._types import ScanReport, TestResult


def _test_data(result: TestResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "test_id": result.test_id,
        "status": result.status.value,
        "message": result.message,
        "timestamp": result.timestamp,
    }
    if result.details:
        data["details"] = result.details
    return data


def format_json(report: ScanReport) -> str:
    """Format a scan report as JSON.

    Args:
        report: Finished scan report.

    Returns:
        Pretty-printed JSON string (2-space indent).

    """
    data: dict[str, Any] = {
        "source": report.source,
        "started_at": report.started_at,
        "finished_at": report.finished_at,
        "definitions": [
            {
                "definition_id": d.definition_id,
                "class": d.definition_class,
                "title": d.title,
                "status": d.status.value,
                "tests": [t.test_id for t in d.test_results],
                **({"unresolved_refs": list(d.unresolved_refs)} if d.unresolved_refs else {}),
            }
            for d in report.definition_results
        ],
        "tests": [_test_data(t) for t in report.test_results],
        "resolution_errors": [e.to_dict() for e in report.resolution_errors],
        "summary": {
            "definitions": {s.value: report.count(s) for s in Status},
            "tests": {s.value: report.test_count(s) for s in Status},
        },
    }
    return json.dumps(data, indent=2, default=str)
