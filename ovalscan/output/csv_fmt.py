"""CSV output formatter for scan reports.

One row per definition+test combination, for spreadsheets and grep.
Definitions with unresolved references get one extra row per missing test
id with status "error".

Columns:
    definition_id, definition_status, test_id, test_status, message

Example:
-------
    >>> print(format_csv(report))
    definition_id,definition_status,test_id,test_status,message
    oval:test:def:1,pass,oval:test:tst:1,pass,Registry check passed: Enabled = 1

"""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ovalscan._types import ScanReport

COLUMNS = ["definition_id", "definition_status", "test_id", "test_status", "message"]


def format_csv(report: ScanReport) -> str:
    """Format a scan report as CSV."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(COLUMNS)

    for d in report.definition_results:
        for t in d.test_results:
            writer.writerow([d.definition_id, d.status.value, t.test_id, t.status.value, t.message])
        for ref in d.unresolved_refs:
            writer.writerow([d.definition_id, d.status.value, ref, "error", f"Test not found: {ref}"])

    return buf.getvalue()
