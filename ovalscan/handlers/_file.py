"""File check handlers.

Stats one path through the probe. Sub-types:
    exists:   passes once the path is found; reports size and mtime
    writable: compares the owner-write bit with the state's uwrite value
Any other sub-type is reported as "unknown".
"""

from __future__ import annotations

import stat
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ovalscan._types import Status, TestResult
from ovalscan.compare import compare, is_supported_operation

if TYPE_CHECKING:
    from ovalscan._context import ScanContext
    from ovalscan._types import Check
    from ovalscan.probes import SystemProbe

FILE_SUBTYPES = frozenset({"exists", "writable"})


def _check_file(
    ctx: ScanContext,
    probe: SystemProbe,
    check: Check,
    *,
    absence_status: Status,
) -> TestResult:
    """Check a file's existence or owner-write permission.

    Args:
        ctx: Scan context, checked before the probe is called.
        probe: Host probe.
        check: Resolved check; the object carries the path.
        absence_status: Verdict for a path that does not exist.

    Returns:
        TestResult with file_path plus size/modified or permissions details.

    """
    path = check.obj.path
    details: dict[str, Any] = {"file_path": path}

    def result(status: Status, message: str) -> TestResult:
        return TestResult(test_id=check.test_id, status=status, message=message, details=details)

    if not path:
        return result(Status.UNKNOWN, f"File object {check.obj.id} has no path")
    if check.state and check.state.var_ref:
        details["var_ref"] = check.state.var_ref
        return result(Status.UNKNOWN, f"Variable references are not supported: {check.state.var_ref}")
    if check.subtype == "writable" and check.state and not is_supported_operation(check.state.operation):
        return result(Status.UNKNOWN, f"Unsupported comparison operation: {check.state.operation}")

    ctx.raise_if_cancelled()
    st = probe.stat_file(path)

    if not st.found:
        return result(absence_status, f"File not found: {path}")

    if check.subtype == "exists":
        details["size"] = st.size
        details["modified"] = datetime.fromtimestamp(st.mtime, timezone.utc).isoformat()
        return result(Status.PASS, f"File exists: {path} ({st.size} bytes)")

    if check.subtype == "writable":
        permissions = stat.S_IMODE(st.mode)
        writable = bool(permissions & stat.S_IWUSR)
        details["permissions"] = f"{permissions:o}"
        expected = check.state.value if check.state and check.state.value else "true"
        operation = check.state.operation if check.state else "equals"
        details["expected_writable"] = expected
        state_word = "writable" if writable else "not writable"
        if compare("true" if writable else "false", expected, operation, "boolean"):
            return result(Status.PASS, f"File is {state_word}: {path}")
        return result(Status.FAIL, f"File is {state_word}: {path}")

    return result(Status.UNKNOWN, f"Unknown file test type: {check.subtype or '(empty)'}")
