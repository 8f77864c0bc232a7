"""Registry check handler.

Reads one registry value through the probe and judges it against the
test's state. Absent keys and values get the configured absence status
(``fail`` by default): the missing setting is itself the compliance
finding.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ovalscan._types import Status, TestResult
from ovalscan.compare import DATATYPES, compare, is_supported_operation
from ovalscan.model import parse_hive

if TYPE_CHECKING:
    from ovalscan._context import ScanContext
    from ovalscan._types import Check
    from ovalscan.probes import SystemProbe


def _check_registry(
    ctx: ScanContext,
    probe: SystemProbe,
    check: Check,
    *,
    absence_status: Status,
) -> TestResult:
    """Check a registry value against its expected state.

    Args:
        ctx: Scan context, checked before the probe is called.
        probe: Host probe.
        check: Resolved check; the object carries hive, key, and value name.
        absence_status: Verdict for a missing key or value.

    Returns:
        TestResult with hive, key, value_name, expected, and actual details.

    """
    obj = check.obj
    state = check.state
    details: dict[str, Any] = {"hive": obj.hive, "key": obj.key, "value_name": obj.name}

    def result(status: Status, message: str) -> TestResult:
        return TestResult(test_id=check.test_id, status=status, message=message, details=details)

    hive = parse_hive(obj.hive)
    if hive is None:
        return result(Status.UNKNOWN, f"Unknown registry hive: {obj.hive or '(empty)'}")

    if state is not None:
        details["expected"] = state.value
        details["operation"] = state.operation
        if state.var_ref:
            details["var_ref"] = state.var_ref
            return result(Status.UNKNOWN, f"Variable references are not supported: {state.var_ref}")
        if state.field != "value":
            return result(Status.UNKNOWN, f"Unsupported registry state field: {state.field or '(empty)'}")
        if not is_supported_operation(state.operation):
            return result(Status.UNKNOWN, f"Unsupported comparison operation: {state.operation}")
        if state.datatype not in DATATYPES:
            return result(Status.UNKNOWN, f"Unsupported datatype: {state.datatype}")

    ctx.raise_if_cancelled()
    reading = probe.read_registry_value(hive, obj.key, obj.name)

    if not reading.key_found:
        return result(absence_status, f"Registry key not found: {obj.registry_path}")
    if not reading.value_found:
        return result(absence_status, f"Registry value not found: {obj.registry_path}\\{obj.name}")

    actual = reading.value or ""
    details["actual"] = actual

    if state is None:
        return result(Status.PASS, f"Registry value exists: {obj.name} = {actual}")
    if compare(actual, state.value, state.operation, state.datatype):
        return result(Status.PASS, f"Registry check passed: {obj.name} = {actual}")
    return result(Status.FAIL, f"Expected '{state.value}' ({state.operation}), got '{actual}'")
