"""Check handlers dispatch.

This module aggregates the check handlers and provides the dispatch
function that turns one resolved Check into one TestResult.

Handler Modules:
    - _registry: registry
    - _file: file (exists, writable)

The handler set is closed: a family without a handler is reported as
"unknown", never dropped and never passed.

Failure isolation:
    run_check() never raises. Probe failures and cancellation become
    "error" results; unexpected exceptions are logged and become "error"
    results, so one bad check cannot abort the batch.

Example:
-------
    >>> from ovalscan.handlers import run_check
    >>> result = run_check(ctx, probe, check)
    >>> result.status
    <Status.PASS: 'pass'>

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ovalscan._types import Status, TestResult
from ovalscan.exceptions import ProbeError, ScanCancelledError
from ovalscan.handlers._file import _check_file
from ovalscan.handlers._registry import _check_registry

if TYPE_CHECKING:
    from ovalscan._context import ScanContext
    from ovalscan._types import Check
    from ovalscan.probes import SystemProbe

logger = logging.getLogger(__name__)


# ── Handler registry ──────────────────────────────────────────────────────

CHECK_HANDLERS = {
    "registry": _check_registry,
    "file": _check_file,
}


# ── Dispatch ──────────────────────────────────────────────────────────────


def error_result(test_id: str, message: str, **details) -> TestResult:
    """Build an "error" TestResult."""
    return TestResult(test_id=test_id, status=Status.ERROR, message=message, details=details)


def run_check(
    ctx: ScanContext,
    probe: SystemProbe,
    check: Check,
    *,
    absence_status: Status = Status.FAIL,
) -> TestResult:
    """Dispatch a single check to the handler for its family.

    Args:
        ctx: Scan context; a cancelled context yields an "error" result.
        probe: Host probe passed to the handler.
        check: Resolved check.
        absence_status: Verdict for a probed resource that does not exist.

    Returns:
        TestResult for the check's test.

    """
    handler = CHECK_HANDLERS.get(check.family)
    if handler is None:
        return TestResult(
            test_id=check.test_id,
            status=Status.UNKNOWN,
            message=f"Unknown check family: {check.family}",
            details={"family": check.family},
        )

    logger.debug("Running %s check %s", check.family, check.test_id)
    try:
        ctx.raise_if_cancelled()
        return handler(ctx, probe, check, absence_status=absence_status)
    except ScanCancelledError as exc:
        return error_result(check.test_id, exc.message)
    except ProbeError as exc:
        return error_result(check.test_id, f"Probe error: {exc.message}", resource=exc.resource)
    except OSError as exc:
        return error_result(check.test_id, f"Probe error: {exc}")
    except Exception as exc:
        logger.exception("Check %s failed unexpectedly", check.test_id)
        return error_result(check.test_id, f"Error: {exc}")
