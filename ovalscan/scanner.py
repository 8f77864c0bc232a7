"""Scan orchestration.

Runs a whole scan: parse, resolve, execute checks concurrently against the
host probe, then aggregate. Each scan is a fresh, stateless call; nothing
is kept between scans.

Concurrency model:
    - One Check is the unit of work, submitted to a bounded thread pool
      (``ScanConfig.workers``).
    - Each worker produces exactly one TestResult; results are collected
      from the futures after the wait barrier, never appended to a shared
      list.
    - The orchestrator waits until every check finishes, the context is
      cancelled, or the deadline passes. Unfinished checks are reported as
      "error" with a cancellation message; finished results are kept.
    - The pool is shut down without waiting, so a hung probe cannot block
      the scan. Checks still running at that point are marked
      ``details["abandoned"]``. Their threads keep running, and
      concurrent.futures joins them at interpreter exit, so a process that
      must end promptly checks ``ScanReport.abandoned_checks`` (the CLI
      exits with os._exit when it is non-zero).
    - An already-cancelled context submits nothing.

Example:
-------
    >>> from ovalscan.scanner import scan
    >>> from ovalscan.probes import LocalProbe
    >>> report = scan(Path("definitions.xml").read_bytes(), LocalProbe())
    >>> for d in report.definition_results:
    ...     print(d.definition_id, d.status.value)

"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait

from ovalscan._config import ScanConfig
from ovalscan._context import ScanContext
from ovalscan._types import Check, ScanReport, Status, TestResult, utc_timestamp
from ovalscan.aggregate import aggregate
from ovalscan.handlers import error_result, run_check
from ovalscan.model import Document
from ovalscan.parser import parse
from ovalscan.probes import LocalProbe, SystemProbe
from ovalscan.resolver import resolve

logger = logging.getLogger(__name__)

# Upper bound on how long the wait loop sleeps before re-checking the
# cancel flag.
POLL_INTERVAL = 0.1


def _cancelled_result(check: Check, ctx: ScanContext, **details) -> TestResult:
    return error_result(check.test_id, f"Cancelled: {ctx.reason or 'Scan cancelled'}", **details)


def execute_checks(
    checks: Sequence[Check],
    probe: SystemProbe,
    ctx: ScanContext,
    config: ScanConfig,
) -> dict[str, TestResult]:
    """Run checks on a bounded pool and return one result per test id.

    Never raises for check failures; see module docstring for the
    cancellation behavior.
    """
    if not checks:
        return {}

    if ctx.cancelled:
        logger.warning("Scan cancelled before start (%s); %d checks not run", ctx.reason, len(checks))
        return {check.test_id: _cancelled_result(check, ctx) for check in checks}

    pool = ThreadPoolExecutor(max_workers=min(config.workers, len(checks)), thread_name_prefix="ovalscan")
    try:
        futures = {
            pool.submit(run_check, ctx, probe, check, absence_status=config.absence_status): check
            for check in checks
        }
        pending = set(futures)
        while pending and not ctx.cancelled:
            remaining = ctx.remaining()
            timeout = POLL_INTERVAL if remaining is None else min(POLL_INTERVAL, remaining)
            _done, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)

        if pending:
            ctx.cancel(ctx.reason or "Scan cancelled")
            for future in pending:
                future.cancel()
            logger.warning("Scan cancelled (%s); %d checks did not finish", ctx.reason, len(pending))
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    results: dict[str, TestResult] = {}
    for future, check in futures.items():
        if future.done() and not future.cancelled():
            results[check.test_id] = future.result()
        elif future.cancelled():
            results[check.test_id] = _cancelled_result(check, ctx)
        else:
            # Still inside a probe call on a thread the pool no longer waits for.
            results[check.test_id] = _cancelled_result(check, ctx, abandoned=True)
    return results


def scan_document(
    document: Document,
    probe: SystemProbe | None = None,
    *,
    config: ScanConfig | None = None,
    context: ScanContext | None = None,
) -> ScanReport:
    """Evaluate a parsed document against the host.

    Args:
        document: Parsed definitions document.
        probe: Host probe; defaults to LocalProbe.
        config: Scan settings; defaults to ScanConfig().
        context: Cancellation context. When omitted, one is created from
            ``config.timeout``.

    Returns:
        ScanReport with one TestResult per test and one DefinitionResult
        per definition.

    """
    config = config or ScanConfig()
    probe = probe or LocalProbe()
    ctx = context or ScanContext.with_timeout(config.timeout)
    started_at = utc_timestamp()

    logger.info(
        "Scanning %s: %d definitions, %d tests (workers=%d)",
        document.source or "<document>",
        document.definition_count,
        document.test_count,
        config.workers,
    )

    resolution = resolve(document)
    results: dict[str, TestResult] = {
        err.test_id: error_result(
            err.test_id,
            err.message,
            missing_ref=err.missing_ref,
            ref_kind=err.ref_kind,
        )
        for err in resolution.errors
    }
    results.update(execute_checks(resolution.checks, probe, ctx, config))

    report = aggregate(
        document,
        results.values(),
        resolution,
        started_at=started_at,
        finished_at=utc_timestamp(),
    )

    logger.info(
        "Scan finished: %d pass, %d fail, %d error, %d unknown definitions",
        report.count(Status.PASS),
        report.count(Status.FAIL),
        report.count(Status.ERROR),
        report.count(Status.UNKNOWN),
    )
    return report


def scan(
    raw: bytes | str,
    probe: SystemProbe | None = None,
    *,
    config: ScanConfig | None = None,
    context: ScanContext | None = None,
    source: str = "",
) -> ScanReport:
    """Parse a definitions document and evaluate it against the host.

    Raises:
        ParseError: If the document cannot be parsed. No partial results.

    """
    return scan_document(parse(raw, source=source), probe, config=config, context=context)
