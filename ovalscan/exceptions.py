"""
ovalscan Exceptions

This module defines the exception hierarchy for definition parsing,
reference resolution, probing, and scan execution. All exceptions inherit
from OvalError, enabling consistent error handling across the engine.

Exception Hierarchy:
    OvalError (base)
    ├── ParseError (document is not a valid definitions document)
    ├── ResolutionError (test references a missing object or state)
    ├── ProbeError (host probe failed for reasons unrelated to compliance)
    ├── ScanCancelledError (scan context cancelled or deadline passed)
    └── ConfigError (invalid scan configuration)

Propagation:
    Only ParseError (and ConfigError at load time) leave the scan boundary.
    ResolutionError instances are collected as records by the resolver and
    never raised. ProbeError and ScanCancelledError are caught per check and
    turned into TestResults with status "error".

Report records:
    to_dict() flattens the context into the record, so a ParseError carries
    "source" and "line" and a ResolutionError carries "test_id",
    "missing_ref" and "ref_kind" at the top level of the JSON report.
"""

from __future__ import annotations

from typing import Any


class OvalError(Exception):
    """
    Base exception for all ovalscan operations.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        context: Structured fields describing where the error happened
        cause: Original exception if wrapping another error
    """

    def __init__(
        self,
        message: str,
        error_code: str = "OVAL_ERROR",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    @property
    def location(self) -> str:
        """Where the error happened, as shown after the message. Empty if unknown."""
        return ""

    def to_dict(self) -> dict[str, Any]:
        """
        Flat record for the JSON report.

        Context fields sit beside error_code and message; a wrapped
        exception is rendered as "<Type>: <text>".
        """
        record: dict[str, Any] = {"error_code": self.error_code, "message": self.message}
        record.update(self.context)
        if self.cause is not None:
            record["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return record

    def __str__(self) -> str:
        where = self.location
        return f"{self.message} ({where})" if where else self.message


class ParseError(OvalError):
    """
    Raised when the input is not a usable definitions document.

    Fatal to the whole scan: no partial results are produced.

    Common causes:
    - Input is not well-formed XML
    - Root element is not oval_definitions
    - The definitions container is missing
    - A definition has no criteria root, or a criteria node has no children
    - Duplicate test identifiers
    """

    def __init__(
        self,
        message: str,
        source: str = "",
        line: int | None = None,
        error_code: str = "PARSE_ERROR",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        parse_context: dict[str, Any] = {}
        if source:
            parse_context["source"] = source
        if line is not None:
            parse_context["line"] = line
        if context:
            parse_context.update(context)

        super().__init__(message, error_code, parse_context, cause)
        self.source = source
        self.line = line

    @property
    def location(self) -> str:
        if self.line is None:
            return self.source
        return f"{self.source}:{self.line}" if self.source else f"line {self.line}"


class ResolutionError(OvalError):
    """
    A test whose object or state reference cannot be found.

    Collected by the resolver, one per unresolvable test. The scan reports
    the affected test with status "error" and carries on.

    Attributes:
        test_id: Identifier of the test that failed to resolve
        missing_ref: The object or state identifier that was not found
        ref_kind: "object" or "state"
    """

    def __init__(
        self,
        test_id: str,
        missing_ref: str,
        ref_kind: str = "object",
        error_code: str = "RESOLUTION_ERROR",
    ):
        message = f"Test {test_id} references missing {ref_kind}: {missing_ref}"
        super().__init__(
            message,
            error_code,
            {"test_id": test_id, "missing_ref": missing_ref, "ref_kind": ref_kind},
        )
        self.test_id = test_id
        self.missing_ref = missing_ref
        self.ref_kind = ref_kind

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResolutionError):
            return NotImplemented
        return (self.test_id, self.missing_ref, self.ref_kind) == (
            other.test_id,
            other.missing_ref,
            other.ref_kind,
        )

    def __hash__(self) -> int:
        return hash((self.test_id, self.missing_ref, self.ref_kind))


class ProbeError(OvalError):
    """
    Raised by a probe when the host could not be examined.

    Covers permission denied, I/O failures, and platforms that lack the
    probed subsystem. Distinct from a compliance failure: the control could
    not be assessed.

    Attributes:
        resource: The registry path or file path being probed
    """

    def __init__(
        self,
        message: str,
        resource: str = "",
        error_code: str = "PROBE_ERROR",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        probe_context: dict[str, Any] = {"resource": resource} if resource else {}
        if context:
            probe_context.update(context)

        super().__init__(message, error_code, probe_context, cause)
        self.resource = resource

    @property
    def location(self) -> str:
        return self.resource


class ScanCancelledError(OvalError):
    """Raised when a check observes a cancelled or expired scan context."""

    def __init__(
        self,
        message: str = "Scan cancelled",
        error_code: str = "SCAN_CANCELLED",
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, context)


class ConfigError(OvalError):
    """
    Raised when scan configuration values are invalid.

    Attributes:
        key: Configuration key that failed validation
    """

    def __init__(
        self,
        message: str,
        key: str = "",
        error_code: str = "CONFIG_ERROR",
        context: dict[str, Any] | None = None,
    ):
        config_context: dict[str, Any] = {"key": key} if key else {}
        if context:
            config_context.update(context)

        super().__init__(message, error_code, config_context)
        self.key = key

    @property
    def location(self) -> str:
        return f"key: {self.key}" if self.key else ""
