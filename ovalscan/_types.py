"""Result data types for the evaluation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from ovalscan.exceptions import ResolutionError
from ovalscan.model import OvalObject, State


class Status(str, Enum):
    """Closed set of verdicts for tests and definitions."""

    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"
    UNKNOWN = "unknown"


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Check:
    """A test joined to its object and optional state, ready to run."""

    test_id: str
    family: str
    subtype: str
    obj: OvalObject
    state: State | None = None


@dataclass(frozen=True)
class TestResult:
    """Outcome of executing one test."""

    __test__ = False

    test_id: str
    status: Status
    message: str = ""
    timestamp: str = field(default_factory=utc_timestamp)
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status is Status.PASS


@dataclass(frozen=True)
class DefinitionResult:
    """Verdict for one definition plus the test results that fed it."""

    definition_id: str
    status: Status
    definition_class: str = ""
    title: str = ""
    test_results: tuple[TestResult, ...] = ()
    unresolved_refs: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScanReport:
    """Everything one scan produced, in stable document order."""

    test_results: tuple[TestResult, ...] = ()
    definition_results: tuple[DefinitionResult, ...] = ()
    resolution_errors: tuple[ResolutionError, ...] = ()
    started_at: str = ""
    finished_at: str = ""
    source: str = ""

    def count(self, status: Status) -> int:
        """Number of definitions with the given status."""
        return sum(1 for d in self.definition_results if d.status is status)

    def test_count(self, status: Status) -> int:
        """Number of tests with the given status."""
        return sum(1 for t in self.test_results if t.status is status)

    @property
    def abandoned_checks(self) -> int:
        """Tests whose probe call was still running when the scan gave up on it."""
        return sum(1 for t in self.test_results if t.details.get("abandoned"))

    @property
    def all_passed(self) -> bool:
        """True when every definition passed (vacuously true for none)."""
        return all(d.status is Status.PASS for d in self.definition_results)
