"""Reference resolution: join tests to their objects and states.

``resolve()`` walks every test of a document and produces a Check for each
test whose object (and state, when referenced) exists. Tests with missing
references produce a ResolutionError record instead; they never stop the
rest of the document from resolving. Criterion leaves that name no test at
all are collected separately so the criteria evaluator can report them as
errors without re-deriving the condition.

Totality:
    len(resolution.checks) + len(resolution.failed_test_ids)
        == len(document.tests)

Example:
-------
    >>> from ovalscan.parser import parse
    >>> from ovalscan.resolver import resolve
    >>> resolution = resolve(parse(raw))
    >>> for err in resolution.errors:
    ...     print(err.test_id, err.missing_ref)

"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ovalscan._types import Check
from ovalscan.exceptions import ResolutionError
from ovalscan.model import Document, State, Test

logger = logging.getLogger(__name__)


# ── Result container ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Resolution:
    """Output of resolving one document.

    Attributes:
        checks: Executable checks, in document test order.
        errors: One ResolutionError per test that could not be resolved.
        unresolved_criteria: Test ids referenced by criterion leaves that
            name no test in the document, in first-seen order.

    """

    checks: tuple[Check, ...] = ()
    errors: tuple[ResolutionError, ...] = ()
    unresolved_criteria: tuple[str, ...] = ()

    @property
    def failed_test_ids(self) -> frozenset[str]:
        return frozenset(e.test_id for e in self.errors)


# ── Sub-type derivation ────────────────────────────────────────────────────


def derive_subtype(test: Test, state: State | None) -> str:
    """Return the family-specific variant of a test.

    File tests without a state are existence checks; a state whose field
    is ``uwrite`` asks for the owner-write permission; any other field
    name is passed through for the handler to judge.
    """
    if test.family != "file":
        return ""
    if state is None:
        return "exists"
    if state.field == "uwrite":
        return "writable"
    return state.field


# ── Resolution ─────────────────────────────────────────────────────────────


def _resolve_test(document: Document, test: Test) -> Check | ResolutionError:
    obj = document.objects.get(test.object_ref)
    if obj is None:
        return ResolutionError(test.id, test.object_ref, "object")

    state = None
    if test.state_ref is not None:
        state = document.states.get(test.state_ref)
        if state is None:
            return ResolutionError(test.id, test.state_ref, "state")

    return Check(
        test_id=test.id,
        family=test.family,
        subtype=derive_subtype(test, state),
        obj=obj,
        state=state,
    )


def resolve(document: Document) -> Resolution:
    """Resolve every test of a document into a Check or a ResolutionError.

    Args:
        document: Parsed definitions document.

    Returns:
        Resolution with checks, errors, and unresolved criterion references.

    """
    checks: list[Check] = []
    errors: list[ResolutionError] = []

    for test in document.tests.values():
        outcome = _resolve_test(document, test)
        if isinstance(outcome, ResolutionError):
            logger.warning("Unresolved reference: %s", outcome.message)
            errors.append(outcome)
        else:
            checks.append(outcome)

    unresolved: dict[str, None] = {}
    for definition in document.definitions.values():
        for test_ref in definition.criteria.iter_test_refs():
            if test_ref not in document.tests:
                unresolved.setdefault(test_ref)

    if unresolved:
        logger.warning("Criteria reference %d unknown test(s): %s", len(unresolved), ", ".join(unresolved))

    return Resolution(
        checks=tuple(checks),
        errors=tuple(errors),
        unresolved_criteria=tuple(unresolved),
    )
