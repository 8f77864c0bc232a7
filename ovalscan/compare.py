"""Value comparison shared by the check handlers.

``compare()`` is a pure function over an observed value, an expected value,
an operation name, and a datatype. It never raises for bad input: values
that cannot be coerced to the datatype, and operations it does not know,
compare as False. Handlers call ``is_supported_operation()`` first so an
unknown operation is reported as "unknown" instead of a silent "fail".

Pattern matching is glob-like rather than full regular expressions:

    "*Pro*"       actual contains "Pro"
    "Pro"         actual contains "Pro" (unanchored, like a regex search)
    "^Windows*"   actual starts with "Windows"
    "*Pro$"       actual ends with "Pro"
    ".*Pro.*"     ".*" is read as "*"
    "Win?ows"     "?" matches a single character

Example:
-------
    >>> compare("Windows 10 Pro", "Pro", "contains")
    True
    >>> compare("10", "9", "greater than", datatype="int")
    True
    >>> compare("1.2.10", "1.2.9", "greater_than", datatype="version")
    True

"""

from __future__ import annotations

import fnmatch
import re

# ── Operations ─────────────────────────────────────────────────────────────

STRING_OPERATIONS = frozenset(
    {
        "equals",
        "not_equal",
        "case_insensitive_equals",
        "case_insensitive_not_equal",
        "contains",
        "pattern_match",
    }
)

ORDERING_OPERATIONS = frozenset(
    {
        "greater_than",
        "greater_than_or_equal",
        "less_than",
        "less_than_or_equal",
    }
)

SUPPORTED_OPERATIONS = STRING_OPERATIONS | ORDERING_OPERATIONS

DATATYPES = frozenset({"string", "int", "version", "boolean"})

_VERSION_SPLIT = re.compile(r"[.\-_:]")


def normalize_operation(operation: str) -> str:
    """Normalize an operation name ("pattern match" -> "pattern_match")."""
    return "_".join(operation.strip().lower().split())


def is_supported_operation(operation: str) -> bool:
    """Return True if ``compare()`` knows the operation."""
    return normalize_operation(operation) in SUPPORTED_OPERATIONS


# ── Coercion ───────────────────────────────────────────────────────────────


def _to_int(value: str) -> int:
    text = value.strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def _to_version(value: str) -> tuple[int, ...]:
    return tuple(int(part) for part in _VERSION_SPLIT.split(value.strip()))


def _to_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def _pad(a: tuple[int, ...], b: tuple[int, ...]) -> tuple[tuple[int, ...], tuple[int, ...]]:
    width = max(len(a), len(b))
    return a + (0,) * (width - len(a)), b + (0,) * (width - len(b))


# ── Pattern matching ───────────────────────────────────────────────────────


def pattern_match(actual: str, pattern: str) -> bool:
    """Match ``actual`` against a glob-like pattern (see module docstring)."""
    anchored_start = pattern.startswith("^")
    if anchored_start:
        pattern = pattern[1:]
    anchored_end = pattern.endswith("$")
    if anchored_end:
        pattern = pattern[:-1]

    glob = pattern.replace(".*", "*").replace("[", "[[]")
    if not anchored_start:
        glob = "*" + glob
    if not anchored_end:
        glob = glob + "*"
    return fnmatch.fnmatchcase(actual, glob)


# ── Comparison ─────────────────────────────────────────────────────────────


def _compare_ordered(actual, expected, operation: str) -> bool:
    if operation == "equals":
        return actual == expected
    if operation == "not_equal":
        return actual != expected
    if operation == "greater_than":
        return actual > expected
    if operation == "greater_than_or_equal":
        return actual >= expected
    if operation == "less_than":
        return actual < expected
    if operation == "less_than_or_equal":
        return actual <= expected
    return False


def _compare_strings(actual: str, expected: str, operation: str) -> bool:
    if operation == "equals":
        return actual == expected
    if operation == "not_equal":
        return actual != expected
    if operation == "case_insensitive_equals":
        return actual.casefold() == expected.casefold()
    if operation == "case_insensitive_not_equal":
        return actual.casefold() != expected.casefold()
    if operation == "contains":
        return expected in actual
    if operation == "pattern_match":
        return pattern_match(actual, expected)
    return False


def compare(actual: str, expected: str, operation: str, datatype: str = "string") -> bool:
    """Compare an observed value against an expected value.

    Args:
        actual: Value observed on the host.
        expected: Value from the state.
        operation: Operation name; spaced OVAL spellings are accepted.
        datatype: "string", "int", "version", or "boolean". Text operations
            (contains, pattern_match, case-insensitive variants) always work
            on the raw strings.

    Returns:
        True if the observed value satisfies the operation. False for
        unknown operations, unknown datatypes, and values that cannot be
        coerced to the datatype.

    """
    op = normalize_operation(operation)
    kind = (datatype or "string").strip().lower()

    if op not in SUPPORTED_OPERATIONS or kind not in DATATYPES:
        return False

    if kind == "string" or op in ("contains", "pattern_match") or op.startswith("case_insensitive"):
        if op in ORDERING_OPERATIONS:
            return False
        return _compare_strings(actual, expected, op)

    try:
        if kind == "int":
            return _compare_ordered(_to_int(actual), _to_int(expected), op)
        if kind == "version":
            return _compare_ordered(*_pad(_to_version(actual), _to_version(expected)), op)
        if op in ORDERING_OPERATIONS:
            return False
        return _compare_ordered(_to_bool(actual), _to_bool(expected), op)
    except ValueError:
        return False
