"""
Definitions Document Model

Typed representation of a parsed OVAL definitions document: definitions,
their criteria trees, tests, objects, and states. The model is independent
of the XML encoding it was parsed from and is immutable once built.

Criteria trees are an explicit sum type:
    Criterion (leaf)  -> references one test id, may be negated
    Criteria  (node)  -> AND/OR over an ordered tuple of children, may be negated

Design Principles:
- Frozen dataclasses (safe to share across worker threads)
- Lookup by identifier via Document mappings, no back-references
- No evaluation logic here (see criteria.py and handlers/)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Union


class Operator(str, Enum):
    """Boolean operator of an internal criteria node."""

    AND = "AND"
    OR = "OR"


class Hive(str, Enum):
    """
    Windows registry hives a registry object can name.

    Attributes:
        HKEY_LOCAL_MACHINE: Machine-wide configuration
        HKEY_CURRENT_USER: Configuration of the scanning user
        HKEY_CLASSES_ROOT: File associations and COM registrations
        HKEY_USERS: All loaded user profiles
        HKEY_CURRENT_CONFIG: Current hardware profile
    """

    HKEY_LOCAL_MACHINE = "HKEY_LOCAL_MACHINE"
    HKEY_CURRENT_USER = "HKEY_CURRENT_USER"
    HKEY_CLASSES_ROOT = "HKEY_CLASSES_ROOT"
    HKEY_USERS = "HKEY_USERS"
    HKEY_CURRENT_CONFIG = "HKEY_CURRENT_CONFIG"


HIVE_ALIASES: dict[str, Hive] = {
    "HKLM": Hive.HKEY_LOCAL_MACHINE,
    "HKCU": Hive.HKEY_CURRENT_USER,
    "HKCR": Hive.HKEY_CLASSES_ROOT,
    "HKU": Hive.HKEY_USERS,
    "HKCC": Hive.HKEY_CURRENT_CONFIG,
}


def parse_hive(name: str) -> Hive | None:
    """
    Map a hive name as written in a document to a Hive.

    Accepts full names and the usual abbreviations, case-insensitively.

    Returns:
        The Hive, or None when the name is not a known hive.
    """
    key = name.strip().upper()
    if key in HIVE_ALIASES:
        return HIVE_ALIASES[key]
    try:
        return Hive(key)
    except ValueError:
        return None


# =============================================================================
# Criteria tree
# =============================================================================


@dataclass(frozen=True)
class Criterion:
    """Leaf of a criteria tree referencing a single test."""

    test_ref: str
    negate: bool = False
    comment: str = ""


@dataclass(frozen=True)
class Criteria:
    """
    Internal criteria node combining its children with AND or OR.

    Attributes:
        operator: How child values are combined
        children: Ordered child nodes (leaves and/or nested nodes)
        negate: Invert the combined value
        comment: Free text from the document
    """

    operator: Operator = Operator.AND
    children: tuple[CriteriaNode, ...] = ()
    negate: bool = False
    comment: str = ""

    def iter_test_refs(self) -> Iterator[str]:
        """Yield every leaf test reference in document order."""
        for child in self.children:
            if isinstance(child, Criterion):
                yield child.test_ref
            else:
                yield from child.iter_test_refs()


CriteriaNode = Union[Criterion, Criteria]


# =============================================================================
# Definitions, tests, objects, states
# =============================================================================


@dataclass(frozen=True)
class Definition:
    """
    A compliance or vulnerability assertion over tests.

    Title and description are descriptive only and have no effect on
    evaluation.
    """

    id: str
    criteria: Criteria
    definition_class: str = "compliance"
    version: str = ""
    title: str = ""
    description: str = ""


@dataclass(frozen=True)
class Test:
    """
    A single executable check binding one object and at most one state.

    Attributes:
        id: Unique test identifier
        family: Check family tag ("registry", "file", ...)
        object_ref: Identifier of the object to examine
        state_ref: Identifier of the expected state, or None for an
            existence-only test
        comment: Free text from the document
    """

    # Keeps pytest from collecting this class when imported into test modules
    __test__ = False

    id: str
    family: str
    object_ref: str
    state_ref: str | None = None
    comment: str = ""


@dataclass(frozen=True)
class OvalObject:
    """
    Locator for a system resource.

    Registry objects use hive, key, and name; file objects use path.
    Unused fields stay empty.
    """

    id: str
    family: str
    hive: str = ""
    key: str = ""
    name: str = ""
    path: str = ""

    @property
    def registry_path(self) -> str:
        """Hive and key joined the way Windows tools print them."""
        return f"{self.hive}\\{self.key}" if self.key else self.hive


@dataclass(frozen=True)
class State:
    """
    Expected value and comparison used to judge an object.

    Attributes:
        id: Unique state identifier
        family: Check family tag of the state element
        field: Name of the state field carrying the value ("value", "uwrite", ...)
        value: Expected value as written in the document
        operation: Comparison operation name, normalized to snake_case
        datatype: Value datatype ("string", "int", "version", "boolean")
        var_ref: Variable identifier when the field takes its value from a
            variable instead of element text; such states are never compared
    """

    id: str
    family: str
    field: str = "value"
    value: str = ""
    operation: str = "equals"
    datatype: str = "string"
    var_ref: str | None = None


@dataclass(frozen=True)
class Document:
    """
    A parsed definitions document.

    Definitions and tests keep document order (dicts preserve insertion
    order); objects and states are lookup tables.
    """

    definitions: dict[str, Definition] = field(default_factory=dict)
    tests: dict[str, Test] = field(default_factory=dict)
    objects: dict[str, OvalObject] = field(default_factory=dict)
    states: dict[str, State] = field(default_factory=dict)
    source: str = ""

    @property
    def definition_count(self) -> int:
        return len(self.definitions)

    @property
    def test_count(self) -> int:
        return len(self.tests)
