"""
Definitions Document Parser

This module turns the raw bytes of an OVAL definitions document into the
typed Document model. Matching is done on local element names, so both
namespaced OVAL 5 documents (oval-def, win-def, ind-def, unix-def) and
bare documents without namespaces parse the same way.

Supported content:
- definitions with metadata and nested criteria/criterion trees
- *_test elements with object_ref and state_ref children
- registry objects (hive, key, name) and file objects (filepath, or
  path + filename)
- *_state elements; one field element carries the expected value, its
  operation and datatype attributes ("value" for registry states,
  "uwrite" for file states, otherwise the first field)

Every <criteria> needs at least one child. An empty node would otherwise
fold to the identity of its operator and pass a definition that checks
nothing.

What the parser does NOT do:
- Schema validation (a non-goal)
- Referential integrity (the resolver reports missing references)
- Enumerated value checks (handlers report unknown hives and operations)

Security Notes:
- lxml parser configured against XXE: no entity resolution, no network
  access, no huge trees

Usage:
    from ovalscan.parser import parse

    document = parse(Path("definitions.xml").read_bytes())
    print(f"Parsed {document.definition_count} definitions")
"""

from __future__ import annotations

import logging
import ntpath
import posixpath
import re
from pathlib import Path

from lxml import etree

from ovalscan.compare import normalize_operation
from ovalscan.exceptions import ParseError
from ovalscan.model import Criteria, Criterion, CriteriaNode, Definition, Document, Operator, OvalObject, State, Test

logger = logging.getLogger(__name__)

ROOT_ELEMENT = "oval_definitions"

_WINDOWS_PATH = re.compile(r"^[A-Za-z]:|\\")

# State family -> field element holding the expected value
STATE_VALUE_FIELDS = {
    "registry": "value",
    "file": "uwrite",
}


# =============================================================================
# Element helpers
# =============================================================================


def _local(element: etree._Element) -> str:
    """Return the element name without its namespace."""
    return etree.QName(element).localname


def _children(element: etree._Element, name: str | None = None) -> list[etree._Element]:
    """Element children (comments and processing instructions skipped)."""
    return [
        child
        for child in element
        if isinstance(child.tag, str) and (name is None or _local(child) == name)
    ]


def _child(element: etree._Element, name: str) -> etree._Element | None:
    found = _children(element, name)
    return found[0] if found else None


def _text(element: etree._Element | None) -> str:
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def _flag(element: etree._Element, attribute: str) -> bool:
    return element.get(attribute, "false").strip().lower() in ("true", "1")


def _required_id(element: etree._Element) -> str:
    element_id = element.get("id", "").strip()
    if not element_id:
        raise ParseError(
            message=f"<{_local(element)}> element has no id attribute",
            line=element.sourceline,
        )
    return element_id


# =============================================================================
# Section parsers
# =============================================================================


def _parse_criteria(element: etree._Element) -> Criteria:
    operator_name = element.get("operator", "AND").strip().upper()
    try:
        operator = Operator(operator_name)
    except ValueError:
        raise ParseError(
            message=f"Unsupported criteria operator: {operator_name}",
            line=element.sourceline,
        ) from None

    children: list[CriteriaNode] = []
    for child in _children(element):
        kind = _local(child)
        if kind == "criteria":
            children.append(_parse_criteria(child))
        elif kind == "criterion":
            test_ref = child.get("test_ref", "").strip()
            if not test_ref:
                raise ParseError(message="<criterion> has no test_ref", line=child.sourceline)
            children.append(
                Criterion(test_ref=test_ref, negate=_flag(child, "negate"), comment=child.get("comment", ""))
            )
        elif kind == "extend_definition":
            # Not evaluated: kept as a leaf that can never resolve, so the
            # owning definition reports "error" instead of a verdict.
            definition_ref = child.get("definition_ref", "").strip()
            logger.warning("extend_definition %s is not supported; leaf will be unresolved", definition_ref)
            children.append(
                Criterion(test_ref=definition_ref, negate=_flag(child, "negate"), comment="extend_definition")
            )

    if not children:
        raise ParseError(message="<criteria> has no children", line=element.sourceline)

    return Criteria(
        operator=operator,
        children=tuple(children),
        negate=_flag(element, "negate"),
        comment=element.get("comment", ""),
    )


def _parse_definition(element: etree._Element) -> Definition:
    definition_id = _required_id(element)
    criteria_el = _child(element, "criteria")
    if criteria_el is None:
        raise ParseError(
            message=f"Definition {definition_id} has no criteria",
            line=element.sourceline,
        )

    metadata = _child(element, "metadata")
    return Definition(
        id=definition_id,
        criteria=_parse_criteria(criteria_el),
        definition_class=element.get("class", "compliance"),
        version=element.get("version", ""),
        title=_text(_child(metadata, "title")) if metadata is not None else "",
        description=_text(_child(metadata, "description")) if metadata is not None else "",
    )


def _parse_test(element: etree._Element) -> Test:
    object_el = _child(element, "object")
    state_el = _child(element, "state")
    state_ref = state_el.get("state_ref", "").strip() if state_el is not None else ""
    return Test(
        id=_required_id(element),
        family=_local(element)[: -len("_test")],
        object_ref=object_el.get("object_ref", "").strip() if object_el is not None else "",
        state_ref=state_ref or None,
        comment=element.get("comment", ""),
    )


def _join_file_path(directory: str, filename: str) -> str:
    if not filename:
        return directory
    if _WINDOWS_PATH.search(directory):
        return ntpath.join(directory, filename)
    return posixpath.join(directory, filename)


def _parse_object(element: etree._Element) -> OvalObject:
    filepath = _text(_child(element, "filepath"))
    if not filepath:
        filepath = _join_file_path(_text(_child(element, "path")), _text(_child(element, "filename")))
    return OvalObject(
        id=_required_id(element),
        family=_local(element)[: -len("_object")],
        hive=_text(_child(element, "hive")),
        key=_text(_child(element, "key")),
        name=_text(_child(element, "name")),
        path=filepath,
    )


def _state_field(element: etree._Element, family: str) -> etree._Element | None:
    """Pick the field that carries the expected value.

    Schema order puts <type> ahead of <value> in registry states, so the
    first child is only a fallback.
    """
    preferred = STATE_VALUE_FIELDS.get(family)
    if preferred:
        found = _child(element, preferred)
        if found is not None:
            return found
    fields = _children(element)
    return fields[0] if fields else None


def _parse_state(element: etree._Element) -> State:
    family = _local(element)[: -len("_state")]
    field_el = _state_field(element, family)
    # Operation may sit on the field (OVAL 5) or on the state element itself.
    operation = element.get("operation", "equals")
    datatype = "string"
    var_ref = None
    if field_el is not None:
        operation = field_el.get("operation", operation)
        datatype = field_el.get("datatype", datatype)
        var_ref = field_el.get("var_ref", "").strip() or None

    return State(
        id=_required_id(element),
        family=family,
        field=_local(field_el) if field_el is not None else "",
        value=_text(field_el),
        operation=normalize_operation(operation),
        datatype=datatype.strip().lower(),
        var_ref=var_ref,
    )


def _collect(container: etree._Element | None, suffix: str, build) -> dict[str, object]:
    """Parse every *<suffix> child of a section container, keyed by id."""
    items: dict[str, object] = {}
    if container is None:
        return items
    for element in _children(container):
        if not _local(element).endswith(suffix):
            logger.debug("Skipping <%s> in <%s>", _local(element), _local(container))
            continue
        item = build(element)
        if item.id in items:
            raise ParseError(
                message=f"Duplicate identifier: {item.id}",
                line=element.sourceline,
            )
        items[item.id] = item
    return items


# =============================================================================
# Public API
# =============================================================================


def parse(raw: bytes | str, source: str = "") -> Document:
    """
    Parse a definitions document.

    Args:
        raw: Document bytes (str is accepted and encoded as UTF-8).
        source: Optional name of where the bytes came from, for messages.

    Returns:
        The parsed Document.

    Raises:
        ParseError: If the input is not well-formed XML, the root is not
            oval_definitions, the definitions container is missing, a
            definition lacks criteria, a criteria node is empty, or
            identifiers are duplicated.
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    if not raw or not raw.strip():
        raise ParseError(message="Document is empty", source=source)

    parser = etree.XMLParser(
        resolve_entities=False,  # Prevent XXE
        no_network=True,
        remove_pis=True,
        huge_tree=False,
    )
    try:
        root = etree.fromstring(raw, parser)
    except etree.XMLSyntaxError as e:
        raise ParseError(
            message=f"XML parsing failed: {e.msg}",
            source=source,
            line=e.lineno,
            cause=e,
        ) from e

    if _local(root) != ROOT_ELEMENT:
        raise ParseError(
            message=f"Root element is <{_local(root)}>, expected <{ROOT_ELEMENT}>",
            source=source,
        )

    definitions_el = _child(root, "definitions")
    if definitions_el is None:
        raise ParseError(message="Document has no <definitions> container", source=source)

    try:
        document = Document(
            definitions=_collect(definitions_el, "definition", _parse_definition),
            tests=_collect(_child(root, "tests"), "_test", _parse_test),
            objects=_collect(_child(root, "objects"), "_object", _parse_object),
            states=_collect(_child(root, "states"), "_state", _parse_state),
            source=source,
        )
    except ParseError as e:
        # Section parsers only know the line; add the document name.
        if not source or e.source:
            raise
        raise ParseError(message=e.message, source=source, line=e.line, cause=e.cause) from e

    logger.debug(
        "Parsed %s: %d definitions, %d tests, %d objects, %d states",
        source or "<bytes>",
        len(document.definitions),
        len(document.tests),
        len(document.objects),
        len(document.states),
    )
    return document


def load_document(path: str | Path) -> Document:
    """
    Read and parse a definitions document from disk.

    Raises:
        ParseError: If the file cannot be read or parsed.
    """
    file_path = Path(path)
    try:
        raw = file_path.read_bytes()
    except OSError as e:
        raise ParseError(
            message=f"Cannot read document: {e.strerror or e}",
            source=str(file_path),
            cause=e,
        ) from e
    return parse(raw, source=str(file_path))
