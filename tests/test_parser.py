"""
Unit Tests for the Definitions Document Parser

Covers namespaced and bare documents, criteria trees with negation,
object/state field extraction, and the ParseError paths.
"""

from pathlib import Path

import pytest

from ovalscan.exceptions import ParseError
from ovalscan.model import Criteria, Criterion, Operator
from ovalscan.parser import load_document, parse


@pytest.mark.unit
class TestParseSampleDocument:
    """Parse the shared end-to-end sample."""

    def test_counts(self, sample_xml: str) -> None:
        doc = parse(sample_xml, source="sample.xml")

        assert doc.definition_count == 1
        assert doc.test_count == 2
        assert set(doc.objects) == {"oval:test:obj:1", "oval:test:obj:2"}
        assert set(doc.states) == {"oval:test:ste:1"}
        assert doc.source == "sample.xml"

    def test_definition_metadata(self, sample_xml: str) -> None:
        definition = parse(sample_xml).definitions["oval:test:def:1"]

        assert definition.definition_class == "compliance"
        assert definition.version == "1"
        assert definition.title == "Test feature enabled and marker present"
        assert definition.criteria.operator is Operator.AND
        assert [c.test_ref for c in definition.criteria.children] == ["oval:test:tst:1", "oval:test:tst:2"]

    def test_tests_carry_family_and_refs(self, sample_xml: str) -> None:
        doc = parse(sample_xml)
        registry_test = doc.tests["oval:test:tst:1"]
        file_test = doc.tests["oval:test:tst:2"]

        assert registry_test.family == "registry"
        assert registry_test.object_ref == "oval:test:obj:1"
        assert registry_test.state_ref == "oval:test:ste:1"
        assert file_test.family == "file"
        assert file_test.state_ref is None

    def test_registry_object_fields(self, sample_xml: str) -> None:
        obj = parse(sample_xml).objects["oval:test:obj:1"]

        assert obj.hive == "HKEY_LOCAL_MACHINE"
        assert obj.key == "Software\\Test"
        assert obj.name == "Enabled"
        assert obj.registry_path == "HKEY_LOCAL_MACHINE\\Software\\Test"

    def test_file_object_path(self, sample_xml: str) -> None:
        assert parse(sample_xml).objects["oval:test:obj:2"].path == "C:\\marker.txt"

    def test_state_fields(self, sample_xml: str) -> None:
        state = parse(sample_xml).states["oval:test:ste:1"]

        assert state.field == "value"
        assert state.value == "1"
        assert state.operation == "equals"
        assert state.datatype == "string"

    def test_bytes_input(self, sample_xml: str) -> None:
        assert parse(sample_xml.encode("utf-8")).definition_count == 1


@pytest.mark.unit
class TestParseStructure:
    """Criteria trees and field variants."""

    def test_nested_criteria_and_negation(self, oval_builder) -> None:
        xml = oval_builder(
            """
            <definition id="d1">
              <criteria operator="OR" negate="true">
                <criterion test_ref="t1" negate="true"/>
                <criteria operator="AND">
                  <criterion test_ref="t2"/>
                </criteria>
              </criteria>
            </definition>
            """
        )
        root = parse(xml).definitions["d1"].criteria

        assert root.operator is Operator.OR
        assert root.negate is True
        leaf, inner = root.children
        assert isinstance(leaf, Criterion) and leaf.negate is True
        assert isinstance(inner, Criteria) and inner.operator is Operator.AND
        assert list(root.iter_test_refs()) == ["t1", "t2"]

    def test_bare_document_without_namespaces(self) -> None:
        xml = (
            "<oval_definitions><definitions>"
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>'
            "</definitions></oval_definitions>"
        )
        doc = parse(xml)

        assert doc.definition_count == 1
        assert doc.test_count == 0

    def test_path_and_filename_joined(self, oval_builder) -> None:
        xml = oval_builder(
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>',
            objects=(
                '<ind:file_object id="o1"><ind:path>C:\\Windows</ind:path>'
                "<ind:filename>win.ini</ind:filename></ind:file_object>"
                '<ind:file_object id="o2"><ind:path>/etc</ind:path>'
                "<ind:filename>passwd</ind:filename></ind:file_object>"
            ),
        )
        objects = parse(xml).objects

        assert objects["o1"].path == "C:\\Windows\\win.ini"
        assert objects["o2"].path == "/etc/passwd"

    def test_state_operation_normalized_and_datatype(self, oval_builder) -> None:
        xml = oval_builder(
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>',
            states=(
                '<win:registry_state id="s1">'
                '<win:value operation="greater than or equal" datatype="Int">5</win:value>'
                "</win:registry_state>"
            ),
        )
        state = parse(xml).states["s1"]

        assert state.operation == "greater_than_or_equal"
        assert state.datatype == "int"

    def test_registry_state_value_after_type(self, oval_builder) -> None:
        xml = oval_builder(
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>',
            states=(
                '<win:registry_state id="s1">'
                "<win:type>reg_dword</win:type>"
                '<win:value datatype="int">1</win:value>'
                "</win:registry_state>"
            ),
        )
        state = parse(xml).states["s1"]

        assert state.field == "value"
        assert state.value == "1"
        assert state.datatype == "int"

    def test_file_state_prefers_uwrite(self, oval_builder) -> None:
        xml = oval_builder(
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>',
            states=(
                '<ind:file_state id="s1">'
                "<ind:type>regular</ind:type>"
                '<ind:uwrite datatype="boolean">false</ind:uwrite>'
                "</ind:file_state>"
            ),
        )
        state = parse(xml).states["s1"]

        assert state.field == "uwrite"
        assert state.value == "false"

    def test_first_field_when_preferred_absent(self, oval_builder) -> None:
        xml = oval_builder(
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>',
            states='<win:registry_state id="s1"><win:type>reg_sz</win:type></win:registry_state>',
        )
        state = parse(xml).states["s1"]

        assert state.field == "type"
        assert state.value == "reg_sz"

    def test_var_ref_recorded(self, oval_builder) -> None:
        xml = oval_builder(
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>',
            states=(
                '<win:registry_state id="s1">'
                '<win:value var_ref="oval:x:var:1" operation="equals"/>'
                "</win:registry_state>"
                '<win:registry_state id="s2"><win:value>1</win:value></win:registry_state>'
            ),
        )
        states = parse(xml).states

        assert states["s1"].var_ref == "oval:x:var:1"
        assert states["s1"].value == ""
        assert states["s2"].var_ref is None

    def test_extend_definition_becomes_leaf(self, oval_builder) -> None:
        xml = oval_builder(
            """
            <definition id="d1"><criteria>
              <extend_definition definition_ref="d0"/>
            </criteria></definition>
            """
        )
        leaf = parse(xml).definitions["d1"].criteria.children[0]

        assert isinstance(leaf, Criterion)
        assert leaf.test_ref == "d0"


@pytest.mark.unit
class TestParseErrors:
    """Malformed input raises ParseError and yields no document."""

    @pytest.mark.parametrize("raw", [b"", "   ", b"\n"])
    def test_empty_input(self, raw) -> None:
        with pytest.raises(ParseError):
            parse(raw)

    def test_malformed_xml_reports_line(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("<oval_definitions>\n<definitions>\n</oval_definitions>")

        assert exc_info.value.line is not None
        assert "XML parsing failed" in exc_info.value.message

    def test_wrong_root(self) -> None:
        with pytest.raises(ParseError, match="expected <oval_definitions>"):
            parse("<benchmark/>")

    def test_missing_definitions_container(self) -> None:
        with pytest.raises(ParseError, match="definitions"):
            parse("<oval_definitions><tests/></oval_definitions>")

    def test_definition_without_criteria(self, oval_builder) -> None:
        with pytest.raises(ParseError, match="has no criteria"):
            parse(oval_builder('<definition id="d1"><metadata/></definition>'))

    def test_unsupported_operator(self, oval_builder) -> None:
        xml = oval_builder('<definition id="d1"><criteria operator="XOR"/></definition>')
        with pytest.raises(ParseError, match="XOR"):
            parse(xml)

    @pytest.mark.parametrize("operator", ["AND", "OR"])
    def test_empty_criteria(self, oval_builder, operator: str) -> None:
        xml = oval_builder(f'<definition id="d1"><criteria operator="{operator}"/></definition>')
        with pytest.raises(ParseError, match="<criteria> has no children") as exc_info:
            parse(xml)

        assert exc_info.value.line is not None

    def test_empty_nested_criteria(self, oval_builder) -> None:
        xml = oval_builder(
            '<definition id="d1"><criteria><criterion test_ref="t1"/><criteria operator="OR"/></criteria></definition>'
        )
        with pytest.raises(ParseError, match="no children"):
            parse(xml)

    def test_duplicate_identifier(self, oval_builder) -> None:
        xml = oval_builder(
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>'
            '<definition id="d1"><criteria><criterion test_ref="t1"/></criteria></definition>'
        )
        with pytest.raises(ParseError, match="Duplicate identifier: d1"):
            parse(xml)

    def test_entities_not_expanded(self) -> None:
        xml = (
            '<?xml version="1.0"?>'
            '<!DOCTYPE oval_definitions [<!ENTITY xxe SYSTEM "file:///etc/passwd">]>'
            "<oval_definitions><definitions>"
            '<definition id="d1"><metadata><title>&xxe;</title></metadata>'
            '<criteria><criterion test_ref="t1"/></criteria></definition>'
            "</definitions></oval_definitions>"
        )
        doc = parse(xml)

        assert "root:" not in doc.definitions["d1"].title

    def test_load_document_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="Cannot read document"):
            load_document(tmp_path / "missing.xml")

    def test_load_document_sets_source(self, tmp_path: Path, sample_xml: str) -> None:
        path = tmp_path / "defs.xml"
        path.write_text(sample_xml)

        assert load_document(path).source == str(path)
