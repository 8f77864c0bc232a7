"""
Shared test fixtures.

Provides sample OVAL definitions documents and StaticProbe instances so
the whole engine can be exercised without touching the host registry or
filesystem.
"""

from typing import Callable

import pytest

from ovalscan.probes import FileStat, StaticProbe

OVAL_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<oval_definitions xmlns="http://oval.mitre.org/XMLSchema/oval-definitions-5"'
    ' xmlns:win="http://oval.mitre.org/XMLSchema/oval-definitions-5#windows"'
    ' xmlns:ind="http://oval.mitre.org/XMLSchema/oval-definitions-5#independent">'
)


def build_oval(definitions: str, tests: str = "", objects: str = "", states: str = "") -> str:
    """Wrap document sections in a namespaced oval_definitions root."""
    return (
        f"{OVAL_HEADER}"
        f"<definitions>{definitions}</definitions>"
        f"<tests>{tests}</tests>"
        f"<objects>{objects}</objects>"
        f"<states>{states}</states>"
        "</oval_definitions>"
    )


SAMPLE_DEFINITIONS = """
<definition id="oval:test:def:1" class="compliance" version="1">
  <metadata>
    <title>Test feature enabled and marker present</title>
    <description>Registry flag set and marker file deployed.</description>
  </metadata>
  <criteria operator="AND">
    <criterion test_ref="oval:test:tst:1" comment="Enabled is 1"/>
    <criterion test_ref="oval:test:tst:2" comment="marker exists"/>
  </criteria>
</definition>
"""

SAMPLE_TESTS = """
<win:registry_test id="oval:test:tst:1" version="1" check="all" comment="Enabled is 1">
  <win:object object_ref="oval:test:obj:1"/>
  <win:state state_ref="oval:test:ste:1"/>
</win:registry_test>
<ind:file_test id="oval:test:tst:2" version="1" check="all" comment="marker exists">
  <ind:object object_ref="oval:test:obj:2"/>
</ind:file_test>
"""

SAMPLE_OBJECTS = """
<win:registry_object id="oval:test:obj:1" version="1">
  <win:hive>HKEY_LOCAL_MACHINE</win:hive>
  <win:key>Software\\Test</win:key>
  <win:name>Enabled</win:name>
</win:registry_object>
<ind:file_object id="oval:test:obj:2" version="1">
  <ind:filepath>C:\\marker.txt</ind:filepath>
</ind:file_object>
"""

SAMPLE_STATES = """
<win:registry_state id="oval:test:ste:1" version="1">
  <win:value operation="equals">1</win:value>
</win:registry_state>
"""

SAMPLE_XML = build_oval(SAMPLE_DEFINITIONS, SAMPLE_TESTS, SAMPLE_OBJECTS, SAMPLE_STATES)


@pytest.fixture
def sample_xml() -> str:
    """One AND definition over a registry test and a file exists test."""
    return SAMPLE_XML


@pytest.fixture
def oval_builder() -> Callable[..., str]:
    """Builder for ad-hoc documents (definitions, tests, objects, states)."""
    return build_oval


@pytest.fixture
def passing_probe() -> StaticProbe:
    """Probe on which every check of the sample document passes."""
    return StaticProbe(
        registry={"HKEY_LOCAL_MACHINE\\Software\\Test": {"Enabled": "1"}},
        files={"C:\\marker.txt": FileStat(found=True, size=12, mtime=1700000000.0, mode=0o100644)},
    )


@pytest.fixture
def empty_probe() -> StaticProbe:
    """Probe of a host with no registry keys and no files."""
    return StaticProbe()
