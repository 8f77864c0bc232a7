"""
Unit Tests for the Host Probes

StaticProbe lookups, probe data file loading, and LocalProbe file stats
(registry reads are only asserted where no Windows registry exists).
"""

import sys
from pathlib import Path

import pytest

from ovalscan.exceptions import ConfigError, ProbeError
from ovalscan.model import Hive
from ovalscan.probes import FileStat, LocalProbe, StaticProbe, load_probe_data


@pytest.mark.unit
class TestStaticProbe:
    """In-memory readings."""

    def test_lookup_is_case_insensitive(self) -> None:
        probe = StaticProbe(registry={"HKEY_LOCAL_MACHINE\\Software\\Test": {"Enabled": 1}})
        reading = probe.read_registry_value(Hive.HKEY_LOCAL_MACHINE, "SOFTWARE\\test", "enabled")

        assert reading.key_found and reading.value_found
        assert reading.value == "1"

    def test_key_and_value_absence(self) -> None:
        probe = StaticProbe(registry={"HKEY_LOCAL_MACHINE\\Software\\Test": {}})

        assert probe.read_registry_value(Hive.HKEY_LOCAL_MACHINE, "Software\\Other", "x").key_found is False
        reading = probe.read_registry_value(Hive.HKEY_LOCAL_MACHINE, "Software\\Test", "x")
        assert reading.key_found is True
        assert reading.value_found is False

    def test_missing_file(self) -> None:
        assert StaticProbe().stat_file("/nope").found is False

    def test_errors_table_raises(self) -> None:
        probe = StaticProbe(errors={"/locked": "Permission denied"})

        with pytest.raises(ProbeError) as exc_info:
            probe.stat_file("/locked")
        assert exc_info.value.resource == "/locked"


@pytest.mark.unit
class TestLoadProbeData:
    """YAML probe data files."""

    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "host.yml"
        path.write_text(
            "registry:\n"
            "  'HKEY_LOCAL_MACHINE\\Software\\Test':\n"
            '    Enabled: "1"\n'
            "files:\n"
            "  '/etc/motd':\n"
            "    size: 12\n"
            '    mode: "0644"\n'
            "errors:\n"
            "  '/root/secret': Permission denied\n"
        )
        probe = load_probe_data(path)

        assert probe.read_registry_value(Hive.HKEY_LOCAL_MACHINE, "Software\\Test", "Enabled").value == "1"
        assert probe.stat_file("/etc/motd") == FileStat(found=True, size=12, mtime=0.0, mode=0o644)
        with pytest.raises(ProbeError):
            probe.stat_file("/root/secret")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yml"
        path.write_text("")

        assert load_probe_data(path).stat_file("/x").found is False

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_probe_data(tmp_path / "missing.yml")

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_probe_data(path)

    def test_bad_mode(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yml"
        path.write_text("files:\n  '/x':\n    mode: rwx\n")

        with pytest.raises(ConfigError):
            load_probe_data(path)


@pytest.mark.unit
class TestLocalProbe:
    """Real stat calls against tmp_path."""

    def test_stat_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "marker.txt"
        path.write_text("hello")
        st = LocalProbe().stat_file(str(path))

        assert st.found is True
        assert st.size == 5

    def test_stat_missing_file(self, tmp_path: Path) -> None:
        assert LocalProbe().stat_file(str(tmp_path / "missing")).found is False

    @pytest.mark.skipif(sys.platform == "win32", reason="registry is available on Windows")
    def test_registry_unavailable(self) -> None:
        with pytest.raises(ProbeError, match="not available"):
            LocalProbe().read_registry_value(Hive.HKEY_LOCAL_MACHINE, "Software", "x")
