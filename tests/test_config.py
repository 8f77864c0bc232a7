"""
Unit Tests for Scan Configuration

YAML loading, validation, defaults on missing or malformed files, and
CLI overrides.
"""

from pathlib import Path

import pytest

from ovalscan._config import ScanConfig, apply_overrides, config_from_dict, load_config
from ovalscan._types import Status
from ovalscan.exceptions import ConfigError


@pytest.mark.unit
class TestLoadConfig:
    """Reading config files."""

    def test_defaults(self) -> None:
        config = load_config()

        assert config == ScanConfig()
        assert config.workers == 8
        assert config.timeout == 300.0
        assert config.absence_status is Status.FAIL

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nope.yml") == ScanConfig()

    def test_load_values(self, tmp_path: Path) -> None:
        path = tmp_path / "ovalscan.yml"
        path.write_text("workers: 4\ntimeout: 30\nabsence_status: Unknown\n")
        config = load_config(path)

        assert config.workers == 4
        assert config.timeout == 30.0
        assert config.absence_status is Status.UNKNOWN

    def test_malformed_yaml_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yml"
        path.write_text("workers: [4\n")

        assert load_config(path) == ScanConfig()

    def test_non_mapping_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yml"
        path.write_text("- 1\n- 2\n")

        assert load_config(path) == ScanConfig()

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yml"
        path.write_text("workers: 500\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.key == "workers"


@pytest.mark.unit
class TestValidation:
    """config_from_dict() value checks."""

    @pytest.mark.parametrize("workers", [0, 65, "8", True, 2.5])
    def test_bad_workers(self, workers) -> None:
        with pytest.raises(ConfigError):
            config_from_dict({"workers": workers})

    @pytest.mark.parametrize("timeout", [-1, "soon", True])
    def test_bad_timeout(self, timeout) -> None:
        with pytest.raises(ConfigError):
            config_from_dict({"timeout": timeout})

    @pytest.mark.parametrize("timeout", [0, None])
    def test_no_deadline(self, timeout) -> None:
        assert config_from_dict({"timeout": timeout}).timeout is None

    def test_pass_is_not_an_absence_status(self) -> None:
        with pytest.raises(ConfigError, match="absence_status"):
            config_from_dict({"absence_status": "pass"})

    def test_unknown_keys_ignored(self) -> None:
        assert config_from_dict({"colour": "blue"}) == ScanConfig()


@pytest.mark.unit
class TestOverrides:
    """CLI flags on top of the loaded config."""

    def test_override_workers_and_timeout(self) -> None:
        config = apply_overrides(ScanConfig(), workers=2, timeout=10)

        assert config.workers == 2
        assert config.timeout == 10.0

    def test_zero_timeout_clears_deadline(self) -> None:
        assert apply_overrides(ScanConfig(), timeout=0).timeout is None

    def test_none_keeps_loaded_values(self) -> None:
        base = ScanConfig(workers=3, timeout=5.0)
        assert apply_overrides(base) == base
