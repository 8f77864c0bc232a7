"""Probe that serves canned readings.

Used for dry runs of a definitions document against a recorded host state
(``ovalscan scan --probe-data host.yml``) and as the stub probe in tests.

Probe data file format::

    registry:
      'HKEY_LOCAL_MACHINE\\Software\\Test':
        Enabled: "1"
    files:
      'C:\\marker.txt':
        size: 12
        mode: "0644"
        mtime: 1700000000
    errors:
      'HKEY_LOCAL_MACHINE\\Software\\Locked': "Access is denied"

Registry paths match case-insensitively, as on Windows. Registry keys are
``<HIVE>\\<key path>`` with full hive names. Any resource listed under
``errors`` raises ProbeError with the given message.

"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ovalscan.exceptions import ConfigError, ProbeError
from ovalscan.model import Hive
from ovalscan.probes.base import FileStat, RegistryReading, SystemProbe


def _resource_key(path: str) -> str:
    return path.strip().strip("\\").lower()


def _parse_mode(raw: Any) -> int:
    """Accept 0o644, 420, "0644", or "644" for file permission bits."""
    if isinstance(raw, int):
        return raw
    return int(str(raw), 8)


class StaticProbe(SystemProbe):
    """Probe answering from in-memory registry and file tables."""

    def __init__(
        self,
        registry: dict[str, dict[str, Any]] | None = None,
        files: dict[str, FileStat] | None = None,
        errors: dict[str, str] | None = None,
    ):
        self._registry = {
            _resource_key(path): {name.lower(): str(value) for name, value in (values or {}).items()}
            for path, values in (registry or {}).items()
        }
        self._files = dict(files or {})
        self._errors = {_resource_key(resource): message for resource, message in (errors or {}).items()}

    def _raise_if_failing(self, resource: str) -> None:
        message = self._errors.get(_resource_key(resource))
        if message is not None:
            raise ProbeError(message=message, resource=resource)

    def read_registry_value(self, hive: Hive, key_path: str, value_name: str) -> RegistryReading:
        resource = f"{hive.value}\\{key_path}"
        self._raise_if_failing(resource)

        values = self._registry.get(_resource_key(resource))
        if values is None:
            return RegistryReading(key_found=False)
        value = values.get(value_name.lower())
        if value is None:
            return RegistryReading(key_found=True, value_found=False)
        return RegistryReading(key_found=True, value_found=True, value=value)

    def stat_file(self, path: str) -> FileStat:
        self._raise_if_failing(path)
        return self._files.get(path, FileStat(found=False))


def load_probe_data(path: str | Path) -> StaticProbe:
    """Build a StaticProbe from a YAML probe data file.

    Raises:
        ConfigError: If the file cannot be read or has the wrong shape.

    """
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot load probe data from {p}: {e}", key="probe_data") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Probe data in {p} must be a mapping", key="probe_data")

    files: dict[str, FileStat] = {}
    for file_path, entry in (data.get("files") or {}).items():
        entry = entry or {}
        try:
            files[str(file_path)] = FileStat(
                found=True,
                size=int(entry.get("size", 0)),
                mtime=float(entry.get("mtime", 0.0)),
                mode=_parse_mode(entry.get("mode", "0644")),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid file entry {file_path}: {e}", key="files") from e

    return StaticProbe(
        registry=data.get("registry") or {},
        files=files,
        errors={str(k): str(v) for k, v in (data.get("errors") or {}).items()},
    )
