"""
Local Host Probe

Probes the host the scanner runs on. Files are examined with os.stat.
Registry values are read through winreg with read-only access; on
platforms without a Windows registry every registry read raises
ProbeError, which the registry handler reports as "error".

Security Notes:
- Registry keys are opened with KEY_READ only
- Nothing is ever written to the host
"""

from __future__ import annotations

import logging
import os

from ovalscan.exceptions import ProbeError
from ovalscan.model import Hive
from ovalscan.probes.base import FileStat, RegistryReading, SystemProbe

logger = logging.getLogger(__name__)


def _render_registry_value(value: object) -> str:
    """Render a registry value of any REG_* type as a string."""
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, (list, tuple)):
        return "\n".join(str(v) for v in value)
    return str(value)


class LocalProbe(SystemProbe):
    """Probe backed by the local operating system."""

    def read_registry_value(self, hive: Hive, key_path: str, value_name: str) -> RegistryReading:
        resource = f"{hive.value}\\{key_path}"
        try:
            import winreg
        except ImportError as e:
            raise ProbeError(
                message="Windows registry is not available on this platform",
                resource=resource,
                cause=e,
            ) from e

        root = getattr(winreg, hive.value)
        try:
            key = winreg.OpenKey(root, key_path, 0, winreg.KEY_READ)
        except FileNotFoundError:
            return RegistryReading(key_found=False)
        except OSError as e:
            raise ProbeError(
                message=f"Cannot open registry key: {e.strerror or e}",
                resource=resource,
                cause=e,
            ) from e

        try:
            with key:
                value, _value_type = winreg.QueryValueEx(key, value_name)
        except FileNotFoundError:
            return RegistryReading(key_found=True, value_found=False)
        except OSError as e:
            raise ProbeError(
                message=f"Cannot read registry value {value_name}: {e.strerror or e}",
                resource=resource,
                cause=e,
            ) from e

        return RegistryReading(key_found=True, value_found=True, value=_render_registry_value(value))

    def stat_file(self, path: str) -> FileStat:
        try:
            st = os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return FileStat(found=False)
        except OSError as e:
            logger.debug("stat %s failed: %s", path, e)
            raise ProbeError(
                message=f"Cannot stat file: {e.strerror or e}",
                resource=path,
                cause=e,
            ) from e

        return FileStat(found=True, size=st.st_size, mtime=st.st_mtime, mode=st.st_mode)
