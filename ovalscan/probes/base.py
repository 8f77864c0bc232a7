"""
Base Probe Abstract Class and Reading Types

Defines the SystemProbe interface and the plain data it returns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ovalscan.model import Hive


@dataclass(frozen=True)
class RegistryReading:
    """
    Result of reading one registry value.

    Attributes:
        key_found: The hive+key exists
        value_found: The named value exists under the key
        value: The value rendered as a string (None when not found)
    """

    key_found: bool
    value_found: bool = False
    value: str | None = None


@dataclass(frozen=True)
class FileStat:
    """
    Result of stat-ing one path.

    Attributes:
        found: The path exists
        size: Size in bytes
        mtime: Modification time as a POSIX timestamp
        mode: Permission bits (st_mode)
    """

    found: bool
    size: int = 0
    mtime: float = 0.0
    mode: int = 0


class SystemProbe(ABC):
    """
    Abstract host probe.

    Implementations must be safe to call from several worker threads at
    once and must not keep per-scan state.

    Subclasses must implement:
    - read_registry_value(): Read a registry value as a string
    - stat_file(): Stat a filesystem path
    """

    @abstractmethod
    def read_registry_value(self, hive: Hive, key_path: str, value_name: str) -> RegistryReading:
        """
        Read a registry value as a string.

        Args:
            hive: Registry hive.
            key_path: Key path below the hive.
            value_name: Name of the value ("" for the default value).

        Returns:
            RegistryReading with found flags and the value.

        Raises:
            ProbeError: If the registry could not be examined.
        """

    @abstractmethod
    def stat_file(self, path: str) -> FileStat:
        """
        Stat a filesystem path.

        Args:
            path: Path to examine.

        Returns:
            FileStat; found=False when the path does not exist.

        Raises:
            ProbeError: If the path could not be examined.
        """
