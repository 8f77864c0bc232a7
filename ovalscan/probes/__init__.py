"""
Host Probe Capability

The probe is the only place the engine touches the host. Check handlers
call exactly two operations through it:

    read_registry_value(hive, key_path, value_name) -> RegistryReading
    stat_file(path)                                -> FileStat

"Not found" is data (found flags set to False), not an exception. A probe
raises ProbeError only when the host could not be examined at all
(permission denied, I/O error, subsystem not available on this platform).

Implementations:
    LocalProbe:  native host access (os.stat, winreg on Windows)
    StaticProbe: canned readings for dry runs and tests

Any object implementing SystemProbe can be injected into a scan, e.g. a
probe backed by a remote agent.
"""

from ovalscan.probes.base import FileStat, RegistryReading, SystemProbe
from ovalscan.probes.local import LocalProbe
from ovalscan.probes.static import StaticProbe, load_probe_data

__all__ = [
    "FileStat",
    "LocalProbe",
    "RegistryReading",
    "StaticProbe",
    "SystemProbe",
    "load_probe_data",
]
