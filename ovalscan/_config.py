"""Scan configuration loading.

Configuration is read from a YAML file and overridden by CLI flags:

    workers: 8            # concurrent probes, 1-64
    timeout: 300          # scan deadline in seconds, 0 or null = none
    absence_status: fail  # verdict when a probed resource is absent:
                          # fail | unknown | error

Priority (highest first):
1. CLI flags (--workers, --timeout)
2. The YAML file passed with --config
3. Built-in defaults

Example:
-------
    >>> from ovalscan._config import load_config, apply_overrides
    >>> config = load_config("ovalscan.yml")
    >>> config = apply_overrides(config, workers=4)
    >>> config.workers
    4

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from ovalscan._types import Status
from ovalscan.exceptions import ConfigError

logger = logging.getLogger(__name__)

MIN_WORKERS = 1
MAX_WORKERS = 64

ABSENCE_STATUSES = frozenset({Status.FAIL, Status.UNKNOWN, Status.ERROR})


# ── Data structures ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScanConfig:
    """Settings for one scan.

    Attributes:
        workers: Maximum number of checks probing the host at once.
        timeout: Scan deadline in seconds; None for no deadline.
        absence_status: Verdict for a registry key/value or file that does
            not exist.

    """

    workers: int = 8
    timeout: float | None = 300.0
    absence_status: Status = Status.FAIL


# ── Validation ─────────────────────────────────────────────────────────────


def _validate_workers(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"workers must be an integer, got {value!r}", key="workers")
    if not MIN_WORKERS <= value <= MAX_WORKERS:
        raise ConfigError(f"workers must be between {MIN_WORKERS} and {MAX_WORKERS}", key="workers")
    return value


def _validate_timeout(value: Any) -> float | None:
    if value is None or value == 0:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"timeout must be a non-negative number, got {value!r}", key="timeout")
    return float(value)


def _validate_absence_status(value: Any) -> Status:
    if isinstance(value, Status):
        status: Status | None = value
    else:
        try:
            status = Status(str(value).lower())
        except ValueError:
            status = None
    if status not in ABSENCE_STATUSES:
        raise ConfigError(
            f"absence_status must be one of fail, unknown, error; got {value!r}",
            key="absence_status",
        )
    return status


# ── Loading ────────────────────────────────────────────────────────────────


def config_from_dict(data: dict[str, Any]) -> ScanConfig:
    """Build a validated ScanConfig from a mapping; unknown keys are ignored."""
    config = ScanConfig()
    if "workers" in data:
        config = replace(config, workers=_validate_workers(data["workers"]))
    if "timeout" in data:
        config = replace(config, timeout=_validate_timeout(data["timeout"]))
    if "absence_status" in data:
        config = replace(config, absence_status=_validate_absence_status(data["absence_status"]))

    unknown = set(data) - {"workers", "timeout", "absence_status"}
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
    return config


def load_config(path: str | Path | None = None) -> ScanConfig:
    """Load scan configuration from a YAML file.

    Args:
        path: Config file path. None or a missing file yields defaults.

    Returns:
        Validated ScanConfig.

    Raises:
        ConfigError: If a value is out of range or of the wrong type.

    """
    if path is None:
        return ScanConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.debug("Config file %s not found, using defaults", config_path)
        return ScanConfig()

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        logger.warning("Malformed config file %s, using defaults: %s", config_path, e)
        return ScanConfig()

    if data is None:
        return ScanConfig()
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", config_path)
        return ScanConfig()

    return config_from_dict(data)


def apply_overrides(
    config: ScanConfig,
    *,
    workers: int | None = None,
    timeout: float | None = None,
) -> ScanConfig:
    """Apply CLI overrides on top of a loaded configuration.

    A timeout of 0 clears the deadline; None leaves the loaded value.
    """
    if workers is not None:
        config = replace(config, workers=_validate_workers(workers))
    if timeout is not None:
        config = replace(config, timeout=_validate_timeout(timeout))
    return config
