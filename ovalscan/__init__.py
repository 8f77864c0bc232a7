"""
ovalscan: OVAL definition evaluation engine

Parses OVAL definitions documents, resolves the test/object/state
references into executable checks, runs the checks against the host
(Windows registry values and files) through a probe, and folds the
results into one verdict per definition through its criteria tree.

Every test and every definition ends in exactly one of pass, fail,
error, or unknown; nothing is silently dropped.

Usage:
    from ovalscan import scan, LocalProbe

    report = scan(Path("definitions.xml").read_bytes(), LocalProbe())
    for d in report.definition_results:
        print(f"{d.definition_id}: {d.status.value}")
"""

__version__ = "0.1.0"

from ovalscan._config import ScanConfig, load_config
from ovalscan._context import ScanContext
from ovalscan._types import Check, DefinitionResult, ScanReport, Status, TestResult
from ovalscan.exceptions import (
    ConfigError,
    OvalError,
    ParseError,
    ProbeError,
    ResolutionError,
    ScanCancelledError,
)
from ovalscan.model import Criteria, Criterion, Definition, Document, OvalObject, State, Test
from ovalscan.parser import load_document, parse
from ovalscan.probes import LocalProbe, StaticProbe, SystemProbe, load_probe_data
from ovalscan.resolver import Resolution, resolve
from ovalscan.scanner import scan, scan_document

__all__ = [
    # Entry points
    "scan",
    "scan_document",
    "parse",
    "load_document",
    "resolve",
    # Model
    "Document",
    "Definition",
    "Criteria",
    "Criterion",
    "Test",
    "OvalObject",
    "State",
    # Results
    "Status",
    "Check",
    "Resolution",
    "TestResult",
    "DefinitionResult",
    "ScanReport",
    # Execution
    "ScanConfig",
    "ScanContext",
    "load_config",
    "SystemProbe",
    "LocalProbe",
    "StaticProbe",
    "load_probe_data",
    # Errors
    "OvalError",
    "ParseError",
    "ResolutionError",
    "ProbeError",
    "ScanCancelledError",
    "ConfigError",
]
