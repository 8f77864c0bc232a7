"""ovalscan CLI: evaluate OVAL definitions documents against this host."""

from __future__ import annotations

import logging
import os
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ovalscan import __version__
from ovalscan._config import MAX_WORKERS, MIN_WORKERS, apply_overrides, load_config
from ovalscan._types import ScanReport, Status
from ovalscan.exceptions import ConfigError, ParseError
from ovalscan.output import FORMATTERS, parse_output_spec, write_output
from ovalscan.parser import load_document
from ovalscan.probes import LocalProbe, SystemProbe, load_probe_data
from ovalscan.resolver import resolve
from ovalscan.scanner import scan_document

logger = logging.getLogger(__name__)

console = Console()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

STATUS_STYLES = {
    Status.PASS: "[green]PASS[/green]",
    Status.FAIL: "[red]FAIL[/red]",
    Status.ERROR: "[yellow]ERROR[/yellow]",
    Status.UNKNOWN: "[dim]UNKNOWN[/dim]",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")
    sys.exit(1)


# ── CLI group ───────────────────────────────────────────────────────────────

MAIN_HELP_EPILOG = """
\b
Examples:
  ovalscan scan definitions.xml
  ovalscan scan definitions.xml --config ovalscan.yml -w 16 --timeout 60
  ovalscan scan definitions.xml --probe-data host.yml -o json -q
  ovalscan scan definitions.xml -o json:report.json -o csv:report.csv
  ovalscan inspect definitions.xml
"""


@click.group(epilog=MAIN_HELP_EPILOG, context_settings={"max_content_width": 120})
@click.version_option(version=__version__, prog_name="ovalscan")
def main():
    """ovalscan: OVAL definition evaluator."""
    pass


# ── scan ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("document", type=click.Path(dir_okay=False))
@click.option("--config", "config_path", default=None, help="YAML config file (workers, timeout, absence_status)")
@click.option(
    "--workers",
    "-w",
    default=None,
    type=click.IntRange(MIN_WORKERS, MAX_WORKERS),
    help=f"Concurrent probes ({MIN_WORKERS}-{MAX_WORKERS}, default: 8)",
)
@click.option("--timeout", "-t", default=None, type=click.FloatRange(min=0), help="Scan deadline in seconds (0 = none)")
@click.option(
    "--probe-data",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML file of recorded registry/file readings to scan instead of this host",
)
@click.option(
    "--output",
    "-o",
    "outputs",
    multiple=True,
    help="Output format (csv, json). Add :path to write to file (e.g., -o json:results.json)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress terminal output (useful with -o)")
@click.option("--verbose", "-v", is_flag=True, help="Show per-test details and debug logging")
def scan(document, config_path, workers, timeout, probe_data, outputs, quiet, verbose):
    """Evaluate a definitions document against this host.

    Exits 0 when every definition passes, 2 when any does not. If a probe
    call outlived the deadline the process ends with os._exit so the hung
    worker thread cannot hold it open.
    """
    _configure_logging(verbose)

    for spec in outputs:
        fmt, _path = parse_output_spec(spec)
        if fmt not in FORMATTERS:
            _fail(f"Unknown output format: {fmt} (valid: {', '.join(FORMATTERS)})")

    try:
        config = apply_overrides(load_config(config_path), workers=workers, timeout=timeout)
        probe: SystemProbe = load_probe_data(probe_data) if probe_data else LocalProbe()
        doc = load_document(document)
    except (ConfigError, ParseError) as exc:
        _fail(str(exc))

    report = scan_document(doc, probe, config=config)

    if not quiet:
        _print_report(report, verbose)

    _write_outputs(report, outputs)

    code = 0 if report.all_passed else 2
    if report.abandoned_checks:
        # Threads stuck in a probe call would be joined at interpreter exit.
        logger.warning("Exiting with %d probe calls still running", report.abandoned_checks)
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(code)
    sys.exit(code)


def _print_report(report: ScanReport, verbose: bool) -> None:
    """Print definition verdicts, failing tests, and the summary line."""
    table = Table(show_header=True, header_style="bold", title=report.source or None)
    table.add_column("Definition", style="cyan", min_width=24)
    table.add_column("Status", justify="center")
    table.add_column("Title")
    for d in report.definition_results:
        table.add_row(d.definition_id, STATUS_STYLES[d.status], escape(d.title))
    console.print(table)

    tests = [t for t in report.test_results if verbose or t.status != Status.PASS]
    if tests:
        test_table = Table(show_header=True, header_style="bold")
        test_table.add_column("Test", style="cyan", min_width=24)
        test_table.add_column("Status", justify="center")
        test_table.add_column("Message")
        for t in tests:
            test_table.add_row(t.test_id, STATUS_STYLES[t.status], escape(t.message))
        console.print(test_table)

    console.print(
        f"\n[bold]{len(report.definition_results)} definitions[/bold]"
        f" | [green]{report.count(Status.PASS)} pass[/green]"
        f" | [red]{report.count(Status.FAIL)} fail[/red]"
        f" | [yellow]{report.count(Status.ERROR)} error[/yellow]"
        f" | [dim]{report.count(Status.UNKNOWN)} unknown[/dim]"
    )


def _write_outputs(report: ScanReport, outputs: tuple[str, ...]) -> None:
    """Write formatted outputs based on --output flags."""
    for spec in outputs:
        try:
            fmt, filepath = parse_output_spec(spec)
            output = write_output(report, fmt, filepath)
            if filepath:
                console.print(f"[dim]Wrote {fmt} output to {filepath}[/dim]")
            else:
                # Print to stdout
                print(output)
        except (ValueError, OSError) as exc:
            _fail(str(exc))


# ── inspect ─────────────────────────────────────────────────────────────────


@main.command()
@click.argument("document", type=click.Path(dir_okay=False))
def inspect(document):
    """Parse and resolve a document without probing the host."""
    _configure_logging(False)
    try:
        doc = load_document(document)
    except ParseError as exc:
        _fail(str(exc))

    resolution = resolve(doc)

    table = Table(show_header=True, header_style="bold", title=f"{doc.definition_count} definitions")
    table.add_column("Definition", style="cyan", min_width=24)
    table.add_column("Class")
    table.add_column("Tests", justify="right")
    table.add_column("Title")
    for d in doc.definitions.values():
        table.add_row(d.id, d.definition_class, str(len(set(d.criteria.iter_test_refs()))), escape(d.title))
    console.print(table)

    checks = Table(show_header=True, header_style="bold", title=f"{len(resolution.checks)} checks")
    checks.add_column("Test", style="cyan", min_width=24)
    checks.add_column("Family")
    checks.add_column("Type")
    checks.add_column("Target")
    for c in resolution.checks:
        target = c.obj.registry_path if c.family == "registry" else c.obj.path
        checks.add_row(c.test_id, c.family, c.subtype, escape(target))
    console.print(checks)

    if resolution.errors or resolution.unresolved_criteria:
        console.print("\n[bold]Resolution errors:[/bold]")
        for err in resolution.errors:
            console.print(f"  [red]✗[/red] {escape(err.message)}")
        for ref in resolution.unresolved_criteria:
            console.print(f"  [red]✗[/red] Criterion references missing test: {ref}")
