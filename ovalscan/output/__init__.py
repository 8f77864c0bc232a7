"""Output formatters for scan reports.

Formatters read the finished ScanReport and never modify it.

Output Formats:
    - JSON: full structured report, for pipelines and archival
    - CSV: flat rows, one per definition+test

Example:
-------
    >>> from ovalscan.output import write_output
    >>> print(write_output(report, "json"))
    >>> write_output(report, "csv", "results.csv")

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ovalscan.output.csv_fmt import format_csv
from ovalscan.output.json_fmt import format_json

if TYPE_CHECKING:
    from ovalscan._types import ScanReport

__all__ = [
    "FORMATTERS",
    "format_csv",
    "format_json",
    "parse_output_spec",
    "write_output",
]

FORMATTERS = {
    "json": format_json,
    "csv": format_csv,
}


def parse_output_spec(spec: str) -> tuple[str, str | None]:
    """Parse an output specification into format and filepath.

    Example:
    -------
        >>> parse_output_spec("json")
        ('json', None)
        >>> parse_output_spec("CSV:results.csv")
        ('csv', 'results.csv')

    """
    if ":" in spec:
        fmt, path = spec.split(":", 1)
        return fmt.lower(), path
    return spec.lower(), None


def write_output(report: ScanReport, fmt: str, filepath: str | None = None) -> str:
    """Format a report and optionally write it to a file.

    Returns:
        The formatted output string.

    Raises:
        ValueError: If the format is unknown.

    """
    if fmt not in FORMATTERS:
        raise ValueError(f"Unknown output format: {fmt} (valid: {', '.join(FORMATTERS)})")

    output = FORMATTERS[fmt](report)

    if filepath:
        with open(filepath, "w") as f:
            f.write(output)

    return output
