"""
TamperSeek Output Management

Console messaging (colored, quiet/verbose aware) and rendering of the
per-host result records as a table, CSV or JSON.
"""

import csv
import io
import json
import sys
from typing import Iterable, List, Optional, TextIO

from shared.results import RESULT_COLUMNS, HostResult, TamperSummary
from shared.statuses import ProbeStatus

# ANSI color codes
GREEN = '\033[92m'
RED = '\033[91m'
YELLOW = '\033[93m'
CYAN = '\033[96m'
BOLD = '\033[1m'
RESET = '\033[0m'

STATUS_COLORS = {
    ProbeStatus.PROTECTED: GREEN,
    ProbeStatus.NOT_PROTECTED: RED,
    ProbeStatus.SERVICE_MISSING: RED,
    ProbeStatus.OFFLINE: YELLOW,
    ProbeStatus.NOT_SUPPORTED: YELLOW,
    ProbeStatus.RPC_UNAVAILABLE: YELLOW,
    ProbeStatus.ACCESS_DENIED: YELLOW,
    ProbeStatus.UNABLE_TO_ACCESS_REMOTE_DIRECTORY: YELLOW,
}


class TamperSeekOutput:
    """Console output helper shared by the workflow and the tamper operation."""

    def __init__(self, quiet: bool = False, verbose: bool = False, no_colors: bool = False,
                 stream: Optional[TextIO] = None, err_stream: Optional[TextIO] = None):
        self.quiet = quiet
        self.verbose = verbose
        self.no_colors = no_colors
        self.stream = stream
        self.err_stream = err_stream

        # Set up colors based on no_colors flag
        if self.no_colors:
            self.GREEN = self.RED = self.YELLOW = self.CYAN = self.BOLD = self.RESET = ''
        else:
            self.GREEN = GREEN
            self.RED = RED
            self.YELLOW = YELLOW
            self.CYAN = CYAN
            self.BOLD = BOLD
            self.RESET = RESET

    def _out(self) -> TextIO:
        return self.stream or sys.stdout

    def _err(self) -> TextIO:
        return self.err_stream or sys.stderr

    def print_if_not_quiet(self, message: str) -> None:
        """Print message only if not in quiet mode."""
        if not self.quiet:
            print(message, file=self._out())

    def print_if_verbose(self, message: str) -> None:
        """Print message only if in verbose mode and not quiet."""
        if self.verbose and not self.quiet:
            print(message, file=self._out())

    def info(self, message: str) -> None:
        self.print_if_not_quiet(f"{self.CYAN}ℹ{self.RESET} {message}")

    def success(self, message: str) -> None:
        self.print_if_not_quiet(f"{self.GREEN}✓{self.RESET} {message}")

    def warning(self, message: str) -> None:
        self.print_if_not_quiet(f"{self.YELLOW}⚠{self.RESET} {message}")

    def error(self, message: str) -> None:
        # Errors are shown even in quiet mode
        print(f"{self.RED}✗{self.RESET} {message}", file=self._err())

    def header(self, title: str) -> None:
        self.print_if_not_quiet(f"\n{self.BOLD}{title}{self.RESET}")
        self.print_if_not_quiet("=" * len(title))

    def subheader(self, title: str) -> None:
        self.print_if_not_quiet(f"\n{self.BOLD}{title}{self.RESET}")
        self.print_if_not_quiet("-" * len(title))

    def colorize_status(self, status: ProbeStatus, text: Optional[str] = None) -> str:
        text = text if text is not None else status.value
        color = STATUS_COLORS.get(status, '')
        if not color or self.no_colors:
            return text
        return f"{color}{text}{self.RESET}"

    def render_results(self, results: List[HostResult], fmt: str = "table") -> str:
        """
        Render result records.

        Args:
            results: Records in input host order
            fmt: "table", "csv" or "json"

        Raises:
            ValueError: For an unknown format
        """
        if fmt == "table":
            return format_results_table(results, self.colorize_status)
        if fmt == "csv":
            return format_results_csv(results)
        if fmt == "json":
            return format_results_json(results)
        raise ValueError(f"Unsupported output format: {fmt}")

    def write_results(self, results: List[HostResult], fmt: str = "table",
                      output_file: Optional[str] = None) -> None:
        """Render results to stdout, or to output_file when given (uncolored)."""
        if output_file:
            plain = TamperSeekOutput(no_colors=True)
            with open(output_file, "w", encoding="utf-8", newline="") as f:
                f.write(plain.render_results(results, fmt))
            self.success(f"Results written to {output_file}")
            return
        # Result rows are the product of the run; emitted even in quiet mode
        print(self.render_results(results, fmt), file=self._out())

    def print_rollup_summary(self, summary: TamperSummary) -> None:
        self.subheader("Tamper Protection Summary")
        self.print_if_not_quiet(f"Hosts tested:     {summary.hosts_tested}")
        self.print_if_not_quiet(f"Protected:        {summary.protected_hosts}")
        self.print_if_not_quiet(f"Not protected:    {summary.unprotected_hosts}")
        for status_name, count in sorted(summary.status_counts.items()):
            self.print_if_verbose(f"  {status_name}: {count}")
        self.print_if_not_quiet(f"Elapsed:          {summary.elapsed_seconds:.1f}s")

        if summary.flagged_hosts:
            self.warning(f"Hosts requiring attention: {', '.join(summary.flagged_hosts)}")
        elif summary.hosts_tested:
            self.success("No unprotected hosts found")


def _cell(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


def format_results_table(results: Iterable[HostResult], colorize=None) -> str:
    """Aligned text table with one row per result."""
    rows = [[_cell(row[col]) for col in RESULT_COLUMNS] for row in (r.as_row() for r in results)]
    widths = [len(col) for col in RESULT_COLUMNS]
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))

    lines = [
        "  ".join(col.ljust(widths[i]) for i, col in enumerate(RESULT_COLUMNS)).rstrip(),
        "  ".join("-" * widths[i] for i in range(len(RESULT_COLUMNS))),
    ]
    status_index = RESULT_COLUMNS.index("Status")
    for row in rows:
        cells = []
        for i, value in enumerate(row):
            padded = value.ljust(widths[i])
            if i == status_index and colorize is not None:
                padded = colorize(ProbeStatus(value), padded)
            cells.append(padded)
        lines.append("  ".join(cells).rstrip())
    return "\n".join(lines)


def format_results_csv(results: Iterable[HostResult]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=RESULT_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for result in results:
        row = result.as_row()
        writer.writerow({k: ("" if v is None else v) for k, v in row.items()})
    return buffer.getvalue()


def format_results_json(results: Iterable[HostResult]) -> str:
    return json.dumps([r.as_row() for r in results], indent=2)


def create_output_manager(config, quiet: bool = False, verbose: bool = False,
                          no_colors: bool = False) -> TamperSeekOutput:
    """Build the output manager, honoring output.colors from config."""
    colors_off = no_colors or (config is not None and not config.colors_enabled())
    return TamperSeekOutput(quiet=quiet, verbose=verbose, no_colors=colors_off)
