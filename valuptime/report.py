"""Console table and CSV export of a scored UptimeReport.

Formatting only; every number comes from the scoring engine.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Sequence

from tabulate import tabulate

from valuptime.engine.models import ScoredValidator, UptimeReport

CSV_HEADER = [
    "ValOper Address",
    "Moniker",
    "Uptime Count",
    "elChoco Points",
    "Upgrade2 Points",
    "Uptime Points",
    "Node points",
]

TABLE_HEADER = [
    "Operator Addr",
    "Moniker",
    "Uptime Count",
    "Upgrade1 points",
    "Upgrade2 points",
    "Uptime points",
    "Node points",
    "Total points",
]


def _points(value: float) -> str:
    return f"{value:.6f}"


def ordered_rows(report: UptimeReport) -> list[ScoredValidator]:
    """Highest total first, ties by identifier."""
    return sorted(report.validators, key=lambda v: (-v.total_points, v.identifier))


def format_row(v: ScoredValidator) -> list[str]:
    """One output row: the seven CSV columns followed by the total."""
    return [
        v.display_address,
        v.moniker,
        str(v.uptime_count),
        _points(v.window1_points),
        _points(v.window2_points),
        _points(v.uptime_points),
        str(v.node_reward_points),
        _points(v.total_points),
    ]


def render_table(report: UptimeReport) -> str:
    rows: Sequence[list[str]] = [format_row(v) for v in ordered_rows(report)]
    return tabulate(rows, headers=TABLE_HEADER, tablefmt="simple", disable_numparse=True)


def write_csv(report: UptimeReport, path: str | Path) -> Path:
    """Write the report to ``path``. Returns the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for v in ordered_rows(report):
            writer.writerow(format_row(v))
    return path


__all__ = ["CSV_HEADER", "TABLE_HEADER", "format_row", "ordered_rows", "render_table", "write_csv"]
