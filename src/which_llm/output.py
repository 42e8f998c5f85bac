"""Rendering of tabular command output in the five supported formats."""

from __future__ import annotations

import csv
from enum import Enum
import io
from typing import Any, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from which_llm.util.json import json_dumps

NO_RESULTS = "No results."
_RENDER_WIDTH = 1000


class OutputFormat(str, Enum):
    TABLE = "table"
    MARKDOWN = "markdown"
    JSON = "json"
    CSV = "csv"
    PLAIN = "plain"


def render_ascii_table(columns: Sequence[str], rows: Sequence[Sequence[str]], *, title: str | None = None) -> str:
    table = Table(box=box.ASCII, show_header=True, header_style=None, title=title, expand=False)
    for column in columns:
        table.add_column(str(column), no_wrap=True, overflow="fold")
    for row in rows:
        table.add_row(*[str(cell) for cell in row])
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=_RENDER_WIDTH,
        color_system=None,
        no_color=True,
        highlight=False,
        emoji=False,
        markup=False,
    )
    console.print(table)
    return "\n".join(line.rstrip() for line in buffer.getvalue().splitlines())


def _escape_markdown(cell: str) -> str:
    return str(cell).replace("|", "\\|")


def render_markdown(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    lines = [
        "| " + " | ".join(_escape_markdown(column) for column in columns) + " |",
        "| " + " | ".join("---" for _ in columns) + " |",
    ]
    for row in rows:
        lines.append("| " + " | ".join(_escape_markdown(cell) for cell in row) + " |")
    return "\n".join(lines)


def render_csv(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def render_plain(rows: Sequence[Sequence[str]]) -> str:
    return "\n".join("\t".join(str(cell) for cell in row) for row in rows)


def render_json(payload: Any) -> str:
    return json_dumps(payload, pretty=True)


def render_rows(
    columns: Sequence[str],
    rows: Sequence[Sequence[str]],
    output_format: OutputFormat,
    *,
    json_payload: Any = None,
    title: str | None = None,
) -> str:
    """Render string cells; ``json_payload`` replaces the default list of row objects."""
    output_format = OutputFormat(output_format)
    if output_format is OutputFormat.JSON:
        if json_payload is None:
            json_payload = [dict(zip(columns, row)) for row in rows]
        return render_json(json_payload)
    if output_format is OutputFormat.CSV:
        return render_csv(columns, rows)
    if output_format is OutputFormat.PLAIN:
        return render_plain(rows)
    if output_format is OutputFormat.MARKDOWN:
        return render_markdown(columns, rows)
    return render_ascii_table(columns, rows, title=title)


def fmt_optional(value: Any, spec: str = ".1f", missing: str = "-") -> str:
    if value is None:
        return missing
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (int, float)):
        return format(value, spec)
    return str(value)


def fmt_price(value: float | None) -> str:
    return "-" if value is None else f"${value:.2f}"
