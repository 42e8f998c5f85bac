from __future__ import annotations

from dataclasses import asdict
from typing import Sequence

from which_llm.models.records import MediaRecord
from which_llm.output import OutputFormat, fmt_optional, render_rows

COLUMNS = ("Rank", "Name", "Creator", "ELO", "Release")
CATEGORY_COLUMNS = ("Model", "Category", "ELO", "CI95", "Appearances")


def _rank_key(record: MediaRecord):
    return (record.rank is None, record.rank or 0, -(record.elo or 0.0))


def _category_rows(records: Sequence[MediaRecord]) -> list[list[str]]:
    return [
        [
            record.name,
            category.label,
            fmt_optional(category.elo, ".0f"),
            category.ci95 or "-",
            fmt_optional(category.appearances, "d"),
        ]
        for record in records
        for category in record.categories
    ]


def run(records: Sequence[MediaRecord], output_format: OutputFormat, *, show_categories: bool = False) -> str:
    ordered = sorted(records, key=_rank_key)
    if not ordered:
        return "No models found."
    rows = [
        [
            fmt_optional(record.rank, "d"),
            record.name,
            record.creator,
            fmt_optional(record.elo, ".0f"),
            record.release_date or "-",
        ]
        for record in ordered
    ]
    output_format = OutputFormat(output_format)
    if output_format is OutputFormat.JSON:
        payload = [asdict(record) for record in ordered]
        if not show_categories:
            for item in payload:
                item.pop("categories")
        return render_rows(COLUMNS, rows, output_format, json_payload=payload)
    rendered = render_rows(COLUMNS, rows, output_format)
    category_rows = _category_rows(ordered) if show_categories else []
    if category_rows:
        rendered += "\n\n" + render_rows(CATEGORY_COLUMNS, category_rows, output_format)
    return rendered
