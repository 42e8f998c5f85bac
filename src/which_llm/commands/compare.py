"""
Side-by-side comparison
=======================

One row per metric, one column per matched model. Numeric metrics mark the
best value(s) with ``*``; values within ``WINNER_TOLERANCE`` of the best all
win.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from which_llm.commands.selection import find_models_by_names
from which_llm.errors import ConfigError, NotFoundError
from which_llm.models.unified import UnifiedModel
from which_llm.output import OutputFormat, fmt_optional, render_csv, render_json, render_rows

WINNER_TOLERANCE = 0.001
WINNER_MARK = " *"
LEGEND = "* = best in category"


class Direction(Enum):
    HIGHER = "higher"
    LOWER = "lower"
    NONE = "none"


@dataclass(frozen=True)
class FieldDef:
    name: str
    direction: Direction
    extract: Callable[[UnifiedModel], object]
    display: Callable[[object], str] = lambda value: fmt_optional(value)


def _price(value) -> str:
    return f"${value:.2f}"


def _attr(name: str) -> Callable[[UnifiedModel], object]:
    return lambda model: getattr(model, name)


BASE_FIELDS = (
    FieldDef("Creator", Direction.NONE, _attr("creator")),
    FieldDef("Intelligence", Direction.HIGHER, _attr("intelligence")),
    FieldDef("Coding", Direction.HIGHER, _attr("coding")),
    FieldDef("Input $/M", Direction.LOWER, _attr("input_price"), _price),
    FieldDef("Output $/M", Direction.LOWER, _attr("output_price"), _price),
    FieldDef("Blended $/M", Direction.LOWER, _attr("price"), _price),
    FieldDef("TPS", Direction.HIGHER, _attr("tps")),
    FieldDef("Latency (s)", Direction.LOWER, _attr("latency")),
    FieldDef("Context", Direction.HIGHER, _attr("context_window"), lambda value: f"{value:,}"),
    FieldDef("Tool Call", Direction.NONE, _attr("tool_call")),
    FieldDef("Reasoning", Direction.NONE, _attr("reasoning")),
)
VERBOSE_FIELDS = (
    FieldDef("Math", Direction.HIGHER, _attr("math")),
    FieldDef("MMLU-Pro", Direction.HIGHER, _attr("mmlu_pro")),
    FieldDef("GPQA", Direction.HIGHER, _attr("gpqa")),
    FieldDef("HLE", Direction.HIGHER, _attr("hle")),
    FieldDef("LiveCodeBench", Direction.HIGHER, _attr("livecodebench")),
    FieldDef("SciCode", Direction.HIGHER, _attr("scicode")),
    FieldDef("Math 500", Direction.HIGHER, _attr("math_500")),
    FieldDef("AIME", Direction.HIGHER, _attr("aime")),
)


@dataclass(frozen=True)
class CompareField:
    name: str
    values: list[str]
    winners: list[bool]


def field_defs(verbose: bool = False) -> tuple[FieldDef, ...]:
    return BASE_FIELDS + VERBOSE_FIELDS if verbose else BASE_FIELDS


def find_winners(values: Sequence[object], direction: Direction) -> list[bool]:
    numbers = [
        value if isinstance(value, (int, float)) and not isinstance(value, bool) else None
        for value in values
    ]
    present = [number for number in numbers if number is not None]
    if direction is Direction.NONE or not present:
        return [False] * len(values)
    best = max(present) if direction is Direction.HIGHER else min(present)
    return [number is not None and abs(number - best) < WINNER_TOLERANCE for number in numbers]


def build_fields(models: Sequence[UnifiedModel], verbose: bool = False) -> list[CompareField]:
    fields = []
    for definition in field_defs(verbose):
        raw = [definition.extract(model) for model in models]
        winners = find_winners(raw, definition.direction)
        values = [
            ("-" if value is None else definition.display(value)) + (WINNER_MARK if won else "")
            for value, won in zip(raw, winners)
        ]
        fields.append(CompareField(name=definition.name, values=values, winners=winners))
    return fields


def select_models(models: Sequence[UnifiedModel], searches: Sequence[str]) -> list[UnifiedModel]:
    matched = find_models_by_names(models, searches)
    if not matched:
        raise NotFoundError(f"No models found matching: {', '.join(searches)}")
    if len(matched) < 2:
        raise ConfigError("Need at least 2 models to compare. Try broader search terms.")
    return matched


def run(
    models: Sequence[UnifiedModel],
    searches: Sequence[str],
    output_format: OutputFormat,
    *,
    verbose: bool = False,
) -> str:
    matched = select_models(models, searches)
    names = [model.name for model in matched]
    fields = build_fields(matched, verbose)
    output_format = OutputFormat(output_format)
    if output_format is OutputFormat.JSON:
        return render_json(
            {
                "models": names,
                "fields": [
                    {"name": field.name, "values": field.values, "winners": field.winners}
                    for field in fields
                ],
            }
        )
    columns = ["Field", *names]
    rows = [[field.name, *field.values] for field in fields]
    if output_format is OutputFormat.CSV:
        return render_csv(columns, rows)
    if output_format is OutputFormat.PLAIN:
        body = "\n".join("\t".join(row) for row in [columns, *rows])
    else:
        body = render_rows(columns, rows, output_format)
    return f"{body}\n\n{LEGEND}"
