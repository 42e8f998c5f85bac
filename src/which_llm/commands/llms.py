from __future__ import annotations

from dataclasses import asdict
from typing import Sequence

from which_llm.commands.selection import filter_models_by_creator, filter_models_by_name
from which_llm.errors import ConfigError
from which_llm.models.unified import UnifiedModel
from which_llm.output import OutputFormat, fmt_optional, fmt_price, render_rows

# sort key -> (attribute, higher is better)
SORT_KEYS = {
    "intelligence": ("intelligence", True),
    "coding": ("coding", True),
    "math": ("math", True),
    "price": ("price", False),
    "input_price": ("input_price", False),
    "output_price": ("output_price", False),
    "tps": ("tps", True),
    "latency": ("latency", False),
    "context": ("context_window", True),
}
DEFAULT_SORT = "intelligence"
COLUMNS = (
    "Name",
    "Creator",
    "Intelligence",
    "Coding",
    "Input $/M",
    "Output $/M",
    "TPS",
    "Latency (s)",
    "Context",
    "Tools",
)


def sort_models(models: Sequence[UnifiedModel], key: str | None) -> list[UnifiedModel]:
    key = (key or DEFAULT_SORT).lower()
    if key == "name":
        return sorted(models, key=lambda model: model.name.lower())
    if key not in SORT_KEYS:
        choices = ", ".join(["name", *SORT_KEYS])
        raise ConfigError(f"Invalid sort key '{key}'. Use one of: {choices}.")
    attribute, descending = SORT_KEYS[key]
    present = [model for model in models if getattr(model, attribute) is not None]
    missing = [model for model in models if getattr(model, attribute) is None]
    present.sort(key=lambda model: getattr(model, attribute), reverse=descending)
    return present + missing


def _row(model: UnifiedModel) -> list[str]:
    return [
        model.name,
        model.creator,
        fmt_optional(model.intelligence),
        fmt_optional(model.coding),
        fmt_price(model.input_price),
        fmt_price(model.output_price),
        fmt_optional(model.tps),
        fmt_optional(model.latency, ".2f"),
        fmt_optional(model.context_window, ","),
        fmt_optional(model.tool_call),
    ]


def _json_record(model: UnifiedModel) -> dict:
    record = asdict(model)
    for name in ("input_modalities", "output_modalities"):
        if record[name] is not None:
            record[name] = list(record[name])
    return record


def run(
    models: Sequence[UnifiedModel],
    output_format: OutputFormat,
    *,
    model: str | None = None,
    creator: str | None = None,
    sort: str | None = None,
) -> str:
    selected = list(models)
    if model:
        selected = filter_models_by_name(selected, model)
    if creator:
        selected = filter_models_by_creator(selected, creator)
    selected = sort_models(selected, sort)
    if not selected:
        return "No models found."
    return render_rows(
        COLUMNS,
        [_row(item) for item in selected],
        output_format,
        json_payload=[_json_record(item) for item in selected],
    )
