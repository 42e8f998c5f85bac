from __future__ import annotations

from dataclasses import dataclass

# Fields copied from the matched capability entry; all stay ``None`` when unmatched.
CAPABILITY_FIELDS = (
    "reasoning",
    "tool_call",
    "structured_output",
    "attachment",
    "temperature",
    "context_window",
    "max_input_tokens",
    "max_output_tokens",
    "input_modalities",
    "output_modalities",
    "knowledge_cutoff",
    "open_weights",
    "last_updated",
)


@dataclass(frozen=True)
class UnifiedModel:
    """One benchmarked model together with its capability entry, if one matched."""

    id: str
    name: str
    slug: str
    creator: str
    creator_slug: str | None = None
    release_date: str | None = None
    intelligence: float | None = None
    coding: float | None = None
    math: float | None = None
    mmlu_pro: float | None = None
    gpqa: float | None = None
    hle: float | None = None
    livecodebench: float | None = None
    scicode: float | None = None
    math_500: float | None = None
    aime: float | None = None
    input_price: float | None = None
    output_price: float | None = None
    price: float | None = None
    tps: float | None = None
    latency: float | None = None
    reasoning: bool | None = None
    tool_call: bool | None = None
    structured_output: bool | None = None
    attachment: bool | None = None
    temperature: bool | None = None
    context_window: int | None = None
    max_input_tokens: int | None = None
    max_output_tokens: int | None = None
    input_modalities: tuple[str, ...] | None = None
    output_modalities: tuple[str, ...] | None = None
    knowledge_cutoff: str | None = None
    open_weights: bool | None = None
    last_updated: str | None = None
    matched: bool = False
