"""
Benchmark source records
========================

One flat, immutable record per model as returned by the benchmarks API.
Nested ``evaluations``/``pricing`` objects are flattened on parse, so the
dataclass field order is also the column order of the raw tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from which_llm.errors import ResponseFormatError
from which_llm.models._fields import mapping, opt_float, opt_int, opt_str

# column name -> key inside the ``evaluations`` object
EVALUATION_FIELDS = {
    "intelligence": "artificial_analysis_intelligence_index",
    "coding": "artificial_analysis_coding_index",
    "math": "artificial_analysis_math_index",
    "mmlu_pro": "mmlu_pro",
    "gpqa": "gpqa",
    "hle": "hle",
    "livecodebench": "livecodebench",
    "scicode": "scicode",
    "math_500": "math_500",
    "aime": "aime",
}
PRICING_FIELDS = {
    "input_price": "price_1m_input_tokens",
    "output_price": "price_1m_output_tokens",
    "price": "price_1m_blended_3_to_1",
}


def _required_str(payload: Mapping[str, Any], key: str, kind: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise ResponseFormatError(f"{kind} is missing required field '{key}'")
    return value


@dataclass(frozen=True)
class BenchmarkRecord:
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

    @classmethod
    def from_payload(cls, payload: Any) -> "BenchmarkRecord":
        if not isinstance(payload, Mapping):
            raise ResponseFormatError("model entry is not an object")
        creator = mapping(payload.get("model_creator"))
        evaluations = mapping(payload.get("evaluations"))
        pricing = mapping(payload.get("pricing"))
        return cls(
            id=_required_str(payload, "id", "model"),
            name=_required_str(payload, "name", "model"),
            slug=_required_str(payload, "slug", "model"),
            creator=_required_str(creator, "name", "model_creator"),
            creator_slug=opt_str(creator.get("slug")),
            release_date=opt_str(payload.get("release_date")),
            tps=opt_float(payload.get("median_output_tokens_per_second")),
            latency=opt_float(payload.get("median_time_to_first_token_seconds")),
            **{field: opt_float(evaluations.get(key)) for field, key in EVALUATION_FIELDS.items()},
            **{field: opt_float(pricing.get(key)) for field, key in PRICING_FIELDS.items()},
        )


@dataclass(frozen=True)
class CategoryScore:
    style_category: str | None = None
    subject_matter_category: str | None = None
    format_category: str | None = None
    elo: float | None = None
    ci95: str | None = None
    appearances: int | None = None

    @property
    def label(self) -> str:
        parts = [p for p in (self.style_category, self.subject_matter_category, self.format_category) if p]
        return " / ".join(parts) if parts else "-"


@dataclass(frozen=True)
class MediaRecord:
    id: str
    name: str
    slug: str
    creator: str
    elo: float | None = None
    rank: int | None = None
    ci95: str | None = None
    appearances: int | None = None
    release_date: str | None = None
    categories: tuple[CategoryScore, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "MediaRecord":
        if not isinstance(payload, Mapping):
            raise ResponseFormatError("media model entry is not an object")
        creator = mapping(payload.get("model_creator"))
        raw_categories = payload.get("categories")
        categories = ()
        if isinstance(raw_categories, list):
            categories = tuple(
                CategoryScore(
                    style_category=opt_str(item.get("style_category")),
                    subject_matter_category=opt_str(item.get("subject_matter_category")),
                    format_category=opt_str(item.get("format_category")),
                    elo=opt_float(item.get("elo")),
                    ci95=opt_str(item.get("ci95")),
                    appearances=opt_int(item.get("appearances")),
                )
                for item in raw_categories
                if isinstance(item, Mapping)
            )
        return cls(
            id=_required_str(payload, "id", "media model"),
            name=_required_str(payload, "name", "media model"),
            slug=_required_str(payload, "slug", "media model"),
            creator=_required_str(creator, "name", "model_creator"),
            elo=opt_float(payload.get("elo")),
            rank=opt_int(payload.get("rank")),
            ci95=opt_str(payload.get("ci95")),
            appearances=opt_int(payload.get("appearances")),
            release_date=opt_str(payload.get("release_date")),
            categories=categories,
        )


def parse_envelope(payload: Any) -> list:
    """Unwrap the ``{"status": ..., "data": [...]}`` response envelope."""
    if not isinstance(payload, Mapping) or not isinstance(payload.get("data"), list):
        raise ResponseFormatError("expected an object with a 'data' list")
    return payload["data"]
