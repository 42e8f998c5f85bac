from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from which_llm.merge.matcher import MatchResult, find_match
from which_llm.models.catalog import CapabilityProvider, ModelCapability
from which_llm.models.records import BenchmarkRecord
from which_llm.models.unified import UnifiedModel
from which_llm.util.logging import log_structured_event

MODALITY_DELIMITER = ","
_MERGE_LOG = logging.getLogger("which_llm.merge.combiner")


def join_modalities(tokens: Sequence[str] | None) -> str | None:
    """Render modality tokens for a single text column; ``None`` stays ``None``."""
    if tokens is None:
        return None
    for token in tokens:
        if MODALITY_DELIMITER in token:
            log_structured_event(
                _MERGE_LOG,
                logging.WARNING,
                "modality_token_contains_delimiter",
                token=token,
                delimiter=MODALITY_DELIMITER,
            )
    return MODALITY_DELIMITER.join(tokens)


def split_modalities(value: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    if value == "":
        return ()
    return tuple(value.split(MODALITY_DELIMITER))


def _capability_fields(model: ModelCapability) -> dict[str, object]:
    return {
        "reasoning": model.reasoning,
        "tool_call": model.tool_call,
        "structured_output": model.structured_output,
        "attachment": model.attachment,
        "temperature": model.temperature,
        "context_window": model.context_window,
        "max_input_tokens": model.max_input_tokens,
        "max_output_tokens": model.max_output_tokens,
        "input_modalities": model.input_modalities,
        "output_modalities": model.output_modalities,
        "knowledge_cutoff": model.knowledge,
        "open_weights": model.open_weights,
        "last_updated": model.last_updated,
    }


def _resolve_provider(
    record: BenchmarkRecord,
    match: MatchResult,
    catalog: Mapping[str, CapabilityProvider],
) -> CapabilityProvider:
    provider = catalog.get(match.provider_id)
    if provider is not None:
        return provider
    log_structured_event(
        _MERGE_LOG,
        logging.WARNING,
        "merge_provider_missing",
        provider_id=match.provider_id,
        model_id=match.model.id,
        benchmark_slug=record.slug,
    )
    return CapabilityProvider(id=match.provider_id, name=match.provider_id)


def merge_record(
    record: BenchmarkRecord,
    catalog: Mapping[str, CapabilityProvider],
    *,
    matcher=find_match,
) -> UnifiedModel:
    match = matcher(record.creator_slug, record.slug, catalog)
    base = {name: getattr(record, name) for name in BenchmarkRecord.__dataclass_fields__}
    if match is None:
        return UnifiedModel(**base, matched=False)
    provider = _resolve_provider(record, match, catalog)
    if _MERGE_LOG.isEnabledFor(logging.DEBUG):
        log_structured_event(
            _MERGE_LOG,
            logging.DEBUG,
            "merge_matched",
            benchmark_slug=record.slug,
            provider_id=provider.id,
            provider_name=provider.name,
            model_id=match.model.id,
        )
    return UnifiedModel(**base, **_capability_fields(match.model), matched=True)


def merge_models(
    records: Iterable[BenchmarkRecord],
    catalog: Mapping[str, CapabilityProvider],
    *,
    matcher=find_match,
) -> list[UnifiedModel]:
    """Merge every benchmark record with its capability entry, one output per input."""
    return [merge_record(record, catalog, matcher=matcher) for record in records]
