"""
Capability catalog
==================

The capabilities source returns one object keyed by provider id, each
provider owning its models keyed by model id. Parsing keeps that two-level
shape; :func:`catalog_rows` flattens it for the raw ``models_dev`` table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from which_llm.errors import ResponseFormatError
from which_llm.models._fields import mapping, opt_bool, opt_float, opt_int, opt_str, str_tuple


@dataclass(frozen=True)
class ModelCapability:
    id: str
    name: str
    family: str | None = None
    attachment: bool | None = None
    reasoning: bool | None = None
    tool_call: bool | None = None
    structured_output: bool | None = None
    temperature: bool | None = None
    knowledge: str | None = None
    release_date: str | None = None
    last_updated: str | None = None
    open_weights: bool | None = None
    status: str | None = None
    context_window: int | None = None
    max_input_tokens: int | None = None
    max_output_tokens: int | None = None
    cost_input: float | None = None
    cost_output: float | None = None
    cost_cache_read: float | None = None
    cost_cache_write: float | None = None
    input_modalities: tuple[str, ...] | None = None
    output_modalities: tuple[str, ...] | None = None

    @classmethod
    def from_payload(cls, model_id: str, payload: Any) -> "ModelCapability":
        if not isinstance(payload, Mapping):
            raise ResponseFormatError(f"capability entry '{model_id}' is not an object")
        limit = mapping(payload.get("limit"))
        cost = mapping(payload.get("cost"))
        modalities = payload.get("modalities")
        has_modalities = isinstance(modalities, Mapping)
        modalities = mapping(modalities)
        return cls(
            id=opt_str(payload.get("id")) or model_id,
            name=opt_str(payload.get("name")) or model_id,
            family=opt_str(payload.get("family")),
            attachment=opt_bool(payload.get("attachment")),
            reasoning=opt_bool(payload.get("reasoning")),
            tool_call=opt_bool(payload.get("tool_call")),
            structured_output=opt_bool(payload.get("structured_output")),
            temperature=opt_bool(payload.get("temperature")),
            knowledge=opt_str(payload.get("knowledge")),
            release_date=opt_str(payload.get("release_date")),
            last_updated=opt_str(payload.get("last_updated")),
            open_weights=opt_bool(payload.get("open_weights")),
            status=opt_str(payload.get("status")),
            context_window=opt_int(limit.get("context")),
            max_input_tokens=opt_int(limit.get("input")),
            max_output_tokens=opt_int(limit.get("output")),
            cost_input=opt_float(cost.get("input")),
            cost_output=opt_float(cost.get("output")),
            cost_cache_read=opt_float(cost.get("cache_read")),
            cost_cache_write=opt_float(cost.get("cache_write")),
            input_modalities=str_tuple(modalities.get("input")) if has_modalities else None,
            output_modalities=str_tuple(modalities.get("output")) if has_modalities else None,
        )


@dataclass(frozen=True)
class CapabilityProvider:
    id: str
    name: str
    env: tuple[str, ...] = ()
    npm: str | None = None
    doc: str | None = None
    api: str | None = None
    models: Mapping[str, ModelCapability] = field(default_factory=dict)


def parse_catalog(payload: Any) -> dict[str, CapabilityProvider]:
    if not isinstance(payload, Mapping):
        raise ResponseFormatError("capability catalog is not an object")
    catalog: dict[str, CapabilityProvider] = {}
    for provider_key, raw in payload.items():
        if not isinstance(raw, Mapping):
            raise ResponseFormatError(f"provider entry '{provider_key}' is not an object")
        provider_id = opt_str(raw.get("id")) or str(provider_key)
        models = {
            str(model_key): ModelCapability.from_payload(str(model_key), model_raw)
            for model_key, model_raw in mapping(raw.get("models")).items()
        }
        catalog[str(provider_key)] = CapabilityProvider(
            id=provider_id,
            name=opt_str(raw.get("name")) or provider_id,
            env=str_tuple(raw.get("env")),
            npm=opt_str(raw.get("npm")),
            doc=opt_str(raw.get("doc")),
            api=opt_str(raw.get("api")),
            models=models,
        )
    return catalog


@dataclass(frozen=True)
class CatalogRow:
    """One provider/model pair from the catalog, flattened for the raw table."""

    provider_id: str
    provider_name: str
    provider_env: str | None
    provider_npm: str | None
    provider_api: str | None
    provider_doc: str | None
    model_id: str
    model_name: str
    family: str | None
    attachment: bool | None
    reasoning: bool | None
    tool_call: bool | None
    structured_output: bool | None
    temperature: bool | None
    knowledge: str | None
    release_date: str | None
    last_updated: str | None
    open_weights: bool | None
    status: str | None
    context_window: int | None
    max_input_tokens: int | None
    max_output_tokens: int | None
    cost_input: float | None
    cost_output: float | None
    cost_cache_read: float | None
    cost_cache_write: float | None
    input_modalities: tuple[str, ...] | None
    output_modalities: tuple[str, ...] | None


def catalog_rows(catalog: Mapping[str, CapabilityProvider]) -> list[CatalogRow]:
    """Flatten the catalog in provider-id then model-id order."""
    rows = []
    for provider_key in sorted(catalog):
        provider = catalog[provider_key]
        for model_key in sorted(provider.models):
            model = provider.models[model_key]
            rows.append(
                CatalogRow(
                    provider_id=provider.id,
                    provider_name=provider.name,
                    provider_env=",".join(provider.env) or None,
                    provider_npm=provider.npm,
                    provider_api=provider.api,
                    provider_doc=provider.doc,
                    model_id=model.id,
                    model_name=model.name,
                    family=model.family,
                    attachment=model.attachment,
                    reasoning=model.reasoning,
                    tool_call=model.tool_call,
                    structured_output=model.structured_output,
                    temperature=model.temperature,
                    knowledge=model.knowledge,
                    release_date=model.release_date,
                    last_updated=model.last_updated,
                    open_weights=model.open_weights,
                    status=model.status,
                    context_window=model.context_window,
                    max_input_tokens=model.max_input_tokens,
                    max_output_tokens=model.max_output_tokens,
                    cost_input=model.cost_input,
                    cost_output=model.cost_output,
                    cost_cache_read=model.cost_cache_read,
                    cost_cache_write=model.cost_cache_write,
                    input_modalities=model.input_modalities,
                    output_modalities=model.output_modalities,
                )
            )
    return rows
