"""Substring search over unified models by name, slug or creator."""

from __future__ import annotations

from typing import Iterable, Sequence

from which_llm.models.unified import UnifiedModel


def filter_models_by_name(models: Iterable[UnifiedModel], search: str) -> list[UnifiedModel]:
    """Slug matches are case-sensitive; display-name matches are not."""
    lowered = search.lower()
    return [model for model in models if search in model.slug or lowered in model.name.lower()]


def filter_models_by_creator(models: Iterable[UnifiedModel], creator: str) -> list[UnifiedModel]:
    lowered = creator.lower()
    return [
        model
        for model in models
        if creator in (model.creator_slug or "") or lowered in model.creator.lower()
    ]


def find_models_by_names(models: Sequence[UnifiedModel], searches: Iterable[str]) -> list[UnifiedModel]:
    result: list[UnifiedModel] = []
    seen: set[str] = set()
    for search in searches:
        for model in filter_models_by_name(models, search):
            if model.id not in seen:
                seen.add(model.id)
                result.append(model)
    return result
