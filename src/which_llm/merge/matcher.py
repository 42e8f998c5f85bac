"""
Cross-source matching
=====================

Resolves a benchmarked model (creator slug + model slug) to at most one
capability entry.

Rules:

* Provider ids and creator slugs are compared after :func:`normalize_provider`.
  An absent or blank creator slug makes every provider a candidate.
* Candidate providers are visited in ascending id order, models in ascending
  id order. An exact slug match anywhere among the candidates wins over a
  match found only after :func:`strip_version_suffix`.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Mapping

from which_llm.models.catalog import CapabilityProvider, ModelCapability

_ORG_SUFFIXES = frozenset(
    {"ai", "inc", "labs", "llc", "ltd", "corp", "corporation", "technologies", "research"}
)
_ORG_SUFFIX_PATTERN = re.compile(r"^(?P<stem>.+?)[-_.\s]+(?P<suffix>[a-z]+)$")
_NON_ALNUM_PATTERN = re.compile(r"[^0-9a-z]+")
_VERSION_SUFFIX_PATTERN = re.compile(
    r"^(?P<stem>.+?)[-@](?:latest|\d{8}|\d{4}-\d{2}-\d{2}|\d{3,4})$"
)


@dataclass(frozen=True)
class MatchResult:
    provider_id: str
    model: ModelCapability


def normalize_provider(value: str | None) -> str:
    if value is None:
        return ""
    text = str(value).casefold().strip()
    found = _ORG_SUFFIX_PATTERN.match(text)
    if found is not None and found.group("suffix") in _ORG_SUFFIXES:
        text = found.group("stem")
    return _NON_ALNUM_PATTERN.sub("", text)


def strip_version_suffix(slug: str) -> str:
    text = str(slug or "").casefold()
    while True:
        found = _VERSION_SUFFIX_PATTERN.match(text)
        if found is None:
            return text
        text = found.group("stem")


def _candidate_providers(
    creator_slug: str | None,
    catalog: Mapping[str, CapabilityProvider],
) -> list[tuple[str, CapabilityProvider]]:
    ordered = [(key, catalog[key]) for key in sorted(catalog)]
    wanted = normalize_provider(creator_slug)
    if not wanted:
        return ordered
    return [(key, provider) for key, provider in ordered if normalize_provider(key) == wanted]


def find_match(
    creator_slug: str | None,
    model_slug: str,
    catalog: Mapping[str, CapabilityProvider],
) -> MatchResult | None:
    candidates = [
        (provider_key, model_key, provider.models[model_key])
        for provider_key, provider in _candidate_providers(creator_slug, catalog)
        for model_key in sorted(provider.models)
    ]
    for provider_key, model_key, model in candidates:
        if model_key == model_slug:
            return MatchResult(provider_id=provider_key, model=model)
    stripped = strip_version_suffix(model_slug)
    for provider_key, model_key, model in candidates:
        if strip_version_suffix(model_key) == stripped:
            return MatchResult(provider_id=provider_key, model=model)
    return None
