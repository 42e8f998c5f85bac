"""
Benchmarks source client
========================

Fetches model benchmarks, pricing and performance plus the media
leaderboards. Every response is cached for the store TTL; ``refresh=True``
skips the cache read and writes the fresh response through. Responses are
decoded before they are cached, so a malformed payload is never stored.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence, TypeVar

from which_llm.config.runtime_defaults import get_runtime_defaults
from which_llm.errors import AuthenticationError, CacheError, ResponseFormatError
from which_llm.models.records import BenchmarkRecord, MediaRecord, parse_envelope
from which_llm.service.http import get_json
from which_llm.service.transport import build_session, default_user_agent
from which_llm.store.cache import Cache, cache_key
from which_llm.util.logging import log_structured_event

SOURCE_NAME = "Artificial Analysis"
API_KEY_HEADER = "x-api-key"
LLM_MODELS = "/data/llms/models"
MEDIA_ENDPOINTS = {
    "text_to_image": "/data/media/text-to-image",
    "image_editing": "/data/media/image-editing",
    "text_to_speech": "/data/media/text-to-speech",
    "text_to_video": "/data/media/text-to-video",
    "image_to_video": "/data/media/image-to-video",
}
_CLIENT_LOG = logging.getLogger("which_llm.service.artificial_analysis")
T = TypeVar("T")


def cached_fetch(
    cache: Cache,
    key: str,
    fetch: Callable[[], Any],
    parse: Callable[[Any], T],
    *,
    refresh: bool,
    log: logging.Logger,
) -> T:
    """Serve ``key`` from the cache unless refreshing; otherwise fetch, parse, store."""
    if not refresh:
        cached = cache.get(key)
        if cached is not None:
            try:
                return parse(cached)
            except ResponseFormatError as exc:
                log_structured_event(log, logging.WARNING, "cache_corrupt_entry", key=key, error=str(exc))
    payload = fetch()
    parsed = parse(payload)
    try:
        cache.set(key, payload)
    except CacheError as exc:
        log_structured_event(log, logging.WARNING, "cache_write_failed", key=key, error=str(exc))
    return parsed


def _parse_llm_models(payload: Any) -> list[BenchmarkRecord]:
    return [BenchmarkRecord.from_payload(item) for item in parse_envelope(payload)]


def _parse_media_models(payload: Any) -> list[MediaRecord]:
    return [MediaRecord.from_payload(item) for item in parse_envelope(payload)]


class ArtificialAnalysisClient:
    def __init__(
        self,
        api_key: str,
        cache: Cache,
        *,
        session=None,
        base_url: str | None = None,
    ):
        if not api_key:
            raise AuthenticationError(
                "No API key configured. Run 'which-llm profile create' or set WHICH_LLM_API_KEY."
            )
        defaults = get_runtime_defaults().service_defaults
        self.cache = cache
        self.base_url = (base_url or defaults.default_artificial_analysis_base_url).rstrip("/")
        self.timeout = (
            float(defaults.default_connect_timeout_seconds),
            float(defaults.default_request_timeout_seconds),
        )
        if session is None:
            session = build_session(user_agent=default_user_agent(defaults.default_user_agent))
        session.headers.update({API_KEY_HEADER: api_key})
        self.session = session

    def _get(self, endpoint: str, params: Sequence[tuple[str, str]]) -> Any:
        return get_json(
            self.session,
            f"{self.base_url}{endpoint}",
            source=SOURCE_NAME,
            params=params,
            timeout=self.timeout,
        )

    def fetch_llm_models(self, *, refresh: bool = False) -> list[BenchmarkRecord]:
        return cached_fetch(
            self.cache,
            cache_key(LLM_MODELS),
            lambda: self._get(LLM_MODELS, ()),
            _parse_llm_models,
            refresh=refresh,
            log=_CLIENT_LOG,
        )

    def fetch_media_models(
        self,
        category: str,
        *,
        refresh: bool = False,
        include_categories: bool = False,
    ) -> list[MediaRecord]:
        endpoint = MEDIA_ENDPOINTS[category]
        params = [("include_categories", "true")] if include_categories else []
        return cached_fetch(
            self.cache,
            cache_key(endpoint, params),
            lambda: self._get(endpoint, params),
            _parse_media_models,
            refresh=refresh,
            log=_CLIENT_LOG,
        )
