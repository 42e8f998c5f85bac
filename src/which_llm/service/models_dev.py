from __future__ import annotations

import logging

from which_llm.config.runtime_defaults import get_runtime_defaults
from which_llm.models.catalog import CapabilityProvider, parse_catalog
from which_llm.service.artificial_analysis import cached_fetch
from which_llm.service.http import get_json
from which_llm.service.transport import build_session, default_user_agent
from which_llm.store.cache import Cache, cache_key

SOURCE_NAME = "models.dev"
CATALOG_ENDPOINT = "models.dev/api.json"
_CLIENT_LOG = logging.getLogger("which_llm.service.models_dev")


class ModelsDevClient:
    """Capability catalog client; the catalog is public and fetched whole."""

    def __init__(self, cache: Cache, *, session=None, url: str | None = None):
        defaults = get_runtime_defaults().service_defaults
        self.cache = cache
        self.url = url or defaults.default_models_dev_url
        self.timeout = (
            float(defaults.default_connect_timeout_seconds),
            float(defaults.default_request_timeout_seconds),
        )
        self.session = session or build_session(user_agent=default_user_agent(defaults.default_user_agent))

    def fetch_catalog(self, *, refresh: bool = False) -> dict[str, CapabilityProvider]:
        return cached_fetch(
            self.cache,
            cache_key(CATALOG_ENDPOINT),
            lambda: get_json(self.session, self.url, source=SOURCE_NAME, timeout=self.timeout),
            parse_catalog,
            refresh=refresh,
            log=_CLIENT_LOG,
        )
