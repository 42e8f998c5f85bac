from __future__ import annotations

import os

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from which_llm._version import VERSION

PROXY_URL_ENV_VAR = "WHICH_LLM_PROXY_URL"
DEFAULT_HTTP_RETRY_TOTAL = 3
DEFAULT_HTTP_RETRY_BACKOFF_SECONDS = 0.4
# 429 is surfaced to the caller as a rate-limit error rather than retried.
DEFAULT_HTTP_RETRY_STATUS_CODES = (500, 502, 503, 504)
DEFAULT_HTTP_RETRY_METHODS = ("GET",)


def resolve_proxy_url(proxy_url: str | None = None) -> str | None:
    if proxy_url is not None:
        value = str(proxy_url).strip()
        return value or None
    env_value = os.getenv(PROXY_URL_ENV_VAR, "").strip()
    return env_value or None


def default_user_agent(product: str = "which-llm") -> str:
    return f"{product}/{VERSION}"


def build_session(
    *,
    proxy_url: str | None = None,
    user_agent: str | None = None,
    headers: dict[str, str] | None = None,
) -> requests.Session:
    proxy_url = resolve_proxy_url(proxy_url)
    session = requests.Session()
    if proxy_url:
        session.proxies = {"http": proxy_url, "https": proxy_url}
        session.trust_env = False

    retries = Retry(
        total=DEFAULT_HTTP_RETRY_TOTAL,
        backoff_factor=DEFAULT_HTTP_RETRY_BACKOFF_SECONDS,
        status_forcelist=DEFAULT_HTTP_RETRY_STATUS_CODES,
        allowed_methods=DEFAULT_HTTP_RETRY_METHODS,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries, pool_connections=4, pool_maxsize=4)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    if user_agent:
        session.headers.update({"User-Agent": user_agent})
    if headers:
        session.headers.update(headers)
    return session
