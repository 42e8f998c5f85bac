"""GET-and-decode with the status dispatch shared by both data sources."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import requests

from which_llm.errors import (
    ApiError,
    AuthenticationError,
    RateLimitError,
    ResponseFormatError,
    ServerError,
)
from which_llm.util.json import json_loads
from which_llm.util.logging import log_structured_event
from which_llm.util.timing import timed

_HTTP_LOG = logging.getLogger("which_llm.service.http")
_MAX_ERROR_BODY_CHARS = 500
_RETRY_AFTER_HEADERS = ("Retry-After", "X-RateLimit-Reset", "RateLimit-Reset")


def _body_excerpt(response) -> str:
    try:
        text = response.text
    except (UnicodeDecodeError, AttributeError):
        return ""
    return str(text or "")[:_MAX_ERROR_BODY_CHARS]


def _retry_after(response) -> str | None:
    headers = getattr(response, "headers", None) or {}
    for name in _RETRY_AFTER_HEADERS:
        value = headers.get(name)
        if value:
            return str(value).strip()
    return None


def _http_unauthorized(response, source):
    raise AuthenticationError(
        f"Invalid API key for {source}. Check your key or run 'which-llm profile create'."
    )


def _http_rate_limited(response, source):
    raise RateLimitError(_retry_after(response))


def _http_server_error(response, source):
    raise ServerError(response.status_code, f"{source} server error (HTTP {response.status_code}). Try again later.")


def _http_error_default(response, source):
    raise ApiError(response.status_code, _body_excerpt(response))


def raise_for_status(response, source: str) -> None:
    status = int(response.status_code)
    if 200 <= status < 300:
        return
    if status >= 500:
        _http_server_error(response, source)
    handler = {
        401: _http_unauthorized,
        429: _http_rate_limited,
    }.get(status, _http_error_default)
    handler(response, source)


def get_json(
    session,
    url: str,
    *,
    source: str,
    params: Sequence[tuple[str, str]] = (),
    timeout: tuple[float, float],
) -> Any:
    with timed() as timing:
        try:
            response = session.get(url, params=list(params) or None, timeout=timeout)
        except requests.RequestException as exc:
            raise ApiError(0, f"{source}: {exc}") from exc
    log_structured_event(
        _HTTP_LOG,
        logging.INFO,
        "source_fetch",
        source=source,
        url=url,
        status=int(response.status_code),
        seconds=round(timing["seconds"], 4),
    )
    raise_for_status(response, source)
    try:
        return json_loads(response.content)
    except ValueError as exc:
        raise ResponseFormatError(f"{source} returned invalid JSON: {exc}") from exc
