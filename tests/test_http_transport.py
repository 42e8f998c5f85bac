import pytest
import requests

from which_llm.errors import (
    ApiError,
    AuthenticationError,
    RateLimitError,
    ResponseFormatError,
    ServerError,
)
from which_llm.service.http import get_json, raise_for_status
from which_llm.service.transport import build_session, default_user_agent, resolve_proxy_url


class _Response:
    def __init__(self, status_code, content=b"{}", headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}

    @property
    def text(self):
        return self.content.decode("utf-8")


class _Session:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_resolve_proxy_url_prefers_explicit_value(monkeypatch):
    monkeypatch.setenv("WHICH_LLM_PROXY_URL", "http://proxy.env:3128")
    assert resolve_proxy_url("http://proxy.explicit:8080") == "http://proxy.explicit:8080"


def test_resolve_proxy_url_reads_env(monkeypatch):
    monkeypatch.setenv("WHICH_LLM_PROXY_URL", "http://proxy.env:3128")
    assert resolve_proxy_url(None) == "http://proxy.env:3128"
    assert resolve_proxy_url("   ") is None


def test_build_session_with_proxy_sets_proxies():
    session = build_session(proxy_url="http://proxy.example:8080")
    assert session.proxies["http"] == "http://proxy.example:8080"
    assert session.proxies["https"] == "http://proxy.example:8080"
    assert session.trust_env is False


def test_build_session_applies_user_agent_and_headers():
    session = build_session(user_agent=default_user_agent(), headers={"x-api-key": "k"})
    assert session.headers["User-Agent"].startswith("which-llm/")
    assert session.headers["x-api-key"] == "k"


def test_build_session_retries_server_errors_only():
    retries = build_session().get_adapter("https://models.dev").max_retries
    assert 503 in retries.status_forcelist
    assert 429 not in retries.status_forcelist


@pytest.mark.parametrize("status", [200, 204, 299])
def test_raise_for_status_accepts_success(status):
    raise_for_status(_Response(status), "src")


def test_unauthorized_maps_to_authentication_error():
    with pytest.raises(AuthenticationError, match="Invalid API key for src"):
        raise_for_status(_Response(401), "src")


def test_rate_limit_carries_retry_hint():
    with pytest.raises(RateLimitError) as excinfo:
        raise_for_status(_Response(429, headers={"Retry-After": "30"}), "src")
    assert excinfo.value.retry_after == "30"
    assert str(excinfo.value) == "Rate limited. Try again in 30 seconds."

    with pytest.raises(RateLimitError, match="Try again later"):
        raise_for_status(_Response(429), "src")


@pytest.mark.parametrize("status", [500, 502, 503])
def test_server_errors(status):
    with pytest.raises(ServerError) as excinfo:
        raise_for_status(_Response(status), "src")
    assert excinfo.value.status == status


def test_other_status_carries_body():
    with pytest.raises(ApiError) as excinfo:
        raise_for_status(_Response(404, b"model not found"), "src")
    assert excinfo.value.status == 404
    assert excinfo.value.body == "model not found"
    assert str(excinfo.value) == "API error (HTTP 404): model not found"


def test_get_json_decodes_payload_and_passes_params():
    session = _Session(_Response(200, b'{"data": [1]}'))

    payload = get_json(session, "https://x/api", source="src", params=[("a", "1")], timeout=(1.0, 2.0))

    assert payload == {"data": [1]}
    assert session.calls == [("https://x/api", [("a", "1")], (1.0, 2.0))]


def test_get_json_transport_failure_is_api_error():
    session = _Session(error=requests.ConnectionError("refused"))

    with pytest.raises(ApiError, match="API request failed") as excinfo:
        get_json(session, "https://x/api", source="src", timeout=(1.0, 1.0))
    assert excinfo.value.status == 0


def test_get_json_invalid_body_is_response_format_error():
    session = _Session(_Response(200, b"<html>"))

    with pytest.raises(ResponseFormatError, match="Unexpected response format"):
        get_json(session, "https://x/api", source="src", timeout=(1.0, 1.0))
