from __future__ import annotations

import pytest

from which_llm.config.runtime_defaults import (
    clear_runtime_defaults_cache,
    reset_runtime_defaults_load_telemetry,
)

_ISOLATED_ENV_VARS = (
    "WHICH_LLM_API_KEY",
    "WHICH_LLM_RUNTIME_DEFAULTS_PATH",
    "WHICH_LLM_PROXY_URL",
)


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path, monkeypatch):
    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WHICH_LLM_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("WHICH_LLM_CONFIG_DIR", str(tmp_path / "config"))
    clear_runtime_defaults_cache()
    reset_runtime_defaults_load_telemetry()
    yield
    clear_runtime_defaults_cache()
    reset_runtime_defaults_load_telemetry()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def llm_payload():
    return {
        "status": 200,
        "data": [
            {
                "id": "aa-o3-mini",
                "name": "o3-mini",
                "slug": "o3-mini",
                "release_date": "2025-01-31",
                "model_creator": {"id": "c-openai", "name": "OpenAI", "slug": "openai"},
                "evaluations": {
                    "artificial_analysis_intelligence_index": 62.9,
                    "artificial_analysis_coding_index": 55.8,
                    "mmlu_pro": 0.79,
                },
                "pricing": {
                    "price_1m_blended_3_to_1": 1.93,
                    "price_1m_input_tokens": 1.1,
                    "price_1m_output_tokens": 4.4,
                },
                "median_output_tokens_per_second": 150.2,
                "median_time_to_first_token_seconds": 12.5,
            },
            {
                "id": "aa-unknown",
                "name": "Unknown Model",
                "slug": "unknown-model",
                "model_creator": {"id": "c-unknown", "name": "Unknown", "slug": "unknown"},
                "evaluations": {},
                "pricing": {},
            },
        ],
    }


@pytest.fixture
def catalog_payload():
    return {
        "openai": {
            "id": "openai",
            "name": "OpenAI",
            "env": ["OPENAI_API_KEY"],
            "npm": "@ai-sdk/openai",
            "doc": "https://platform.openai.com/docs/models",
            "models": {
                "o3-mini": {
                    "id": "o3-mini",
                    "name": "o3-mini",
                    "attachment": False,
                    "reasoning": True,
                    "tool_call": True,
                    "structured_output": True,
                    "temperature": False,
                    "knowledge": "2024-10",
                    "release_date": "2025-01-31",
                    "last_updated": "2025-01-31",
                    "open_weights": False,
                    "modalities": {"input": ["text"], "output": ["text"]},
                    "cost": {"input": 1.1, "output": 4.4, "cache_read": 0.55},
                    "limit": {"context": 200000, "output": 100000},
                },
            },
        },
    }
