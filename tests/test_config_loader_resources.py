from pathlib import Path

from which_llm.config import loader as loader_mod
from which_llm.config.loader import (
    load_runtime_defaults,
    load_toml,
    load_toml_detailed,
    resolve_runtime_defaults_path,
)


def test_load_runtime_defaults_from_packaged_resources():
    loaded = load_runtime_defaults()

    assert isinstance(loaded, dict)
    assert loaded["meta"]["schema_version"] == 1
    assert loaded["storage_defaults"]["default_parquet_compression"] == "zstd"


def test_load_runtime_defaults_honors_override_path(tmp_path, monkeypatch):
    override = tmp_path / "runtime-defaults.toml"
    override.write_text("[query_defaults]\ndefault_float_display_precision = 4\n", encoding="utf-8")
    monkeypatch.setenv("WHICH_LLM_RUNTIME_DEFAULTS_PATH", str(override))

    loaded = load_runtime_defaults()

    assert loaded["query_defaults"]["default_float_display_precision"] == 4


def test_load_runtime_defaults_rejects_oversized_override_path(tmp_path, monkeypatch):
    override = tmp_path / "runtime-defaults-large.toml"
    override.write_text("[meta]\ncomment = \"" + ("x" * 1_100_000) + "\"\n", encoding="utf-8")
    monkeypatch.setenv("WHICH_LLM_RUNTIME_DEFAULTS_PATH", str(override))

    assert load_runtime_defaults() == {}
    assert load_toml_detailed(override)["error_kind"] == "oversized"


def test_resolve_runtime_defaults_path_returns_existing_packaged_path():
    path = resolve_runtime_defaults_path()

    assert isinstance(path, Path)
    assert path.name == "defaults.toml"
    assert path.exists()


def test_load_toml_detailed_reports_missing_and_invalid_files(tmp_path):
    missing = load_toml_detailed(tmp_path / "absent.toml")
    broken_path = tmp_path / "broken.toml"
    broken_path.write_text("[query_defaults\n", encoding="utf-8")
    broken = load_toml_detailed(broken_path)

    assert missing["ok"] is False
    assert missing["error_kind"] == "missing"
    assert broken["ok"] is False
    assert broken["error_kind"] == "invalid_toml"
    assert load_toml(broken_path) == {}


def test_load_toml_cache_invalidates_when_file_changes(tmp_path):
    config_path = tmp_path / "runtime-defaults.toml"
    config_path.write_text("[query_defaults]\ndefault_float_display_precision = 3\n", encoding="utf-8")

    loader_mod._load_toml_cached.cache_clear()
    first = load_toml(config_path)
    config_path.write_text("[query_defaults]\ndefault_float_display_precision = 5 \n", encoding="utf-8")
    second = load_toml(config_path)

    assert first["query_defaults"]["default_float_display_precision"] == 3
    assert second["query_defaults"]["default_float_display_precision"] == 5
