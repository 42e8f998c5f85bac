from which_llm.config import runtime_defaults as runtime_defaults_mod


def _packaged(payload):
    return lambda: {"source": "packaged_toml", "ok": True, "payload": payload, "error_kind": None}


def _schema(**sections):
    return {"meta": {"schema_version": runtime_defaults_mod.RUNTIME_DEFAULTS_SCHEMA_VERSION}, **sections}


def test_runtime_defaults_uses_packaged_toml_as_canonical(monkeypatch):
    monkeypatch.setattr(
        runtime_defaults_mod,
        "load_packaged_runtime_defaults_detailed",
        _packaged(_schema(query_defaults={"default_float_display_precision": 3})),
    )
    monkeypatch.setattr(runtime_defaults_mod, "load_runtime_defaults_override_detailed", lambda: None)

    defaults = runtime_defaults_mod.get_runtime_defaults()
    telemetry = runtime_defaults_mod.runtime_defaults_load_telemetry()

    assert defaults.query_defaults.default_float_display_precision == 3
    assert telemetry["source"] == "packaged_toml"
    assert telemetry["schema_status"] == "ok"
    assert telemetry["fallback_activations"] == 0


def test_runtime_defaults_invalid_override_falls_back_to_packaged(monkeypatch):
    monkeypatch.setattr(
        runtime_defaults_mod,
        "load_packaged_runtime_defaults_detailed",
        _packaged(_schema(storage_defaults={"default_parquet_compression": "snappy"})),
    )
    monkeypatch.setattr(
        runtime_defaults_mod,
        "load_runtime_defaults_override_detailed",
        lambda: {"source": "override_toml", "ok": False, "payload": {}, "error_kind": "invalid_toml"},
    )

    defaults = runtime_defaults_mod.get_runtime_defaults()
    telemetry = runtime_defaults_mod.runtime_defaults_load_telemetry()

    assert defaults.storage_defaults.default_parquet_compression == "snappy"
    assert telemetry["source"] == "packaged_toml"
    assert telemetry["error_kind"] == "override_invalid_toml"
    assert telemetry["fallback_activations"] == 0


def test_runtime_defaults_missing_packaged_schema_uses_builtin_fallback(monkeypatch):
    monkeypatch.setattr(
        runtime_defaults_mod,
        "load_packaged_runtime_defaults_detailed",
        _packaged({"query_defaults": {"default_float_display_precision": 9}}),
    )
    monkeypatch.setattr(runtime_defaults_mod, "load_runtime_defaults_override_detailed", lambda: None)

    defaults = runtime_defaults_mod.get_runtime_defaults()
    telemetry = runtime_defaults_mod.runtime_defaults_load_telemetry()

    assert defaults.query_defaults.default_float_display_precision == 2
    assert telemetry["source"] == "builtin_fallback"
    assert telemetry["error_kind"] == "missing_packaged_schema"
    assert telemetry["fallback_activations"] == 1


def test_runtime_defaults_override_schema_mismatch_uses_packaged(monkeypatch):
    monkeypatch.setattr(
        runtime_defaults_mod,
        "load_packaged_runtime_defaults_detailed",
        _packaged(_schema(query_defaults={"default_float_display_precision": 3})),
    )
    monkeypatch.setattr(
        runtime_defaults_mod,
        "load_runtime_defaults_override_detailed",
        lambda: {
            "source": "override_toml",
            "ok": True,
            "payload": {"meta": {"schema_version": 99}, "query_defaults": {"default_float_display_precision": 6}},
            "error_kind": None,
        },
    )

    defaults = runtime_defaults_mod.get_runtime_defaults()
    telemetry = runtime_defaults_mod.runtime_defaults_load_telemetry()

    assert defaults.query_defaults.default_float_display_precision == 3
    assert telemetry["error_kind"] == "override_schema_mismatch"
    assert telemetry["schema_status"] == "mismatch"


def test_parse_runtime_defaults_rejects_invalid_values():
    parsed = runtime_defaults_mod.parse_runtime_defaults(
        {
            "service_defaults": {
                "default_connect_timeout_seconds": -1,
                "default_request_timeout_seconds": True,
                "default_models_dev_url": "ftp://models.example/api.json",
                "default_artificial_analysis_base_url": "https://aa.example/api/v2/",
            },
            "storage_defaults": {"default_parquet_compression": "LZ4-ish"},
            "query_defaults": {"default_float_display_precision": 40},
        }
    )

    assert parsed.service_defaults.default_connect_timeout_seconds == 10
    assert parsed.service_defaults.default_request_timeout_seconds == 30
    assert parsed.service_defaults.default_models_dev_url == "https://models.dev/api.json"
    assert parsed.service_defaults.default_artificial_analysis_base_url == "https://aa.example/api/v2"
    assert parsed.storage_defaults.default_parquet_compression == "zstd"
    assert parsed.query_defaults.default_float_display_precision == 12
