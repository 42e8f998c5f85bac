from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
from typing import Any, Mapping

from which_llm.config.loader import (
    load_packaged_runtime_defaults_detailed,
    load_runtime_defaults_override_detailed,
)
from which_llm.util.logging import log_structured_event

_MAX_CONFIG_STRING_LENGTH = 256
_MAX_CONFIG_INT = 10_000
_MAX_FLOAT_DISPLAY_PRECISION = 12
VALID_PARQUET_COMPRESSIONS = frozenset({"zstd", "snappy", "gzip", "uncompressed"})
RUNTIME_DEFAULTS_SCHEMA_VERSION = 1
_RUNTIME_DEFAULTS_LOG = logging.getLogger("which_llm.config.runtime_defaults")
_RUNTIME_DEFAULTS_LOAD_TELEMETRY = {
    "source": "unknown",
    "fallback_activations": 0,
    "error_kind": None,
    "schema_status": "unknown",
}


@dataclass(frozen=True)
class ServiceDefaults:
    default_connect_timeout_seconds: int = 10
    default_request_timeout_seconds: int = 30
    default_artificial_analysis_base_url: str = "https://artificialanalysis.ai/api/v2"
    default_models_dev_url: str = "https://models.dev/api.json"
    default_user_agent: str = "which-llm"


@dataclass(frozen=True)
class StorageDefaults:
    default_parquet_compression: str = "zstd"


@dataclass(frozen=True)
class QueryDefaults:
    default_float_display_precision: int = 2


@dataclass(frozen=True)
class RuntimeDefaults:
    service_defaults: ServiceDefaults
    storage_defaults: StorageDefaults
    query_defaults: QueryDefaults


_BUILTIN_RUNTIME_DEFAULTS = RuntimeDefaults(
    service_defaults=ServiceDefaults(),
    storage_defaults=StorageDefaults(),
    query_defaults=QueryDefaults(),
)


def _set_runtime_defaults_telemetry(
    *,
    source: str,
    error_kind: str | None,
    schema_status: str,
    used_fallback: bool,
) -> None:
    if used_fallback:
        _RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"] = int(
            _RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"]
        ) + 1
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["source"] = source
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["error_kind"] = error_kind
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["schema_status"] = schema_status


def runtime_defaults_load_telemetry() -> dict[str, object]:
    return dict(_RUNTIME_DEFAULTS_LOAD_TELEMETRY)


def reset_runtime_defaults_load_telemetry() -> None:
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["source"] = "unknown"
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"] = 0
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["error_kind"] = None
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["schema_status"] = "unknown"


def _record_source(source: str, *, error_kind: str | None, schema_status: str, used_fallback: bool) -> None:
    _set_runtime_defaults_telemetry(
        source=source,
        error_kind=error_kind,
        schema_status=schema_status,
        used_fallback=used_fallback,
    )
    log_structured_event(
        _RUNTIME_DEFAULTS_LOG,
        logging.WARNING if used_fallback else logging.DEBUG,
        "runtime_defaults_source",
        source=source,
        schema_status=schema_status,
        error_kind=error_kind,
        used_fallback=bool(used_fallback),
        fallback_activations=int(_RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"]),
    )


def _schema_version(payload: Mapping[str, Any]) -> int | None:
    raw = _to_mapping(payload.get("meta")).get("schema_version")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _schema_status(payload: Mapping[str, Any], *, require_schema: bool) -> tuple[bool, str]:
    version = _schema_version(payload)
    if version is None:
        if require_schema:
            return False, "missing"
        return True, "absent"
    if version != RUNTIME_DEFAULTS_SCHEMA_VERSION:
        return False, "mismatch"
    return True, "ok"


def _parse_positive_int(raw: Any, default: int) -> int:
    if isinstance(raw, bool):
        return int(default)
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        return int(default)
    if parsed <= 0:
        return int(default)
    return min(parsed, _MAX_CONFIG_INT)


def _parse_non_negative_int(raw: Any, default: int, *, maximum: int = _MAX_CONFIG_INT) -> int:
    if isinstance(raw, bool):
        return int(default)
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        return int(default)
    if parsed < 0:
        return int(default)
    return min(parsed, maximum)


def _parse_choice(raw: Any, default: str, valid_values: frozenset[str]) -> str:
    if raw is None:
        return str(default)
    value = str(raw).strip().lower()
    if len(value) > _MAX_CONFIG_STRING_LENGTH:
        return str(default)
    return value if value in valid_values else str(default)


def _parse_small_string(raw: Any, default: str) -> str:
    if raw is None:
        return str(default)
    value = str(raw).strip()
    if not value or len(value) > _MAX_CONFIG_STRING_LENGTH:
        return str(default)
    return value


def _parse_url(raw: Any, default: str) -> str:
    value = _parse_small_string(raw, default)
    if not value.startswith(("http://", "https://")):
        return str(default)
    return value.rstrip("/")


def _to_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    return {}


def parse_runtime_defaults(payload: Mapping[str, Any] | None, *, base: RuntimeDefaults | None = None) -> RuntimeDefaults:
    root = _to_mapping(payload)
    runtime_base = _BUILTIN_RUNTIME_DEFAULTS if base is None else base

    service_raw = _to_mapping(root.get("service_defaults"))
    service_builtin = runtime_base.service_defaults
    service_defaults = ServiceDefaults(
        default_connect_timeout_seconds=_parse_positive_int(
            service_raw.get("default_connect_timeout_seconds"),
            service_builtin.default_connect_timeout_seconds,
        ),
        default_request_timeout_seconds=_parse_positive_int(
            service_raw.get("default_request_timeout_seconds"),
            service_builtin.default_request_timeout_seconds,
        ),
        default_artificial_analysis_base_url=_parse_url(
            service_raw.get("default_artificial_analysis_base_url"),
            service_builtin.default_artificial_analysis_base_url,
        ),
        default_models_dev_url=_parse_url(
            service_raw.get("default_models_dev_url"),
            service_builtin.default_models_dev_url,
        ),
        default_user_agent=_parse_small_string(
            service_raw.get("default_user_agent"),
            service_builtin.default_user_agent,
        ),
    )

    storage_raw = _to_mapping(root.get("storage_defaults"))
    storage_defaults = StorageDefaults(
        default_parquet_compression=_parse_choice(
            storage_raw.get("default_parquet_compression"),
            runtime_base.storage_defaults.default_parquet_compression,
            VALID_PARQUET_COMPRESSIONS,
        ),
    )

    query_raw = _to_mapping(root.get("query_defaults"))
    query_defaults = QueryDefaults(
        default_float_display_precision=_parse_non_negative_int(
            query_raw.get("default_float_display_precision"),
            runtime_base.query_defaults.default_float_display_precision,
            maximum=_MAX_FLOAT_DISPLAY_PRECISION,
        ),
    )

    return RuntimeDefaults(
        service_defaults=service_defaults,
        storage_defaults=storage_defaults,
        query_defaults=query_defaults,
    )


@lru_cache(maxsize=1)
def get_runtime_defaults() -> RuntimeDefaults:
    packaged = load_packaged_runtime_defaults_detailed()
    packaged_payload = packaged.get("payload")
    if not packaged.get("ok", False) or not isinstance(packaged_payload, Mapping):
        packaged_error = packaged.get("error_kind")
        reason = f"packaged_{packaged_error}" if isinstance(packaged_error, str) else "packaged_load_error"
        _record_source("builtin_fallback", error_kind=reason, schema_status="missing", used_fallback=True)
        return _BUILTIN_RUNTIME_DEFAULTS

    schema_ok, schema_state = _schema_status(packaged_payload, require_schema=True)
    if not schema_ok:
        reason = "missing_packaged_schema" if schema_state == "missing" else "packaged_schema_mismatch"
        _record_source("builtin_fallback", error_kind=reason, schema_status=schema_state, used_fallback=True)
        return _BUILTIN_RUNTIME_DEFAULTS

    parsed = parse_runtime_defaults(packaged_payload)
    source = "packaged_toml"
    error_kind = None

    override = load_runtime_defaults_override_detailed()
    if override is not None:
        override_payload = override.get("payload")
        if override.get("ok") and isinstance(override_payload, Mapping):
            override_ok, override_state = _schema_status(override_payload, require_schema=False)
            if override_ok:
                parsed = parse_runtime_defaults(override_payload, base=parsed)
                source = "override_toml"
            else:
                error_kind = "override_schema_mismatch"
            schema_state = override_state
        else:
            override_error = override.get("error_kind")
            error_kind = f"override_{override_error}" if isinstance(override_error, str) else "override_invalid_shape"
    _record_source(source, error_kind=error_kind, schema_status=schema_state, used_fallback=False)
    return parsed


def clear_runtime_defaults_cache() -> None:
    get_runtime_defaults.cache_clear()
