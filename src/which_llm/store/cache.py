"""
Record store
============

Provider responses are kept as ``<key>.json`` files holding
``{"cached_at": <ISO-8601 UTC>, "data": <payload>}``. Entries live for
:data:`CACHE_TTL_SECONDS`; an expired entry is deleted by the read that
finds it. Columnar table files share the same directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import hashlib
import logging
import os
from pathlib import Path
from typing import Any, Callable, Iterable

from which_llm.config.paths import ensure_dir, resolve_cache_dir
from which_llm.errors import CacheError
from which_llm.util.json import json_dumps, json_loads
from which_llm.util.logging import log_structured_event

CACHE_TTL_SECONDS = 3600
_KEY_HASH_CHARS = 16
_STORE_SUFFIXES = (".json", ".parquet")
_CACHE_LOG = logging.getLogger("which_llm.store.cache")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def cache_key(endpoint: str, params: Iterable[tuple[str, str]] = ()) -> str:
    """Derive a filesystem-safe key from an endpoint and ordered parameter pairs."""
    digest = hashlib.sha256()
    digest.update(str(endpoint).encode("utf-8"))
    for key, value in params:
        digest.update(b"\x00")
        digest.update(str(key).encode("utf-8"))
        digest.update(b"\x00")
        digest.update(str(value).encode("utf-8"))
    prefix = str(endpoint).replace("/", "-").lstrip("-")
    return f"{prefix}-{digest.hexdigest()[:_KEY_HASH_CHARS]}"


def format_size(size_bytes: int) -> str:
    if size_bytes >= 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    if size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes} B"


@dataclass(frozen=True)
class CacheStats:
    location: Path
    entry_count: int
    total_size: int

    @property
    def size_human(self) -> str:
        return format_size(self.total_size)


class Cache:
    def __init__(
        self,
        base_dir: Path | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.base_dir = ensure_dir(Path(base_dir) if base_dir is not None else resolve_cache_dir())
        self.ttl_seconds = CACHE_TTL_SECONDS
        self._clock = clock

    def _entry_path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def parquet_path(self, name: str) -> Path:
        return self.base_dir / f"{name}.parquet"

    def _discard(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            log_structured_event(_CACHE_LOG, logging.WARNING, "cache_delete_failed", path=str(path), error=str(exc))

    def get(self, key: str) -> Any | None:
        path = self._entry_path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            log_structured_event(_CACHE_LOG, logging.DEBUG, "cache_miss", key=key)
            return None
        except OSError as exc:
            log_structured_event(_CACHE_LOG, logging.WARNING, "cache_corrupt_entry", key=key, error=str(exc))
            return None
        try:
            entry = json_loads(raw)
            cached_at = datetime.fromisoformat(entry["cached_at"])
            data = entry["data"]
        except (ValueError, TypeError, KeyError) as exc:
            log_structured_event(_CACHE_LOG, logging.WARNING, "cache_corrupt_entry", key=key, error=str(exc))
            return None
        if cached_at.tzinfo is None:
            cached_at = cached_at.replace(tzinfo=timezone.utc)
        age = (self._clock() - cached_at).total_seconds()
        if age >= self.ttl_seconds:
            log_structured_event(_CACHE_LOG, logging.DEBUG, "cache_expired", key=key, age_seconds=int(age))
            self._discard(path)
            return None
        log_structured_event(_CACHE_LOG, logging.DEBUG, "cache_hit", key=key, age_seconds=int(age))
        return data

    def set(self, key: str, data: Any) -> None:
        entry = {"cached_at": self._clock().isoformat(), "data": data}
        path = self._entry_path(key)
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            tmp_path.write_text(json_dumps(entry), encoding="utf-8")
            os.replace(tmp_path, path)
        except (OSError, TypeError) as exc:
            self._discard(tmp_path)
            raise CacheError(f"Could not write cache entry {key}: {exc}") from exc

    def _store_files(self) -> list[Path]:
        try:
            return [path for path in self.base_dir.iterdir() if path.is_file() and path.suffix in _STORE_SUFFIXES]
        except OSError as exc:
            raise CacheError(f"Could not read cache directory {self.base_dir}: {exc}") from exc

    def clear(self) -> int:
        removed = 0
        for path in self._store_files():
            try:
                path.unlink()
            except OSError as exc:
                raise CacheError(f"Could not remove {path}: {exc}") from exc
            removed += 1
        return removed

    def stats(self) -> CacheStats:
        count = 0
        size = 0
        for path in self._store_files():
            try:
                size += path.stat().st_size
            except OSError as exc:
                raise CacheError(f"Could not stat {path}: {exc}") from exc
            count += 1
        return CacheStats(location=self.base_dir, entry_count=count, total_size=size)
