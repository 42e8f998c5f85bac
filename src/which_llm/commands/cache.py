from __future__ import annotations

from which_llm.store.cache import Cache


def clear(cache: Cache) -> str:
    removed = cache.clear()
    return f"Cache cleared ({removed} files removed)."


def status(cache: Cache) -> str:
    stats = cache.stats()
    return "\n".join(
        [
            "Cache Status",
            f"  Location: {stats.location}",
            f"  Entries:  {stats.entry_count}",
            f"  Size:     {stats.size_human}",
            f"  TTL:      {cache.ttl_seconds // 60} minutes",
        ]
    )
