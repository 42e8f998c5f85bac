from datetime import datetime, timedelta, timezone

import pytest

from which_llm.errors import CacheError
from which_llm.store.cache import CACHE_TTL_SECONDS, Cache, cache_key, format_size


class _Clock:
    def __init__(self):
        self.now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


def test_cache_key_is_deterministic_and_sensitive_to_inputs():
    key = cache_key("/data/media/text-to-image", [("include_categories", "true")])

    assert key == cache_key("/data/media/text-to-image", [("include_categories", "true")])
    assert key.startswith("data-media-text-to-image-")
    assert key != cache_key("/data/media/text-to-image")
    assert key != cache_key("/data/media/text-to-video", [("include_categories", "true")])
    assert key != cache_key("/data/media/text-to-image", [("include_categories", "false")])


def test_cache_key_parameter_boundaries_do_not_collide():
    assert cache_key("/e", [("ab", "c")]) != cache_key("/e", [("a", "bc")])
    assert cache_key("/e", [("a", "1"), ("b", "2")]) != cache_key("/e", [("b", "2"), ("a", "1")])


def test_cache_entry_is_served_until_ttl_then_deleted(tmp_path):
    clock = _Clock()
    cache = Cache(tmp_path, clock=clock)
    cache.set("k", {"data": [1, 2]})

    clock.advance(CACHE_TTL_SECONDS - 1)
    assert cache.get("k") == {"data": [1, 2]}

    clock.advance(1)
    assert cache.get("k") is None
    assert not (tmp_path / "k.json").exists()


def test_cache_set_overwrites_previous_entry(tmp_path):
    cache = Cache(tmp_path)
    cache.set("k", {"v": 1})
    cache.set("k", {"v": 2})

    assert cache.get("k") == {"v": 2}


@pytest.mark.parametrize("content", [b"{not json", b'{"data": 1}', b'{"cached_at": "yesterday", "data": 1}'])
def test_corrupt_cache_entry_is_a_miss(tmp_path, content):
    cache = Cache(tmp_path)
    (tmp_path / "broken.json").write_bytes(content)

    assert cache.get("broken") is None


def test_missing_entry_is_a_miss(tmp_path):
    assert Cache(tmp_path).get("nothing") is None


def test_clear_and_stats_count_payloads_and_tables(tmp_path):
    cache = Cache(tmp_path)
    cache.set("a", {"x": 1})
    cache.set("b", {"x": 2})
    cache.parquet_path("llms").write_bytes(b"PAR1")
    (tmp_path / "notes.txt").write_text("kept", encoding="utf-8")

    stats = cache.stats()
    assert stats.entry_count == 3
    assert stats.total_size > 0
    assert stats.location == tmp_path

    assert cache.clear() == 3
    assert cache.stats().entry_count == 0
    assert (tmp_path / "notes.txt").exists()


def test_cache_defaults_to_configured_directory(cache_dir):
    cache = Cache()

    assert cache.base_dir == cache_dir
    assert cache_dir.is_dir()


def test_unwritable_cache_directory_raises_cache_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(CacheError):
        Cache(blocker / "sub")


def test_format_size_units():
    assert format_size(512) == "512 B"
    assert format_size(1024) == "1.0 KB"
    assert format_size(3 * 1024 * 1024) == "3.0 MB"
