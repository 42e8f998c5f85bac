import os
import stat

import pytest

from which_llm.commands import profile as profile_command
from which_llm.config.profiles import ProfileStore, mask_api_key
from which_llm.errors import ConfigError


@pytest.fixture
def store(tmp_path):
    return ProfileStore(tmp_path / "config")


def test_first_profile_becomes_default(store):
    first = store.create("work", "aa-key-1234567890")
    second = store.create("home", "aa-key-0987654321")

    assert first.is_default is True
    assert second.is_default is False
    assert store.default_name() == "work"
    assert [p.name for p in store.list()] == ["home", "work"]


def test_profile_file_is_private(store):
    store.create("work", "aa-key-1234567890")

    mode = stat.S_IMODE(os.stat(store.path).st_mode)
    assert mode == 0o600


def test_key_is_never_written_to_a_readable_file(store, monkeypatch):
    modes = []
    real_replace = os.replace

    def _recording_replace(src, dst):
        modes.append(stat.S_IMODE(os.stat(src).st_mode))
        real_replace(src, dst)

    monkeypatch.setattr(os, "replace", _recording_replace)
    store.create("work", "aa-key-1234567890")

    assert modes == [0o600]


def test_write_failure_is_config_error(store, monkeypatch):
    def _failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", _failing_replace)

    with pytest.raises(ConfigError, match="disk full"):
        store.create("work", "aa-key-1234567890")
    assert list(store.config_dir.iterdir()) == []


def test_set_default_and_delete(store):
    store.create("work", "k1")
    store.create("home", "k2")
    store.set_default("home")
    assert store.default_name() == "home"

    store.delete("home")
    assert store.default_name() is None
    assert [p.name for p in store.list()] == ["work"]


def test_unknown_profile_is_config_error(store):
    with pytest.raises(ConfigError, match="Profile 'ghost' not found"):
        store.get("ghost")
    with pytest.raises(ConfigError):
        store.set_default("ghost")
    with pytest.raises(ConfigError):
        store.delete("ghost")


def test_empty_values_rejected(store):
    with pytest.raises(ConfigError):
        store.create("  ", "key")
    with pytest.raises(ConfigError):
        store.create("name", "")


def test_corrupt_profile_file(store):
    store.config_dir.mkdir(parents=True)
    store.path.write_text("{oops", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid profile file"):
        store.list()


def test_resolve_api_key_order(store, monkeypatch):
    assert store.resolve_api_key() is None

    store.create("work", "work-key")
    store.create("home", "home-key")
    assert store.resolve_api_key() == "work-key"
    assert store.resolve_api_key("home") == "home-key"

    monkeypatch.setenv("WHICH_LLM_API_KEY", "env-key")
    assert store.resolve_api_key("home") == "env-key"


@pytest.mark.parametrize(
    "key, expected",
    [("short", "*****"), ("12345678", "********"), ("aa-1234567890-zz", "aa-1...0-zz")],
)
def test_mask_api_key(key, expected):
    assert mask_api_key(key) == expected


def test_profile_command_output(store):
    assert profile_command.list_profiles(store).startswith("No profiles configured.")
    assert profile_command.create(store, "work", "aa-1234567890-zz") == "Profile 'work' saved (default)."
    assert profile_command.create(store, "home", "other-key-123") == "Profile 'home' saved."
    assert profile_command.list_profiles(store) == "  home\n* work"
    assert profile_command.show(store) == "Profile: work (default)\nAPI key: aa-1...0-zz"
    assert profile_command.set_default(store, "home") == "Default profile set to 'home'."
    assert profile_command.delete(store, "work") == "Profile 'work' deleted."


def test_profile_create_prompts_when_key_missing(store, monkeypatch):
    monkeypatch.setattr(profile_command.getpass, "getpass", lambda prompt: "prompted-key-123")

    profile_command.create(store, "work")

    assert store.get("work").api_key == "prompted-key-123"


def test_show_without_default(store):
    with pytest.raises(ConfigError, match="No default profile"):
        profile_command.show(store)
