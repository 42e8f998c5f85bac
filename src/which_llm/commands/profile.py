from __future__ import annotations

import getpass

from which_llm.config.profiles import ProfileStore, mask_api_key
from which_llm.errors import ConfigError


def create(store: ProfileStore, name: str, api_key: str | None = None) -> str:
    if not api_key:
        api_key = getpass.getpass(f"API key for profile '{name}': ")
    profile = store.create(name, api_key)
    suffix = " (default)" if profile.is_default else ""
    return f"Profile '{profile.name}' saved{suffix}."


def list_profiles(store: ProfileStore) -> str:
    profiles = store.list()
    if not profiles:
        return "No profiles configured. Run 'which-llm profile create <name>' to add one."
    return "\n".join(f"{'*' if item.is_default else ' '} {item.name}" for item in profiles)


def set_default(store: ProfileStore, name: str) -> str:
    store.set_default(name)
    return f"Default profile set to '{name}'."


def delete(store: ProfileStore, name: str) -> str:
    store.delete(name)
    return f"Profile '{name}' deleted."


def show(store: ProfileStore, name: str | None = None) -> str:
    name = name or store.default_name()
    if name is None:
        raise ConfigError("No default profile set. Pass a profile name or run 'which-llm profile default <name>'.")
    profile = store.get(name)
    return "\n".join(
        [
            f"Profile: {profile.name}{' (default)' if profile.is_default else ''}",
            f"API key: {mask_api_key(profile.api_key)}",
        ]
    )
