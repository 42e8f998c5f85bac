"""
Credential profiles
===================

Named API keys kept in ``profiles.json`` under the config directory::

    {"default_profile": "work", "profiles": {"work": {"api_key": "..."}}}

The environment variable ``WHICH_LLM_API_KEY`` always wins over stored
profiles.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from which_llm.config.paths import ensure_dir, resolve_config_dir
from which_llm.errors import ConfigError
from which_llm.util.json import json_dumps, json_loads
from which_llm.util.logging import log_structured_event

API_KEY_ENV_VAR = "WHICH_LLM_API_KEY"
PROFILES_FILE = "profiles.json"
_PROFILES_LOG = logging.getLogger("which_llm.config.profiles")


@dataclass(frozen=True)
class Profile:
    name: str
    api_key: str
    is_default: bool = False


def mask_api_key(api_key: str) -> str:
    key = str(api_key or "")
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


class ProfileStore:
    def __init__(self, config_dir: Path | None = None):
        self.config_dir = Path(config_dir) if config_dir is not None else resolve_config_dir()
        self.path = self.config_dir / PROFILES_FILE

    def _load(self) -> dict:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {"default_profile": None, "profiles": {}}
        except OSError as exc:
            raise ConfigError(f"Could not read {self.path}: {exc}") from exc
        try:
            payload = json_loads(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid profile file {self.path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigError(f"Invalid profile file {self.path}: expected an object")
        profiles = payload.get("profiles")
        if not isinstance(profiles, dict):
            profiles = {}
        default = payload.get("default_profile")
        return {
            "default_profile": default if isinstance(default, str) and default in profiles else None,
            "profiles": profiles,
        }

    def _save(self, payload: dict) -> None:
        ensure_dir(self.config_dir)
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            tmp_path.unlink(missing_ok=True)
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json_dumps(payload, pretty=True))
            os.replace(tmp_path, self.path)
        except OSError as exc:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                log_structured_event(_PROFILES_LOG, logging.DEBUG, "profile_tmp_cleanup_failed", path=str(tmp_path))
            raise ConfigError(f"Could not write {self.path}: {exc}") from exc

    def list(self) -> list[Profile]:
        payload = self._load()
        default = payload["default_profile"]
        return [
            Profile(name=name, api_key=str(entry.get("api_key", "")), is_default=name == default)
            for name, entry in sorted(payload["profiles"].items())
            if isinstance(entry, dict)
        ]

    def get(self, name: str) -> Profile:
        payload = self._load()
        entry = payload["profiles"].get(name)
        if not isinstance(entry, dict):
            raise ConfigError(f"Profile '{name}' not found")
        return Profile(name=name, api_key=str(entry.get("api_key", "")), is_default=name == payload["default_profile"])

    def default_name(self) -> str | None:
        return self._load()["default_profile"]

    def create(self, name: str, api_key: str) -> Profile:
        name = str(name or "").strip()
        api_key = str(api_key or "").strip()
        if not name:
            raise ConfigError("Profile name must not be empty")
        if not api_key:
            raise ConfigError("API key must not be empty")
        payload = self._load()
        payload["profiles"][name] = {"api_key": api_key}
        if payload["default_profile"] is None:
            payload["default_profile"] = name
        self._save(payload)
        return Profile(name=name, api_key=api_key, is_default=payload["default_profile"] == name)

    def set_default(self, name: str) -> None:
        payload = self._load()
        if name not in payload["profiles"]:
            raise ConfigError(f"Profile '{name}' not found")
        payload["default_profile"] = name
        self._save(payload)

    def delete(self, name: str) -> None:
        payload = self._load()
        if name not in payload["profiles"]:
            raise ConfigError(f"Profile '{name}' not found")
        del payload["profiles"][name]
        if payload["default_profile"] == name:
            payload["default_profile"] = None
        self._save(payload)

    def resolve_api_key(self, profile: str | None = None) -> str | None:
        """Return the credential for this invocation, or ``None`` for cached mode."""
        env_value = os.getenv(API_KEY_ENV_VAR, "").strip()
        if env_value:
            return env_value
        if profile:
            return self.get(profile).api_key
        default = self.default_name()
        if default is None:
            return None
        return self.get(default).api_key
