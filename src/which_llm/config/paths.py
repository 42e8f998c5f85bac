"""Where the data directory and the profile store live on disk."""

from __future__ import annotations

import os
from pathlib import Path

from which_llm.errors import CacheError

APP_DIR_NAME = "which-llm"
CACHE_DIR_ENV_VAR = "WHICH_LLM_CACHE_DIR"
CONFIG_DIR_ENV_VAR = "WHICH_LLM_CONFIG_DIR"


def _xdg_dir(env_var: str, fallback: str) -> Path:
    base = os.getenv(env_var, "").strip()
    if base:
        return Path(base) / APP_DIR_NAME
    return Path.home() / fallback / APP_DIR_NAME


def resolve_cache_dir() -> Path:
    override = os.getenv(CACHE_DIR_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return _xdg_dir("XDG_CACHE_HOME", ".cache")


def resolve_config_dir() -> Path:
    override = os.getenv(CONFIG_DIR_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return _xdg_dir("XDG_CONFIG_HOME", ".config")


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CacheError(f"Could not create directory {path}: {exc}") from exc
    return path
