"""Token counts as typed on the command line ("10k", "1.5M") and as displayed."""

from __future__ import annotations

from which_llm.errors import ConfigError

_SUFFIX_MULTIPLIERS = {
    "k": 1_000,
    "m": 1_000_000,
    "b": 1_000_000_000,
}


def parse_tokens(raw: str) -> int:
    text = str(raw or "").strip()
    if not text:
        raise ConfigError("Empty token count")
    multiplier = _SUFFIX_MULTIPLIERS.get(text[-1].lower())
    number = text[:-1] if multiplier is not None else text
    try:
        value = float(number)
    except ValueError:
        raise ConfigError(f"Invalid token count '{text}': could not parse number") from None
    if value != value or value in (float("inf"), float("-inf")):
        raise ConfigError(f"Invalid token count '{text}': could not parse number")
    if value < 0:
        raise ConfigError(f"Invalid token count '{text}': must be positive")
    return int(round(value * (multiplier or 1)))


def format_token_count(tokens: int) -> str:
    if tokens >= 1_000_000:
        return f"{tokens / 1_000_000:.1f}M"
    if tokens >= 1_000:
        if tokens % 1_000 == 0:
            return f"{tokens // 1_000}K"
        return f"{tokens / 1_000:.1f}K"
    return str(tokens)
