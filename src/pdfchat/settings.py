"""Environment driven configuration."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 512
DEFAULT_TOP_K = 4
DEFAULT_PROVIDER_TIMEOUT = 60.0
DEFAULT_HISTORY_PROMPT_TURNS = 6
DEFAULT_SESSION_TTL = 3600.0
DEFAULT_SWEEP_INTERVAL = 60.0
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def _str_from_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _int_from_env(name: str, default: int, *, minimum: int = 0) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default
    if parsed < minimum:
        LOGGER.warning("%s must be >= %s (got %s); using default %s", name, minimum, parsed, default)
        return default
    return parsed


def _bool_from_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _float_from_env(name: str, default: float, *, minimum: float = 0.0) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default
    if parsed < minimum:
        LOGGER.warning("%s must be >= %s (got %s); using default %s", name, minimum, parsed, default)
        return default
    return parsed


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration for providers, retrieval and session lifecycle."""

    embedding_provider: str = "hashing"
    embedding_model: Optional[str] = None
    embedding_device: Optional[str] = None
    llm_provider: str = "mock"
    llm_model: str = DEFAULT_CHAT_MODEL
    llm_temperature: float = DEFAULT_TEMPERATURE
    llm_max_tokens: int = DEFAULT_MAX_TOKENS
    llm_device: Optional[str] = None
    llm_preload: bool = False
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    top_k: int = DEFAULT_TOP_K
    provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT
    history_prompt_turns: int = DEFAULT_HISTORY_PROMPT_TURNS
    session_idle_ttl_seconds: float = DEFAULT_SESSION_TTL
    session_max_count: int = 0
    session_sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_env(cls) -> "Settings":
        openai_api_key = _str_from_env("OPENAI_API_KEY")
        llm_provider = _str_from_env("LLM_PROVIDER")
        if llm_provider is None:
            llm_provider = "openai" if openai_api_key else "mock"
            if not openai_api_key:
                LOGGER.warning("OPENAI_API_KEY is not set; answers will come from the mock LLM provider.")

        return cls(
            embedding_provider=(_str_from_env("EMBEDDING_PROVIDER", "hashing") or "hashing").lower(),
            embedding_model=_str_from_env("EMBEDDING_MODEL"),
            embedding_device=_str_from_env("EMBEDDING_DEVICE"),
            llm_provider=llm_provider.lower(),
            llm_model=_str_from_env("LLM_MODEL", DEFAULT_CHAT_MODEL) or DEFAULT_CHAT_MODEL,
            llm_temperature=_float_from_env("LLM_TEMPERATURE", DEFAULT_TEMPERATURE),
            llm_max_tokens=_int_from_env("LLM_MAX_TOKENS", DEFAULT_MAX_TOKENS, minimum=1),
            llm_device=_str_from_env("LLM_DEVICE"),
            llm_preload=_bool_from_env("LLM_PRELOAD"),
            openai_api_key=openai_api_key,
            openai_base_url=_str_from_env("OPENAI_BASE_URL"),
            top_k=_int_from_env("RETRIEVAL_TOP_K", DEFAULT_TOP_K, minimum=1),
            provider_timeout_seconds=_float_from_env(
                "PROVIDER_TIMEOUT_SECONDS", DEFAULT_PROVIDER_TIMEOUT, minimum=0.001
            ),
            history_prompt_turns=_int_from_env("HISTORY_PROMPT_TURNS", DEFAULT_HISTORY_PROMPT_TURNS),
            session_idle_ttl_seconds=_float_from_env("SESSION_IDLE_TTL_SECONDS", DEFAULT_SESSION_TTL),
            session_max_count=_int_from_env("SESSION_MAX_COUNT", 0),
            session_sweep_interval_seconds=_float_from_env(
                "SESSION_SWEEP_INTERVAL_SECONDS", DEFAULT_SWEEP_INTERVAL, minimum=0.001
            ),
            max_upload_bytes=_int_from_env("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES, minimum=1),
            log_level=(_str_from_env("LOG_LEVEL", "INFO") or "INFO").upper(),
            log_dir=_str_from_env("LOG_DIR", "logs") or "logs",
        )


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings built from the process environment."""

    return Settings.from_env()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for testing)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
