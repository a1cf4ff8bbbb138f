"""
Centralized configuration with environment variable overrides.

Business pricing, store credentials, model settings, resilience thresholds
and channel limits are all configurable here. Nothing is hardcoded in the
extraction, flow, or matching logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from repairline.logging_context import LOG_FORMAT, install_turn_filter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BusinessConfig:
    """Dispatcher identity and the pricing quoted at confirmation."""

    name: str = os.getenv("BUSINESS_NAME", "ABZ Appliance Repair")
    assistant_name: str = os.getenv("ASSISTANT_NAME", "Sarah")
    diagnostic_fee: int = _safe_int("DIAGNOSTIC_FEE", "89")
    repair_range_low: int = _safe_int("REPAIR_RANGE_LOW", "150")
    repair_range_high: int = _safe_int("REPAIR_RANGE_HIGH", "300")


@dataclass(frozen=True)
class StoreConfig:
    """REST row store (Supabase/PostgREST) settings."""

    url: str = os.getenv("SUPABASE_URL", "")
    service_key: str = os.getenv("SUPABASE_SERVICE_KEY", "")
    request_timeout_sec: float = _safe_float("STORE_TIMEOUT", "10.0")
    conversation_ttl_hours: int = _safe_int("CONVERSATION_TTL_HOURS", "24")
    audio_public_base_url: str = os.getenv("AUDIO_PUBLIC_BASE_URL", "")


@dataclass(frozen=True)
class ModelConfig:
    """Fallback generative responder settings."""

    api_key: str = os.getenv("OPENAI_API_KEY", "")
    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.2")
    max_tokens: int = _safe_int("LLM_MAX_TOKENS", "200")
    max_retries: int = _safe_int("LLM_MAX_RETRIES", "2")
    history_turns: int = _safe_int("LLM_HISTORY_TURNS", "4")


@dataclass(frozen=True)
class ResilienceConfig:
    """Failure thresholds and cooldowns for outbound calls."""

    store_failure_threshold: int = _safe_int("STORE_FAILURE_THRESHOLD", "3")
    store_cooldown_sec: float = _safe_float("STORE_COOLDOWN", "30.0")
    model_failure_threshold: int = _safe_int("MODEL_FAILURE_THRESHOLD", "3")
    model_cooldown_sec: float = _safe_float("MODEL_COOLDOWN", "60.0")


@dataclass(frozen=True)
class ResponseConfig:
    """Per-channel reply length limits."""

    voice_max_chars: int = _safe_int("VOICE_MAX_CHARS", "200")
    text_max_chars: int = _safe_int("TEXT_MAX_CHARS", "1500")
    slow_turn_threshold_sec: float = _safe_float("SLOW_TURN_THRESHOLD", "3.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)
    response: ResponseConfig = field(default_factory=ResponseConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.model.max_tokens < 1:
        raise ValueError(f"LLM_MAX_TOKENS must be >= 1, got {config.model.max_tokens}")
    if config.model.max_retries < 0:
        raise ValueError(f"LLM_MAX_RETRIES must be >= 0, got {config.model.max_retries}")
    if config.business.diagnostic_fee < 0:
        raise ValueError(
            f"DIAGNOSTIC_FEE must be >= 0, got {config.business.diagnostic_fee}"
        )
    if config.business.repair_range_low > config.business.repair_range_high:
        raise ValueError(
            "REPAIR_RANGE_LOW must not exceed REPAIR_RANGE_HIGH, "
            f"got {config.business.repair_range_low} > {config.business.repair_range_high}"
        )
    if config.store.conversation_ttl_hours < 1:
        raise ValueError(
            f"CONVERSATION_TTL_HOURS must be >= 1, got {config.store.conversation_ttl_hours}"
        )
    if config.store.request_timeout_sec <= 0:
        raise ValueError(
            f"STORE_TIMEOUT must be > 0, got {config.store.request_timeout_sec}"
        )

    for name, threshold in [
        ("STORE_FAILURE_THRESHOLD", config.resilience.store_failure_threshold),
        ("MODEL_FAILURE_THRESHOLD", config.resilience.model_failure_threshold),
    ]:
        if threshold < 1:
            raise ValueError(f"{name} must be >= 1, got {threshold}")

    for name, limit in [
        ("VOICE_MAX_CHARS", config.response.voice_max_chars),
        ("TEXT_MAX_CHARS", config.response.text_max_chars),
    ]:
        if limit < 10:
            raise ValueError(f"{name} must be >= 10, got {limit}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        install_turn_filter(handler)
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
