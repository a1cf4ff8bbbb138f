"""Tests for configuration loading and validation."""

import io
import logging
from dataclasses import replace

import pytest

from repairline.config import (
    AppConfig,
    BusinessConfig,
    ModelConfig,
    ResilienceConfig,
    ResponseConfig,
    StoreConfig,
    _safe_float,
    _safe_int,
    _validate_config,
    load_config,
)
from repairline.logging_context import TurnIdFilter


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_defaults(self):
        config = AppConfig()
        assert config.business.diagnostic_fee == 89
        assert config.store.conversation_ttl_hours == 24
        assert config.model.llm_model == "gpt-4o-mini"
        assert config.response.voice_max_chars == 200

    def test_invalid_temperature_too_high(self):
        config = replace(AppConfig(), model=replace(ModelConfig(), llm_temperature=3.0))
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            _validate_config(config)

    def test_invalid_temperature_negative(self):
        config = replace(AppConfig(), model=replace(ModelConfig(), llm_temperature=-0.5))
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            _validate_config(config)

    def test_negative_retries(self):
        config = replace(AppConfig(), model=replace(ModelConfig(), max_retries=-1))
        with pytest.raises(ValueError, match="LLM_MAX_RETRIES"):
            _validate_config(config)

    def test_repair_range_inverted(self):
        business = replace(BusinessConfig(), repair_range_low=400, repair_range_high=150)
        with pytest.raises(ValueError, match="REPAIR_RANGE_LOW"):
            _validate_config(replace(AppConfig(), business=business))

    def test_zero_ttl(self):
        store = replace(StoreConfig(), conversation_ttl_hours=0)
        with pytest.raises(ValueError, match="CONVERSATION_TTL_HOURS"):
            _validate_config(replace(AppConfig(), store=store))

    def test_zero_failure_threshold(self):
        resilience = replace(ResilienceConfig(), model_failure_threshold=0)
        with pytest.raises(ValueError, match="MODEL_FAILURE_THRESHOLD"):
            _validate_config(replace(AppConfig(), resilience=resilience))

    def test_tiny_reply_limit(self):
        response = replace(ResponseConfig(), voice_max_chars=5)
        with pytest.raises(ValueError, match="VOICE_MAX_CHARS"):
            _validate_config(replace(AppConfig(), response=response))


class TestLoadConfig:
    def test_root_handlers_carry_turn_filter(self):
        root = logging.getLogger()
        handler = logging.StreamHandler(io.StringIO())
        root.addHandler(handler)
        try:
            load_config()
            assert any(isinstance(f, TurnIdFilter) for f in handler.filters)
        finally:
            root.removeHandler(handler)


class TestSafeParsing:
    def test_safe_int_default(self, monkeypatch):
        monkeypatch.delenv("REPAIRLINE_TEST_INT", raising=False)
        assert _safe_int("REPAIRLINE_TEST_INT", "7") == 7

    def test_safe_int_invalid(self, monkeypatch):
        monkeypatch.setenv("REPAIRLINE_TEST_INT", "seven")
        with pytest.raises(ValueError, match="REPAIRLINE_TEST_INT"):
            _safe_int("REPAIRLINE_TEST_INT", "7")

    def test_safe_float_invalid(self, monkeypatch):
        monkeypatch.setenv("REPAIRLINE_TEST_FLOAT", "fast")
        with pytest.raises(ValueError, match="REPAIRLINE_TEST_FLOAT"):
            _safe_float("REPAIRLINE_TEST_FLOAT", "1.0")
