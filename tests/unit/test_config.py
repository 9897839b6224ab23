"""Unit tests for configuration loading."""

import os
from unittest.mock import patch

import pytest
import pytest_check as check
from pydantic import ValidationError

from ragchat.config import ChatSettings, GraphConfig, get_chat_settings, get_graph_config


class TestGraphConfig:
    """Tests for GraphConfig."""

    def test_api_key_is_stripped(self) -> None:
        config = GraphConfig(api_key="  sk-abc  ")

        assert config.api_key == "sk-abc"

    def test_blank_api_key_is_rejected(self) -> None:
        with pytest.raises(ValidationError, match="API key required"):
            GraphConfig(api_key="   ")

    def test_reads_environment(self) -> None:
        env = {
            "LLM_API_KEY": "sk-env",
            "LLM_BASE_URL": "http://localhost:11434/v1",
            "LLM_MODEL": "llama3",
            "RETRIEVAL_K": "8",
        }
        with patch.dict(os.environ, env):
            config = get_graph_config()

        check.equal(config.api_key, "sk-env")
        check.equal(config.base_url, "http://localhost:11434/v1")
        check.equal(config.model_name, "llama3")
        check.equal(config.retrieval_k, 8)

    def test_openai_key_fallback(self) -> None:
        with patch.dict(os.environ, {"LLM_API_KEY": "", "OPENAI_API_KEY": "sk-openai"}):
            os.environ.pop("LLM_API_KEY")
            config = GraphConfig()

        assert config.api_key == "sk-openai"

    def test_temperature_bounds(self) -> None:
        with pytest.raises(ValidationError):
            GraphConfig(api_key="sk-abc", temperature=3.0)


class TestChatSettings:
    """Tests for ChatSettings."""

    def test_defaults(self) -> None:
        settings = ChatSettings(api_base_url="http://localhost:8000")

        check.equal(settings.route_payload_max_length, 240)
        check.equal(settings.request_timeout, 120.0)

    def test_environment_override(self) -> None:
        env = {"API_BASE_URL": "http://chat.internal:9000", "ROUTE_PAYLOAD_MAX_LENGTH": "80"}
        with patch.dict(os.environ, env):
            settings = get_chat_settings()

        check.equal(settings.api_base_url, "http://chat.internal:9000")
        check.equal(settings.route_payload_max_length, 80)

    def test_negative_ceiling_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatSettings(route_payload_max_length=-1)
