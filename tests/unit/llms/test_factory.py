# tests/unit/llms/test_factory.py

from unittest.mock import patch

import pytest

from narrator_kit.errors import UsageError
from narrator_kit.llms import LLMConfig, create_llm_client
from narrator_kit.llms.anthropic import AnthropicLLMClient
from narrator_kit.llms.openai import OpenAILLMClient


class TestFactory:
    def test_create_openai_client(self) -> None:
        """Test creating OpenAI client."""
        with patch("narrator_kit.llms.openai.AsyncOpenAI"):
            config = LLMConfig(provider="openai", model="gpt-4o", api_key="test")
            client = create_llm_client(config)
            assert isinstance(client, OpenAILLMClient)

    def test_create_anthropic_client(self) -> None:
        """Test creating Anthropic client."""
        with patch("narrator_kit.llms.anthropic.AsyncAnthropic"):
            config = LLMConfig(
                provider="anthropic", model="claude-sonnet-4-20250514", api_key="test"
            )
            client = create_llm_client(config)
            assert isinstance(client, AnthropicLLMClient)

    def test_unknown_provider_raises(self) -> None:
        """Test that unknown provider raises UsageError."""
        config = LLMConfig(provider="unknown", model="model")  # type: ignore
        with pytest.raises(UsageError, match="Unknown LLM provider"):
            create_llm_client(config)

    def test_config_values_passed_through(self) -> None:
        """Test that config values are passed to client."""
        with patch("narrator_kit.llms.openai.AsyncOpenAI") as mock_openai:
            config = LLMConfig(
                provider="openai",
                model="gpt-4-turbo",
                api_key="my-key",
                timeout=60.0,
                max_retries=5,
            )
            client = create_llm_client(config)

            assert client._model == "gpt-4-turbo"
            assert client._max_retries == 5
            mock_openai.assert_called_once_with(api_key="my-key", timeout=60.0, max_retries=0)


class TestLLMConfig:
    def test_model_is_required(self) -> None:
        with pytest.raises(TypeError):
            LLMConfig(provider="openai")  # type: ignore[call-arg]

    @pytest.mark.parametrize(
        "overrides",
        [{"model": ""}, {"model": "  "}, {"timeout": 0}, {"max_retries": -1}],
    )
    def test_invalid_values_raise(self, overrides: dict) -> None:
        options = {"provider": "openai", "model": "gpt-4o", **overrides}

        with pytest.raises(UsageError):
            LLMConfig(**options)

    def test_defaults(self) -> None:
        config = LLMConfig(provider="anthropic", model="claude-sonnet-4-20250514")

        assert config.api_key is None
        assert config.timeout == 30.0
        assert config.max_retries == 3
