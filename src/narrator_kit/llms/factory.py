# src/narrator_kit/llms/factory.py

import logging

from narrator_kit.errors import UsageError
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import LLMClient
from .config import LLMConfig

logger = logging.getLogger(__name__)


def create_llm_client(
    config: LLMConfig,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> LLMClient:
    """Build the client a `NarrativeAssistant` talks to.

    Provider SDKs are imported on demand, so only the chosen one needs to
    be installed.

    Raises:
        UsageError: If the provider is unknown.

    Example:
        >>> config = LLMConfig(provider="anthropic", model="claude-sonnet-4-20250514")
        >>> assistant = NarrativeAssistant(create_llm_client(config))
    """
    logger.info("Creating %s client for model %s", config.provider, config.model)
    options = dict(
        api_key=config.api_key,
        model=config.model,
        timeout=config.timeout,
        max_retries=config.max_retries,
        metrics_hook=metrics_hook,
    )

    if config.provider == "openai":
        from .openai import OpenAILLMClient

        return OpenAILLMClient(**options)

    if config.provider == "anthropic":
        from .anthropic import AnthropicLLMClient

        return AnthropicLLMClient(**options)

    raise UsageError(f"Unknown LLM provider: {config.provider}")
