# src/narrator_kit/llms/anthropic.py

import logging
from time import monotonic
from typing import Any, Literal

from anthropic import (
    NOT_GIVEN,
    APIConnectionError,
    APIStatusError,
    AsyncAnthropic,
    InternalServerError,
    RateLimitError,
)
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from narrator_kit.errors import AssistantError, AssistantNetworkError
from narrator_kit.observability import names
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import LLMClient, LLMResponse, Message, Role, Usage

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)
DEFAULT_MAX_TOKENS = 4096  # Anthropic requires max_tokens


class AnthropicLLMClient(LLMClient):
    """Anthropic LLM client.

    Stateless. Transport-only retries. Provider errors are translated into
    `AssistantError` / `AssistantNetworkError` at this boundary.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-20250514",
        timeout: float = 30.0,
        max_retries: int = 3,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ):
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._model = model
        self._max_retries = max_retries
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized AnthropicLLMClient with model=%s, timeout=%s",
            model,
            timeout,
        )

    async def complete(
        self,
        *,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        start = monotonic()

        # Extract system message (Anthropic handles it separately)
        system_content, non_system_messages = self._extract_system(messages)
        anthropic_messages = self._convert_messages(non_system_messages)

        logger.debug(
            "Calling Anthropic: model=%s, messages=%d", self._model, len(messages)
        )

        labels = {"provider": "anthropic", "model": self._model}
        try:
            raw = await self._call_api(
                system=system_content,
                messages=anthropic_messages,
                temperature=temperature,
                max_tokens=max_tokens or DEFAULT_MAX_TOKENS,
            )
        except APIConnectionError as exc:
            self.metrics_hook.increment(names.LLM_ERRORS_TOTAL, labels=labels)
            logger.error("Anthropic unreachable: %s", exc)
            raise AssistantNetworkError() from exc
        except APIStatusError as exc:
            self.metrics_hook.increment(names.LLM_ERRORS_TOTAL, labels=labels)
            logger.error("Anthropic error: status=%s, %s", exc.status_code, exc)
            raise AssistantError.from_status(exc.status_code) from exc

        elapsed_ms = 1000 * (monotonic() - start)

        # Normalize immediately - provider objects never escape
        response = self._normalize_response(raw, elapsed_ms)

        self.metrics_hook.record_latency(names.LLM_COMPLETION_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.LLM_REQUESTS_TOTAL, labels=labels)
        self.metrics_hook.increment(names.LLM_TOKENS_TOTAL, response.usage.total_tokens)

        logger.info(
            "Anthropic completion: finish=%s, tokens=%d, latency=%.0fms",
            response.finish_reason,
            response.usage.total_tokens,
            elapsed_ms,
        )

        return response

    async def _call_api(
        self,
        *,
        system: str | None,
        messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int,
    ) -> Any:
        """Call Anthropic API with transport-only retries."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await self._client.messages.create(
                    model=self._model,
                    messages=messages,  # type: ignore[arg-type]
                    temperature=temperature,
                    max_tokens=max_tokens,
                    system=system if system else NOT_GIVEN,
                )

    def _extract_system(
        self, messages: list[Message]
    ) -> tuple[str | None, list[Message]]:
        """Split off the system prompt; several system messages are joined."""
        system_parts = [m.content for m in messages if m.role == Role.SYSTEM]
        non_system = [m for m in messages if m.role != Role.SYSTEM]
        return ("\n\n".join(system_parts) if system_parts else None), non_system

    def _convert_messages(self, messages: list[Message]) -> list[dict]:
        return [{"role": m.role.value, "content": m.content} for m in messages]

    def _normalize_response(self, raw: Any, latency_ms: float) -> LLMResponse:
        """Normalize Anthropic response to LLMResponse.

        This is the boundary. Raw provider objects stop here.
        """
        text_parts = [block.text for block in raw.content if block.type == "text"]

        finish_reason: Literal["stop", "length", "error"]
        if raw.stop_reason == "end_turn":
            finish_reason = "stop"
        elif raw.stop_reason == "max_tokens":
            finish_reason = "length"
        else:
            finish_reason = "error"

        return LLMResponse(
            content="".join(text_parts) if text_parts else None,
            finish_reason=finish_reason,
            usage=Usage(
                prompt_tokens=raw.usage.input_tokens,
                completion_tokens=raw.usage.output_tokens,
                total_tokens=raw.usage.input_tokens + raw.usage.output_tokens,
            ),
            latency_ms=latency_ms,
        )
