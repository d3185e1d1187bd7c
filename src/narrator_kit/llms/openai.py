# src/narrator_kit/llms/openai.py

import logging
from time import monotonic
from typing import Any, Literal

from openai import (
    NOT_GIVEN,
    APIConnectionError,
    APIStatusError,
    AsyncOpenAI,
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

from .base import LLMClient, LLMResponse, Message, Usage

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


class OpenAILLMClient(LLMClient):
    """OpenAI LLM client.

    Stateless. Transport-only retries. Provider errors are translated into
    `AssistantError` / `AssistantNetworkError` at this boundary.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        max_retries: int = 3,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ):
        # Retries are owned by tenacity below, not by the SDK.
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._model = model
        self._max_retries = max_retries
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized OpenAILLMClient with model=%s, timeout=%s",
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

        # Convert to provider format (internal only - never leaks)
        openai_messages = self._convert_messages(messages)

        logger.debug(
            "Calling OpenAI: model=%s, messages=%d", self._model, len(messages)
        )

        labels = {"provider": "openai", "model": self._model}
        try:
            raw = await self._call_api(
                messages=openai_messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except APIConnectionError as exc:
            self.metrics_hook.increment(names.LLM_ERRORS_TOTAL, labels=labels)
            logger.error("OpenAI unreachable: %s", exc)
            raise AssistantNetworkError() from exc
        except APIStatusError as exc:
            self.metrics_hook.increment(names.LLM_ERRORS_TOTAL, labels=labels)
            logger.error("OpenAI error: status=%s, %s", exc.status_code, exc)
            raise AssistantError.from_status(exc.status_code) from exc

        elapsed_ms = 1000 * (monotonic() - start)

        # Normalize immediately - provider objects never escape
        response = self._normalize_response(raw, elapsed_ms)

        # Metrics
        self.metrics_hook.record_latency(names.LLM_COMPLETION_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.LLM_REQUESTS_TOTAL, labels=labels)
        self.metrics_hook.increment(
            names.LLM_TOKENS_PROMPT, response.usage.prompt_tokens
        )
        self.metrics_hook.increment(
            names.LLM_TOKENS_COMPLETION, response.usage.completion_tokens
        )
        self.metrics_hook.increment(names.LLM_TOKENS_TOTAL, response.usage.total_tokens)

        logger.info(
            "OpenAI completion: finish=%s, tokens=%d, latency=%.0fms",
            response.finish_reason,
            response.usage.total_tokens,
            elapsed_ms,
        )

        return response

    async def _call_api(
        self,
        *,
        messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int | None,
    ) -> Any:
        """Call OpenAI API with transport-only retries."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,  # type: ignore[arg-type]
                    temperature=temperature,
                    max_tokens=max_tokens if max_tokens else NOT_GIVEN,  # type: ignore[arg-type]
                )

    def _convert_messages(self, messages: list[Message]) -> list[dict]:
        """Convert Message objects to OpenAI format.

        Internal only. Provider format never leaks outside.
        """
        return [{"role": m.role.value, "content": m.content} for m in messages]

    def _normalize_response(self, raw: Any, latency_ms: float) -> LLMResponse:
        """Normalize OpenAI response to LLMResponse.

        This is the boundary. Raw provider objects stop here.
        """
        choice = raw.choices[0]

        finish_reason: Literal["stop", "length", "error"]
        if choice.finish_reason == "stop":
            finish_reason = "stop"
        elif choice.finish_reason == "length":
            finish_reason = "length"
        else:
            finish_reason = "error"

        return LLMResponse(
            content=choice.message.content,
            finish_reason=finish_reason,
            usage=Usage(
                prompt_tokens=raw.usage.prompt_tokens,
                completion_tokens=raw.usage.completion_tokens,
                total_tokens=raw.usage.total_tokens,
            ),
            latency_ms=latency_ms,
        )
