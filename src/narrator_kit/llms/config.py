# src/narrator_kit/llms/config.py

from dataclasses import dataclass
from typing import Literal

from narrator_kit.errors import UsageError

Provider = Literal["openai", "anthropic"]


@dataclass(frozen=True)
class LLMConfig:
    """Connection settings for the AI collaborator behind the assistant.

    Immutable. Explicit. No magic defaults from environment.
    The model is always named by the host; only the API key may come from
    the provider's environment variable.
    """

    provider: Provider
    model: str
    api_key: str | None = None
    timeout: float = 30.0
    max_retries: int = 3

    def __post_init__(self) -> None:
        if not isinstance(self.model, str) or not self.model.strip():
            raise UsageError("model must be a non-empty string")
        if self.timeout <= 0:
            raise UsageError("timeout must be > 0")
        if self.max_retries < 0:
            raise UsageError("max_retries must be >= 0")
