# src/narrator_kit/llms/__init__.py

"""LLM transport for the narrative assistant.

Provides a thin, stateless abstraction over LLM providers.

Design principles:
- Stateless: Every call receives full message list
- Transport only: Retries only on network/rate-limit/server errors
- No leakage: Provider objects and exceptions never escape the adapter

Example:
    >>> from narrator_kit.llms import create_llm_client, LLMConfig, Message, Role
    >>>
    >>> config = LLMConfig(provider="openai", model="gpt-4o-mini")
    >>> client = create_llm_client(config)
    >>>
    >>> response = await client.complete(
    ...     messages=[Message(role=Role.USER, content="Hello!")]
    ... )
    >>> print(response.content)
"""

from .base import LLMClient, LLMResponse, Message, Role, Usage
from .config import LLMConfig
from .factory import create_llm_client

__all__ = [
    # Factory
    "create_llm_client",
    # Protocol
    "LLMClient",
    # Config
    "LLMConfig",
    # Types
    "Message",
    "Role",
    "LLMResponse",
    "Usage",
]
