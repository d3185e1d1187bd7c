# src/narrator_kit/config.py

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Literal, get_args

from .errors import UsageError

logger = logging.getLogger(__name__)

Sensitivity = Literal["low", "medium", "high"]

DEFAULT_SENSITIVITY_THRESHOLDS: dict[str, float] = {
    "low": 0.8,
    "medium": 0.6,
    "high": 0.4,
}


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the indexing and transcript engines.

    Immutable. Explicit. No magic defaults from environment.
    The host's settings layer supplies values by value through
    `from_settings`; nothing here is persisted.
    """

    languages: tuple[str, ...] = ("it", "en")
    sensitivity: Sensitivity = "medium"
    max_index_size: int = 5000
    scene_match_threshold: float = 0.3
    sensitivity_thresholds: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_SENSITIVITY_THRESHOLDS)
    )
    scene_history_size: int = 20
    chapter_history_size: int = 20
    session_history_size: int = 100
    timeline_bucket_size: float = 60.0
    conversation_history_size: int = 20
    max_context_chars: int = 32000
    rules_result_limit: int = 5

    def __post_init__(self) -> None:
        if self.sensitivity not in get_args(Sensitivity):
            raise UsageError(f"Unknown sensitivity: {self.sensitivity}")
        if self.max_index_size <= 0:
            raise UsageError("max_index_size must be > 0")
        if not 0.0 <= self.scene_match_threshold <= 1.0:
            raise UsageError("scene_match_threshold must be within [0, 1]")
        if self.timeline_bucket_size <= 0:
            raise UsageError("timeline_bucket_size must be > 0")

    def threshold_for(self, sensitivity: str | None = None) -> float:
        """Minimum transition confidence for a sensitivity level."""
        level = sensitivity or self.sensitivity
        return self.sensitivity_thresholds.get(
            level, self.sensitivity_thresholds["medium"]
        )

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "EngineConfig":
        """Build a config from named host settings.

        Unknown keys are ignored and missing keys keep their defaults.
        A single `language` string is accepted in place of `languages`.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in settings.items():
            if key == "language" and isinstance(value, str):
                values["languages"] = (value,)
            elif key == "languages":
                values["languages"] = tuple(value)
            elif key in known:
                values[key] = value
            else:
                logger.debug("Ignoring unknown setting: %s", key)
        return cls(**values)
