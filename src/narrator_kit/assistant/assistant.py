# src/narrator_kit/assistant/assistant.py

import logging
import re
from collections import deque
from typing import Any

from narrator_kit.config import EngineConfig
from narrator_kit.errors import AssistantError, UsageError
from narrator_kit.llms.base import LLMClient, Message, Role
from narrator_kit.observability import names
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook, measure
from narrator_kit.prompts import PromptsLibrary

from .models import ContextAnalysis, NpcDialogue, OffTrackStatus, Suggestion
from .parsing import (
    parse_analysis,
    parse_npc_dialogue,
    parse_off_track,
    parse_suggestions,
)

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "it"
HISTORY_IN_PROMPT = 5
CONTEXT_TRUNCATION_MARKER = "\n\n[... content truncated ...]"
NO_CONTEXT_REASON = "No adventure context available"

SENSITIVITY_GUIDES = {
    "low": (
        "Be tolerant of minor deviations; only report when the players "
        "leave the story completely."
    ),
    "medium": (
        "Balance tolerance for improvisation with adherence to the main plot."
    ),
    "high": (
        "Watch every deviation from the plot closely and report even minor "
        "variations."
    ),
}

LANGUAGE_NAMES = {
    "it": "Italian",
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "pt": "Portuguese",
    "pl": "Polish",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "nl": "Dutch",
    "sv": "Swedish",
    "da": "Danish",
    "no": "Norwegian",
    "fi": "Finnish",
    "tr": "Turkish",
    "cs": "Czech",
    "hu": "Hungarian",
    "ro": "Romanian",
}

ANALYSIS_FORMATS = {
    (True, True): """Answer in JSON with this structure:
{
  "suggestions": [{"type": "narration|dialogue|action|reference", "content": "...", "confidence": 0.0-1.0}],
  "off_track_status": {"is_off_track": boolean, "severity": 0.0-1.0, "reason": "..."},
  "relevant_pages": ["..."],
  "summary": "..."
}""",
    (True, False): """Give suggestions for the DM in JSON:
{
  "suggestions": [{"type": "narration|dialogue|action|reference", "content": "...", "confidence": 0.0-1.0}],
  "summary": "..."
}""",
    (False, True): """Judge whether the players are off track, in JSON:
{
  "off_track_status": {"is_off_track": boolean, "severity": 0.0-1.0, "reason": "..."},
  "summary": "..."
}""",
    (False, False): """Summarise the situation in JSON:
{
  "summary": "..."
}""",
}

_LANGUAGE_LABEL = re.compile(r"\(([a-z]{2,3})\):", re.IGNORECASE)


def detect_languages(transcription: str) -> list[str]:
    """Language codes from `Speaker (xx):` labels, in order of first use."""
    languages: list[str] = []
    for match in _LANGUAGE_LABEL.finditer(transcription):
        code = match.group(1).lower()
        if code not in languages:
            languages.append(code)
    return languages


class NarrativeAssistant:
    """Contextual help for the game master, backed by an LLM.

    Assembles prompts from the adventure context, the current chapter and a
    short conversation history; parses the answers leniently. Transport
    failures surface as `AssistantError`; unreadable answers never raise.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        config: EngineConfig = EngineConfig(),
        prompts: PromptsLibrary | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> None:
        self._llm = llm_client
        self._prompts = prompts or PromptsLibrary()
        self.metrics_hook = metrics_hook
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._max_context_chars = config.max_context_chars
        self._sensitivity: str = config.sensitivity
        self._primary_language = DEFAULT_LANGUAGE
        self._adventure_context = ""
        self._chapter_context = ""
        self._history: deque[Message] = deque(maxlen=config.conversation_history_size)
        self._analyses_count = 0

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    @property
    def adventure_context(self) -> str:
        return self._adventure_context

    def set_adventure_context(self, context: str | None) -> None:
        self._adventure_context = context or ""

    @property
    def chapter_context(self) -> str:
        return self._chapter_context

    def set_chapter_context(self, context: str | None) -> None:
        self._chapter_context = context or ""

    @property
    def primary_language(self) -> str:
        return self._primary_language

    def set_primary_language(self, language: str | None) -> None:
        self._primary_language = language or DEFAULT_LANGUAGE

    @property
    def sensitivity(self) -> str:
        return self._sensitivity

    def set_sensitivity(self, sensitivity: str) -> None:
        if sensitivity not in SENSITIVITY_GUIDES:
            logger.warning("Unknown sensitivity: %s", sensitivity)
            return
        self._sensitivity = sensitivity

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def analyze_context(
        self,
        transcription: str,
        include_suggestions: bool = True,
        check_off_track: bool = True,
    ) -> ContextAnalysis:
        _require_text(transcription, "transcription")
        logger.info("Analyzing context, transcription length: %d", len(transcription))

        request = self._prompts.render(
            "analysis",
            transcription=transcription,
            language_note=self._language_note(transcription, detailed=True),
            response_format=ANALYSIS_FORMATS[(include_suggestions, check_off_track)],
        )
        content = await self._complete(
            "analysis", self._build_messages(request, with_history=True)
        )
        analysis = parse_analysis(content, self.metrics_hook)

        self._history.append(Message(role=Role.USER, content=transcription))
        self._history.append(
            Message(role=Role.ASSISTANT, content=analysis.model_dump_json())
        )
        self._analyses_count += 1

        logger.info("Analysis complete, %d suggestions", len(analysis.suggestions))
        return analysis

    async def detect_off_track(self, transcription: str) -> OffTrackStatus:
        if not self._adventure_context:
            logger.warning("No adventure context set, skipping off-track detection")
            return OffTrackStatus(reason=NO_CONTEXT_REASON)
        _require_text(transcription, "transcription")
        logger.info("Checking off-track status")

        request = self._prompts.render(
            "off_track",
            transcription=transcription,
            language_note=self._language_note(transcription),
        )
        content = await self._complete("off_track", self._build_messages(request))
        return parse_off_track(content, self.metrics_hook)

    async def generate_suggestions(
        self, transcription: str, max_suggestions: int = 3
    ) -> list[Suggestion]:
        _require_text(transcription, "transcription")
        logger.info("Generating suggestions")

        request = self._prompts.render(
            "suggestions",
            transcription=transcription,
            max_suggestions=max_suggestions,
            language_note=self._language_note(transcription),
        )
        content = await self._complete("suggestions", self._build_messages(request))
        return parse_suggestions(content, max_suggestions, self.metrics_hook)

    async def generate_narrative_bridge(
        self, current_situation: str, target_scene: str
    ) -> str:
        _require_text(current_situation, "current_situation")
        _require_text(target_scene, "target_scene")
        logger.info("Generating narrative bridge")

        request = self._prompts.render(
            "narrative_bridge",
            current_situation=current_situation,
            target_scene=target_scene,
        )
        content = await self._complete(
            "narrative_bridge", self._build_messages(request)
        )
        return content.strip()

    async def generate_npc_dialogue(
        self,
        npc_name: str,
        npc_context: str,
        situation: str,
        max_options: int = 3,
    ) -> NpcDialogue:
        _require_text(npc_name, "npc_name")
        logger.info("Generating dialogue for %s", npc_name)

        request = self._prompts.render(
            "npc_dialogue",
            npc_name=npc_name,
            npc_context=self._truncate(npc_context or ""),
            situation=situation or "",
            max_options=max_options,
        )
        content = await self._complete("npc_dialogue", self._build_messages(request))
        return parse_npc_dialogue(content, npc_name, max_options, self.metrics_hook)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_history(self, limit: int | None = None) -> list[Message]:
        history = list(self._history)
        if limit and limit > 0:
            return history[-limit:]
        return history

    def clear_history(self) -> None:
        self._history.clear()

    def reset_session(self) -> None:
        self._history.clear()
        self._analyses_count = 0

    def stats(self) -> dict[str, Any]:
        return {
            "sensitivity": self._sensitivity,
            "primary_language": self._primary_language,
            "has_context": bool(self._adventure_context),
            "context_length": len(self._adventure_context),
            "has_chapter_context": bool(self._chapter_context),
            "history_size": len(self._history),
            "analyses": self._analyses_count,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _system_prompt(self) -> str:
        return self._prompts.render(
            "system",
            response_language=LANGUAGE_NAMES.get(
                self._primary_language, LANGUAGE_NAMES[DEFAULT_LANGUAGE]
            ),
            sensitivity_guide=SENSITIVITY_GUIDES[self._sensitivity],
        )

    def _language_note(self, transcription: str, detailed: bool = False) -> str:
        """Note for a mixed-language transcription.

        A single labelled language becomes the primary language instead.
        """
        languages = detect_languages(transcription)
        if len(languages) == 1:
            self._primary_language = languages[0]
            return ""
        if len(languages) > 1:
            note = (
                f"NOTE: This transcription contains several languages "
                f"({', '.join(languages)}). Language labels follow the speaker "
                f'name in parentheses (e.g. "Speaker (en):").'
            )
            if detailed:
                note += (
                    " Answer in the primary language identified or in a "
                    "suitable mix of the languages used."
                )
            return note + "\n\n"
        return ""

    def _build_messages(self, request: str, with_history: bool = False) -> list[Message]:
        # The request is rendered first so a detected language reaches the system prompt.
        messages = [Message(role=Role.SYSTEM, content=self._system_prompt())]
        if self._adventure_context:
            messages.append(
                Message(
                    role=Role.SYSTEM,
                    content=f"ADVENTURE CONTEXT:\n{self._truncate(self._adventure_context)}",
                )
            )
        if self._chapter_context:
            messages.append(
                Message(
                    role=Role.SYSTEM,
                    content=f"CHAPTER CONTEXT:\n{self._truncate(self._chapter_context)}",
                )
            )
        if with_history:
            messages.extend(list(self._history)[-HISTORY_IN_PROMPT:])
        messages.append(Message(role=Role.USER, content=request))
        return messages

    def _truncate(self, context: str) -> str:
        if len(context) <= self._max_context_chars:
            return context
        return context[: self._max_context_chars] + CONTEXT_TRUNCATION_MARKER

    async def _complete(self, operation: str, messages: list[Message]) -> str:
        labels = {"operation": operation}
        self.metrics_hook.increment(names.ASSISTANT_REQUESTS_TOTAL, labels=labels)
        try:
            with measure(self.metrics_hook, names.ASSISTANT_REQUEST_DURATION, labels):
                response = await self._llm.complete(
                    messages=messages,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                )
        except AssistantError as exc:
            self.metrics_hook.increment(names.ASSISTANT_ERRORS_TOTAL, labels=labels)
            logger.error("Assistant %s failed: %s", operation, exc)
            raise
        return response.content or ""


def _require_text(value: Any, field: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise UsageError(f"{field} must be a non-empty string")
