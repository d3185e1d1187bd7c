# src/narrator_kit/assistant/parsing.py

"""Lenient parsing of AI collaborator responses.

Responses are expected to carry a JSON payload, optionally inside a fenced
code block. Nothing here raises: a response that cannot be read degrades to
a low-confidence fallback built from the raw text, and every field taken
from the payload is coerced, clamped and length-limited.
"""

import json
import logging
import math
import re
from typing import Any, get_args

from narrator_kit.observability import names
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook

from .models import (
    ContextAnalysis,
    DialogueOption,
    NpcDialogue,
    OffTrackStatus,
    Suggestion,
    SuggestionType,
)

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 5000
MAX_REASON_LENGTH = 1000
MAX_SUMMARY_LENGTH = 2000
MAX_REFERENCE_LENGTH = 200
MAX_SUGGESTIONS = 10
MAX_RELEVANT_PAGES = 20
FALLBACK_SUMMARY_LENGTH = 200

ANALYSIS_FALLBACK_CONFIDENCE = 0.5
SUGGESTIONS_FALLBACK_CONFIDENCE = 0.3
DIALOGUE_FALLBACK_CONFIDENCE = 0.3
OFF_TRACK_PARSE_ERROR_REASON = "Unable to read the off-track analysis"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_BRACED_OBJECT = re.compile(r"\{[\s\S]*\}")
_SUGGESTION_TYPES = set(get_args(SuggestionType))


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


def extract_json(content: str) -> str:
    """The JSON text inside a response.

    A fenced code block wins, then the outermost brace-delimited span,
    otherwise the content is returned unchanged.
    """
    fenced = _FENCED_BLOCK.search(content)
    if fenced:
        return fenced.group(1).strip()
    braced = _BRACED_OBJECT.search(content)
    if braced:
        return braced.group(0)
    return content


def validate_string(value: Any, max_length: int, field: str = "value") -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = value if isinstance(value, str) else str(value)
    if len(text) > max_length:
        logger.warning(
            "Truncating %s from %d to %d characters", field, len(text), max_length
        )
        text = text[:max_length]
    return text


def validate_number(
    value: Any, minimum: float, maximum: float, field: str = "value"
) -> float:
    """Coerce to a float within [minimum, maximum].

    Missing or non-numeric values become `minimum`; infinities clamp.
    """
    if isinstance(value, bool) or value is None:
        return minimum
    try:
        number = float(value)
    except OverflowError:
        logger.warning("Clamping out-of-range %s", field)
        return maximum if value > 0 else minimum
    except (TypeError, ValueError):
        logger.warning("Non-numeric %s: %r", field, value)
        return minimum
    if math.isnan(number):
        logger.warning("NaN %s", field)
        return minimum
    if number < minimum or number > maximum:
        logger.warning("Clamping %s=%s to [%s, %s]", field, number, minimum, maximum)
    return min(max(number, minimum), maximum)


def validate_array(value: Any, max_items: int, field: str = "value") -> list:
    if not isinstance(value, list):
        if value is not None:
            logger.warning("Expected a list for %s, got %s", field, type(value).__name__)
        return []
    if len(value) > max_items:
        logger.warning("Truncating %s from %d to %d items", field, len(value), max_items)
        return value[:max_items]
    return list(value)


def _load_object(content: str) -> dict[str, Any] | None:
    try:
        payload = json.loads(extract_json(content or "{}"))
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def _get(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def _suggestion(data: Any) -> Suggestion | None:
    if not isinstance(data, dict):
        return None
    kind = data.get("type")
    reference = _get(data, "page_reference", "pageReference")
    return Suggestion(
        type=kind if isinstance(kind, str) and kind in _SUGGESTION_TYPES else "narration",
        content=validate_string(data.get("content"), MAX_CONTENT_LENGTH, "content"),
        page_reference=(
            validate_string(reference, MAX_REFERENCE_LENGTH, "page_reference")
            if reference is not None
            else None
        ),
        confidence=validate_number(
            data.get("confidence", ANALYSIS_FALLBACK_CONFIDENCE), 0.0, 1.0, "confidence"
        ),
    )


def _suggestions(value: Any, max_items: int) -> list[Suggestion]:
    suggestions = []
    for item in validate_array(value, max_items, "suggestions"):
        suggestion = _suggestion(item)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions


def _off_track(data: Any) -> OffTrackStatus:
    if not isinstance(data, dict):
        return OffTrackStatus()
    bridge = _get(data, "narrative_bridge", "narrativeBridge")
    return OffTrackStatus(
        is_off_track=bool(_get(data, "is_off_track", "isOffTrack")),
        severity=validate_number(data.get("severity"), 0.0, 1.0, "severity"),
        reason=validate_string(data.get("reason"), MAX_REASON_LENGTH, "reason"),
        narrative_bridge=(
            validate_string(bridge, MAX_CONTENT_LENGTH, "narrative_bridge")
            if bridge
            else None
        ),
    )


def parse_analysis(
    content: str, metrics_hook: MetricsHook = NoOpMetricsHook()
) -> ContextAnalysis:
    payload = _load_object(content)
    if payload is None:
        logger.warning("Analysis response is not JSON, using the raw text")
        metrics_hook.increment(
            names.ASSISTANT_PARSE_FALLBACKS_TOTAL, labels={"operation": "analysis"}
        )
        text = validate_string(content, MAX_CONTENT_LENGTH, "content")
        return ContextAnalysis(
            suggestions=[
                Suggestion(
                    type="narration",
                    content=text,
                    confidence=ANALYSIS_FALLBACK_CONFIDENCE,
                )
            ],
            summary=text[:FALLBACK_SUMMARY_LENGTH],
        )

    pages = validate_array(
        _get(payload, "relevant_pages", "relevantPages"), MAX_RELEVANT_PAGES, "relevant_pages"
    )
    return ContextAnalysis(
        suggestions=_suggestions(payload.get("suggestions"), MAX_SUGGESTIONS),
        off_track_status=_off_track(_get(payload, "off_track_status", "offTrackStatus")),
        relevant_pages=[
            validate_string(page, MAX_REFERENCE_LENGTH, "relevant_page")
            for page in pages
            if page is not None
        ],
        summary=validate_string(payload.get("summary"), MAX_SUMMARY_LENGTH, "summary"),
    )


def parse_suggestions(
    content: str,
    max_suggestions: int = 3,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> list[Suggestion]:
    payload = _load_object(content)
    if payload is None:
        logger.warning("Suggestions response is not JSON, using the raw text")
        metrics_hook.increment(
            names.ASSISTANT_PARSE_FALLBACKS_TOTAL, labels={"operation": "suggestions"}
        )
        return [
            Suggestion(
                type="narration",
                content=validate_string(content, MAX_CONTENT_LENGTH, "content"),
                confidence=SUGGESTIONS_FALLBACK_CONFIDENCE,
            )
        ]
    return _suggestions(payload.get("suggestions"), max(0, max_suggestions))


def parse_off_track(
    content: str, metrics_hook: MetricsHook = NoOpMetricsHook()
) -> OffTrackStatus:
    payload = _load_object(content)
    if payload is None:
        logger.warning("Off-track response is not JSON, assuming on track")
        metrics_hook.increment(
            names.ASSISTANT_PARSE_FALLBACKS_TOTAL, labels={"operation": "off_track"}
        )
        return OffTrackStatus(reason=OFF_TRACK_PARSE_ERROR_REASON)
    return _off_track(payload)


def parse_npc_dialogue(
    content: str,
    npc_name: str,
    max_options: int = 3,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> NpcDialogue:
    payload = _load_object(content)
    if payload is None:
        logger.warning("Dialogue response is not JSON, using the raw text")
        metrics_hook.increment(
            names.ASSISTANT_PARSE_FALLBACKS_TOTAL, labels={"operation": "npc_dialogue"}
        )
        return NpcDialogue(
            npc_name=npc_name,
            options=[
                DialogueOption(
                    text=validate_string(content, MAX_CONTENT_LENGTH, "text"),
                    confidence=DIALOGUE_FALLBACK_CONFIDENCE,
                )
            ],
        )

    options = []
    for item in validate_array(payload.get("options"), max(0, max_options), "options"):
        if isinstance(item, str):
            item = {"text": item}
        if not isinstance(item, dict):
            continue
        text = validate_string(item.get("text"), MAX_CONTENT_LENGTH, "text")
        if not text:
            continue
        options.append(
            DialogueOption(
                text=text,
                tone=validate_string(item.get("tone"), MAX_REFERENCE_LENGTH, "tone"),
                confidence=validate_number(
                    item.get("confidence", ANALYSIS_FALLBACK_CONFIDENCE),
                    0.0,
                    1.0,
                    "confidence",
                ),
            )
        )
    return NpcDialogue(npc_name=npc_name, options=options)
