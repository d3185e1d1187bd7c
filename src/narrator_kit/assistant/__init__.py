# src/narrator_kit/assistant/__init__.py

from .assistant import (
    LANGUAGE_NAMES,
    SENSITIVITY_GUIDES,
    NarrativeAssistant,
    detect_languages,
)
from .models import (
    ContextAnalysis,
    DialogueOption,
    NpcDialogue,
    OffTrackStatus,
    Suggestion,
    SuggestionType,
)
from .parsing import (
    extract_json,
    parse_analysis,
    parse_npc_dialogue,
    parse_off_track,
    parse_suggestions,
    validate_array,
    validate_number,
    validate_string,
)

__all__ = [
    # Orchestration
    "NarrativeAssistant",
    "detect_languages",
    "LANGUAGE_NAMES",
    "SENSITIVITY_GUIDES",
    # Models
    "ContextAnalysis",
    "DialogueOption",
    "NpcDialogue",
    "OffTrackStatus",
    "Suggestion",
    "SuggestionType",
    # Parsing
    "extract_json",
    "parse_analysis",
    "parse_npc_dialogue",
    "parse_off_track",
    "parse_suggestions",
    "validate_array",
    "validate_number",
    "validate_string",
]
