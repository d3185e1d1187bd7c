# src/narrator_kit/detection/models.py

from dataclasses import dataclass
from enum import Enum


class SceneType(str, Enum):
    EXPLORATION = "exploration"
    COMBAT = "combat"
    SOCIAL = "social"
    REST = "rest"
    UNKNOWN = "unknown"


class TransitionKind(str, Enum):
    LOCATION = "location"
    TIME = "time"
    COMBAT = "combat"
    COMBAT_END = "combat_end"
    NONE = "none"


class QuestionType(str, Enum):
    MECHANIC = "mechanic"
    ACTION = "action"
    SPELL = "spell"
    GENERAL = "general"
    COMBAT = "combat"
    CONDITION = "condition"
    ABILITY = "ability"
    MOVEMENT = "movement"
    REST = "rest"


@dataclass(frozen=True)
class SceneTransition:
    detected: bool
    kind: TransitionKind
    confidence: float
    trigger: str
    scene_type: SceneType


@dataclass(frozen=True)
class SceneHistoryEntry:
    scene_type: SceneType
    timestamp: float
    text_snippet: str


@dataclass(frozen=True)
class DetectionFeatures:
    location: bool = True
    time: bool = True
    combat: bool = True


@dataclass(frozen=True)
class RulesDetectionResult:
    is_question: bool
    confidence: float
    detected_terms: tuple[str, ...]
    question_type: QuestionType
    extracted_topic: str | None
