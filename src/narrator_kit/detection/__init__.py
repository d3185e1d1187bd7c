from .models import (
    DetectionFeatures,
    QuestionType,
    RulesDetectionResult,
    SceneHistoryEntry,
    SceneTransition,
    SceneType,
    TransitionKind,
)
from .rules_detector import RulesQuestionDetector
from .scene_detector import SceneTransitionDetector

__all__ = [
    # Detectors
    "RulesQuestionDetector",
    "SceneTransitionDetector",
    # Types
    "DetectionFeatures",
    "QuestionType",
    "RulesDetectionResult",
    "SceneHistoryEntry",
    "SceneTransition",
    "SceneType",
    "TransitionKind",
]
