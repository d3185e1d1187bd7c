# src/narrator_kit/detection/scene_detector.py

import logging
import re
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from narrator_kit.config import EngineConfig
from narrator_kit.lexicon.lexicon import Lexicon, load_lexicon
from narrator_kit.observability import names
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook

from .models import (
    DetectionFeatures,
    SceneHistoryEntry,
    SceneTransition,
    SceneType,
    TransitionKind,
)

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 100
MIN_SCENE_TYPE_SCORE = 0.5


@dataclass(frozen=True)
class _CompiledPattern:
    regex: re.Pattern
    scene_type: SceneType
    weight: float


class SceneTransitionDetector:
    """Detects scene changes in transcript text and tracks the scene type.

    Pattern families are checked in order (location, time, combat, and
    combat end while in combat). Each family contributes its heaviest
    match; the most confident contribution is accepted when it reaches the
    sensitivity threshold.
    """

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        config: EngineConfig = EngineConfig(),
        metrics_hook: MetricsHook = NoOpMetricsHook(),
        clock: Callable[[], float] = time.time,
    ) -> None:
        lexicon = lexicon or load_lexicon(config.languages)
        self._families = {
            kind: _compile_family(lexicon, kind.value)
            for kind in (
                TransitionKind.LOCATION,
                TransitionKind.TIME,
                TransitionKind.COMBAT,
                TransitionKind.COMBAT_END,
            )
        }
        self._keywords = {
            SceneType(scene_type): [
                (re.compile(k.pattern, re.IGNORECASE), k.weight) for k in keywords
            ]
            for scene_type, keywords in lexicon.scene_keywords.items()
        }
        self._config = config
        self._sensitivity = config.sensitivity
        self._minimum_confidence = config.threshold_for(config.sensitivity)
        self._features = DetectionFeatures()
        self._current_scene_type = SceneType.UNKNOWN
        self._history: deque[SceneHistoryEntry] = deque(maxlen=config.scene_history_size)
        self._lock = threading.RLock()
        self._clock = clock
        self.metrics_hook = metrics_hook

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def sensitivity(self) -> str:
        return self._sensitivity

    @property
    def minimum_confidence(self) -> float:
        return self._minimum_confidence

    def set_sensitivity(self, sensitivity: str) -> None:
        if sensitivity not in self._config.sensitivity_thresholds:
            logger.warning("Ignoring unknown sensitivity: %r", sensitivity)
            return
        self._sensitivity = sensitivity
        self._minimum_confidence = self._config.threshold_for(sensitivity)

    @property
    def features(self) -> DetectionFeatures:
        return self._features

    def set_features(
        self,
        location: bool | None = None,
        time: bool | None = None,
        combat: bool | None = None,
    ) -> None:
        current = self._features
        self._features = DetectionFeatures(
            location=current.location if location is None else location,
            time=current.time if time is None else time,
            combat=current.combat if combat is None else combat,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current_scene_type(self) -> SceneType:
        return self._current_scene_type

    def set_current_scene_type(self, scene_type: SceneType | str) -> None:
        try:
            scene_type = SceneType(scene_type)
        except ValueError:
            logger.warning("Ignoring unknown scene type: %r", scene_type)
            return
        with self._lock:
            self._current_scene_type = scene_type
            self._push_history(scene_type, "")

    @property
    def history(self) -> list[SceneHistoryEntry]:
        return list(self._history)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
            self._current_scene_type = SceneType.UNKNOWN

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect_scene_transition(
        self, text: str, previous_text: str = ""
    ) -> SceneTransition:
        """Check `text` for a scene change and update the state on acceptance.

        `previous_text` only matters for transitions that do not imply a
        scene type (pure time skips): the prior text is classified and a
        known type is carried forward.
        """
        if not isinstance(text, str) or not text.strip():
            return self._not_detected(SceneType.UNKNOWN)

        with self._lock:
            candidates = []
            if self._features.location:
                candidates.append(self._check_family(text, TransitionKind.LOCATION))
            if self._features.time:
                candidates.append(self._check_family(text, TransitionKind.TIME))
            if self._features.combat:
                candidates.append(self._check_family(text, TransitionKind.COMBAT))
                if self._current_scene_type is SceneType.COMBAT:
                    candidates.append(self._check_family(text, TransitionKind.COMBAT_END))

            best = None
            for candidate in candidates:
                if candidate is not None and (
                    best is None or candidate.confidence > best.confidence
                ):
                    best = candidate

            if best is None or best.confidence < self._minimum_confidence:
                return self._not_detected(self._current_scene_type)

            if best.scene_type is SceneType.UNKNOWN and previous_text:
                carried = self.identify_scene_type(previous_text)
                if carried is not SceneType.UNKNOWN:
                    best = SceneTransition(
                        detected=True,
                        kind=best.kind,
                        confidence=best.confidence,
                        trigger=best.trigger,
                        scene_type=carried,
                    )

            self._push_history(best.scene_type, text)
            self._current_scene_type = best.scene_type

        self.metrics_hook.increment(
            names.SCENE_TRANSITIONS_TOTAL, labels={"kind": best.kind.value}
        )
        logger.info(
            "Scene transition: kind=%s, scene=%s, confidence=%.2f, trigger=%r",
            best.kind.value,
            best.scene_type.value,
            best.confidence,
            best.trigger,
        )
        return best

    def identify_scene_type(self, text: str) -> SceneType:
        """Classify text by keyword weights without touching the state."""
        if not isinstance(text, str) or not text:
            return SceneType.UNKNOWN

        best_type = SceneType.UNKNOWN
        best_score = 0.0
        for scene_type, keywords in self._keywords.items():
            score = sum(weight for regex, weight in keywords if regex.search(text))
            if score > best_score:
                best_type, best_score = scene_type, score

        if best_score < MIN_SCENE_TYPE_SCORE:
            return SceneType.UNKNOWN
        return best_type

    def _check_family(self, text: str, kind: TransitionKind) -> SceneTransition | None:
        best = None
        for pattern in self._families[kind]:
            match = pattern.regex.search(text)
            if match and (best is None or pattern.weight > best.confidence):
                best = SceneTransition(
                    detected=True,
                    kind=kind,
                    confidence=pattern.weight,
                    trigger=match.group(0),
                    scene_type=pattern.scene_type,
                )
        return best

    def _push_history(self, scene_type: SceneType, text: str) -> None:
        self._history.append(
            SceneHistoryEntry(
                scene_type=scene_type,
                timestamp=self._clock(),
                text_snippet=text[:SNIPPET_LENGTH],
            )
        )

    @staticmethod
    def _not_detected(scene_type: SceneType) -> SceneTransition:
        return SceneTransition(
            detected=False,
            kind=TransitionKind.NONE,
            confidence=0.0,
            trigger="",
            scene_type=scene_type,
        )


def _compile_family(lexicon: Lexicon, family: str) -> list[_CompiledPattern]:
    return [
        _CompiledPattern(
            regex=re.compile(p.pattern, re.IGNORECASE),
            scene_type=SceneType(p.scene_type),
            weight=p.weight,
        )
        for p in lexicon.scene_patterns.get(family, [])
    ]
