# src/narrator_kit/detection/rules_detector.py

import logging
import re
from dataclasses import dataclass

from narrator_kit.lexicon.lexicon import Lexicon, load_lexicon
from narrator_kit.observability import names
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook

from .models import QuestionType, RulesDetectionResult

logger = logging.getLogger(__name__)

MECHANIC_TERM_CONFIDENCE = 0.6
QUESTION_WORD_BOOST = 0.2
QUESTION_THRESHOLD = 0.3


@dataclass(frozen=True)
class _QuestionPattern:
    name: str
    regex: re.Pattern
    confidence: float
    type: QuestionType


class RulesQuestionDetector:
    """Recognizes rules questions ("how does grappling work?") in transcript text.

    Stateless per call. Question phrasings give a base confidence and a
    coarse type; a known mechanic term lifts confidence to at least 0.6
    and sets the specific category. A question word next to any detected
    term adds a small boost.
    """

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        lexicon = lexicon or load_lexicon()
        self._patterns = [
            _QuestionPattern(
                name=p.name,
                regex=re.compile(p.pattern, re.IGNORECASE),
                confidence=p.confidence,
                type=QuestionType(p.type),
            )
            for p in lexicon.rules.question_patterns
        ]
        self._mechanic_terms = {
            term.lower(): QuestionType(category)
            for term, category in lexicon.rules.mechanic_terms.items()
        }
        self._question_words = frozenset(lexicon.rules.question_words)
        self.metrics_hook = metrics_hook

    def detect(self, text: str) -> RulesDetectionResult:
        if not isinstance(text, str) or not text.strip():
            return RulesDetectionResult(
                is_question=False,
                confidence=0.0,
                detected_terms=(),
                question_type=QuestionType.GENERAL,
                extracted_topic=None,
            )

        normalized = text.lower().strip()
        detected_terms: list[str] = []
        confidence = 0.0
        topic: str | None = None
        pattern_type: QuestionType | None = None

        for pattern in self._patterns:
            match = pattern.regex.search(normalized)
            if not match:
                continue
            confidence = max(confidence, pattern.confidence)
            pattern_type = pattern.type
            if match.groups() and match.group(1):
                topic = match.group(1).strip()
            detected_terms.append(pattern.name)

        mechanic_type: QuestionType | None = None
        for term, category in self._mechanic_terms.items():
            if term not in normalized:
                continue
            detected_terms.append(term)
            confidence = max(confidence, MECHANIC_TERM_CONFIDENCE)
            mechanic_type = category
            if not topic:
                topic = term

        question_type = mechanic_type or pattern_type or QuestionType.GENERAL

        if detected_terms and self._has_question_word(normalized):
            confidence = min(confidence + QUESTION_WORD_BOOST, 1.0)

        result = RulesDetectionResult(
            is_question=confidence > QUESTION_THRESHOLD,
            confidence=min(confidence, 1.0),
            detected_terms=tuple(dict.fromkeys(detected_terms)),
            question_type=question_type,
            extracted_topic=topic,
        )
        if result.is_question:
            self.metrics_hook.increment(
                names.RULES_QUESTIONS_TOTAL, labels={"type": question_type.value}
            )
            logger.debug(
                "Rules question: type=%s, topic=%r, confidence=%.2f",
                question_type.value,
                topic,
                result.confidence,
            )
        return result

    def extract_topic(self, text: str) -> str | None:
        return self.detect(text).extracted_topic or None

    def is_known_mechanic(self, term: str) -> bool:
        if not isinstance(term, str):
            return False
        return term.lower().strip() in self._mechanic_terms

    def _has_question_word(self, text: str) -> bool:
        return any(word in self._question_words for word in text.split())
