# tests/unit/detection/test_rules_detector.py

from unittest.mock import MagicMock

import pytest

from narrator_kit.detection import QuestionType, RulesQuestionDetector
from narrator_kit.observability import names


@pytest.fixture
def detector() -> RulesQuestionDetector:
    return RulesQuestionDetector()


class TestDetect:
    def test_italian_how_does_it_work(self, detector: RulesQuestionDetector) -> None:
        """The topic keeps the leading article."""
        result = detector.detect("Come funziona il grappling?")

        assert result.is_question
        assert result.confidence == 1.0
        assert result.question_type is QuestionType.COMBAT
        assert result.extracted_topic == "il grappling"
        assert "come_funziona" in result.detected_terms
        assert "grappling" in result.detected_terms

    def test_english_how_does_it_work(self, detector: RulesQuestionDetector) -> None:
        result = detector.detect("How does grappling work?")

        assert result.is_question
        assert result.extracted_topic == "grappling"
        assert result.question_type is QuestionType.COMBAT

    def test_action_question(self, detector: RulesQuestionDetector) -> None:
        result = detector.detect("Posso attaccare due volte?")

        assert result.is_question
        assert result.question_type is QuestionType.ACTION
        assert result.confidence == pytest.approx(0.9)
        assert result.extracted_topic == "attaccare due volte"

    def test_mechanic_term_alone(self, detector: RulesQuestionDetector) -> None:
        result = detector.detect("Il vantaggio conta")

        assert result.is_question
        assert result.confidence == pytest.approx(0.6)
        assert result.question_type is QuestionType.COMBAT
        assert result.extracted_topic == "vantaggio"

    def test_plain_narration(self, detector: RulesQuestionDetector) -> None:
        result = detector.detect("Il drago sorvola la valle.")

        assert not result.is_question
        assert result.confidence == 0.0
        assert result.detected_terms == ()
        assert result.question_type is QuestionType.GENERAL

    @pytest.mark.parametrize("text", ["", "  ", None])
    def test_invalid_text(self, detector: RulesQuestionDetector, text: object) -> None:
        result = detector.detect(text)  # type: ignore[arg-type]

        assert not result.is_question
        assert result.extracted_topic is None

    def test_confidence_is_capped(self, detector: RulesQuestionDetector) -> None:
        result = detector.detect("Come funziona la lotta con vantaggio?")

        assert result.confidence <= 1.0

    def test_reports_metric(self) -> None:
        hook = MagicMock()
        detector = RulesQuestionDetector(metrics_hook=hook)

        detector.detect("How does grappling work?")

        hook.increment.assert_called_once_with(
            names.RULES_QUESTIONS_TOTAL, labels={"type": "combat"}
        )


class TestHelpers:
    def test_extract_topic(self, detector: RulesQuestionDetector) -> None:
        assert detector.extract_topic("Cosa succede se cado prono?") == "cado prono"
        assert detector.extract_topic("") is None

    def test_is_known_mechanic(self, detector: RulesQuestionDetector) -> None:
        assert detector.is_known_mechanic("Grappling")
        assert detector.is_known_mechanic("lotta")
        assert not detector.is_known_mechanic("flying")
        assert not detector.is_known_mechanic(None)  # type: ignore[arg-type]


class TestMonotonicity:
    @pytest.mark.parametrize(
        "text",
        [
            "Come funziona il vantaggio?",
            "How does grappling work?",
            "Il drago sorvola la valle.",
            "Tiriamo i dadi",
            "",
        ],
    )
    @pytest.mark.parametrize("term", ["lotta", "grappling", "saving throw"])
    def test_mechanic_term_never_lowers_confidence(
        self, detector: RulesQuestionDetector, text: str, term: str
    ) -> None:
        before = detector.detect(text)
        after = detector.detect(f"{text} {term}")

        assert after.confidence >= before.confidence
        assert term in after.detected_terms
