# tests/unit/assistant/test_parsing.py

import json
from unittest.mock import MagicMock

import pytest

from narrator_kit.assistant import (
    extract_json,
    parse_analysis,
    parse_npc_dialogue,
    parse_off_track,
    parse_suggestions,
    validate_array,
    validate_number,
    validate_string,
)
from narrator_kit.assistant.parsing import OFF_TRACK_PARSE_ERROR_REASON
from narrator_kit.observability import names


class TestExtractJson:
    def test_fenced_block_wins(self) -> None:
        content = 'Here you go:\n```json\n{"summary": "ok"}\n```\nBye {x}'

        assert extract_json(content) == '{"summary": "ok"}'

    def test_fence_without_language(self) -> None:
        assert extract_json('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_outermost_braces(self) -> None:
        assert extract_json('Sure! {"a": {"b": 1}} done') == '{"a": {"b": 1}}'

    def test_plain_text_is_returned_unchanged(self) -> None:
        assert extract_json("no json here") == "no json here"


class TestValidators:
    def test_validate_string(self) -> None:
        assert validate_string(None, 10) == ""
        assert validate_string(True, 10) == "true"
        assert validate_string(42, 10) == "42"
        assert validate_string("abcdef", 3) == "abc"

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0.5, 0.5),
            ("0.7", 0.7),
            (1.5, 1.0),
            (-2, 0.0),
            (float("inf"), 1.0),
            (float("nan"), 0.0),
            ("high", 0.0),
            (None, 0.0),
            (True, 0.0),
            ([1], 0.0),
            (10**400, 1.0),
            (-(10**400), 0.0),
        ],
    )
    def test_validate_number(self, value: object, expected: float) -> None:
        assert validate_number(value, 0.0, 1.0) == expected

    def test_validate_array(self) -> None:
        assert validate_array("nope", 3) == []
        assert validate_array(None, 3) == []
        assert validate_array([1, 2, 3, 4], 2) == [1, 2]


class TestParseAnalysis:
    def test_full_payload(self) -> None:
        content = json.dumps(
            {
                "suggestions": [
                    {
                        "type": "dialogue",
                        "content": "The innkeeper greets you.",
                        "page_reference": "The Inn",
                        "confidence": 0.8,
                    }
                ],
                "off_track_status": {"is_off_track": True, "severity": 0.4, "reason": "Shopping"},
                "relevant_pages": ["The Inn", None],
                "summary": "The party rests.",
            }
        )

        analysis = parse_analysis(content)

        (suggestion,) = analysis.suggestions
        assert suggestion.type == "dialogue"
        assert suggestion.page_reference == "The Inn"
        assert suggestion.confidence == 0.8
        assert analysis.off_track_status.is_off_track
        assert analysis.off_track_status.severity == 0.4
        assert analysis.relevant_pages == ["The Inn"]
        assert analysis.summary == "The party rests."

    def test_camel_case_keys(self) -> None:
        content = (
            '{"offTrackStatus": {"isOffTrack": true, "severity": 2, '
            '"narrativeBridge": "A messenger arrives"}, "relevantPages": ["p1"]}'
        )

        analysis = parse_analysis(content)

        assert analysis.off_track_status.is_off_track
        assert analysis.off_track_status.severity == 1.0
        assert analysis.off_track_status.narrative_bridge == "A messenger arrives"
        assert analysis.relevant_pages == ["p1"]

    def test_unknown_type_and_missing_confidence(self) -> None:
        analysis = parse_analysis('{"suggestions": [{"type": "poem", "content": "x"}, 7]}')

        (suggestion,) = analysis.suggestions
        assert suggestion.type == "narration"
        assert suggestion.confidence == 0.5

    @pytest.mark.parametrize("kind", [["narration"], {"a": 1}, 3, None])
    def test_non_string_type_becomes_narration(self, kind: object) -> None:
        content = json.dumps({"suggestions": [{"type": kind, "content": "x"}]})

        (suggestion,) = parse_analysis(content).suggestions

        assert suggestion.type == "narration"
        assert parse_suggestions(content)[0].type == "narration"

    def test_huge_confidence_is_clamped(self) -> None:
        content = '{"suggestions": [{"content": "x", "confidence": 1' + "0" * 400 + "}]}"

        (suggestion,) = parse_suggestions(content)

        assert suggestion.confidence == 1.0

    def test_suggestions_are_capped(self) -> None:
        content = json.dumps({"suggestions": [{"content": str(i)} for i in range(15)]})

        assert len(parse_analysis(content).suggestions) == 10

    def test_fallback_on_plain_text(self) -> None:
        hook = MagicMock()
        text = "The party should head north. " * 20

        analysis = parse_analysis(text, hook)

        (suggestion,) = analysis.suggestions
        assert suggestion.content == text
        assert suggestion.confidence == 0.5
        assert analysis.summary == text[:200]
        hook.increment.assert_called_once_with(
            names.ASSISTANT_PARSE_FALLBACKS_TOTAL, labels={"operation": "analysis"}
        )

    def test_empty_content_is_an_empty_analysis(self) -> None:
        analysis = parse_analysis("")

        assert analysis.suggestions == []
        assert analysis.summary == ""


class TestParseSuggestions:
    def test_limit(self) -> None:
        content = json.dumps({"suggestions": [{"content": str(i)} for i in range(5)]})

        suggestions = parse_suggestions(content, max_suggestions=2)

        assert [s.content for s in suggestions] == ["0", "1"]

    def test_fallback(self) -> None:
        (suggestion,) = parse_suggestions("Just describe the rain.")

        assert suggestion.content == "Just describe the rain."
        assert suggestion.confidence == 0.3


class TestParseOffTrack:
    def test_payload(self) -> None:
        status = parse_off_track(
            '```json\n{"is_off_track": false, "severity": 0.1, "reason": "On the road"}\n```'
        )

        assert not status.is_off_track
        assert status.reason == "On the road"
        assert status.narrative_bridge is None

    def test_fallback(self) -> None:
        hook = MagicMock()

        status = parse_off_track("I cannot tell.", hook)

        assert not status.is_off_track
        assert status.reason == OFF_TRACK_PARSE_ERROR_REASON
        hook.increment.assert_called_once_with(
            names.ASSISTANT_PARSE_FALLBACKS_TOTAL, labels={"operation": "off_track"}
        )

    def test_long_reason_is_truncated(self) -> None:
        status = parse_off_track(json.dumps({"reason": "x" * 1500}))

        assert len(status.reason) == 1000


class TestParseNpcDialogue:
    def test_options(self) -> None:
        content = json.dumps(
            {
                "options": [
                    {"text": "Welcome, travellers!", "tone": "friendly", "confidence": 0.9},
                    "Mind the goblins.",
                    {"text": ""},
                    3,
                ]
            }
        )

        dialogue = parse_npc_dialogue(content, "Toblen", max_options=5)

        assert dialogue.npc_name == "Toblen"
        assert [o.text for o in dialogue.options] == [
            "Welcome, travellers!",
            "Mind the goblins.",
        ]
        assert dialogue.options[0].tone == "friendly"
        assert dialogue.options[1].confidence == 0.5

    def test_fallback(self) -> None:
        dialogue = parse_npc_dialogue("Welcome to my inn!", "Toblen")

        (option,) = dialogue.options
        assert option.text == "Welcome to my inn!"
        assert option.confidence == 0.3
