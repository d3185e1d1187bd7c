# src/narrator_kit/analytics/speakers.py

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from narrator_kit.errors import UsageError

from .session import TranscriptSegment

logger = logging.getLogger(__name__)


class SpeakerLabels:
    """Custom names for diarized speakers ("Speaker 1" -> "Gandalf").

    Keys and labels are trimmed. Applying labels returns new segments and
    leaves unlabelled speakers as they are.
    """

    def __init__(self, mappings: Mapping[str, str] | None = None) -> None:
        self._mappings: dict[str, str] = {}
        if mappings:
            self.restore({"mappings": mappings})

    def set_label(self, speaker: str, label: str) -> None:
        """Name `speaker` as `label`, replacing any previous label.

        Raises:
            UsageError: If the speaker or the label is empty.
        """
        if not isinstance(speaker, str) or not speaker.strip():
            raise UsageError("speaker must be a non-empty string")
        if not isinstance(label, str) or not label.strip():
            raise UsageError("label must be a non-empty string")
        self._mappings[speaker.strip()] = label.strip()
        logger.debug("Speaker %s labelled %s", speaker.strip(), label.strip())

    def get_label(self, speaker: str) -> str | None:
        if not isinstance(speaker, str):
            return None
        return self._mappings.get(speaker.strip())

    def has_label(self, speaker: str) -> bool:
        return self.get_label(speaker) is not None

    def display_name(self, speaker: str) -> str:
        return self.get_label(speaker) or speaker

    def clear_label(self, speaker: str) -> bool:
        if not isinstance(speaker, str):
            return False
        return self._mappings.pop(speaker.strip(), None) is not None

    def clear_all(self) -> None:
        self._mappings.clear()

    def known_speakers(self) -> list[str]:
        return list(self._mappings)

    def mappings(self) -> dict[str, str]:
        return dict(self._mappings)

    def apply(
        self, segments: Iterable[TranscriptSegment | Mapping[str, Any]]
    ) -> list[TranscriptSegment | dict[str, Any]]:
        """Copies of `segments` with labelled speakers renamed."""
        labelled: list[TranscriptSegment | dict[str, Any]] = []
        for segment in segments:
            if isinstance(segment, TranscriptSegment):
                label = self.get_label(segment.speaker)
                labelled.append(replace(segment, speaker=label) if label else segment)
            elif isinstance(segment, Mapping):
                copy = dict(segment)
                label = self.get_label(copy.get("speaker"))  # type: ignore[arg-type]
                if label:
                    copy["speaker"] = label
                labelled.append(copy)
            else:
                logger.warning("Skipping invalid segment: %r", segment)
        return labelled

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of the mappings for the host to persist."""
        return {"mappings": dict(self._mappings)}

    def restore(self, snapshot: Mapping[str, Any]) -> bool:
        """Replace the mappings. Invalid snapshots leave them untouched."""
        mappings = snapshot.get("mappings") if isinstance(snapshot, Mapping) else None
        if not isinstance(mappings, Mapping):
            logger.warning("Invalid speaker label snapshot: %r", snapshot)
            return False

        restored = {}
        for speaker, label in mappings.items():
            if not isinstance(speaker, str) or not isinstance(label, str):
                continue
            if speaker.strip() and label.strip():
                restored[speaker.strip()] = label.strip()
        self._mappings = restored
        return True

    def export_json(self) -> str:
        return json.dumps(self._mappings, indent=2, ensure_ascii=False)

    def import_json(self, text: str) -> bool:
        try:
            mappings = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            logger.warning("Failed to import speaker labels: %s", exc)
            return False
        return self.restore({"mappings": mappings})
