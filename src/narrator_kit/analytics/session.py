# src/narrator_kit/analytics/session.py

import logging
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Literal

from narrator_kit.config import EngineConfig

logger = logging.getLogger(__name__)

SessionStatus = Literal["active", "paused", "completed"]


@dataclass(frozen=True)
class TranscriptSegment:
    """One stretch of speech. Times are seconds from the session start."""

    speaker: str
    start: float
    end: float
    text: str = ""


@dataclass
class SpeakerMetrics:
    speaker_id: str
    speaking_time: float = 0.0
    segment_count: int = 0
    avg_segment_duration: float = 0.0
    percentage: float = 0.0
    first_speak_time: float = 0.0
    last_speak_time: float = 0.0


@dataclass(frozen=True)
class TimelineBucket:
    timestamp: float
    speakers: dict[str, float]
    total_activity: float


@dataclass
class SessionMetadata:
    session_id: str
    start_time: float
    end_time: float | None = None
    duration: float = 0.0
    status: SessionStatus = "active"


@dataclass(frozen=True)
class SessionSummary:
    metadata: SessionMetadata
    speakers: dict[str, SpeakerMetrics]
    total_speaking_time: float
    speaker_count: int
    dominant_speaker: str | None
    quietest_speaker: str | None
    timeline: list[TimelineBucket] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionSummary":
        return cls(
            metadata=SessionMetadata(**data["metadata"]),
            speakers={k: SpeakerMetrics(**v) for k, v in data["speakers"].items()},
            total_speaking_time=data["total_speaking_time"],
            speaker_count=data["speaker_count"],
            dominant_speaker=data["dominant_speaker"],
            quietest_speaker=data["quietest_speaker"],
            timeline=[TimelineBucket(**b) for b in data.get("timeline", [])],
        )


class SessionAnalytics:
    """Per-speaker talk-time statistics for one session at a time.

    Ending a session archives a summary at the front of a bounded history.
    """

    def __init__(
        self,
        config: EngineConfig = EngineConfig(),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._bucket_size = config.timeline_bucket_size
        self._max_history = config.session_history_size
        self._clock = clock
        self._session: SessionMetadata | None = None
        self._speakers: dict[str, SpeakerMetrics] = {}
        self._segments: list[TranscriptSegment] = []
        self._history: list[SessionSummary] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(self, session_id: str | None = None) -> str:
        """Start a session, ending the one in progress first."""
        if self._session is not None and self._session.status != "completed":
            self.end_session()

        now = self._clock()
        session_id = session_id or f"session-{int(now * 1000)}"
        self._session = SessionMetadata(session_id=session_id, start_time=now)
        self._speakers = {}
        self._segments = []
        logger.info("Started analytics session %s", session_id)
        return session_id

    def end_session(self) -> SessionSummary | None:
        if self._session is None or self._session.status == "completed":
            return None

        now = self._clock()
        self._session.end_time = now
        self._session.duration = now - self._session.start_time
        self._session.status = "completed"

        summary = self.session_summary()
        if summary is None:
            return None
        self._history.insert(0, summary)
        del self._history[self._max_history :]

        logger.info(
            "Ended analytics session %s: duration=%.0fs, speakers=%d",
            self._session.session_id,
            self._session.duration,
            summary.speaker_count,
        )
        self._session = None
        self._speakers = {}
        self._segments = []
        return summary

    def pause_session(self) -> None:
        if self._session is not None and self._session.status == "active":
            self._session.status = "paused"

    def resume_session(self) -> None:
        if self._session is not None and self._session.status == "paused":
            self._session.status = "active"

    @property
    def is_session_active(self) -> bool:
        return self._session is not None and self._session.status == "active"

    @property
    def current_session_id(self) -> str | None:
        return self._session.session_id if self._session else None

    def clear_current_session(self) -> None:
        self._session = None
        self._speakers = {}
        self._segments = []

    def clear_history(self) -> None:
        self._history = []

    # ------------------------------------------------------------------
    # Segments and metrics
    # ------------------------------------------------------------------

    def add_segment(self, segment: TranscriptSegment | Mapping[str, Any]) -> bool:
        """Record a segment. Invalid input is logged and ignored."""
        if self._session is None:
            logger.warning("Cannot add segment without an active session")
            return False

        segment = _coerce_segment(segment)
        if segment is None:
            return False

        self._segments.append(segment)
        duration = segment.end - segment.start
        metrics = self._speakers.get(segment.speaker)
        if metrics is None:
            metrics = SpeakerMetrics(
                speaker_id=segment.speaker,
                first_speak_time=segment.start,
                last_speak_time=segment.end,
            )
            self._speakers[segment.speaker] = metrics

        metrics.speaking_time += duration
        metrics.segment_count += 1
        metrics.first_speak_time = min(metrics.first_speak_time, segment.start)
        metrics.last_speak_time = max(metrics.last_speak_time, segment.end)
        return True

    def calculate_metrics(self) -> None:
        """Refresh averages and share-of-total percentages."""
        total = sum(m.speaking_time for m in self._speakers.values())
        for metrics in self._speakers.values():
            metrics.avg_segment_duration = (
                metrics.speaking_time / metrics.segment_count
                if metrics.segment_count
                else 0.0
            )
            metrics.percentage = metrics.speaking_time / total * 100 if total > 0 else 0.0

    def speaker_stats(self) -> list[SpeakerMetrics]:
        """Speakers by descending speaking time."""
        return sorted(self._speakers.values(), key=lambda m: m.speaking_time, reverse=True)

    def current_metrics(self) -> dict[str, SpeakerMetrics]:
        return {k: replace(v) for k, v in self._speakers.items()}

    def get_timeline(self, bucket_size: float | None = None) -> list[TimelineBucket]:
        """Speaking time per fixed-width window.

        A segment crossing window boundaries is split by overlap. Windows a
        segment only touches at its end are not created.
        """
        size = self._bucket_size
        if bucket_size is not None:
            if (
                isinstance(bucket_size, (int, float))
                and not isinstance(bucket_size, bool)
                and math.isfinite(bucket_size)
                and bucket_size > 0
            ):
                size = bucket_size
            else:
                logger.warning(
                    "Invalid bucket size %r, using %s", bucket_size, self._bucket_size
                )
        speakers: dict[float, dict[str, float]] = {}

        for segment in self._segments:
            first = math.floor(segment.start / size)
            last = math.floor(segment.end / size)
            for index in range(first, last + 1):
                bucket_start = index * size
                overlap = max(
                    0.0,
                    min(segment.end, bucket_start + size) - max(segment.start, bucket_start),
                )
                if overlap == 0 and not (segment.start == segment.end and index == first):
                    continue
                bucket = speakers.setdefault(bucket_start, {})
                bucket[segment.speaker] = bucket.get(segment.speaker, 0.0) + overlap

        return [
            TimelineBucket(
                timestamp=bucket_start,
                speakers=bucket,
                total_activity=sum(bucket.values()),
            )
            for bucket_start, bucket in sorted(speakers.items())
        ]

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def session_summary(self) -> SessionSummary | None:
        if self._session is None:
            return None

        self.calculate_metrics()
        stats = self.speaker_stats()
        return SessionSummary(
            metadata=replace(self._session),
            speakers=self.current_metrics(),
            total_speaking_time=sum(m.speaking_time for m in stats),
            speaker_count=len(stats),
            dominant_speaker=stats[0].speaker_id if stats else None,
            quietest_speaker=stats[-1].speaker_id if stats else None,
            timeline=self.get_timeline(),
        )

    def session_history(self, limit: int | None = None) -> list[SessionSummary]:
        """Archived sessions, most recent first."""
        if limit and limit > 0:
            return self._history[:limit]
        return list(self._history)

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of the history for the host to persist."""
        return {"history": [asdict(summary) for summary in self._history]}

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        history = []
        for data in snapshot.get("history", []):
            try:
                history.append(SessionSummary.from_dict(data))
            except (KeyError, TypeError) as exc:
                logger.warning("Skipping malformed session summary: %s", exc)
        self._history = history[: self._max_history]


def _coerce_segment(segment: object) -> TranscriptSegment | None:
    if isinstance(segment, Mapping):
        speaker = segment.get("speaker")
        start = segment.get("start")
        end = segment.get("end")
        text = segment.get("text") or ""
    elif isinstance(segment, TranscriptSegment):
        speaker, start, end, text = segment.speaker, segment.start, segment.end, segment.text
    else:
        logger.warning("Invalid segment: %r", segment)
        return None

    if not isinstance(speaker, str) or not speaker:
        logger.warning("Segment without speaker: %r", segment)
        return None
    if not all(
        isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
        for v in (start, end)
    ):
        logger.warning("Segment with invalid times: %r", segment)
        return None
    if end < start:
        logger.warning("Segment ends before it starts: %r", segment)
        return None

    return TranscriptSegment(speaker=speaker, start=float(start), end=float(end), text=text)
