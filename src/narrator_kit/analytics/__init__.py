from .session import (
    SessionAnalytics,
    SessionMetadata,
    SessionStatus,
    SessionSummary,
    SpeakerMetrics,
    TimelineBucket,
    TranscriptSegment,
)
from .speakers import SpeakerLabels

__all__ = [
    "SessionAnalytics",
    "SessionMetadata",
    "SessionStatus",
    "SessionSummary",
    "SpeakerLabels",
    "SpeakerMetrics",
    "TimelineBucket",
    "TranscriptSegment",
]
