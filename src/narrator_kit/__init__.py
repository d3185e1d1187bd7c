# Analytics
from .analytics import (
    SessionAnalytics,
    SessionSummary,
    SpeakerLabels,
    TranscriptSegment,
)

# Assistant
from .assistant import (
    ContextAnalysis,
    NarrativeAssistant,
    NpcDialogue,
    OffTrackStatus,
    Suggestion,
)

# Configuration
from .config import EngineConfig

# Corpus
from .corpus import (
    DocumentRepository,
    DocumentTreeParser,
    InMemoryDocumentRepository,
    ParsedDocument,
    SourceDocument,
)

# Detection
from .detection import (
    RulesDetectionResult,
    RulesQuestionDetector,
    SceneTransition,
    SceneTransitionDetector,
    SceneType,
)

# Entities
from .entities import EntityExtractor, NpcProfile

# Errors
from .errors import (
    AssistantError,
    AssistantNetworkError,
    NarratorKitError,
    SourceNotFoundError,
    UsageError,
)

# Index
from .index import BoundedIndex

# Lexicon
from .lexicon import Lexicon, load_lexicon

# LLMs
from .llms import LLMClient, LLMConfig, create_llm_client

# Observability
from .observability import MetricsHook, NoOpMetricsHook

# Prompts
from .prompts import Prompt, PromptsLibrary

# Structure
from .structure import (
    ChapterNode,
    ChapterTracker,
    SceneNameMatcher,
    StructuralHierarchyExtractor,
)

__all__ = [
    # Analytics
    "SessionAnalytics",
    "SessionSummary",
    "SpeakerLabels",
    "TranscriptSegment",
    # Assistant
    "ContextAnalysis",
    "NarrativeAssistant",
    "NpcDialogue",
    "OffTrackStatus",
    "Suggestion",
    # Configuration
    "EngineConfig",
    # Corpus
    "DocumentRepository",
    "DocumentTreeParser",
    "InMemoryDocumentRepository",
    "ParsedDocument",
    "SourceDocument",
    # Detection
    "RulesDetectionResult",
    "RulesQuestionDetector",
    "SceneTransition",
    "SceneTransitionDetector",
    "SceneType",
    # Entities
    "EntityExtractor",
    "NpcProfile",
    # Errors
    "AssistantError",
    "AssistantNetworkError",
    "NarratorKitError",
    "SourceNotFoundError",
    "UsageError",
    # Index
    "BoundedIndex",
    # Lexicon
    "Lexicon",
    "load_lexicon",
    # LLMs
    "LLMClient",
    "LLMConfig",
    "create_llm_client",
    # Observability
    "MetricsHook",
    "NoOpMetricsHook",
    # Prompts
    "Prompt",
    "PromptsLibrary",
    # Structure
    "ChapterNode",
    "ChapterTracker",
    "SceneNameMatcher",
    "StructuralHierarchyExtractor",
]
