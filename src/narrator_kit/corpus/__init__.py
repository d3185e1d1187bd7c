from .extraction import EXTRACTORS, extract_text
from .markup import normalize_whitespace, strip_markup
from .models import (
    ActorUnit,
    CacheStats,
    DocumentSummary,
    ItemUnit,
    ParsedDocument,
    ParsedUnit,
    RollTableUnit,
    SearchResult,
    SourceDocument,
    SourceInfo,
    SourceUnit,
    TableResult,
    TextPage,
    UnitSummary,
)
from .parser import TRUNCATION_MARKER, DocumentTreeParser, score_unit, unit_tokens
from .repository import (
    DocumentRepository,
    InMemoryDocumentRepository,
    source_from_mapping,
    unit_from_mapping,
)

__all__ = [
    # Parser
    "DocumentTreeParser",
    "TRUNCATION_MARKER",
    "score_unit",
    "unit_tokens",
    # Repository
    "DocumentRepository",
    "InMemoryDocumentRepository",
    "source_from_mapping",
    "unit_from_mapping",
    # Extraction
    "EXTRACTORS",
    "extract_text",
    "normalize_whitespace",
    "strip_markup",
    # Types
    "ActorUnit",
    "CacheStats",
    "DocumentSummary",
    "ItemUnit",
    "ParsedDocument",
    "ParsedUnit",
    "RollTableUnit",
    "SearchResult",
    "SourceDocument",
    "SourceInfo",
    "SourceUnit",
    "TableResult",
    "TextPage",
    "UnitSummary",
]
