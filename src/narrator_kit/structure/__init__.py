from .extractor import (
    PATH_SEPARATOR,
    OutlineItem,
    StructuralHierarchyExtractor,
    build_unit_tree,
    outline_items,
)
from .matcher import SceneNameMatcher, normalize_term
from .models import (
    SECTION_MARKER_LEVEL,
    ChapterInfo,
    ChapterNode,
    ChapterSource,
    ChapterSourceType,
    ChapterType,
    FlatChapter,
    SceneMatch,
    SceneRef,
)
from .tracker import ChapterTracker

__all__ = [
    # Extraction
    "PATH_SEPARATOR",
    "OutlineItem",
    "StructuralHierarchyExtractor",
    "build_unit_tree",
    "outline_items",
    # Matching
    "SceneNameMatcher",
    "normalize_term",
    # Tracking
    "ChapterTracker",
    # Types
    "SECTION_MARKER_LEVEL",
    "ChapterInfo",
    "ChapterNode",
    "ChapterSource",
    "ChapterSourceType",
    "ChapterType",
    "FlatChapter",
    "SceneMatch",
    "SceneRef",
]
