# src/narrator_kit/structure/models.py

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

SECTION_MARKER_LEVEL = 7


class ChapterType(str, Enum):
    PAGE = "page"
    HEADING = "heading"
    SECTION = "section"


@dataclass
class ChapterNode:
    """Node of a unit's outline tree.

    Level 0 is the unit itself, 1-6 are heading depths and 7 marks a
    detected section marker. Children always have a greater level and a
    position at or after their parent's.
    """

    id: str
    title: str
    level: int
    type: ChapterType
    source_unit_id: str
    source_unit_name: str
    position: int = 0
    content: str = ""
    children: list["ChapterNode"] = field(default_factory=list)

    def walk(self) -> Iterator["ChapterNode"]:
        """Depth-first, pre-order traversal including this node."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class FlatChapter:
    id: str
    title: str
    level: int
    type: ChapterType
    unit_id: str
    unit_name: str
    path: str
    position: int
    node: ChapterNode


class ChapterSourceType(str, Enum):
    SCENE = "scene"
    MANUAL = "manual"
    AUTO = "auto"
    NONE = "none"


@dataclass(frozen=True)
class SceneRef:
    """A host scene, optionally linked to a unit of a source."""

    id: str
    name: str
    linked_source_id: str | None = None
    linked_unit_id: str | None = None


@dataclass(frozen=True)
class ChapterInfo:
    id: str
    title: str
    level: int
    type: ChapterType
    unit_id: str
    unit_name: str
    content: str
    source_id: str
    source_name: str
    path: str


@dataclass(frozen=True)
class ChapterSource:
    type: ChapterSourceType = ChapterSourceType.NONE
    updated_at: datetime | None = None
    scene_id: str | None = None
    scene_name: str | None = None


@dataclass(frozen=True)
class SceneMatch:
    node: ChapterNode
    score: float
    path: str
