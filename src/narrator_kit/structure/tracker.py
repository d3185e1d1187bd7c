# src/narrator_kit/structure/tracker.py

import logging
import re
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone

from narrator_kit.config import EngineConfig
from narrator_kit.corpus.parser import DocumentTreeParser

from .extractor import PATH_SEPARATOR, StructuralHierarchyExtractor
from .matcher import SceneNameMatcher
from .models import (
    ChapterInfo,
    ChapterNode,
    ChapterSource,
    ChapterSourceType,
    ChapterType,
    FlatChapter,
    SceneRef,
)

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 3

_NON_WORD = re.compile(r"[^\w\s]")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChapterTracker:
    """Keeps track of the chapter the table is currently playing.

    The chapter follows the active host scene: a scene linked to a unit of
    the selected source wins, then a fuzzy match of the scene name against
    the outline, then a keyword lookup of the scene name. Results are
    cached per scene until the selected source changes.
    """

    def __init__(
        self,
        parser: DocumentTreeParser,
        extractor: StructuralHierarchyExtractor,
        matcher: SceneNameMatcher,
        config: EngineConfig = EngineConfig(),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._parser = parser
        self._extractor = extractor
        self._matcher = matcher
        self._clock = clock
        self._selected_source_id: str | None = None
        self._current: ChapterInfo | None = None
        self._source = ChapterSource()
        self._history: deque[ChapterInfo] = deque(maxlen=config.chapter_history_size)
        self._scene_cache: dict[str, ChapterInfo] = {}

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def selected_source_id(self) -> str | None:
        return self._selected_source_id

    def set_selected_source(self, source_id: str | None) -> None:
        if source_id != self._selected_source_id:
            self._scene_cache.clear()
        self._selected_source_id = source_id

    @property
    def is_configured(self) -> bool:
        return bool(self._selected_source_id) and self._parser.is_cached(
            self._selected_source_id
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current_chapter(self) -> ChapterInfo | None:
        return self._current

    @property
    def chapter_source(self) -> ChapterSource:
        return self._source

    @property
    def history(self) -> list[ChapterInfo]:
        """Previously current chapters, oldest first."""
        return list(self._history)

    def update_from_scene(self, scene: SceneRef) -> ChapterInfo | None:
        if not self.is_configured:
            logger.warning("Chapter tracker has no parsed source selected")
            return None
        if scene is None or not scene.id:
            logger.warning("Invalid scene: %r", scene)
            return None

        chapter = self._scene_cache.get(scene.id)
        if chapter is None:
            chapter = self._detect_from_scene(scene)
            if chapter is None:
                logger.debug("No chapter found for scene %s (%s)", scene.id, scene.name)
                return None
            self._scene_cache[scene.id] = chapter

        self._set_current(
            chapter,
            ChapterSource(
                type=ChapterSourceType.SCENE,
                updated_at=self._clock(),
                scene_id=scene.id,
                scene_name=scene.name,
            ),
        )
        return chapter

    def set_manual_chapter(self, chapter_id: str) -> bool:
        if not self.is_configured:
            logger.warning("Chapter tracker has no parsed source selected")
            return False
        entry = next((e for e in self._flat_list() if e.id == chapter_id), None)
        if entry is None:
            logger.warning("Chapter not found: %s", chapter_id)
            return False
        self._set_current(
            self._info_from_entry(entry),
            ChapterSource(type=ChapterSourceType.MANUAL, updated_at=self._clock()),
        )
        return True

    def navigate_back(self) -> ChapterInfo | None:
        if not self._history:
            return None
        self._current = self._history.pop()
        self._source = ChapterSource(type=ChapterSourceType.MANUAL, updated_at=self._clock())
        return self._current

    def subchapters(self) -> list[ChapterInfo]:
        """Immediate children of the current chapter."""
        if self._current is None or not self._selected_source_id:
            return []
        node = self._extractor.find_node(self._selected_source_id, self._current.id)
        if node is None:
            return []
        return [
            self._info_from_node(child, f"{self._current.path}{PATH_SEPARATOR}{child.title}")
            for child in node.children
        ]

    def sibling_chapters(self) -> tuple[ChapterInfo | None, ChapterInfo | None]:
        """Previous and next chapters at the current level under the same parent."""
        if self._current is None:
            return None, None
        flat = self._flat_list()
        index = next((i for i, e in enumerate(flat) if e.id == self._current.id), None)
        if index is None:
            return None, None

        level = self._current.level
        previous = _sibling(reversed(flat[:index]), level)
        following = _sibling(flat[index + 1 :], level)
        return (
            self._info_from_entry(previous) if previous else None,
            self._info_from_entry(following) if following else None,
        )

    def all_chapters(self) -> list[FlatChapter]:
        return self._flat_list()

    def content_for_ai(self, max_length: int = 5000) -> str:
        if self._current is None:
            return ""

        parts = [
            f"CURRENT CHAPTER: {self._current.title}",
            f"PATH: {self._current.path}",
            "",
        ]
        if self._current.content:
            content = self._current.content
            if len(content) > max_length:
                content = content[:max_length] + "..."
            parts.extend(["CONTENT:", content, ""])

        subchapters = self.subchapters()
        if subchapters:
            parts.append("AVAILABLE SUBSECTIONS:")
            parts.extend(f"- {sub.title}" for sub in subchapters)

        return "\n".join(parts)

    def clear(self) -> None:
        self._current = None
        self._history.clear()
        self._source = ChapterSource(type=ChapterSourceType.NONE, updated_at=self._clock())

    def clear_cache(self) -> None:
        self._scene_cache.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _detect_from_scene(self, scene: SceneRef) -> ChapterInfo | None:
        source_id = self._selected_source_id
        if source_id is None:
            return None

        if scene.linked_unit_id and scene.linked_source_id == source_id:
            for entry in self._flat_list():
                if entry.type is ChapterType.PAGE and entry.unit_id == scene.linked_unit_id:
                    return self._info_from_entry(entry)

        match = self._matcher.match_with_score(source_id, scene.name)
        if match is not None:
            return self._info_from_node(match.node, match.path)

        keywords = [
            word
            for word in _NON_WORD.sub(" ", scene.name.lower()).split()
            if len(word) >= MIN_KEYWORD_LENGTH
        ]
        units = self._parser.search_by_keywords(source_id, keywords)
        if units:
            node = self._extractor.get_chapter_at_position(source_id, units[0].id, 0)
            if node is not None:
                entry = next((e for e in self._flat_list() if e.id == node.id), None)
                return self._info_from_node(node, entry.path if entry else node.title)
        return None

    def _set_current(self, chapter: ChapterInfo, source: ChapterSource) -> None:
        if self._current is not None and self._current.id != chapter.id:
            self._history.append(self._current)
        if self._current is None or self._current.id != chapter.id:
            logger.info("Current chapter: %s", chapter.path)
            self._current = chapter
        self._source = source

    def _flat_list(self) -> list[FlatChapter]:
        if not self._selected_source_id:
            return []
        return self._extractor.get_flat_chapter_list(self._selected_source_id)

    def _info_from_entry(self, entry: FlatChapter) -> ChapterInfo:
        return self._info_from_node(entry.node, entry.path)

    def _info_from_node(self, node: ChapterNode, path: str) -> ChapterInfo:
        source_id = self._selected_source_id or ""
        document = self._parser.get_document(source_id)
        return ChapterInfo(
            id=node.id,
            title=node.title,
            level=node.level,
            type=node.type,
            unit_id=node.source_unit_id,
            unit_name=node.source_unit_name,
            content=node.content,
            source_id=source_id,
            source_name=document.name if document else "",
            path=path,
        )


def _sibling(entries, level: int) -> FlatChapter | None:
    for entry in entries:
        if entry.level == level:
            return entry
        if entry.level < level:
            return None
    return None
