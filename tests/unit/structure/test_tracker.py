# tests/unit/structure/test_tracker.py

import pytest

from narrator_kit.corpus import DocumentTreeParser
from narrator_kit.structure import (
    ChapterSourceType,
    ChapterTracker,
    SceneNameMatcher,
    SceneRef,
    StructuralHierarchyExtractor,
)


@pytest.fixture
def tracker(parser: DocumentTreeParser) -> ChapterTracker:
    extractor = StructuralHierarchyExtractor(parser)
    tracker = ChapterTracker(parser, extractor, SceneNameMatcher(extractor))
    tracker.set_selected_source("adv1")
    return tracker


class TestConfiguration:
    def test_not_configured_until_parsed(self, tracker: ChapterTracker) -> None:
        assert not tracker.is_configured
        assert tracker.update_from_scene(SceneRef(id="s1", name="The Inn")) is None

    @pytest.mark.asyncio
    async def test_configured_after_parse(
        self, parser: DocumentTreeParser, tracker: ChapterTracker
    ) -> None:
        await parser.parse("adv1")

        assert tracker.is_configured


class TestUpdateFromScene:
    @pytest.mark.asyncio
    async def test_linked_page_wins(
        self, parser: DocumentTreeParser, tracker: ChapterTracker
    ) -> None:
        await parser.parse("adv1")

        chapter = tracker.update_from_scene(
            SceneRef(id="s1", name="The Inn", linked_source_id="adv1", linked_unit_id="p2")
        )

        assert chapter is not None
        assert chapter.title == "Wilderness"
        assert tracker.chapter_source.type is ChapterSourceType.SCENE
        assert tracker.chapter_source.scene_id == "s1"

    @pytest.mark.asyncio
    async def test_name_match(
        self, parser: DocumentTreeParser, tracker: ChapterTracker
    ) -> None:
        await parser.parse("adv1")

        chapter = tracker.update_from_scene(SceneRef(id="s1", name="Chapter 2: The Dark Forest"))

        assert chapter is not None
        assert chapter.title == "The Dark Forest"
        assert chapter.source_name == "Lost Mine"
        assert tracker.current_chapter == chapter

    @pytest.mark.asyncio
    async def test_keyword_fallback(
        self, parser: DocumentTreeParser, tracker: ChapterTracker
    ) -> None:
        await parser.parse("adv1")

        chapter = tracker.update_from_scene(SceneRef(id="s1", name="Goblins hideout"))

        assert chapter is not None
        assert chapter.unit_id == "p2"

    @pytest.mark.asyncio
    async def test_no_match(self, parser: DocumentTreeParser, tracker: ChapterTracker) -> None:
        await parser.parse("adv1")

        assert tracker.update_from_scene(SceneRef(id="s1", name="Xyzzy")) is None
        assert tracker.current_chapter is None

    @pytest.mark.asyncio
    async def test_detection_without_selected_source(
        self, parser: DocumentTreeParser, tracker: ChapterTracker
    ) -> None:
        await parser.parse("adv1")
        tracker.set_selected_source(None)

        assert tracker._detect_from_scene(SceneRef(id="s1", name="The Dark Forest")) is None


class TestNavigation:
    @pytest.mark.asyncio
    async def test_history_and_back(
        self, parser: DocumentTreeParser, tracker: ChapterTracker
    ) -> None:
        await parser.parse("adv1")
        tracker.update_from_scene(SceneRef(id="s1", name="The Inn"))
        tracker.update_from_scene(SceneRef(id="s2", name="The Dark Forest"))

        assert [c.title for c in tracker.history] == ["The Inn"]

        previous = tracker.navigate_back()

        assert previous is not None
        assert previous.title == "The Inn"
        assert tracker.chapter_source.type is ChapterSourceType.MANUAL
        assert tracker.navigate_back() is None

    @pytest.mark.asyncio
    async def test_manual_chapter(
        self, parser: DocumentTreeParser, tracker: ChapterTracker
    ) -> None:
        await parser.parse("adv1")

        assert tracker.set_manual_chapter("p1:heading:0")
        assert not tracker.set_manual_chapter("missing")

        current = tracker.current_chapter
        assert current is not None
        assert current.title == "Intro"
        assert [c.title for c in tracker.subchapters()] == ["The Inn"]
        assert tracker.subchapters()[0].path == "Intro > The Inn"

    @pytest.mark.asyncio
    async def test_siblings(self, parser: DocumentTreeParser, tracker: ChapterTracker) -> None:
        await parser.parse("adv1")
        tracker.set_manual_chapter("p1")

        previous, following = tracker.sibling_chapters()

        assert previous is None
        assert following is not None
        assert following.title == "Wilderness"

    @pytest.mark.asyncio
    async def test_content_for_ai(
        self, parser: DocumentTreeParser, tracker: ChapterTracker
    ) -> None:
        await parser.parse("adv1")
        tracker.set_manual_chapter("p1:heading:0")

        content = tracker.content_for_ai()

        assert content == (
            "CURRENT CHAPTER: Intro\n"
            "PATH: Intro\n"
            "\n"
            "CONTENT:\n"
            "Welcome.\n"
            "\n"
            "AVAILABLE SUBSECTIONS:\n"
            "- The Inn"
        )

    def test_content_for_ai_without_chapter(self, tracker: ChapterTracker) -> None:
        assert tracker.content_for_ai() == ""

    @pytest.mark.asyncio
    async def test_clear(self, parser: DocumentTreeParser, tracker: ChapterTracker) -> None:
        await parser.parse("adv1")
        tracker.set_manual_chapter("p1")
        tracker.set_manual_chapter("p2")

        tracker.clear()

        assert tracker.current_chapter is None
        assert tracker.history == []
        assert tracker.chapter_source.type is ChapterSourceType.NONE
