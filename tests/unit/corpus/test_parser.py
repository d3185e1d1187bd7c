# tests/unit/corpus/test_parser.py

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from narrator_kit.corpus import (
    TRUNCATION_MARKER,
    DocumentTreeParser,
    InMemoryDocumentRepository,
    ItemUnit,
    SourceDocument,
    TextPage,
)
from narrator_kit.errors import SourceNotFoundError, UsageError
from narrator_kit.index import BoundedIndex
from narrator_kit.observability import names


def mock_repository(source: SourceDocument | None) -> MagicMock:
    repository = MagicMock()
    repository.get_source = AsyncMock(return_value=source)
    repository.list_sources = AsyncMock(return_value=[source.info] if source else [])
    return repository


class TestParse:
    @pytest.mark.asyncio
    async def test_units_sorted_plain_and_non_empty(
        self, parser: DocumentTreeParser
    ) -> None:
        document = await parser.parse("adv1")

        assert [u.id for u in document.units] == ["p1", "p2"]
        assert document.units[0].text == "Intro Welcome. The Inn A tavern."
        assert all("<" not in u.text for u in document.units)
        assert document.total_characters == sum(len(u.text) for u in document.units)

    @pytest.mark.asyncio
    async def test_second_parse_returns_cached_document(
        self, adventure: SourceDocument
    ) -> None:
        repository = mock_repository(adventure)
        hook = MagicMock()
        parser = DocumentTreeParser(repository, metrics_hook=hook)

        first = await parser.parse("adv1")
        keys = len(parser.index)
        second = await parser.parse("adv1")

        assert second is first
        assert len(parser.index) == keys
        repository.get_source.assert_awaited_once_with("adv1")
        hook.increment.assert_any_call(names.CORPUS_CACHE_HITS)

    @pytest.mark.asyncio
    async def test_concurrent_parses_fetch_once(self, adventure: SourceDocument) -> None:
        async def slow_fetch(source_id: str) -> SourceDocument:
            await asyncio.sleep(0)
            return adventure

        repository = MagicMock()
        repository.get_source = AsyncMock(side_effect=slow_fetch)
        parser = DocumentTreeParser(repository)

        first, second = await asyncio.gather(parser.parse("adv1"), parser.parse("adv1"))

        assert first is second
        assert repository.get_source.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_source_raises(self) -> None:
        parser = DocumentTreeParser(mock_repository(None))

        with pytest.raises(SourceNotFoundError) as exc_info:
            await parser.parse("missing")

        assert exc_info.value.source_id == "missing"
        assert isinstance(exc_info.value, KeyError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source_id", ["", "   ", None])
    async def test_invalid_id_raises_usage_error(
        self, parser: DocumentTreeParser, source_id: object
    ) -> None:
        with pytest.raises(UsageError):
            await parser.parse(source_id)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_indexes_units_under_source_prefix(
        self, parser: DocumentTreeParser
    ) -> None:
        await parser.parse("adv1")

        assert parser.index.lookup("adv1:tavern.") == frozenset({"p1"})
        assert parser.index.lookup("adv1:goblins") == frozenset({"p2"})
        assert all(key.startswith("adv1:") for key in parser.index.keys())

    @pytest.mark.asyncio
    async def test_shared_index(self, repository: InMemoryDocumentRepository) -> None:
        index = BoundedIndex(max_size=3)
        parser = DocumentTreeParser(repository, index=index)

        await parser.parse("adv1")

        assert parser.index is index
        assert len(index) == 3


class TestRefreshAndCache:
    @pytest.mark.asyncio
    async def test_refresh_reparses(self, parser: DocumentTreeParser) -> None:
        first = await parser.parse("adv1")

        second = await parser.refresh("adv1")

        assert second is not first
        assert second.units == first.units
        assert parser.index.lookup("adv1:goblins") == frozenset({"p2"})

    @pytest.mark.asyncio
    async def test_clear_cache_drops_document_and_index_entries(
        self, parser: DocumentTreeParser
    ) -> None:
        await parser.parse("adv1")

        parser.clear_cache("adv1")

        assert not parser.is_cached("adv1")
        assert parser.get_source("adv1") is None
        assert len(parser.index) == 0

    @pytest.mark.asyncio
    async def test_clear_cache_drops_parse_locks(self, parser: DocumentTreeParser) -> None:
        await parser.parse("adv1")
        assert "adv1" in parser._locks

        parser.clear_cache("adv1")
        assert parser._locks == {}

        await parser.parse("adv1")
        parser.clear_all_cache()
        assert parser._locks == {}

    @pytest.mark.asyncio
    async def test_clear_keeps_held_lock(self, parser: DocumentTreeParser) -> None:
        lock = parser._locks.setdefault("adv1", asyncio.Lock())

        async with lock:
            parser.clear_cache("adv1")
            parser.clear_all_cache()

            assert parser._locks["adv1"] is lock

    @pytest.mark.asyncio
    async def test_cache_stats(self, parser: DocumentTreeParser) -> None:
        document = await parser.parse("adv1")

        stats = parser.cache_stats()

        assert stats.cached_sources == 1
        assert stats.total_units == 2
        assert stats.total_characters == document.total_characters
        assert stats.indexed_keywords == len(parser.index)


class TestBulkParsing:
    @pytest.mark.asyncio
    async def test_rules_and_adventure_sources_are_split(
        self, adventure: SourceDocument
    ) -> None:
        rules = SourceDocument(
            id="srd",
            name="SRD Rules",
            units=(TextPage(id="r1", name="Grappling", content="Grab a creature."),),
        )
        items = SourceDocument(
            id="pack.items",
            name="Weapons",
            document_type="Item",
            units=(ItemUnit(id="i1", name="Dagger", description="Sharp."),),
        )
        parser = DocumentTreeParser(InMemoryDocumentRepository([adventure, rules, items]))

        rules_docs = await parser.parse_rules_sources()
        adventure_docs = await parser.parse_adventure_sources()

        assert {d.id for d in rules_docs} == {"srd", "pack.items"}
        assert [d.id for d in adventure_docs] == ["adv1"]

    @pytest.mark.asyncio
    async def test_parse_all_skips_failures(self, adventure: SourceDocument) -> None:
        repository = MagicMock()
        repository.list_sources = AsyncMock(
            return_value=[adventure.info, SourceDocument(id="gone", name="Gone").info]
        )
        repository.get_source = AsyncMock(
            side_effect=lambda source_id: adventure if source_id == "adv1" else None
        )
        parser = DocumentTreeParser(repository)

        documents = await parser.parse_all()

        assert [d.id for d in documents] == ["adv1"]

    @pytest.mark.asyncio
    async def test_list_sources_by_folder(self) -> None:
        repository = InMemoryDocumentRepository(
            [
                SourceDocument(id="a", name="A", folder="Act 1"),
                SourceDocument(id="b", name="B", folder="Act 1"),
                SourceDocument(id="c", name="C"),
            ]
        )
        parser = DocumentTreeParser(repository)

        grouped = await parser.list_sources_by_folder()

        assert [s.id for s in grouped["Act 1"]] == ["a", "b"]
        assert [s.id for s in grouped[None]] == ["c"]


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_by_keywords(self, parser: DocumentTreeParser) -> None:
        await parser.parse("adv1")

        units = parser.search_by_keywords("adv1", ["Goblins", "welcome."])

        assert [u.id for u in units] == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_search_by_keywords_rejects_bare_string(
        self, parser: DocumentTreeParser
    ) -> None:
        await parser.parse("adv1")

        assert parser.search_by_keywords("adv1", "goblins") == []

    def test_search_by_keywords_on_uncached_source(
        self, parser: DocumentTreeParser
    ) -> None:
        assert parser.search_by_keywords("adv1", ["goblins"]) == []

    @pytest.mark.asyncio
    async def test_search_scores_name_and_text(self, parser: DocumentTreeParser) -> None:
        await parser.parse("adv1")

        results = parser.search("Wilderness")

        assert len(results) == 1
        assert results[0].unit.id == "p2"
        assert results[0].score == 110
        assert results[0].source_name == "Lost Mine"

    @pytest.mark.asyncio
    async def test_search_orders_by_score(self, parser: DocumentTreeParser) -> None:
        await parser.parse("adv1")

        results = parser.search("the inn")

        assert [(r.unit.id, r.score) for r in results] == [("p1", 4), ("p2", 2)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_invalid_query(self, parser: DocumentTreeParser, query: object) -> None:
        await parser.parse("adv1")

        assert parser.search(query) == []  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_topic_content(self, parser: DocumentTreeParser) -> None:
        await parser.parse("adv1")

        content = parser.topic_content("goblins")

        assert content.startswith("# Information on: goblins\n\n## Wilderness\n")
        assert "[Source: Lost Mine]" in content


class TestContentForAi:
    @pytest.mark.asyncio
    async def test_full_content(self, parser: DocumentTreeParser) -> None:
        await parser.parse("adv1")

        content = parser.content_for_ai("adv1")

        assert content.startswith("# Adventure: Lost Mine\n\n## Introduction\n")
        assert "## Wilderness\n" in content
        assert TRUNCATION_MARKER not in content

    @pytest.mark.asyncio
    async def test_truncates_before_limit(self, parser: DocumentTreeParser) -> None:
        await parser.parse("adv1")

        content = parser.content_for_ai("adv1", max_length=80)

        assert content.endswith(TRUNCATION_MARKER)
        assert "## Wilderness" not in content

    def test_uncached_source(self, parser: DocumentTreeParser) -> None:
        assert parser.content_for_ai("adv1") == ""

    @pytest.mark.asyncio
    async def test_summary_and_full_text(self, parser: DocumentTreeParser) -> None:
        await parser.parse("adv1")

        summary = parser.get_summary("adv1")
        full_text = parser.get_full_text("adv1")

        assert summary is not None
        assert summary.unit_count == 2
        assert [u.id for u in summary.units] == ["p1", "p2"]
        assert full_text.startswith("## Introduction\nIntro Welcome.")
