# src/narrator_kit/corpus/parser.py

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from narrator_kit.config import EngineConfig
from narrator_kit.errors import NarratorKitError, SourceNotFoundError, UsageError
from narrator_kit.index.bounded_index import BoundedIndex
from narrator_kit.observability import names
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook, measure

from .extraction import extract_text
from .models import (
    CacheStats,
    DocumentSummary,
    ParsedDocument,
    ParsedUnit,
    SearchResult,
    SourceDocument,
    SourceInfo,
    UnitSummary,
)
from .repository import DocumentRepository

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n[... content truncated for length ...]\n"

MIN_TEXT_TOKEN_LENGTH = 3
MIN_NAME_TOKEN_LENGTH = 2
MIN_QUERY_WORD_LENGTH = 2


class DocumentTreeParser:
    """Parses repository sources into cached plain-text documents.

    Every parsed unit is indexed in a shared `BoundedIndex` under
    `"{source_id}:{token}"`. Parsing is cached per source id; concurrent
    parses of one id share a single repository fetch.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        index: BoundedIndex | None = None,
        config: EngineConfig = EngineConfig(),
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._repository = repository
        self._config = config
        self._index = (
            index
            if index is not None
            else BoundedIndex(config.max_index_size, metrics_hook=metrics_hook)
        )
        self._documents: dict[str, ParsedDocument] = {}
        self._sources: dict[str, SourceDocument] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self.metrics_hook = metrics_hook

    @property
    def index(self) -> BoundedIndex:
        return self._index

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    async def parse(self, source_id: str) -> ParsedDocument:
        """Parse a source, returning the cached document when present.

        Raises:
            UsageError: If `source_id` is not a non-empty string.
            SourceNotFoundError: If the repository does not know the source.
        """
        if not isinstance(source_id, str) or not source_id.strip():
            logger.warning("Invalid source id: %r", source_id)
            raise UsageError("source_id must be a non-empty string")

        cached = self._documents.get(source_id)
        if cached is not None:
            logger.debug("Cache hit for source %s", source_id)
            self.metrics_hook.increment(names.CORPUS_CACHE_HITS)
            return cached

        lock = self._locks.setdefault(source_id, asyncio.Lock())
        async with lock:
            cached = self._documents.get(source_id)
            if cached is not None:
                self.metrics_hook.increment(names.CORPUS_CACHE_HITS)
                return cached

            source = await self._repository.get_source(source_id)
            if source is None:
                logger.error("Source not found: %s", source_id)
                self.metrics_hook.increment(names.CORPUS_PARSE_ERRORS_TOTAL)
                raise SourceNotFoundError(source_id)

            with measure(self.metrics_hook, names.CORPUS_PARSE_DURATION):
                document = self._build_document(source)
                self._index_document(document)

            self._sources[source_id] = source
            self._documents[source_id] = document

        self.metrics_hook.increment(names.CORPUS_UNITS_PARSED, len(document.units))
        self.metrics_hook.record_gauge(names.CORPUS_CACHED_SOURCES, len(self._documents))
        logger.info(
            "Parsed source %s: units=%d, characters=%d",
            source_id,
            len(document.units),
            document.total_characters,
        )
        return document

    async def refresh(self, source_id: str) -> ParsedDocument:
        """Drop the cached document and its index entries, then parse again."""
        self.clear_cache(source_id)
        return await self.parse(source_id)

    async def parse_all(self) -> list[ParsedDocument]:
        """Parse every listed source. Failures are logged and skipped."""
        return await self._parse_many(await self._repository.list_sources())

    async def parse_rules_sources(self) -> list[ParsedDocument]:
        sources = await self._repository.list_sources()
        return await self._parse_many(s for s in sources if s.is_rules_source)

    async def parse_adventure_sources(self) -> list[ParsedDocument]:
        sources = await self._repository.list_sources()
        return await self._parse_many(s for s in sources if not s.is_rules_source)

    async def _parse_many(self, sources: Iterable[SourceInfo]) -> list[ParsedDocument]:
        results = []
        for info in sources:
            try:
                results.append(await self.parse(info.id))
            except NarratorKitError as exc:
                logger.warning(
                    "Failed to parse source %s (%s): %s", info.id, info.name, exc
                )
        return results

    def _build_document(self, source: SourceDocument) -> ParsedDocument:
        units = []
        for unit in sorted(source.units, key=lambda u: u.sort):
            text = extract_text(unit)
            if not text:
                logger.debug("Skipping empty unit %s in source %s", unit.id, source.id)
                continue
            units.append(
                ParsedUnit(
                    id=unit.id,
                    name=unit.name,
                    text=text,
                    order=unit.sort,
                    kind=unit.kind,
                )
            )

        return ParsedDocument(
            id=source.id,
            name=source.name,
            units=tuple(units),
            total_characters=sum(len(u.text) for u in units),
            parsed_at=datetime.now(timezone.utc),
            document_type=source.document_type,
        )

    def _index_document(self, document: ParsedDocument) -> None:
        for unit in document.units:
            for token in unit_tokens(unit):
                self._index.put(f"{document.id}:{token}", unit.id)

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    async def list_sources(self) -> list[SourceInfo]:
        return await self._repository.list_sources()

    async def list_sources_by_folder(self) -> dict[str | None, list[SourceInfo]]:
        grouped: dict[str | None, list[SourceInfo]] = {}
        for info in await self._repository.list_sources():
            grouped.setdefault(info.folder, []).append(info)
        return grouped

    # ------------------------------------------------------------------
    # Cached access
    # ------------------------------------------------------------------

    def is_cached(self, source_id: str) -> bool:
        return source_id in self._documents

    def get_document(self, source_id: str) -> ParsedDocument | None:
        return self._documents.get(source_id)

    def cached_documents(self) -> list[ParsedDocument]:
        return list(self._documents.values())

    def get_source(self, source_id: str) -> SourceDocument | None:
        """Raw source snapshot taken when the document was parsed."""
        return self._sources.get(source_id)

    def get_unit(self, source_id: str, unit_id: str) -> ParsedUnit | None:
        document = self._documents.get(source_id)
        if document is None:
            logger.warning("Source not cached: %s", source_id)
            return None
        return document.get_unit(unit_id)

    def get_units(self, source_id: str) -> list[ParsedUnit]:
        document = self._documents.get(source_id)
        if document is None:
            logger.warning("Source not cached: %s", source_id)
            return []
        return list(document.units)

    def get_summary(self, source_id: str) -> DocumentSummary | None:
        document = self._documents.get(source_id)
        if document is None:
            return None
        return DocumentSummary(
            id=document.id,
            name=document.name,
            unit_count=len(document.units),
            total_characters=document.total_characters,
            parsed_at=document.parsed_at,
            units=tuple(UnitSummary(u.id, u.name, len(u.text)) for u in document.units),
        )

    def get_full_text(self, source_id: str) -> str:
        document = self._documents.get(source_id)
        if document is None:
            logger.warning("Source not cached: %s", source_id)
            return ""
        return "\n\n".join(f"## {u.name}\n{u.text}" for u in document.units)

    def content_for_ai(self, source_id: str, max_length: int = 50000) -> str:
        """Markdown-ish dump of one source, cut before `max_length`."""
        document = self._documents.get(source_id)
        if document is None:
            return ""
        content = f"# Adventure: {document.name}\n\n"
        content, _ = _append_units(content, document, max_length)
        return content

    def all_content_for_ai(self, max_length: int = 50000) -> str:
        content = ""
        for document in self._documents.values():
            header = f"# {document.name}\n\n"
            if len(content) + len(header) > max_length:
                content += TRUNCATION_MARKER
                break
            content += header
            content, truncated = _append_units(content, document, max_length)
            if truncated:
                break
        return content

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_by_keywords(
        self, source_id: str, keywords: Iterable[str]
    ) -> list[ParsedUnit]:
        """Units of a cached source indexed under any of `keywords`.

        Units are returned in document order.
        """
        document = self._documents.get(source_id)
        if document is None:
            logger.warning("Keyword search on uncached source: %s", source_id)
            return []
        if isinstance(keywords, str) or not isinstance(keywords, Iterable):
            logger.warning("Keywords must be a collection of strings: %r", keywords)
            return []

        unit_ids: set[str] = set()
        for keyword in keywords:
            if not isinstance(keyword, str):
                continue
            normalized = keyword.lower().strip()
            if len(normalized) < MIN_QUERY_WORD_LENGTH:
                continue
            unit_ids |= self._index.lookup(f"{source_id}:{normalized}")

        return [unit for unit in document.units if unit.id in unit_ids]

    def search(self, query: str) -> list[SearchResult]:
        """Weighted substring search over every cached unit."""
        if not isinstance(query, str) or not query.strip():
            logger.warning("Invalid search query: %r", query)
            return []

        normalized = query.lower().strip()
        words = [w for w in normalized.split() if len(w) >= MIN_QUERY_WORD_LENGTH]

        results = []
        for document in self._documents.values():
            for unit in document.units:
                score = score_unit(unit, normalized, words)
                if score > 0:
                    results.append(
                        SearchResult(
                            unit=unit,
                            source_id=document.id,
                            source_name=document.name,
                            score=score,
                        )
                    )

        results.sort(key=lambda r: r.score, reverse=True)
        logger.debug("Search %r matched %d units", query, len(results))
        return results

    def search_by_kind(self, query: str, kind: str) -> list[SearchResult]:
        return [r for r in self.search(query) if r.unit.kind == kind]

    def topic_content(self, topic: str, max_results: int | None = None) -> str:
        """Best matching units for `topic`, formatted with their sources."""
        limit = max_results if max_results is not None else self._config.rules_result_limit
        results = self.search(topic)[:limit]
        if not results:
            return ""

        lines = [f"# Information on: {topic}", ""]
        for result in results:
            lines.append(f"## {result.unit.name}")
            lines.append(f"[Source: {result.source_name}]")
            lines.append(result.unit.text)
            lines.append("")
        return "\n".join(lines).strip()

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def clear_cache(self, source_id: str) -> None:
        self._documents.pop(source_id, None)
        self._sources.pop(source_id, None)
        lock = self._locks.get(source_id)
        if lock is not None and not lock.locked():
            del self._locks[source_id]
        removed = self._index.remove_by_prefix(f"{source_id}:")
        logger.debug("Cleared cache for source %s (%d index entries)", source_id, removed)

    def clear_all_cache(self) -> None:
        self._documents.clear()
        self._sources.clear()
        self._locks = {k: lock for k, lock in self._locks.items() if lock.locked()}
        self._index.clear()
        logger.debug("Cleared all cached sources")

    def cache_stats(self) -> CacheStats:
        return CacheStats(
            cached_sources=len(self._documents),
            total_units=sum(len(d.units) for d in self._documents.values()),
            total_characters=sum(d.total_characters for d in self._documents.values()),
            indexed_keywords=len(self._index),
        )


def unit_tokens(unit: ParsedUnit) -> list[str]:
    """Deduplicated index tokens for a unit, text tokens first."""
    text_tokens = [w for w in unit.text.lower().split() if len(w) >= MIN_TEXT_TOKEN_LENGTH]
    name_tokens = [w for w in unit.name.lower().split() if len(w) >= MIN_NAME_TOKEN_LENGTH]
    return list(dict.fromkeys(text_tokens + name_tokens))


def score_unit(unit: ParsedUnit, query: str, words: list[str]) -> int:
    """Relevance of a unit for a lowercased query.

    Exact name 100, otherwise name containing the query 50; then +10 for
    each query word in the name and +2 for each query word in the text.
    """
    name = unit.name.lower()
    text = unit.text.lower()

    score = 0
    if name == query:
        score += 100
    elif query in name:
        score += 50

    for word in words:
        if word in name:
            score += 10
        if word in text:
            score += 2
    return score


def _append_units(
    content: str, document: ParsedDocument, max_length: int
) -> tuple[str, bool]:
    for unit in document.units:
        section = f"## {unit.name}\n{unit.text}\n\n"
        if len(content) + len(section) > max_length:
            return content + TRUNCATION_MARKER, True
        content += section
    return content, False
