# src/narrator_kit/corpus/repository.py

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from narrator_kit.errors import UsageError

from .models import (
    ActorUnit,
    ItemUnit,
    RollTableUnit,
    SourceDocument,
    SourceInfo,
    SourceUnit,
    TableResult,
    TextPage,
)

logger = logging.getLogger(__name__)


class DocumentRepository(Protocol):
    """Read-only access to the host's documents.

    Implementations convert host objects into `SourceDocument` DTOs once,
    at this boundary. The engine never sees host objects.
    """

    async def list_sources(self) -> list[SourceInfo]:
        """All available sources, optionally carrying their folder."""
        ...

    async def get_source(self, source_id: str) -> SourceDocument | None:
        """The source with `source_id`, or None when it does not exist."""
        ...


class InMemoryDocumentRepository:
    """Repository over documents held in memory."""

    def __init__(self, documents: Iterable[SourceDocument] = ()) -> None:
        self._documents: dict[str, SourceDocument] = {}
        for document in documents:
            self.add(document)

    @classmethod
    def from_mappings(
        cls, documents: Iterable[Mapping[str, Any]]
    ) -> "InMemoryDocumentRepository":
        return cls(source_from_mapping(data) for data in documents)

    def add(self, document: SourceDocument) -> None:
        self._documents[document.id] = document

    def remove(self, source_id: str) -> None:
        self._documents.pop(source_id, None)

    async def list_sources(self) -> list[SourceInfo]:
        return [document.info for document in self._documents.values()]

    async def get_source(self, source_id: str) -> SourceDocument | None:
        return self._documents.get(source_id)


# ---------------------------------------------------------------------------
# Boundary conversion from loosely-shaped host data
# ---------------------------------------------------------------------------

_UNIT_TYPE_ALIASES = {
    "text": "text",
    "item": "item",
    "roll_table": "roll_table",
    "rolltable": "roll_table",
    "actor": "actor",
}


def unit_from_mapping(data: Mapping[str, Any]) -> SourceUnit:
    """Build a tagged unit from a host mapping with a `type` field.

    Raises:
        UsageError: If the id is missing or the type is unknown.
    """
    unit_id = data.get("id")
    if not isinstance(unit_id, str) or not unit_id:
        raise UsageError(f"Unit without a valid id: {data!r}")

    raw_type = str(data.get("type", "text")).lower()
    kind = _UNIT_TYPE_ALIASES.get(raw_type)
    name = str(data.get("name") or "")
    sort = int(data.get("sort", 0) or 0)

    if kind == "text":
        return TextPage(
            id=unit_id,
            name=name,
            content=str(data.get("content") or ""),
            sort=sort,
        )
    if kind == "item":
        return ItemUnit(
            id=unit_id,
            name=name,
            description=str(data.get("description") or ""),
            item_type=str(data.get("item_type") or ""),
            source=str(data.get("source") or ""),
            sort=sort,
        )
    if kind == "roll_table":
        results = tuple(
            TableResult(
                low=int(result.get("low", 0)),
                high=int(result.get("high", result.get("low", 0))),
                text=str(result.get("text") or ""),
            )
            for result in data.get("results") or ()
        )
        return RollTableUnit(
            id=unit_id,
            name=name,
            description=str(data.get("description") or ""),
            results=results,
            sort=sort,
        )
    if kind == "actor":
        return ActorUnit(
            id=unit_id,
            name=name,
            biography=str(data.get("biography") or ""),
            actor_type=str(data.get("actor_type") or ""),
            sort=sort,
        )
    raise UsageError(f"Unknown unit type '{raw_type}' for unit {unit_id}")


def source_from_mapping(data: Mapping[str, Any]) -> SourceDocument:
    """Build a source document, skipping units that fail validation."""
    source_id = data.get("id")
    if not isinstance(source_id, str) or not source_id:
        raise UsageError(f"Source without a valid id: {data!r}")

    units = []
    for raw_unit in data.get("units") or ():
        try:
            units.append(unit_from_mapping(raw_unit))
        except UsageError as exc:
            logger.warning("Skipping unit in source %s: %s", source_id, exc)

    return SourceDocument(
        id=source_id,
        name=str(data.get("name") or source_id),
        units=tuple(units),
        document_type=str(data.get("document_type") or "JournalEntry"),
        folder=data.get("folder"),
    )
