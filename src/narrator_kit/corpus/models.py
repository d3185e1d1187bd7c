# src/narrator_kit/corpus/models.py

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

UnitKind = Literal["text", "item", "roll_table", "actor"]

RULES_SOURCE_KEYWORDS = (
    "rules",
    "regole",
    "manual",
    "manuale",
    "reference",
    "riferimento",
    "srd",
    "basic",
)


# ---------------------------------------------------------------------------
# Source units: one variant per kind, selected by the `kind` tag
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextPage:
    """A journal page holding rich-text markup."""

    id: str
    name: str
    content: str = ""
    sort: int = 0
    kind: Literal["text"] = "text"

    @property
    def markup(self) -> str:
        return self.content


@dataclass(frozen=True)
class ItemUnit:
    id: str
    name: str
    description: str = ""
    item_type: str = ""
    source: str = ""
    sort: int = 0
    kind: Literal["item"] = "item"

    @property
    def markup(self) -> str:
        return self.description


@dataclass(frozen=True)
class TableResult:
    low: int
    high: int
    text: str


@dataclass(frozen=True)
class RollTableUnit:
    id: str
    name: str
    description: str = ""
    results: tuple[TableResult, ...] = ()
    sort: int = 0
    kind: Literal["roll_table"] = "roll_table"

    @property
    def markup(self) -> str:
        return self.description


@dataclass(frozen=True)
class ActorUnit:
    id: str
    name: str
    biography: str = ""
    actor_type: str = ""
    sort: int = 0
    kind: Literal["actor"] = "actor"

    @property
    def markup(self) -> str:
        return self.biography


SourceUnit = TextPage | ItemUnit | RollTableUnit | ActorUnit


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceInfo:
    """Enumeration entry for an available document source."""

    id: str
    name: str
    document_type: str = "JournalEntry"
    folder: str | None = None

    @property
    def is_rules_source(self) -> bool:
        """Items, roll tables and journals that look like rulebooks."""
        if self.document_type in ("Item", "RollTable"):
            return True
        if self.document_type != "JournalEntry":
            return False
        haystack = f"{self.id} {self.name}".lower()
        return any(keyword in haystack for keyword in RULES_SOURCE_KEYWORDS)


@dataclass(frozen=True)
class SourceDocument:
    """Validated snapshot of one host document (journal or compendium pack)."""

    id: str
    name: str
    units: tuple[SourceUnit, ...] = ()
    document_type: str = "JournalEntry"
    folder: str | None = None

    @property
    def info(self) -> SourceInfo:
        return SourceInfo(
            id=self.id,
            name=self.name,
            document_type=self.document_type,
            folder=self.folder,
        )

    def get_unit(self, unit_id: str) -> SourceUnit | None:
        return next((u for u in self.units if u.id == unit_id), None)


# ---------------------------------------------------------------------------
# Parse output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedUnit:
    id: str
    name: str
    text: str
    order: int
    kind: UnitKind


@dataclass(frozen=True)
class ParsedDocument:
    """Plain-text snapshot of a source.

    `units` are sorted by `order`, contain no markup, and are never empty.
    """

    id: str
    name: str
    units: tuple[ParsedUnit, ...]
    total_characters: int
    parsed_at: datetime
    document_type: str = "JournalEntry"

    def get_unit(self, unit_id: str) -> ParsedUnit | None:
        return next((u for u in self.units if u.id == unit_id), None)


@dataclass(frozen=True)
class UnitSummary:
    id: str
    name: str
    characters: int


@dataclass(frozen=True)
class DocumentSummary:
    id: str
    name: str
    unit_count: int
    total_characters: int
    parsed_at: datetime
    units: tuple[UnitSummary, ...]


@dataclass(frozen=True)
class SearchResult:
    unit: ParsedUnit
    source_id: str
    source_name: str
    score: int


@dataclass(frozen=True)
class CacheStats:
    cached_sources: int
    total_units: int
    total_characters: int
    indexed_keywords: int
