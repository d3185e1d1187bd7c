# src/narrator_kit/structure/extractor.py

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, Comment, Tag

from narrator_kit.corpus.markup import normalize_whitespace
from narrator_kit.corpus.models import ParsedUnit, SourceUnit
from narrator_kit.corpus.parser import DocumentTreeParser
from narrator_kit.observability import names
from narrator_kit.observability.base import MetricsHook, NoOpMetricsHook, measure

from .models import SECTION_MARKER_LEVEL, ChapterNode, ChapterType, FlatChapter

logger = logging.getLogger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
SECTION_CLASS_WORDS = frozenset(
    {"section", "chapter", "scene", "act", "encounter", "location"}
)
MARKER_TITLE_LENGTH = 60
PATH_SEPARATOR = " > "


@dataclass(frozen=True)
class OutlineItem:
    position: int
    level: int
    type: ChapterType
    title: str
    content: str


class StructuralHierarchyExtractor:
    """Builds heading outlines for the units of a parsed source.

    Works on the raw markup the parser cached with the document, so a
    source must be parsed first. Trees are rebuilt on every call.
    """

    def __init__(
        self,
        parser: DocumentTreeParser,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._parser = parser
        self.metrics_hook = metrics_hook

    def extract_structure(self, source_id: str) -> list[ChapterNode]:
        """One page-level root per unit, headings and markers nested below."""
        document = self._parser.get_document(source_id)
        source = self._parser.get_source(source_id)
        if document is None or source is None:
            logger.warning("Cannot extract structure of uncached source: %s", source_id)
            return []

        with measure(self.metrics_hook, names.STRUCTURE_EXTRACTION_DURATION):
            roots = [
                build_unit_tree(unit, source.get_unit(unit.id)) for unit in document.units
            ]

        logger.debug("Extracted %d unit outlines from source %s", len(roots), source_id)
        return roots

    def get_flat_chapter_list(self, source_id: str) -> list[FlatChapter]:
        """Depth-first list of every node with a breadcrumb path.

        A page's path is its own title. Below a page, the path joins the
        heading and section titles from the top of the page down to the node.
        """
        flat: list[FlatChapter] = []
        for root in self.extract_structure(source_id):
            _flatten(root, [], flat)
        return flat

    def get_chapter_at_position(
        self, source_id: str, unit_id: str, position: int
    ) -> ChapterNode | None:
        """Deepest node of a unit whose position is at or before `position`."""
        for root in self.extract_structure(source_id):
            if root.source_unit_id != unit_id:
                continue
            found = None
            for node in root.walk():
                if node.position <= position:
                    found = node
            return found

        logger.debug("Unit %s not found in source %s", unit_id, source_id)
        return None

    def find_node(self, source_id: str, node_id: str) -> ChapterNode | None:
        for root in self.extract_structure(source_id):
            for node in root.walk():
                if node.id == node_id:
                    return node
        return None


def build_unit_tree(unit: ParsedUnit, raw: SourceUnit | None) -> ChapterNode:
    root = ChapterNode(
        id=unit.id,
        title=unit.name,
        level=0,
        type=ChapterType.PAGE,
        source_unit_id=unit.id,
        source_unit_name=unit.name,
        position=0,
        content=unit.text,
    )

    items = outline_items(raw.markup if raw is not None else "")

    # Level 0 never pops, so the root stays at the bottom of the stack.
    stack = [root]
    for index, item in enumerate(items):
        node = ChapterNode(
            id=f"{unit.id}:{item.type.value}:{index}",
            title=item.title,
            level=item.level,
            type=item.type,
            source_unit_id=unit.id,
            source_unit_name=unit.name,
            position=item.position,
            content=item.content,
        )
        while stack[-1].level >= item.level:
            stack.pop()
        stack[-1].children.append(node)
        stack.append(node)

    return root


def outline_items(markup: str) -> list[OutlineItem]:
    """Headings and section markers of `markup`, ordered by character offset."""
    if not markup or "<" not in markup:
        return []

    soup = BeautifulSoup(markup, "html.parser")
    line_starts = _line_starts(markup)
    items: list[OutlineItem] = []

    for tag in soup.find_all(HEADING_TAGS):
        title = normalize_whitespace(tag.get_text(" "))
        if not title:
            continue
        items.append(
            OutlineItem(
                position=_offset(tag, line_starts),
                level=int(tag.name[1]),
                type=ChapterType.HEADING,
                title=title,
                content=_following_content(tag, stop_at_rule=False),
            )
        )

    for tag in soup.find_all("hr"):
        content = _following_content(tag, stop_at_rule=True)
        if not content:
            continue
        items.append(
            OutlineItem(
                position=_offset(tag, line_starts),
                level=SECTION_MARKER_LEVEL,
                type=ChapterType.SECTION,
                title=_marker_title(content),
                content=content,
            )
        )

    for tag in soup.find_all(_is_section_element):
        content = normalize_whitespace(tag.get_text(" "))
        if not content:
            continue
        heading = tag.find(HEADING_TAGS)
        title = normalize_whitespace(heading.get_text(" ")) if heading else ""
        items.append(
            OutlineItem(
                position=_offset(tag, line_starts),
                level=SECTION_MARKER_LEVEL,
                type=ChapterType.SECTION,
                title=title or _marker_title(content),
                content=content,
            )
        )

    items.sort(key=lambda item: item.position)
    return items


def _is_section_element(tag: Tag) -> bool:
    if tag.name in HEADING_TAGS:
        return False
    for class_name in tag.get("class") or ():
        if any(word in SECTION_CLASS_WORDS for word in re.split(r"[-_]", class_name.lower())):
            return True
    return False


def _following_content(tag: Tag, stop_at_rule: bool) -> str:
    parts = []
    for sibling in tag.next_siblings:
        if isinstance(sibling, Comment):
            continue
        if isinstance(sibling, Tag):
            if sibling.name in HEADING_TAGS or sibling.find(HEADING_TAGS):
                break
            if stop_at_rule and sibling.name == "hr":
                break
            parts.append(sibling.get_text(" "))
        else:
            parts.append(str(sibling))
    return normalize_whitespace(" ".join(parts))


def _marker_title(content: str) -> str:
    if len(content) <= MARKER_TITLE_LENGTH:
        return content
    return content[:MARKER_TITLE_LENGTH].rstrip() + "..."


def _line_starts(markup: str) -> list[int]:
    starts = [0]
    starts.extend(i + 1 for i, char in enumerate(markup) if char == "\n")
    return starts


def _offset(tag: Tag, line_starts: list[int]) -> int:
    # html.parser records a 1-based line and a 0-based column per tag.
    if tag.sourceline is None or tag.sourcepos is None:
        return 0
    return line_starts[tag.sourceline - 1] + tag.sourcepos


def _flatten(node: ChapterNode, trail: list[str], out: list[FlatChapter]) -> None:
    if node.type is ChapterType.PAGE:
        path = node.title
        child_trail: list[str] = []
    else:
        child_trail = trail + [node.title]
        path = PATH_SEPARATOR.join(child_trail)

    out.append(
        FlatChapter(
            id=node.id,
            title=node.title,
            level=node.level,
            type=node.type,
            unit_id=node.source_unit_id,
            unit_name=node.source_unit_name,
            path=path,
            position=node.position,
            node=node,
        )
    )
    for child in node.children:
        _flatten(child, child_trail, out)
