# src/narrator_kit/corpus/extraction.py

"""Plain-text extraction, one strategy per source unit kind."""

from collections.abc import Callable

from .markup import normalize_whitespace, strip_markup
from .models import ActorUnit, ItemUnit, RollTableUnit, SourceUnit, TextPage


def _text_page(unit: TextPage) -> list[str]:
    return [strip_markup(unit.content)]


def _item(unit: ItemUnit) -> list[str]:
    parts = [unit.name]
    if unit.item_type:
        parts.append(f"Type: {unit.item_type}")
    parts.append(strip_markup(unit.description))
    if unit.source:
        parts.append(f"Source: {unit.source}")
    return parts


def _roll_table(unit: RollTableUnit) -> list[str]:
    parts = [unit.name, strip_markup(unit.description)]
    if unit.results:
        parts.append("Results:")
        parts.extend(
            f"{result.low}-{result.high}: {strip_markup(result.text)}"
            for result in unit.results
        )
    return parts


def _actor(unit: ActorUnit) -> list[str]:
    parts = [unit.name]
    if unit.actor_type:
        parts.append(f"Type: {unit.actor_type}")
    parts.append(strip_markup(unit.biography))
    return parts


EXTRACTORS: dict[str, Callable[..., list[str]]] = {
    "text": _text_page,
    "item": _item,
    "roll_table": _roll_table,
    "actor": _actor,
}


def extract_text(unit: SourceUnit) -> str:
    """Whitespace-normalized plain text for a unit.

    Raises:
        KeyError: If no strategy is registered for the unit kind.
    """
    try:
        extractor = EXTRACTORS[unit.kind]
    except KeyError:
        raise KeyError(f"No text extractor for unit kind '{unit.kind}'")
    return normalize_whitespace(" ".join(part for part in extractor(unit) if part))
