# src/narrator_kit/entities/extractor.py

import logging
import re
from collections import Counter
from dataclasses import dataclass

from narrator_kit.corpus.models import ParsedDocument
from narrator_kit.lexicon.lexicon import Lexicon, load_lexicon

logger = logging.getLogger(__name__)

MIN_NOUN_LENGTH = 3
DESCRIPTION_LIMIT = 500
PERSONALITY_LIMIT = 300
ELLIPSIS = "..."

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_UPPERCASE_START = re.compile(r"^[A-ZÀ-ÖØ-Þ]")
_NON_NAME_CHARS = re.compile(r"[^a-zA-ZÀ-ÖØ-ÿ'-]")


@dataclass(frozen=True)
class NpcProfile:
    name: str
    description: str
    personality: str
    unit_ids: tuple[str, ...]


class EntityExtractor:
    """Best-effort proper noun and NPC mining over parsed documents.

    Capitalized words that do not open a sentence are counted as candidate
    names. A candidate becomes an NPC when some sentence mentions it next to
    a character indicator (a role or a temperament word).
    """

    def __init__(self, lexicon: Lexicon | None = None) -> None:
        lexicon = lexicon or load_lexicon()
        self._stop_words = frozenset(w.lower() for w in lexicon.entities.stop_words)
        self._indicators = tuple(w.lower() for w in lexicon.entities.character_indicators)
        self._personality = tuple(
            w.lower() for w in lexicon.entities.personality_keywords
        )

    def extract_proper_nouns(self, document: ParsedDocument) -> list[str]:
        """Candidate names, most frequent first."""
        counts: Counter[str] = Counter()
        for unit in document.units:
            for sentence in split_sentences(unit.text):
                for word in sentence.split()[1:]:
                    if not _UPPERCASE_START.match(word):
                        continue
                    cleaned = _NON_NAME_CHARS.sub("", word)
                    if len(cleaned) < MIN_NOUN_LENGTH:
                        continue
                    if cleaned.lower() in self._stop_words:
                        continue
                    counts[cleaned] += 1

        logger.debug("Found %d proper nouns in %s", len(counts), document.id)
        return [noun for noun, _ in counts.most_common()]

    def extract_npc_profiles(self, document: ParsedDocument) -> list[NpcProfile]:
        profiles = []
        for name in self.extract_proper_nouns(document):
            profile = self._build_profile(document, name)
            if profile is not None:
                profiles.append(profile)

        logger.info("Extracted %d NPC profiles from %s", len(profiles), document.id)
        return profiles

    def get_npc_context(self, document: ParsedDocument, name: str) -> str:
        """Every sentence that mentions `name`, grouped by unit."""
        if not isinstance(name, str) or not name.strip():
            logger.warning("Invalid NPC name: %r", name)
            return ""

        needle = name.lower()
        sections = []
        for unit in document.units:
            sentences = [
                s for s in split_sentences(unit.text) if needle in s.lower()
            ]
            if sentences:
                sections.append(f"## {unit.name}\n" + ". ".join(sentences) + ".")

        if not sections:
            return ""
        return f"# {name}\n\n" + "\n\n".join(sections)

    def _build_profile(self, document: ParsedDocument, name: str) -> NpcProfile | None:
        needle = name.lower()
        descriptions: list[str] = []
        personality: list[str] = []
        unit_ids: list[str] = []

        for unit in document.units:
            for sentence in split_sentences(unit.text):
                lowered = sentence.lower()
                if needle not in lowered:
                    continue
                if not any(indicator in lowered for indicator in self._indicators):
                    continue
                descriptions.append(sentence)
                if unit.id not in unit_ids:
                    unit_ids.append(unit.id)
                if any(keyword in lowered for keyword in self._personality):
                    personality.append(sentence)

        if not descriptions:
            return None

        return NpcProfile(
            name=name,
            description=truncate(". ".join(descriptions), DESCRIPTION_LIMIT),
            personality=truncate(". ".join(personality), PERSONALITY_LIMIT),
            unit_ids=tuple(unit_ids),
        )


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def truncate(text: str, limit: int) -> str:
    """Cut `text` to at most `limit` characters, ellipsis included."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS
