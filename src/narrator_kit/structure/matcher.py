# src/narrator_kit/structure/matcher.py

import logging
import re

from narrator_kit.lexicon.lexicon import Lexicon, load_lexicon

from .extractor import StructuralHierarchyExtractor
from .models import ChapterNode, SceneMatch

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.3
TERM_MATCH_THRESHOLD = 0.3
MIN_PREFIX_WORD_LENGTH = 3

_SEPARATORS = re.compile(r"[:\-–—|/]")
_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_term(text: str) -> str:
    """Lowercase, punctuation replaced by spaces, whitespace collapsed."""
    return _WHITESPACE.sub(" ", _NON_WORD.sub(" ", text.lower())).strip()


class SceneNameMatcher:
    """Maps free-text scene labels onto nodes of a source outline.

    Labels such as "Chapter 1: The Tavern", "Scene - Dark Forest" or
    "Atto 2" are split into search terms (a recognized chapter prefix, the
    fragments between separators, and the whole label) and every outline
    node is scored against them. The best node wins if it reaches the
    threshold.
    """

    def __init__(
        self,
        extractor: StructuralHierarchyExtractor,
        lexicon: Lexicon | None = None,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self._extractor = extractor
        self._threshold = threshold
        lexicon = lexicon or load_lexicon()
        self._prefixes = [re.compile(p, re.IGNORECASE) for p in lexicon.chapter_prefixes]

    @property
    def threshold(self) -> float:
        return self._threshold

    def extract_search_terms(self, text: str) -> list[str]:
        if not isinstance(text, str):
            return []
        raw = text.strip().lower()
        if not raw:
            return []

        terms = []
        remainder = raw
        for pattern in self._prefixes:
            match = pattern.match(raw)
            if match:
                terms.append(normalize_term(match.group(0)))
                remainder = raw[match.end() :]
                break

        for fragment in _SEPARATORS.split(remainder):
            fragment = fragment.strip()
            if not fragment or self._is_prefix_only(fragment):
                continue
            terms.append(normalize_term(fragment))

        terms.append(normalize_term(raw))
        return [term for term in dict.fromkeys(terms) if term]

    def score(self, title: str, terms: list[str], normalized_input: str) -> float:
        """Similarity of an outline title to a label's search terms, in [0, 1]."""
        normalized_title = normalize_term(title)
        if not normalized_title or not terms:
            return 0.0
        if normalized_title == normalized_input:
            return 1.0

        title_words = normalized_title.split()
        accumulated = 0.0
        matched_terms = 0
        for term in terms:
            if term in normalized_title:
                term_score = 0.8 * min(1.0, len(term) / len(normalized_title) * 2)
            else:
                term_words = term.split()
                word_matches = sum(_word_match(word, title_words) for word in term_words)
                term_score = 0.5 * (word_matches / len(term_words)) if term_words else 0.0
            accumulated += term_score
            if term_score >= TERM_MATCH_THRESHOLD:
                matched_terms += 1

        score = 0.7 * (accumulated / len(terms)) + 0.3 * (matched_terms / len(terms))
        return max(0.0, min(1.0, score))

    def match_with_score(self, source_id: str, text: str) -> SceneMatch | None:
        terms = self.extract_search_terms(text)
        if not terms:
            logger.warning("Cannot match empty scene name: %r", text)
            return None
        normalized_input = normalize_term(text)

        best = None
        best_score = 0.0
        for entry in self._extractor.get_flat_chapter_list(source_id):
            score = self.score(entry.title, terms, normalized_input)
            if score > best_score:
                best, best_score = entry, score
            if score == 1.0:
                break

        if best is None or best_score < self._threshold:
            logger.debug(
                "No chapter for scene %r in source %s (best score %.2f)",
                text,
                source_id,
                best_score,
            )
            return None

        logger.debug("Scene %r matched %r with score %.2f", text, best.title, best_score)
        return SceneMatch(node=best.node, score=best_score, path=best.path)

    def match_scene_name(self, source_id: str, text: str) -> ChapterNode | None:
        match = self.match_with_score(source_id, text)
        return match.node if match else None

    def _is_prefix_only(self, fragment: str) -> bool:
        return any(pattern.fullmatch(fragment) for pattern in self._prefixes)


def _word_match(word: str, title_words: list[str]) -> float:
    best = 0.0
    for title_word in title_words:
        if word == title_word:
            return 1.0
        if (
            len(word) >= MIN_PREFIX_WORD_LENGTH
            and len(title_word) >= MIN_PREFIX_WORD_LENGTH
            and (title_word.startswith(word) or word.startswith(title_word))
        ):
            best = 0.5
    return best
