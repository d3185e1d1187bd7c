# src/narrator_kit/lexicon/lexicon.py

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel

from narrator_kit.errors import UsageError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"


class ScenePattern(BaseModel):
    pattern: str
    scene_type: str
    weight: float

    class Config:
        extra = "forbid"


class SceneKeyword(BaseModel):
    pattern: str
    weight: float

    class Config:
        extra = "forbid"


class QuestionPattern(BaseModel):
    name: str
    pattern: str
    confidence: float
    type: str

    class Config:
        extra = "forbid"


class RulesLexicon(BaseModel):
    question_patterns: list[QuestionPattern] = []
    mechanic_terms: dict[str, str] = {}
    question_words: list[str] = []

    class Config:
        extra = "forbid"


class EntityLexicon(BaseModel):
    stop_words: list[str] = []
    character_indicators: list[str] = []
    personality_keywords: list[str] = []

    class Config:
        extra = "forbid"


class Lexicon(BaseModel):
    """Language data consumed by the matching and detection algorithms.

    One YAML file per language under `data/`. Several languages are merged
    in order: lists are concatenated without duplicates, mappings are
    updated so that earlier languages keep their keys.
    """

    languages: list[str]
    chapter_prefixes: list[str] = []
    scene_patterns: dict[str, list[ScenePattern]] = {}
    scene_keywords: dict[str, list[SceneKeyword]] = {}
    rules: RulesLexicon = RulesLexicon()
    entities: EntityLexicon = EntityLexicon()

    class Config:
        extra = "forbid"

    def merge(self, other: "Lexicon") -> "Lexicon":
        scene_patterns = {
            family: _unique(self.scene_patterns.get(family, []) + patterns)
            for family, patterns in other.scene_patterns.items()
        }
        for family, patterns in self.scene_patterns.items():
            scene_patterns.setdefault(family, patterns)

        scene_keywords = {
            scene_type: _unique(self.scene_keywords.get(scene_type, []) + keywords)
            for scene_type, keywords in other.scene_keywords.items()
        }
        for scene_type, keywords in self.scene_keywords.items():
            scene_keywords.setdefault(scene_type, keywords)

        return Lexicon(
            languages=_unique(self.languages + other.languages),
            chapter_prefixes=_unique(self.chapter_prefixes + other.chapter_prefixes),
            scene_patterns=scene_patterns,
            scene_keywords=scene_keywords,
            rules=RulesLexicon(
                question_patterns=_unique(
                    self.rules.question_patterns + other.rules.question_patterns
                ),
                mechanic_terms={
                    **other.rules.mechanic_terms,
                    **self.rules.mechanic_terms,
                },
                question_words=_unique(
                    self.rules.question_words + other.rules.question_words
                ),
            ),
            entities=EntityLexicon(
                stop_words=_unique(self.entities.stop_words + other.entities.stop_words),
                character_indicators=_unique(
                    self.entities.character_indicators
                    + other.entities.character_indicators
                ),
                personality_keywords=_unique(
                    self.entities.personality_keywords
                    + other.entities.personality_keywords
                ),
            ),
        )


def _unique(items: list) -> list:
    result = []
    for item in items:
        if item not in result:
            result.append(item)
    return result


def available_languages() -> list[str]:
    return sorted(path.stem for path in DATA_DIR.glob("*.yaml"))


def load_lexicon_file(file_path: Path) -> Lexicon:
    with open(file_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    language = data.pop("language", file_path.stem)
    return Lexicon(languages=[language], **data)


@lru_cache(maxsize=8)
def load_lexicon(languages: tuple[str, ...] = ("it", "en")) -> Lexicon:
    """Load and merge the bundled lexicons for `languages`, in order.

    Raises:
        UsageError: If no language is given or one is not bundled.
    """
    if not languages:
        raise UsageError("At least one language is required")

    lexicon = _load_language(languages[0])
    for language in languages[1:]:
        lexicon = lexicon.merge(_load_language(language))
    return lexicon


def _load_language(language: str) -> Lexicon:
    file_path = DATA_DIR / f"{language}.yaml"
    if not file_path.exists():
        logger.error("Lexicon not found: language=%s", language)
        raise UsageError(
            f"Unknown lexicon language '{language}', "
            f"available: {', '.join(available_languages())}"
        )
    logger.debug("Loaded lexicon: %s from %s", language, file_path)
    return load_lexicon_file(file_path)
