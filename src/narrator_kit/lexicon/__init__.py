from .lexicon import (
    EntityLexicon,
    Lexicon,
    QuestionPattern,
    RulesLexicon,
    SceneKeyword,
    ScenePattern,
    available_languages,
    load_lexicon,
    load_lexicon_file,
)

__all__ = [
    "EntityLexicon",
    "Lexicon",
    "QuestionPattern",
    "RulesLexicon",
    "SceneKeyword",
    "ScenePattern",
    "available_languages",
    "load_lexicon",
    "load_lexicon_file",
]
