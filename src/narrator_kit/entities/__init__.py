from .extractor import EntityExtractor, NpcProfile, split_sentences, truncate

__all__ = [
    "EntityExtractor",
    "NpcProfile",
    "split_sentences",
    "truncate",
]
