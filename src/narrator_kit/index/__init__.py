from .bounded_index import DEFAULT_MAX_SIZE, BoundedIndex, BoundedIndexEntry

__all__ = [
    "DEFAULT_MAX_SIZE",
    "BoundedIndex",
    "BoundedIndexEntry",
]
