"""Cache collaborator: JSON files with atomic, last-write-wins writes."""

from src.cache.io import AtomicWriter, WrittenFile
from src.cache.store import JsonFeedCache


__all__ = [
    "AtomicWriter",
    "JsonFeedCache",
    "WrittenFile",
]
