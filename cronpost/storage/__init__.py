"""Key-value persistence for per-account plugin data."""

from cronpost.storage.stores import JsonFileStore, KeyValueStore, MemoryStore

__all__ = ["JsonFileStore", "KeyValueStore", "MemoryStore"]
