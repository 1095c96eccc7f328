"""Key-value persistence for session state."""

from searchsession.storage.file import FileKeyValueStore, MemoryKeyValueStore
from searchsession.storage.protocol import KeyValueStoreProtocol

__all__ = [
    "KeyValueStoreProtocol",
    "FileKeyValueStore",
    "MemoryKeyValueStore",
]
