"""Key-value storage protocol.

Session stores depend on this interface only, so the backing store can be
a directory of JSON files, an in-memory dict in tests, or anything else
that can hold a JSON value per key.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStoreProtocol(Protocol):
    """Minimal get/set store for JSON-serializable snapshots."""

    def get(self, key: str) -> Any | None:
        """Return the stored value, or None if the key was never written."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``. Must be durable when it returns."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``; no-op if absent."""
        ...
