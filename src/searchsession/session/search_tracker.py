"""Active search tracker.

Maps search id -> ActiveSearch and persists the whole map on every change.

Status updates that miss (unknown id, or a record that already reached a
terminal status) are soft misses: they return False and are logged at debug
level. Late network callbacks after a purge or a cancellation land here and
are expected, not errors.
"""

import logging
from dataclasses import fields, replace
from typing import Any

from searchsession.session.models import (
    IN_FLIGHT_STATUSES,
    SWEPT_STATUSES,
    ActiveSearch,
    SearchStatus,
)
from searchsession.storage.protocol import KeyValueStoreProtocol

logger = logging.getLogger(__name__)

STORAGE_KEY = "search-state-storage"
STORAGE_VERSION = 0

_PATCHABLE_FIELDS = frozenset(f.name for f in fields(ActiveSearch)) - {"id"}


class SearchSessionTracker:
    """Owns the SearchSessionMap and its persisted snapshot."""

    def __init__(self, storage: KeyValueStoreProtocol, key: str = STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._searches: dict[str, ActiveSearch] = {}
        self._load()

    def _load(self) -> None:
        snapshot = self._storage.get(self._key)
        if snapshot is None:
            return

        loaded: dict[str, ActiveSearch] = {}
        try:
            records = snapshot.get("state", {}).get("activeSearches", {})
            for data in records.values():
                search = ActiveSearch.from_dict(data)
                loaded[search.id] = search
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Discarding unreadable {self._key} snapshot: {e}")
            self._commit({})
            return
        self._searches = loaded

        logger.info(
            f"Search state loaded: {len(self._searches)} searches, "
            f"{len(self.get_pending_searches())} pending"
        )

    def _commit(self, searches: dict[str, ActiveSearch]) -> None:
        """Write ``searches`` through, then make it the current map.

        If the write fails the in-memory map is left as it was.
        """
        snapshot = {
            "state": {"activeSearches": {sid: s.to_dict() for sid, s in searches.items()}},
            "version": STORAGE_VERSION,
        }
        self._storage.set(self._key, snapshot)
        self._searches = searches

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_active_search(self, search: ActiveSearch) -> None:
        """Insert or replace the record stored under ``search.id``."""
        self._commit({**self._searches, search.id: replace(search)})

    def update_search_status(self, search_id: str, **updates: Any) -> bool:
        """Merge ``updates`` into a record.

        Returns False (soft miss) if the id is unknown or the record is
        already terminal. Raises ValueError for fields ActiveSearch lacks.
        """
        unknown = set(updates) - _PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "status" in updates:
            updates["status"] = SearchStatus(updates["status"])

        current = self._searches.get(search_id)
        if current is None:
            logger.debug("Status update for unknown search %s dropped", search_id)
            return False
        if current.is_terminal:
            logger.debug(
                "Status update for %s search %s dropped", current.status.value, search_id
            )
            return False

        self._commit({**self._searches, search_id: replace(current, **updates)})
        return True

    def cancel_search(self, search_id: str) -> bool:
        """Mark an in-flight search cancelled. Returns False if it is not in flight."""
        current = self._searches.get(search_id)
        if current is None or not current.is_in_flight:
            return False
        return self.update_search_status(search_id, status=SearchStatus.CANCELLED)

    def remove_active_search(self, search_id: str) -> bool:
        """Delete a record. Returns False if it was already gone."""
        if search_id not in self._searches:
            logger.debug("Remove for unknown search %s ignored", search_id)
            return False
        self._commit({sid: s for sid, s in self._searches.items() if sid != search_id})
        return True

    def clear_completed_searches(self) -> int:
        """Purge completed and failed records. Returns how many were removed.

        Cancelled records stay until removed explicitly.
        """
        kept = {sid: s for sid, s in self._searches.items() if s.status not in SWEPT_STATUSES}
        removed = len(self._searches) - len(kept)
        if removed:
            self._commit(kept)
        return removed

    # =========================================================================
    # Reads (snapshots; re-query after mutating)
    # =========================================================================

    def get_search(self, search_id: str) -> ActiveSearch | None:
        search = self._searches.get(search_id)
        return replace(search) if search else None

    def get_active_searches(self) -> list[ActiveSearch]:
        """All tracked searches, most recently started first."""
        searches = [replace(s) for s in self._searches.values()]
        return sorted(searches, key=lambda s: s.started_at, reverse=True)

    def get_pending_searches(self) -> list[ActiveSearch]:
        """Searches still pending or processing."""
        return [replace(s) for s in self._searches.values() if s.status in IN_FLIGHT_STATUSES]

    def __len__(self) -> int:
        return len(self._searches)

    def __contains__(self, search_id: object) -> bool:
        return search_id in self._searches
