"""Active conversation group store.

Holds the id of the group new searches attach to. Every mutation is written
through to the key-value store before the call returns, so a restarted
process sees the last committed value.
"""

import logging
from dataclasses import replace
from typing import Any

from searchsession.session.models import GroupSessionState
from searchsession.storage.protocol import KeyValueStoreProtocol

logger = logging.getLogger(__name__)

STORAGE_KEY = "conversation-storage"
STORAGE_VERSION = 0


class GroupStore:
    """Owns GroupSessionState and its persisted snapshot."""

    def __init__(self, storage: KeyValueStoreProtocol, key: str = STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._state = self._load()

    def _load(self) -> GroupSessionState:
        snapshot = self._storage.get(self._key)
        if snapshot is None:
            return GroupSessionState()

        try:
            state = GroupSessionState.from_dict(snapshot.get("state", {}))
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Discarding unreadable {self._key} snapshot: {e}")
            return self._reset()

        if not state.is_consistent():
            logger.warning("Inconsistent %s snapshot, resetting", self._key)
            return self._reset()
        return state

    def _reset(self) -> GroupSessionState:
        self._commit(GroupSessionState())
        return self._state

    def _commit(self, state: GroupSessionState) -> None:
        """Write ``state`` through, then make it current.

        If the write fails the in-memory state is left as it was.
        """
        snapshot: dict[str, Any] = {"state": state.to_dict(), "version": STORAGE_VERSION}
        self._storage.set(self._key, snapshot)
        self._state = state

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def state(self) -> GroupSessionState:
        """Point-in-time copy of the state."""
        return replace(self._state)

    @property
    def active_group_id(self) -> str | None:
        return self._state.active_group_id

    def check_has_active_conversation(self) -> bool:
        if not self._state.is_consistent():
            logger.warning("Active conversation flag out of sync, resetting")
            self._reset()
        return self._state.has_active_conversation

    # =========================================================================
    # Mutations
    # =========================================================================

    def update_conversation(self, group_id: str) -> None:
        """Make ``group_id`` the active group. The id is not checked server-side."""
        if not group_id:
            raise ValueError("group_id must be a non-empty string")
        self._commit(GroupSessionState(active_group_id=group_id, has_active_conversation=True))
        logger.debug("Active group set to %s", group_id)

    def set_first_conversation_active(self, group_id: str) -> bool:
        """Activate ``group_id`` only if no group is active yet.

        Returns True if it was committed.
        """
        if self.check_has_active_conversation():
            return False
        self.update_conversation(group_id)
        return True

    def clear_conversation(self) -> None:
        """Forget the active group (call after it was deleted server-side)."""
        self._commit(GroupSessionState())
        logger.debug("Active group cleared")
