# Tests for GroupStore
# Active group state, write-through persistence and invariant recovery

import pytest

from searchsession.session.group_store import STORAGE_KEY, GroupStore
from searchsession.storage import MemoryKeyValueStore

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def storage():
    return MemoryKeyValueStore()


@pytest.fixture
def store(storage):
    return GroupStore(storage)


def assert_consistent(store: GroupStore) -> None:
    assert store.check_has_active_conversation() == (store.active_group_id is not None)


# ============================================================================
# Tests
# ============================================================================


class TestGroupStoreState:
    """Tests for state transitions."""

    def test_starts_empty(self, store):
        assert store.active_group_id is None
        assert not store.check_has_active_conversation()
        assert_consistent(store)

    def test_update_conversation(self, store):
        store.update_conversation("g1")
        assert store.active_group_id == "g1"
        assert store.check_has_active_conversation()
        assert_consistent(store)

    def test_update_overwrites(self, store):
        store.update_conversation("g1")
        store.update_conversation("g2")
        assert store.active_group_id == "g2"

    def test_clear_conversation(self, store):
        store.update_conversation("g1")
        store.clear_conversation()
        assert store.active_group_id is None
        assert not store.check_has_active_conversation()
        assert_consistent(store)

    def test_empty_id_rejected(self, store):
        with pytest.raises(ValueError):
            store.update_conversation("")
        assert_consistent(store)

    def test_set_first_conversation_active_only_when_empty(self, store):
        assert store.set_first_conversation_active("g1") is True
        assert store.set_first_conversation_active("g2") is False
        assert store.active_group_id == "g1"

    def test_state_is_a_copy(self, store):
        store.update_conversation("g1")
        snapshot = store.state
        store.clear_conversation()
        assert snapshot.active_group_id == "g1"


class TestGroupStorePersistence:
    """Tests for write-through persistence."""

    def test_every_mutation_is_written(self, storage, store):
        store.update_conversation("g1")
        assert storage.get(STORAGE_KEY)["state"]["group_id"] == "g1"

        store.clear_conversation()
        assert storage.get(STORAGE_KEY)["state"]["group_id"] is None

    def test_restart_sees_last_value(self, storage, store):
        store.update_conversation("g1")
        store.update_conversation("g2")

        restarted = GroupStore(storage)
        assert restarted.active_group_id == "g2"
        assert restarted.check_has_active_conversation()

    def test_loads_browser_snapshot(self):
        storage = MemoryKeyValueStore({STORAGE_KEY: {"state": {"group_id": "abc"}, "version": 0}})
        store = GroupStore(storage)
        assert store.active_group_id == "abc"
        assert store.check_has_active_conversation()

    def test_inconsistent_snapshot_is_reset(self):
        storage = MemoryKeyValueStore(
            {
                STORAGE_KEY: {
                    "state": {"group_id": None, "hasActiveConversation": True},
                    "version": 0,
                }
            }
        )
        store = GroupStore(storage)
        assert store.active_group_id is None
        assert not store.check_has_active_conversation()
        assert storage.get(STORAGE_KEY)["state"]["hasActiveConversation"] is False

    @pytest.mark.parametrize("snapshot", ["garbage", {"state": {"group_id": 42}}])
    def test_unreadable_snapshot_is_reset(self, snapshot):
        storage = MemoryKeyValueStore({STORAGE_KEY: snapshot})
        store = GroupStore(storage)
        assert store.active_group_id is None
        assert_consistent(store)


class FlakyStorage(MemoryKeyValueStore):
    """Memory store whose writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def set(self, key, value):
        if self.fail_writes:
            raise OSError("disk full")
        super().set(key, value)


class TestGroupStoreWriteFailures:
    """A failed write leaves memory and storage in agreement."""

    def test_failed_update_keeps_previous_state(self):
        storage = FlakyStorage()
        store = GroupStore(storage)
        store.update_conversation("g1")

        storage.fail_writes = True
        with pytest.raises(OSError):
            store.update_conversation("g2")

        assert store.active_group_id == "g1"
        assert storage.get(STORAGE_KEY)["state"]["group_id"] == "g1"
        assert_consistent(store)

    def test_failed_first_write_keeps_empty_state(self):
        storage = FlakyStorage()
        store = GroupStore(storage)

        storage.fail_writes = True
        with pytest.raises(OSError):
            store.update_conversation("g1")

        assert store.active_group_id is None
        assert storage.get(STORAGE_KEY) is None

    def test_failed_clear_keeps_group(self):
        storage = FlakyStorage()
        store = GroupStore(storage)
        store.update_conversation("g1")

        storage.fail_writes = True
        with pytest.raises(OSError):
            store.clear_conversation()

        assert store.active_group_id == "g1"
        assert store.check_has_active_conversation()
