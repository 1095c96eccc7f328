# Tests for session state models
# Covers ActiveSearch / GroupSessionState serialization and status sets

from searchsession.session.models import (
    IN_FLIGHT_STATUSES,
    SWEPT_STATUSES,
    TERMINAL_STATUSES,
    ActiveSearch,
    GroupSessionState,
    SearchStatus,
)


class TestActiveSearch:
    """Tests for ActiveSearch."""

    def test_defaults(self):
        """A new record starts pending with generated id and timestamps."""
        search = ActiveSearch(query="ecash", group_id="g1")
        assert search.id
        assert search.status == SearchStatus.PENDING
        assert search.started_at
        assert search.created_at
        assert search.progress is None
        assert search.error is None
        assert search.is_in_flight
        assert not search.is_terminal

    def test_to_dict_uses_persisted_keys(self):
        search = ActiveSearch(id="s1", query="q", group_id="g1", status=SearchStatus.FAILED)
        data = search.to_dict()
        assert data["groupId"] == "g1"
        assert data["status"] == "failed"
        assert "startedAt" in data
        assert "partialResults" in data

    def test_from_dict_accepts_camel_and_snake_case(self):
        camel = ActiveSearch.from_dict(
            {"id": "s1", "query": "q", "groupId": "g1", "status": "processing", "progress": 40}
        )
        snake = ActiveSearch.from_dict(
            {"id": "s2", "query": "q", "group_id": "g2", "status": "cancelled"}
        )
        assert camel.group_id == "g1"
        assert camel.status == SearchStatus.PROCESSING
        assert camel.progress == 40
        assert snake.group_id == "g2"
        assert snake.is_terminal

    def test_terminal_statuses(self):
        """Completed, failed and cancelled are terminal; only the first two are swept."""
        assert TERMINAL_STATUSES == {
            SearchStatus.COMPLETED,
            SearchStatus.FAILED,
            SearchStatus.CANCELLED,
        }
        assert SWEPT_STATUSES == {SearchStatus.COMPLETED, SearchStatus.FAILED}
        assert IN_FLIGHT_STATUSES.isdisjoint(TERMINAL_STATUSES)


class TestGroupSessionState:
    """Tests for GroupSessionState."""

    def test_empty_state_is_consistent(self):
        assert GroupSessionState().is_consistent()

    def test_flag_without_id_is_inconsistent(self):
        assert not GroupSessionState(has_active_conversation=True).is_consistent()
        assert not GroupSessionState(active_group_id="g1").is_consistent()

    def test_from_browser_snapshot_without_flag(self):
        """Older snapshots only stored group_id; the flag is derived from it."""
        state = GroupSessionState.from_dict({"group_id": "g1"})
        assert state.active_group_id == "g1"
        assert state.has_active_conversation
        assert state.is_consistent()
