"""Client session state: active group, active searches and their coordinator."""

from searchsession.session.coordinator import (
    SessionCoordinator,
    get_session_coordinator,
    newest_group,
    reset_session_coordinator,
)
from searchsession.session.group_store import GroupStore
from searchsession.session.models import (
    IN_FLIGHT_STATUSES,
    SWEPT_STATUSES,
    TERMINAL_STATUSES,
    ActiveSearch,
    GroupSessionState,
    SearchStatus,
)
from searchsession.session.search_tracker import SearchSessionTracker

__all__ = [
    "ActiveSearch",
    "GroupSessionState",
    "SearchStatus",
    "IN_FLIGHT_STATUSES",
    "TERMINAL_STATUSES",
    "SWEPT_STATUSES",
    "GroupStore",
    "SearchSessionTracker",
    "SessionCoordinator",
    "get_session_coordinator",
    "reset_session_coordinator",
    "newest_group",
]
