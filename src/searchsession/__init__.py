"""searchsession - conversation group and active-search session manager.

Keeps track of which conversation group new searches attach to and of the
searches that are still in flight, reconciling both against the hosted
search API.

Usage:
    from searchsession import get_session_coordinator

    coordinator = get_session_coordinator()
    group_id = await coordinator.ensure_active_group()
    record = await coordinator.start_search("what is ecash?")
"""

from searchsession.api.client import (
    GroupCreationError,
    SearchAPIClient,
    SearchAPIConnectionError,
    SearchAPIError,
    SearchAPIResponseError,
    SearchAPITimeoutError,
)
from searchsession.session.coordinator import (
    SessionCoordinator,
    get_session_coordinator,
    reset_session_coordinator,
)
from searchsession.session.group_store import GroupStore
from searchsession.session.models import ActiveSearch, GroupSessionState, SearchStatus
from searchsession.session.search_tracker import SearchSessionTracker

__all__ = [
    # API
    "SearchAPIClient",
    "SearchAPIError",
    "SearchAPITimeoutError",
    "SearchAPIConnectionError",
    "SearchAPIResponseError",
    "GroupCreationError",
    # Session state
    "ActiveSearch",
    "GroupSessionState",
    "SearchStatus",
    "GroupStore",
    "SearchSessionTracker",
    # Coordinator
    "SessionCoordinator",
    "get_session_coordinator",
    "reset_session_coordinator",
]
