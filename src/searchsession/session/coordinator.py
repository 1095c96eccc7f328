"""Session coordinator.

Resolves the conversation group a new search attaches to and runs searches
against the API while keeping the tracker up to date.

Group resolution (ensure_active_group):
1. If a group is active locally, use it (no network call).
2. Otherwise list the server's groups and resume the newest one.
3. If the server has none, create one.

Steps 2-3 run at most once at a time: the first caller starts the
resolution and every concurrent caller awaits that same task, so a burst of
searches on a fresh client creates exactly one group.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from searchsession.api.client import GroupCreationError, SearchAPIClient, SearchAPIError
from searchsession.api.schemas import (
    ConversationGroup,
    ConversationTurn,
    SearchHistory,
    SearchRequest,
)
from searchsession.config import Settings, get_config_dir, get_settings
from searchsession.session.group_store import GroupStore
from searchsession.session.models import ActiveSearch, SearchStatus
from searchsession.session.search_tracker import SearchSessionTracker
from searchsession.storage.file import FileKeyValueStore

logger = logging.getLogger(__name__)


def newest_group(groups: list[ConversationGroup]) -> ConversationGroup | None:
    """Group with the latest created_at; the first one wins on ties."""
    if not groups:
        return None
    return max(groups, key=lambda g: g.created_at_dt())


class SessionCoordinator:
    """Coordinates GroupStore, SearchSessionTracker and the search API.

    The only component that reads both stores.
    """

    def __init__(
        self,
        api: SearchAPIClient,
        groups: GroupStore,
        searches: SearchSessionTracker,
    ):
        self.api = api
        self.groups = groups
        self.searches = searches
        self._resolving: asyncio.Task[str] | None = None
        self._tasks: dict[str, asyncio.Task[None]] = {}

    # =========================================================================
    # Group resolution
    # =========================================================================

    async def ensure_active_group(self) -> str:
        """Return the active group id, resuming or creating one if needed."""
        group_id = self.groups.active_group_id
        if group_id:
            return group_id

        if self._resolving is None or self._resolving.done():
            self._resolving = asyncio.create_task(self._resolve_group())
            self._resolving.add_done_callback(self._clear_resolving)
        # shield: one caller being cancelled must not abort the others
        return await asyncio.shield(self._resolving)

    def _clear_resolving(self, task: asyncio.Task[str]) -> None:
        if self._resolving is task:
            self._resolving = None
        # Mark the failure retrieved even if every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _resolve_group(self) -> str:
        await self.refresh_groups()
        group_id = self.groups.active_group_id
        if group_id:
            return group_id

        group = await self._create_group()
        # The user may have picked a group while the create request ran
        if self.groups.set_first_conversation_active(group.id):
            logger.info("Created conversation group %s", group.id)
        else:
            logger.info(
                "Created group %s but %s was selected meanwhile; keeping the selection",
                group.id,
                self.groups.active_group_id,
            )
        return self.groups.active_group_id or group.id

    async def refresh_groups(self) -> list[ConversationGroup]:
        """Fetch the server's groups.

        Side effect: when no group is active locally, the newest group is
        made active ("resume most recent conversation"). An existing
        selection is never overwritten.
        """
        try:
            groups = await self.api.list_groups()
        except SearchAPIError as e:
            logger.warning("Listing groups failed: %s", e)
            raise

        if not self.groups.check_has_active_conversation():
            newest = newest_group(groups)
            if newest is not None:
                self.groups.update_conversation(newest.id)
                logger.info("Resumed conversation group %s", newest.id)
        return groups

    async def create_new_group(self) -> str:
        """Create a group on the server and make it active.

        An explicit request, so it replaces any active group. Raises
        GroupCreationError on failure; the store is left untouched.
        """
        group = await self._create_group()
        self.groups.update_conversation(group.id)
        logger.info("Created conversation group %s", group.id)
        return group.id

    async def _create_group(self) -> ConversationGroup:
        try:
            return await self.api.create_group()
        except SearchAPIError as e:
            logger.warning("Creating group failed: %s", e)
            raise GroupCreationError(e) from e

    def select_group(self, group_id: str) -> None:
        """Switch to a group the user picked."""
        self.groups.update_conversation(group_id)

    async def delete_group(self, group_id: str) -> bool:
        """Delete a group server-side; clears the active group if it was this one."""
        result = await self.api.delete_group(group_id)
        if result.success and self.groups.active_group_id == group_id:
            self.groups.clear_conversation()
        return result.success

    def clear_conversation(self) -> None:
        self.groups.clear_conversation()

    # =========================================================================
    # Searches
    # =========================================================================

    async def start_search(
        self,
        query: str,
        *,
        conversation: list[ConversationTurn] | None = None,
        urls: list[str] | None = None,
        model_id: str | None = None,
    ) -> ActiveSearch:
        """Register a search and dispatch it in the background.

        Returns the pending record; poll the tracker or call
        wait_for_search() for the outcome. Raises GroupCreationError (or
        another SearchAPIError) if no group could be resolved, in which case
        nothing is registered.
        """
        group_id = await self.ensure_active_group()
        request = SearchRequest(
            message=query,
            group_id=group_id,
            conversation=conversation,
            urls=urls or None,
            model_id=model_id,
        )

        record = ActiveSearch(query=query, group_id=group_id)
        self.searches.add_active_search(record)

        task = asyncio.create_task(self._run_search(record.id, request))
        self._tasks[record.id] = task
        task.add_done_callback(lambda _t, sid=record.id: self._tasks.pop(sid, None))
        return record

    async def _run_search(self, search_id: str, request: SearchRequest) -> None:
        self.searches.update_search_status(search_id, status=SearchStatus.PROCESSING)
        try:
            result = await self.api.search(request)
        except asyncio.CancelledError:
            self.searches.cancel_search(search_id)
            raise
        except SearchAPIError as e:
            logger.warning("Search %s failed: %s", search_id, e)
            self.searches.update_search_status(search_id, status=SearchStatus.FAILED, error=str(e))
            return
        except Exception as e:
            logger.exception("Search %s crashed", search_id)
            self.searches.update_search_status(search_id, status=SearchStatus.FAILED, error=str(e))
            return

        applied = self.searches.update_search_status(
            search_id,
            status=SearchStatus.COMPLETED,
            progress=100,
            partial_results=result.model_dump(),
        )
        if not applied:
            logger.debug("Result for search %s arrived after it was cancelled or removed", search_id)

    async def wait_for_search(self, search_id: str) -> ActiveSearch | None:
        """Wait until a search dispatched by this process settles."""
        task = self._tasks.get(search_id)
        if task is not None:
            await asyncio.wait({task})
        return self.searches.get_search(search_id)

    def cancel_search(self, search_id: str) -> bool:
        """Cancel an in-flight search. Results arriving later are dropped."""
        cancelled = self.searches.cancel_search(search_id)
        task = self._tasks.get(search_id)
        if task is not None and not task.done():
            task.cancel()
        return cancelled

    async def list_searches(self, group_id: str | None = None) -> SearchHistory:
        """Prior turns of a group (the active one by default)."""
        group_id = group_id or self.groups.active_group_id
        if not group_id:
            return SearchHistory(searches=[], group_id="")
        return await self.api.list_searches(group_id)

    async def delete_search(self, search_id: str, group_id: str | None = None) -> bool:
        group_id = group_id or self.groups.active_group_id
        if not group_id:
            raise ValueError("No group to delete the search from")
        result = await self.api.delete_search(search_id, group_id)
        return result.success

    # Tracker passthroughs exposed to the UI layer

    def get_pending_searches(self) -> list[ActiveSearch]:
        return self.searches.get_pending_searches()

    def update_search_status(self, search_id: str, **updates: Any) -> bool:
        return self.searches.update_search_status(search_id, **updates)

    def clear_completed_searches(self) -> int:
        return self.searches.clear_completed_searches()

    async def aclose(self) -> None:
        """Cancel searches still running in this process and close the API client."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.api.aclose()


# =========================================================================
# Factory Function
# =========================================================================

_coordinator_instance: SessionCoordinator | None = None


def get_session_coordinator(settings: Settings | None = None) -> SessionCoordinator:
    """Get or create the coordinator singleton.

    Args:
        settings: Optional settings. Only used on first call.
    """
    global _coordinator_instance
    if _coordinator_instance is None:
        settings = settings or get_settings()
        storage = FileKeyValueStore(get_config_dir(settings))
        _coordinator_instance = SessionCoordinator(
            api=SearchAPIClient(settings),
            groups=GroupStore(storage),
            searches=SearchSessionTracker(storage),
        )
    return _coordinator_instance


def reset_session_coordinator() -> None:
    """Reset the coordinator singleton (for testing)."""
    global _coordinator_instance
    _coordinator_instance = None
