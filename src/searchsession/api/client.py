"""Async client for the hosted search API.

Wraps httpx.AsyncClient and maps every failure onto a small error taxonomy:

- SearchAPITimeoutError: request exceeded its timeout (retryable)
- SearchAPIConnectionError: transport failure, nothing reached the server (retryable)
- SearchAPIResponseError: non-2xx status or a body that fails validation

The client never touches local session state; callers decide whether to retry.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from searchsession.api.schemas import (
    ConversationGroup,
    DeleteResult,
    SearchHistory,
    SearchRequest,
    SearchResult,
)
from searchsession.config import Settings, get_settings

logger = logging.getLogger(__name__)

_GROUP_LIST = TypeAdapter(list[ConversationGroup])

# Retryable besides 5xx
_RETRYABLE_STATUS = {429}


class SearchAPIError(Exception):
    """Base error for failed search API calls."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class SearchAPITimeoutError(SearchAPIError):
    """The request did not complete within its timeout."""

    def __init__(self, message: str):
        super().__init__(message, retryable=True)


class SearchAPIConnectionError(SearchAPIError):
    """The request never reached the server."""

    def __init__(self, message: str):
        super().__init__(message, retryable=True)


class SearchAPIResponseError(SearchAPIError):
    """The server answered with an error status or an unexpected body."""


class GroupCreationError(SearchAPIError):
    """Creating a conversation group failed; no group was activated."""

    def __init__(self, cause: SearchAPIError):
        super().__init__(
            f"Could not create conversation group: {cause}",
            status_code=cause.status_code,
            retryable=cause.retryable,
        )
        self.cause = cause


class SearchAPIClient:
    """Thin typed wrapper over the /api/search endpoints."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        headers = {"Accept": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        self._http = httpx.AsyncClient(
            base_url=self.settings.api_base_url.rstrip("/"),
            headers=headers,
            timeout=self.settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> SearchAPIClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # =========================================================================
    # Groups
    # =========================================================================

    async def create_group(self) -> ConversationGroup:
        """Create a new conversation group."""
        data = await self._request("POST", "/api/search/groups", json={})
        return self._parse(ConversationGroup, data)

    async def list_groups(self) -> list[ConversationGroup]:
        """List the groups owned by the current identity."""
        data = await self._request("GET", "/api/search/groups")
        try:
            return _GROUP_LIST.validate_python(data)
        except ValidationError as e:
            raise SearchAPIResponseError(f"Invalid group list: {e}") from e

    async def delete_group(self, group_id: str) -> DeleteResult:
        data = await self._request("POST", "/api/search/groups/delete", json={"id": group_id})
        return self._parse(DeleteResult, data)

    # =========================================================================
    # Searches
    # =========================================================================

    async def search(self, request: SearchRequest) -> SearchResult:
        """Dispatch a search turn. Uses the longer search timeout."""
        data = await self._request(
            "POST",
            "/api/search",
            json=request.model_dump(exclude_none=True),
            timeout=self.settings.search_timeout,
        )
        return self._parse(SearchResult, data)

    async def list_searches(self, group_id: str) -> SearchHistory:
        data = await self._request("GET", "/api/search", params={"group_id": group_id})
        return self._parse(SearchHistory, data)

    async def delete_search(self, search_id: str, group_id: str) -> DeleteResult:
        data = await self._request(
            "POST", "/api/search/delete", json={"id": search_id, "group_id": group_id}
        )
        return self._parse(DeleteResult, data)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if params is not None:
            kwargs["params"] = params
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            resp = await self._http.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise SearchAPITimeoutError(f"{method} {path} timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise SearchAPIResponseError(
                f"{method} {path} returned {status}",
                status_code=status,
                retryable=status >= 500 or status in _RETRYABLE_STATUS,
            ) from e
        except httpx.RequestError as e:
            raise SearchAPIConnectionError(f"{method} {path} failed: {e}") from e

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise SearchAPIResponseError(
                f"{method} {path} returned a non-JSON body", status_code=resp.status_code
            ) from e

    @staticmethod
    def _parse(model: type[BaseModel], data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise SearchAPIResponseError(f"Invalid {model.__name__}: {e}") from e
