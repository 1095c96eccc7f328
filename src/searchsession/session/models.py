"""Session state data models.

These models define the client-local state:
- GroupSessionState: which conversation group new searches attach to
- ActiveSearch: lifecycle record of a dispatched search

Design notes:
- Dataclasses with to_dict/from_dict for JSON persistence
- Timestamps are ISO 8601 strings
- from_dict accepts the camelCase keys the browser client persisted
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# ============================================================================
# Enums
# ============================================================================


class SearchStatus(str, Enum):
    """Search lifecycle status."""

    PENDING = "pending"  # Registered, request not sent yet
    PROCESSING = "processing"  # Request in flight
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


IN_FLIGHT_STATUSES = frozenset({SearchStatus.PENDING, SearchStatus.PROCESSING})
TERMINAL_STATUSES = frozenset(
    {SearchStatus.COMPLETED, SearchStatus.FAILED, SearchStatus.CANCELLED}
)
# Purged by clear_completed_searches(); cancelled records are kept.
SWEPT_STATUSES = frozenset({SearchStatus.COMPLETED, SearchStatus.FAILED})


# ============================================================================
# Helper Functions
# ============================================================================


def generate_id() -> str:
    """Generate a unique ID."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Get current UTC time as ISO 8601 string."""
    return datetime.now(UTC).isoformat()


# ============================================================================
# Data Models
# ============================================================================


@dataclass
class GroupSessionState:
    """Which conversation group is active.

    Invariant: has_active_conversation == (active_group_id is not None).
    """

    active_group_id: str | None = None
    has_active_conversation: bool = False

    def is_consistent(self) -> bool:
        return self.has_active_conversation == (self.active_group_id is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_id": self.active_group_id,
            "hasActiveConversation": self.has_active_conversation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GroupSessionState":
        group_id = data.get("group_id", data.get("active_group_id"))
        if group_id is not None and not isinstance(group_id, str):
            raise ValueError(f"group_id must be a string, got {type(group_id).__name__}")
        has_active = data.get(
            "hasActiveConversation", data.get("has_active_conversation", group_id is not None)
        )
        return cls(active_group_id=group_id or None, has_active_conversation=bool(has_active))


@dataclass
class ActiveSearch:
    """
    Client-side record of a dispatched search.

    Independent of the group's server-side history; it only tracks the
    request until it finishes and is purged.

    Attributes:
        id: Search operation ID
        query: What the user asked
        group_id: Conversation group the search belongs to
        status: Lifecycle status (terminal once completed/failed/cancelled)
        started_at: When the request was dispatched
        created_at: When the record was created
        progress: Optional progress, 0-100
        partial_results: Opaque result payload (the search result once completed)
        error: Error message when failed
    """

    query: str
    group_id: str
    id: str = field(default_factory=generate_id)
    status: SearchStatus = SearchStatus.PENDING
    started_at: str = field(default_factory=now_iso)
    created_at: str = field(default_factory=now_iso)
    progress: float | None = None
    partial_results: Any = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_in_flight(self) -> bool:
        return self.status in IN_FLIGHT_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "query": self.query,
            "groupId": self.group_id,
            "status": self.status.value,
            "startedAt": self.started_at,
            "createdAt": self.created_at,
            "progress": self.progress,
            "partialResults": self.partial_results,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActiveSearch":
        return cls(
            id=data["id"],
            query=data.get("query", ""),
            group_id=data.get("groupId", data.get("group_id", "")),
            status=SearchStatus(data.get("status", "pending")),
            started_at=data.get("startedAt", data.get("started_at")) or now_iso(),
            created_at=data.get("createdAt", data.get("created_at")) or now_iso(),
            progress=data.get("progress"),
            partial_results=data.get("partialResults", data.get("partial_results")),
            error=data.get("error"),
        )
