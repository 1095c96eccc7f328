"""Remote search API: request/response schemas and the async HTTP client."""

from searchsession.api.client import (
    GroupCreationError,
    SearchAPIClient,
    SearchAPIConnectionError,
    SearchAPIError,
    SearchAPIResponseError,
    SearchAPITimeoutError,
)
from searchsession.api.schemas import (
    ConversationGroup,
    ConversationTurn,
    DeleteResult,
    SearchAnswer,
    SearchHistory,
    SearchRequest,
    SearchResult,
    SearchSource,
    SourceMetadata,
)

__all__ = [
    "SearchAPIClient",
    "SearchAPIError",
    "SearchAPITimeoutError",
    "SearchAPIConnectionError",
    "SearchAPIResponseError",
    "GroupCreationError",
    "ConversationGroup",
    "ConversationTurn",
    "DeleteResult",
    "SearchAnswer",
    "SearchHistory",
    "SearchRequest",
    "SearchResult",
    "SearchSource",
    "SourceMetadata",
]
