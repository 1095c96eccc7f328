# Search API schemas.
# Shapes of the /api/search endpoints, validated on every response.

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

_EPOCH = datetime.min.replace(tzinfo=UTC)


class ConversationGroup(BaseModel):
    """A server-side conversation container."""

    id: str
    name: str = ""
    created_at: str

    def created_at_dt(self) -> datetime:
        """Parse ``created_at``; unparsable values sort before everything else."""
        try:
            value = datetime.fromisoformat(self.created_at.replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class DeleteResult(BaseModel):
    success: bool


class SourceMetadata(BaseModel):
    url: str
    title: str | None = None
    description: str | None = None


class SearchSource(BaseModel):
    """A web page the answer was built from."""

    metadata: SourceMetadata
    content: str


class SearchAnswer(BaseModel):
    message: str
    sources: list[SearchSource] | None = None


class SearchResult(BaseModel):
    """One completed search turn."""

    id: str
    query: str
    response: SearchAnswer
    created_at: str


class ConversationTurn(BaseModel):
    human: str
    assistant: str


class SearchRequest(BaseModel):
    """Body of POST /api/search."""

    message: str = Field(..., min_length=1)
    group_id: str = Field(..., min_length=1)
    conversation: list[ConversationTurn] | None = None
    urls: list[str] | None = None
    model_id: str | None = None


class SearchHistory(BaseModel):
    """Prior turns of a group."""

    searches: list[SearchResult]
    group_id: str
