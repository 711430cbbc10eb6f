"""
Songbook Backend: Song Request/Response Schemas
===============================================

What:  Pydantic models for song payloads, song views and the shared error and
       health envelopes.
How:   FastAPI validates request bodies against the payload models and
       serializes the view models returned by SongStore.

Two read views exist:
    SongSummary: {id, title, performer}, the list projection
    SongDetail:  every stored field plus the owner's username
"""

from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SongUpdatePayload(BaseModel):
    """Editable fields of a song. A PUT replaces all three."""
    title: str = Field(min_length=1, description="Song title")
    body: str = Field(default="", description="Song content")
    tags: List[str] = Field(default_factory=list, description="Ordered tags")


class SongPayload(SongUpdatePayload):
    """Body of POST /songs. Performer can only be set at creation."""
    performer: Optional[str] = Field(default=None, description="Optional performer name")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SongSummary(BaseModel):
    """List projection of a song; body, tags and timestamps are left out."""
    id: str
    title: str
    performer: Optional[str] = None


class SongDetail(BaseModel):
    """Full song record joined with the owner's username."""
    id: str
    title: str
    body: str
    tags: List[str]
    performer: Optional[str] = None
    created_at: str = Field(description="ISO-8601 UTC creation time")
    updated_at: str = Field(description="ISO-8601 UTC time of the last edit")
    owner: str = Field(description="Owner's user id")
    username: Optional[str] = Field(
        default=None,
        description="Owner's username (null only if the user row is gone)",
    )


class SongCreatedResponse(BaseModel):
    message: str = Field(default="Song added")
    song_id: str


class SongListResponse(BaseModel):
    songs: List[SongSummary]


class MessageResponse(BaseModel):
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Envelopes
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for every handled exception.

    Example:
        {
            "error": "forbidden",
            "message": "You are not allowed to access this resource",
            "request_id": "1f3a9c2e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
