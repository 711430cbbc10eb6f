"""
Songbook Backend: Song Route Handlers
=====================================

What:  CRUD endpoints for songs.
How:   Each handler resolves access first, then calls exactly one SongStore
       operation. Errors propagate to the global exception handlers.

Access Rules:
    POST   /songs        any identified, existing user (becomes the owner)
    GET    /songs        the caller's own and shared songs
    GET    /songs/{id}   owner or collaborator
    PUT    /songs/{id}   owner or collaborator
    DELETE /songs/{id}   owner only
"""

import logging

from fastapi import APIRouter, Depends, status

from songbook.dependencies import (
    get_access_resolver,
    get_current_user_id,
    get_song_store,
)
from songbook.schemas.song import (
    ErrorResponse,
    MessageResponse,
    SongCreatedResponse,
    SongDetail,
    SongListResponse,
    SongPayload,
    SongUpdatePayload,
)
from songbook.services.access_resolver import AccessResolver
from songbook.services.song_store import SongStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/songs", tags=["Songs"])

_identity_errors = {
    401: {"description": "Missing or unknown X-User-Id", "model": ErrorResponse},
}

_access_errors = {
    **_identity_errors,
    403: {"description": "Caller may not access this song", "model": ErrorResponse},
    404: {"description": "Song not found", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SongCreatedResponse,
    responses=_identity_errors,
    summary="Add a song owned by the caller",
)
async def add_song(
    payload: SongPayload,
    user_id: str = Depends(get_current_user_id),
    store: SongStore = Depends(get_song_store),
) -> SongCreatedResponse:
    song_id = await store.add_song(
        title=payload.title,
        body=payload.body,
        tags=payload.tags,
        owner=user_id,
        performer=payload.performer,
    )
    return SongCreatedResponse(song_id=song_id)


@router.get(
    "",
    response_model=SongListResponse,
    responses=_identity_errors,
    summary="List songs the caller owns or collaborates on",
)
async def list_songs(
    user_id: str = Depends(get_current_user_id),
    store: SongStore = Depends(get_song_store),
) -> SongListResponse:
    songs = await store.get_songs(user_id)
    return SongListResponse(songs=songs)


@router.get(
    "/{song_id}",
    response_model=SongDetail,
    responses=_access_errors,
    summary="Get a song with its owner's username",
)
async def get_song(
    song_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SongStore = Depends(get_song_store),
    resolver: AccessResolver = Depends(get_access_resolver),
) -> SongDetail:
    await resolver.verify_song_access(song_id, user_id)
    return await store.get_song_by_id(song_id)


@router.put(
    "/{song_id}",
    response_model=MessageResponse,
    responses=_access_errors,
    summary="Replace a song's title, body and tags",
)
async def edit_song(
    song_id: str,
    payload: SongUpdatePayload,
    user_id: str = Depends(get_current_user_id),
    store: SongStore = Depends(get_song_store),
    resolver: AccessResolver = Depends(get_access_resolver),
) -> MessageResponse:
    decision = await resolver.verify_song_access(song_id, user_id)
    await store.edit_song_by_id(
        song_id,
        title=payload.title,
        body=payload.body,
        tags=payload.tags,
    )
    logger.info("Song %s edited by %s as %s", song_id, user_id, decision.grant.value)
    return MessageResponse(message="Song updated")


@router.delete(
    "/{song_id}",
    response_model=MessageResponse,
    responses=_access_errors,
    summary="Delete a song (owner only)",
)
async def delete_song(
    song_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SongStore = Depends(get_song_store),
    resolver: AccessResolver = Depends(get_access_resolver),
) -> MessageResponse:
    await resolver.verify_song_owner(song_id, user_id)
    await store.delete_song_by_id(song_id)
    return MessageResponse(message="Song deleted")
