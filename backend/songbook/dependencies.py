"""
Songbook Backend: FastAPI Dependencies
======================================

What:  Builds the request-scoped service graph and extracts the acting user.

    get_db_session ──▶ SongStore ─────────────┐
              └──────▶ CollaborationService ──┴──▶ AccessResolver

FastAPI caches dependencies per request, so the store, the verifier and the
resolver all share the one session opened for the request.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from songbook.database import get_db_session
from songbook.exceptions import AuthenticationError
from songbook.services.access_resolver import AccessResolver
from songbook.services.collaboration_service import CollaborationService
from songbook.services.song_store import SongStore, make_song_id_generator


def get_song_store(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> SongStore:
    settings = request.app.state.settings
    return SongStore(db, id_generator=make_song_id_generator(settings.song_id_length))


def get_collaboration_service(
    db: AsyncSession = Depends(get_db_session),
) -> CollaborationService:
    return CollaborationService(db)


def get_access_resolver(
    store: SongStore = Depends(get_song_store),
    collaborations: CollaborationService = Depends(get_collaboration_service),
) -> AccessResolver:
    return AccessResolver(store, collaborations)


def get_current_user_id(request: Request) -> str:
    """
    The acting user's id, taken from the configured identity header.

    Raises:
        AuthenticationError: Header missing or blank
    """
    header = request.app.state.settings.user_id_header
    user_id = request.headers.get(header, "").strip()
    if not user_id:
        raise AuthenticationError(
            message=f"Missing {header} header",
            context={"header": header},
        )
    return user_id
