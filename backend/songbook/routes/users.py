"""
Songbook Backend: User Search Route
===================================

What:  GET /users?username=<fragment>, used by clients to find people to
       share songs with.
"""

from fastapi import APIRouter, Depends, Query

from songbook.dependencies import get_song_store
from songbook.schemas.user import UserListResponse
from songbook.services.song_store import SongStore

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "",
    response_model=UserListResponse,
    summary="Find users by username fragment",
    description="Case-sensitive substring match. An empty list means no user matched.",
)
async def search_users(
    username: str = Query(default="", max_length=50, description="Fragment to look for"),
    store: SongStore = Depends(get_song_store),
) -> UserListResponse:
    users = await store.get_users_by_username(username)
    return UserListResponse(users=users)
