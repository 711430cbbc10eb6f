"""
Songbook Backend: Song Store (Data-Access Layer)
================================================

What:  Persistence gateway for song records plus the user lookups the song
       routes need.
How:   Builds SQLAlchemy Core statements against the ORM tables and executes
       them on the AsyncSession it was constructed with. Matched/affected row
       counts are the only existence signal for writes; zero rows becomes a
       NotFoundError.
Who:   Constructed per request by the FastAPI dependencies; also used directly
       by AccessResolver for the ownership read.

Operation Summary:
    add_song               INSERT ... RETURNING id       → id
    get_songs              owned ∪ granted, deduplicated → [SongSummary]
    get_song_by_id         songs LEFT JOIN users         → SongDetail
    edit_song_by_id        UPDATE, 0 rows → NotFoundError
    delete_song_by_id      DELETE, 0 rows → NotFoundError
    get_users_by_username  case-sensitive substring      → [UserSummary]
    get_song_owner         owner column                  → user id
    verify_song_owner      NotFoundError | AuthorizationError | None

Error Handling Strategy:
    Domain errors (NotFoundError, AuthorizationError, PersistenceInvariantError)
    propagate as raised. A foreign-key violation on insert means the owner is
    not a user and becomes AuthenticationError. Other SQLAlchemy failures are
    wrapped in DatabaseError with the original type recorded in the context.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from songbook.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    PersistenceInvariantError,
)
from songbook.models import Collaboration, Song, User
from songbook.schemas.song import SongDetail, SongSummary
from songbook.schemas.user import UserSummary

logger = logging.getLogger(__name__)

DEFAULT_SONG_ID_LENGTH = 16

Clock = Callable[[], datetime]
IdGenerator = Callable[[], str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def make_song_id_generator(length: int = DEFAULT_SONG_ID_LENGTH) -> IdGenerator:
    """
    Returns a generator of fixed-length opaque ids.

    Ids are the first `length` hex characters of a uuid4, so every id has
    the same length and is drawn from the uuid4 random bits.
    """
    if not 1 <= length <= 32:
        raise ValueError(f"Song id length must be between 1 and 32, got {length}")

    def generate() -> str:
        return uuid.uuid4().hex[:length]

    return generate


@dataclass(frozen=True)
class WriteResult:
    """Outcome of an UPDATE or DELETE: how many rows the statement touched."""
    affected: int

    @property
    def matched(self) -> bool:
        return self.affected > 0


class SongStore:
    """
    Song persistence bound to a single database session.

    Args:
        session:      Request-scoped AsyncSession; the caller owns commit/rollback
        id_generator: Produces new song ids (fixed length)
        clock:        Produces timestamps for created_at / updated_at
    """

    def __init__(
        self,
        session: AsyncSession,
        id_generator: Optional[IdGenerator] = None,
        clock: Optional[Clock] = None,
    ):
        self._session = session
        self._generate_id = id_generator or make_song_id_generator()
        self._clock = clock or utc_now

    # ── Internals ─────────────────────────────────────────────────────────

    def _timestamp(self) -> str:
        return self._clock().isoformat(timespec="microseconds")

    async def _execute(self, statement: Any, operation: str):
        try:
            return await self._session.execute(statement)
        except SQLAlchemyError as e:
            raise self._database_error(e, operation) from e

    @staticmethod
    def _database_error(error: SQLAlchemyError, operation: str) -> DatabaseError:
        logger.error("Database error during %s: %s", operation, str(error), exc_info=True)
        return DatabaseError(
            context={"operation": operation, "original_error": type(error).__name__},
        )

    async def _write(self, statement: Any, operation: str) -> WriteResult:
        result = await self._execute(statement, operation)
        return WriteResult(affected=result.rowcount or 0)

    # ── Songs ─────────────────────────────────────────────────────────────

    async def add_song(
        self,
        title: str,
        body: str,
        tags: Sequence[str],
        owner: str,
        performer: Optional[str] = None,
    ) -> str:
        """
        Insert a new song and return its generated id.

        created_at and updated_at share one clock reading, so a fresh song
        always has created_at == updated_at.

        Raises:
            AuthenticationError: `owner` is not an existing user
            PersistenceInvariantError: The insert returned no id
        """
        song_id = self._generate_id()
        created_at = self._timestamp()

        statement = (
            insert(Song)
            .values(
                id=song_id,
                title=title,
                body=body,
                tags=list(tags),
                performer=performer,
                created_at=created_at,
                updated_at=created_at,
                owner=owner,
            )
            .returning(Song.id)
        )
        try:
            result = await self._session.execute(statement)
        except IntegrityError as e:
            # owner is the only foreign key on songs
            if "foreign key" in str(e.orig).lower():
                raise AuthenticationError(
                    message=f"Unknown user '{owner}'",
                    context={"owner": owner},
                ) from e
            raise self._database_error(e, "add_song") from e
        except SQLAlchemyError as e:
            raise self._database_error(e, "add_song") from e

        inserted_id = result.scalar_one_or_none()

        if not inserted_id:
            raise PersistenceInvariantError(
                message="The song could not be added",
                context={"song_id": song_id, "owner": owner},
            )

        logger.info("Song %s added by %s", inserted_id, owner)
        return inserted_id

    async def get_songs(self, owner: str) -> List[SongSummary]:
        """
        Songs owned by `owner` or shared with them through a collaboration.

        The grant lookup is a subquery rather than a join, so a song that is
        both owned and granted still comes back once.
        """
        granted = select(Collaboration.song_id).where(Collaboration.user_id == owner)
        statement = (
            select(Song.id, Song.title, Song.performer)
            .where(or_(Song.owner == owner, Song.id.in_(granted)))
            .order_by(Song.created_at, Song.id)
        )
        result = await self._execute(statement, "get_songs")
        return [SongSummary.model_validate(dict(row._mapping)) for row in result.all()]

    async def get_song_by_id(self, song_id: str) -> SongDetail:
        """
        Full song record joined with the owner's username.

        Raises:
            NotFoundError: No song has this id
        """
        # Columns, not the Song entity: rows always reflect the database, never
        # a copy cached in the session's identity map.
        statement = (
            select(
                Song.id,
                Song.title,
                Song.body,
                Song.tags,
                Song.performer,
                Song.created_at,
                Song.updated_at,
                Song.owner,
                User.username,
            )
            .outerjoin(User, User.id == Song.owner)
            .where(Song.id == song_id)
        )
        result = await self._execute(statement, "get_song_by_id")
        row = result.first()

        if row is None:
            raise NotFoundError(resource="song", resource_id=song_id)

        return SongDetail.model_validate(dict(row._mapping))

    async def edit_song_by_id(
        self,
        song_id: str,
        title: str,
        body: str,
        tags: Sequence[str],
    ) -> None:
        """
        Replace title, body and tags and stamp updated_at.

        Raises:
            NotFoundError: No row matched `song_id`
        """
        statement = (
            update(Song)
            .where(Song.id == song_id)
            .values(
                title=title,
                body=body,
                tags=list(tags),
                updated_at=self._timestamp(),
            )
            .execution_options(synchronize_session=False)
        )
        outcome = await self._write(statement, "edit_song_by_id")

        if not outcome.matched:
            raise NotFoundError(resource="song", resource_id=song_id)

        logger.info("Song %s updated", song_id)

    async def delete_song_by_id(self, song_id: str) -> None:
        """
        Raises:
            NotFoundError: No row matched `song_id`
        """
        statement = (
            delete(Song)
            .where(Song.id == song_id)
            .execution_options(synchronize_session=False)
        )
        outcome = await self._write(statement, "delete_song_by_id")

        if not outcome.matched:
            raise NotFoundError(resource="song", resource_id=song_id)

        logger.info("Song %s deleted", song_id)

    # ── Ownership ─────────────────────────────────────────────────────────

    async def get_song_owner(self, song_id: str) -> str:
        """
        Raises:
            NotFoundError: No song has this id
        """
        statement = select(Song.owner).where(Song.id == song_id)
        result = await self._execute(statement, "get_song_owner")
        owner = result.scalar_one_or_none()

        if owner is None:
            raise NotFoundError(resource="song", resource_id=song_id)
        return owner

    async def verify_song_owner(self, song_id: str, user_id: str) -> None:
        """
        Succeeds only when `user_id` owns the song.

        Raises:
            NotFoundError: No song has this id
            AuthorizationError: The song belongs to someone else
        """
        owner = await self.get_song_owner(song_id)
        if owner != user_id:
            raise AuthorizationError(
                context={"song_id": song_id, "user_id": user_id},
            )

    # ── Users ─────────────────────────────────────────────────────────────

    async def get_users_by_username(self, fragment: str) -> List[UserSummary]:
        """
        Users whose username contains `fragment`, case-sensitively.

        LIKE wildcards in the fragment are escaped, so "_" and "%" match
        literally. An empty list means nothing matched.
        """
        statement = (
            select(User.id, User.username, User.fullname)
            .where(User.username.contains(fragment, autoescape=True))
            .order_by(User.username)
        )
        result = await self._execute(statement, "get_users_by_username")

        # SQLite's LIKE folds ASCII case; the substring test keeps matching case-sensitive.
        return [
            UserSummary.model_validate(dict(row._mapping))
            for row in result.all()
            if fragment in row.username
        ]
