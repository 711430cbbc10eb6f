"""
Songbook Backend: Access Resolver
=================================

What:  Decides whether a user may act on a song, and under which authority.
How:   Ordered, short-circuiting check over two authorities:

    ┌───────────────────┐  missing song   ┌───────────────────┐
    │  Ownership read   │────────────────▶│  NotFoundError    │ (raised, final)
    │  (SongStore)      │                 └───────────────────┘
    └─────────┬─────────┘
              │ owner == user ───────────▶ OWNER
              ▼ owner != user
    ┌───────────────────┐  succeeds       ┌───────────────────┐
    │ Collaborator check│────────────────▶│  COLLABORATOR     │
    │ (verifier)        │                 └───────────────────┘
    └─────────┬─────────┘
              │ fails, for any reason
              ▼
       DENIED(ownership AuthorizationError)

    The verifier's own exception never reaches the caller: a denial always
    carries the ownership AuthorizationError, even when the verifier failed
    for an unrelated reason. The verifier failure is logged at DEBUG with
    its traceback.

Who:   Called by the song routes before reads and edits.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from songbook.exceptions import AuthorizationError
from songbook.services.song_store import SongStore

logger = logging.getLogger(__name__)


class CollaborationVerifier(Protocol):
    """
    Delegated-access authority.

    `verify_collaborator` returns normally when `user_id` collaborates on
    `song_id` and raises otherwise. The exception type is not part of the contract.
    """

    async def verify_collaborator(self, song_id: str, user_id: str) -> None:
        ...


class AccessGrant(str, enum.Enum):
    OWNER = "owner"
    COLLABORATOR = "collaborator"
    DENIED = "denied"


@dataclass(frozen=True)
class AccessDecision:
    """Tagged result of access resolution. `reason` is set only for DENIED."""
    grant: AccessGrant
    reason: Optional[AuthorizationError] = None

    @property
    def granted(self) -> bool:
        return self.grant is not AccessGrant.DENIED

    @classmethod
    def owner(cls) -> "AccessDecision":
        return cls(AccessGrant.OWNER)

    @classmethod
    def collaborator(cls) -> "AccessDecision":
        return cls(AccessGrant.COLLABORATOR)

    @classmethod
    def denied(cls, reason: AuthorizationError) -> "AccessDecision":
        return cls(AccessGrant.DENIED, reason)


class AccessResolver:
    """
    Stateless access decisions over a SongStore and a CollaborationVerifier.
    """

    def __init__(self, store: SongStore, collaboration_verifier: CollaborationVerifier):
        self._store = store
        self._collaboration_verifier = collaboration_verifier

    async def resolve(self, song_id: str, user_id: str) -> AccessDecision:
        """
        Resolve access for (song_id, user_id) without raising on denial.

        Raises:
            NotFoundError: The song does not exist. The verifier is not consulted.
        """
        owner = await self._store.get_song_owner(song_id)
        if owner == user_id:
            return AccessDecision.owner()

        ownership_error = AuthorizationError(
            context={"song_id": song_id, "user_id": user_id},
        )

        try:
            await self._collaboration_verifier.verify_collaborator(song_id, user_id)
        except Exception as e:
            logger.debug(
                "Collaborator check failed for song %s, user %s: %s",
                song_id,
                user_id,
                type(e).__name__,
                exc_info=True,
            )
            return AccessDecision.denied(ownership_error)

        return AccessDecision.collaborator()

    async def verify_song_access(self, song_id: str, user_id: str) -> AccessDecision:
        """
        Succeeds iff `user_id` owns or collaborates on the song.

        Returns:
            The granting decision (OWNER or COLLABORATOR)

        Raises:
            NotFoundError: The song does not exist
            AuthorizationError: The ownership error, when neither authority grants access
        """
        decision = await self.resolve(song_id, user_id)
        if not decision.granted:
            raise decision.reason
        return decision

    async def verify_song_owner(self, song_id: str, user_id: str) -> None:
        """Owner-only check. Collaborators are not consulted."""
        await self._store.verify_song_owner(song_id, user_id)
