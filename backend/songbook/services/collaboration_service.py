"""
Songbook Backend: Collaboration Service
=======================================

What:  Table-backed CollaborationVerifier: a user collaborates on a song when
       a `collaborations` row links them.
Who:   Wired into AccessResolver by the HTTP layer. Grants are created and
       removed by the collaboration management service, not here.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from songbook.exceptions import AuthorizationError
from songbook.models import Collaboration

logger = logging.getLogger(__name__)


class CollaborationService:

    def __init__(self, session: AsyncSession):
        self._session = session

    async def verify_collaborator(self, song_id: str, user_id: str) -> None:
        """
        Raises:
            AuthorizationError: No grant links `user_id` to `song_id`
        """
        statement = select(Collaboration.id).where(
            Collaboration.song_id == song_id,
            Collaboration.user_id == user_id,
        )
        result = await self._session.execute(statement)

        if result.scalar_one_or_none() is None:
            raise AuthorizationError(
                message="Collaboration could not be verified",
                context={"song_id": song_id, "user_id": user_id},
            )
