"""
Songbook Backend: Collaboration Model
=====================================

What:  ORM mapping of the `collaborations` table: a grant giving `user_id`
       non-owner access to `song_id`.
Who:   Queried by SongStore.get_songs and CollaborationService. Grants are
       managed elsewhere; this backend only reads them.
"""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from songbook.database import Base


class Collaboration(Base):
    __tablename__ = "collaborations"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    song_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("songs.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # One grant per (song, user) pair
    __table_args__ = (
        UniqueConstraint("song_id", "user_id", name="uq_collaborations_song_user"),
    )

    def __repr__(self) -> str:
        return f"<Collaboration(song_id={self.song_id}, user_id={self.user_id})>"
