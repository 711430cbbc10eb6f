"""
Songbook Backend: Song SQLAlchemy Model
=======================================

What:  ORM model representing the `songs` table.
Who:   Written and read by SongStore; read by Alembic for migrations.

Table Design:
    - id: Opaque fixed-length string generated by the application, never by
      the database, so the insert can return it for the invariant check.
    - tags: TEXT[] on PostgreSQL, JSON elsewhere. Order is preserved.
    - performer: Optional, set at creation only; surfaced in list summaries.
    - created_at / updated_at: ISO-8601 UTC strings written by SongStore's
      clock, always with microsecond precision. Same format on every row, so
      string order is time order.
    - owner: users.id of the creator; fixed for the life of the row.

Lifecycle:
    1. Inserted by add_song (created_at == updated_at)
    2. title/body/tags/updated_at rewritten by edit_song_by_id
    3. Removed by delete_song_by_id (collaborations cascade)
"""

from typing import List, Optional

from sqlalchemy import JSON, ForeignKey, Index, String, Text
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column

from songbook.database import Base

# TEXT[] where the dialect supports arrays; JSON list everywhere else.
TagList = JSON().with_variant(postgresql.ARRAY(Text), "postgresql")


class Song(Base):
    """A song (note) record with its owner."""

    __tablename__ = "songs"

    id: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
        comment="Application-generated opaque identifier",
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    body: Mapped[str] = mapped_column(Text, nullable=False, default="")

    tags: Mapped[List[str]] = mapped_column(
        TagList,
        nullable=False,
        default=list,
        comment="Ordered list of tags",
    )

    performer: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    created_at: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="ISO-8601 UTC creation time",
    )

    updated_at: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="ISO-8601 UTC time of the last edit; never earlier than created_at",
    )

    owner: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Listing a user's songs filters on owner
    __table_args__ = (
        Index("idx_songs_owner", "owner"),
    )

    def __repr__(self) -> str:
        return f"<Song(id={self.id}, title='{self.title}', owner={self.owner})>"
