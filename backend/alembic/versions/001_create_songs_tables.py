"""Create users, songs and collaborations tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Initial schema. `users` mirrors the account service's table (only the
       columns this backend reads); `collaborations` holds song grants.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("fullname", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "songs",
        sa.Column(
            "id",
            sa.String(50),
            nullable=False,
            comment="Application-generated opaque identifier",
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "tags",
            sa.JSON().with_variant(postgresql.ARRAY(sa.Text()), "postgresql"),
            nullable=False,
            comment="Ordered list of tags",
        ),
        sa.Column("performer", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.Text(),
            nullable=False,
            comment="ISO-8601 UTC creation time",
        ),
        sa.Column(
            "updated_at",
            sa.Text(),
            nullable=False,
            comment="ISO-8601 UTC time of the last edit; never earlier than created_at",
        ),
        sa.Column("owner", sa.String(50), nullable=False),
        sa.ForeignKeyConstraint(["owner"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_songs_owner", "songs", ["owner"])

    op.create_table(
        "collaborations",
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("song_id", sa.String(50), nullable=False),
        sa.Column("user_id", sa.String(50), nullable=False),
        sa.ForeignKeyConstraint(["song_id"], ["songs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("song_id", "user_id", name="uq_collaborations_song_user"),
    )


def downgrade() -> None:
    op.drop_table("collaborations")
    op.drop_index("idx_songs_owner", table_name="songs")
    op.drop_table("songs")
    op.drop_table("users")
