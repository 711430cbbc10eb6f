"""
Songbook Backend: ORM Models
============================

Importing this package registers every table on `Base.metadata`, which
Alembic autogenerate and the test suite's `create_all` rely on.
"""

from songbook.models.collaboration import Collaboration
from songbook.models.song import Song
from songbook.models.user import User

__all__ = ["Collaboration", "Song", "User"]
