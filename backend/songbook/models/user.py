"""
Songbook Backend: User Model
============================

What:  ORM mapping of the `users` table.
Who:   Read by SongStore (owner username join, username search). Users are
       created and managed by the account service; this backend never writes them.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from songbook.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    fullname: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
