"""
Songbook Backend: User Schemas
==============================

What:  The public projection of a user returned by username search.
"""

from typing import List

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
    """A user as exposed by GET /users: never includes credentials."""
    id: str = Field(description="User identifier")
    username: str = Field(description="Unique login name")
    fullname: str = Field(description="Display name")


class UserListResponse(BaseModel):
    users: List[UserSummary] = Field(description="Users whose username contains the fragment")
