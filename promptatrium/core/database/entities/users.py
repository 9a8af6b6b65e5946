"""
User and follow entity models.

Users are created by the upstream identity provider; this service only stores
profile fields and the platform-wide role used by permission checks.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, new_uuid, utc_now


class User(Base, table=True):
    """Registered user.

    Table: users
    """

    __tablename__ = "users"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    email: Optional[str] = Field(default=None, max_length=255, index=True)
    username: Optional[str] = Field(default=None, max_length=64, unique=True, index=True)
    first_name: Optional[str] = Field(default=None, max_length=128)
    last_name: Optional[str] = Field(default=None, max_length=128)
    bio: Optional[str] = Field(default=None, sa_type=Text)
    profile_image_url: Optional[str] = Field(default=None, max_length=512)
    website: Optional[str] = Field(default=None, max_length=255)
    role: str = Field(default="user", max_length=32, index=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def display_name(self) -> str:
        if self.username:
            return self.username
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or self.id

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username}, role={self.role})"


class Follow(Base, table=True):
    """Directed follow edge between two users.

    Table: follows
    """

    __tablename__ = "follows"
    __table_args__ = (UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),)

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    follower_id: str = Field(max_length=64, index=True)
    following_id: str = Field(max_length=64, index=True)
    created_at: datetime = Field(default_factory=utc_now)
