"""
Community entity models.

Communities form a tree: root communities have ``level`` 0 and sub-communities
point at their parent through ``parent_community_id``. ``path`` holds the
slash-separated chain of ids from the root, so ancestry checks are a prefix
test.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import JSON, Field, Text

from ..base import Base, new_uuid, utc_now


class Community(Base, table=True):
    """Community or sub-community.

    Table: communities
    """

    __tablename__ = "communities"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    name: str = Field(max_length=255)
    slug: str = Field(max_length=255, unique=True, index=True)
    description: Optional[str] = Field(default=None, sa_type=Text)
    image_url: Optional[str] = Field(default=None, max_length=512)
    is_active: bool = Field(default=True, index=True)
    created_by: Optional[str] = Field(default=None, max_length=64)

    # Hierarchy
    parent_community_id: Optional[str] = Field(default=None, max_length=64, index=True)
    level: int = Field(default=0)
    path: str = Field(default="", max_length=1024)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_sub_community(self) -> bool:
        return self.parent_community_id is not None

    def __repr__(self) -> str:
        return f"Community(id={self.id}, slug={self.slug}, level={self.level})"


class UserCommunity(Base, table=True):
    """Membership of a user in a community.

    Table: user_communities
    """

    __tablename__ = "user_communities"
    __table_args__ = (UniqueConstraint("user_id", "community_id", name="uq_user_community"),)

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    community_id: str = Field(max_length=64, index=True)
    role: str = Field(default="member", max_length=16)
    status: str = Field(default="active", max_length=16)
    joined_at: datetime = Field(default_factory=utc_now)


class CommunityAdmin(Base, table=True):
    """Admin assignment for a community, granted by a super admin.

    Table: community_admins
    """

    __tablename__ = "community_admins"
    __table_args__ = (UniqueConstraint("user_id", "community_id", name="uq_community_admin"),)

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    community_id: str = Field(max_length=64, index=True)
    assigned_by: Optional[str] = Field(default=None, max_length=64)
    permissions: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    assigned_at: datetime = Field(default_factory=utc_now)


class SubCommunityAdmin(Base, table=True):
    """Admin assignment scoped to a single sub-community.

    Table: sub_community_admins
    """

    __tablename__ = "sub_community_admins"
    __table_args__ = (UniqueConstraint("user_id", "sub_community_id", name="uq_sub_community_admin"),)

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    sub_community_id: str = Field(max_length=64, index=True)
    assigned_by: Optional[str] = Field(default=None, max_length=64)
    permissions: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    assigned_at: datetime = Field(default_factory=utc_now)
    expires_at: Optional[datetime] = Field(default=None)


class CommunityInvite(Base, table=True):
    """Invite code for joining a community.

    Table: community_invites
    """

    __tablename__ = "community_invites"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    code: str = Field(max_length=32, unique=True, index=True)
    community_id: str = Field(max_length=64, index=True)
    created_by: str = Field(max_length=64)
    role: str = Field(default="member", max_length=16)
    max_uses: int = Field(default=1, ge=1)
    current_uses: int = Field(default=0)
    expires_at: Optional[datetime] = Field(default=None)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    @property
    def is_used_up(self) -> bool:
        return self.current_uses >= self.max_uses

    def __repr__(self) -> str:
        return f"CommunityInvite(code={self.code}, uses={self.current_uses}/{self.max_uses}, active={self.is_active})"
