"""
Community, sub-community and invite I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from promptatrium.core.models.domain import CommunityRole

from .base import ApiModel


class CommunityRead(ApiModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    created_by: Optional[str] = None
    parent_community_id: Optional[str] = None
    level: int
    path: str
    created_at: datetime


class CommunityCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None


class CommunityUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None


class CommunityHierarchy(ApiModel):
    community: CommunityRead
    parent: Optional[CommunityRead] = None
    children: List[CommunityRead] = Field(default_factory=list)


class MembershipRead(ApiModel):
    id: str
    user_id: str
    community_id: str
    role: str
    status: str
    joined_at: datetime


class AdminAssign(ApiModel):
    user_id: str


class CommunityAdminRead(ApiModel):
    id: str
    user_id: str
    community_id: str
    assigned_by: Optional[str] = None
    permissions: Dict[str, Any] = Field(default_factory=dict)
    assigned_at: datetime


class SubCommunityAdminAssign(ApiModel):
    user_id: str
    permissions: Dict[str, Any] = Field(default_factory=dict)
    expires_at: Optional[datetime] = None


class SubCommunityAdminRead(ApiModel):
    id: str
    user_id: str
    sub_community_id: str
    assigned_by: Optional[str] = None
    permissions: Dict[str, Any] = Field(default_factory=dict)
    assigned_at: datetime
    expires_at: Optional[datetime] = None


class InviteCreate(ApiModel):
    max_uses: int = Field(default=1, ge=1)
    expires_at: Optional[datetime] = None
    role: CommunityRole = CommunityRole.member


class InviteRead(ApiModel):
    id: str
    code: str
    community_id: str
    created_by: str
    role: str
    max_uses: int
    current_uses: int
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime


class InviteValidation(ApiModel):
    valid: bool
    community: Optional[CommunityRead] = None
    reason: Optional[str] = None


class InviteStats(ApiModel):
    total: int
    active: int
    used: int
    expired: int
