"""
User, social and notification I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from promptatrium.core.models.domain import UserRole

from .base import ApiModel


class UserRead(ApiModel):
    """Public profile of a user."""

    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    website: Optional[str] = None
    role: str
    created_at: datetime


class CurrentUserRead(UserRead):
    """The authenticated user together with their credit balance."""

    credit_balance: int = 0


class UserUpdate(ApiModel):
    username: Optional[str] = Field(default=None, min_length=1, max_length=64)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    website: Optional[str] = None


class UserStats(ApiModel):
    total_prompts: int
    total_likes: int
    collections: int
    forks_created: int
    followers: int
    following: int


class FollowResult(ApiModel):
    following: bool


class RoleUpdate(ApiModel):
    role: UserRole


class ActivityRead(ApiModel):
    id: str
    user_id: str
    action_type: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class NotificationRead(ApiModel):
    id: str
    user_id: str
    type: str
    message: str
    related_user_id: Optional[str] = None
    related_prompt_id: Optional[str] = None
    related_list_id: Optional[str] = None
    is_read: bool
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class UnreadCount(ApiModel):
    count: int
