"""
Activity feed and notification entity models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import JSON, Field, Text

from ..base import Base, new_uuid, utc_now


class Activity(Base, table=True):
    """Entry in the public activity feed.

    Table: activities
    """

    __tablename__ = "activities"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    action_type: str = Field(max_length=64)
    target_type: Optional[str] = Field(default=None, max_length=32)
    target_id: Optional[str] = Field(default=None, max_length=64)
    details: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime = Field(default_factory=utc_now, index=True)


class Notification(Base, table=True):
    """Per-user notification.

    Table: notifications
    """

    __tablename__ = "notifications"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    type: str = Field(max_length=32)
    message: str = Field(sa_type=Text)
    related_user_id: Optional[str] = Field(default=None, max_length=64)
    related_prompt_id: Optional[str] = Field(default=None, max_length=10)
    related_list_id: Optional[str] = Field(default=None, max_length=64)
    is_read: bool = Field(default=False, index=True)
    details: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime = Field(default_factory=utc_now, index=True)
