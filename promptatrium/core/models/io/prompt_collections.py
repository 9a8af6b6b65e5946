"""
Collection I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from promptatrium.core.models.domain import CollectionType

from .base import ApiModel


class CollectionRead(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    user_id: str
    community_id: Optional[str] = None
    type: str
    is_public: bool
    created_at: datetime
    updated_at: datetime


class CollectionCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: CollectionType = CollectionType.user
    community_id: Optional[str] = None
    is_public: bool = False


class CollectionUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_public: Optional[bool] = None
