"""
Collection entity model.

A collection groups prompts. Its ``type`` decides who can see it beyond the
owner: ``community`` collections are shared with members of
``community_id``; ``global`` collections are curated by community admins.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, new_uuid, utc_now


class Collection(Base, table=True):
    """Named group of prompts.

    Table: collections
    """

    __tablename__ = "collections"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    user_id: str = Field(max_length=64, index=True)
    community_id: Optional[str] = Field(default=None, max_length=64, index=True)
    type: str = Field(default="user", max_length=16, index=True)
    is_public: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
