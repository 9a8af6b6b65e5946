"""
Prompt entity models.

Prompts are the core content of the platform. Likes, favorites and ratings
are stored as one row per (user, prompt) pair; the denormalized ``likes``
counter on the prompt is recomputed from the like rows whenever it changes.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import JSON, Field, Text

from ..base import Base, new_prompt_id, new_uuid, utc_now


class Prompt(Base, table=True):
    """Stored image-generation prompt.

    Table: prompts
    """

    __tablename__ = "prompts"

    id: str = Field(default_factory=new_prompt_id, primary_key=True, max_length=10)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    prompt_content: str = Field(sa_type=Text)
    negative_prompt: Optional[str] = Field(default=None, sa_type=Text)

    # Classification
    category: Optional[str] = Field(default=None, max_length=128, index=True)
    prompt_type: Optional[str] = Field(default=None, max_length=128)
    prompt_style: Optional[str] = Field(default=None, max_length=128)
    intended_generator: Optional[str] = Field(default=None, max_length=128)
    recommended_models: List[str] = Field(default_factory=list, sa_type=JSON)
    tags: List[str] = Field(default_factory=list, sa_type=JSON)

    # Visibility and lifecycle
    is_public: bool = Field(default=True, index=True)
    is_featured: bool = Field(default=False, index=True)
    is_nsfw: bool = Field(default=False)
    status: str = Field(default="published", max_length=16, index=True)

    # Ownership and placement
    user_id: str = Field(max_length=64, index=True)
    collection_id: Optional[str] = Field(default=None, max_length=64, index=True)
    community_id: Optional[str] = Field(default=None, max_length=64, index=True)
    sub_community_id: Optional[str] = Field(default=None, max_length=64, index=True)
    sub_community_visibility: Optional[str] = Field(default=None, max_length=32)

    # Lineage
    fork_of: Optional[str] = Field(default=None, max_length=10, index=True)
    version: int = Field(default=1)

    # Counters
    likes: int = Field(default=0)
    usage_count: int = Field(default=0)
    quality_score: Optional[float] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"Prompt(id={self.id}, name={self.name!r}, status={self.status}, public={self.is_public})"


class PromptLike(Base, table=True):
    """Table: prompt_likes"""

    __tablename__ = "prompt_likes"
    __table_args__ = (UniqueConstraint("user_id", "prompt_id", name="uq_prompt_like"),)

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    prompt_id: str = Field(max_length=10, index=True)
    created_at: datetime = Field(default_factory=utc_now)


class PromptFavorite(Base, table=True):
    """Table: prompt_favorites"""

    __tablename__ = "prompt_favorites"
    __table_args__ = (UniqueConstraint("user_id", "prompt_id", name="uq_prompt_favorite"),)

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    prompt_id: str = Field(max_length=10, index=True)
    created_at: datetime = Field(default_factory=utc_now)


class PromptRating(Base, table=True):
    """Star rating (1 to 5) with optional review text.

    Table: prompt_ratings
    """

    __tablename__ = "prompt_ratings"
    __table_args__ = (UniqueConstraint("user_id", "prompt_id", name="uq_prompt_rating"),)

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    prompt_id: str = Field(max_length=10, index=True)
    rating: int = Field(ge=1, le=5)
    review: Optional[str] = Field(default=None, sa_type=Text)
    created_at: datetime = Field(default_factory=utc_now)
