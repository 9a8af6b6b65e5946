"""
Prompt I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from promptatrium.core.models.domain import PromptStatus, SubCommunityVisibility

from .base import ApiModel


class PromptRead(ApiModel):
    """Schema for reading a prompt from the API."""

    id: str
    name: str
    description: Optional[str] = None
    prompt_content: str
    negative_prompt: Optional[str] = None
    category: Optional[str] = None
    prompt_type: Optional[str] = None
    prompt_style: Optional[str] = None
    intended_generator: Optional[str] = None
    recommended_models: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_public: bool
    is_featured: bool
    is_nsfw: bool
    status: str
    user_id: str
    collection_id: Optional[str] = None
    community_id: Optional[str] = None
    sub_community_id: Optional[str] = None
    sub_community_visibility: Optional[str] = None
    fork_of: Optional[str] = None
    version: int
    likes: int
    usage_count: int
    quality_score: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class PromptCreate(ApiModel):
    """Schema for creating a prompt via the API."""

    name: str = Field(min_length=1, max_length=255)
    prompt_content: str = Field(min_length=1)
    description: Optional[str] = None
    negative_prompt: Optional[str] = None
    category: Optional[str] = None
    prompt_type: Optional[str] = None
    prompt_style: Optional[str] = None
    intended_generator: Optional[str] = None
    recommended_models: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_public: bool = True
    is_nsfw: bool = False
    status: PromptStatus = PromptStatus.published
    collection_id: Optional[str] = None
    community_id: Optional[str] = None


class PromptUpdate(ApiModel):
    """Schema for updating a prompt; unset fields are left untouched."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    prompt_content: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    negative_prompt: Optional[str] = None
    category: Optional[str] = None
    prompt_type: Optional[str] = None
    prompt_style: Optional[str] = None
    intended_generator: Optional[str] = None
    recommended_models: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None
    is_nsfw: Optional[bool] = None
    status: Optional[PromptStatus] = None
    collection_id: Optional[str] = None
    community_id: Optional[str] = None


class LikeResult(ApiModel):
    liked: bool
    likes: int


class FavoriteResult(ApiModel):
    favorited: bool


class RatingCreate(ApiModel):
    # Range is checked by the service so the error uses the API's error body.
    rating: int
    review: Optional[str] = None


class RatingRead(ApiModel):
    id: str
    user_id: str
    prompt_id: str
    rating: int
    review: Optional[str] = None
    created_at: datetime


class RatingSummary(ApiModel):
    average: float
    count: int
    ratings: List[RatingRead]


class SubCommunityShare(ApiModel):
    sub_community_id: str
    visibility: SubCommunityVisibility = SubCommunityVisibility.public
