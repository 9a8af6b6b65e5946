"""
Prompt enhancement request models.

Both request models are deliberately permissive about ``prompt``/``prompts``:
the endpoints answer a missing prompt with their own 400 body rather than
FastAPI's 422.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from .base import ApiModel


class CharacterInfo(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None


class EnhancementOptions(ApiModel):
    """Settings shared by single and batch enhancement."""

    llm_provider: str = "openai"
    llm_model: Optional[str] = None
    use_happy_talk: bool = False
    compress_prompt: bool = False
    compression_level: str = "medium"
    custom_base_prompt: Optional[str] = None
    template_id: Optional[str] = None
    subject: Optional[str] = None
    character: Optional[CharacterInfo] = None
    force_provider: Optional[str] = None


class EnhanceRequest(EnhancementOptions):
    prompt: Optional[str] = None


class BatchEnhanceRequest(EnhancementOptions):
    prompts: Any = Field(default=None)
