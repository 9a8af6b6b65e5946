"""
Prompt Enhancement Endpoints.

This module exposes the LLM-backed prompt enhancer. A single prompt falls back
to a static enhancement when every provider fails; batch items do not, and
report the failure per item instead.
"""

import time
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from promptatrium.core.database import utc_now
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.io.enhancement import BatchEnhanceRequest, EnhanceRequest
from promptatrium.server.services.enhancement import EnhancementService
from promptatrium.server.services.rate_limit import rate_limit

logger = get_logger(__name__)

router = APIRouter()


def get_enhancement_service() -> EnhancementService:
    return EnhancementService()


EnhancementServiceDep = Annotated[EnhancementService, Depends(get_enhancement_service)]


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "error": message})


def _timestamp() -> str:
    return utc_now().isoformat() + "Z"


@router.post(
    "/enhance-prompt",
    summary="Enhance Prompt",
    description="Rewrite a prompt into a detailed image-generation prompt using the configured LLM providers.",
    dependencies=[Depends(rate_limit("strict"))],
)
async def enhance_prompt(payload: EnhanceRequest, service: EnhancementServiceDep):
    if not payload.prompt or not payload.prompt.strip():
        return _bad_request("No prompt provided")

    started = time.perf_counter()
    result = await service.enhance(payload.prompt, payload)
    processing_time = round((time.perf_counter() - started) * 1000)
    logger.info(f"Enhanced prompt via {result.provider}/{result.model} in {processing_time}ms")

    return {
        "success": True,
        "enhancedPrompt": result.enhanced_prompt,
        "diagnostics": result.diagnostics,
        "metadata": {
            "timestamp": _timestamp(),
            "processingTime": processing_time,
            "provider": result.provider,
            "model": result.model,
        },
    }


@router.post(
    "/enhance-prompt/batch",
    summary="Enhance Prompts In Batch",
    description="Enhance several prompts concurrently with shared settings.",
    dependencies=[Depends(rate_limit("strict"))],
)
async def enhance_prompt_batch(payload: BatchEnhanceRequest, service: EnhancementServiceDep):
    if not isinstance(payload.prompts, list):
        return _bad_request("No prompts array provided")

    results = await service.enhance_batch(payload.prompts, payload)
    successful = sum(1 for item in results if item["success"])
    return {
        "success": True,
        "results": results,
        "metadata": {
            "total": len(results),
            "successful": successful,
            "failed": len(results) - successful,
            "timestamp": _timestamp(),
        },
    }
