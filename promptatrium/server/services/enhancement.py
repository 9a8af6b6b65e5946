"""
Prompt enhancement pipeline.

A user prompt is rewritten by an LLM into a detailed image-generation prompt.
Providers are tried in order (OpenAI, then Gemini, then Mistral) through
Pydantic AI; when every provider fails, a static enhancement is returned so
the endpoint always answers. Each attempt is recorded as a stage in the
diagnostics returned to the client.
"""

from __future__ import annotations

import asyncio
import random
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic_ai import Agent, ModelSettings
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.mistral import MistralModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.mistral import MistralProvider
from pydantic_ai.providers.openai import OpenAIProvider

from promptatrium.core.errors import ExternalServiceError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.io.enhancement import CharacterInfo, EnhancementOptions
from promptatrium.core.monitoring import log_llm_call
from promptatrium.server.core.config import settings

logger = get_logger(__name__)

DEFAULT_MASTER_PROMPT = (
    "Transform this into a highly detailed, cinematic prompt optimized for AI image generation. "
    "Include camera angles, lighting, composition, and artistic style."
)
OUTPUT_INSTRUCTION = "Provide ONLY the enhanced prompt text, no explanations or meta-text."

COMPRESSION_LIMITS = {"light": 500, "medium": 350, "heavy": 200}
DEFAULT_COMPRESSION_LIMIT = 350
IMPORTANT_KEYWORDS = (
    "cinematic",
    "dramatic",
    "portrait",
    "landscape",
    "lighting",
    "composition",
    "style",
    "detailed",
    "resolution",
    "camera",
    "lens",
    "shot",
)
HAPPY_MODIFIERS = ("masterpiece", "best quality", "ultra-detailed", "professional", "stunning", "beautiful", "perfect")

PROVIDER_CHAIN = ("openai", "gemini", "mistral")
PROVIDER_LABELS = {"openai": "OpenAI", "gemini": "Google AI", "mistral": "Mistral"}
FALLBACK_PROVIDER = "fallback"
FALLBACK_MODEL = "basic"


class ProviderError(Exception):
    """One provider attempt in the chain failed."""


_QUOTES_RE = re.compile(r"^[\"']|[\"']$")
_PREFIX_RE = re.compile(r"^(?:Enhanced|Generated) prompt:\s*", re.IGNORECASE)

ModelFactory = Callable[[str, str, str], Model]


# =====================================================================
# Text helpers
# =====================================================================


def clean_llm_response(text: str) -> str:
    """Strip quoting, "Enhanced prompt:" prefixes and markdown bold from model output."""
    text = _QUOTES_RE.sub("", text)
    text = _PREFIX_RE.sub("", text)
    text = text.replace("**", "")
    return text.strip("\n").strip()


def build_system_prompt(
    master_prompt: Optional[str] = None,
    subject: Optional[str] = None,
    character: Optional[CharacterInfo] = None,
) -> str:
    sections = [master_prompt or DEFAULT_MASTER_PROMPT]
    if character is not None and character.name:
        sections.append(
            f'IMPORTANT: Replace any generic character references with "{character.name}" - '
            f"{character.description or ''}"
        )
    if subject:
        sections.append(f"Original subject context: {subject}")
    sections.append(OUTPUT_INSTRUCTION)
    return "\n\n".join(sections)


def compress_prompt(text: str, level: str = "medium") -> str:
    """Shorten a prompt to the level's length, keeping style keywords first."""
    max_length = COMPRESSION_LIMITS.get(level, DEFAULT_COMPRESSION_LIMIT)
    if len(text) <= max_length:
        return text

    words = text.split()
    important = [w for w in words if any(k in w.lower() for k in IMPORTANT_KEYWORDS)]
    remaining = [w for w in words if not any(k in w.lower() for k in IMPORTANT_KEYWORDS)]

    compressed = " ".join(important)
    for word in remaining:
        candidate = f"{compressed} {word}" if compressed else word
        if len(candidate) > max_length:
            break
        compressed = candidate
    return compressed


def add_happy_talk(text: str, rng: Optional[random.Random] = None) -> str:
    lowered = text.lower()
    if any(modifier in lowered for modifier in HAPPY_MODIFIERS):
        return text
    chosen = (rng or random).sample(HAPPY_MODIFIERS, 2)
    return f"{', '.join(chosen)}, {text}"


def static_enhancement(prompt: str) -> str:
    return f"{prompt}, professional quality, detailed, high resolution"


# =====================================================================
# Providers
# =====================================================================


def build_provider_model(provider: str, model_name: str, api_key: str) -> Model:
    """Build the Pydantic AI model for one provider of the chain."""
    if provider == "openai":
        return OpenAIChatModel(
            model_name, provider=OpenAIProvider(api_key=api_key, base_url=settings.openai.base_url)
        )
    if provider == "gemini":
        return GoogleModel(model_name, provider=GoogleProvider(api_key=api_key))
    if provider == "mistral":
        return MistralModel(model_name, provider=MistralProvider(api_key=api_key))
    raise ValueError(f"Unsupported provider: {provider}")


def provider_chain(llm_provider: Optional[str], force_provider: Optional[str]) -> List[str]:
    """Providers to try, in order, for the requested provider selection."""
    if force_provider == "tertiary":
        return list(PROVIDER_CHAIN[2:])
    if force_provider == "secondary" or llm_provider == "google":
        return list(PROVIDER_CHAIN[1:])
    return list(PROVIDER_CHAIN)


@dataclass
class EnhancementResult:
    enhanced_prompt: str
    provider: str
    model: str
    fallback_used: bool
    diagnostics: Dict[str, Any] = field(default_factory=dict)


class EnhancementService:
    """Runs the provider chain and post-processing for prompt enhancement.

    Args:
        model_factory: Builds a Pydantic AI model from (provider, model name, api key).
        rng: Random source for happy-talk modifier selection.
    """

    def __init__(self, model_factory: Optional[ModelFactory] = None, rng: Optional[random.Random] = None) -> None:
        self.model_factory = model_factory or build_provider_model
        self.rng = rng or random.Random()

    def _provider_credentials(self, provider: str, options: EnhancementOptions) -> Tuple[Optional[str], str]:
        if provider == "openai":
            config = settings.openai
            return config.api_key, options.llm_model or config.model
        if provider == "gemini":
            config = settings.google
            return config.api_key, config.model
        config = settings.mistral
        return config.api_key, config.model

    async def _call_provider(self, provider: str, model_name: str, api_key: str, system_prompt: str, prompt: str) -> str:
        model = self.model_factory(provider, model_name, api_key)
        if provider == "gemini":
            # Gemini receives a single message carrying both instructions and input.
            agent = Agent(model, model_settings=ModelSettings(max_tokens=2000, temperature=0.7))
            result = await agent.run(f"{system_prompt}\n\nOriginal prompt:\n{prompt}\n\nEnhanced prompt:")
        else:
            model_settings = ModelSettings(max_tokens=2000, temperature=0.7)
            if provider == "openai":
                model_settings = ModelSettings(
                    max_tokens=2000, temperature=0.7, presence_penalty=0.1, frequency_penalty=0.1
                )
            agent = Agent(model, instructions=system_prompt, model_settings=model_settings)
            result = await agent.run(prompt)
        return clean_llm_response(str(result.output))

    async def _run_chain(
        self, prompt: str, system_prompt: str, options: EnhancementOptions, stages: List[Dict[str, Any]]
    ) -> Tuple[Optional[str], Optional[str], Optional[str], Optional[str]]:
        """Try each provider in turn.

        Returns:
            (enhanced text, provider, model, last error); text is None when all failed.
        """
        last_error: Optional[str] = None
        for stage, provider in enumerate(provider_chain(options.llm_provider, options.force_provider), start=1):
            api_key, model_name = self._provider_credentials(provider, options)
            started = time.perf_counter()
            record: Dict[str, Any] = {"stage": stage, "provider": provider, "model": model_name}
            try:
                if not api_key:
                    raise ProviderError(f"{PROVIDER_LABELS[provider]} API key not configured")
                text = await self._call_provider(provider, model_name, api_key, system_prompt, prompt)
                if not text:
                    raise ProviderError(f"Empty response from {PROVIDER_LABELS[provider]}")
            except Exception as e:
                duration_ms = (time.perf_counter() - started) * 1000
                last_error = str(e)
                record.update(status="failed", error=last_error, duration_ms=round(duration_ms, 2))
                stages.append(record)
                log_llm_call(provider, model_name, duration_ms, success=False, error=last_error)
                logger.warning(f"Enhancement via {provider}/{model_name} failed: {last_error}")
                continue

            duration_ms = (time.perf_counter() - started) * 1000
            record.update(status="success", duration_ms=round(duration_ms, 2))
            stages.append(record)
            log_llm_call(provider, model_name, duration_ms, success=True)
            return text, provider, model_name, last_error

        return None, None, None, last_error

    async def enhance(
        self, prompt: str, options: Optional[EnhancementOptions] = None, allow_fallback: bool = True
    ) -> EnhancementResult:
        """Enhance one prompt.

        Raises:
            ExternalServiceError: every provider failed and ``allow_fallback`` is False.
        """
        options = options or EnhancementOptions()
        started = time.perf_counter()
        stages: List[Dict[str, Any]] = []
        diagnostics: Dict[str, Any] = {
            "originalLength": len(prompt),
            "templateUsed": options.template_id or "custom",
            "templateSource": "database" if options.custom_base_prompt else "default",
            "stages": stages,
        }

        system_prompt = build_system_prompt(options.custom_base_prompt, options.subject, options.character)
        text, provider, model_name, last_error = await self._run_chain(prompt, system_prompt, options, stages)

        fallback_used = text is None
        if fallback_used:
            if not allow_fallback:
                raise ExternalServiceError("enhancement", last_error or "All providers failed")
            logger.warning(f"All enhancement providers failed, using static fallback: {last_error}")
            text, provider, model_name = static_enhancement(prompt), FALLBACK_PROVIDER, FALLBACK_MODEL

        if options.use_happy_talk:
            text = add_happy_talk(text, self.rng)
            diagnostics["happyTalkApplied"] = True

        if options.compress_prompt:
            compressed_from = len(text)
            text = compress_prompt(text, options.compression_level)
            diagnostics.update(
                compressionApplied=True,
                compressionLevel=options.compression_level,
                compressedFrom=compressed_from,
                compressedTo=len(text),
            )

        diagnostics.update(
            provider=provider,
            model=model_name,
            fallbackUsed=fallback_used,
            enhancedLength=len(text),
            responseTime=round((time.perf_counter() - started) * 1000),
        )
        if last_error:
            diagnostics["error"] = last_error

        return EnhancementResult(
            enhanced_prompt=text,
            provider=provider,
            model=model_name,
            fallback_used=fallback_used,
            diagnostics=diagnostics,
        )

    async def enhance_batch(self, prompts: List[Any], options: Optional[EnhancementOptions] = None) -> List[Dict[str, Any]]:
        """Enhance prompts concurrently; failures are reported per item without a static fallback."""

        async def _one(item: Any) -> Dict[str, Any]:
            try:
                if not isinstance(item, str) or not item.strip():
                    raise ValueError("Prompt must be a non-empty string")
                result = await self.enhance(item, options, allow_fallback=False)
            except Exception as e:
                message = e.metadata["reason"] if isinstance(e, ExternalServiceError) else str(e)
                return {"original": item, "enhanced": item, "success": False, "error": message}
            return {
                "original": item,
                "enhanced": result.enhanced_prompt,
                "success": True,
                "provider": result.provider,
                "model": result.model,
            }

        return list(await asyncio.gather(*(_one(item) for item in prompts)))
