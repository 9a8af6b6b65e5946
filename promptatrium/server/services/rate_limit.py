"""
Per-client request rate limiting.

Fixed-window counters keyed by rule name and client IP, held in process
memory. Routers attach a rule with ``Depends(rate_limit("strict"))``. Limits
are not enforced in development unless ``RATE_LIMIT_ENABLED_IN_DEVELOPMENT``
is set.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from promptatrium.core.errors import RateLimitError
from promptatrium.core.logging_config import get_logger
from promptatrium.server.core.config import settings

logger = get_logger(__name__)

DEFAULT_MESSAGE = "Too many requests from this IP, please try again later."


@dataclass(frozen=True)
class RateLimitRule:
    window_seconds: int
    max_requests: int
    message: str = DEFAULT_MESSAGE


RATE_LIMIT_RULES: Dict[str, RateLimitRule] = {
    "auth": RateLimitRule(15 * 60, 5, "Too many authentication attempts. Please try again in 15 minutes."),
    "registration": RateLimitRule(60 * 60, 3, "Too many registration attempts. Please try again in an hour."),
    "api": RateLimitRule(15 * 60, 100, "API rate limit exceeded. Please try again later."),
    "strict": RateLimitRule(60, 10, "Rate limit exceeded for this operation. Please wait a minute."),
    "image_upload": RateLimitRule(
        5 * 60, 10, "Too many image upload attempts. Please wait before uploading more images."
    ),
    "prompt_creation": RateLimitRule(
        5 * 60, 20, "Too many prompts created. Please wait before creating more prompts."
    ),
    "data_export": RateLimitRule(60 * 60, 5, "Too many data export requests. Please try again in an hour."),
    "search": RateLimitRule(60, 30, "Too many search requests. Please wait a moment."),
}


class RateLimiter:
    """Fixed-window request counter."""

    def __init__(self, rules: Optional[Dict[str, RateLimitRule]] = None, clock: Callable[[], float] = time.monotonic):
        self.rules = rules or RATE_LIMIT_RULES
        self._clock = clock
        # (rule, client) -> (window start, hits)
        self._windows: Dict[Tuple[str, str], Tuple[float, int]] = {}

    def hit(self, rule_name: str, client: str) -> None:
        """Count one request, raising ``RateLimitError`` once the window is full."""
        rule = self.rules[rule_name]
        now = self._clock()
        key = (rule_name, client)
        started, hits = self._windows.get(key, (now, 0))
        if hits == 0 or now - started >= rule.window_seconds:
            self._prune(now)
            started, hits = now, 0

        if hits >= rule.max_requests:
            logger.warning(f"Rate limit '{rule_name}' exceeded for {client}")
            raise RateLimitError(rule.message, retry_after=math.ceil(rule.window_seconds))

        self._windows[key] = (started, hits + 1)

    def _prune(self, now: float) -> None:
        """Drop counters whose window has already closed."""
        expired = [
            key
            for key, (started, _) in self._windows.items()
            if now - started >= self.rules[key[0]].window_seconds
        ]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        self._windows.clear()


rate_limiter = RateLimiter()


def _is_enforced() -> bool:
    return not settings.is_development or settings.rate_limit.enabled_in_development


def rate_limit(rule_name: str) -> Callable:
    """Build a FastAPI dependency that applies the named rule to the caller's IP."""
    if rule_name not in RATE_LIMIT_RULES:
        raise KeyError(f"Unknown rate limit rule: {rule_name}")

    async def _dependency(request: Request) -> None:
        if not _is_enforced():
            return
        client = request.client.host if request.client else "unknown"
        rate_limiter.hit(rule_name, client)

    return _dependency
