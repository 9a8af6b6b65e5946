"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for monitoring and
tracing of PromptAtrium operations, including:
- API endpoint tracing
- LLM calls made by the prompt-enhancement pipeline
- Database operation monitoring
- Payout and webhook reconciliation events
- Error tracking

The integration is opt-in through ``LOGFIRE_ENABLED``. The ``log_*`` helpers
are always safe to call: when Logfire is not configured they degrade to a
debug log line and never raise.
"""

import logging
import os
from typing import Any, Optional

import logfire
from fastapi import FastAPI

logger = logging.getLogger(__name__)

# Logfire configuration from environment
LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_PROJECT_NAME = os.getenv("LOGFIRE_PROJECT_NAME", "promptatrium")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "promptatrium-server")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

# Sampling configuration
LOGFIRE_SAMPLE_RATE = float(os.getenv("LOGFIRE_SAMPLE_RATE", "1.0"))

# Feature flags
LOGFIRE_TRACE_PYDANTIC_AI = os.getenv("LOGFIRE_TRACE_PYDANTIC_AI", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_HTTPX = os.getenv("LOGFIRE_TRACE_HTTPX", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")

_initialized = False


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    This function sets up Logfire with automatic instrumentation for:
    - Pydantic AI model calls
    - SQLAlchemy database operations
    - HTTPX HTTP requests
    - FastAPI endpoints

    Args:
        app: FastAPI application instance for FastAPI instrumentation (optional).

    Returns:
        True when Logfire was configured, False when it stays disabled.
    """
    global _initialized

    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
            sampling=logfire.SamplingOptions(head=LOGFIRE_SAMPLE_RATE),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False

    instrumentations = [
        (LOGFIRE_TRACE_PYDANTIC_AI, "Pydantic AI", lambda: logfire.instrument_pydantic_ai()),
        (LOGFIRE_TRACE_SQLALCHEMY, "SQLAlchemy", lambda: logfire.instrument_sqlalchemy()),
        (LOGFIRE_TRACE_HTTPX, "HTTPX", lambda: logfire.instrument_httpx()),
    ]
    if app is not None:
        instrumentations.append((LOGFIRE_TRACE_FASTAPI, "FastAPI", lambda: logfire.instrument_fastapi(app=app)))

    for enabled, name, instrument in instrumentations:
        if not enabled:
            continue
        try:
            instrument()
            logger.info(f"Logfire: {name} instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument {name}: {e}")

    _initialized = True
    logger.info(
        f"Logfire monitoring initialized: "
        f"project={LOGFIRE_PROJECT_NAME}, "
        f"environment={LOGFIRE_ENVIRONMENT}, "
        f"service={LOGFIRE_SERVICE_NAME}"
    )
    return True


def is_logfire_enabled() -> bool:
    return _initialized


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    if not _initialized:
        logger.debug(f"{method} {path} -> {status_code} ({duration_ms:.2f}ms)")
        return
    try:
        logfire.info(
            "API request completed",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
    except Exception:
        logger.debug(f"Could not log API request to Logfire: {method} {path}")


def log_llm_call(provider: str, model: str, duration_ms: float, success: bool, error: Optional[str] = None) -> None:
    """
    Log a single LLM call made by the enhancement pipeline.

    Args:
        provider: Provider name (openai, gemini, mistral)
        model: Model identifier
        duration_ms: Call duration in milliseconds
        success: Whether the provider returned a usable response
        error: Error message when the call failed
    """
    if not _initialized:
        logger.debug(f"LLM call {provider}/{model} success={success} ({duration_ms:.2f}ms)")
        return
    try:
        logfire.info(
            "LLM call completed",
            provider=provider,
            model=model,
            duration_ms=duration_ms,
            success=success,
            error=error,
        )
    except Exception:
        logger.debug(f"Could not log LLM call to Logfire: provider={provider} model={model}")


def log_payout_event(event_type: str, batch_id: Optional[str], status: Optional[str]) -> None:
    """
    Log a payout batch state change (scheduler run or webhook).

    Args:
        event_type: What happened (batch.created, webhook event type, ...)
        batch_id: Local payout batch id, when known
        status: New batch status, when known
    """
    if not _initialized:
        logger.debug(f"Payout event {event_type}: batch={batch_id} status={status}")
        return
    try:
        logfire.info("Payout event", event_type=event_type, batch_id=batch_id, status=status)
    except Exception:
        logger.debug(f"Could not log payout event to Logfire: {event_type}")


def log_error(error_type: str, error_message: str, context: Optional[dict[str, Any]] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    if not _initialized:
        logger.debug(f"{error_type}: {error_message}")
        return
    try:
        logfire.error(
            "{error_type}: {error_message}",
            error_type=error_type,
            error_message=error_message,
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")
