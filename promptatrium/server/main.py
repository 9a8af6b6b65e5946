"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request logging), registers the exception handlers and includes all API
routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from promptatrium.core.database import init_db
from promptatrium.core.logging_config import get_logger, setup_logging
from promptatrium.core.monitoring import initialize_logfire

from .api.v1 import (
    collections,
    communities,
    credits,
    disputes,
    enhance,
    health,
    invites,
    marketplace,
    notifications,
    payouts,
    prompts,
    users,
    webhooks,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware
from .services.payouts import payout_scheduler

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates missing tables on startup and, when enabled, runs the payout
    scheduler for the lifetime of the process.
    """
    # Startup
    try:
        logger.info("Starting up PromptAtrium Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    if settings.payout_scheduler_enabled:
        try:
            await payout_scheduler.start()
        except Exception as e:
            logger.error(f"Payout scheduler failed to start: {e}", exc_info=True)

    yield

    # Shutdown
    await payout_scheduler.stop()
    logger.info("Shutting down PromptAtrium Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    PromptAtrium Server API

    This API provides the backend services for the PromptAtrium prompt-sharing platform.
    It supports the prompt library, communities and invites, collections, LLM prompt
    enhancement, the credits wallet, the prompt marketplace with disputes and seller payouts.
    """,
    version=constant.API_VERSION,
    openapi_url=f"{constant.API_PREFIX}/openapi.json",
    docs_url=f"{constant.API_PREFIX}/docs",
    redoc_url=f"{constant.API_PREFIX}/redoc",
    lifespan=lifespan,
)

# Set all CORS enabled origins
cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)

setup_exception_handlers(app)
initialize_logfire(app)


app.include_router(health.router, tags=["health"])
app.include_router(users.router, prefix=constant.API_PREFIX, tags=["users"])
app.include_router(notifications.router, prefix=constant.API_PREFIX, tags=["notifications"])
app.include_router(prompts.router, prefix=constant.API_PREFIX, tags=["prompts"])
app.include_router(collections.router, prefix=constant.API_PREFIX, tags=["collections"])
app.include_router(communities.router, prefix=constant.API_PREFIX, tags=["communities"])
app.include_router(invites.router, prefix=constant.API_PREFIX, tags=["invites"])
app.include_router(enhance.router, prefix=constant.API_PREFIX, tags=["enhancement"])
app.include_router(credits.router, prefix=constant.API_PREFIX, tags=["credits"])
app.include_router(marketplace.router, prefix=constant.API_PREFIX, tags=["marketplace"])
app.include_router(disputes.router, prefix=constant.API_PREFIX, tags=["disputes"])
app.include_router(payouts.router, prefix=constant.API_PREFIX, tags=["payouts"])
app.include_router(webhooks.router, prefix=constant.API_PREFIX, tags=["webhooks"])
