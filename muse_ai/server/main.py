"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request timing), registers exception handlers and includes all API routers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from muse_ai import __version__
from muse_ai.core.database import init_db
from muse_ai.core.logging_config import get_logger, setup_logging
from muse_ai.core.monitoring import initialize_logfire

from .api.v1 import health, living_story, paywall, production_bible, transcripts
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates the database tables on startup when auto creation is enabled.
    """
    try:
        logger.info("Starting up MUSE Story Service...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    if settings.llm_model_name() is None:
        logger.warning("OPENAI_API_KEY is not set; story generation uses deterministic fallbacks")

    yield

    logger.info("Shutting down MUSE Story Service...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    MUSE Story Service API

    Turns transcripts into developed stories through a four phase workflow:
    story summary, scene structure, beat breakdown and the executive story document.
    Living Story keeps the phases consistent as the writer edits them.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LogfireMiddleware)
setup_exception_handlers(app)
initialize_logfire(app)

app.include_router(health.router, prefix=constant.API_V1_STR, tags=["health"])
app.include_router(transcripts.router, prefix=f"{constant.API_V1_STR}/transcripts", tags=["transcripts"])
app.include_router(living_story.router, prefix=f"{constant.API_V1_STR}/transcripts", tags=["living-story"])
app.include_router(
    production_bible.router, prefix=f"{constant.API_V1_STR}/production-bible", tags=["production-bible"]
)
app.include_router(paywall.router, prefix=f"{constant.API_V1_STR}/paywall", tags=["paywall"])
