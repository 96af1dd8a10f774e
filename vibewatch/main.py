"""
VibeWatch Backend

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import get_settings
from .core.logging import setup_logging, get_logger
from .core.exceptions import register_exception_handlers
from .routers import recommend_router
from .routers.recommend import limiter

# Initialize
settings = get_settings()
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "app_startup",
        environment=settings.environment,
        debug=settings.debug,
        tmdb_configured=bool(settings.tmdb_api_key),
        llm_configured=bool(settings.openai_api_key),
        cache_backend="redis" if settings.redis_url else "memory",
    )
    if not settings.tmdb_api_key:
        logger.warning("tmdb_api_key_not_set")
    if not settings.openai_api_key:
        logger.warning("openai_api_key_not_set", msg="Using heuristic intent and picks")

    yield

    logger.info("app_shutdown")


# Create FastAPI app
app = FastAPI(
    title="VibeWatch Backend",
    description="Vibe-prompt movie and TV recommendations backed by TMDB",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS (client is served from a separate static host)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(recommend_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "VibeWatch Backend",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs" if settings.debug else "disabled",
    }


@app.get("/health")
async def health():
    """Health check for load balancers."""
    return {"status": "healthy"}
