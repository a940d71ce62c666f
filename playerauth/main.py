"""
PlayerAuth - GitHub login and user records for the game frontend

FastAPI application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Import observability modules
from playerauth.config import settings
from playerauth.dependencies.services import get_oauth_credentials
from playerauth.errors import ConfigurationError
from playerauth.logging_config import configure_logging, get_logger
from playerauth.sentry_config import capture_exception, configure_sentry
from playerauth.middleware.logging import LoggingMiddleware
from playerauth.routes.metrics import router as metrics_router

# Import route modules
from playerauth.routes.users import router as users_router

# Initialize logging first
configure_logging()

# Initialize Sentry (if SENTRY_DSN is set)
configure_sentry()

log = get_logger(component="main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Fail fast when the OAuth client credentials are missing."""
    try:
        get_oauth_credentials()
    except ConfigurationError as e:
        log.error("startup_failed", kind=e.kind, reason=e.message)
        capture_exception()
        raise
    log.info("startup_complete", user_store=settings.USER_STORE_BACKEND.value)
    yield


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="GitHub OAuth login and user record storage",
)

# Add logging middleware FIRST (runs before other middleware)
app.add_middleware(LoggingMiddleware)

# Add CORS middleware so the frontend can call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include metrics endpoint FIRST (so it's always available)
app.include_router(metrics_router)

# Include user routes
app.include_router(users_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "user_store": settings.USER_STORE_BACKEND.value
    }
