"""
FastAPI Application Entry Point.
Initializes the FastAPI app with middleware, CORS, error handlers and routes,
then wraps it in the Socket.IO ASGI app.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from redis.exceptions import RedisError

from chat_server.config import settings
from chat_server.core.cache import cache
from chat_server.core.database import AsyncSessionLocal, engine
from chat_server.core.exceptions import ChatException
from chat_server.core.logging_config import configure_logging
from chat_server.core.websocket import connection_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    configure_logging(settings)
    await cache.connect()
    logger.info(f"Chat server started ({settings.environment})")
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title="Chat Server",
    description="FastAPI backend for direct and group chat with friends, presence and notifications",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)


# CORS Middleware
# WebSocket CORS is handled by Socket.IO itself (cors_allowed_origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handlers
@app.exception_handler(ChatException)
async def chat_exception_handler(request: Request, exc: ChatException):
    """Render domain errors as {"detail", "code"}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=exc.headers,
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """A uniqueness race lost at the database is a conflict, not a server error."""
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content={"detail": "Conflicting concurrent update", "code": "conflict"},
    )


# Health Check Endpoints
@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "environment": settings.environment,
        }
    )


@app.get("/health/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness check endpoint.
    Verifies database and cache connectivity.
    """
    checks = {
        "database": False,
        "redis": "not_configured" if not settings.redis_url else False,
    }

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception:
        logger.exception("Readiness check: database unavailable")

    if settings.redis_url:
        try:
            checks["redis"] = await cache.ping()
        except (RedisError, OSError):
            logger.exception("Readiness check: redis unavailable")

    redis_ok = checks["redis"] == "not_configured" or checks["redis"] is True
    all_healthy = checks["database"] and redis_ok

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "status": "ready" if all_healthy else "not ready",
            "checks": checks,
        }
    )


# Include API routers
from chat_server.api.v1 import conversations, friends, messages, notifications, users  # noqa: E402

app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(conversations.router, prefix="/api/v1/conversations", tags=["Conversations"])
app.include_router(messages.router, prefix="/api/v1/messages", tags=["Messages"])
app.include_router(friends.router, prefix="/api/v1/friends", tags=["Friends"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])

# Save reference to FastAPI app (used by tests)
fastapi_app = app

# Wrap FastAPI inside Socket.IO ASGIApp - this becomes the final ASGI app
# Client connects to: wss://domain/socket.io/?EIO=4&transport=websocket
app = connection_manager.get_asgi_app(fastapi_app)
