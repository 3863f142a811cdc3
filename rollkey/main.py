#!/usr/bin/env python3
"""
Rollkey - API Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the verifier (optionally Redis backed)
3. Serves the auth endpoints

All protocol logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Optional

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rollkey.config.provider import ConfigProvider, EnvConfigProvider, RedisConfig
from rollkey.errors import RollkeyError
from rollkey.logging_config import get_logging_config
from rollkey.modules.api import HealthResponse, create_auth_router
from rollkey.modules.auth.factory import AuthFactory
from rollkey.modules.auth.verifier import RollingVerifier

logger = logging.getLogger(__name__)

# Configuration provider (centralized config access)
config_provider: ConfigProvider = EnvConfigProvider()


def get_redis_client(redis_config: RedisConfig) -> redis.Redis:
    """Create Redis client from configuration."""
    return redis.from_url(
        redis_config.url,
        password=redis_config.password,  # Passed separately to avoid URL encoding issues
        encoding="utf-8",
        decode_responses=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - build the verifier unless one was injected.
    """
    redis_client: Optional[redis.Redis] = None

    if app.state.verifier is None:
        logger.info("Starting Rollkey API...")

        redis_config = config_provider.get_redis_config()
        if redis_config.enabled:
            redis_client = get_redis_client(redis_config)
            logger.info(f"Using Redis at {redis_config.host}:{redis_config.port}")

        app.state.verifier = AuthFactory.build(config_provider, redis_client)
        logger.info("Rollkey API started successfully")

    yield

    logger.info("Shutting down Rollkey API...")
    if redis_client:
        await redis_client.aclose()


def create_app(verifier: Optional[RollingVerifier] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        verifier: Pre-built verifier (tests, embedding). When omitted the
            lifespan builds one from the environment.
    """
    app = FastAPI(
        title="Rollkey API",
        description="Rolling digest authentication",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.verifier = verifier

    app.include_router(create_auth_router())

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Liveness probe. Unauthenticated."""
        return HealthResponse(timestamp=datetime.now(UTC).isoformat())

    @app.exception_handler(RollkeyError)
    async def rollkey_error_handler(request, exc: RollkeyError):
        """Handle protocol and application errors."""
        if exc.status_code == 401:
            logger.info(f"Rejected {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        """Keep the {"error": ...} body shape for framework errors."""
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(redis.ConnectionError)
    async def redis_error_handler(request, exc):
        """Handle Redis connection errors."""
        logger.error(f"Redis connection error: {exc}")
        return JSONResponse(status_code=503, content={"error": "Database connection failed"})

    @app.exception_handler(ValueError)
    async def validation_error_handler(request, exc):
        """Handle validation errors."""
        logger.error(f"Validation error: {exc}")
        return JSONResponse(status_code=400, content={"error": str(exc)})

    return app


app = create_app()


def main() -> None:
    api_config = config_provider.get_api_config()
    logging_config = get_logging_config(api_config.log_level)
    log_config.dictConfig(logging_config)

    uvicorn.run(
        "rollkey.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        reload=api_config.debug,
        log_config=logging_config,
    )


if __name__ == "__main__":
    main()
