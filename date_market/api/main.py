"""
FastAPI application entry point.

Run with: uvicorn date_market.api.main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from date_market import __version__
from date_market.api.dependencies import ServiceContainer, build_services
from date_market.api.routes import (
    bets,
    friends,
    markets,
    match_proposals,
    notifications,
    users,
    vouches,
    wallets,
)
from date_market.core.config_loader import load_config
from date_market.core.database import create_database, initialize_database
from date_market.core.errors import DateMarketError
from date_market.core.logger import setup_logger_from_config

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(parts) or "Invalid request"


def create_app(config: Optional[dict] = None, services: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Validated configuration; loaded from config/config.yaml on
            startup when omitted
        services: Pre-built services (tests); built on startup when omitted

    Returns:
        FastAPI app
    """
    app = FastAPI(
        title="Date Market API",
        description="Social prediction markets on dates between friends",
        version=__version__
    )
    app.state.config = config
    app.state.services = services
    app.state.database = None

    cors_origins = (config or {}).get('api', {}).get('cors_origins', ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        """Initialize database and services on application startup."""
        if app.state.services is not None:
            return

        if app.state.config is None:
            app.state.config = load_config()
        setup_logger_from_config(app.state.config)
        logger.info("Configuration loaded")

        db = create_database(app.state.config['database']['url'])
        app.state.database = initialize_database(db)
        app.state.services = build_services(app.state.config, app.state.database)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Close the database connection opened on startup."""
        if app.state.database is not None and not app.state.database.is_closed():
            app.state.database.close()

    @app.exception_handler(DateMarketError)
    async def date_market_error_handler(request: Request, exc: DateMarketError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Date Market API",
            "version": __version__,
            "status": "running"
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(users.router)
    app.include_router(friends.router)
    app.include_router(markets.router)
    app.include_router(bets.router)
    app.include_router(vouches.router)
    app.include_router(match_proposals.router)
    app.include_router(notifications.router)
    app.include_router(wallets.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
