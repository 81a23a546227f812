"""Builds the FastAPI application for a service.

All services share the same skeleton: structured logging, CORS, request
logging, JSON envelope error handlers, health router and a lifespan hook that
creates the schema.
"""

import os
from contextlib import asynccontextmanager
from typing import Callable, Iterable

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .health import ServiceHealth
from .logging_config import RequestLoggingMiddleware, get_logger, setup_logging
from .responses import setup_exception_handlers


def create_service_app(
    *,
    service_name: str,
    description: str,
    version: str,
    routers: Iterable[APIRouter],
    init_models: Callable[[], None],
    health: ServiceHealth,
    log_level: str = "INFO",
) -> FastAPI:
    setup_logging(service_name=service_name, level=log_level)
    logger = get_logger(service_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {service_name} version {version}")
        try:
            init_models()
            logger.info("Database models initialized")
        except Exception as e:
            logger.error(f"Failed to initialize database models: {e}")
            raise
        logger.info(f"{service_name} started successfully")
        yield
        logger.info(f"Shutting down {service_name}")

    app = FastAPI(
        title=service_name,
        description=description,
        version=version,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    setup_exception_handlers(app)

    app.include_router(health.create_health_router())
    for router in routers:
        app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "service": service_name,
            "version": version,
            "status": "running",
            "docs": "/api/docs",
        }

    @app.get("/info")
    async def info():
        return {
            "service": service_name,
            "version": version,
            "description": description,
            "environment": os.getenv("ENVIRONMENT", "development"),
            "endpoints": {
                "health": "/health",
                "ready": "/health/ready",
                "live": "/health/live",
                "metrics": "/metrics",
                "docs": "/api/docs",
            },
        }

    return app
