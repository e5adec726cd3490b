"""
Shared FastAPI App Factory

Provides common app setup for production and test environments.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.observability.tracing import TracingConfig
from src.service.elite_slot.driving_adapter.http_controller.admin_controller import (
    router as admin_router,
)
from src.service.elite_slot.driving_adapter.http_controller.extension_controller import (
    router as extension_router,
)
from src.service.elite_slot.driving_adapter.http_controller.reservation_controller import (
    router as reservation_router,
)
from src.service.elite_slot.driving_adapter.http_controller.slot_controller import (
    router as slot_router,
)
from src.service.elite_slot.driving_adapter.http_controller.waitlist_controller import (
    router as waitlist_router,
)


API_PREFIX = '/api/elite-slot'


def create_app(
    *,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]],
    title_suffix: str = '',
    description: str = 'Elite homepage slot reservations',
    service_name: str = 'elite-slot-service',
) -> FastAPI:
    """
    Create a configured FastAPI application.

    Args:
        lifespan: Async context manager for app lifespan (startup/shutdown)
        title_suffix: Optional suffix for app title (e.g., " (Test)")
        description: App description
        service_name: Service name for tracing

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=f'{settings.PROJECT_NAME}{title_suffix}',
        description=description,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Auto-instrument FastAPI (must be done before mounting routes)
    if settings.OTEL_ENABLED:
        TracingConfig(service_name=service_name).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)

    app.include_router(slot_router, prefix=API_PREFIX, tags=['slot'])
    app.include_router(reservation_router, prefix=f'{API_PREFIX}/reservations', tags=['reservation'])
    app.include_router(waitlist_router, prefix=f'{API_PREFIX}/waitlist', tags=['waitlist'])
    app.include_router(extension_router, prefix=f'{API_PREFIX}/extensions', tags=['extension'])
    app.include_router(admin_router, prefix=f'{API_PREFIX}/admin', tags=['admin'])

    _register_common_endpoints(app)

    return app


def _register_common_endpoints(app: FastAPI) -> None:
    """Register health and metrics endpoints."""

    @app.get('/health')
    async def health_check() -> dict[str, str]:
        """Health check endpoint for container orchestration."""
        return {'status': 'healthy', 'service': settings.PROJECT_NAME}

    @app.get('/metrics')
    async def get_metrics() -> PlainTextResponse:
        """Prometheus metrics endpoint."""
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
