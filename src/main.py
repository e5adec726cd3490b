"""
Production FastAPI Application

Elite slot API plus its background workers (sweeper, slot freed consumer).
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.elite_slot.app.command.seed_slot_catalog_use_case import SeedSlotCatalogUseCase
from src.service.elite_slot.driving_adapter.background.elite_slot_sweeper import (
    build_elite_slot_sweeper,
    build_offer_freed_slot,
)
from src.service.elite_slot.driving_adapter.background.slot_freed_consumer import (
    SlotFreedConsumer,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Elite Slot] Starting up...')

    tracing: TracingConfig | None = None
    if settings.OTEL_ENABLED:
        tracing = TracingConfig(service_name='elite-slot-service')
        tracing.setup()
        Logger.base.info('📊 [Elite Slot] OpenTelemetry tracing configured')

    # Wire dependency injection for all modules
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Elite Slot] Dependency injection wired')

    database = container.database()
    await database.create_db_and_tables()
    if tracing:
        tracing.instrument_sqlalchemy(engine=database.engine)
    Logger.base.info('🗄️  [Elite Slot] Database ready')

    if settings.SEED_DEFAULT_SLOTS:
        seeded = await SeedSlotCatalogUseCase(
            slot_catalog_repo=container.slot_catalog_repo(), settings=container.config_service()
        ).execute()
        if seeded:
            Logger.base.info(f'🌱 [Elite Slot] Seeded {len(seeded)} slots')

    async with anyio.create_task_group() as tg:
        consumer = SlotFreedConsumer(
            slot_event_queue=container.slot_event_queue(),
            offer_freed_slot=build_offer_freed_slot(container),
        )
        tg.start_soon(consumer.run)
        if settings.SWEEPER_ENABLED:
            tg.start_soon(build_elite_slot_sweeper(container).run)
        Logger.base.info('✅ [Elite Slot] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Elite Slot] Shutting down...')
        tg.cancel_scope.cancel()

    await database.dispose()
    Logger.base.info('🗄️  [Elite Slot] Database disposed')

    if tracing:
        tracing.shutdown()
        Logger.base.info('📊 [Elite Slot] Tracing shutdown complete')

    container.unwire()
    Logger.base.info('👋 [Elite Slot] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
