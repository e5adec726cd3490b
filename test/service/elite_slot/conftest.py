from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import List

import pytest

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.service.elite_slot.domain.entity.period_entity import Period
from src.service.elite_slot.domain.entity.slot_entity import Slot
from test.service.elite_slot.engine_harness import EliteSlotEngine


# Monday 09:00 UTC; every integration scenario starts its active period here
BASE_NOW = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return BASE_NOW


@pytest.fixture
def elite_settings() -> Settings:
    return Settings(
        ELITE_GRID_COLUMNS=3,
        ELITE_HOLD_TTL_MINUTES=15,
        ELITE_OFFER_TTL_MINUTES=10,
        ELITE_PERIOD_LENGTH_DAYS=7,
        WAITLIST_REQUEUE_LAPSED_OFFERS=True,
        EXTENSION_AUTO_APPROVE=False,
    )


@pytest.fixture
async def engine(database: Database, elite_settings: Settings) -> AsyncGenerator[EliteSlotEngine, None]:
    yield EliteSlotEngine.build(database=database, settings=elite_settings)


@pytest.fixture
async def seeded_slots(engine: EliteSlotEngine) -> List[Slot]:
    return await engine.seed().execute()


@pytest.fixture
async def active_period(engine: EliteSlotEngine, seeded_slots: List[Slot], now: datetime) -> Period:
    return await engine.period().execute(now=now)
