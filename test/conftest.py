"""
Test Configuration and Fixtures

This module provides:
- Environment setup before any application module reads Settings
- Per-test SQLite databases (file based, so concurrent sessions see each other)
- The HTTP client fixture running the real app lifespan

Architecture:
- Unit tests (test/**/unit/): mocks only, marked with @pytest.mark.unit
- Integration tests: real repositories on a throwaway database per test
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are instantiated at import time (src.platform.config.core_setting)
# =============================================================================
import os
from pathlib import Path
import tempfile


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    test_dir = Path(tempfile.mkdtemp(prefix=f'elite_slot_test_{worker_id}_'))

    os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{test_dir / "elite_slot_test.db"}'
    os.environ['TEST_LOG_DIR'] = str(test_dir)
    os.environ['DEBUG'] = 'false'
    os.environ['SWEEPER_ENABLED'] = 'false'
    os.environ['OTEL_ENABLED'] = 'false'
    os.environ['SEED_DEFAULT_SLOTS'] = 'true'


# Call immediately to set env vars before any imports
_early_setup_test_environment()

from collections.abc import AsyncGenerator, Generator  # noqa: E402

from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from src.platform.config.di import container  # noqa: E402
from src.platform.database.orm_db_setting import Database  # noqa: E402
import src.service.elite_slot.driven_adapter.model  # noqa: E402, F401


def sqlite_url(directory: Path, name: str = 'elite_slot.db') -> str:
    return f'sqlite+aiosqlite:///{directory / name}'


# =============================================================================
# Integration Test Fixtures
# =============================================================================
@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Fresh schema per test"""
    db = Database(url=sqlite_url(tmp_path))
    await db.create_db_and_tables()
    yield db
    await db.dispose()


@pytest.fixture
def client(tmp_path: Path) -> Generator[TestClient, None, None]:
    """
    App client on its own database file.

    The lifespan creates the schema, seeds the catalog and starts the slot
    freed consumer; the sweeper is disabled through SWEEPER_ENABLED.
    """
    from test.test_main import app

    container.database.override(providers.Singleton(Database, url=sqlite_url(tmp_path, 'api.db')))
    container.reset_singletons()
    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        container.database.reset_override()
        container.reset_singletons()
