from collections.abc import Generator

from dependency_injector import providers
from fastapi.testclient import TestClient
import pytest

from src.platform.config.core_setting import Settings
from src.platform.config.di import container


API = '/api/elite-slot'


@pytest.fixture
def instant_hold_expiry() -> Generator[None, None, None]:
    """Holds expire the moment they are created"""
    container.config_service.override(providers.Object(Settings(ELITE_HOLD_TTL_MINUTES=0)))
    yield
    container.config_service.reset_override()


@pytest.fixture
def expiring_client(instant_hold_expiry: None, client: TestClient) -> TestClient:
    return client


@pytest.fixture
def period_id(client: TestClient) -> str:
    response = client.get(f'{API}/periods/active')
    assert response.status_code == 200
    return response.json()['id']


def hold_body(period_id: str, *, slot_id: int = 1, owner_id: str = 'owner-a') -> dict:
    return {
        'slot_id': slot_id,
        'period_id': period_id,
        'listing_id': f'listing-of-{owner_id}',
        'owner_id': owner_id,
    }
