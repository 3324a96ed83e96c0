from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from creditledger.core.config import DatabaseSettings, LedgerSettings, Settings
from creditledger.core.container import ApplicationContainer
from creditledger.modules.directory import AccountProfile, StaticAccountDirectory


PROFILES = {
    "alice": AccountProfile(account_id="alice", display_name="Alice", email="alice@example.com"),
    "bob": AccountProfile(account_id="bob", display_name="Bob", email="bob@example.com"),
}


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        environment="test",
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"),
        ledger=LedgerSettings(backoff_initial=0, backoff_max=0),
    )


@pytest.fixture
def directory(settings: Settings) -> StaticAccountDirectory:
    return StaticAccountDirectory(settings.ledger.account_id_pattern, PROFILES)


@pytest_asyncio.fixture
async def container(settings: Settings, directory) -> AsyncGenerator[ApplicationContainer, None]:
    container = ApplicationContainer.from_settings(settings, directory=directory)
    await container.startup()
    yield container
    await container.shutdown()


@pytest.fixture
def database(container):
    return container.database


@pytest.fixture
def adjustments(container):
    return container.adjustment_service()


@pytest.fixture
def bulk(container):
    return container.bulk_service()


@pytest.fixture
def queries(container):
    return container.query_service()


@pytest.fixture
def reconciler(container):
    return container.reconciliation_service()


@pytest.fixture
def app(settings: Settings, container):
    from creditledger.main import create_app

    return create_app(settings, container=container)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
