from unittest.mock import Mock

import pytest

from collectible_marketplace.config import MarketplaceConfig
from collectible_marketplace.read.reader import MarketplaceRead
from collectible_marketplace.read.view import MarketplaceViewCaller
from collectible_marketplace.write.writer import MarketplaceWrite

from tests.helpers.factories import FakeClock, ViewRouter, make_client, make_config, make_signer


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shells and `.env` files out of configuration tests."""
    for name in (
        "APTOS_NODE_URL",
        "APTOS_NETWORK",
        "MARKETPLACE_ADDRESS",
        "MARKETPLACE_MODULE",
        "MARKETPLACE_TX_TIMEOUT",
        "MARKETPLACE_POLL_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> MarketplaceConfig:
    return make_config()


@pytest.fixture
def router() -> ViewRouter:
    return ViewRouter()


@pytest.fixture
def client(router: ViewRouter) -> Mock:
    return make_client(router)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def reader(client: Mock, config: MarketplaceConfig) -> MarketplaceRead:
    return MarketplaceRead(MarketplaceViewCaller(client, config))


@pytest.fixture
def signer() -> Mock:
    return make_signer()


@pytest.fixture
def writer(
    client: Mock, signer: Mock, config: MarketplaceConfig, clock: FakeClock
) -> MarketplaceWrite:
    return MarketplaceWrite(client=client, signer=signer, config=config, clock=clock)
