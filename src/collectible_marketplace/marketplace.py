from __future__ import annotations

import logging
import math
from collections.abc import Callable
from types import TracebackType

from aptos_sdk.account import Account
from aptos_sdk.async_client import ClientConfig, RestClient

from .auction import AuctionCoordinator
from .config import MarketplaceConfig
from .error_codes import SemanticError
from .errors import MissingSignerError
from .read.reader import MarketplaceRead
from .read.view import MarketplaceViewCaller
from .signer import AccountSigner, TransactionSigner
from .write.writer import MarketplaceWrite

logger = logging.getLogger(__name__)


class Marketplace:
    """
    Facade over the marketplace read/write APIs and the auction coordinator.

    Construct using one of the helpers:
    - `from_config(...)` (explicit configuration, optional signer)
    - `from_environment(...)` (configuration from `APTOS_*`/`MARKETPLACE_*` variables)

    A `RestClient` created here is owned by the facade and closed by `close()` or on
    leaving `async with`; a client passed in is left to the caller.
    """

    def __init__(
        self,
        *,
        config: MarketplaceConfig,
        client: RestClient | None = None,
        signer: TransactionSigner | None = None,
        on_error: Callable[[SemanticError], None] | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self.client = client if client is not None else self._create_client(config)
        self.signer = signer

        self.read = MarketplaceRead(
            MarketplaceViewCaller(self.client, config), on_error=on_error
        )
        self._write: MarketplaceWrite | None = None
        if signer is not None:
            self._write = MarketplaceWrite(
                client=self.client, signer=signer, config=config, on_error=on_error
            )
        self.auctions = AuctionCoordinator(
            read=self.read, write=self._write, poll_interval=config.poll_interval
        )

    @staticmethod
    def _create_client(config: MarketplaceConfig) -> RestClient:
        # The SDK's own finality wait must not end before `transaction_timeout`.
        client_config = ClientConfig(
            transaction_wait_in_seconds=math.ceil(config.transaction_timeout)
        )
        return RestClient(config.node_url, client_config)

    @property
    def write(self) -> MarketplaceWrite:
        if self._write is None:
            raise MissingSignerError("Write operations require a transaction signer")
        return self._write

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: MarketplaceConfig,
        *,
        client: RestClient | None = None,
        signer: TransactionSigner | None = None,
        account: Account | None = None,
        on_error: Callable[[SemanticError], None] | None = None,
    ) -> Marketplace:
        """
        Build a facade for `config`.

        Pass either a ready `signer` or a local `account`, which is wrapped in an
        `AccountSigner` sharing the facade's client.
        """
        if signer is not None and account is not None:
            raise ValueError("Pass either signer or account, not both")
        market = cls(config=config, client=client, signer=signer, on_error=on_error)
        if account is not None:
            market.signer = AccountSigner(market.client, account)
            market._write = MarketplaceWrite(
                client=market.client,
                signer=market.signer,
                config=config,
                on_error=on_error,
            )
            market.auctions.write = market._write
        return market

    @classmethod
    def from_environment(
        cls,
        *,
        env_file: str | None = ".env",
        client: RestClient | None = None,
        signer: TransactionSigner | None = None,
        account: Account | None = None,
        on_error: Callable[[SemanticError], None] | None = None,
    ) -> Marketplace:
        config = MarketplaceConfig.from_environment(env_file=env_file)
        logger.info(
            "marketplace %s on %s", config.marketplace_address, config.node_url
        )
        return cls.from_config(
            config, client=client, signer=signer, account=account, on_error=on_error
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        if self._owns_client:
            await self.client.close()

    async def __aenter__(self) -> Marketplace:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
