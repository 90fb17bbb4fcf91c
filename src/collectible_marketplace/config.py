from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final, Literal

from aptos_sdk.account_address import AccountAddress
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import constants as const
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class NetworkDeployment:
    """
    A public Aptos network the marketplace can be deployed on.

    The list is data-only so it can be updated without touching the rest of the SDK.
    """

    network: Literal["mainnet", "testnet", "devnet", "localnet"]
    node_url: str
    chain_id: int | None = None


DEFAULT_NETWORKS: Final[Mapping[str, NetworkDeployment]] = {
    "mainnet": NetworkDeployment(
        network="mainnet",
        node_url="https://api.mainnet.aptoslabs.com/v1",
        chain_id=1,
    ),
    "testnet": NetworkDeployment(
        network="testnet",
        node_url="https://api.testnet.aptoslabs.com/v1",
        chain_id=2,
    ),
    "devnet": NetworkDeployment(
        network="devnet",
        node_url="https://api.devnet.aptoslabs.com/v1",
        chain_id=None,  # reset weekly
    ),
    "localnet": NetworkDeployment(
        network="localnet",
        node_url="http://127.0.0.1:8080/v1",
        chain_id=4,
    ),
}


class MarketplaceSettings(BaseSettings):
    """Process environment (and optional `.env` file) for `MarketplaceConfig.from_environment`."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    aptos_node_url: str | None = None
    aptos_network: str | None = None
    marketplace_address: str | None = None
    marketplace_module: str = const.MODULE_NAME
    marketplace_tx_timeout: float = const.DEFAULT_TRANSACTION_TIMEOUT_SECS
    marketplace_poll_interval: float = const.DEFAULT_POLL_INTERVAL_SECS


@dataclass(frozen=True, slots=True)
class MarketplaceConfig:
    """
    Where the marketplace lives: the fullnode endpoint and the contract address.

    Constructed once by the caller and passed to every component that needs it.
    """

    node_url: str
    marketplace_address: str
    module_name: str = const.MODULE_NAME
    transaction_timeout: float = const.DEFAULT_TRANSACTION_TIMEOUT_SECS
    poll_interval: float = const.DEFAULT_POLL_INTERVAL_SECS

    def __post_init__(self) -> None:
        if not self.node_url or not self.node_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"`MarketplaceConfig.node_url` must be an http(s) URL, got {self.node_url!r}"
            )
        if not self.marketplace_address:
            raise ConfigurationError("`MarketplaceConfig.marketplace_address` is required")
        try:
            address = AccountAddress.from_str_relaxed(self.marketplace_address.strip())
        except (ValueError, RuntimeError) as e:
            raise ConfigurationError(
                f"Invalid marketplace address: {self.marketplace_address!r}"
            ) from e
        if not self.module_name:
            raise ConfigurationError("`MarketplaceConfig.module_name` is required")
        if self.transaction_timeout <= 0 or self.poll_interval <= 0:
            raise ConfigurationError("Timeouts and intervals must be > 0")
        object.__setattr__(self, "node_url", self.node_url.rstrip("/"))
        object.__setattr__(self, "marketplace_address", str(address))

    @property
    def module_id(self) -> str:
        return f"{self.marketplace_address}::{self.module_name}"

    @property
    def resource_type(self) -> str:
        return f"{self.module_id}::{const.MARKETPLACE_RESOURCE}"

    def function_id(self, name: str) -> str:
        return f"{self.module_id}::{name}"

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def for_network(
        cls, network: str, *, marketplace_address: str, **kwargs: object
    ) -> MarketplaceConfig:
        deployment = DEFAULT_NETWORKS.get(network)
        if deployment is None:
            raise ConfigurationError(
                f"Unknown network {network!r}, expected one of {sorted(DEFAULT_NETWORKS)}"
            )
        return cls(
            node_url=deployment.node_url,
            marketplace_address=marketplace_address,
            **kwargs,  # type: ignore[arg-type]
        )

    @classmethod
    def from_settings(cls, settings: MarketplaceSettings) -> MarketplaceConfig:
        node_url = settings.aptos_node_url
        if not node_url and settings.aptos_network:
            deployment = DEFAULT_NETWORKS.get(settings.aptos_network)
            if deployment is None:
                raise ConfigurationError(f"Unknown APTOS_NETWORK {settings.aptos_network!r}")
            node_url = deployment.node_url
        if not node_url:
            raise ConfigurationError("APTOS_NODE_URL (or APTOS_NETWORK) must be set")
        if not settings.marketplace_address:
            raise ConfigurationError("MARKETPLACE_ADDRESS must be set")
        return cls(
            node_url=node_url,
            marketplace_address=settings.marketplace_address,
            module_name=settings.marketplace_module,
            transaction_timeout=settings.marketplace_tx_timeout,
            poll_interval=settings.marketplace_poll_interval,
        )

    @classmethod
    def from_environment(cls, env_file: str | None = ".env") -> MarketplaceConfig:
        """Read APTOS_NODE_URL / APTOS_NETWORK and MARKETPLACE_* from the environment."""
        return cls.from_settings(MarketplaceSettings(_env_file=env_file))  # type: ignore[call-arg]
