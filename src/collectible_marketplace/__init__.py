# ruff: noqa: RUF022
"""
Collectible Marketplace Python SDK.

Public entrypoints:
- :class:`collectible_marketplace.marketplace.Marketplace`
- :class:`collectible_marketplace.read.reader.MarketplaceRead`
- :class:`collectible_marketplace.write.writer.MarketplaceWrite`
- :class:`collectible_marketplace.auction.AuctionCoordinator`

This SDK talks to the NFTMarketplace_v1 Move module on Aptos through the fullnode
REST API (`aptos_sdk.async_client.RestClient`); transactions are signed by an
injected `TransactionSigner`.
"""

from __future__ import annotations

from . import constants, enums
from .auction import (
    AuctionCoordinator,
    AuctionTracker,
    format_time_remaining,
    time_remaining_ms,
)
from .codec import (
    Amount,
    content_url,
    decode_hex_text,
    encode_hex_text,
    encode_text,
    is_no_bidder,
    normalize_address,
    same_address,
    to_apt,
    to_octas,
)
from .config import (
    DEFAULT_NETWORKS,
    MarketplaceConfig,
    MarketplaceSettings,
    NetworkDeployment,
)
from .enums import AuctionState, ErrorCategory, ErrorKind, Rarity, rarity_label
from .error_codes import (
    ERROR_CODES,
    SemanticError,
    describe_error,
    extract_error_code,
    kind_for_code,
    message_for_code,
)
from .errors import (
    ConfigurationError,
    MalformedResponseError,
    MarketplaceError,
    MissingSignerError,
    NotFoundError,
    RejectionError,
    SettlementNotAllowedError,
    TransportError,
    ValidationError,
)
from .marketplace import Marketplace
from .models import Asset, ListingSummary, MarketplacePayload, PartialResult
from .read.fanout import gather_partial
from .read.reader import MarketplaceRead
from .read.view import MarketplaceViewCaller
from .signer import AccountSigner, TransactionSigner
from .write.writer import MarketplaceWrite

__all__ = [
    # Configuration
    "DEFAULT_NETWORKS",
    "MarketplaceConfig",
    "MarketplaceSettings",
    "NetworkDeployment",
    # Facade
    "Marketplace",
    # Read/Write helpers
    "MarketplaceRead",
    "MarketplaceViewCaller",
    "MarketplaceWrite",
    "gather_partial",
    # Signing
    "AccountSigner",
    "TransactionSigner",
    # Auctions
    "AuctionCoordinator",
    "AuctionTracker",
    "format_time_remaining",
    "time_remaining_ms",
    # Codec
    "Amount",
    "content_url",
    "decode_hex_text",
    "encode_hex_text",
    "encode_text",
    "is_no_bidder",
    "normalize_address",
    "same_address",
    "to_apt",
    "to_octas",
    # Errors
    "ConfigurationError",
    "MalformedResponseError",
    "MarketplaceError",
    "MissingSignerError",
    "NotFoundError",
    "RejectionError",
    "SettlementNotAllowedError",
    "TransportError",
    "ValidationError",
    # Error mapping
    "ERROR_CODES",
    "SemanticError",
    "describe_error",
    "extract_error_code",
    "kind_for_code",
    "message_for_code",
    # Models
    "Asset",
    "ListingSummary",
    "MarketplacePayload",
    "PartialResult",
    # Enums
    "AuctionState",
    "ErrorCategory",
    "ErrorKind",
    "Rarity",
    "rarity_label",
    "enums",
    # Constants
    "constants",
]
