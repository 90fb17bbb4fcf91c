"""Copy of NFTMarketplace_v1 contract constants used by the client."""

from typing import Final

# ---------------------------------------------------------------------------
# Aptos constants
# ---------------------------------------------------------------------------
OCTAS_PER_APT: Final[int] = 100_000_000
ZERO_ADDRESS: Final[str] = "0x0"


# ---------------------------------------------------------------------------
# Contract constants
# ---------------------------------------------------------------------------
MODULE_NAME: Final[str] = "NFTMarketplace_v1"
MARKETPLACE_RESOURCE: Final[str] = "Marketplace"

MAX_ROYALTY_PERCENTAGE: Final[int] = 25
MIN_AUCTION_DURATION_SECS: Final[int] = 3600

# get_nft_details returns at least this many positional values
NFT_DETAILS_MIN_FIELDS: Final[int] = 14


# ---------------------------------------------------------------------------
# Client defaults
# ---------------------------------------------------------------------------
NO_BIDDER: Final[str] = ""

CONTENT_GATEWAY_URL_TEMPLATE: Final[str] = "https://gateway.pinata.cloud/ipfs/{cid}"

DEFAULT_TRANSACTION_TIMEOUT_SECS: Final[float] = 60.0
DEFAULT_POLL_INTERVAL_SECS: Final[float] = 1.0

AUCTION_ENDED_TEXT: Final[str] = "Auction ended"
