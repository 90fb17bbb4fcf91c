"""Enumerations shared by the marketplace client."""

from __future__ import annotations

import enum


class Rarity(enum.IntEnum):
    """Rarity tier stored on-chain as a u8 in the range 1..5."""

    COMMON = 1
    UNCOMMON = 2
    RARE = 3
    EPIC = 4
    LEGENDARY = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: object) -> Rarity:
        """Coerce a view-function value (int or decimal string) into a `Rarity`."""
        try:
            return cls(int(value))  # type: ignore[call-overload]
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid rarity: {value!r}, must be in [1, 5]") from e


def rarity_label(value: int) -> str:
    try:
        return Rarity(value).label
    except ValueError:
        return "Unknown"


class ErrorKind(enum.Enum):
    """Stable, code-independent error categories for user-facing messages."""

    ROYALTY_TOO_HIGH = "RoyaltyTooHigh"
    NOT_OWNER = "NotOwner"
    ALREADY_LISTED = "AlreadyListed"
    INVALID_PRICE = "InvalidPrice"
    AUCTION_WINDOW_TOO_SHORT = "AuctionWindowTooShort"
    AUCTION_ALREADY_ENDED = "AuctionAlreadyEnded"
    PRICE_LOCKED_POST_AUCTION = "PriceLockedPostAuction"
    NOT_AN_AUCTION = "NotAnAuction"
    AUCTION_ENDED = "AuctionEnded"
    BID_TOO_LOW = "BidTooLow"
    BID_MUST_BE_POSITIVE = "BidMustBePositive"
    ALREADY_HIGHEST_BIDDER = "AlreadyHighestBidder"
    NOT_LISTED = "NotListed"
    AUCTION_NOT_YET_ENDED = "AuctionNotYetEnded"
    NOT_HIGHEST_BIDDER = "NotHighestBidder"
    INSUFFICIENT_PAYMENT = "InsufficientPayment"
    SAME_OWNER_TRANSFER = "SameOwnerTransfer"
    CANNOT_DELETE_LISTED = "CannotDeleteListed"
    ASSET_NOT_FOUND = "AssetNotFound"
    UNKNOWN = "Unknown"


class ErrorCategory(enum.Enum):
    """
    Where a failure originated.

    - VALIDATION: detected client-side, nothing was submitted
    - REJECTION: the contract aborted with one of its numeric codes
    - NOT_FOUND: no matching asset, or a malformed/short response
    - TRANSPORT: network, timeout or unreachable endpoint
    - UNKNOWN: anything else
    """

    VALIDATION = "validation"
    REJECTION = "rejection"
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


class AuctionState(enum.Enum):
    OPEN = "open"
    ENDED_UNRESOLVED = "ended_unresolved"
    ENDED_RESOLVED = "ended_resolved"

    @property
    def is_ended(self) -> bool:
        return self is not AuctionState.OPEN
