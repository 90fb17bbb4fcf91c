"""
Mapping from NFTMarketplace_v1 abort codes to semantic errors.

Codes are grouped by subsystem: 1000s mint/royalty, 2000s listing, 3000s price
updates, 4000s auctions, 5000s purchase/settlement, 6000s transfer, 7000s delete.
The table is kept exactly as the contract defines it; 2000, 3000, 6000 and 7000
are all distinct codes reporting `NotOwner`.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

import httpx
from aptos_sdk.async_client import ApiError

from .enums import ErrorCategory, ErrorKind
from .errors import (
    NotFoundError,
    RejectionError,
    TransportError,
    ValidationError,
)

_NOT_OWNER_MESSAGE: Final[str] = "You are not the owner of this NFT"
_INVALID_PRICE_MESSAGE: Final[str] = "Price must be greater than zero"

ERROR_CODES: Final[Mapping[int, tuple[ErrorKind, str]]] = {
    # mint
    1000: (ErrorKind.ROYALTY_TOO_HIGH, "Royalty percentage cannot exceed 25%"),
    # list_for_sale
    2000: (ErrorKind.NOT_OWNER, _NOT_OWNER_MESSAGE),
    2001: (ErrorKind.ALREADY_LISTED, "NFT is already listed for sale"),
    2002: (ErrorKind.INVALID_PRICE, _INVALID_PRICE_MESSAGE),
    2003: (
        ErrorKind.AUCTION_WINDOW_TOO_SHORT,
        "Auction end time must be at least 1 hour in the future",
    ),
    # set_price
    3000: (ErrorKind.NOT_OWNER, _NOT_OWNER_MESSAGE),
    3001: (ErrorKind.INVALID_PRICE, _INVALID_PRICE_MESSAGE),
    3002: (
        ErrorKind.PRICE_LOCKED_POST_AUCTION,
        "Cannot change price after auction has ended",
    ),
    # place_bid
    4000: (ErrorKind.NOT_AN_AUCTION, "NFT is not part of an auction"),
    4001: (ErrorKind.AUCTION_ENDED, "Auction has ended"),
    4002: (ErrorKind.BID_TOO_LOW, "Bid must be higher than current highest bid"),
    4003: (ErrorKind.BID_MUST_BE_POSITIVE, "Bid amount must be greater than zero"),
    4004: (
        ErrorKind.ALREADY_HIGHEST_BIDDER,
        "You cannot bid if you are already the highest bidder",
    ),
    # purchase_nft
    5000: (ErrorKind.NOT_LISTED, "NFT is not for sale or part of an auction"),
    5001: (ErrorKind.AUCTION_NOT_YET_ENDED, "Auction has not ended yet"),
    5002: (ErrorKind.NOT_HIGHEST_BIDDER, "Only the highest bidder can purchase"),
    5003: (ErrorKind.INSUFFICIENT_PAYMENT, "Insufficient payment for auction"),
    5004: (ErrorKind.INSUFFICIENT_PAYMENT, "Insufficient payment for sale"),
    # transfer_ownership
    6000: (ErrorKind.NOT_OWNER, _NOT_OWNER_MESSAGE),
    6001: (ErrorKind.SAME_OWNER_TRANSFER, "Cannot transfer to the same owner"),
    # delete_nft
    7000: (ErrorKind.NOT_OWNER, _NOT_OWNER_MESSAGE),
    7001: (
        ErrorKind.CANNOT_DELETE_LISTED,
        "Cannot delete an NFT that is listed for sale",
    ),
    7002: (ErrorKind.ASSET_NOT_FOUND, "NFT not found in the marketplace"),
}

# Messages for kinds raised client-side (no contract code involved).
KIND_MESSAGES: Final[Mapping[ErrorKind, str]] = {
    kind: message for kind, message in reversed(list(ERROR_CODES.values()))
} | {
    ErrorKind.AUCTION_ALREADY_ENDED: "Auction has already ended",
    ErrorKind.NOT_HIGHEST_BIDDER: "Only the auction winner can settle",
    ErrorKind.INSUFFICIENT_PAYMENT: "Payment must be greater than zero",
}

# VM status shapes reported by the fullnode:
#   "Move abort in 0x1f...::NFTMarketplace_v1: 0xfa2"
#   "Move abort in 0x1f...::NFTMarketplace_v1: E_BID_TOO_LOW(0xfa2): ..."
#   {"vm_status": "...", "abort_code": 4002}
_ABORT_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(
        r"Move abort in [^:\s]+::\w+:\s*(?:\w+\()?(0x[0-9a-fA-F]+|\d+)", re.IGNORECASE
    ),
    re.compile(r"abort_code\"?\s*[:=]\s*\"?(0x[0-9a-fA-F]+|\d+)", re.IGNORECASE),
)

# aptos-sdk gives up waiting for finality with `AssertionError("transaction <hash> timed out")`.
_FINALITY_TIMEOUT: Final[re.Pattern[str]] = re.compile(
    r"transaction \S+ timed out", re.IGNORECASE
)

_TRANSPORT_ERRORS: Final[tuple[type[BaseException], ...]] = (
    TransportError,
    httpx.HTTPError,
    TimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
)


@dataclass(frozen=True, slots=True)
class SemanticError:
    kind: ErrorKind
    message: str
    code: int | None = None
    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __str__(self) -> str:
        return self.message


def kind_for_code(code: int | None) -> ErrorKind:
    """Total mapping from an optional abort code to an `ErrorKind`."""
    if code is None:
        return ErrorKind.UNKNOWN
    entry = ERROR_CODES.get(code)
    return entry[0] if entry is not None else ErrorKind.UNKNOWN


def message_for_code(code: int | None, default_message: str) -> str:
    if code is None:
        return default_message
    entry = ERROR_CODES.get(code)
    return entry[1] if entry is not None else default_message


def _parse_int(raw: str) -> int:
    return int(raw, 16) if raw.lower().startswith("0x") else int(raw)


def extract_error_code(error: BaseException | None) -> int | None:
    """
    Best-effort extraction of a contract abort code from an exception.

    Checks an integer `code` attribute first (wallet-style errors and `RejectionError`),
    then parses the fullnode's VM status text.
    """
    if error is None:
        return None
    code = getattr(error, "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    text = str(error)
    for pattern in _ABORT_PATTERNS:
        match = pattern.search(text)
        if match:
            return _parse_int(match.group(1))
    return None


def _category_for(error: BaseException, code: int | None) -> ErrorCategory:
    if isinstance(error, ValidationError):
        return ErrorCategory.VALIDATION
    if code is not None and code in ERROR_CODES:
        if ERROR_CODES[code][0] is ErrorKind.ASSET_NOT_FOUND:
            return ErrorCategory.NOT_FOUND
        return ErrorCategory.REJECTION
    if isinstance(error, RejectionError):
        return ErrorCategory.REJECTION
    if isinstance(error, NotFoundError):
        return ErrorCategory.NOT_FOUND
    if isinstance(error, _TRANSPORT_ERRORS):
        return ErrorCategory.TRANSPORT
    if isinstance(error, AssertionError) and _FINALITY_TIMEOUT.search(str(error)):
        return ErrorCategory.TRANSPORT
    if isinstance(error, ApiError) and code is None:
        return ErrorCategory.TRANSPORT
    return ErrorCategory.UNKNOWN


def describe_error(error: BaseException | None, default_message: str) -> SemanticError:
    """
    Map any failure to a `SemanticError`. Never raises.

    Enumerated contract messages win over `default_message`; errors without a known code
    map to `ErrorKind.UNKNOWN` and carry `default_message`.
    """
    if error is None:
        return SemanticError(kind=ErrorKind.UNKNOWN, message=default_message)

    if isinstance(error, ValidationError):
        return SemanticError(
            kind=error.kind,
            message=str(error) or KIND_MESSAGES.get(error.kind, default_message),
            code=None,
            category=ErrorCategory.VALIDATION,
        )

    code = extract_error_code(error)
    kind = kind_for_code(code)
    return SemanticError(
        kind=kind,
        message=message_for_code(code, default_message),
        code=code,
        category=_category_for(error, code),
    )
