from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from aptos_sdk.account_address import AccountAddress

from . import constants as const

logger = logging.getLogger(__name__)

Amount = int | float | Decimal | str


def to_octas(amount: Amount) -> int:
    """
    Convert a display amount (APT) into integer octas (10^8 per APT).

    Rounds half-up to the nearest octa instead of truncating, so `0.29` becomes
    29_000_000 rather than 28_999_999.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    scaled = value * const.OCTAS_PER_APT
    return int(scaled.to_integral_value(rounding=ROUND_HALF_UP))


def to_apt(octas: int | str) -> float:
    """Convert integer octas (or their decimal string encoding) into display units."""
    return int(octas) / const.OCTAS_PER_APT


def decode_hex_text(value: str | None) -> str:
    """
    Decode a `0x`-prefixed hex string into UTF-8 text.

    Never raises: anything that is not valid hex-encoded UTF-8 decodes to "".
    Callers must treat "" as unknown.
    """
    if not value:
        return ""
    try:
        return bytes.fromhex(value[2:]).decode("utf-8")
    except (ValueError, TypeError):
        logger.debug("could not decode hex text %r", value)
        return ""


def encode_hex_text(text: str) -> str:
    """Encode text as a `0x`-prefixed hex string (inverse of `decode_hex_text`)."""
    return "0x" + text.encode("utf-8").hex()


def encode_text(text: str) -> list[int]:
    """UTF-8 encode text as a list of byte values (JSON `vector<u8>` argument)."""
    return list(text.encode("utf-8"))


def normalize_address(value: str | None) -> str:
    """
    Canonical string form of an account address, for comparisons.

    Uses the relaxed AIP-40 parser so `0x1`, `0x01` and the long form all compare equal.
    Unparseable input is returned lower-cased and stripped.
    """
    if not value:
        return ""
    raw = str(value).strip()
    try:
        return str(AccountAddress.from_str_relaxed(raw))
    except (ValueError, RuntimeError):
        return raw.lower()


def is_no_bidder(value: str | None) -> bool:
    if not value:
        return True
    return normalize_address(value) == const.ZERO_ADDRESS


def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return normalize_address(a) == normalize_address(b)


def content_url(uri: str) -> str:
    """Resolve a content identifier through the public gateway."""
    return const.CONTENT_GATEWAY_URL_TEMPLATE.format(cid=uri)
