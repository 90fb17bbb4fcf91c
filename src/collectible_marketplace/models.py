from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from . import codec
from . import constants as const
from .codec import (
    decode_hex_text,
    is_no_bidder,
    normalize_address,
    to_apt,
)
from .enums import Rarity
from .errors import MalformedResponseError

T = TypeVar("T")


def _coerce_bool(v: object, *, name: str) -> bool:
    """
    Coerce a JSON view value into `bool`.

    The fullnode returns Move `bool` as a JSON boolean; string forms are accepted
    for robustness against proxies that stringify everything.
    """
    if isinstance(v, bool):
        return v
    if isinstance(v, str) and v.lower() in ("true", "false"):
        return v.lower() == "true"
    raise MalformedResponseError(f"{name} must be a bool, got {v!r}")


def _coerce_int(v: object, *, name: str) -> int:
    """Coerce a JSON view value (u64 values are decimal strings) into `int`."""
    if isinstance(v, bool):
        raise MalformedResponseError(f"{name} must be an integer, got {v!r}")
    try:
        return int(v)  # type: ignore[call-overload]
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(f"{name} must be an integer, got {v!r}") from e


def _coerce_rarity(v: object) -> Rarity:
    try:
        return Rarity.parse(v)
    except ValueError as e:
        raise MalformedResponseError(str(e)) from e


@dataclass(frozen=True, slots=True)
class Asset:
    """
    An NFT as tracked by the marketplace contract.

    Monetary fields are in display units (APT). `auction_end` is set only for auctions;
    `highest_bidder` is `NO_BIDDER` ("") when nobody has bid.
    """

    id: str
    owner: str
    original_creator: str
    name: str
    description: str
    uri: str
    price: float
    for_sale: bool
    rarity: Rarity
    listing_date: int
    royalty_percentage: int
    is_auction: bool
    auction_end: int | None = None
    highest_bid: float | None = None
    highest_bidder: str = const.NO_BIDDER

    @property
    def has_bid(self) -> bool:
        return self.highest_bidder != const.NO_BIDDER

    @property
    def is_purchasable(self) -> bool:
        return self.for_sale

    @property
    def content_url(self) -> str:
        return codec.content_url(self.uri)

    @staticmethod
    def from_view(values: Sequence[Any]) -> Asset:
        """
        Build an `Asset` from the positional `get_nft_details` response.

        Order: id, owner, original_creator, name, description, uri, price, for_sale,
        rarity, listing_date, royalty_percentage, is_auction, auction_end, highest_bid
        and (optionally) highest_bidder.

        Raises:
            MalformedResponseError: if there are fewer than 14 values or any field has
                the wrong shape. No partially populated object is ever returned.
        """
        if (
            isinstance(values, (str, bytes))
            or not isinstance(values, Sequence)
            or len(values) < const.NFT_DETAILS_MIN_FIELDS
        ):
            raise MalformedResponseError(
                f"Expected at least {const.NFT_DETAILS_MIN_FIELDS} values for NFT details, "
                f"got {values!r}"
            )

        (
            nft_id,
            owner,
            original_creator,
            name,
            description,
            uri,
            price,
            for_sale,
            rarity,
            listing_date,
            royalty,
            is_auction,
            auction_end,
            highest_bid,
        ) = values[: const.NFT_DETAILS_MIN_FIELDS]
        raw_bidder = (
            values[const.NFT_DETAILS_MIN_FIELDS]
            if len(values) > const.NFT_DETAILS_MIN_FIELDS
            else None
        )

        auction = _coerce_bool(is_auction, name="is_auction")
        bid_octas = _coerce_int(highest_bid, name="highest_bid")
        bidder = (
            const.NO_BIDDER
            if is_no_bidder(raw_bidder)
            else normalize_address(str(raw_bidder))
        )
        royalty_percentage = _coerce_int(royalty, name="royalty_percentage")
        if not 0 <= royalty_percentage <= const.MAX_ROYALTY_PERCENTAGE:
            raise MalformedResponseError(
                f"royalty_percentage out of range: {royalty_percentage}"
            )

        return Asset(
            id=str(nft_id),
            owner=normalize_address(str(owner)),
            original_creator=normalize_address(str(original_creator)),
            name=decode_hex_text(name),
            description=decode_hex_text(description),
            uri=decode_hex_text(uri),
            price=to_apt(_coerce_int(price, name="price")),
            for_sale=_coerce_bool(for_sale, name="for_sale"),
            rarity=_coerce_rarity(rarity),
            listing_date=_coerce_int(listing_date, name="listing_date"),
            royalty_percentage=royalty_percentage,
            is_auction=auction,
            auction_end=(
                _coerce_int(auction_end, name="auction_end") if auction else None
            ),
            highest_bid=to_apt(bid_octas) if bid_octas > 0 else None,
            highest_bidder=bidder,
        )

    @staticmethod
    def from_resource(data: Mapping[str, Any]) -> Asset:
        """
        Build an `Asset` from one entry of the `Marketplace` resource's `nfts` vector.

        Field names follow the Move struct.
        """
        try:
            values = [
                data["id"],
                data["owner"],
                data.get("original_creator", data["owner"]),
                data["name"],
                data["description"],
                data["uri"],
                data["price"],
                data["for_sale"],
                data["rarity"],
                data.get("listing_date", 0),
                data.get("royalty_percentage", 0),
                data.get("is_auction", False),
                data.get("auction_end", 0),
                data.get("highest_bid", 0),
                _unwrap_option(data.get("highest_bidder")),
            ]
        except (KeyError, TypeError) as e:
            raise MalformedResponseError(f"Unexpected NFT resource shape: {data!r}") from e
        return Asset.from_view(values)


def _unwrap_option(v: Any) -> Any:
    """Move `Option<T>` serializes as `{"vec": []}` or `{"vec": [value]}`."""
    if isinstance(v, Mapping) and "vec" in v:
        inner = v["vec"]
        return inner[0] if inner else None
    return v


@dataclass(frozen=True, slots=True)
class ListingSummary:
    """Lightweight projection of a listed asset, for paginated browsing."""

    id: str
    price: float
    rarity: Rarity
    listing_date: int

    @staticmethod
    def from_view(value: Mapping[str, Any]) -> ListingSummary:
        if not isinstance(value, Mapping):
            raise MalformedResponseError(f"Expected a listing object, got {value!r}")
        try:
            return ListingSummary(
                id=str(value["id"]),
                price=to_apt(_coerce_int(value["price"], name="price")),
                rarity=_coerce_rarity(value["rarity"]),
                listing_date=_coerce_int(value["listing_date"], name="listing_date"),
            )
        except KeyError as e:
            raise MalformedResponseError(f"Listing is missing {e.args[0]!r}") from e


@dataclass(frozen=True, slots=True)
class MarketplacePayload:
    """An entry function call, as handed to the signer."""

    function: str
    arguments: tuple[Any, ...]
    type_arguments: tuple[str, ...] = ()

    @property
    def function_name(self) -> str:
        return self.function.rsplit("::", 1)[-1]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "entry_function_payload",
            "function": self.function,
            "type_arguments": list(self.type_arguments),
            "arguments": list(self.arguments),
        }


@dataclass(slots=True)
class PartialResult(Generic[T]):
    """Outcome of a best-effort fan-out: the resolved subset plus a failure count."""

    items: list[T] = field(default_factory=list)
    failures: int = 0

    @property
    def total(self) -> int:
        return len(self.items) + self.failures

    @property
    def complete(self) -> bool:
        return self.failures == 0

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
