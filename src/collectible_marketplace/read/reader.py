from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from .. import constants as const
from ..codec import Amount, is_no_bidder, normalize_address, to_apt, to_octas
from ..enums import Rarity
from ..error_codes import SemanticError, describe_error
from ..errors import MalformedResponseError, ValidationError
from ..models import Asset, ListingSummary, PartialResult
from .fanout import gather_partial
from .view import MarketplaceViewCaller

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _check_page(limit: int, offset: int) -> None:
    if limit <= 0:
        raise ValidationError(f"limit must be > 0, got {limit}")
    if offset < 0:
        raise ValidationError(f"offset must be >= 0, got {offset}")


def _ids(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise MalformedResponseError(f"Expected a list of NFT ids, got {value!r}")
    return [str(v) for v in value]


def _summaries(value: Any) -> list[ListingSummary]:
    if not isinstance(value, list):
        raise MalformedResponseError(f"Expected a list of listings, got {value!r}")
    return [ListingSummary.from_view(v) for v in value]


@dataclass(slots=True)
class MarketplaceRead:
    """
    Read API for the marketplace contract.

    Every method is a pure state read and never raises: on failure it logs, records a
    `SemanticError` in `last_error` (and passes it to `on_error`), then returns an empty
    or absent value.
    """

    view: MarketplaceViewCaller
    on_error: Callable[[SemanticError], None] | None = None
    last_error: SemanticError | None = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record(self, semantic: SemanticError) -> None:
        self.last_error = semantic
        if self.on_error is not None:
            self.on_error(semantic)

    def _report(self, error: BaseException, default_message: str) -> SemanticError:
        semantic = describe_error(error, default_message)
        logger.error(
            "%s (%s): %s", default_message, semantic.kind.value, error, exc_info=error
        )
        self._record(semantic)
        return semantic

    async def _guarded(
        self, default_message: str, default: R, read: Callable[[], Awaitable[R]]
    ) -> R:
        try:
            return await read()
        except Exception as e:
            self._report(e, default_message)
            return default

    # ------------------------------------------------------------------
    # Marketplace
    # ------------------------------------------------------------------

    async def is_marketplace_initialized(self) -> bool:
        async def read() -> bool:
            return bool(await self.view.call_one("is_marketplace_initialized"))

        return await self._guarded(
            "Failed to check if marketplace is initialized", False, read
        )

    async def fetch_listed_assets(self, rarity: Rarity | int | None = None) -> list[Asset]:
        """
        Read every NFT straight from the `Marketplace` resource and keep those for sale.

        Entries that cannot be decoded are skipped.
        """

        async def read() -> list[Asset]:
            data = await self.view.marketplace_resource()
            nfts = data.get("nfts")
            if not isinstance(nfts, list):
                raise MalformedResponseError("Marketplace resource has no `nfts` vector")
            assets: list[Asset] = []
            for entry in nfts:
                try:
                    assets.append(Asset.from_resource(entry))
                except MalformedResponseError as e:
                    logger.warning("skipping undecodable NFT entry: %s", e)
            return [
                a
                for a in assets
                if a.for_sale and (rarity is None or a.rarity == int(rarity))
            ]

        return await self._guarded("Failed to fetch NFTs", [], read)

    # ------------------------------------------------------------------
    # Single asset
    # ------------------------------------------------------------------

    async def get_asset(self, nft_id: str) -> Asset | None:
        """
        Full detail for one NFT, or None.

        A response with fewer than 14 positional values is treated as absent.
        """
        try:
            values = await self.view.call("get_nft_details", str(nft_id))
            return Asset.from_view(values)
        except MalformedResponseError as e:
            logger.error("Invalid NFT details response for %s: %s", nft_id, e)
            self._record(describe_error(e, f"Failed to fetch details for NFT {nft_id}"))
            return None
        except Exception as e:
            self._report(e, f"Failed to fetch details for NFT {nft_id}")
            return None

    async def get_assets(self, nft_ids: Iterable[str]) -> PartialResult[Asset]:
        """Fetch details concurrently, keeping only the assets that resolved."""
        result = await gather_partial(self.get_asset(i) for i in nft_ids)
        if result.failures:
            logger.warning(
                "%d of %d NFT detail fetches failed", result.failures, result.total
            )
        return result

    async def get_owner(self, nft_id: str) -> str:
        async def read() -> str:
            return normalize_address(str(await self.view.call_one("get_owner", str(nft_id))))

        return await self._guarded("Failed to get NFT owner", "", read)

    async def get_price(self, nft_id: str) -> float:
        async def read() -> float:
            return to_apt(await self.view.call_one("get_nft_price", str(nft_id)))

        return await self._guarded("Failed to get NFT price", 0.0, read)

    async def get_auction_winner(self, nft_id: str) -> str:
        """Winner of an ended auction, or `NO_BIDDER` when there is none."""

        async def read() -> str:
            winner = await self.view.call_one("get_auction_winner", str(nft_id))
            return const.NO_BIDDER if is_no_bidder(winner) else normalize_address(str(winner))

        return await self._guarded("Failed to get auction winner", const.NO_BIDDER, read)

    async def is_for_sale(self, nft_id: str) -> bool:
        async def read() -> bool:
            return bool(await self.view.call_one("is_nft_for_sale", str(nft_id)))

        return await self._guarded("Failed to check if NFT is for sale", False, read)

    async def is_in_auction(self, nft_id: str) -> bool:
        async def read() -> bool:
            return bool(await self.view.call_one("is_nft_for_auction", str(nft_id)))

        return await self._guarded("Failed to check if NFT is for auction", False, read)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def list_for_sale(self, limit: int, offset: int = 0) -> list[ListingSummary]:
        async def read() -> list[ListingSummary]:
            _check_page(limit, offset)
            return _summaries(
                await self.view.call_one("get_all_nfts_for_sale", limit, offset)
            )

        return await self._guarded("Failed to get NFTs for sale", [], read)

    async def list_in_auction(self, limit: int, offset: int = 0) -> list[ListingSummary]:
        async def read() -> list[ListingSummary]:
            _check_page(limit, offset)
            return _summaries(await self.view.call_one("get_nfts_in_auction", limit, offset))

        return await self._guarded("Failed to get NFTs in auction", [], read)

    async def list_by_owner(self, owner: str, limit: int, offset: int = 0) -> list[str]:
        async def read() -> list[str]:
            _check_page(limit, offset)
            return _ids(
                await self.view.call_one(
                    "get_all_nfts_for_owner", normalize_address(owner), limit, offset
                )
            )

        return await self._guarded("Failed to get NFTs for owner", [], read)

    async def list_by_rarity(self, rarity: Rarity | int) -> list[str]:
        async def read() -> list[str]:
            return _ids(
                await self.view.call_one("get_nfts_by_rarity", int(Rarity.parse(rarity)))
            )

        return await self._guarded("Failed to get NFTs by rarity", [], read)

    async def list_by_listing_date(self, listing_date: int) -> list[str]:
        async def read() -> list[str]:
            return _ids(
                await self.view.call_one("get_nfts_by_listing_date", int(listing_date))
            )

        return await self._guarded("Failed to get NFTs by listing date", [], read)

    async def list_by_price(self, price: Amount) -> list[str]:
        async def read() -> list[str]:
            return _ids(await self.view.call_one("get_nfts_by_price", to_octas(price)))

        return await self._guarded("Failed to get NFTs by price", [], read)

    # ------------------------------------------------------------------
    # Pages with full detail
    # ------------------------------------------------------------------

    async def get_assets_for_sale(self, limit: int, offset: int = 0) -> PartialResult[Asset]:
        listings = await self.list_for_sale(limit, offset)
        return await self.get_assets(s.id for s in listings)

    async def get_assets_in_auction(
        self, limit: int, offset: int = 0
    ) -> PartialResult[Asset]:
        listings = await self.list_in_auction(limit, offset)
        return await self.get_assets(s.id for s in listings)

    async def get_assets_for_owner(
        self, owner: str, limit: int, offset: int = 0
    ) -> PartialResult[Asset]:
        return await self.get_assets(await self.list_by_owner(owner, limit, offset))
