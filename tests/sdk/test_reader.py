"""
Tests for collectible_marketplace.read.reader module.

Tests cover:
- Wire encoding of view arguments (marketplace address first, u64 as strings)
- Single-asset reads and their failure modes (short tuple, abort, transport)
- Paginated and filtered listings
- Best-effort detail fan-out
- Reading straight from the Marketplace resource
- Error reporting through last_error / on_error
"""

from typing import Any
from unittest.mock import Mock

import pytest
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ApiError

from collectible_marketplace import constants as const
from collectible_marketplace.config import MarketplaceConfig
from collectible_marketplace.enums import ErrorCategory, ErrorKind, Rarity
from collectible_marketplace.error_codes import SemanticError
from collectible_marketplace.models import ListingSummary
from collectible_marketplace.read.reader import MarketplaceRead
from collectible_marketplace.read.view import MarketplaceViewCaller
from tests.helpers.factories import (
    ALICE,
    BOB,
    MARKET,
    NOW,
    ViewRouter,
    abort_error,
    auction_details,
    listing,
    nft_details,
)

# ================================================================
# Marketplace
# ================================================================


class TestInitialization:
    async def test_initialized(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("is_marketplace_initialized", [True])
        assert await reader.is_marketplace_initialized() is True
        assert router.calls == [("is_marketplace_initialized", [MARKET])]

    async def test_transport_failure_reads_as_false(
        self, reader: MarketplaceRead, router: ViewRouter
    ) -> None:
        router.set("is_marketplace_initialized", ApiError("Bad Gateway", 502))
        assert await reader.is_marketplace_initialized() is False
        assert reader.last_error is not None
        assert reader.last_error.category is ErrorCategory.TRANSPORT
        assert reader.last_error.message == "Failed to check if marketplace is initialized"


# ================================================================
# Single asset
# ================================================================


class TestGetAsset:
    """Tests for get_asset and its failure modes."""

    async def test_decodes_details(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set(
            "get_nft_details",
            auction_details(highest_bid_octas=500_000_000, highest_bidder=BOB),
        )
        asset = await reader.get_asset("1")
        assert asset is not None
        assert asset.highest_bid == 5.0
        assert asset.highest_bidder == BOB
        assert router.calls == [("get_nft_details", [MARKET, "1"])]
        assert reader.last_error is None

    async def test_short_tuple_is_absent(
        self, reader: MarketplaceRead, router: ViewRouter
    ) -> None:
        router.set("get_nft_details", nft_details()[:13])
        assert await reader.get_asset("1") is None
        assert reader.last_error is not None
        assert reader.last_error.category is ErrorCategory.NOT_FOUND

    async def test_asset_not_found(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_nft_details", abort_error(7002))
        assert await reader.get_asset("42") is None
        assert reader.last_error is not None
        assert reader.last_error.kind is ErrorKind.ASSET_NOT_FOUND
        assert reader.last_error.message == "NFT not found in the marketplace"

    async def test_unknown_failure_uses_default_message(
        self, reader: MarketplaceRead, router: ViewRouter
    ) -> None:
        router.set("get_nft_details", ApiError("Internal Server Error", 500))
        assert await reader.get_asset("9") is None
        assert reader.last_error is not None
        assert reader.last_error.kind is ErrorKind.UNKNOWN
        assert reader.last_error.message == "Failed to fetch details for NFT 9"

    async def test_on_error_is_called(
        self, client: Mock, config: MarketplaceConfig, router: ViewRouter
    ) -> None:
        seen: list[SemanticError] = []
        reader = MarketplaceRead(MarketplaceViewCaller(client, config), on_error=seen.append)
        router.set("get_nft_details", abort_error(7002))
        await reader.get_asset("1")
        assert [e.kind for e in seen] == [ErrorKind.ASSET_NOT_FOUND]

    async def test_failure_is_logged(
        self, reader: MarketplaceRead, router: ViewRouter, caplog: pytest.LogCaptureFixture
    ) -> None:
        router.set("get_nft_details", ApiError("Internal Server Error", 500))
        with caplog.at_level("ERROR", logger="collectible_marketplace"):
            await reader.get_asset("9")
        assert "Failed to fetch details for NFT 9" in caplog.text


class TestSingleFieldReads:
    async def test_get_owner(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_owner", [BOB.upper().replace("0X", "0x")])
        assert await reader.get_owner("1") == BOB

    async def test_get_owner_failure(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_owner", abort_error(7002))
        assert await reader.get_owner("1") == ""

    async def test_get_price(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_nft_price", ["150000000"])
        assert await reader.get_price("1") == 1.5
        assert router.calls == [("get_nft_price", [MARKET, "1"])]

    @pytest.mark.parametrize("raw", ["0x0", "", "0x" + "0" * 64])
    async def test_auction_without_winner(
        self, reader: MarketplaceRead, router: ViewRouter, raw: str
    ) -> None:
        router.set("get_auction_winner", [raw])
        assert await reader.get_auction_winner("1") == const.NO_BIDDER

    async def test_auction_winner(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_auction_winner", [ALICE])
        assert await reader.get_auction_winner("1") == ALICE

    async def test_sale_flags(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("is_nft_for_sale", [True])
        router.set("is_nft_for_auction", [False])
        assert await reader.is_for_sale("1") is True
        assert await reader.is_in_auction("1") is False

    async def test_empty_view_response(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_nft_price", [])
        assert await reader.get_price("1") == 0.0
        assert reader.last_error is not None
        assert reader.last_error.category is ErrorCategory.NOT_FOUND


# ================================================================
# Listings
# ================================================================


class TestListings:
    """Tests for paginated and filtered projections."""

    async def test_list_for_sale(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set(
            "get_all_nfts_for_sale",
            [[listing("1"), listing("2", price_octas=250_000_000, rarity=5)]],
        )
        result = await reader.list_for_sale(10, 20)
        assert result == [
            ListingSummary(id="1", price=1.0, rarity=Rarity.COMMON, listing_date=NOW),
            ListingSummary(id="2", price=2.5, rarity=Rarity.LEGENDARY, listing_date=NOW),
        ]
        assert router.calls == [("get_all_nfts_for_sale", [MARKET, "10", "20"])]

    async def test_list_in_auction(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_nfts_in_auction", [[listing("4")]])
        result = await reader.list_in_auction(5)
        assert [s.id for s in result] == ["4"]
        assert router.calls == [("get_nfts_in_auction", [MARKET, "5", "0"])]

    @pytest.mark.parametrize(("limit", "offset"), [(0, 0), (-1, 0), (10, -1)])
    async def test_invalid_page_never_queries(
        self, reader: MarketplaceRead, router: ViewRouter, limit: int, offset: int
    ) -> None:
        assert await reader.list_for_sale(limit, offset) == []
        assert router.calls == []
        assert reader.last_error is not None
        assert reader.last_error.category is ErrorCategory.VALIDATION

    async def test_list_by_owner(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_all_nfts_for_owner", [["1", "5"]])
        assert await reader.list_by_owner(ALICE.upper().replace("0X", "0x"), 10) == ["1", "5"]
        assert router.calls == [("get_all_nfts_for_owner", [MARKET, ALICE, "10", "0"])]

    async def test_list_by_rarity(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_nfts_by_rarity", [["3"]])
        assert await reader.list_by_rarity(Rarity.EPIC) == ["3"]
        assert router.calls == [("get_nfts_by_rarity", [MARKET, "4"])]

    async def test_list_by_invalid_rarity(
        self, reader: MarketplaceRead, router: ViewRouter
    ) -> None:
        assert await reader.list_by_rarity(7) == []
        assert router.calls == []
        assert reader.last_error is not None

    async def test_list_by_listing_date(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_nfts_by_listing_date", [["8", "9"]])
        assert await reader.list_by_listing_date(NOW) == ["8", "9"]
        assert router.calls == [("get_nfts_by_listing_date", [MARKET, str(NOW)])]

    async def test_list_by_price_converts_to_octas(
        self, reader: MarketplaceRead, router: ViewRouter
    ) -> None:
        router.set("get_nfts_by_price", [["2"]])
        assert await reader.list_by_price(1.5) == ["2"]
        assert router.calls == [("get_nfts_by_price", [MARKET, "150000000"])]

    async def test_failure_yields_empty(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_all_nfts_for_sale", ApiError("Service Unavailable", 503))
        assert await reader.list_for_sale(10) == []
        assert reader.last_error is not None
        assert reader.last_error.message == "Failed to get NFTs for sale"

    async def test_unexpected_shape_yields_empty(
        self, reader: MarketplaceRead, router: ViewRouter
    ) -> None:
        router.set("get_all_nfts_for_owner", [{"not": "a list"}])
        assert await reader.list_by_owner(ALICE, 10) == []
        assert reader.last_error is not None
        assert reader.last_error.category is ErrorCategory.NOT_FOUND


# ================================================================
# Fan-out
# ================================================================


def details_by_id(missing: set[str]) -> Any:
    def respond(arguments: list[Any]) -> list[Any]:
        nft_id = arguments[1]
        if nft_id in missing:
            raise abort_error(7002)
        return nft_details(nft_id=nft_id)

    return respond


class TestDetailFanOut:
    """Tests for best-effort concurrent detail reads."""

    async def test_partial_failure(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_nft_details", details_by_id({"2"}))
        result = await reader.get_assets(["1", "2", "3"])
        assert [a.id for a in result] == ["1", "3"]
        assert result.failures == 1
        assert not result.complete

    async def test_empty_input(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        result = await reader.get_assets([])
        assert result.total == 0
        assert router.calls == []

    async def test_assets_for_sale(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_all_nfts_for_sale", [[listing("1"), listing("2")]])
        router.set("get_nft_details", details_by_id(set()))
        result = await reader.get_assets_for_sale(2)
        assert [a.id for a in result] == ["1", "2"]
        assert result.complete

    async def test_assets_in_auction(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_nfts_in_auction", [[listing("5"), listing("6")]])
        router.set("get_nft_details", details_by_id({"6"}))
        result = await reader.get_assets_in_auction(2)
        assert [a.id for a in result] == ["5"]
        assert result.failures == 1

    async def test_assets_for_owner(self, reader: MarketplaceRead, router: ViewRouter) -> None:
        router.set("get_all_nfts_for_owner", [["3"]])
        router.set("get_nft_details", details_by_id(set()))
        result = await reader.get_assets_for_owner(ALICE, 10)
        assert [a.id for a in result] == ["3"]


# ================================================================
# Marketplace resource
# ================================================================


def resource_nft(nft_id: str, *, for_sale: bool, rarity: int) -> dict[str, Any]:
    values = nft_details(nft_id=nft_id, for_sale=for_sale, rarity=rarity)
    keys = (
        "id owner original_creator name description uri price for_sale rarity "
        "listing_date royalty_percentage is_auction auction_end highest_bid"
    ).split()
    entry = dict(zip(keys, values))
    entry["highest_bidder"] = {"vec": []}
    return entry


class TestFetchListedAssets:
    """Tests for reading the Marketplace resource directly."""

    @pytest.fixture
    def resource(self, client: Mock) -> Mock:
        client.account_resource.return_value = {
            "type": f"{MARKET}::NFTMarketplace_v1::Marketplace",
            "data": {
                "nfts": [
                    resource_nft("1", for_sale=True, rarity=1),
                    resource_nft("2", for_sale=False, rarity=1),
                    resource_nft("3", for_sale=True, rarity=5),
                    {"id": "4"},
                ]
            },
        }
        return client.account_resource

    async def test_keeps_listed_assets(self, reader: MarketplaceRead, resource: Mock) -> None:
        assets = await reader.fetch_listed_assets()
        assert [a.id for a in assets] == ["1", "3"]
        address, resource_type = resource.await_args.args
        assert address == AccountAddress.from_str_relaxed(MARKET)
        assert resource_type == f"{MARKET}::NFTMarketplace_v1::Marketplace"

    async def test_filters_by_rarity(self, reader: MarketplaceRead, resource: Mock) -> None:
        assets = await reader.fetch_listed_assets(Rarity.LEGENDARY)
        assert [a.id for a in assets] == ["3"]

    async def test_missing_resource(self, reader: MarketplaceRead, client: Mock) -> None:
        client.account_resource.side_effect = ApiError("Resource not found", 404)
        assert await reader.fetch_listed_assets() == []
        assert reader.last_error is not None
        assert reader.last_error.message == "Failed to fetch NFTs"

    async def test_unexpected_shape(self, reader: MarketplaceRead, client: Mock) -> None:
        client.account_resource.return_value = {"data": {"listings": []}}
        assert await reader.fetch_listed_assets() == []
        assert reader.last_error is not None
        assert reader.last_error.category is ErrorCategory.NOT_FOUND
