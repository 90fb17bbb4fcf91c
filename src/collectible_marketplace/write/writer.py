from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from aptos_sdk.async_client import RestClient

from .. import constants as const
from ..codec import Amount, encode_text, normalize_address, to_octas
from ..config import MarketplaceConfig
from ..enums import ErrorCategory, ErrorKind, Rarity
from ..error_codes import KIND_MESSAGES, SemanticError, describe_error
from ..errors import TransportError, ValidationError
from ..models import MarketplacePayload
from ..signer import TransactionSigner

logger = logging.getLogger(__name__)


def _require_positive(amount: Amount, *, kind: ErrorKind) -> int:
    try:
        octas = to_octas(amount)
    except ValueError as e:
        raise ValidationError(f"Invalid amount: {amount!r}", kind) from e
    if octas <= 0:
        raise ValidationError(KIND_MESSAGES[kind], kind)
    return octas


def _require_nft_id(nft_id: str) -> str:
    value = str(nft_id).strip()
    if not value.isdigit():
        raise ValidationError(f"Invalid NFT id: {nft_id!r}")
    return value


@dataclass(slots=True)
class MarketplaceWrite:
    """
    Write API for the marketplace contract.

    Each operation validates its arguments, builds an entry function payload, hands it
    to the injected signer, and waits for the transaction to be finalized. Operations
    return `True` on success and `False` on any failure; the reason is available as
    `last_error` (and passed to `on_error`). Nothing is retried, and no local state is
    updated: re-query after a successful write.
    """

    client: RestClient
    signer: TransactionSigner
    config: MarketplaceConfig
    clock: Callable[[], float] = time.time
    on_error: Callable[[SemanticError], None] | None = None
    last_error: SemanticError | None = None
    last_transaction_hash: str | None = None

    def _payload(self, function_name: str, *arguments: object) -> MarketplacePayload:
        return MarketplacePayload(
            function=self.config.function_id(function_name),
            arguments=(self.config.marketplace_address, *arguments),
        )

    # ------------------------------------------------------------------
    # Payload builders
    # ------------------------------------------------------------------

    def build_mint_payload(
        self,
        *,
        name: str,
        description: str,
        uri: str,
        rarity: Rarity | int,
        royalty_percentage: int,
    ) -> MarketplacePayload:
        if not 0 <= royalty_percentage <= const.MAX_ROYALTY_PERCENTAGE:
            raise ValidationError(
                KIND_MESSAGES[ErrorKind.ROYALTY_TOO_HIGH], ErrorKind.ROYALTY_TOO_HIGH
            )
        try:
            tier = Rarity.parse(rarity)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return self._payload(
            "mint_nft",
            encode_text(name),
            encode_text(description),
            encode_text(uri),
            int(tier),
            int(royalty_percentage),
        )

    def build_list_for_sale_payload(
        self,
        *,
        nft_id: str,
        price: Amount,
        is_auction: bool = False,
        auction_end: int = 0,
    ) -> MarketplacePayload:
        """
        `auction_end` is a ledger timestamp in seconds and must be at least one hour
        away for auctions; it is ignored (sent as 0) for fixed-price listings.
        """
        octas = _require_positive(price, kind=ErrorKind.INVALID_PRICE)
        if is_auction:
            if int(auction_end) < self.clock() + const.MIN_AUCTION_DURATION_SECS:
                raise ValidationError(
                    KIND_MESSAGES[ErrorKind.AUCTION_WINDOW_TOO_SHORT],
                    ErrorKind.AUCTION_WINDOW_TOO_SHORT,
                )
        else:
            auction_end = 0
        return self._payload(
            "list_for_sale",
            _require_nft_id(nft_id),
            str(octas),
            bool(is_auction),
            str(int(auction_end)),
        )

    def build_set_price_payload(self, *, nft_id: str, price: Amount) -> MarketplacePayload:
        octas = _require_positive(price, kind=ErrorKind.INVALID_PRICE)
        return self._payload("set_price", _require_nft_id(nft_id), str(octas))

    def build_place_bid_payload(self, *, nft_id: str, amount: Amount) -> MarketplacePayload:
        octas = _require_positive(amount, kind=ErrorKind.BID_MUST_BE_POSITIVE)
        return self._payload("place_bid", _require_nft_id(nft_id), str(octas))

    def build_purchase_payload(self, *, nft_id: str, payment: Amount) -> MarketplacePayload:
        octas = _require_positive(payment, kind=ErrorKind.INSUFFICIENT_PAYMENT)
        return self._payload("purchase_nft", _require_nft_id(nft_id), str(octas))

    def build_transfer_payload(self, *, nft_id: str, new_owner: str) -> MarketplacePayload:
        recipient = normalize_address(new_owner)
        if not recipient.startswith("0x"):
            raise ValidationError(f"Invalid recipient address: {new_owner!r}")
        return self._payload("transfer_ownership", _require_nft_id(nft_id), recipient)

    def build_delete_payload(self, *, nft_id: str) -> MarketplacePayload:
        return self._payload("delete_nft", _require_nft_id(nft_id))

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def _send(self, payload: MarketplacePayload) -> str:
        """Sign, submit and wait for finality. Raises on any failure."""
        tx_hash = await self.signer.sign_and_submit(payload.to_dict())
        self.last_transaction_hash = tx_hash
        logger.info("submitted %s as %s", payload.function_name, tx_hash)
        try:
            await asyncio.wait_for(
                self.client.wait_for_transaction(tx_hash),
                timeout=self.config.transaction_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Transaction {tx_hash} not finalized within "
                f"{self.config.transaction_timeout}s"
            ) from e
        return tx_hash

    def _report(self, error: BaseException, default_message: str) -> SemanticError:
        semantic = describe_error(error, default_message)
        self.last_error = semantic
        if semantic.category is ErrorCategory.VALIDATION:
            logger.warning("%s: %s", default_message, semantic.message)
        else:
            logger.error(
                "%s (%s): %s", default_message, semantic.kind.value, error, exc_info=error
            )
        if self.on_error is not None:
            self.on_error(semantic)
        return semantic

    async def _execute(
        self, build: Callable[[], MarketplacePayload], default_message: str
    ) -> bool:
        try:
            payload = build()
            await self._send(payload)
        except Exception as e:
            self._report(e, default_message)
            return False
        logger.info("%s finalized", payload.function_name)
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def mint(
        self,
        *,
        name: str,
        description: str,
        uri: str,
        rarity: Rarity | int,
        royalty_percentage: int,
    ) -> bool:
        return await self._execute(
            lambda: self.build_mint_payload(
                name=name,
                description=description,
                uri=uri,
                rarity=rarity,
                royalty_percentage=royalty_percentage,
            ),
            "Failed to mint NFT",
        )

    async def list_for_sale(
        self,
        nft_id: str,
        price: Amount,
        *,
        is_auction: bool = False,
        auction_end: int = 0,
    ) -> bool:
        return await self._execute(
            lambda: self.build_list_for_sale_payload(
                nft_id=nft_id, price=price, is_auction=is_auction, auction_end=auction_end
            ),
            "Failed to list NFT for sale",
        )

    async def set_price(self, nft_id: str, price: Amount) -> bool:
        return await self._execute(
            lambda: self.build_set_price_payload(nft_id=nft_id, price=price),
            "Failed to update NFT price",
        )

    async def place_bid(self, nft_id: str, amount: Amount) -> bool:
        return await self._execute(
            lambda: self.build_place_bid_payload(nft_id=nft_id, amount=amount),
            "Failed to place bid",
        )

    async def purchase(self, nft_id: str, payment: Amount) -> bool:
        return await self._execute(
            lambda: self.build_purchase_payload(nft_id=nft_id, payment=payment),
            "Failed to purchase NFT",
        )

    async def transfer_ownership(self, nft_id: str, new_owner: str) -> bool:
        return await self._execute(
            lambda: self.build_transfer_payload(nft_id=nft_id, new_owner=new_owner),
            "Failed to transfer NFT ownership",
        )

    async def delete(self, nft_id: str) -> bool:
        return await self._execute(
            lambda: self.build_delete_payload(nft_id=nft_id),
            "Failed to delete NFT",
        )
