"""
Auction lifecycle on top of the read and write APIs.

An `AuctionTracker` follows one listed auction through three states:

- OPEN: the deadline is in the future
- ENDED_UNRESOLVED: the deadline has passed, the winner has not been fetched yet
- ENDED_RESOLVED: the winner has been fetched and cached

The ledger remains the only authority on bid ordering and settlement; the tracker
only refuses what is certain to fail, before anything is submitted.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from types import TracebackType

from . import constants as const
from .codec import Amount, same_address, to_octas
from .enums import AuctionState, ErrorKind
from .error_codes import KIND_MESSAGES
from .errors import MissingSignerError, SettlementNotAllowedError, ValidationError
from .models import Asset
from .read.reader import MarketplaceRead
from .write.writer import MarketplaceWrite

logger = logging.getLogger(__name__)

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE
_MS_PER_DAY = 24 * _MS_PER_HOUR


def time_remaining_ms(deadline_secs: int, now_ms: int) -> int:
    """Milliseconds until `deadline_secs` (a ledger timestamp in seconds), never negative."""
    return max(0, int(deadline_secs) * _MS_PER_SECOND - int(now_ms))


def format_time_remaining(ms: int) -> str:
    if ms <= 0:
        return const.AUCTION_ENDED_TEXT
    days, rest = divmod(int(ms), _MS_PER_DAY)
    hours, rest = divmod(rest, _MS_PER_HOUR)
    minutes, rest = divmod(rest, _MS_PER_MINUTE)
    seconds = rest // _MS_PER_SECOND
    return f"{days}d {hours}h {minutes}m {seconds}s"


class AuctionTracker:
    """
    Tracks one auctioned asset: remaining time, winner resolution and the local
    bid/settlement gates.

    Use `start()`/`stop()` (or `async with tracker:`) to run a countdown that calls
    `tick()` every `poll_interval` seconds until the winner is resolved.
    """

    def __init__(
        self,
        asset: Asset,
        *,
        read: MarketplaceRead,
        write: MarketplaceWrite | None = None,
        clock: Callable[[], float] = time.time,
        poll_interval: float = const.DEFAULT_POLL_INTERVAL_SECS,
    ) -> None:
        if not asset.is_auction or asset.auction_end is None:
            raise ValidationError(
                f"NFT {asset.id} is not an auction", ErrorKind.NOT_AN_AUCTION
            )
        self._asset = asset
        self._read = read
        self._write = write
        self._clock = clock
        self.poll_interval = poll_interval

        self._winner: str = const.NO_BIDDER
        self._time_left = self._remaining()
        self._state = (
            AuctionState.OPEN if self._time_left > 0 else AuctionState.ENDED_UNRESOLVED
        )
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    @property
    def asset(self) -> Asset:
        return self._asset

    @property
    def nft_id(self) -> str:
        return self._asset.id

    @property
    def state(self) -> AuctionState:
        return self._state

    @property
    def winner(self) -> str:
        """Resolved winner, or `NO_BIDDER` while open or when nobody bid."""
        return self._winner

    @property
    def time_left(self) -> int:
        """Milliseconds remaining as of the last `tick()`."""
        return self._time_left

    @property
    def time_left_text(self) -> str:
        return format_time_remaining(self._time_left)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _remaining(self) -> int:
        if self._asset.auction_end is None:
            return 0
        return time_remaining_ms(self._asset.auction_end, int(self._clock() * 1000))

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def tick(self) -> AuctionState:
        """Recompute remaining time; on expiry, resolve the winner straight away."""
        self._time_left = self._remaining()
        if self._state is AuctionState.OPEN and self._time_left == 0:
            logger.info("auction for NFT %s ended", self.nft_id)
            self._state = AuctionState.ENDED_UNRESOLVED
        if self._state is AuctionState.ENDED_UNRESOLVED:
            await self._resolve()
        return self._state

    async def _resolve(self, *, reload: bool = True) -> None:
        # A failed winner query yields NO_BIDDER, so nobody can settle until refresh().
        self._winner = await self._read.get_auction_winner(self.nft_id)
        if reload:
            # Settlement pays the final highest bid, not the one seen at construction.
            fresh = await self._read.get_asset(self.nft_id)
            if fresh is not None:
                self._observe(fresh)
                self._asset = fresh
        self._state = AuctionState.ENDED_RESOLVED
        logger.info(
            "auction for NFT %s resolved, winner: %s", self.nft_id, self._winner or "none"
        )

    async def refresh(self) -> Asset:
        """
        Re-query the asset and re-derive the state from its fresh deadline.

        Keeps the previous snapshot if the asset cannot be fetched.
        """
        fresh = await self._read.get_asset(self.nft_id)
        if fresh is None:
            return self._asset
        self._observe(fresh)
        if fresh.is_auction and fresh.auction_end is not None:
            self._asset = fresh
            self._time_left = self._remaining()
            if self._time_left > 0:
                self._state = AuctionState.OPEN
                self._winner = const.NO_BIDDER
            else:
                self._state = AuctionState.ENDED_UNRESOLVED
                await self._resolve(reload=False)
        else:
            # Settled or delisted: nothing left to act on.
            self._asset = fresh
            self._time_left = 0
            self._state = AuctionState.ENDED_RESOLVED
        return self._asset

    def _observe(self, fresh: Asset) -> None:
        previous = self._asset.highest_bid
        current = fresh.highest_bid
        if (
            fresh.is_auction
            and previous is not None
            and current is not None
            and current < previous
        ):
            logger.warning(
                "highest bid on NFT %s decreased from %s to %s",
                self.nft_id,
                previous,
                current,
            )

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def can_bid(self, account: str) -> bool:
        return (
            self._state is AuctionState.OPEN
            and self._asset.for_sale
            and not same_address(account, self._asset.highest_bidder)
        )

    def can_settle(self, account: str) -> bool:
        return (
            self._state is AuctionState.ENDED_RESOLVED
            and self._winner != const.NO_BIDDER
            and self._asset.is_auction
            and self._asset.highest_bid is not None
            and same_address(account, self._winner)
        )

    def _writer(self) -> MarketplaceWrite:
        if self._write is None:
            raise MissingSignerError("Auction actions require a transaction signer")
        return self._write

    async def place_bid(self, account: str, amount: Amount) -> bool:
        """
        Bid `amount` (APT) on behalf of `account`.

        Raises:
            ValidationError: if the auction has ended or been delisted, `account`
                already holds the highest bid, or `amount` is not positive. Nothing is
                submitted.
        """
        writer = self._writer()
        self._time_left = self._remaining()
        if self._state.is_ended or self._time_left == 0:
            raise ValidationError(
                KIND_MESSAGES[ErrorKind.AUCTION_ALREADY_ENDED],
                ErrorKind.AUCTION_ALREADY_ENDED,
            )
        if not self._asset.for_sale:
            raise ValidationError(KIND_MESSAGES[ErrorKind.NOT_LISTED], ErrorKind.NOT_LISTED)
        if same_address(account, self._asset.highest_bidder):
            raise ValidationError(
                KIND_MESSAGES[ErrorKind.ALREADY_HIGHEST_BIDDER],
                ErrorKind.ALREADY_HIGHEST_BIDDER,
            )
        try:
            positive = to_octas(amount) > 0
        except ValueError:
            positive = False
        if not positive:
            raise ValidationError(
                KIND_MESSAGES[ErrorKind.BID_MUST_BE_POSITIVE],
                ErrorKind.BID_MUST_BE_POSITIVE,
            )

        ok = await writer.place_bid(self.nft_id, amount)
        if ok:
            await self.refresh()
        return ok

    async def settle(self, account: str) -> bool:
        """
        Purchase the asset for the highest bid on behalf of the resolved winner.

        Raises:
            SettlementNotAllowedError: unless the auction is resolved and `account` is
                the winner. Nothing is submitted in that case.
        """
        writer = self._writer()
        if not self.can_settle(account):
            if self._state is not AuctionState.ENDED_RESOLVED:
                kind = ErrorKind.AUCTION_NOT_YET_ENDED
            else:
                kind = ErrorKind.NOT_HIGHEST_BIDDER
            logger.warning(
                "settlement of NFT %s refused for %s (%s)", self.nft_id, account, kind.value
            )
            raise SettlementNotAllowedError(KIND_MESSAGES[kind], kind)

        assert self._asset.highest_bid is not None
        ok = await writer.purchase(self.nft_id, self._asset.highest_bid)
        if ok:
            await self.refresh()
        return ok

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"auction-countdown-{self.nft_id}"
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while await self.tick() is not AuctionState.ENDED_RESOLVED:
            await asyncio.sleep(self.poll_interval)
        logger.debug("countdown for NFT %s stopped", self.nft_id)

    async def __aenter__(self) -> AuctionTracker:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()


class AuctionCoordinator:
    """Builds `AuctionTracker`s from fresh reads."""

    def __init__(
        self,
        *,
        read: MarketplaceRead,
        write: MarketplaceWrite | None = None,
        clock: Callable[[], float] = time.time,
        poll_interval: float = const.DEFAULT_POLL_INTERVAL_SECS,
    ) -> None:
        self.read = read
        self.write = write
        self.clock = clock
        self.poll_interval = poll_interval

    def track_asset(self, asset: Asset) -> AuctionTracker:
        return AuctionTracker(
            asset,
            read=self.read,
            write=self.write,
            clock=self.clock,
            poll_interval=self.poll_interval,
        )

    async def track(self, nft_id: str) -> AuctionTracker | None:
        """Tracker for `nft_id`, or None if it cannot be fetched or is not an auction."""
        asset = await self.read.get_asset(nft_id)
        if asset is None or not asset.is_auction:
            return None
        tracker = self.track_asset(asset)
        await tracker.tick()
        return tracker

    async def open_auctions(self, limit: int, offset: int = 0) -> list[AuctionTracker]:
        """Trackers for the auctions on one page that have not reached their deadline."""
        result = await self.read.get_assets_in_auction(limit, offset)
        trackers = [self.track_asset(a) for a in result if a.is_auction]
        return [t for t in trackers if t.state is AuctionState.OPEN]
