"""ArbitrationEngine — winner selection and the highest-bid snapshot.

Sole writer of ``listings.highest_bid``/``highest_bidder_id`` and of the
resolution fields. Every mutation runs under the listing's in-process lock and
inside a transaction holding the listing row ``FOR UPDATE``.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.domain.models import Bid
from src.bm_bidding.domain.repository import BidRepositoryProtocol
from src.bm_bidding.domain.state_machine import apply_transition
from src.bm_bidding.engine.locks import ListingLockRegistry, get_listing_locks
from src.bm_bidding.infrastructure.persistence import BidRepository
from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import REVIEWER_ROLES, BidStatus
from src.bm_common.errors import (
    AlreadyResolvedError,
    AuctionStillRunningError,
    BidNotFoundError,
    ListingNotFoundError,
)
from src.bm_gateway.auth.principal import Principal, require_roles
from src.bm_listing.domain.models import Listing
from src.bm_listing.domain.repository import ListingRepositoryProtocol
from src.bm_listing.infrastructure.persistence import ListingRepository

logger = logging.getLogger(__name__)


class ArbitrationEngine:
    def __init__(
        self,
        bid_repo: BidRepositoryProtocol | None = None,
        listing_repo: ListingRepositoryProtocol | None = None,
        locks: ListingLockRegistry | None = None,
    ) -> None:
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._listings: ListingRepositoryProtocol = listing_repo or ListingRepository()
        self._locks = locks or get_listing_locks()

    @property
    def locks(self) -> ListingLockRegistry:
        return self._locks

    # ------------------------------------------------------------------
    # Snapshot maintenance (caller holds the listing lock)
    # ------------------------------------------------------------------

    async def record_highest(self, db: AsyncSession, bid: Bid) -> None:
        """Point the snapshot at a bid that just passed the strict-increase check."""
        await self._listings.set_highest_bid(db, bid.listing_id, bid.amount, bid.bidder_id)

    async def refresh_snapshot(self, db: AsyncSession, listing_id: str) -> Bid | None:
        """Recompute the snapshot from the remaining open bids."""
        top = await self._bids.top_open_bid(db, listing_id)
        if top is None:
            await self._listings.set_highest_bid(db, listing_id, 0, None)
        else:
            await self._listings.set_highest_bid(db, listing_id, top.amount, top.bidder_id)
        return top

    async def _resolve(
        self, db: AsyncSession, listing: Listing, winner: Bid | None
    ) -> Bid | None:
        now = utc_now()
        if winner is not None:
            apply_transition(winner, BidStatus.WON, now)
            await self._bids.update_status(db, winner)

        lost = 0
        for other in await self._bids.list_open_for_listing(db, listing.id):
            if winner is not None and other.id == winner.id:
                continue
            apply_transition(other, BidStatus.LOST, now)
            await self._bids.update_status(db, other)
            lost += 1

        if winner is not None:
            await self._listings.set_highest_bid(db, listing.id, winner.amount, winner.bidder_id)
        await self._listings.mark_resolved(db, listing.id, winner.id if winner else None, now)
        logger.info(
            "Listing %s resolved: winner=%s lost=%d",
            listing.id,
            winner.id if winner else None,
            lost,
        )
        return winner

    async def _lock_listing(self, db: AsyncSession, listing_id: str) -> Listing:
        listing = await self._listings.get_for_update(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def accept_bid(self, db: AsyncSession, principal: Principal, bid_id: str) -> Bid:
        """Declare ``bid_id`` the winner and mark every other open bid lost.

        Repeating the call for the current winner returns it unchanged.
        """
        require_roles(principal, REVIEWER_ROLES)
        bid = await self._bids.get_by_id(db, bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)

        async with self._locks.hold(bid.listing_id):
            try:
                listing = await self._lock_listing(db, bid.listing_id)
                # Re-read under the row lock; status may have moved while waiting
                bid = await self._bids.get_by_id(db, bid_id)
                if bid is None:
                    raise BidNotFoundError(bid_id)
                if listing.is_resolved:
                    if listing.winning_bid_id == bid.id:
                        await db.rollback()
                        return bid
                    raise AlreadyResolvedError(listing.id)

                await self._resolve(db, listing, bid)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Bid %s accepted by %s", bid.id, principal.id)
        return bid

    async def reject_bid(self, db: AsyncSession, principal: Principal, bid_id: str) -> Bid:
        require_roles(principal, REVIEWER_ROLES)
        bid = await self._bids.get_by_id(db, bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)

        async with self._locks.hold(bid.listing_id):
            try:
                await self._lock_listing(db, bid.listing_id)
                bid = await self._bids.get_by_id(db, bid_id)
                if bid is None:
                    raise BidNotFoundError(bid_id)
                apply_transition(bid, BidStatus.REJECTED, utc_now())
                await self._bids.update_status(db, bid)
                await self.refresh_snapshot(db, bid.listing_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Bid %s rejected by %s", bid.id, principal.id)
        return bid

    async def close_auction(
        self, db: AsyncSession, listing_id: str, principal: Principal | None = None
    ) -> Bid | None:
        """Resolve an ended auction to its highest open bid (earliest on tie).

        ``principal`` is None when invoked by the sweeper. Returns the winning
        bid, or None when the auction closed without bids.
        """
        if principal is not None:
            require_roles(principal, REVIEWER_ROLES)

        async with self._locks.hold(listing_id):
            try:
                listing = await self._lock_listing(db, listing_id)
                if listing.is_resolved:
                    raise AlreadyResolvedError(listing_id)
                if not listing.auction_ended(utc_now()):
                    raise AuctionStillRunningError(listing_id)

                top = await self._bids.top_open_bid(db, listing_id)
                winner = await self._resolve(db, listing, top)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return winner
