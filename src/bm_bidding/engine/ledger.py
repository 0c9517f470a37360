"""BidLedger — submission, amendment and cancellation of individual bids.

Policy: strict-increase live auction. A bid is admitted only if it beats the
listing's highest-bid snapshot (and the starting bid); the snapshot moves in
the same transaction through the arbitration engine.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.domain.models import Bid
from src.bm_bidding.domain.repository import BidRepositoryProtocol
from src.bm_bidding.domain.rules import (
    check_amount_positive,
    check_exceeds_highest,
    check_listing_biddable,
)
from src.bm_bidding.engine.arbitration import ArbitrationEngine
from src.bm_bidding.infrastructure.persistence import BidRepository
from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import BidStatus, Role
from src.bm_common.errors import (
    BidNotFoundError,
    BidNotMutableError,
    ListingNotFoundError,
    NotBidOwnerError,
)
from src.bm_common.id_generator import generate_id
from src.bm_gateway.auth.principal import Principal, require_roles
from src.bm_listing.domain.repository import ListingRepositoryProtocol
from src.bm_listing.domain.visibility import can_view_listing
from src.bm_listing.infrastructure.persistence import ListingRepository

logger = logging.getLogger(__name__)


class BidLedger:
    def __init__(
        self,
        bid_repo: BidRepositoryProtocol | None = None,
        listing_repo: ListingRepositoryProtocol | None = None,
        arbitration: ArbitrationEngine | None = None,
    ) -> None:
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._listings: ListingRepositoryProtocol = listing_repo or ListingRepository()
        self._arbitration = arbitration or ArbitrationEngine(self._bids, self._listings)

    async def submit_bid(
        self, db: AsyncSession, principal: Principal, listing_id: str, amount: int
    ) -> Bid:
        require_roles(principal, {Role.BUYER})
        check_amount_positive(amount)

        async with self._arbitration.locks.hold(listing_id):
            try:
                listing = await self._listings.get_for_update(db, listing_id)
                if listing is None:
                    raise ListingNotFoundError(listing_id)
                check_listing_biddable(listing, utc_now())
                check_exceeds_highest(listing, amount)

                bid = Bid(
                    id=generate_id("BID"),
                    listing_id=listing_id,
                    bidder_id=principal.id,
                    amount=amount,
                    status=BidStatus.PENDING,
                )
                await self._bids.save(db, bid)
                await self._arbitration.record_highest(db, bid)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Bid %s on %s: %d by %s", bid.id, listing_id, amount, principal.id)
        return bid

    async def _owned_open_bid(self, db: AsyncSession, principal: Principal, bid_id: str) -> Bid:
        bid = await self._bids.get_by_id(db, bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)
        if bid.bidder_id != principal.id:
            raise NotBidOwnerError(bid_id)
        if not bid.is_open:
            raise BidNotMutableError(bid_id, bid.status.value)
        return bid

    async def amend_bid(
        self, db: AsyncSession, principal: Principal, bid_id: str, new_amount: int
    ) -> Bid:
        """Raise an open bid. The new amount must beat the current snapshot."""
        check_amount_positive(new_amount)
        bid = await self._owned_open_bid(db, principal, bid_id)

        async with self._arbitration.locks.hold(bid.listing_id):
            try:
                listing = await self._listings.get_for_update(db, bid.listing_id)
                if listing is None:
                    raise ListingNotFoundError(bid.listing_id)
                bid = await self._owned_open_bid(db, principal, bid_id)
                check_listing_biddable(listing, utc_now())
                check_exceeds_highest(listing, new_amount)

                bid.amount = new_amount
                await self._bids.update_amount(db, bid)
                await self._arbitration.record_highest(db, bid)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return bid

    async def cancel_bid(self, db: AsyncSession, principal: Principal, bid_id: str) -> None:
        """Delete an open bid and recompute the snapshot from what remains."""
        bid = await self._owned_open_bid(db, principal, bid_id)

        async with self._arbitration.locks.hold(bid.listing_id):
            try:
                await self._listings.get_for_update(db, bid.listing_id)
                bid = await self._owned_open_bid(db, principal, bid_id)
                await self._bids.delete(db, bid.id)
                await self._arbitration.refresh_snapshot(db, bid.listing_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Bid %s cancelled by %s", bid_id, principal.id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_bids_for(
        self, db: AsyncSession, principal: Principal, listing_id: str
    ) -> list[Bid]:
        listing = await self._listings.get_by_id(db, listing_id)
        if listing is None or not can_view_listing(principal, listing):
            raise ListingNotFoundError(listing_id)
        return await self._bids.list_by_listing(db, listing_id)

    async def list_bids_by_bidder(self, db: AsyncSession, principal: Principal) -> list[Bid]:
        return await self._bids.list_by_bidder(db, principal.id)

    async def list_won_bids(self, db: AsyncSession, principal: Principal) -> list[Bid]:
        return await self._bids.list_won_by_bidder(db, principal.id)
