"""Unit tests for BidLedger (mocked repositories)."""

import asyncio
import dataclasses
from unittest.mock import AsyncMock

import pytest

from src.bm_bidding.engine.arbitration import ArbitrationEngine
from src.bm_bidding.engine.ledger import BidLedger
from src.bm_bidding.engine.locks import ListingLockRegistry
from src.bm_common.enums import BidStatus
from src.bm_common.errors import (
    AuctionEndedError,
    BidNotFoundError,
    BidNotMutableError,
    BidTooLowError,
    InvalidBidAmountError,
    ListingNotFoundError,
    ListingNotVerifiedError,
    NotBidOwnerError,
    RoleNotAllowedError,
)
from tests.unit.factories import (
    ADMIN,
    BUYER,
    BUYER_2,
    SELLER,
    ended_window,
    make_bid,
    make_db,
    make_listing,
    open_window,
)


@pytest.fixture
def bid_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def listing_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def locks() -> ListingLockRegistry:
    return ListingLockRegistry()


@pytest.fixture
def ledger(
    bid_repo: AsyncMock, listing_repo: AsyncMock, locks: ListingLockRegistry
) -> BidLedger:
    engine = ArbitrationEngine(bid_repo, listing_repo, locks)
    return BidLedger(bid_repo, listing_repo, engine)


class TestSubmitBid:
    async def test_first_bid_moves_snapshot(self, ledger, bid_repo, listing_repo) -> None:
        listing = make_listing(auction=open_window())
        listing_repo.get_for_update.return_value = listing
        db = make_db()

        bid = await ledger.submit_bid(db, BUYER, listing.id, 1500)

        assert bid.id.startswith("BID-")
        assert bid.status == BidStatus.PENDING
        assert bid.bidder_id == BUYER.id
        bid_repo.save.assert_awaited_once_with(db, bid)
        listing_repo.set_highest_bid.assert_awaited_once_with(db, listing.id, 1500, BUYER.id)
        db.commit.assert_awaited_once()

    async def test_equal_to_highest_is_rejected(self, ledger, bid_repo, listing_repo) -> None:
        listing_repo.get_for_update.return_value = make_listing(highest_bid=1500)
        db = make_db()

        with pytest.raises(BidTooLowError):
            await ledger.submit_bid(db, BUYER_2, "LST-0000000000000000001", 1500)

        bid_repo.save.assert_not_awaited()
        listing_repo.set_highest_bid.assert_not_awaited()
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_below_starting_bid(self, ledger, listing_repo) -> None:
        listing_repo.get_for_update.return_value = make_listing(
            auction=open_window(starting_bid=10_000)
        )
        with pytest.raises(BidTooLowError):
            await ledger.submit_bid(make_db(), BUYER, "LST-0000000000000000001", 9_999)

    async def test_zero_amount_checked_before_any_io(self, ledger, listing_repo) -> None:
        with pytest.raises(InvalidBidAmountError):
            await ledger.submit_bid(make_db(), BUYER, "LST-0000000000000000001", 0)
        listing_repo.get_for_update.assert_not_awaited()

    @pytest.mark.parametrize("principal", [SELLER, ADMIN])
    async def test_only_buyers_bid(self, ledger, principal) -> None:
        with pytest.raises(RoleNotAllowedError):
            await ledger.submit_bid(make_db(), principal, "LST-0000000000000000001", 100)

    async def test_unverified_listing(self, ledger, listing_repo) -> None:
        listing_repo.get_for_update.return_value = make_listing(verified=False)
        with pytest.raises(ListingNotVerifiedError):
            await ledger.submit_bid(make_db(), BUYER, "LST-0000000000000000001", 100)

    async def test_auction_ended(self, ledger, listing_repo) -> None:
        listing_repo.get_for_update.return_value = make_listing(auction=ended_window())
        with pytest.raises(AuctionEndedError):
            await ledger.submit_bid(make_db(), BUYER, "LST-0000000000000000001", 100)

    async def test_missing_listing(self, ledger, listing_repo) -> None:
        listing_repo.get_for_update.return_value = None
        with pytest.raises(ListingNotFoundError):
            await ledger.submit_bid(make_db(), BUYER, "LST-missing", 100)

    async def test_unknown_listings_leave_no_locks(self, ledger, listing_repo, locks) -> None:
        listing_repo.get_for_update.return_value = None
        for n in range(200):
            with pytest.raises(ListingNotFoundError):
                await ledger.submit_bid(make_db(), BUYER, f"LST-made-up-{n}", 100)
        assert len(locks) == 0

    async def test_lock_released_after_bid(self, ledger, listing_repo, locks) -> None:
        listing_repo.get_for_update.return_value = make_listing(auction=open_window())
        await ledger.submit_bid(make_db(), BUYER, "LST-0000000000000000001", 1500)
        assert len(locks) == 0

    async def test_concurrent_equal_bids_admit_exactly_one(
        self, ledger, bid_repo, listing_repo
    ) -> None:
        state = make_listing(auction=open_window(), highest_bid=1000)

        async def get_for_update(db, listing_id):
            await asyncio.sleep(0)
            return dataclasses.replace(state)

        async def set_highest_bid(db, listing_id, amount, bidder_id):
            await asyncio.sleep(0)
            state.highest_bid = amount
            state.highest_bidder_id = bidder_id

        listing_repo.get_for_update.side_effect = get_for_update
        listing_repo.set_highest_bid.side_effect = set_highest_bid

        results = await asyncio.gather(
            ledger.submit_bid(make_db(), BUYER, state.id, 1500),
            ledger.submit_bid(make_db(), BUYER_2, state.id, 1500),
            return_exceptions=True,
        )

        admitted = [r for r in results if not isinstance(r, Exception)]
        refused = [r for r in results if isinstance(r, BidTooLowError)]
        assert len(admitted) == 1
        assert len(refused) == 1
        assert state.highest_bid == 1500
        assert state.highest_bidder_id == admitted[0].bidder_id
        bid_repo.save.assert_awaited_once()


class TestAmendBid:
    async def test_raises_open_bid(self, ledger, bid_repo, listing_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(amount=1000)
        listing_repo.get_for_update.return_value = make_listing(highest_bid=1000)
        db = make_db()

        bid = await ledger.amend_bid(db, BUYER, "BID-0000000000000000001", 2000)

        assert bid.amount == 2000
        bid_repo.update_amount.assert_awaited_once_with(db, bid)
        listing_repo.set_highest_bid.assert_awaited_once_with(db, bid.listing_id, 2000, BUYER.id)
        db.commit.assert_awaited_once()

    async def test_other_bidders_bid(self, ledger, bid_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(bidder_id=BUYER_2.id)
        with pytest.raises(NotBidOwnerError):
            await ledger.amend_bid(make_db(), BUYER, "BID-0000000000000000001", 2000)

    async def test_closed_bid_is_not_mutable(self, ledger, bid_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(status=BidStatus.LOST)
        with pytest.raises(BidNotMutableError):
            await ledger.amend_bid(make_db(), BUYER, "BID-0000000000000000001", 2000)

    async def test_missing_bid(self, ledger, bid_repo) -> None:
        bid_repo.get_by_id.return_value = None
        with pytest.raises(BidNotFoundError):
            await ledger.amend_bid(make_db(), BUYER, "BID-missing", 2000)

    async def test_must_beat_snapshot(self, ledger, bid_repo, listing_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(amount=1000)
        listing_repo.get_for_update.return_value = make_listing(highest_bid=3000)
        db = make_db()

        with pytest.raises(BidTooLowError):
            await ledger.amend_bid(db, BUYER, "BID-0000000000000000001", 2500)
        bid_repo.update_amount.assert_not_awaited()
        db.rollback.assert_awaited_once()


class TestCancelBid:
    async def test_deletes_and_recomputes_snapshot(self, ledger, bid_repo, listing_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(amount=5000)
        bid_repo.top_open_bid.return_value = make_bid(
            id="BID-0000000000000000002", bidder_id=BUYER_2.id, amount=3000
        )
        db = make_db()

        await ledger.cancel_bid(db, BUYER, "BID-0000000000000000001")

        bid_repo.delete.assert_awaited_once_with(db, "BID-0000000000000000001")
        listing_repo.set_highest_bid.assert_awaited_once_with(
            db, "LST-0000000000000000001", 3000, BUYER_2.id
        )
        db.commit.assert_awaited_once()

    async def test_last_bid_resets_snapshot(self, ledger, bid_repo, listing_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid()
        bid_repo.top_open_bid.return_value = None
        db = make_db()

        await ledger.cancel_bid(db, BUYER, "BID-0000000000000000001")

        listing_repo.set_highest_bid.assert_awaited_once_with(
            db, "LST-0000000000000000001", 0, None
        )

    async def test_won_bid_cannot_be_cancelled(self, ledger, bid_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(status=BidStatus.WON)
        with pytest.raises(BidNotMutableError):
            await ledger.cancel_bid(make_db(), BUYER, "BID-0000000000000000001")
        bid_repo.delete.assert_not_awaited()


class TestReads:
    async def test_bids_on_hidden_listing_look_missing(self, ledger, listing_repo) -> None:
        listing_repo.get_by_id.return_value = make_listing(verified=False)
        with pytest.raises(ListingNotFoundError):
            await ledger.list_bids_for(make_db(), BUYER, "LST-0000000000000000001")

    async def test_owner_sees_bids_on_unverified_listing(
        self, ledger, bid_repo, listing_repo
    ) -> None:
        listing_repo.get_by_id.return_value = make_listing(verified=False)
        bid_repo.list_by_listing.return_value = [make_bid()]
        bids = await ledger.list_bids_for(make_db(), SELLER, "LST-0000000000000000001")
        assert len(bids) == 1

    async def test_won_bids_are_scoped_to_caller(self, ledger, bid_repo) -> None:
        db = make_db()
        bid_repo.list_won_by_bidder.return_value = []
        await ledger.list_won_bids(db, BUYER)
        bid_repo.list_won_by_bidder.assert_awaited_once_with(db, BUYER.id)
