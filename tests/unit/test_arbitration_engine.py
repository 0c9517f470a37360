"""Unit tests for ArbitrationEngine (mocked repositories)."""

import asyncio
import dataclasses
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from src.bm_bidding.engine.arbitration import ArbitrationEngine
from src.bm_bidding.engine.locks import ListingLockRegistry
from src.bm_common.enums import BidStatus
from src.bm_common.errors import (
    AlreadyResolvedError,
    AuctionStillRunningError,
    BidNotFoundError,
    InvalidBidTransitionError,
    RoleNotAllowedError,
)
from tests.unit.factories import (
    ADMIN,
    BUYER,
    BUYER_2,
    CA,
    SELLER,
    ended_window,
    make_bid,
    make_db,
    make_listing,
    open_window,
)

LISTING_ID = "LST-0000000000000000001"


@pytest.fixture
def bid_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def listing_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def engine(bid_repo: AsyncMock, listing_repo: AsyncMock) -> ArbitrationEngine:
    return ArbitrationEngine(bid_repo, listing_repo, ListingLockRegistry())


class TestAcceptBid:
    async def test_winner_won_others_lost(self, engine, bid_repo, listing_repo) -> None:
        winner = make_bid(amount=2000)
        loser = make_bid(id="BID-0000000000000000002", bidder_id=BUYER_2.id, amount=3000)
        bid_repo.get_by_id.return_value = winner
        bid_repo.list_open_for_listing.return_value = [winner, loser]
        listing_repo.get_for_update.return_value = make_listing()
        db = make_db()

        result = await engine.accept_bid(db, ADMIN, winner.id)

        assert result.status == BidStatus.WON
        assert result.is_won is True
        assert result.won_at is not None
        assert loser.status == BidStatus.LOST
        assert bid_repo.update_status.await_count == 2
        listing_repo.set_highest_bid.assert_awaited_once_with(db, LISTING_ID, 2000, BUYER.id)
        listing_repo.mark_resolved.assert_awaited_once()
        assert listing_repo.mark_resolved.await_args.args[2] == winner.id
        db.commit.assert_awaited_once()

    async def test_ca_may_accept(self, engine, bid_repo, listing_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid()
        bid_repo.list_open_for_listing.return_value = []
        listing_repo.get_for_update.return_value = make_listing()
        result = await engine.accept_bid(make_db(), CA, "BID-0000000000000000001")
        assert result.status == BidStatus.WON

    @pytest.mark.parametrize("principal", [BUYER, SELLER])
    async def test_non_reviewers_refused(self, engine, bid_repo, principal) -> None:
        with pytest.raises(RoleNotAllowedError):
            await engine.accept_bid(make_db(), principal, "BID-0000000000000000001")
        bid_repo.get_by_id.assert_not_awaited()

    async def test_repeat_accept_is_idempotent(self, engine, bid_repo, listing_repo) -> None:
        won = make_bid(status=BidStatus.WON, is_won=True, won_at=datetime.now(UTC))
        bid_repo.get_by_id.return_value = won
        listing_repo.get_for_update.return_value = make_listing(
            winning_bid_id=won.id, resolved_at=datetime.now(UTC)
        )
        db = make_db()

        result = await engine.accept_bid(db, ADMIN, won.id)

        assert result is won
        bid_repo.update_status.assert_not_awaited()
        listing_repo.mark_resolved.assert_not_awaited()
        db.commit.assert_not_awaited()

    async def test_second_winner_refused(self, engine, bid_repo, listing_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(id="BID-0000000000000000002")
        listing_repo.get_for_update.return_value = make_listing(
            winning_bid_id="BID-0000000000000000001", resolved_at=datetime.now(UTC)
        )
        db = make_db()

        with pytest.raises(AlreadyResolvedError):
            await engine.accept_bid(db, ADMIN, "BID-0000000000000000002")
        bid_repo.update_status.assert_not_awaited()
        db.rollback.assert_awaited()

    async def test_rejected_bid_cannot_win(self, engine, bid_repo, listing_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(status=BidStatus.REJECTED)
        listing_repo.get_for_update.return_value = make_listing()
        db = make_db()

        with pytest.raises(InvalidBidTransitionError):
            await engine.accept_bid(db, ADMIN, "BID-0000000000000000001")
        listing_repo.mark_resolved.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_missing_bid(self, engine, bid_repo) -> None:
        bid_repo.get_by_id.return_value = None
        with pytest.raises(BidNotFoundError):
            await engine.accept_bid(make_db(), ADMIN, "BID-missing")

    async def test_concurrent_accepts_pick_exactly_one_winner(
        self, engine, bid_repo, listing_repo
    ) -> None:
        listing = make_listing()
        bids = {
            "BID-0000000000000000001": make_bid(amount=2000),
            "BID-0000000000000000002": make_bid(
                id="BID-0000000000000000002", bidder_id=BUYER_2.id, amount=3000
            ),
        }

        async def get_by_id(db, bid_id):
            await asyncio.sleep(0)
            return dataclasses.replace(bids[bid_id])

        async def get_for_update(db, listing_id):
            await asyncio.sleep(0)
            return dataclasses.replace(listing)

        async def list_open_for_listing(db, listing_id):
            return [dataclasses.replace(b) for b in bids.values() if b.is_open]

        async def update_status(db, bid):
            await asyncio.sleep(0)
            bids[bid.id] = dataclasses.replace(bid)

        async def mark_resolved(db, listing_id, winning_bid_id, at):
            await asyncio.sleep(0)
            listing.winning_bid_id = winning_bid_id
            listing.resolved_at = at

        bid_repo.get_by_id.side_effect = get_by_id
        bid_repo.list_open_for_listing.side_effect = list_open_for_listing
        bid_repo.update_status.side_effect = update_status
        listing_repo.get_for_update.side_effect = get_for_update
        listing_repo.mark_resolved.side_effect = mark_resolved

        results = await asyncio.gather(
            engine.accept_bid(make_db(), ADMIN, "BID-0000000000000000001"),
            engine.accept_bid(make_db(), CA, "BID-0000000000000000002"),
            return_exceptions=True,
        )

        accepted = [r for r in results if not isinstance(r, Exception)]
        refused = [r for r in results if isinstance(r, AlreadyResolvedError)]
        assert len(accepted) == 1
        assert len(refused) == 1
        winner_id = accepted[0].id
        loser_id = next(i for i in bids if i != winner_id)
        assert listing.winning_bid_id == winner_id
        assert bids[winner_id].status == BidStatus.WON
        assert bids[loser_id].status == BidStatus.LOST
        assert [b.is_won for b in bids.values()].count(True) == 1
        listing_repo.mark_resolved.assert_awaited_once()


class TestRejectBid:
    async def test_rejects_and_refreshes_snapshot(self, engine, bid_repo, listing_repo) -> None:
        top = make_bid(amount=5000)
        runner_up = make_bid(id="BID-0000000000000000002", bidder_id=BUYER_2.id, amount=4000)
        bid_repo.get_by_id.return_value = top
        bid_repo.top_open_bid.return_value = runner_up
        listing_repo.get_for_update.return_value = make_listing(highest_bid=5000)
        db = make_db()

        result = await engine.reject_bid(db, ADMIN, top.id)

        assert result.status == BidStatus.REJECTED
        assert result.is_won is False
        bid_repo.update_status.assert_awaited_once_with(db, top)
        listing_repo.set_highest_bid.assert_awaited_once_with(db, LISTING_ID, 4000, BUYER_2.id)
        db.commit.assert_awaited_once()

    async def test_paid_bid_cannot_be_rejected(self, engine, bid_repo, listing_repo) -> None:
        bid_repo.get_by_id.return_value = make_bid(status=BidStatus.PAID)
        listing_repo.get_for_update.return_value = make_listing()
        with pytest.raises(InvalidBidTransitionError):
            await engine.reject_bid(make_db(), ADMIN, "BID-0000000000000000001")

    async def test_buyer_refused(self, engine) -> None:
        with pytest.raises(RoleNotAllowedError):
            await engine.reject_bid(make_db(), BUYER, "BID-0000000000000000001")


class TestCloseAuction:
    async def test_top_open_bid_wins(self, engine, bid_repo, listing_repo) -> None:
        top = make_bid(amount=9000)
        bid_repo.top_open_bid.return_value = top
        bid_repo.list_open_for_listing.return_value = [top]
        listing_repo.get_for_update.return_value = make_listing(auction=ended_window())
        db = make_db()

        winner = await engine.close_auction(db, LISTING_ID)

        assert winner is top
        assert top.status == BidStatus.WON
        listing_repo.mark_resolved.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_no_bids_resolves_without_winner(self, engine, bid_repo, listing_repo) -> None:
        bid_repo.top_open_bid.return_value = None
        bid_repo.list_open_for_listing.return_value = []
        listing_repo.get_for_update.return_value = make_listing(auction=ended_window())
        db = make_db()

        assert await engine.close_auction(db, LISTING_ID) is None
        assert listing_repo.mark_resolved.await_args.args[2] is None
        listing_repo.set_highest_bid.assert_not_awaited()

    async def test_running_auction_refused(self, engine, listing_repo) -> None:
        listing_repo.get_for_update.return_value = make_listing(auction=open_window())
        with pytest.raises(AuctionStillRunningError):
            await engine.close_auction(make_db(), LISTING_ID, ADMIN)

    async def test_listing_without_window_is_still_running(self, engine, listing_repo) -> None:
        listing_repo.get_for_update.return_value = make_listing(auction=None)
        with pytest.raises(AuctionStillRunningError):
            await engine.close_auction(make_db(), LISTING_ID, ADMIN)

    async def test_already_resolved(self, engine, listing_repo) -> None:
        listing_repo.get_for_update.return_value = make_listing(
            auction=ended_window(), resolved_at=datetime.now(UTC)
        )
        with pytest.raises(AlreadyResolvedError):
            await engine.close_auction(make_db(), LISTING_ID, ADMIN)

    async def test_buyer_refused(self, engine) -> None:
        with pytest.raises(RoleNotAllowedError):
            await engine.close_auction(make_db(), LISTING_ID, BUYER)
