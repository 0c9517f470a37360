# src/bm_bidding/application/service.py
"""Application facade over the ledger and arbitration engine.

Both share one ArbitrationEngine so they serialize on the same listing locks.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.application.schemas import (
    AmendBidRequest,
    BidList,
    BidOut,
    CloseAuctionOut,
    SubmitBidRequest,
)
from src.bm_bidding.engine.arbitration import ArbitrationEngine
from src.bm_bidding.engine.ledger import BidLedger
from src.bm_gateway.auth.principal import Principal

_engine: ArbitrationEngine | None = None
_ledger: BidLedger | None = None


def get_arbitration_engine() -> ArbitrationEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = ArbitrationEngine()
    return _engine


def get_bid_ledger() -> BidLedger:
    global _ledger  # noqa: PLW0603
    if _ledger is None:
        _ledger = BidLedger(arbitration=get_arbitration_engine())
    return _ledger


async def submit_bid(db: AsyncSession, principal: Principal, req: SubmitBidRequest) -> BidOut:
    bid = await get_bid_ledger().submit_bid(db, principal, req.listing_id, req.amount)
    return BidOut.from_domain(bid)


async def amend_bid(
    db: AsyncSession, principal: Principal, bid_id: str, req: AmendBidRequest
) -> BidOut:
    bid = await get_bid_ledger().amend_bid(db, principal, bid_id, req.amount)
    return BidOut.from_domain(bid)


async def cancel_bid(db: AsyncSession, principal: Principal, bid_id: str) -> None:
    await get_bid_ledger().cancel_bid(db, principal, bid_id)


async def list_bids_for(db: AsyncSession, principal: Principal, listing_id: str) -> BidList:
    bids = await get_bid_ledger().list_bids_for(db, principal, listing_id)
    return BidList(items=[BidOut.from_domain(b) for b in bids])


async def list_my_bids(db: AsyncSession, principal: Principal) -> BidList:
    bids = await get_bid_ledger().list_bids_by_bidder(db, principal)
    return BidList(items=[BidOut.from_domain(b) for b in bids])


async def list_won_bids(db: AsyncSession, principal: Principal) -> BidList:
    bids = await get_bid_ledger().list_won_bids(db, principal)
    return BidList(items=[BidOut.from_domain(b) for b in bids])


async def accept_bid(db: AsyncSession, principal: Principal, bid_id: str) -> BidOut:
    bid = await get_arbitration_engine().accept_bid(db, principal, bid_id)
    return BidOut.from_domain(bid)


async def reject_bid(db: AsyncSession, principal: Principal, bid_id: str) -> BidOut:
    bid = await get_arbitration_engine().reject_bid(db, principal, bid_id)
    return BidOut.from_domain(bid)


async def close_auction(
    db: AsyncSession, principal: Principal, listing_id: str
) -> CloseAuctionOut:
    winner = await get_arbitration_engine().close_auction(db, listing_id, principal)
    return CloseAuctionOut(
        listing_id=listing_id,
        winning_bid=BidOut.from_domain(winner) if winner else None,
    )
