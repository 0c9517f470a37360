"""Pydantic schemas for bm_bidding.

Amounts are validated by the ledger (InvalidBidAmount), not here, so a zero or
negative amount reports the domain error code.
"""
from datetime import datetime

from pydantic import BaseModel, Field

from src.bm_bidding.domain.models import Bid
from src.bm_common.response import CamelModel


class SubmitBidRequest(BaseModel):
    listing_id: str = Field(..., min_length=1)
    amount: int


class AmendBidRequest(BaseModel):
    amount: int


class BidOut(CamelModel):
    id: str
    listing_id: str
    bidder_id: str
    amount: int
    status: str
    is_won: bool
    won_at: datetime | None
    created_at: datetime | None

    @classmethod
    def from_domain(cls, b: Bid) -> "BidOut":
        return cls(
            id=b.id,
            listing_id=b.listing_id,
            bidder_id=b.bidder_id,
            amount=b.amount,
            status=b.status.value,
            is_won=b.is_won,
            won_at=b.won_at,
            created_at=b.created_at,
        )


class BidList(CamelModel):
    items: list[BidOut]


class CloseAuctionOut(CamelModel):
    listing_id: str
    winning_bid: BidOut | None
