"""Pydantic schemas for bm_wishlist."""
from datetime import datetime

from pydantic import BaseModel, Field

from src.bm_common.response import CamelModel
from src.bm_wishlist.domain.models import WishlistEntry, WishlistItemView


class AddWishlistRequest(BaseModel):
    listing_id: str = Field(..., min_length=1)
    notes: str = Field("", max_length=2000)


class WishlistEntryOut(CamelModel):
    id: str
    listing_id: str
    seller_id: str
    notes: str
    created_at: datetime | None

    @classmethod
    def from_domain(cls, e: WishlistEntry) -> "WishlistEntryOut":
        return cls(
            id=e.id,
            listing_id=e.listing_id,
            seller_id=e.seller_id,
            notes=e.notes,
            created_at=e.created_at,
        )


class WishlistItemOut(CamelModel):
    id: str
    listing_id: str
    seller_id: str
    company_name: str
    notes: str
    current_highest_bid: int
    bids_count: int
    my_bid_amount: int
    time_left: str
    status: str
    auction_end_time: datetime | None
    added_at: datetime | None

    @classmethod
    def from_view(cls, v: WishlistItemView) -> "WishlistItemOut":
        return cls(
            id=v.entry.id,
            listing_id=v.entry.listing_id,
            seller_id=v.entry.seller_id,
            company_name=v.company_name,
            notes=v.entry.notes,
            current_highest_bid=v.current_highest_bid,
            bids_count=v.bids_count,
            my_bid_amount=v.my_bid_amount,
            time_left=v.time_left,
            status=v.status.value,
            auction_end_time=v.auction_end_at,
            added_at=v.entry.created_at,
        )


class WishlistOut(CamelModel):
    items: list[WishlistItemOut]
