"""Wishlist domain models — pure dataclasses."""
from dataclasses import dataclass
from datetime import datetime

from src.bm_common.enums import WishlistStatus


@dataclass
class WishlistEntry:
    id: str
    buyer_id: str
    listing_id: str
    seller_id: str  # listing owner at add-time
    notes: str = ""
    created_at: datetime | None = None


@dataclass
class WishlistItemView:
    """Read-time projection of one entry; nothing here is stored."""

    entry: WishlistEntry
    company_name: str
    current_highest_bid: int
    bids_count: int
    my_bid_amount: int
    time_left: str
    status: WishlistStatus
    auction_end_at: datetime | None = None
