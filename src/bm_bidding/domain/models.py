"""Bid domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime

from src.bm_common.enums import BidStatus

OPEN_STATUSES = frozenset({BidStatus.PENDING, BidStatus.ACTIVE})


@dataclass
class Bid:
    id: str
    listing_id: str
    bidder_id: str
    amount: int  # whole rupees, > 0
    status: BidStatus = BidStatus.PENDING
    # Derived from status by derive_won_fields; never set directly
    is_won: bool = False
    won_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES
