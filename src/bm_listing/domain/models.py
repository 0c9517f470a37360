"""Domain models for bm_listing — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.bm_common.datetime_utils import as_utc
from src.bm_common.enums import VerificationStatus


@dataclass
class AuctionWindow:
    start_at: datetime
    end_at: datetime
    starting_bid_amount: int = 0

    def has_started(self, now: datetime) -> bool:
        return as_utc(now) >= as_utc(self.start_at)

    def has_ended(self, now: datetime) -> bool:
        return as_utc(now) >= as_utc(self.end_at)


@dataclass
class ListingDocument:
    id: str
    listing_id: str
    doc_type: str
    name: str
    url: str
    uploaded_at: datetime | None = None


@dataclass
class Listing:
    id: str
    seller_id: str
    company_name: str
    cin: str
    registration_number: str
    description: str | None = None
    # Verification gate fields
    verified: bool = False
    verified_by: str | None = None
    verified_at: datetime | None = None
    # Highest-bid snapshot, written only by the bidding engine
    highest_bid: int = 0
    highest_bidder_id: str | None = None
    # Arbitration outcome
    winning_bid_id: str | None = None
    resolved_at: datetime | None = None
    auction: AuctionWindow | None = None
    documents: list[ListingDocument] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def verification_status(self) -> VerificationStatus:
        return VerificationStatus.VERIFIED if self.verified else VerificationStatus.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None

    def auction_ended(self, now: datetime) -> bool:
        return self.auction is not None and self.auction.has_ended(now)
