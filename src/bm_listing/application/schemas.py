"""Pydantic schemas for bm_listing requests and responses.

Responses serialize camelCase (``highestBid``, ``highestBidder``, ``verified``).
Cursor format: Base64 of the last listing id in the page.
"""

import base64
from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl, model_validator

from src.bm_common.enums import DocumentType
from src.bm_common.response import CamelModel
from src.bm_listing.domain.models import Listing, ListingDocument

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(listing_id: str) -> str:
    return base64.urlsafe_b64encode(listing_id.encode()).decode()


def cursor_decode(cursor: str | None) -> str | None:
    """Decode cursor → listing id, or None on absent/garbled cursor."""
    if cursor is None:
        return None
    try:
        return base64.urlsafe_b64decode(cursor.encode()).decode()
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateListingRequest(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    cin: str = Field(..., min_length=1, max_length=32)
    registration_number: str = Field(..., min_length=1, max_length=64)
    description: str | None = Field(None, max_length=5000)


class AuctionWindowRequest(BaseModel):
    starting_bid_amount: int = Field(..., gt=0)
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def end_after_start(self) -> "AuctionWindowRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AttachDocumentRequest(BaseModel):
    """Document already uploaded to object storage; only its URL is recorded."""

    type: DocumentType
    name: str = Field(..., min_length=1, max_length=255)
    url: HttpUrl


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class AuctionWindowOut(CamelModel):
    starting_bid_amount: int
    start_time: datetime
    end_time: datetime


class DocumentOut(CamelModel):
    id: str
    type: str
    name: str
    url: str
    uploaded_at: datetime | None

    @classmethod
    def from_domain(cls, d: ListingDocument) -> "DocumentOut":
        return cls(id=d.id, type=d.doc_type, name=d.name, url=d.url, uploaded_at=d.uploaded_at)


class ListingOut(CamelModel):
    id: str
    seller_id: str
    company_name: str
    cin: str
    registration_number: str
    description: str | None
    verified: bool
    verification_status: str
    verified_by: str | None
    verified_at: datetime | None
    highest_bid: int
    highest_bidder: str | None
    winning_bid_id: str | None
    resolved_at: datetime | None
    auction_details: AuctionWindowOut | None
    documents: list[DocumentOut]
    created_at: datetime | None

    @classmethod
    def from_domain(cls, m: Listing) -> "ListingOut":
        auction = None
        if m.auction is not None:
            auction = AuctionWindowOut(
                starting_bid_amount=m.auction.starting_bid_amount,
                start_time=m.auction.start_at,
                end_time=m.auction.end_at,
            )
        return cls(
            id=m.id,
            seller_id=m.seller_id,
            company_name=m.company_name,
            cin=m.cin,
            registration_number=m.registration_number,
            description=m.description,
            verified=m.verified,
            verification_status=m.verification_status.value,
            verified_by=m.verified_by,
            verified_at=m.verified_at,
            highest_bid=m.highest_bid,
            highest_bidder=m.highest_bidder_id,
            winning_bid_id=m.winning_bid_id,
            resolved_at=m.resolved_at,
            auction_details=auction,
            documents=[DocumentOut.from_domain(d) for d in m.documents],
            created_at=m.created_at,
        )


class ListingPage(CamelModel):
    items: list[ListingOut]
    next_cursor: str | None
    has_more: bool
