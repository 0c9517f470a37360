"""Bid admission rules — pure functions over a Listing snapshot.

Each rule raises the matching AppError; callers run them under the listing
lock so the snapshot they see is the one the write will be checked against.
"""
from datetime import datetime

from src.bm_common.errors import (
    AlreadyResolvedError,
    AuctionEndedError,
    AuctionNotStartedError,
    BidTooLowError,
    InvalidBidAmountError,
    ListingNotVerifiedError,
)
from src.bm_listing.domain.models import Listing


def check_amount_positive(amount: int) -> None:
    if amount <= 0:
        raise InvalidBidAmountError(amount)


def check_listing_biddable(listing: Listing, now: datetime) -> None:
    """Verified, unresolved and (when a window is set) inside the window."""
    if not listing.verified:
        raise ListingNotVerifiedError(listing.id)
    if listing.is_resolved:
        raise AlreadyResolvedError(listing.id)
    if listing.auction is not None:
        if not listing.auction.has_started(now):
            raise AuctionNotStartedError(listing.id)
        if listing.auction.has_ended(now):
            raise AuctionEndedError(listing.id)


def minimum_acceptable(listing: Listing) -> int:
    """Smallest amount that passes check_exceeds_highest."""
    starting = listing.auction.starting_bid_amount if listing.auction else 0
    return max(listing.highest_bid + 1, starting, 1)


def check_exceeds_highest(listing: Listing, amount: int) -> None:
    """Strict increase over the snapshot, and at least the starting bid."""
    minimum = minimum_acceptable(listing)
    if amount < minimum:
        raise BidTooLowError(amount, minimum)
