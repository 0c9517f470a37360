"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class Role(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    CA = "ca"
    ADMIN = "admin"


# Roles allowed to review listings and arbitrate bids
REVIEWER_ROLES = frozenset({Role.ADMIN, Role.CA})


class BidStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WON = "won"
    LOST = "lost"
    PAID = "paid"


class VerificationStatus(str, Enum):
    """Derived from listings.verified; a rejected listing is deleted, never stored."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class DocumentType(str, Enum):
    IMAGE = "image"
    FINANCIAL = "financial"
    ITR = "itr"
    CERTIFICATE = "certificate"
    ADDITIONAL = "additional"


class WishlistStatus(str, Enum):
    LIVE = "Live"
    OUTBID = "Outbid"
    ENDED = "Ended"
