"""Listing visibility rule, shared by every read path.

A listing is visible when it is verified, when the caller owns it, or when the
caller reviews listings (admin / CA).
"""

from src.bm_gateway.auth.principal import Principal
from src.bm_listing.domain.models import Listing


def can_view_listing(principal: Principal | None, listing: Listing) -> bool:
    if listing.verified:
        return True
    if principal is None:
        return False
    return principal.is_reviewer or principal.id == listing.seller_id


def can_manage_listing(principal: Principal, listing: Listing) -> bool:
    return principal.id == listing.seller_id or principal.is_reviewer
