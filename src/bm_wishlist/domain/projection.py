"""Pure derivations for the wishlist view."""
from datetime import datetime

from src.bm_common.datetime_utils import as_utc
from src.bm_common.enums import WishlistStatus

TIME_LEFT_ENDED = "Ended"
TIME_LEFT_NONE = "N/A"


def format_time_left(end_at: datetime | None, now: datetime) -> str:
    """``"{hours}h {minutes}m left"``, ``"Ended"`` or ``"N/A"`` without a window.

    Hours are not folded into days: 50 hours reads ``"50h 0m left"``.
    """
    if end_at is None:
        return TIME_LEFT_NONE
    remaining = int((as_utc(end_at) - as_utc(now)).total_seconds())
    if remaining <= 0:
        return TIME_LEFT_ENDED
    hours, rest = divmod(remaining, 3600)
    return f"{hours}h {rest // 60}m left"


def derive_wishlist_status(
    time_left: str, my_bid_amount: int, current_highest_bid: int
) -> WishlistStatus:
    if time_left == TIME_LEFT_ENDED:
        return WishlistStatus.ENDED
    if 0 < my_bid_amount < current_highest_bid:
        return WishlistStatus.OUTBID
    return WishlistStatus.LIVE
