"""Bid status transition table and the derived won-fields rule.

Every status write goes through ``apply_transition``; the repository never
receives a status whose ``is_won``/``won_at`` were not recomputed here.
"""
from datetime import datetime

from src.bm_bidding.domain.models import Bid
from src.bm_common.enums import BidStatus
from src.bm_common.errors import InvalidBidTransitionError

_FROM_OPEN = frozenset(
    {BidStatus.ACTIVE, BidStatus.WON, BidStatus.LOST, BidStatus.ACCEPTED, BidStatus.REJECTED}
)

TRANSITIONS: dict[BidStatus, frozenset[BidStatus]] = {
    BidStatus.PENDING: _FROM_OPEN,
    BidStatus.ACTIVE: _FROM_OPEN,
    BidStatus.WON: frozenset({BidStatus.PAID}),
    BidStatus.ACCEPTED: frozenset({BidStatus.PAID}),
    BidStatus.REJECTED: frozenset(),
    BidStatus.LOST: frozenset(),
    BidStatus.PAID: frozenset(),
}


def can_transition(current: BidStatus, target: BidStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def derive_won_fields(
    status: BidStatus, current_won_at: datetime | None, now: datetime
) -> tuple[bool, datetime | None]:
    """Return (is_won, won_at) for ``status``.

    won_at is stamped once on entering a winning status and kept through
    accepted/won → paid; it is cleared for any other status.
    """
    if status in (BidStatus.ACCEPTED, BidStatus.WON, BidStatus.PAID):
        return True, current_won_at or now
    return False, None


def apply_transition(bid: Bid, target: BidStatus, now: datetime) -> Bid:
    """Validate ``bid.status → target`` and mutate the bid in place."""
    if not can_transition(bid.status, target):
        raise InvalidBidTransitionError(bid.status.value, target.value)
    bid.status = target
    bid.is_won, bid.won_at = derive_won_fields(target, bid.won_at, now)
    bid.updated_at = now
    return bid
