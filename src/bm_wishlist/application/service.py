# src/bm_wishlist/application/service.py
"""WishlistService — buyer bookmarks plus the live-state projection."""
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import Role
from src.bm_common.errors import AlreadyInWishlistError, ListingNotFoundError
from src.bm_common.id_generator import generate_id
from src.bm_gateway.auth.principal import Principal, require_roles
from src.bm_listing.domain.repository import ListingRepositoryProtocol
from src.bm_listing.domain.visibility import can_view_listing
from src.bm_listing.infrastructure.persistence import ListingRepository
from src.bm_wishlist.application.schemas import WishlistEntryOut, WishlistItemOut, WishlistOut
from src.bm_wishlist.domain.models import WishlistEntry, WishlistItemView
from src.bm_wishlist.domain.projection import derive_wishlist_status, format_time_left
from src.bm_wishlist.domain.repository import WishlistRepositoryProtocol
from src.bm_wishlist.infrastructure.persistence import WishlistRepository


def _row_to_view(row: Any, now: datetime) -> WishlistItemView:
    entry = WishlistEntry(
        id=row.id,
        buyer_id=str(row.buyer_id),
        listing_id=row.listing_id,
        seller_id=str(row.seller_id),
        notes=row.notes or "",
        created_at=row.created_at,
    )
    time_left = format_time_left(row.auction_end_at, now)
    my_bid = int(row.my_bid_amount)
    highest = int(row.highest_bid)
    return WishlistItemView(
        entry=entry,
        company_name=row.company_name,
        current_highest_bid=highest,
        bids_count=int(row.bids_count),
        my_bid_amount=my_bid,
        time_left=time_left,
        status=derive_wishlist_status(time_left, my_bid, highest),
        auction_end_at=row.auction_end_at,
    )


class WishlistService:
    def __init__(
        self,
        repo: WishlistRepositoryProtocol | None = None,
        listing_repo: ListingRepositoryProtocol | None = None,
    ) -> None:
        self._repo: WishlistRepositoryProtocol = repo or WishlistRepository()
        self._listings: ListingRepositoryProtocol = listing_repo or ListingRepository()

    async def add(
        self, db: AsyncSession, principal: Principal, listing_id: str, notes: str = ""
    ) -> WishlistEntryOut:
        require_roles(principal, {Role.BUYER})
        listing = await self._listings.get_by_id(db, listing_id)
        if listing is None or not can_view_listing(principal, listing):
            raise ListingNotFoundError(listing_id)

        entry = WishlistEntry(
            id=generate_id("WSH"),
            buyer_id=principal.id,
            listing_id=listing_id,
            seller_id=listing.seller_id,
            notes=notes,
        )
        try:
            if not await self._repo.add(db, entry):
                raise AlreadyInWishlistError(listing_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return WishlistEntryOut.from_domain(entry)

    async def remove(self, db: AsyncSession, principal: Principal, listing_id: str) -> bool:
        """Idempotent; returns whether an entry was actually removed."""
        require_roles(principal, {Role.BUYER})
        try:
            removed = await self._repo.remove(db, principal.id, listing_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return removed

    async def view(self, db: AsyncSession, principal: Principal) -> WishlistOut:
        require_roles(principal, {Role.BUYER})
        rows = await self._repo.list_view_rows(db, principal.id)
        now = utc_now()
        return WishlistOut(items=[WishlistItemOut.from_view(_row_to_view(r, now)) for r in rows])
