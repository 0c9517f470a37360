"""ListingApplicationService — listing creation, auction window, documents, reads.

Writes commit inside the service (`commit` on success, `rollback` on error);
reads run without an explicit transaction. Highest-bid and arbitration fields
are never written here.
"""
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.engine.locks import ListingLockRegistry, get_listing_locks
from src.bm_common.enums import Role
from src.bm_common.errors import (
    AuctionLockedError,
    ListingInUseError,
    ListingNotFoundError,
    NotListingOwnerError,
)
from src.bm_common.id_generator import generate_id
from src.bm_gateway.auth.principal import Principal, require_roles
from src.bm_listing.application.schemas import (
    AttachDocumentRequest,
    AuctionWindowRequest,
    CreateListingRequest,
    ListingOut,
    ListingPage,
    cursor_decode,
    cursor_encode,
)
from src.bm_listing.domain.models import AuctionWindow, Listing, ListingDocument
from src.bm_listing.domain.repository import ListingRepositoryProtocol
from src.bm_listing.domain.visibility import can_manage_listing, can_view_listing
from src.bm_listing.infrastructure.persistence import ListingRepository

logger = logging.getLogger(__name__)


class ListingApplicationService:
    def __init__(
        self,
        repo: ListingRepositoryProtocol | None = None,
        locks: ListingLockRegistry | None = None,
    ) -> None:
        self._repo: ListingRepositoryProtocol = repo or ListingRepository()
        self._locks = locks or get_listing_locks()

    async def _load_visible(
        self, db: AsyncSession, principal: Principal, listing_id: str
    ) -> Listing:
        listing = await self._repo.get_by_id(db, listing_id)
        if listing is None or not can_view_listing(principal, listing):
            raise ListingNotFoundError(listing_id)
        return listing

    async def create_listing(
        self, db: AsyncSession, principal: Principal, req: CreateListingRequest
    ) -> ListingOut:
        require_roles(principal, {Role.SELLER})
        listing = Listing(
            id=generate_id("LST"),
            seller_id=principal.id,
            company_name=req.company_name,
            cin=req.cin,
            registration_number=req.registration_number,
            description=req.description,
        )
        try:
            await self._repo.create(db, listing)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        created = await self._repo.get_by_id(db, listing.id)
        return ListingOut.from_domain(created or listing)

    async def set_auction_window(
        self,
        db: AsyncSession,
        principal: Principal,
        listing_id: str,
        req: AuctionWindowRequest,
    ) -> ListingOut:
        """Owner-only; locked once bids exist or the listing is resolved."""
        require_roles(principal, {Role.SELLER})
        try:
            listing = await self._repo.get_for_update(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            if listing.seller_id != principal.id:
                raise NotListingOwnerError(listing_id)
            if listing.is_resolved or await self._repo.count_bids(db, listing_id) > 0:
                raise AuctionLockedError(listing_id)

            window = AuctionWindow(
                start_at=req.start_time,
                end_at=req.end_time,
                starting_bid_amount=req.starting_bid_amount,
            )
            await self._repo.set_auction_window(db, listing_id, window)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        listing.auction = window
        return ListingOut.from_domain(listing)

    async def delete_listing(
        self, db: AsyncSession, principal: Principal, listing_id: str
    ) -> dict[str, Any]:
        """Owner withdraws a listing that nobody has bid on yet.

        Documents and wishlist entries go with it; a listing with bids or a
        winner stays and can only be removed by a reviewer's rejection.
        """
        require_roles(principal, {Role.SELLER})
        async with self._locks.hold(listing_id):
            try:
                listing = await self._repo.get_for_update(db, listing_id)
                if listing is None:
                    raise ListingNotFoundError(listing_id)
                if listing.seller_id != principal.id:
                    raise NotListingOwnerError(listing_id)
                if listing.is_resolved or await self._repo.count_bids(db, listing_id) > 0:
                    raise ListingInUseError(listing_id)
                await self._repo.delete(db, listing_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Listing %s withdrawn by %s", listing_id, principal.id)
        return {"listingId": listing_id, "deleted": True}

    async def attach_document(
        self,
        db: AsyncSession,
        principal: Principal,
        listing_id: str,
        req: AttachDocumentRequest,
    ) -> ListingOut:
        listing = await self._repo.get_by_id(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        if not can_manage_listing(principal, listing):
            raise NotListingOwnerError(listing_id)

        document = ListingDocument(
            id=generate_id("DOC"),
            listing_id=listing_id,
            doc_type=req.type.value,
            name=req.name,
            url=str(req.url),
        )
        try:
            await self._repo.add_document(db, document)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        listing.documents = await self._repo.list_documents(db, listing_id)
        return ListingOut.from_domain(listing)

    async def get_listing(
        self, db: AsyncSession, principal: Principal, listing_id: str
    ) -> ListingOut:
        listing = await self._load_visible(db, principal, listing_id)
        listing.documents = await self._repo.list_documents(db, listing_id)
        return ListingOut.from_domain(listing)

    async def list_listings(
        self,
        db: AsyncSession,
        principal: Principal,
        cursor: str | None,
        limit: int,
        mine: bool = False,
    ) -> ListingPage:
        """Newest first. Buyers see verified listings; reviewers see all;
        ``mine`` restricts to the caller's own listings (any status)."""
        owner_id = principal.id if mine else None
        verified_only = not (mine or principal.is_reviewer)

        # Fetch limit+1 to detect has_more without COUNT(*)
        listings = await self._repo.list_listings(
            db, verified_only, owner_id, cursor_decode(cursor), limit + 1
        )
        has_more = len(listings) > limit
        page = listings[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return ListingPage(
            items=[ListingOut.from_domain(m) for m in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
