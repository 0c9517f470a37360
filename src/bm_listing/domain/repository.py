# src/bm_listing/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_listing.domain.models import AuctionWindow, Listing, ListingDocument


class ListingRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, listing: Listing) -> None: ...

    async def get_by_id(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def get_for_update(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def list_listings(
        self,
        db: AsyncSession,
        verified_only: bool,
        owner_id: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]: ...

    async def list_pending(self, db: AsyncSession) -> list[Listing]: ...

    async def set_auction_window(
        self, db: AsyncSession, listing_id: str, window: AuctionWindow
    ) -> None: ...

    async def count_bids(self, db: AsyncSession, listing_id: str) -> int: ...

    async def add_document(self, db: AsyncSession, document: ListingDocument) -> None: ...

    async def list_documents(
        self, db: AsyncSession, listing_id: str
    ) -> list[ListingDocument]: ...

    async def mark_verified(
        self, db: AsyncSession, listing_id: str, admin_id: str, at: datetime
    ) -> None: ...

    async def delete(self, db: AsyncSession, listing_id: str) -> None: ...

    async def set_highest_bid(
        self, db: AsyncSession, listing_id: str, amount: int, bidder_id: str | None
    ) -> None: ...

    async def mark_resolved(
        self, db: AsyncSession, listing_id: str, winning_bid_id: str | None, at: datetime
    ) -> None: ...

    async def list_expired_unresolved(
        self, db: AsyncSession, now: datetime, limit: int
    ) -> list[str]: ...
