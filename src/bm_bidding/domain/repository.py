# src/bm_bidding/domain/repository.py
"""Repository Protocol for bids — unit tests inject a conforming mock."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.domain.models import Bid


class BidRepositoryProtocol(Protocol):
    async def save(self, db: AsyncSession, bid: Bid) -> None: ...

    async def get_by_id(self, db: AsyncSession, bid_id: str) -> Bid | None: ...

    async def update_status(self, db: AsyncSession, bid: Bid) -> None: ...

    async def update_amount(self, db: AsyncSession, bid: Bid) -> None: ...

    async def delete(self, db: AsyncSession, bid_id: str) -> None: ...

    async def list_by_listing(self, db: AsyncSession, listing_id: str) -> list[Bid]: ...

    async def list_by_bidder(self, db: AsyncSession, bidder_id: str) -> list[Bid]: ...

    async def list_won_by_bidder(self, db: AsyncSession, bidder_id: str) -> list[Bid]: ...

    async def list_open_for_listing(self, db: AsyncSession, listing_id: str) -> list[Bid]: ...

    async def top_open_bid(self, db: AsyncSession, listing_id: str) -> Bid | None: ...
