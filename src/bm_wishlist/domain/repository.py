"""Repository Protocol for wishlist entries."""
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_wishlist.domain.models import WishlistEntry


class WishlistRepositoryProtocol(Protocol):
    async def add(self, db: AsyncSession, entry: WishlistEntry) -> bool: ...

    async def remove(self, db: AsyncSession, buyer_id: str, listing_id: str) -> bool: ...

    async def list_view_rows(self, db: AsyncSession, buyer_id: str) -> list[Any]: ...
