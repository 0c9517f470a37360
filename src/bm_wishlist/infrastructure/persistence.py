"""WishlistRepository — raw SQL over wishlist_entries.

The view query joins the live listing snapshot and bid aggregates on every
read; nothing derived is written back.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_wishlist.domain.models import WishlistEntry

_INSERT_ENTRY_SQL = text("""
    INSERT INTO wishlist_entries (id, buyer_id, listing_id, seller_id, notes)
    VALUES (:id, :buyer_id, :listing_id, :seller_id, :notes)
    ON CONFLICT (buyer_id, listing_id) DO NOTHING
    RETURNING created_at
""")

_DELETE_ENTRY_SQL = text("""
    DELETE FROM wishlist_entries
    WHERE buyer_id = :buyer_id AND listing_id = :listing_id
""")

_LIST_VIEW_SQL = text("""
    SELECT
        w.id, w.buyer_id, w.listing_id, w.seller_id, w.notes, w.created_at,
        l.company_name, l.highest_bid, l.auction_end_at,
        (SELECT COUNT(*) FROM bids b WHERE b.listing_id = w.listing_id) AS bids_count,
        COALESCE((
            SELECT b.amount FROM bids b
            WHERE b.listing_id = w.listing_id AND b.bidder_id = w.buyer_id
            ORDER BY b.created_at DESC, b.id DESC
            LIMIT 1
        ), 0) AS my_bid_amount
    FROM wishlist_entries w
    JOIN listings l ON l.id = w.listing_id
    WHERE w.buyer_id = :buyer_id
    ORDER BY w.created_at DESC, w.id DESC
""")


class WishlistRepository:
    async def add(self, db: AsyncSession, entry: WishlistEntry) -> bool:
        """Insert; False when the (buyer, listing) pair already exists."""
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "id": entry.id,
                "buyer_id": entry.buyer_id,
                "listing_id": entry.listing_id,
                "seller_id": entry.seller_id,
                "notes": entry.notes,
            },
        )
        row = result.fetchone()
        if row is None:
            return False
        entry.created_at = row.created_at
        return True

    async def remove(self, db: AsyncSession, buyer_id: str, listing_id: str) -> bool:
        result = await db.execute(
            _DELETE_ENTRY_SQL, {"buyer_id": buyer_id, "listing_id": listing_id}
        )
        return bool(result.rowcount)

    async def list_view_rows(self, db: AsyncSession, buyer_id: str) -> list[Any]:
        result = await db.execute(_LIST_VIEW_SQL, {"buyer_id": buyer_id})
        return list(result.fetchall())
