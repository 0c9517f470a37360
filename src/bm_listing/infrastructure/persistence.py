"""ListingRepository — concrete implementation of ListingRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Write ownership on the listings row:
  - set_auction_window          → listing service (seller)
  - mark_verified / delete      → verification gate
  - set_highest_bid / mark_resolved → bidding engine only
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_listing.domain.models import AuctionWindow, Listing, ListingDocument

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, seller_id, company_name, cin, registration_number, description,
    verified, verified_by, verified_at,
    highest_bid, highest_bidder_id, winning_bid_id, resolved_at,
    starting_bid_amount, auction_start_at, auction_end_at,
    created_at, updated_at
"""

_INSERT_LISTING_SQL = text("""
    INSERT INTO listings (id, seller_id, company_name, cin, registration_number,
        description, verified, highest_bid)
    VALUES (:id, :seller_id, :company_name, :cin, :registration_number,
        :description, FALSE, 0)
""")

_GET_LISTING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM listings
    WHERE id = :listing_id
""")

_GET_LISTING_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM listings
    WHERE id = :listing_id
    FOR UPDATE
""")

_LIST_LISTINGS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM listings
    WHERE
        (CAST(:verified_only AS BOOLEAN) IS FALSE OR verified = TRUE)
        AND (CAST(:owner_id AS TEXT) IS NULL OR seller_id = CAST(:owner_id AS TEXT))
        AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_PENDING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM listings
    WHERE verified = FALSE
    ORDER BY created_at DESC, id DESC
""")

_SET_AUCTION_SQL = text("""
    UPDATE listings
    SET starting_bid_amount = :starting_bid_amount,
        auction_start_at = :start_at,
        auction_end_at = :end_at,
        updated_at = NOW()
    WHERE id = :listing_id
""")

_MARK_VERIFIED_SQL = text("""
    UPDATE listings
    SET verified = TRUE, verified_by = :admin_id, verified_at = :verified_at,
        updated_at = NOW()
    WHERE id = :listing_id
""")

_DELETE_LISTING_SQL = text("DELETE FROM listings WHERE id = :listing_id")

_SET_HIGHEST_BID_SQL = text("""
    UPDATE listings
    SET highest_bid = :amount, highest_bidder_id = :bidder_id, updated_at = NOW()
    WHERE id = :listing_id
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE listings
    SET winning_bid_id = :winning_bid_id, resolved_at = :resolved_at, updated_at = NOW()
    WHERE id = :listing_id AND resolved_at IS NULL
""")

_LIST_EXPIRED_UNRESOLVED_SQL = text("""
    SELECT id
    FROM listings
    WHERE verified = TRUE
      AND resolved_at IS NULL
      AND auction_end_at IS NOT NULL
      AND auction_end_at <= :now
    ORDER BY auction_end_at
    LIMIT :limit
""")

_COUNT_BIDS_SQL = text("SELECT COUNT(*) AS n FROM bids WHERE listing_id = :listing_id")

_INSERT_DOCUMENT_SQL = text("""
    INSERT INTO listing_documents (id, listing_id, doc_type, name, url)
    VALUES (:id, :listing_id, :doc_type, :name, :url)
""")

_LIST_DOCUMENTS_SQL = text("""
    SELECT id, listing_id, doc_type, name, url, uploaded_at
    FROM listing_documents
    WHERE listing_id = :listing_id
    ORDER BY uploaded_at, id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_listing(row: Any) -> Listing:
    auction: AuctionWindow | None = None
    if row.auction_start_at is not None and row.auction_end_at is not None:
        auction = AuctionWindow(
            start_at=row.auction_start_at,
            end_at=row.auction_end_at,
            starting_bid_amount=row.starting_bid_amount or 0,
        )
    return Listing(
        id=row.id,
        seller_id=str(row.seller_id),
        company_name=row.company_name,
        cin=row.cin,
        registration_number=row.registration_number,
        description=row.description,
        verified=row.verified,
        verified_by=str(row.verified_by) if row.verified_by else None,
        verified_at=row.verified_at,
        highest_bid=row.highest_bid,
        highest_bidder_id=str(row.highest_bidder_id) if row.highest_bidder_id else None,
        winning_bid_id=row.winning_bid_id,
        resolved_at=row.resolved_at,
        auction=auction,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_document(row: Any) -> ListingDocument:
    return ListingDocument(
        id=row.id,
        listing_id=row.listing_id,
        doc_type=row.doc_type,
        name=row.name,
        url=row.url,
        uploaded_at=row.uploaded_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingRepository:
    """Concrete repository over the listings / listing_documents tables."""

    async def create(self, db: AsyncSession, listing: Listing) -> None:
        await db.execute(
            _INSERT_LISTING_SQL,
            {
                "id": listing.id,
                "seller_id": listing.seller_id,
                "company_name": listing.company_name,
                "cin": listing.cin,
                "registration_number": listing.registration_number,
                "description": listing.description,
            },
        )

    async def get_by_id(self, db: AsyncSession, listing_id: str) -> Listing | None:
        result = await db.execute(_GET_LISTING_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def get_for_update(self, db: AsyncSession, listing_id: str) -> Listing | None:
        """Row-lock the listing for the rest of the transaction."""
        result = await db.execute(_GET_LISTING_FOR_UPDATE_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def list_listings(
        self,
        db: AsyncSession,
        verified_only: bool,
        owner_id: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]:
        result = await db.execute(
            _LIST_LISTINGS_SQL,
            {
                "verified_only": verified_only,
                "owner_id": owner_id,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_listing(row) for row in result.fetchall()]

    async def list_pending(self, db: AsyncSession) -> list[Listing]:
        result = await db.execute(_LIST_PENDING_SQL)
        return [_row_to_listing(row) for row in result.fetchall()]

    async def set_auction_window(
        self, db: AsyncSession, listing_id: str, window: AuctionWindow
    ) -> None:
        await db.execute(
            _SET_AUCTION_SQL,
            {
                "listing_id": listing_id,
                "starting_bid_amount": window.starting_bid_amount,
                "start_at": window.start_at,
                "end_at": window.end_at,
            },
        )

    async def count_bids(self, db: AsyncSession, listing_id: str) -> int:
        result = await db.execute(_COUNT_BIDS_SQL, {"listing_id": listing_id})
        return int(result.scalar_one())

    async def add_document(self, db: AsyncSession, document: ListingDocument) -> None:
        await db.execute(
            _INSERT_DOCUMENT_SQL,
            {
                "id": document.id,
                "listing_id": document.listing_id,
                "doc_type": document.doc_type,
                "name": document.name,
                "url": document.url,
            },
        )

    async def list_documents(
        self, db: AsyncSession, listing_id: str
    ) -> list[ListingDocument]:
        result = await db.execute(_LIST_DOCUMENTS_SQL, {"listing_id": listing_id})
        return [_row_to_document(row) for row in result.fetchall()]

    async def mark_verified(
        self, db: AsyncSession, listing_id: str, admin_id: str, at: datetime
    ) -> None:
        await db.execute(
            _MARK_VERIFIED_SQL,
            {"listing_id": listing_id, "admin_id": admin_id, "verified_at": at},
        )

    async def delete(self, db: AsyncSession, listing_id: str) -> None:
        # bids, wishlist_entries, listing_documents and payments cascade via FK
        await db.execute(_DELETE_LISTING_SQL, {"listing_id": listing_id})

    async def set_highest_bid(
        self, db: AsyncSession, listing_id: str, amount: int, bidder_id: str | None
    ) -> None:
        await db.execute(
            _SET_HIGHEST_BID_SQL,
            {"listing_id": listing_id, "amount": amount, "bidder_id": bidder_id},
        )

    async def mark_resolved(
        self, db: AsyncSession, listing_id: str, winning_bid_id: str | None, at: datetime
    ) -> None:
        await db.execute(
            _MARK_RESOLVED_SQL,
            {"listing_id": listing_id, "winning_bid_id": winning_bid_id, "resolved_at": at},
        )

    async def list_expired_unresolved(
        self, db: AsyncSession, now: datetime, limit: int
    ) -> list[str]:
        result = await db.execute(_LIST_EXPIRED_UNRESOLVED_SQL, {"now": now, "limit": limit})
        return [row.id for row in result.fetchall()]
