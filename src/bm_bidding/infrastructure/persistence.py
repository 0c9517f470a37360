"""BidRepository — raw SQL persistence for the bids table.

Status columns are written only from Bid objects that went through
apply_transition; the partial unique index uq_bids_one_winner backs the
at-most-one-winner rule at the storage level.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.domain.models import Bid
from src.bm_common.enums import BidStatus

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, listing_id, bidder_id, amount, status, is_won, won_at, created_at, updated_at
"""

_INSERT_BID_SQL = text("""
    INSERT INTO bids (id, listing_id, bidder_id, amount, status, is_won, won_at)
    VALUES (:id, :listing_id, :bidder_id, :amount, :status, :is_won, :won_at)
    RETURNING created_at, updated_at
""")

_GET_BID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids WHERE id = :bid_id
""")

_UPDATE_STATUS_SQL = text("""
    UPDATE bids
    SET status = :status, is_won = :is_won, won_at = :won_at, updated_at = NOW()
    WHERE id = :id
""")

_UPDATE_AMOUNT_SQL = text("""
    UPDATE bids
    SET amount = :amount, updated_at = NOW()
    WHERE id = :id
""")

_DELETE_BID_SQL = text("DELETE FROM bids WHERE id = :bid_id")

_LIST_BY_LISTING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids WHERE listing_id = :listing_id
    ORDER BY created_at DESC, id DESC
""")

_LIST_BY_BIDDER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids WHERE bidder_id = :bidder_id
    ORDER BY created_at DESC, id DESC
""")

_LIST_WON_BY_BIDDER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids WHERE bidder_id = :bidder_id AND is_won = TRUE
    ORDER BY won_at DESC, id DESC
""")

_LIST_OPEN_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids
    WHERE listing_id = :listing_id AND status IN ('pending', 'active')
    ORDER BY created_at ASC, id ASC
""")

# Highest amount wins; earliest submission breaks ties
_TOP_OPEN_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bids
    WHERE listing_id = :listing_id AND status IN ('pending', 'active')
    ORDER BY amount DESC, created_at ASC, id ASC
    LIMIT 1
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_bid(row: Any) -> Bid:
    return Bid(
        id=row.id,
        listing_id=row.listing_id,
        bidder_id=str(row.bidder_id),
        amount=row.amount,
        status=BidStatus(row.status),
        is_won=row.is_won,
        won_at=row.won_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BidRepository:
    async def save(self, db: AsyncSession, bid: Bid) -> None:
        result = await db.execute(
            _INSERT_BID_SQL,
            {
                "id": bid.id,
                "listing_id": bid.listing_id,
                "bidder_id": bid.bidder_id,
                "amount": bid.amount,
                "status": bid.status.value,
                "is_won": bid.is_won,
                "won_at": bid.won_at,
            },
        )
        row = result.fetchone()
        if row is not None:
            bid.created_at = row.created_at
            bid.updated_at = row.updated_at

    async def get_by_id(self, db: AsyncSession, bid_id: str) -> Bid | None:
        result = await db.execute(_GET_BID_SQL, {"bid_id": bid_id})
        row = result.fetchone()
        return _row_to_bid(row) if row else None

    async def update_status(self, db: AsyncSession, bid: Bid) -> None:
        await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "id": bid.id,
                "status": bid.status.value,
                "is_won": bid.is_won,
                "won_at": bid.won_at,
            },
        )

    async def update_amount(self, db: AsyncSession, bid: Bid) -> None:
        await db.execute(_UPDATE_AMOUNT_SQL, {"id": bid.id, "amount": bid.amount})

    async def delete(self, db: AsyncSession, bid_id: str) -> None:
        await db.execute(_DELETE_BID_SQL, {"bid_id": bid_id})

    async def list_by_listing(self, db: AsyncSession, listing_id: str) -> list[Bid]:
        result = await db.execute(_LIST_BY_LISTING_SQL, {"listing_id": listing_id})
        return [_row_to_bid(row) for row in result.fetchall()]

    async def list_by_bidder(self, db: AsyncSession, bidder_id: str) -> list[Bid]:
        result = await db.execute(_LIST_BY_BIDDER_SQL, {"bidder_id": bidder_id})
        return [_row_to_bid(row) for row in result.fetchall()]

    async def list_won_by_bidder(self, db: AsyncSession, bidder_id: str) -> list[Bid]:
        result = await db.execute(_LIST_WON_BY_BIDDER_SQL, {"bidder_id": bidder_id})
        return [_row_to_bid(row) for row in result.fetchall()]

    async def list_open_for_listing(self, db: AsyncSession, listing_id: str) -> list[Bid]:
        result = await db.execute(_LIST_OPEN_SQL, {"listing_id": listing_id})
        return [_row_to_bid(row) for row in result.fetchall()]

    async def top_open_bid(self, db: AsyncSession, listing_id: str) -> Bid | None:
        result = await db.execute(_TOP_OPEN_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_bid(row) if row else None
