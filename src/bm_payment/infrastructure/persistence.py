"""PaymentRepository — raw SQL over the payments table."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import PaymentStatus
from src.bm_payment.domain.models import Payment

_SELECT_COLUMNS = """
    id, listing_id, payer_id, bid_id, amount, status,
    gateway_order_id, gateway_payment_id, created_at, updated_at
"""

_INSERT_PAYMENT_SQL = text("""
    INSERT INTO payments (id, listing_id, payer_id, bid_id, amount, status, gateway_order_id)
    VALUES (:id, :listing_id, :payer_id, :bid_id, :amount, :status, :gateway_order_id)
    RETURNING created_at, updated_at
""")

_GET_BY_ORDER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM payments WHERE gateway_order_id = :gateway_order_id
""")

_GET_BY_ORDER_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM payments WHERE gateway_order_id = :gateway_order_id
    FOR UPDATE
""")

_GET_OPEN_FOR_BID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM payments
    WHERE bid_id = :bid_id AND status IN ('pending', 'success')
    ORDER BY created_at DESC
    LIMIT 1
""")

# A success row is never rewritten
_UPDATE_STATUS_SQL = text("""
    UPDATE payments
    SET status = :status, gateway_payment_id = :gateway_payment_id, updated_at = NOW()
    WHERE id = :id AND status <> 'success'
""")


def _row_to_payment(row: Any) -> Payment:
    return Payment(
        id=row.id,
        listing_id=row.listing_id,
        payer_id=str(row.payer_id),
        bid_id=row.bid_id,
        amount=row.amount,
        status=PaymentStatus(row.status),
        gateway_order_id=row.gateway_order_id,
        gateway_payment_id=row.gateway_payment_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class PaymentRepository:
    async def save(self, db: AsyncSession, payment: Payment) -> None:
        result = await db.execute(
            _INSERT_PAYMENT_SQL,
            {
                "id": payment.id,
                "listing_id": payment.listing_id,
                "payer_id": payment.payer_id,
                "bid_id": payment.bid_id,
                "amount": payment.amount,
                "status": payment.status.value,
                "gateway_order_id": payment.gateway_order_id,
            },
        )
        row = result.fetchone()
        if row is not None:
            payment.created_at = row.created_at
            payment.updated_at = row.updated_at

    async def get_by_order(self, db: AsyncSession, gateway_order_id: str) -> Payment | None:
        result = await db.execute(_GET_BY_ORDER_SQL, {"gateway_order_id": gateway_order_id})
        row = result.fetchone()
        return _row_to_payment(row) if row else None

    async def get_by_order_for_update(
        self, db: AsyncSession, gateway_order_id: str
    ) -> Payment | None:
        result = await db.execute(
            _GET_BY_ORDER_FOR_UPDATE_SQL, {"gateway_order_id": gateway_order_id}
        )
        row = result.fetchone()
        return _row_to_payment(row) if row else None

    async def get_open_for_bid(self, db: AsyncSession, bid_id: str) -> Payment | None:
        result = await db.execute(_GET_OPEN_FOR_BID_SQL, {"bid_id": bid_id})
        row = result.fetchone()
        return _row_to_payment(row) if row else None

    async def update_status(self, db: AsyncSession, payment: Payment) -> None:
        await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "id": payment.id,
                "status": payment.status.value,
                "gateway_payment_id": payment.gateway_payment_id,
            },
        )
