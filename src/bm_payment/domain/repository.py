"""Repository Protocol for payments."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_payment.domain.models import Payment


class PaymentRepositoryProtocol(Protocol):
    async def save(self, db: AsyncSession, payment: Payment) -> None: ...

    async def get_by_order(self, db: AsyncSession, gateway_order_id: str) -> Payment | None: ...

    async def get_by_order_for_update(
        self, db: AsyncSession, gateway_order_id: str
    ) -> Payment | None: ...

    async def get_open_for_bid(self, db: AsyncSession, bid_id: str) -> Payment | None: ...

    async def update_status(self, db: AsyncSession, payment: Payment) -> None: ...
