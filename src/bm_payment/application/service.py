# src/bm_payment/application/service.py
"""PaymentService — settles a won bid through Razorpay.

A bid only becomes ``paid`` after the checkout signature verifies; a bad
signature marks the payment failed and leaves the bid untouched.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bm_bidding.domain.repository import BidRepositoryProtocol
from src.bm_bidding.domain.state_machine import apply_transition
from src.bm_bidding.engine.locks import ListingLockRegistry, get_listing_locks
from src.bm_bidding.infrastructure.persistence import BidRepository
from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import BidStatus, PaymentStatus
from src.bm_common.errors import (
    BidNotFoundError,
    BidNotPayableError,
    NotBidOwnerError,
    PaymentNotFoundError,
    PaymentSignatureError,
)
from src.bm_common.id_generator import generate_id
from src.bm_gateway.auth.principal import Principal
from src.bm_payment.application.schemas import PaymentOrderOut, PaymentOut
from src.bm_payment.domain.models import Payment
from src.bm_payment.domain.repository import PaymentRepositoryProtocol
from src.bm_payment.domain.signature import verify_checkout_signature
from src.bm_payment.infrastructure.persistence import PaymentRepository
from src.bm_payment.infrastructure.razorpay_client import RazorpayClient, amount_to_paise

logger = logging.getLogger(__name__)

_PAYABLE = frozenset({BidStatus.WON, BidStatus.ACCEPTED})


class PaymentService:
    def __init__(
        self,
        repo: PaymentRepositoryProtocol | None = None,
        bid_repo: BidRepositoryProtocol | None = None,
        gateway: RazorpayClient | None = None,
        locks: ListingLockRegistry | None = None,
    ) -> None:
        self._repo: PaymentRepositoryProtocol = repo or PaymentRepository()
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._gateway = gateway or RazorpayClient()
        self._locks = locks or get_listing_locks()

    def _order_out(self, payment: Payment) -> PaymentOrderOut:
        return PaymentOrderOut(
            payment=PaymentOut.from_domain(payment),
            key_id=self._gateway.key_id,
            amount_paise=amount_to_paise(payment.amount),
            currency=settings.RAZORPAY_CURRENCY,
        )

    async def create_payment_order(
        self, db: AsyncSession, principal: Principal, bid_id: str
    ) -> PaymentOrderOut:
        bid = await self._bids.get_by_id(db, bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)
        if bid.bidder_id != principal.id:
            raise NotBidOwnerError(bid_id)
        if bid.status not in _PAYABLE:
            raise BidNotPayableError(bid_id, bid.status.value)

        existing = await self._repo.get_open_for_bid(db, bid_id)
        if existing is not None:
            return self._order_out(existing)

        order = await self._gateway.create_order(
            amount_to_paise(bid.amount),
            receipt=bid.id,
            notes={"listing_id": bid.listing_id, "bid_id": bid.id},
        )
        payment = Payment(
            id=generate_id("PAY"),
            listing_id=bid.listing_id,
            payer_id=principal.id,
            bid_id=bid.id,
            amount=bid.amount,
            gateway_order_id=str(order["id"]),
        )
        try:
            await self._repo.save(db, payment)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Payment %s created for bid %s (order %s)", payment.id, bid.id, order["id"])
        return self._order_out(payment)

    async def confirm_payment(
        self,
        db: AsyncSession,
        principal: Principal,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> PaymentOut:
        """Verify the checkout signature, then mark payment success and bid paid.

        The listing lock is taken before any row lock so this serializes with
        arbitration on the same listing.
        """
        payment = await self._repo.get_by_order(db, order_id)
        if payment is None:
            raise PaymentNotFoundError(order_id)
        if payment.payer_id != principal.id:
            raise NotBidOwnerError(payment.bid_id)

        async with self._locks.hold(payment.listing_id):
            try:
                payment = await self._repo.get_by_order_for_update(db, order_id)
                if payment is None:
                    raise PaymentNotFoundError(order_id)
                if payment.is_settled:
                    await db.rollback()
                    return PaymentOut.from_domain(payment)

                if not verify_checkout_signature(
                    order_id, payment_id, signature, self._gateway.key_secret
                ):
                    payment.status = PaymentStatus.FAILED
                    payment.gateway_payment_id = payment_id
                    await self._repo.update_status(db, payment)
                    await db.commit()
                    logger.warning(
                        "Payment %s failed signature check (order %s)", payment.id, order_id
                    )
                    raise PaymentSignatureError()

                bid = await self._bids.get_by_id(db, payment.bid_id)
                if bid is None:
                    raise BidNotFoundError(payment.bid_id)
                apply_transition(bid, BidStatus.PAID, utc_now())
                await self._bids.update_status(db, bid)
                payment.status = PaymentStatus.SUCCESS
                payment.gateway_payment_id = payment_id
                await self._repo.update_status(db, payment)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Payment %s settled; bid %s paid", payment.id, bid.id)
        return PaymentOut.from_domain(payment)
