# src/bm_verification/application/service.py
"""Verification gate — admins and CAs approve or remove listings.

Rejection is a hard delete; bids, wishlist entries, documents and payments go
with the listing through ON DELETE CASCADE. A listing with a settled payment
cannot be rejected.
"""
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.engine.locks import ListingLockRegistry, get_listing_locks
from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import REVIEWER_ROLES
from src.bm_common.errors import (
    AlreadyVerifiedError,
    ListingNotFoundError,
    ListingSettledError,
)
from src.bm_gateway.auth.principal import Principal, require_roles
from src.bm_listing.application.schemas import ListingOut
from src.bm_listing.domain.repository import ListingRepositoryProtocol
from src.bm_listing.infrastructure.persistence import ListingRepository
from src.bm_notify.email_client import EmailClient, notify_safely

logger = logging.getLogger(__name__)

_GET_USER_EMAIL_SQL = text("SELECT email FROM users WHERE id = CAST(:user_id AS UUID)")

_CASCADE_COUNTS_SQL = text("""
    SELECT
        (SELECT COUNT(*) FROM bids WHERE listing_id = :listing_id) AS bids,
        (SELECT COUNT(*) FROM wishlist_entries WHERE listing_id = :listing_id) AS wishlist_entries,
        (SELECT COUNT(*) FROM listing_documents WHERE listing_id = :listing_id) AS documents,
        (SELECT COUNT(*) FROM payments WHERE listing_id = :listing_id) AS payments,
        (SELECT COUNT(*) FROM payments
            WHERE listing_id = :listing_id AND status = 'success') AS settled_payments
""")


class VerificationService:
    def __init__(
        self,
        repo: ListingRepositoryProtocol | None = None,
        email_client: EmailClient | None = None,
        locks: ListingLockRegistry | None = None,
    ) -> None:
        self._repo: ListingRepositoryProtocol = repo or ListingRepository()
        self._email = email_client or EmailClient()
        self._locks = locks or get_listing_locks()

    async def verify(
        self, db: AsyncSession, principal: Principal, listing_id: str
    ) -> ListingOut:
        require_roles(principal, REVIEWER_ROLES)
        try:
            listing = await self._repo.get_for_update(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            if listing.verified:
                raise AlreadyVerifiedError(listing_id)
            now = utc_now()
            await self._repo.mark_verified(db, listing_id, principal.id, now)
            row = (
                await db.execute(_GET_USER_EMAIL_SQL, {"user_id": listing.seller_id})
            ).fetchone()
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        listing.verified = True
        listing.verified_by = principal.id
        listing.verified_at = now
        logger.info("Listing %s verified by %s", listing_id, principal.id)

        # Seller notification must not undo or fail the verification
        if row is not None:
            await notify_safely(
                self._email.send_listing_verified(row.email, listing.company_name)
            )
        return ListingOut.from_domain(listing)

    async def reject(
        self, db: AsyncSession, principal: Principal, listing_id: str
    ) -> dict[str, Any]:
        """Delete the listing and everything hanging off it, unless it was paid for."""
        require_roles(principal, REVIEWER_ROLES)
        async with self._locks.hold(listing_id):
            try:
                listing = await self._repo.get_for_update(db, listing_id)
                if listing is None:
                    raise ListingNotFoundError(listing_id)
                counts = (
                    await db.execute(_CASCADE_COUNTS_SQL, {"listing_id": listing_id})
                ).fetchone()
                if counts.settled_payments > 0:
                    raise ListingSettledError(listing_id)
                await self._repo.delete(db, listing_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        removed = {
            "bids": counts.bids,
            "wishlist_entries": counts.wishlist_entries,
            "documents": counts.documents,
            "payments": counts.payments,
        }
        logger.warning(
            "Listing %s rejected by %s; cascade removed %s",
            listing_id,
            principal.id,
            removed,
        )
        return {"listingId": listing_id, "removed": removed}

    async def list_pending(self, db: AsyncSession, principal: Principal) -> list[ListingOut]:
        require_roles(principal, REVIEWER_ROLES)
        listings = await self._repo.list_pending(db)
        return [ListingOut.from_domain(m) for m in listings]
