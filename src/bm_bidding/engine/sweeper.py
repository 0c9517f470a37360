"""Background task closing auctions whose window has ended."""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.bm_bidding.engine.arbitration import ArbitrationEngine
from src.bm_common.datetime_utils import utc_now
from src.bm_common.errors import AppError
from src.bm_listing.domain.repository import ListingRepositoryProtocol
from src.bm_listing.infrastructure.persistence import ListingRepository

logger = logging.getLogger(__name__)

SWEEP_BATCH_SIZE = 100


async def sweep_once(
    session_factory: async_sessionmaker[AsyncSession],
    engine: ArbitrationEngine,
    listing_repo: ListingRepositoryProtocol | None = None,
) -> int:
    """Close every ended, unresolved auction. Returns how many were closed."""
    repo = listing_repo or ListingRepository()
    async with session_factory() as db:
        listing_ids = await repo.list_expired_unresolved(db, utc_now(), SWEEP_BATCH_SIZE)

    closed = 0
    for listing_id in listing_ids:
        # One session per listing so a failure leaves the others untouched
        async with session_factory() as db:
            try:
                await engine.close_auction(db, listing_id)
                closed += 1
            except AppError as e:
                logger.warning("Sweeper skipped %s: %s", listing_id, e.message)
            except Exception:
                logger.exception("Sweeper failed to close %s", listing_id)
    return closed


async def auction_sweeper(
    session_factory: async_sessionmaker[AsyncSession],
    engine: ArbitrationEngine,
    interval_seconds: float,
) -> None:
    logger.info("Auction sweeper started (interval=%ss)", interval_seconds)
    while True:
        try:
            closed = await sweep_once(session_factory, engine)
            if closed:
                logger.info("Auction sweeper closed %d listing(s)", closed)
        except Exception:
            logger.exception("Auction sweep failed")
        await asyncio.sleep(interval_seconds)
