"""Unit tests for the auction sweeper."""

import logging
from unittest.mock import AsyncMock, MagicMock

from src.bm_bidding.engine.sweeper import SWEEP_BATCH_SIZE, sweep_once
from src.bm_common.errors import AuctionStillRunningError
from tests.unit.factories import make_db


def _factory(db: AsyncMock) -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = db
    factory.return_value.__aexit__.return_value = False
    return factory


class TestSweepOnce:
    async def test_closes_every_expired_listing(self) -> None:
        db = make_db()
        repo = AsyncMock()
        repo.list_expired_unresolved.return_value = ["LST-1", "LST-2"]
        engine = AsyncMock()

        closed = await sweep_once(_factory(db), engine, repo)

        assert closed == 2
        assert [c.args[1] for c in engine.close_auction.await_args_list] == ["LST-1", "LST-2"]
        assert repo.list_expired_unresolved.await_args.args[2] == SWEEP_BATCH_SIZE

    async def test_one_failure_does_not_stop_the_batch(self, caplog) -> None:
        repo = AsyncMock()
        repo.list_expired_unresolved.return_value = ["LST-1", "LST-2", "LST-3"]
        engine = AsyncMock()
        engine.close_auction.side_effect = [
            AuctionStillRunningError("LST-1"),
            RuntimeError("boom"),
            None,
        ]

        with caplog.at_level(logging.WARNING, logger="src.bm_bidding.engine.sweeper"):
            closed = await sweep_once(_factory(make_db()), engine, repo)

        assert closed == 1
        assert engine.close_auction.await_count == 3
        assert any("LST-1" in r.getMessage() for r in caplog.records)
        assert any("LST-2" in r.getMessage() for r in caplog.records)

    async def test_nothing_to_do(self) -> None:
        repo = AsyncMock()
        repo.list_expired_unresolved.return_value = []
        engine = AsyncMock()

        assert await sweep_once(_factory(make_db()), engine, repo) == 0
        engine.close_auction.assert_not_awaited()
