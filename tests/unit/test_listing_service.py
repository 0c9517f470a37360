"""Unit tests for ListingApplicationService (mocked repository)."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.bm_bidding.engine.locks import ListingLockRegistry
from src.bm_common.errors import (
    AuctionLockedError,
    ListingInUseError,
    ListingNotFoundError,
    NotListingOwnerError,
    RoleNotAllowedError,
)
from src.bm_listing.application.schemas import (
    AttachDocumentRequest,
    AuctionWindowRequest,
    CreateListingRequest,
    cursor_encode,
)
from src.bm_listing.application.service import ListingApplicationService
from tests.unit.factories import ADMIN, BUYER, SELLER, make_db, make_listing


@pytest.fixture
def repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def locks() -> ListingLockRegistry:
    return ListingLockRegistry()


@pytest.fixture
def service(repo: AsyncMock, locks: ListingLockRegistry) -> ListingApplicationService:
    return ListingApplicationService(repo=repo, locks=locks)


def _window_request(starting_bid: int = 50_000) -> AuctionWindowRequest:
    start = datetime.now(UTC) + timedelta(hours=1)
    return AuctionWindowRequest(
        starting_bid_amount=starting_bid, start_time=start, end_time=start + timedelta(days=3)
    )


class TestCreateListing:
    async def test_seller_creates_unverified_listing(self, service, repo) -> None:
        repo.get_by_id.return_value = None
        db = make_db()
        req = CreateListingRequest(
            company_name="Acme Pvt Ltd", cin="U12345MH2020PTC123456", registration_number="R-1"
        )

        out = await service.create_listing(db, SELLER, req)

        assert out.id.startswith("LST-")
        assert out.seller_id == SELLER.id
        assert out.verified is False
        assert out.verification_status == "pending"
        assert out.highest_bid == 0
        repo.create.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_buyer_cannot_create(self, service, repo) -> None:
        req = CreateListingRequest(company_name="X", cin="C", registration_number="R")
        with pytest.raises(RoleNotAllowedError):
            await service.create_listing(make_db(), BUYER, req)
        repo.create.assert_not_awaited()


class TestSetAuctionWindow:
    async def test_owner_sets_window(self, service, repo) -> None:
        repo.get_for_update.return_value = make_listing(verified=False)
        repo.count_bids.return_value = 0
        db = make_db()

        out = await service.set_auction_window(db, SELLER, "LST-0000000000000000001", _window_request())

        assert out.auction_details is not None
        assert out.auction_details.starting_bid_amount == 50_000
        repo.set_auction_window.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_locked_once_bids_exist(self, service, repo) -> None:
        repo.get_for_update.return_value = make_listing()
        repo.count_bids.return_value = 2
        db = make_db()

        with pytest.raises(AuctionLockedError):
            await service.set_auction_window(db, SELLER, "LST-0000000000000000001", _window_request())
        repo.set_auction_window.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_locked_once_resolved(self, service, repo) -> None:
        repo.get_for_update.return_value = make_listing(resolved_at=datetime.now(UTC))
        repo.count_bids.return_value = 0
        with pytest.raises(AuctionLockedError):
            await service.set_auction_window(
                make_db(), SELLER, "LST-0000000000000000001", _window_request()
            )

    async def test_other_seller_refused(self, service, repo) -> None:
        repo.get_for_update.return_value = make_listing(seller_id="someone-else")
        with pytest.raises(NotListingOwnerError):
            await service.set_auction_window(
                make_db(), SELLER, "LST-0000000000000000001", _window_request()
            )

    async def test_missing_listing(self, service, repo) -> None:
        repo.get_for_update.return_value = None
        with pytest.raises(ListingNotFoundError):
            await service.set_auction_window(make_db(), SELLER, "LST-missing", _window_request())


class TestDeleteListing:
    async def test_owner_withdraws_listing_without_bids(self, service, repo, locks) -> None:
        repo.get_for_update.return_value = make_listing(verified=False)
        repo.count_bids.return_value = 0
        db = make_db()

        result = await service.delete_listing(db, SELLER, "LST-0000000000000000001")

        assert result == {"listingId": "LST-0000000000000000001", "deleted": True}
        repo.delete.assert_awaited_once_with(db, "LST-0000000000000000001")
        db.commit.assert_awaited_once()
        assert len(locks) == 0

    async def test_refused_once_bids_exist(self, service, repo) -> None:
        repo.get_for_update.return_value = make_listing()
        repo.count_bids.return_value = 1
        db = make_db()

        with pytest.raises(ListingInUseError) as exc_info:
            await service.delete_listing(db, SELLER, "LST-0000000000000000001")

        assert exc_info.value.code == 2005
        repo.delete.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_refused_once_resolved(self, service, repo) -> None:
        repo.get_for_update.return_value = make_listing(resolved_at=datetime.now(UTC))
        repo.count_bids.return_value = 0
        with pytest.raises(ListingInUseError):
            await service.delete_listing(make_db(), SELLER, "LST-0000000000000000001")
        repo.delete.assert_not_awaited()

    async def test_other_seller_refused(self, service, repo) -> None:
        repo.get_for_update.return_value = make_listing(seller_id="someone-else")
        with pytest.raises(NotListingOwnerError):
            await service.delete_listing(make_db(), SELLER, "LST-0000000000000000001")
        repo.delete.assert_not_awaited()

    @pytest.mark.parametrize("principal", [BUYER, ADMIN])
    async def test_only_sellers_withdraw(self, service, repo, principal) -> None:
        with pytest.raises(RoleNotAllowedError):
            await service.delete_listing(make_db(), principal, "LST-0000000000000000001")
        repo.get_for_update.assert_not_awaited()

    async def test_missing_listing(self, service, repo, locks) -> None:
        repo.get_for_update.return_value = None
        with pytest.raises(ListingNotFoundError):
            await service.delete_listing(make_db(), SELLER, "LST-missing")
        assert len(locks) == 0


class TestAttachDocument:
    async def test_owner_attaches(self, service, repo) -> None:
        repo.get_by_id.return_value = make_listing()
        repo.list_documents.return_value = []
        db = make_db()
        req = AttachDocumentRequest(
            type="financial", name="FY24.pdf", url="https://cdn.example.com/fy24.pdf"
        )

        await service.attach_document(db, SELLER, "LST-0000000000000000001", req)

        document = repo.add_document.await_args.args[1]
        assert document.id.startswith("DOC-")
        assert document.doc_type == "financial"
        db.commit.assert_awaited_once()

    async def test_buyer_refused(self, service, repo) -> None:
        repo.get_by_id.return_value = make_listing()
        req = AttachDocumentRequest(type="image", name="logo", url="https://cdn.example.com/l.png")
        with pytest.raises(NotListingOwnerError):
            await service.attach_document(make_db(), BUYER, "LST-0000000000000000001", req)


class TestReads:
    async def test_unverified_listing_hidden_from_buyer(self, service, repo) -> None:
        repo.get_by_id.return_value = make_listing(verified=False)
        with pytest.raises(ListingNotFoundError):
            await service.get_listing(make_db(), BUYER, "LST-0000000000000000001")

    async def test_reviewer_sees_unverified_listing(self, service, repo) -> None:
        repo.get_by_id.return_value = make_listing(verified=False)
        repo.list_documents.return_value = []
        out = await service.get_listing(make_db(), ADMIN, "LST-0000000000000000001")
        assert out.verified is False

    async def test_buyer_listing_is_verified_only(self, service, repo) -> None:
        repo.list_listings.return_value = []
        db = make_db()
        await service.list_listings(db, BUYER, None, 20)
        repo.list_listings.assert_awaited_once_with(db, True, None, None, 21)

    async def test_mine_filters_by_owner(self, service, repo) -> None:
        repo.list_listings.return_value = []
        db = make_db()
        await service.list_listings(db, SELLER, None, 20, mine=True)
        repo.list_listings.assert_awaited_once_with(db, False, SELLER.id, None, 21)

    async def test_pagination_cursor(self, service, repo) -> None:
        repo.list_listings.return_value = [
            make_listing(id=f"LST-{i:019d}") for i in (3, 2, 1)
        ]
        page = await service.list_listings(make_db(), BUYER, None, 2)

        assert page.has_more is True
        assert [item.id for item in page.items] == [f"LST-{3:019d}", f"LST-{2:019d}"]
        assert page.next_cursor == cursor_encode(f"LST-{2:019d}")

    async def test_last_page_has_no_cursor(self, service, repo) -> None:
        repo.list_listings.return_value = [make_listing()]
        page = await service.list_listings(make_db(), BUYER, None, 20)
        assert page.has_more is False
        assert page.next_cursor is None
