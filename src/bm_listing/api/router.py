"""bm_listing REST endpoints.

POST /listings                              — seller creates a listing (unverified)
GET  /listings                              — visible listings, cursor pagination
GET  /listings/mine                         — caller's own listings
GET  /listings/{listing_id}                 — detail (visibility rule applies)
POST /listings/{listing_id}/auction         — set auction window (owner)
POST /listings/{listing_id}/documents       — record an uploaded document URL
DELETE /listings/{listing_id}               — owner withdraws a listing without bids
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_for
from src.bm_gateway.auth.dependencies import get_current_principal
from src.bm_gateway.auth.principal import Principal
from src.bm_listing.application.schemas import (
    AttachDocumentRequest,
    AuctionWindowRequest,
    CreateListingRequest,
)
from src.bm_listing.application.service import ListingApplicationService

router = APIRouter(prefix="/listings", tags=["listings"])

_service = ListingApplicationService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_listing(
    body: CreateListingRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_listing(db, principal, body)
    return success_for(request, result.to_json_dict())


@router.get("")
async def list_listings(
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_listings(db, principal, cursor, limit)
    return success_for(request, result.to_json_dict())


@router.get("/mine")
async def list_my_listings(
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_listings(db, principal, cursor, limit, mine=True)
    return success_for(request, result.to_json_dict())


@router.get("/{listing_id}")
async def get_listing(
    listing_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_listing(db, principal, listing_id)
    return success_for(request, result.to_json_dict())


@router.post("/{listing_id}/auction")
async def set_auction_window(
    listing_id: str,
    body: AuctionWindowRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.set_auction_window(db, principal, listing_id, body)
    return success_for(request, result.to_json_dict())


@router.post("/{listing_id}/documents", status_code=status.HTTP_201_CREATED)
async def attach_document(
    listing_id: str,
    body: AttachDocumentRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.attach_document(db, principal, listing_id, body)
    return success_for(request, result.to_json_dict())


@router.delete("/{listing_id}")
async def delete_listing(
    listing_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.delete_listing(db, principal, listing_id)
    return success_for(request, result)
