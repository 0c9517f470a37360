"""bm_bidding REST endpoints for bidders.

POST   /bids                         — submit a bid (buyer)
PATCH  /bids/{bid_id}                — raise an open bid
DELETE /bids/{bid_id}                — cancel an open bid
GET    /bids/mine                    — caller's bids, newest first
GET    /bids/won                     — caller's won bids
GET    /bids/listing/{listing_id}    — bids on a visible listing
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.application import service as svc
from src.bm_bidding.application.schemas import AmendBidRequest, SubmitBidRequest
from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_for
from src.bm_gateway.auth.dependencies import get_current_principal
from src.bm_gateway.auth.principal import Principal

router = APIRouter(prefix="/bids", tags=["bids"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_bid(
    body: SubmitBidRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.submit_bid(db, principal, body)
    return success_for(request, result.to_json_dict())


@router.get("/mine")
async def list_my_bids(
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.list_my_bids(db, principal)
    return success_for(request, result.to_json_dict())


@router.get("/won")
async def list_won_bids(
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.list_won_bids(db, principal)
    return success_for(request, result.to_json_dict())


@router.get("/listing/{listing_id}")
async def list_bids_for_listing(
    listing_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.list_bids_for(db, principal, listing_id)
    return success_for(request, result.to_json_dict())


@router.patch("/{bid_id}")
async def amend_bid(
    bid_id: str,
    body: AmendBidRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.amend_bid(db, principal, bid_id, body)
    return success_for(request, result.to_json_dict())


@router.delete("/{bid_id}")
async def cancel_bid(
    bid_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await svc.cancel_bid(db, principal, bid_id)
    return success_for(request, {"bidId": bid_id, "cancelled": True})
