"""Arbitration endpoints (admin / CA).

POST /admin/bids/{bid_id}/accept               — declare the winner
POST /admin/bids/{bid_id}/reject               — reject one open bid
POST /admin/listings/{listing_id}/close-auction — resolve an ended auction
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_bidding.application import service as svc
from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_for
from src.bm_gateway.auth.dependencies import get_current_principal
from src.bm_gateway.auth.principal import Principal

router = APIRouter(prefix="/admin", tags=["arbitration"])


@router.post("/bids/{bid_id}/accept")
async def accept_bid(
    bid_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.accept_bid(db, principal, bid_id)
    return success_for(request, result.to_json_dict())


@router.post("/bids/{bid_id}/reject")
async def reject_bid(
    bid_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.reject_bid(db, principal, bid_id)
    return success_for(request, result.to_json_dict())


@router.post("/listings/{listing_id}/close-auction")
async def close_auction(
    listing_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.close_auction(db, principal, listing_id)
    return success_for(request, result.to_json_dict())
