"""Wishlist REST API (buyers).

GET    /wishlist                 — saved listings with live bid state
POST   /wishlist                 — save a listing
DELETE /wishlist/{listing_id}    — remove (idempotent)
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_for
from src.bm_gateway.auth.dependencies import get_current_principal
from src.bm_gateway.auth.principal import Principal
from src.bm_wishlist.application.schemas import AddWishlistRequest
from src.bm_wishlist.application.service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["wishlist"])
_service = WishlistService()


@router.get("")
async def view_wishlist(
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.view(db, principal)
    return success_for(request, result.to_json_dict())


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    body: AddWishlistRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.add(db, principal, body.listing_id, body.notes)
    return success_for(request, result.to_json_dict())


@router.delete("/{listing_id}")
async def remove_from_wishlist(
    listing_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    removed = await _service.remove(db, principal, listing_id)
    return success_for(request, {"listingId": listing_id, "removed": removed})
