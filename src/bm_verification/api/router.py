# src/bm_verification/api/router.py
"""Verification REST API (admin / CA).

GET  /admin/listings/pending                — unverified listings, newest first
POST /admin/listings/{listing_id}/verify    — approve
POST /admin/listings/{listing_id}/reject    — delete with cascade
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_for
from src.bm_gateway.auth.dependencies import get_current_principal
from src.bm_gateway.auth.principal import Principal
from src.bm_verification.application.service import VerificationService

router = APIRouter(prefix="/admin/listings", tags=["verification"])
_service = VerificationService()


@router.get("/pending")
async def list_pending(
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    listings = await _service.list_pending(db, principal)
    return success_for(request, {"items": [m.to_json_dict() for m in listings]})


@router.post("/{listing_id}/verify")
async def verify_listing(
    listing_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.verify(db, principal, listing_id)
    return success_for(request, result.to_json_dict())


@router.post("/{listing_id}/reject")
async def reject_listing(
    listing_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.reject(db, principal, listing_id)
    return success_for(request, result)
