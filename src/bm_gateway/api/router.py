"""Auth API router: register → verify-otp, resend-otp, login, refresh, me.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bm_common.database import get_db_session
from src.bm_common.redis_client import get_redis
from src.bm_common.response import ApiResponse, success_response
from src.bm_gateway.auth.dependencies import get_current_principal
from src.bm_gateway.auth.principal import Principal
from src.bm_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    PendingRegistrationResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    ResendOtpRequest,
    UserInfo,
    VerifyOtpRequest,
)
from src.bm_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


@router.post(
    "/register",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ApiResponse,
    summary="Start registration (emails an OTP)",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    redis = await get_redis()
    await _service.register(body.name, body.email, body.password, body.role, db, redis)

    data = PendingRegistrationResponse(
        email=body.email.lower(), expires_in=settings.OTP_EXPIRE_MINUTES * 60
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "OTP sent to email"
    return resp


@router.post(
    "/resend-otp",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Re-issue the registration OTP",
)
async def resend_otp(request: Request, body: ResendOtpRequest) -> ApiResponse:
    redis = await get_redis()
    await _service.resend_otp(body.email, redis)
    resp = success_response(None)
    resp.request_id = _get_request_id(request)
    resp.message = "OTP re-sent"
    return resp


@router.post(
    "/verify-otp",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Complete registration",
)
async def verify_otp(
    request: Request,
    body: VerifyOtpRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    redis = await get_redis()
    async with db.begin():
        user = await _service.verify_otp(body.email, body.otp, db, redis)

    data = UserInfo(user_id=str(user.id), name=user.name, email=user.email, role=user.role)
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "User verified and registered successfully"
    return resp


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User login",
)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.email, body.password, db)

    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="Bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=UserInfo(user_id=str(user.id), name=user.name, email=user.email, role=user.role),
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Login successful"
    return resp


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Refresh access token",
)
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token, db)

    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Token refreshed"
    return resp


@router.get("/me", response_model=ApiResponse, summary="Current principal")
async def me(
    request: Request,
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse:
    resp = success_response(
        {"user_id": principal.id, "role": principal.role.value, "email": principal.email}
    )
    resp.request_id = _get_request_id(request)
    return resp
