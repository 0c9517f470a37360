"""User domain service: OTP registration, login, refresh.

Registration is two-step: ``register`` parks the request in Redis and emails
an OTP; ``verify_otp`` creates the users row. Admin accounts are never
self-registered.
"""

import logging

import redis.asyncio as aioredis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import Role
from src.bm_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidRefreshTokenError,
    NoPendingRegistrationError,
    RegistrationRoleError,
)
from src.bm_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.bm_gateway.auth.password import (
    generate_otp,
    hash_otp,
    hash_password,
    verify_otp_hash,
    verify_password,
)
from src.bm_gateway.user.db_models import UserModel
from src.bm_gateway.user.otp_store import PendingRegistration, PendingRegistrationStore
from src.bm_notify.email_client import EmailClient

logger = logging.getLogger(__name__)

SELF_REGISTER_ROLES = frozenset({Role.BUYER, Role.SELLER, Role.CA})


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    def __init__(
        self,
        email_client: EmailClient | None = None,
        store: PendingRegistrationStore | None = None,
    ) -> None:
        self._email = email_client or EmailClient()
        self._store = store or PendingRegistrationStore()

    async def _get_by_email(self, email: str, db: AsyncSession) -> UserModel | None:
        result = await db.execute(select(UserModel).where(UserModel.email == email.lower()))
        return result.scalar_one_or_none()

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Role,
        db: AsyncSession,
        redis: aioredis.Redis,
    ) -> None:
        """Park a pending registration and email its OTP.

        If the OTP email cannot be sent the pending entry is discarded and
        EmailDeliveryError propagates to the caller.
        """
        if role not in SELF_REGISTER_ROLES:
            raise RegistrationRoleError(role.value)
        if await self._get_by_email(email, db) is not None:
            raise EmailExistsError()

        otp = generate_otp()
        pending = PendingRegistration(
            name=name,
            email=email.lower(),
            password_hash=hash_password(password),
            role=role.value,
            otp_hash=hash_otp(otp),
        )
        await self._store.put(redis, pending)
        try:
            await self._email.send_otp(pending.email, otp)
        except Exception:
            await self._store.delete(redis, pending.email)
            raise

    async def resend_otp(self, email: str, redis: aioredis.Redis) -> None:
        pending = await self._store.get(redis, email)
        if pending is None:
            raise NoPendingRegistrationError(email)
        otp = generate_otp()
        pending.otp_hash = hash_otp(otp)
        await self._store.put(redis, pending)
        await self._email.send_otp(pending.email, otp)

    async def verify_otp(
        self,
        email: str,
        otp: str,
        db: AsyncSession,
        redis: aioredis.Redis,
    ) -> UserModel:
        """Create the user once the OTP matches. Caller commits."""
        pending = await self._store.get(redis, email)
        if pending is None:
            raise NoPendingRegistrationError(email)
        if not verify_otp_hash(otp, pending.otp_hash):
            raise InvalidOtpError()
        # Someone may have completed the same email in the meantime
        if await self._get_by_email(pending.email, db) is not None:
            await self._store.delete(redis, pending.email)
            raise EmailExistsError()

        user = UserModel(
            name=pending.name,
            email=pending.email,
            password_hash=pending.password_hash,
            role=pending.role,
            is_active=True,
        )
        db.add(user)
        await db.flush()
        await self._store.delete(redis, pending.email)
        logger.info("User registered id=%s role=%s", user.id, user.role)
        return user

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate and return (user, access_token, refresh_token).

        Unknown email and wrong password both raise InvalidCredentialsError.
        """
        user = await self._get_by_email(email, db)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id), user.role),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str, db: AsyncSession) -> str:
        """Validate a refresh token and issue a new access token."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id = str(payload["sub"])
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidRefreshTokenError()
        if not user.is_active:
            raise AccountDisabledError()
        return create_access_token(user_id, user.role)
