"""Pending registrations awaiting OTP confirmation, kept in Redis with a TTL.

Key pattern: "pending_user:{email}" → JSON
    {"name", "email", "password_hash", "role", "otp_hash"}
Expiry of the key is the OTP expiry.
"""

import json
from dataclasses import asdict, dataclass

import redis.asyncio as aioredis

from config.settings import settings

_KEY_PREFIX = "pending_user:"


@dataclass
class PendingRegistration:
    name: str
    email: str
    password_hash: str
    role: str
    otp_hash: str


def _key(email: str) -> str:
    return f"{_KEY_PREFIX}{email.lower()}"


class PendingRegistrationStore:
    def __init__(self, ttl_seconds: int | None = None) -> None:
        self._ttl = ttl_seconds or settings.OTP_EXPIRE_MINUTES * 60

    async def put(self, redis: aioredis.Redis, pending: PendingRegistration) -> None:
        await redis.set(_key(pending.email), json.dumps(asdict(pending)), ex=self._ttl)

    async def get(self, redis: aioredis.Redis, email: str) -> PendingRegistration | None:
        raw = await redis.get(_key(email))
        if raw is None:
            return None
        return PendingRegistration(**json.loads(raw))

    async def delete(self, redis: aioredis.Redis, email: str) -> None:
        await redis.delete(_key(email))
