"""Authenticated principal and the capability check.

Every core operation takes a ``Principal`` and calls ``require_roles`` instead
of comparing role strings inline.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from src.bm_common.enums import Role
from src.bm_common.errors import RoleNotAllowedError


@dataclass(frozen=True)
class Principal:
    id: str
    role: Role
    email: str = ""

    @property
    def is_reviewer(self) -> bool:
        return self.role in (Role.ADMIN, Role.CA)


def require_roles(principal: Principal, roles: Iterable[Role]) -> Principal:
    """Raise RoleNotAllowedError unless the principal holds one of ``roles``."""
    if principal.role not in frozenset(roles):
        raise RoleNotAllowedError(principal.role.value)
    return principal
