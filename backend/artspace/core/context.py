"""
Per-request boundary values.

Tenant and identity are resolved once at the HTTP edge and handed to the
booking core as plain immutable values. Services never look them up on
their own and never store them in module state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet

from .config import settings


def normalize_role(role: str) -> str:
    """Canonical spelling of a role name, shared by requesters and pricing config."""
    return role.strip().lower()


@dataclass(frozen=True)
class TenantContext:
    """The organization a request operates in."""

    organization_id: str
    timezone: str = "UTC"
    currency: str = settings.default_currency


@dataclass(frozen=True)
class Requester:
    """Identity supplied by the external auth provider: an opaque id and a role."""

    id: str
    role: str

    def is_admin(self, admin_roles: AbstractSet[str] | None = None) -> bool:
        roles = admin_roles if admin_roles is not None else settings.admin_role_set
        return self.role in roles


SYSTEM_REQUESTER = Requester(id="system", role="system")
