"""
Identity context passed explicitly into every core call.

The HTTP layer authenticates the caller and builds an ``IdentityContext``;
the kernel never resolves "the current organization" from ambient state.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class IdentityContext:
    """Who is calling, and which organization they act within."""
    user_id: UUID
    organization_id: UUID | None = None
    is_super_admin: bool = False

    def can_access_organization(self, organization_id: UUID | None) -> bool:
        if self.is_super_admin:
            return True
        return self.organization_id is not None and self.organization_id == organization_id
