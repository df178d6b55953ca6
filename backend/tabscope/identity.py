"""
TabScope Backend — Caller Identity
====================================

What:  The already-authenticated identity a request acts as.
Who:   Built by the route layer from gateway headers; passed explicitly into
       every service call.
"""

from dataclasses import dataclass
from typing import Optional

from tabscope.scopes import Scope


@dataclass(frozen=True)
class CallerIdentity:
    """
    Attributes:
        organization_id: Tenant the caller is acting in (None = no tenant context)
        role_id:         Role assignment inside that tenant, if any
        user_id:         The caller's user id, if any
        is_admin:        Whether the caller holds the administrative capability
    """

    organization_id: Optional[int] = None
    role_id: Optional[int] = None
    user_id: Optional[int] = None
    is_admin: bool = False

    @property
    def has_organization(self) -> bool:
        return self.organization_id is not None

    def owner_for(self, scope: Scope) -> Optional[int]:
        """The scope_owner_id a record written at `scope` would carry."""
        if scope is Scope.ORGANIZATION:
            return self.organization_id
        if scope is Scope.ROLE:
            return self.role_id
        if scope is Scope.USER:
            return self.user_id
        return None
