"""
TabScope Backend — Route Dependencies
=======================================

What:  FastAPI dependencies shared by the tab routes.

Identity headers (set by the authenticating gateway in front of the API):
    X-Organization-Id   tenant the caller acts in
    X-Role-Id           role assignment inside that tenant
    X-User-Id           the caller
    X-User-Role         role name; admin capability when listed in
                        settings.admin_roles
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from tabscope.config import settings
from tabscope.database import get_db_session
from tabscope.identity import CallerIdentity
from tabscope.services.store import SqlAlchemyTabStore, TabStore


async def get_identity(
    organization_id: Optional[int] = Header(default=None, alias="X-Organization-Id"),
    role_id: Optional[int] = Header(default=None, alias="X-Role-Id"),
    user_id: Optional[int] = Header(default=None, alias="X-User-Id"),
    user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
) -> CallerIdentity:
    is_admin = bool(user_role) and user_role.strip().lower() in settings.admin_roles_set
    return CallerIdentity(
        organization_id=organization_id,
        role_id=role_id,
        user_id=user_id,
        is_admin=is_admin,
    )


async def get_tab_store(db: AsyncSession = Depends(get_db_session)) -> TabStore:
    """The request's TabStore, bound to the per-request session."""
    return SqlAlchemyTabStore(db)
