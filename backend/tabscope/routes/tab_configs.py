"""
TabScope Backend — Tab Configuration Routes
=============================================

What:  HTTP surface of the override engine.

    GET     /api/tab-configs                       resolved tabs for the caller
    POST    /api/tab-configs                       create a custom tab
    PATCH   /api/tab-configs/reorder               batch display-order change
    DELETE  /api/tab-configs/reset?scope=          drop the caller's overrides
    PATCH   /api/tab-configs/keys/{key}/visibility hide/show via override
    PATCH   /api/tab-configs/{tab_id}              edit a caller-owned tab
    DELETE  /api/tab-configs/{tab_id}              delete a caller-owned tab

The fixed paths are declared before /{tab_id} so they are not captured by it.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, Query, status

from tabscope.identity import CallerIdentity
from tabscope.routes.dependencies import get_identity, get_tab_store
from tabscope.schemas.tab_config import (
    DeleteResponse,
    ErrorResponse,
    ReorderRequest,
    ReorderResponse,
    ResetResponse,
    TabCreate,
    TabRecord,
    TabUpdate,
    VisibilityChange,
)
from tabscope.scopes import Scope
from tabscope.services.store import TabStore
from tabscope.services.tab_service import tab_config_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tab-configs", tags=["Tab Configurations"])

_ERRORS = {
    400: {"description": "Business rule violated", "model": ErrorResponse},
    403: {"description": "Not allowed for this caller", "model": ErrorResponse},
    404: {"description": "Tab not found", "model": ErrorResponse},
    409: {"description": "Conflicts with existing configuration", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=List[TabRecord],
    summary="Resolve the caller's tabs",
    description=(
        "Merges system defaults with the caller's organization, role and user "
        "overrides. Without an organization header only system defaults apply."
    ),
)
async def list_tabs(
    include_hidden: bool = Query(default=False, description="Also return hidden effective records"),
    identity: CallerIdentity = Depends(get_identity),
    store: TabStore = Depends(get_tab_store),
) -> List[TabRecord]:
    return await tab_config_service.resolve_tabs(store, identity, include_hidden=include_hidden)


@router.post(
    "",
    response_model=TabRecord,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create a custom tab",
)
async def create_tab(
    body: TabCreate,
    identity: CallerIdentity = Depends(get_identity),
    store: TabStore = Depends(get_tab_store),
) -> TabRecord:
    return await tab_config_service.create_custom_tab(store, body, identity)


@router.patch(
    "/reorder",
    response_model=ReorderResponse,
    responses=_ERRORS,
    summary="Reorder caller-owned tabs",
    description="All ids must exist and belong to the caller; otherwise nothing changes.",
)
async def reorder_tabs(
    body: ReorderRequest,
    identity: CallerIdentity = Depends(get_identity),
    store: TabStore = Depends(get_tab_store),
) -> ReorderResponse:
    count = await tab_config_service.reorder(store, body.tabs, identity)
    return ReorderResponse(count=count)


@router.delete(
    "/reset",
    response_model=ResetResponse,
    responses=_ERRORS,
    summary="Reset the caller's overrides at one scope",
)
async def reset_tabs(
    scope: Scope = Query(default=Scope.USER),
    identity: CallerIdentity = Depends(get_identity),
    store: TabStore = Depends(get_tab_store),
) -> ResetResponse:
    deleted = await tab_config_service.reset_overrides(store, scope, identity)
    return ResetResponse(deleted_count=deleted, scope=scope)


@router.patch(
    "/keys/{key}/visibility",
    response_model=TabRecord,
    responses=_ERRORS,
    summary="Show or hide a tab for the caller",
    description=(
        "Writes (or updates) an override at the requested scope. System "
        "defaults are never modified."
    ),
)
async def set_visibility(
    body: VisibilityChange,
    key: str = Path(min_length=1, max_length=100),
    identity: CallerIdentity = Depends(get_identity),
    store: TabStore = Depends(get_tab_store),
) -> TabRecord:
    return await tab_config_service.set_visibility(store, key, body.scope, body.is_visible, identity)


@router.patch(
    "/{tab_id}",
    response_model=TabRecord,
    responses=_ERRORS,
    summary="Edit a caller-owned tab",
)
async def update_tab(
    body: TabUpdate,
    tab_id: int = Path(ge=1),
    identity: CallerIdentity = Depends(get_identity),
    store: TabStore = Depends(get_tab_store),
) -> TabRecord:
    return await tab_config_service.update_custom_tab(store, tab_id, body, identity)


@router.delete(
    "/{tab_id}",
    response_model=DeleteResponse,
    responses=_ERRORS,
    summary="Delete a caller-owned tab",
)
async def delete_tab(
    tab_id: int = Path(ge=1),
    identity: CallerIdentity = Depends(get_identity),
    store: TabStore = Depends(get_tab_store),
) -> DeleteResponse:
    await tab_config_service.delete_custom_tab(store, tab_id, identity)
    return DeleteResponse(id=tab_id)
