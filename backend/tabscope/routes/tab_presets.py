"""
TabScope Backend — Specialty Preset Routes
============================================

    GET   /api/tab-presets                 list the preset catalog
    POST  /api/tab-presets/{name}/apply    write a preset as overrides
"""

from typing import List

from fastapi import APIRouter, Depends

from tabscope.identity import CallerIdentity
from tabscope.routes.dependencies import get_identity, get_tab_store
from tabscope.schemas.tab_config import (
    ApplyPresetRequest,
    ErrorResponse,
    PresetItemResponse,
    PresetResponse,
    TabRecord,
)
from tabscope.services.presets import SPECIALTY_PRESETS
from tabscope.services.store import TabStore
from tabscope.services.tab_service import tab_config_service

router = APIRouter(prefix="/api/tab-presets", tags=["Tab Presets"])


@router.get("", response_model=List[PresetResponse], summary="List specialty presets")
async def list_presets() -> List[PresetResponse]:
    return [
        PresetResponse(
            name=preset.name,
            description=preset.description,
            icon=preset.icon,
            tabs=[
                PresetItemResponse(key=i.key, is_visible=i.is_visible, display_order=i.display_order)
                for i in preset.items
            ],
        )
        for preset in SPECIALTY_PRESETS
    ]


@router.post(
    "/{name}/apply",
    response_model=List[TabRecord],
    responses={
        403: {"description": "Not allowed for this caller", "model": ErrorResponse},
        404: {"description": "Unknown preset", "model": ErrorResponse},
        409: {"description": "Preset would hide every tab", "model": ErrorResponse},
    },
    summary="Apply a specialty preset",
)
async def apply_preset(
    name: str,
    body: ApplyPresetRequest,
    identity: CallerIdentity = Depends(get_identity),
    store: TabStore = Depends(get_tab_store),
) -> List[TabRecord]:
    return await tab_config_service.apply_preset(store, name, body.scope, identity)
