"""
TabScope Backend — Pydantic Schemas
=====================================

What:  The engine's record snapshot plus the API request/response contracts.
How:   `TabRecord` is a frozen model built from ORM rows (from_attributes);
       the services pass these snapshots around and derive changed copies
       with `model_copy(update=...)`. Request models validate structure only;
       business rules live in the services.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from tabscope.scopes import Scope


# ══════════════════════════════════════════════════════════════════════════
# Engine Snapshot
# ══════════════════════════════════════════════════════════════════════════


class TabRecord(BaseModel):
    """
    Immutable snapshot of one `tab_configs` row.

    `id` is None only for hypothetical records built by the visibility
    guard while simulating a pending change.
    """

    id: Optional[int] = None
    key: str
    label: str
    icon: Optional[str] = None
    content_type: str = "builtin_component"
    settings: Dict[str, Any] = Field(default_factory=dict)
    category: Optional[str] = None
    scope: Scope
    scope_owner_id: Optional[int] = None
    organization_id: Optional[int] = None
    is_visible: bool = True
    is_mandatory: bool = False
    is_system_default: bool = False
    display_order: int = 0
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "frozen": True}

    def display_metadata(self) -> Dict[str, Any]:
        """Fields copied when an override is cloned from this record."""
        return {
            "label": self.label,
            "icon": self.icon,
            "content_type": self.content_type,
            "settings": dict(self.settings),
            "category": self.category,
            "display_order": self.display_order,
        }


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class TabCreate(BaseModel):
    """Body of POST /api/tab-configs. Owner ids come from the caller identity."""

    key: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9_-]*$")
    label: str = Field(min_length=1, max_length=255)
    icon: Optional[str] = Field(default=None, max_length=100)
    content_type: str = Field(default="builtin_component", max_length=50)
    settings: Dict[str, Any] = Field(default_factory=dict)
    category: Optional[str] = Field(default=None, max_length=50)
    scope: Scope = Field(default=Scope.USER)
    is_visible: bool = True
    is_mandatory: bool = False
    display_order: int = Field(default=0, ge=0)


class TabUpdate(BaseModel):
    """Body of PATCH /api/tab-configs/{id}. Omitted fields are left unchanged."""

    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    icon: Optional[str] = Field(default=None, max_length=100)
    content_type: Optional[str] = Field(default=None, max_length=50)
    settings: Optional[Dict[str, Any]] = None
    category: Optional[str] = Field(default=None, max_length=50)
    is_visible: Optional[bool] = None


class VisibilityChange(BaseModel):
    """Body of PATCH /api/tab-configs/keys/{key}/visibility."""

    is_visible: bool
    scope: Scope = Field(default=Scope.USER, description="Scope the override is written at")


class ReorderItem(BaseModel):
    id: int = Field(ge=1)
    display_order: int = Field(ge=0)


class ReorderRequest(BaseModel):
    tabs: List[ReorderItem]


class ApplyPresetRequest(BaseModel):
    scope: Scope = Field(default=Scope.USER)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ReorderResponse(BaseModel):
    message: str = "Tab order updated successfully"
    count: int


class ResetResponse(BaseModel):
    message: str = "Tab configuration reset to defaults"
    deleted_count: int
    scope: Scope


class DeleteResponse(BaseModel):
    message: str = "Tab deleted successfully"
    id: int


class PresetItemResponse(BaseModel):
    key: str
    is_visible: bool
    display_order: int


class PresetResponse(BaseModel):
    name: str
    description: str
    icon: str
    tabs: List[PresetItemResponse]


class ErrorResponse(BaseModel):
    """Standardized error body for all API errors."""

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str
    database: str = Field(description="Database connectivity: connected, disconnected")
    system_tabs: int = Field(description="Number of seeded system-default tabs")
    uptime_seconds: float

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in {"healthy", "unhealthy"}:
            raise ValueError(f"Invalid status '{v}'")
        return v
