"""
TabScope Backend — TabConfig SQLAlchemy Model
===============================================

What:  ORM model for the `tab_configs` table.
Who:   Read and written only by SqlAlchemyTabStore; Alembic reads it for
       migrations.

Table Design:
    - Integer primary key assigned by the database
    - (key, scope, scope_owner_id) unique: one record per key per owner
    - scope_owner_id is NULL for system records
    - organization_id records the tenant a role/user/org record belongs to;
      the role ownership check compares it with the caller's tenant
    - settings is a JSON object, opaque to the engine

Indexes:
    idx_tab_configs_scope_owner: the candidate query filters on
    (scope, scope_owner_id) for every resolution.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from tabscope.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TabConfig(Base):
    """
    One navigation entry at one scope.

    Lifecycle:
        1. System rows are inserted by seeding and never change afterwards
        2. Organization/role/user rows are created by the override writer
           or as custom tabs
        3. Those rows are updated in place and deleted explicitly
    """

    __tablename__ = "tab_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Logical tab identity, stable across scopes",
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    content_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="builtin_component",
        server_default=text("'builtin_component'"),
    )
    settings: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # ── Scope ─────────────────────────────────────────────────────────────
    scope: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="system, organization, role or user",
    )
    scope_owner_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Owning organization/role/user id; NULL for system scope",
    )
    organization_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Tenant the record belongs to; NULL for system scope",
    )

    # ── Flags ─────────────────────────────────────────────────────────────
    is_visible: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    is_mandatory: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    is_system_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    display_order: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("key", "scope", "scope_owner_id", name="uq_tab_configs_key_scope_owner"),
        Index("idx_tab_configs_scope_owner", "scope", "scope_owner_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TabConfig(id={self.id}, key='{self.key}', scope='{self.scope}', "
            f"owner={self.scope_owner_id}, visible={self.is_visible})>"
        )
