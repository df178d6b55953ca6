"""Create tab_configs table

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Creates `tab_configs`, holding system defaults and every
       organization, role and user override.

Rollback: downgrade() drops the table (all overrides are lost; system tabs
can be re-seeded with `tabscope-seed`).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tab_configs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("key", sa.String(100), nullable=False, comment="Logical tab identity, stable across scopes"),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("icon", sa.String(100), nullable=True),
        sa.Column(
            "content_type",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'builtin_component'"),
        ),
        sa.Column(
            "settings",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("scope", sa.String(20), nullable=False, comment="system, organization, role or user"),
        sa.Column(
            "scope_owner_id",
            sa.Integer(),
            nullable=True,
            comment="Owning organization/role/user id; NULL for system scope",
        ),
        sa.Column(
            "organization_id",
            sa.Integer(),
            nullable=True,
            comment="Tenant the record belongs to; NULL for system scope",
        ),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_system_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key", "scope", "scope_owner_id", name="uq_tab_configs_key_scope_owner"),
        sa.CheckConstraint(
            "scope IN ('system', 'organization', 'role', 'user')",
            name="ck_tab_configs_scope",
        ),
    )

    op.create_index("idx_tab_configs_scope_owner", "tab_configs", ["scope", "scope_owner_id"])

    # NULL owners never collide under the unique constraint; system keys need their own
    op.create_index(
        "uq_tab_configs_system_key",
        "tab_configs",
        ["key"],
        unique=True,
        postgresql_where=sa.text("scope = 'system'"),
    )


def downgrade() -> None:
    op.drop_index("uq_tab_configs_system_key", table_name="tab_configs")
    op.drop_index("idx_tab_configs_scope_owner", table_name="tab_configs")
    op.drop_table("tab_configs")
