"""
TabScope Backend — Tab Store (Persistence Port + SQLAlchemy Adapter)
======================================================================

What:  The only path between the engine and durable storage.
How:   `TabStore` is the abstract contract (filtered reads, insert, update,
       delete, per-key lock). `SqlAlchemyTabStore` implements it over the
       request's AsyncSession and returns immutable `TabRecord` snapshots,
       never live ORM rows.
Who:   Constructed per request by the route dependencies; passed into every
       TabConfigService call.

Transactions:
    Writes are flushed, not committed. The session dependency commits once
    the request succeeds, so a request's reads and writes form one unit.

Errors:
    SQLAlchemyError → DatabaseError (generic message, details logged)
    IntegrityError on insert → DuplicateKeyError (unique (key, scope, owner))
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy import and_, delete, func, or_, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tabscope.exceptions import DatabaseError, DuplicateKeyError, NotFoundError
from tabscope.models.tab_config import TabConfig
from tabscope.schemas.tab_config import TabRecord
from tabscope.scopes import Scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnerSelector:
    """Records at `scope` owned by `owner_id`.

    For Scope.SYSTEM the owner is ignored and only system defaults match.
    When `organization_id` is set, records of other tenants are excluded.
    """

    scope: Scope
    owner_id: Optional[int] = None
    organization_id: Optional[int] = None

    def clause(self):
        if self.scope is Scope.SYSTEM:
            return and_(
                TabConfig.scope == Scope.SYSTEM.value,
                TabConfig.is_system_default.is_(True),
            )
        conditions = [
            TabConfig.scope == self.scope.value,
            TabConfig.scope_owner_id == self.owner_id,
        ]
        if self.organization_id is not None:
            conditions.append(TabConfig.organization_id == self.organization_id)
        return and_(*conditions)


class TabStore(ABC):
    """
    Abstract persistence contract consumed by the engine.

    Implementations must return `TabRecord` snapshots and must make every
    single write atomic. `lock_key` serializes concurrent writers touching
    the same key until the surrounding transaction ends.
    """

    @abstractmethod
    async def find_candidates(self, selectors: Sequence[OwnerSelector]) -> List[TabRecord]:
        """Records matching any selector, ordered by display_order then key."""
        ...

    @abstractmethod
    async def get(self, tab_id: int) -> Optional[TabRecord]:
        ...

    @abstractmethod
    async def get_many(self, tab_ids: Iterable[int]) -> List[TabRecord]:
        """Records for the ids that exist; unknown ids are simply absent."""
        ...

    @abstractmethod
    async def find_one(self, key: str, scope: Scope, owner_id: Optional[int]) -> Optional[TabRecord]:
        ...

    @abstractmethod
    async def system_keys(self) -> Set[str]:
        ...

    @abstractmethod
    async def insert(self, fields: Dict[str, Any]) -> TabRecord:
        ...

    @abstractmethod
    async def update(self, tab_id: int, fields: Dict[str, Any]) -> TabRecord:
        ...

    @abstractmethod
    async def delete(self, tab_id: int) -> None:
        ...

    @abstractmethod
    async def delete_owned(self, selector: OwnerSelector) -> int:
        """Deletes every non-system record matching `selector`; returns the count."""
        ...

    @abstractmethod
    async def lock_key(self, key: str) -> None:
        ...

    @abstractmethod
    async def count_system_defaults(self) -> int:
        ...


class SqlAlchemyTabStore(TabStore):
    """TabStore over a request-scoped AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find_candidates(self, selectors: Sequence[OwnerSelector]) -> List[TabRecord]:
        if not selectors:
            return []
        query = (
            select(TabConfig)
            .where(or_(*(selector.clause() for selector in selectors)))
            .order_by(TabConfig.display_order, TabConfig.key)
        )
        return await self._fetch(query, "find_candidates")

    async def get(self, tab_id: int) -> Optional[TabRecord]:
        rows = await self._fetch(select(TabConfig).where(TabConfig.id == tab_id), "get")
        return rows[0] if rows else None

    async def get_many(self, tab_ids: Iterable[int]) -> List[TabRecord]:
        ids = list(tab_ids)
        if not ids:
            return []
        return await self._fetch(select(TabConfig).where(TabConfig.id.in_(ids)), "get_many")

    async def find_one(self, key: str, scope: Scope, owner_id: Optional[int]) -> Optional[TabRecord]:
        owner_clause = (
            TabConfig.scope_owner_id.is_(None)
            if owner_id is None
            else TabConfig.scope_owner_id == owner_id
        )
        query = select(TabConfig).where(
            TabConfig.key == key,
            TabConfig.scope == Scope(scope).value,
            owner_clause,
        )
        rows = await self._fetch(query, "find_one")
        return rows[0] if rows else None

    async def system_keys(self) -> Set[str]:
        query = select(TabConfig.key).where(
            TabConfig.scope == Scope.SYSTEM.value,
            TabConfig.is_system_default.is_(True),
        )
        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as e:
            raise self._wrap(e, "system_keys")
        return set(result.scalars().all())

    async def count_system_defaults(self) -> int:
        query = select(func.count(TabConfig.id)).where(
            TabConfig.scope == Scope.SYSTEM.value,
            TabConfig.is_system_default.is_(True),
        )
        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as e:
            raise self._wrap(e, "count_system_defaults")
        return result.scalar() or 0

    # ── Writes ────────────────────────────────────────────────────────────

    async def insert(self, fields: Dict[str, Any]) -> TabRecord:
        values = dict(fields)
        values["scope"] = Scope(values["scope"]).value
        row = TabConfig(**values)
        try:
            self._session.add(row)
            await self._session.flush()
        except IntegrityError as e:
            logger.warning(
                "Insert rejected by unique constraint: key=%s scope=%s owner=%s",
                values.get("key"), values["scope"], values.get("scope_owner_id"),
            )
            raise DuplicateKeyError(
                key=values.get("key", ""),
                scope=values["scope"],
                context={"original_error": type(e).__name__},
            )
        except SQLAlchemyError as e:
            raise self._wrap(e, "insert")
        return TabRecord.model_validate(row)

    async def update(self, tab_id: int, fields: Dict[str, Any]) -> TabRecord:
        try:
            row = await self._session.get(TabConfig, tab_id)
            if row is None:
                raise NotFoundError(resource="tab", resource_id=str(tab_id))
            for name, value in fields.items():
                setattr(row, name, value)
            row.updated_at = datetime.now(timezone.utc)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise self._wrap(e, "update")
        return TabRecord.model_validate(row)

    async def delete(self, tab_id: int) -> None:
        try:
            await self._session.execute(delete(TabConfig).where(TabConfig.id == tab_id))
            await self._session.flush()
        except SQLAlchemyError as e:
            raise self._wrap(e, "delete")

    async def delete_owned(self, selector: OwnerSelector) -> int:
        statement = delete(TabConfig).where(
            selector.clause(),
            TabConfig.is_system_default.is_(False),
        )
        try:
            result = await self._session.execute(statement)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise self._wrap(e, "delete_owned")
        return result.rowcount or 0

    async def lock_key(self, key: str) -> None:
        """
        Transaction-scoped advisory lock on PostgreSQL; a no-op elsewhere.

        Released automatically when the request's transaction ends.
        """
        if self._session.get_bind().dialect.name != "postgresql":
            return
        try:
            await self._session.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                {"key": f"tab_configs:{key}"},
            )
        except SQLAlchemyError as e:
            raise self._wrap(e, "lock_key")

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _fetch(self, query, operation: str) -> List[TabRecord]:
        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as e:
            raise self._wrap(e, operation)
        return [TabRecord.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    def _wrap(error: SQLAlchemyError, operation: str) -> DatabaseError:
        logger.error("Tab store %s failed: %s", operation, str(error), exc_info=True)
        return DatabaseError(
            message="Could not access tab configuration. Please try again.",
            context={"operation": operation, "original_error": type(error).__name__},
        )
