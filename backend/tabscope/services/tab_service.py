"""
TabScope Backend — Tab Configuration Service (Override Writer + Reorderer)
============================================================================

What:  Every read and write operation on tab configuration.
How:   Composes the resolver, the visibility guard and the ownership
       validator over a TabStore passed in per call.
Who:   Called by the route handlers.

Write Flow:
    ┌────────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │ Ownership  │───▶│  Mandatory   │───▶│  Visibility  │───▶│  Store   │
    │ / scope    │    │  check       │    │  guard       │    │  write   │
    └────────────┘    └──────────────┘    └──────────────┘    └──────────┘
                       (hides only)        (hides, removals)

Every check runs before the first write, so a failed operation leaves the
store exactly as it was.

TabConfigService holds no state; a single module-level instance is shared.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from tabscope.exceptions import (
    DuplicateKeyError,
    MandatoryTabViolationError,
    NotFoundError,
    PartialIdSetError,
    SystemDefaultImmutableError,
    ValidationError,
    WouldHideAllTabsError,
)
from tabscope.identity import CallerIdentity
from tabscope.schemas.tab_config import ReorderItem, TabCreate, TabRecord, TabUpdate
from tabscope.scopes import Scope
from tabscope.services import resolver
from tabscope.services.guard import PendingChange, simulate, would_leave_zero_visible
from tabscope.services.ownership import ensure_can_modify, writable_owner
from tabscope.services.presets import find_preset
from tabscope.services.store import OwnerSelector, TabStore

logger = logging.getLogger(__name__)

ReorderChange = Union[ReorderItem, Tuple[int, int]]


def _is_mandatory(candidates: Iterable[TabRecord], key: str) -> bool:
    """True when the system record or the effective record for `key` is mandatory."""
    for_key = [record for record in candidates if record.key == key]
    effective = resolver.merge_records(for_key).get(key)
    system = next((r for r in for_key if r.scope is Scope.SYSTEM), None)
    return bool(
        (effective is not None and effective.is_mandatory)
        or (system is not None and system.is_mandatory)
    )


def _at(candidates: Iterable[TabRecord], key: str, scope: Scope, owner_id: Optional[int]) -> Optional[TabRecord]:
    return next(
        (
            record for record in candidates
            if record.key == key and record.scope is scope and record.scope_owner_id == owner_id
        ),
        None,
    )


class TabConfigService:
    """
    Responsibilities:
        - resolve_tabs(): merged view for a viewer
        - set_visibility(): hide/show via clone-on-write overrides
        - create/update/delete_custom_tab(): caller-owned records
        - reorder(): all-or-nothing display order changes
        - reset_overrides(): drop the caller's overrides at one scope
        - apply_preset(): write a specialty layout as overrides
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def resolve_tabs(
        self,
        store: TabStore,
        identity: CallerIdentity,
        include_hidden: bool = False,
    ) -> List[TabRecord]:
        if include_hidden:
            return await resolver.resolve_all(store, identity)
        return await resolver.resolve_tabs(store, identity)

    # ── Visibility ────────────────────────────────────────────────────────

    async def set_visibility(
        self,
        store: TabStore,
        key: str,
        target_scope: Scope,
        is_visible: bool,
        identity: CallerIdentity,
    ) -> TabRecord:
        """
        Show or hide `key` for `identity` at `target_scope`.

        Updates the caller's record at (key, scope, owner) when one exists;
        otherwise clones the inherited record into a new override. System
        records are never touched.

        Raises:
            NotFoundError: no record for `key` applies to this viewer
            MandatoryTabViolationError: hiding a mandatory tab
            UnauthorizedError: caller cannot write at `target_scope`
            WouldHideAllTabsError: the hide would leave nothing visible
        """
        target_scope = Scope(target_scope)
        if not is_visible:
            await store.lock_key(key)

        candidates = await resolver.load_candidates(store, identity)
        if not any(record.key == key for record in candidates):
            raise NotFoundError(resource="tab", resource_id=key)

        if not is_visible and _is_mandatory(candidates, key):
            raise MandatoryTabViolationError(key=key)

        owner_id = writable_owner(target_scope, identity)

        if not is_visible:
            pending = PendingChange(key, target_scope, owner_id, is_visible=False)
            if would_leave_zero_visible(pending, candidates):
                logger.info(
                    "Refused to hide '%s' at %s scope: no tab would remain visible",
                    key, target_scope.value,
                )
                raise WouldHideAllTabsError(key=key, context={"scope": target_scope.value})

        existing = _at(candidates, key, target_scope, owner_id)
        if existing is not None:
            ensure_can_modify(existing, identity, "change visibility of")
            if existing.is_visible == is_visible:
                return existing
            updated = await store.update(existing.id, {"is_visible": is_visible})
            logger.info(
                "Updated %s override %d for '%s': visible=%s",
                target_scope.value, existing.id, key, is_visible,
            )
            return updated

        return await self._clone_override(
            store, candidates, key, target_scope, owner_id, identity,
            {"is_visible": is_visible},
        )

    async def _clone_override(
        self,
        store: TabStore,
        candidates: List[TabRecord],
        key: str,
        scope: Scope,
        owner_id: int,
        identity: CallerIdentity,
        overrides: Dict[str, Any],
    ) -> TabRecord:
        source = resolver.inherited_record(candidates, key, scope)
        if source is None:
            source = resolver.merge_records(candidates)[key]
        fields = {
            **source.display_metadata(),
            "key": key,
            "scope": scope,
            "scope_owner_id": owner_id,
            "organization_id": identity.organization_id,
            "is_visible": True,
            "is_mandatory": False,
            "is_system_default": False,
            "created_by": identity.user_id,
        }
        fields.update(overrides)
        created = await store.insert(fields)
        logger.info(
            "Created %s override %s for '%s' cloned from %s record %s",
            scope.value, created.id, key, source.scope.value, source.id,
        )
        return created

    # ── Custom Tabs ───────────────────────────────────────────────────────

    async def create_custom_tab(
        self,
        store: TabStore,
        data: TabCreate,
        identity: CallerIdentity,
    ) -> TabRecord:
        """
        Insert a caller-owned record at `data.scope`.

        Raises:
            UnauthorizedError: caller cannot write at that scope
            DuplicateKeyError: the key already exists at that (scope, owner)
            MandatoryTabViolationError / WouldHideAllTabsError: the record is
                created hidden over a mandatory tab, or hides the last tab
        """
        scope = Scope(data.scope)
        owner_id = writable_owner(scope, identity)

        if await store.find_one(data.key, scope, owner_id) is not None:
            raise DuplicateKeyError(key=data.key, scope=scope.value)

        if not data.is_visible:
            await store.lock_key(data.key)
            candidates = await resolver.load_candidates(store, identity)
            if _is_mandatory(candidates, data.key):
                raise MandatoryTabViolationError(key=data.key)
            pending = PendingChange(data.key, scope, owner_id, is_visible=False)
            if any(r.key == data.key for r in candidates) and would_leave_zero_visible(pending, candidates):
                raise WouldHideAllTabsError(key=data.key)

        created = await store.insert(
            {
                **data.model_dump(exclude={"scope"}),
                "scope": scope,
                "scope_owner_id": owner_id,
                "organization_id": identity.organization_id,
                "is_system_default": False,
                "created_by": identity.user_id,
            }
        )
        logger.info("Created custom %s tab '%s' (id=%s)", scope.value, data.key, created.id)
        return created

    async def update_custom_tab(
        self,
        store: TabStore,
        tab_id: int,
        patch: TabUpdate,
        identity: CallerIdentity,
    ) -> TabRecord:
        """
        Raises:
            NotFoundError, SystemDefaultImmutableError, UnauthorizedError,
            MandatoryTabViolationError, WouldHideAllTabsError
        """
        record = await store.get(tab_id)
        if record is None:
            raise NotFoundError(resource="tab", resource_id=str(tab_id))
        ensure_can_modify(record, identity, "edit")

        fields = patch.model_dump(exclude_unset=True)
        for required in ("label", "content_type", "settings", "is_visible"):
            if fields.get(required, ...) is None:
                del fields[required]
        if not fields:
            return record

        if fields.get("is_visible") is False and record.is_visible:
            await store.lock_key(record.key)
            candidates = await resolver.load_candidates(store, identity)
            if record.is_mandatory or _is_mandatory(candidates, record.key):
                raise MandatoryTabViolationError(key=record.key)
            pending = PendingChange(record.key, record.scope, record.scope_owner_id, is_visible=False)
            if would_leave_zero_visible(pending, candidates):
                raise WouldHideAllTabsError(key=record.key)

        updated = await store.update(tab_id, fields)
        logger.info("Updated custom tab %d: %s", tab_id, ", ".join(sorted(fields)))
        return updated

    async def delete_custom_tab(
        self,
        store: TabStore,
        tab_id: int,
        identity: CallerIdentity,
    ) -> None:
        """
        Raises:
            NotFoundError, SystemDefaultImmutableError, UnauthorizedError,
            WouldHideAllTabsError (removing the viewer's last visible tab)
        """
        record = await store.get(tab_id)
        if record is None:
            raise NotFoundError(resource="tab", resource_id=str(tab_id))
        ensure_can_modify(record, identity, "delete")

        await store.lock_key(record.key)
        candidates = await resolver.load_candidates(store, identity)
        pending = PendingChange(record.key, record.scope, record.scope_owner_id, removed=True)
        if resolver.count_visible(candidates) > 0 and would_leave_zero_visible(pending, candidates):
            raise WouldHideAllTabsError(key=record.key)

        await store.delete(tab_id)
        logger.info("Deleted %s tab %d ('%s')", record.scope.value, tab_id, record.key)

    # ── Ordering ──────────────────────────────────────────────────────────

    async def reorder(
        self,
        store: TabStore,
        changes: Sequence[ReorderChange],
        identity: CallerIdentity,
    ) -> int:
        """
        Apply a batch of display-order changes, all or nothing.

        Raises:
            ValidationError: the same id appears twice
            PartialIdSetError: some ids do not resolve
            SystemDefaultImmutableError: a system default is referenced
            UnauthorizedError: a record is not the caller's
        """
        pairs = [
            (change.id, change.display_order) if isinstance(change, ReorderItem) else tuple(change)
            for change in changes
        ]
        if not pairs:
            return 0

        ids = [tab_id for tab_id, _ in pairs]
        if len(set(ids)) != len(ids):
            raise ValidationError(message="Each tab may appear only once in a reorder", field="tabs")

        records = await store.get_many(ids)
        missing = set(ids) - {record.id for record in records}
        if missing:
            raise PartialIdSetError(missing_ids=missing)

        system_default = next((r for r in records if r.is_system_default or r.scope is Scope.SYSTEM), None)
        if system_default is not None:
            raise SystemDefaultImmutableError(tab_id=system_default.id, context={"action": "reorder"})
        for record in records:
            ensure_can_modify(record, identity, "reorder")

        for tab_id, display_order in pairs:
            await store.update(tab_id, {"display_order": display_order})
        logger.info("Reordered %d tabs", len(pairs))
        return len(pairs)

    # ── Reset ─────────────────────────────────────────────────────────────

    async def reset_overrides(
        self,
        store: TabStore,
        scope: Scope,
        identity: CallerIdentity,
    ) -> int:
        """
        Delete every record the caller owns at `scope` (system rows excluded).
        Role records are matched within the caller's organization only.

        Raises:
            UnauthorizedError: caller cannot write at `scope`
            WouldHideAllTabsError: the removal would leave nothing visible
        """
        scope = Scope(scope)
        owner_id = writable_owner(scope, identity)
        selector = OwnerSelector(
            scope, owner_id, identity.organization_id if scope is Scope.ROLE else None
        )

        owned_keys = {
            r.key for r in await resolver.load_candidates(store, identity)
            if r.scope is scope and r.scope_owner_id == owner_id
        }
        for key in sorted(owned_keys):
            await store.lock_key(key)

        candidates = await resolver.load_candidates(store, identity)
        removals = [
            PendingChange(r.key, scope, owner_id, removed=True)
            for r in candidates
            if r.scope is scope and r.scope_owner_id == owner_id
        ]
        if (
            resolver.count_visible(candidates) > 0
            and resolver.count_visible(simulate(candidates, removals)) == 0
        ):
            logger.info("Refused to reset %s overrides: no tab would remain visible", scope.value)
            raise WouldHideAllTabsError(context={"scope": scope.value})

        deleted = await store.delete_owned(selector)
        logger.info("Reset %d %s overrides for owner %s", deleted, scope.value, owner_id)
        return deleted

    # ── Presets ───────────────────────────────────────────────────────────

    async def apply_preset(
        self,
        store: TabStore,
        name: str,
        scope: Scope,
        identity: CallerIdentity,
    ) -> List[TabRecord]:
        """
        Write a specialty preset as overrides at `scope`.

        Entries whose key does not apply to the viewer are skipped. The whole
        batch is validated before anything is written.

        Raises:
            NotFoundError, UnauthorizedError, MandatoryTabViolationError,
            WouldHideAllTabsError
        """
        preset = find_preset(name)
        if preset is None:
            raise NotFoundError(resource="preset", resource_id=name)
        scope = Scope(scope)
        owner_id = writable_owner(scope, identity)

        for key in sorted({item.key for item in preset.items if not item.is_visible}):
            await store.lock_key(key)

        candidates = await resolver.load_candidates(store, identity)
        known = {record.key for record in candidates}
        items = [item for item in preset.items if item.key in known]
        skipped = [item.key for item in preset.items if item.key not in known]
        if skipped:
            logger.info("Preset '%s': skipping unknown keys %s", preset.name, ", ".join(skipped))

        for item in items:
            if not item.is_visible and _is_mandatory(candidates, item.key):
                raise MandatoryTabViolationError(key=item.key, context={"preset": preset.name})

        changes = [PendingChange(item.key, scope, owner_id, is_visible=item.is_visible) for item in items]
        if resolver.count_visible(simulate(candidates, changes)) == 0:
            raise WouldHideAllTabsError(context={"preset": preset.name})

        written: List[TabRecord] = []
        for item in items:
            existing = _at(candidates, item.key, scope, owner_id)
            values = {"is_visible": item.is_visible, "display_order": item.display_order}
            if existing is not None:
                ensure_can_modify(existing, identity, "apply a preset to")
                written.append(await store.update(existing.id, values))
            else:
                written.append(
                    await self._clone_override(store, candidates, item.key, scope, owner_id, identity, values)
                )
        logger.info(
            "Applied preset '%s' at %s scope: %d overrides written",
            preset.name, scope.value, len(written),
        )
        return written


# ── Singleton Instance ────────────────────────────────────────────────────
tab_config_service = TabConfigService()
