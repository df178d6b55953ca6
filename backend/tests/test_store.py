"""
TabScope Backend — SqlAlchemyTabStore Tests
=============================================

Runs against in-memory SQLite; lock_key is a no-op on that dialect.
"""

import pytest

from tabscope.exceptions import DuplicateKeyError, NotFoundError
from tabscope.scopes import Scope
from tabscope.services.store import OwnerSelector

from conftest import ORG_ID, USER_ID


def user_tab(key, **fields):
    values = {
        "key": key,
        "label": key.title(),
        "scope": Scope.USER,
        "scope_owner_id": USER_ID,
        "organization_id": ORG_ID,
    }
    values.update(fields)
    return values


class TestReads:

    @pytest.mark.asyncio
    async def test_candidates_match_selectors_only(self, seeded_store):
        await seeded_store.insert(user_tab("mine", display_order=1))
        await seeded_store.insert(user_tab("theirs", scope_owner_id=USER_ID + 1))

        records = await seeded_store.find_candidates(
            [OwnerSelector(Scope.SYSTEM), OwnerSelector(Scope.USER, USER_ID)]
        )

        assert [r.key for r in records] == ["mine", "overview", "billing"]

    @pytest.mark.asyncio
    async def test_no_selectors_no_candidates(self, seeded_store):
        assert await seeded_store.find_candidates([]) == []

    @pytest.mark.asyncio
    async def test_get_many_returns_existing_only(self, seeded_store):
        overview = await seeded_store.find_one("overview", Scope.SYSTEM, None)
        records = await seeded_store.get_many([overview.id, 999])
        assert [r.key for r in records] == ["overview"]

    @pytest.mark.asyncio
    async def test_records_are_snapshots(self, seeded_store):
        record = await seeded_store.find_one("overview", Scope.SYSTEM, None)
        assert record.scope is Scope.SYSTEM
        with pytest.raises(Exception):
            record.label = "changed"


class TestWrites:

    @pytest.mark.asyncio
    async def test_unique_key_scope_owner(self, store):
        await store.insert(user_tab("scratch"))
        with pytest.raises(DuplicateKeyError):
            await store.insert(user_tab("scratch"))

    @pytest.mark.asyncio
    async def test_update_missing_row(self, store):
        with pytest.raises(NotFoundError):
            await store.update(999, {"label": "X"})

    @pytest.mark.asyncio
    async def test_update_touches_updated_at(self, store):
        created = await store.insert(user_tab("scratch"))
        updated = await store.update(created.id, {"display_order": 4})
        assert updated.display_order == 4
        assert updated.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_delete_owned_skips_system_defaults(self, seeded_store):
        await seeded_store.insert(user_tab("a"))
        await seeded_store.insert(user_tab("b"))
        await seeded_store.insert(user_tab("c", scope_owner_id=USER_ID + 1))

        assert await seeded_store.delete_owned(OwnerSelector(Scope.USER, USER_ID)) == 2
        assert await seeded_store.count_system_defaults() == 2

    @pytest.mark.asyncio
    async def test_delete_owned_limits_role_records_to_tenant(self, store):
        role_tab = {"scope": Scope.ROLE, "scope_owner_id": 10}
        await store.insert(user_tab("ward", organization_id=ORG_ID, **role_tab))
        await store.insert(user_tab("clinic", organization_id=ORG_ID + 1, **role_tab))

        assert await store.delete_owned(OwnerSelector(Scope.ROLE, 10, ORG_ID + 1)) == 1
        remaining = await store.find_candidates([OwnerSelector(Scope.ROLE, 10)])
        assert [(r.key, r.organization_id) for r in remaining] == [("ward", ORG_ID)]

    @pytest.mark.asyncio
    async def test_lock_key_is_noop_on_sqlite(self, store):
        await store.lock_key("overview")
