"""
TabScope Backend — Merge Resolver Unit Tests
==============================================

What we test:
    ✅ Most specific existing record wins, for every subset of scopes
    ✅ Keys without overrides fall back to the system record
    ✅ Hidden records are filtered, order is (display_order, key)
    ✅ Candidate selection per identity, including the fallback mode
    ✅ The inherited record used for clone-on-write
"""

from itertools import combinations

import pytest

from tabscope.identity import CallerIdentity
from tabscope.scopes import Scope
from tabscope.services.resolver import (
    candidate_selectors,
    count_visible,
    inherited_record,
    merge_records,
    resolve_all,
    resolve_tabs,
    visible_in_order,
)
from tabscope.services.seeding import seed_system_tabs
from tabscope.services.store import OwnerSelector

from conftest import ORG_ID, ROLE_ID, SMALL_CATALOG, USER_ID, make_record

ALL_SCOPES = [Scope.SYSTEM, Scope.ORGANIZATION, Scope.ROLE, Scope.USER]
SUBSETS = [subset for size in range(1, 5) for subset in combinations(ALL_SCOPES, size)]


class TestMergePrecedence:

    @pytest.mark.parametrize("present", SUBSETS, ids=lambda s: "+".join(x.value for x in s))
    def test_highest_present_scope_wins(self, present):
        """Whatever subset of scopes defines the key, the most specific one is effective."""
        records = [make_record("labs", scope, label=f"labs@{scope.value}") for scope in present]
        expected = max(present, key=lambda s: s.priority)

        for ordering in (records, list(reversed(records))):
            merged = merge_records(ordering)
            assert merged["labs"].scope is expected
            assert merged["labs"].label == f"labs@{expected.value}"

    def test_keys_without_overrides_fall_back_to_system(self):
        records = [
            make_record("overview"),
            make_record("billing"),
            make_record("billing", Scope.USER, label="My billing"),
        ]
        merged = merge_records(records)
        assert merged["overview"].scope is Scope.SYSTEM
        assert merged["billing"].label == "My billing"

    def test_lower_scope_never_replaces_higher(self):
        merged = merge_records([
            make_record("labs", Scope.ROLE, is_visible=False),
            make_record("labs", Scope.ORGANIZATION, is_visible=True),
        ])
        assert merged["labs"].scope is Scope.ROLE
        assert not merged["labs"].is_visible


class TestVisibleInOrder:

    def test_hidden_records_are_dropped(self):
        merged = merge_records([
            make_record("overview"),
            make_record("billing", Scope.USER, is_visible=False),
        ])
        assert [r.key for r in visible_in_order(merged)] == ["overview"]

    def test_order_is_display_order_then_key(self):
        merged = merge_records([
            make_record("zeta", display_order=5),
            make_record("alpha", display_order=5),
            make_record("first", display_order=1),
        ])
        assert [r.key for r in visible_in_order(merged)] == ["first", "alpha", "zeta"]

    def test_count_visible_counts_effective_records(self):
        records = [
            make_record("overview"),
            make_record("overview", Scope.USER, is_visible=False),
            make_record("billing"),
        ]
        assert count_visible(records) == 1


class TestCandidateSelectors:

    def test_full_identity(self):
        identity = CallerIdentity(organization_id=ORG_ID, role_id=ROLE_ID, user_id=USER_ID)
        assert candidate_selectors(identity) == [
            OwnerSelector(Scope.SYSTEM),
            OwnerSelector(Scope.ORGANIZATION, ORG_ID),
            OwnerSelector(Scope.ROLE, ROLE_ID, ORG_ID),
            OwnerSelector(Scope.USER, USER_ID),
        ]

    def test_missing_role_skips_role_scope(self):
        identity = CallerIdentity(organization_id=ORG_ID, user_id=USER_ID)
        scopes = [s.scope for s in candidate_selectors(identity)]
        assert scopes == [Scope.SYSTEM, Scope.ORGANIZATION, Scope.USER]

    def test_no_organization_means_system_only(self):
        identity = CallerIdentity(role_id=ROLE_ID, user_id=USER_ID)
        assert candidate_selectors(identity) == [OwnerSelector(Scope.SYSTEM)]


class TestInheritedRecord:

    def test_user_scope_inherits_role_record(self):
        candidates = [
            make_record("labs", label="system"),
            make_record("labs", Scope.ORGANIZATION, label="org"),
            make_record("labs", Scope.ROLE, label="role"),
            make_record("labs", Scope.USER, label="user"),
        ]
        assert inherited_record(candidates, "labs", Scope.USER).label == "role"
        assert inherited_record(candidates, "labs", Scope.ROLE).label == "org"
        assert inherited_record(candidates, "labs", Scope.ORGANIZATION).label == "system"

    def test_nothing_below_returns_none(self):
        candidates = [make_record("custom", Scope.USER)]
        assert inherited_record(candidates, "custom", Scope.ORGANIZATION) is None


class TestResolveAgainstStore:
    """resolve_tabs over the SQLite-backed store."""

    @pytest.mark.asyncio
    async def test_fallback_mode_returns_system_tabs(self, seeded_store, anonymous_identity):
        tabs = await resolve_tabs(seeded_store, anonymous_identity)
        assert [t.key for t in tabs] == ["overview", "billing"]
        assert all(t.scope is Scope.SYSTEM for t in tabs)

    @pytest.mark.asyncio
    async def test_other_owners_records_are_ignored(self, seeded_store, user_identity):
        await seeded_store.insert({
            "key": "billing", "label": "Billing", "scope": Scope.USER,
            "scope_owner_id": USER_ID + 1, "organization_id": ORG_ID, "is_visible": False,
        })
        tabs = await resolve_tabs(seeded_store, user_identity)
        assert [t.key for t in tabs] == ["overview", "billing"]

    @pytest.mark.asyncio
    async def test_resolve_all_includes_hidden(self, seeded_store, user_identity):
        await seeded_store.insert({
            "key": "billing", "label": "Billing", "scope": Scope.USER,
            "scope_owner_id": USER_ID, "organization_id": ORG_ID, "is_visible": False,
            "display_order": 20,
        })
        everything = await resolve_all(seeded_store, user_identity)
        visible = await resolve_tabs(seeded_store, user_identity)
        assert [t.key for t in everything] == ["overview", "billing"]
        assert everything[1].scope is Scope.USER and not everything[1].is_visible
        assert [t.key for t in visible] == ["overview"]

    @pytest.mark.asyncio
    async def test_system_rows_without_default_flag_are_not_candidates(self, store, user_identity):
        await seed_system_tabs(store, catalog=SMALL_CATALOG[:1])
        await store.insert({"key": "stray", "label": "Stray", "scope": Scope.SYSTEM, "is_system_default": False})
        tabs = await resolve_tabs(store, user_identity)
        assert [t.key for t in tabs] == ["overview"]
