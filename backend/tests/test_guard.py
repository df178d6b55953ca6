"""
TabScope Backend — Visibility Guard Unit Tests
================================================

The guard is pure: every test here runs on TabRecord snapshots, no store.
"""

from tabscope.scopes import Scope
from tabscope.services.guard import PendingChange, simulate, would_leave_zero_visible

from conftest import ORG_ID, ROLE_ID, USER_ID, make_record


class TestWouldLeaveZeroVisible:

    def setup_method(self):
        self.candidates = [
            make_record("overview", display_order=10),
            make_record("billing", display_order=20),
        ]

    def test_hiding_one_of_two_is_allowed(self):
        pending = PendingChange("overview", Scope.USER, USER_ID, is_visible=False)
        assert not would_leave_zero_visible(pending, self.candidates)

    def test_hiding_the_last_visible_tab_is_refused(self):
        candidates = self.candidates + [
            make_record("overview", Scope.USER, scope_owner_id=USER_ID, is_visible=False),
        ]
        pending = PendingChange("billing", Scope.USER, USER_ID, is_visible=False)
        assert would_leave_zero_visible(pending, candidates)

    def test_input_snapshot_is_not_mutated(self):
        before = list(self.candidates)
        simulate(self.candidates, [PendingChange("overview", Scope.USER, USER_ID, is_visible=False)])
        assert self.candidates == before
        assert all(r.is_visible for r in self.candidates)

    def test_existing_record_at_target_is_updated(self):
        candidates = self.candidates + [
            make_record("billing", Scope.ROLE, scope_owner_id=ROLE_ID, is_visible=True, label="Role billing"),
        ]
        result = simulate(candidates, [PendingChange("billing", Scope.ROLE, ROLE_ID, is_visible=False)])
        role_records = [r for r in result if r.scope is Scope.ROLE]
        assert len(role_records) == 1
        assert not role_records[0].is_visible
        assert role_records[0].label == "Role billing"

    def test_hypothetical_override_copies_inherited_metadata(self):
        candidates = self.candidates + [
            make_record("billing", Scope.ORGANIZATION, scope_owner_id=ORG_ID, label="Org billing", display_order=5),
        ]
        result = simulate(candidates, [PendingChange("billing", Scope.USER, USER_ID, is_visible=False)])
        added = [r for r in result if r.scope is Scope.USER]
        assert len(added) == 1
        assert added[0].id is None
        assert added[0].label == "Org billing"
        assert added[0].display_order == 5
        assert not added[0].is_system_default

    def test_lower_scope_change_hidden_by_higher_override(self):
        """A role hide is shadowed by a visible user override, so nothing disappears."""
        candidates = [
            make_record("billing"),
            make_record("billing", Scope.USER, scope_owner_id=USER_ID, is_visible=True),
        ]
        pending = PendingChange("billing", Scope.ROLE, ROLE_ID, is_visible=False)
        assert not would_leave_zero_visible(pending, candidates)

    def test_removal_drops_the_targeted_record(self):
        candidates = [
            make_record("custom", Scope.USER, scope_owner_id=USER_ID),
            make_record("overview", Scope.USER, scope_owner_id=USER_ID, is_visible=False),
            make_record("overview"),
        ]
        pending = PendingChange("custom", Scope.USER, USER_ID, removed=True)
        assert would_leave_zero_visible(pending, candidates)

    def test_removal_reveals_the_inherited_record(self):
        candidates = [
            make_record("overview"),
            make_record("overview", Scope.USER, scope_owner_id=USER_ID, is_visible=False),
        ]
        pending = PendingChange("overview", Scope.USER, USER_ID, removed=True)
        assert not would_leave_zero_visible(pending, candidates)

    def test_unknown_key_changes_nothing(self):
        pending = PendingChange("ghost", Scope.USER, USER_ID, is_visible=False)
        assert simulate(self.candidates, [pending]) == self.candidates

    def test_batch_is_applied_in_sequence(self):
        changes = [
            PendingChange("overview", Scope.USER, USER_ID, is_visible=False),
            PendingChange("billing", Scope.USER, USER_ID, is_visible=False),
        ]
        result = simulate(self.candidates, changes)
        assert len(result) == 4
        assert not any(r.is_visible for r in result if r.scope is Scope.USER)
