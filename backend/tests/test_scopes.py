"""
TabScope Backend — Scope Model Unit Tests
===========================================
"""

import pytest

from tabscope.scopes import Scope, WRITABLE_SCOPES


class TestScopeOrdering:
    """Precedence is system < organization < role < user."""

    def test_priorities(self):
        assert [s.priority for s in (Scope.SYSTEM, Scope.ORGANIZATION, Scope.ROLE, Scope.USER)] == [1, 2, 3, 4]

    @pytest.mark.parametrize(
        "higher,lower",
        [
            (Scope.ORGANIZATION, Scope.SYSTEM),
            (Scope.ROLE, Scope.ORGANIZATION),
            (Scope.USER, Scope.ROLE),
            (Scope.USER, Scope.SYSTEM),
        ],
    )
    def test_outranks_is_strict(self, higher, lower):
        assert higher.outranks(lower)
        assert not lower.outranks(higher)

    def test_scope_does_not_outrank_itself(self):
        for scope in Scope:
            assert not scope.outranks(scope)

    def test_anything_outranks_nothing(self):
        assert Scope.SYSTEM.outranks(None)

    def test_string_values_match_column_values(self):
        assert Scope("organization") is Scope.ORGANIZATION
        assert Scope.USER.value == "user"

    def test_system_is_never_writable(self):
        assert Scope.SYSTEM not in WRITABLE_SCOPES
        assert set(WRITABLE_SCOPES) == {Scope.ORGANIZATION, Scope.ROLE, Scope.USER}
