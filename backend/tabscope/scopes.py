"""
TabScope Backend — Scope Model
================================

What:  The four configuration scopes and their total order.
How:   A string enum (values match the `scope` column) with a fixed priority
       table. The resolver, the guard and the writer all compare scopes
       through `Scope.priority` / `Scope.outranks`, so read and write paths
       share one precedence table.

    system(1) < organization(2) < role(3) < user(4)
"""

from enum import Enum
from typing import Optional


class Scope(str, Enum):
    """Level at which a tab configuration record is defined."""

    SYSTEM = "system"
    ORGANIZATION = "organization"
    ROLE = "role"
    USER = "user"

    @property
    def priority(self) -> int:
        return _PRIORITY[self]

    def outranks(self, other: Optional["Scope"]) -> bool:
        """True when this scope is strictly more specific than `other`."""
        if other is None:
            return True
        return self.priority > other.priority


_PRIORITY = {
    Scope.SYSTEM: 1,
    Scope.ORGANIZATION: 2,
    Scope.ROLE: 3,
    Scope.USER: 4,
}

# Scopes a caller can ever write to; system records are seed-only.
WRITABLE_SCOPES = (Scope.ORGANIZATION, Scope.ROLE, Scope.USER)
