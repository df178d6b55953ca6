"""
TabScope Backend — Ownership Validator
========================================

What:  Decides whether a caller may mutate a record, and whether a caller
       may write at a target scope.

Record ownership:
    organization  owner == caller.organization_id
    role          owner == caller.role_id and the record's tenant is the
                  caller's tenant
    user          owner == caller.user_id
    system        never (changes go through clone-on-write instead)

Writable scopes:
    organization  needs a tenant context and the admin capability
    role          needs a tenant context and a role assignment
    user          needs a tenant context and a user id
    system        never
"""

from typing import Optional

from tabscope.exceptions import SystemDefaultImmutableError, UnauthorizedError
from tabscope.identity import CallerIdentity
from tabscope.schemas.tab_config import TabRecord
from tabscope.scopes import WRITABLE_SCOPES, Scope


def can_modify(record: TabRecord, identity: CallerIdentity) -> bool:
    if record.scope is Scope.ORGANIZATION:
        return (
            identity.organization_id is not None
            and record.scope_owner_id == identity.organization_id
        )
    if record.scope is Scope.ROLE:
        return (
            identity.role_id is not None
            and record.scope_owner_id == identity.role_id
            and record.organization_id == identity.organization_id
        )
    if record.scope is Scope.USER:
        return identity.user_id is not None and record.scope_owner_id == identity.user_id
    return False


def ensure_can_modify(record: TabRecord, identity: CallerIdentity, action: str = "modify") -> None:
    """
    Raises:
        SystemDefaultImmutableError: record is a system default
        UnauthorizedError: caller does not own the record
    """
    if record.is_system_default or record.scope is Scope.SYSTEM:
        raise SystemDefaultImmutableError(tab_id=record.id, context={"action": action})
    if not can_modify(record, identity):
        raise UnauthorizedError(
            message=f"Cannot {action} another {record.scope.value}'s tab",
            context={"tab_id": record.id, "scope": record.scope.value, "action": action},
        )


def writable_owner(scope: Scope, identity: CallerIdentity) -> int:
    """
    The scope_owner_id for a write at `scope` by `identity`.

    Raises:
        UnauthorizedError: the caller cannot write at that scope
    """
    scope = Scope(scope)
    reason: Optional[str] = None
    if scope not in WRITABLE_SCOPES:
        reason = "System tabs can only change through overrides"
    elif not identity.has_organization:
        reason = "Organization context required"
    elif scope is Scope.ORGANIZATION and not identity.is_admin:
        reason = "Only admins can change organization-wide tabs"
    elif scope is Scope.ROLE and identity.role_id is None:
        reason = "Cannot write role tabs without a role assignment"
    elif scope is Scope.USER and identity.user_id is None:
        reason = "User context required"

    if reason is not None:
        raise UnauthorizedError(message=reason, context={"scope": scope.value})
    return identity.owner_for(scope)
