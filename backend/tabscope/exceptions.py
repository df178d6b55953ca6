"""
TabScope Backend — Custom Exception Hierarchy
===============================================

What:  Typed outcomes for every way a tab-configuration operation can fail.
How:   Each exception carries a client-safe message, an optional context dict
       (logged, never returned verbatim for server errors), an HTTP status
       and a machine-readable error code. A single handler in main.py turns
       them into JSON responses.

Exception Hierarchy:
    TabScopeError (base)
    ├── ValidationError               → 400 Bad Request
    ├── UnauthorizedError             → 403 Forbidden
    ├── SystemDefaultImmutableError   → 403 Forbidden
    ├── MandatoryTabViolationError    → 403 Forbidden
    ├── NotFoundError                 → 404 Not Found
    ├── PartialIdSetError             → 404 Not Found
    ├── DuplicateKeyError             → 409 Conflict
    ├── WouldHideAllTabsError         → 409 Conflict
    └── DatabaseError                 → 500 Internal Server Error

Every mutation error is raised before the store is written to, so callers
never have to undo partial work.
"""

from typing import Any, Dict, Iterable, Optional


class TabScopeError(Exception):
    """
    Base exception for all TabScope application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TabScopeError):
    """Raised when client input fails a business rule (not schema validation)."""

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(TabScopeError):
    """
    Raised when the caller's identity does not own the targeted record, or
    cannot write at the requested scope.
    """

    status_code = 403
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "You are not allowed to change this tab configuration",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class SystemDefaultImmutableError(TabScopeError):
    """
    Raised on an attempt to edit, delete or reorder a system-default record.

    System defaults only change through clone-on-write: a visibility change
    creates an override at a more specific scope instead.
    """

    status_code = 403
    error_code = "system_default_immutable"

    def __init__(
        self,
        tab_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if tab_id is not None:
            ctx["tab_id"] = tab_id
        super().__init__(
            message=(
                "System default tabs cannot be modified directly. "
                "Use the visibility endpoint to create an override."
            ),
            context=ctx,
        )


class MandatoryTabViolationError(TabScopeError):
    """Raised when hiding a tab flagged as mandatory, at any scope."""

    status_code = 403
    error_code = "mandatory_tab_violation"

    def __init__(self, key: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["key"] = key
        super().__init__(
            message=f"Tab '{key}' is mandatory and cannot be hidden",
            context=ctx,
        )
        self.key = key


class NotFoundError(TabScopeError):
    """Raised when a referenced tab, key or preset does not exist."""

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class PartialIdSetError(TabScopeError):
    """Raised when a reorder batch references ids the store does not know."""

    status_code = 404
    error_code = "partial_id_set"

    def __init__(self, missing_ids: Iterable[int], context: Optional[Dict[str, Any]] = None):
        missing = sorted(missing_ids)
        ctx = context or {}
        ctx["missing_ids"] = missing
        super().__init__(
            message="Reorder rejected: some tabs do not exist",
            context=ctx,
        )
        self.missing_ids = missing


class DuplicateKeyError(TabScopeError):
    """Raised when a (key, scope, owner) triple is already occupied."""

    status_code = 409
    error_code = "duplicate_key"

    def __init__(
        self,
        key: str,
        scope: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"key": key, "scope": scope})
        super().__init__(
            message=f"A tab with key '{key}' already exists at {scope} scope",
            context=ctx,
        )


class WouldHideAllTabsError(TabScopeError):
    """Raised when a change would leave the viewer with no visible tab."""

    status_code = 409
    error_code = "would_hide_all_tabs"

    def __init__(self, key: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        if key:
            ctx["key"] = key
        super().__init__(
            message="At least one tab must remain visible in your view",
            context=ctx,
        )


class DatabaseError(TabScopeError):
    """
    Raised when the store fails unexpectedly.

    The message returned to the client is always generic; the context is
    logged server-side only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
