"""
TabScope Backend — Application Package
========================================

What: Scoped tab-configuration engine for the clinical records UI.
How:  Resolves which patient-chart tabs a viewer sees by merging records
      defined at four scopes (system → organization → role → user).

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Resolver, Guard, ...)   │  ← Scope rules, invariants
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     Store Adapter (Persistence)     │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

The services never touch the database directly; they talk to a TabStore
passed in on every call, which keeps them stateless and testable.
"""

__version__ = "1.0.0"
