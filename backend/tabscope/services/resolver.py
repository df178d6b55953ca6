"""
TabScope Backend — Merge Resolver
===================================

What:  Turns every record that applies to a viewer into one effective
       record per tab key.
How:   1. `candidate_selectors` lists the (scope, owner) pairs that apply:
          system defaults always; the viewer's organization, role and user
          when known. Role records are limited to the viewer's tenant.
       2. `merge_records` folds the candidates into key → record, replacing
          an entry only when the newcomer's scope strictly outranks it.
       3. `visible_in_order` keeps visible entries sorted by
          (display_order, key).

"Most specific wins, but only among records that exist": a user override
falls back to the role override, then the organization override, then the
system default, for any key it does not define itself.

The fold functions are pure; only `resolve_tabs` / `load_candidates` touch
the store.
"""

import logging
from typing import Dict, Iterable, List, Optional

from tabscope.identity import CallerIdentity
from tabscope.schemas.tab_config import TabRecord
from tabscope.scopes import Scope
from tabscope.services.store import OwnerSelector, TabStore

logger = logging.getLogger(__name__)


def candidate_selectors(identity: CallerIdentity) -> List[OwnerSelector]:
    """
    Selectors for the records visible to `identity`.

    Without an organization context only system defaults apply (fallback mode).
    """
    selectors = [OwnerSelector(Scope.SYSTEM)]
    if not identity.has_organization:
        return selectors
    selectors.append(OwnerSelector(Scope.ORGANIZATION, identity.organization_id))
    if identity.role_id is not None:
        selectors.append(OwnerSelector(Scope.ROLE, identity.role_id, identity.organization_id))
    if identity.user_id is not None:
        selectors.append(OwnerSelector(Scope.USER, identity.user_id))
    return selectors


def merge_records(records: Iterable[TabRecord]) -> Dict[str, TabRecord]:
    """Fold records into key → highest-scoped record. Input order is irrelevant."""
    merged: Dict[str, TabRecord] = {}
    for record in records:
        current = merged.get(record.key)
        if current is None or record.scope.outranks(current.scope):
            merged[record.key] = record
    return merged


def visible_in_order(merged: Dict[str, TabRecord]) -> List[TabRecord]:
    return sorted(
        (record for record in merged.values() if record.is_visible),
        key=lambda record: (record.display_order, record.key),
    )


def count_visible(records: Iterable[TabRecord]) -> int:
    """Visible entries after merging `records`."""
    return sum(1 for record in merge_records(records).values() if record.is_visible)


def inherited_record(
    candidates: Iterable[TabRecord],
    key: str,
    below: Scope,
) -> Optional[TabRecord]:
    """
    The record a write at scope `below` would inherit for `key`: the merge
    of candidates strictly less specific than `below`.
    """
    lower = [
        record for record in candidates
        if record.key == key and below.outranks(record.scope)
    ]
    return merge_records(lower).get(key)


async def load_candidates(store: TabStore, identity: CallerIdentity) -> List[TabRecord]:
    return await store.find_candidates(candidate_selectors(identity))


async def resolve_all(store: TabStore, identity: CallerIdentity) -> List[TabRecord]:
    """Every effective record, hidden ones included, in display order."""
    merged = merge_records(await load_candidates(store, identity))
    return sorted(merged.values(), key=lambda record: (record.display_order, record.key))


async def resolve_tabs(store: TabStore, identity: CallerIdentity) -> List[TabRecord]:
    """Ordered visible tabs for `identity`, or the system-only fallback."""
    if not identity.has_organization:
        logger.warning("No organization context, resolving system tabs only")
    candidates = await load_candidates(store, identity)
    tabs = visible_in_order(merge_records(candidates))
    logger.debug(
        "Resolved %d visible tabs from %d candidates (org=%s role=%s user=%s)",
        len(tabs), len(candidates),
        identity.organization_id, identity.role_id, identity.user_id,
    )
    return tabs
