"""
TabScope Backend — Visibility Guard
=====================================

What:  Answers "would this change leave the viewer with zero visible tabs?"
How:   Applies hypothetical changes to a snapshot of the viewer's candidate
       records, re-runs the merge, and counts visible entries. Pure: no
       store access, no mutation of the input.

A pending change targets the record at (key, scope, owner):
    - is_visible set: that record's visibility is replaced; when no such
      record exists, a hypothetical one is added at that scope, carrying
      the metadata it would inherit
    - removed: that record is dropped from the snapshot

The invariant checked is "at least one key visible across the whole set";
a key may legitimately end up with no visible representative.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from tabscope.schemas.tab_config import TabRecord
from tabscope.scopes import Scope
from tabscope.services.resolver import count_visible, inherited_record, merge_records


@dataclass(frozen=True)
class PendingChange:
    key: str
    scope: Scope
    owner_id: Optional[int]
    is_visible: Optional[bool] = None
    removed: bool = False

    def targets(self, record: TabRecord) -> bool:
        return (
            record.key == self.key
            and record.scope is self.scope
            and record.scope_owner_id == self.owner_id
        )


def _apply(candidates: List[TabRecord], change: PendingChange) -> List[TabRecord]:
    if change.removed:
        return [record for record in candidates if not change.targets(record)]

    result = []
    matched = False
    for record in candidates:
        if change.targets(record):
            matched = True
            record = record.model_copy(update={"is_visible": change.is_visible})
        result.append(record)
    if matched:
        return result

    source = inherited_record(candidates, change.key, change.scope)
    if source is None:
        source = merge_records(candidates).get(change.key)
    if source is None:
        return result
    result.append(
        source.model_copy(
            update={
                "id": None,
                "scope": change.scope,
                "scope_owner_id": change.owner_id,
                "is_visible": change.is_visible,
                "is_system_default": False,
                "is_mandatory": False,
            }
        )
    )
    return result


def simulate(candidates: Iterable[TabRecord], changes: Iterable[PendingChange]) -> List[TabRecord]:
    """The candidate snapshot as it would look after `changes`, in order."""
    snapshot = list(candidates)
    for change in changes:
        snapshot = _apply(snapshot, change)
    return snapshot


def would_leave_zero_visible(pending: PendingChange, candidates: Iterable[TabRecord]) -> bool:
    return count_visible(simulate(candidates, [pending])) == 0
