"""Marker reconciliation planning - Pure functions.

Computes the minimal set of create/update/remove operations that brings
the live marker set in line with the current record set. Applying the
plan to a real map is the shell's job.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

from hazardwatch.core.records import HazardRecord, RecordKey


@dataclass(frozen=True)
class ReconcilePlan:
    """Operations needed to reconcile markers with records.

    Attributes:
        create: Records with no marker yet, in record order
        update: Records whose existing marker is updated in place, in record order
        remove: Keys whose marker must be removed, in previous-key order
    """
    create: tuple[HazardRecord, ...] = ()
    update: tuple[HazardRecord, ...] = ()
    remove: tuple[RecordKey, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Returns True if nothing changes."""
        return not (self.create or self.update or self.remove)


def plan_reconciliation(
    previous_keys: Iterable[RecordKey],
    records: Sequence[HazardRecord],
) -> ReconcilePlan:
    """Three-way diff between existing marker keys and current records.

    Pure function. Runs in O(|previous| + |current|) using hash lookups.
    When a key appears more than once in `records`, the first occurrence
    is used.

    Args:
        previous_keys: Keys that currently have markers
        records: Current filtered records

    Returns:
        ReconcilePlan with creates, in-place updates and removals
    """
    previous = list(dict.fromkeys(previous_keys))
    previous_set = set(previous)

    current: dict[RecordKey, HazardRecord] = {}
    for record in records:
        current.setdefault(record.key, record)

    create = tuple(r for k, r in current.items() if k not in previous_set)
    update = tuple(r for k, r in current.items() if k in previous_set)
    remove = tuple(k for k in previous if k not in current)

    return ReconcilePlan(create=create, update=update, remove=remove)
