"""Pick one surviving record per identity key among duplicates.

Pure function over a snapshot of rows; deleting the losers is left to the
caller so each delete can be logged and committed on its own.
"""
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Hashable, Iterable


@dataclass
class DuplicateGroup:
    key: Hashable
    kept: Any
    removed: list = field(default_factory=list)


@dataclass
class ReconcileResult:
    groups: list[DuplicateGroup] = field(default_factory=list)
    survivors: list = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return sum(len(g.removed) for g in self.groups)

    @property
    def removed_ids(self) -> list:
        return [rid for g in self.groups for rid in g.removed]


def reconcile(
    records: Iterable,
    key_fn: Callable[[Any], Hashable],
    timestamp_fn: Callable[[Any], Any] = attrgetter("created_at"),
    id_fn: Callable[[Any], Any] = attrgetter("id"),
) -> ReconcileResult:
    grouped: dict[Hashable, list] = {}
    for record in records:
        grouped.setdefault(key_fn(record), []).append(record)

    def recency(record):
        # missing timestamps sort as oldest, id breaks ties
        ts = timestamp_fn(record)
        return (ts is not None, ts, id_fn(record))

    result = ReconcileResult()
    for key, members in grouped.items():
        if len(members) == 1:
            result.survivors.append(id_fn(members[0]))
            continue
        ordered = sorted(members, key=recency, reverse=True)
        group = DuplicateGroup(
            key=key,
            kept=id_fn(ordered[0]),
            removed=[id_fn(r) for r in ordered[1:]],
        )
        result.groups.append(group)
        result.survivors.append(group.kept)
    return result
