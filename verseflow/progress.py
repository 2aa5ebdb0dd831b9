"""
Reconciliation between the read map, the progress snapshot and the ledgers.

The map is the source of truth once it exists. The snapshot is always
recomputed from it, and the event ledger can rebuild it. Each direction is a
separate function; none of them relies on another having run first.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping

from .logger import logger
from .models import (
    EventRecord,
    FinalizeResult,
    PlanItem,
    ReadCounts,
    ReadStateMap,
    SessionRecord,
)
from .patching import parse_table_rows

EVENT_HEADER = ["timestamp", "idx", "ref", "path"]
EVENT_SEPARATOR = "|---|---:|---|---|"
SESSION_HEADER = ["date", "start_ref", "end_ref", "count", "last_order"]
SESSION_SEPARATOR = "|---|---|---|---:|---:|"


def local_stamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%dT%H:%M:%S")


def compute_from_map(read_map: Mapping[int, list[str]] | None, total: int) -> ReadCounts:
    unique_read = 0
    first_unread = None
    read_map = read_map or {}
    for i in range(total):
        if read_map.get(i):
            unique_read += 1
        elif first_unread is None:
            first_unread = i
    return ReadCounts(unique_read=unique_read, first_unread=total if first_unread is None else first_unread)


def add_stamp(read_map: ReadStateMap, idx: int, stamp: str) -> bool:
    """Append ``stamp`` to the entry unless it is already the last one."""
    stamps = read_map.setdefault(idx, [])
    if stamps and stamps[-1] == stamp:
        return False
    stamps.append(stamp)
    return True


def apply_finalize(
    read_map: ReadStateMap,
    indices: Iterable[int],
    plan: list[PlanItem],
    stamp: str,
) -> FinalizeResult:
    """
    Fold a set of completed indices into ``read_map`` (in place).

    Returns the recomputed counts, one event per index that has a plan entry
    and the session summary for the batch. Indices without a plan entry still
    count as read.
    """
    ordered = sorted(set(indices))
    for idx in ordered:
        add_stamp(read_map, idx, stamp)

    counts = compute_from_map(read_map, len(plan))

    events = []
    for idx in ordered:
        item = plan[idx] if 0 <= idx < len(plan) else None
        if item is None:
            logger.debug("No plan entry for idx %d; no event row", idx)
            continue
        events.append(EventRecord(timestamp=stamp, index=idx, ref=item.ref, path=item.path))

    def ref_at(idx: int) -> str:
        return plan[idx].ref if 0 <= idx < len(plan) else ""

    session = None
    if ordered:
        session = SessionRecord(
            date=stamp[:10],
            start_ref=ref_at(ordered[0]),
            end_ref=ref_at(ordered[-1]),
            count=len(ordered),
            last_order=counts.first_unread,
        )

    return FinalizeResult(indices=ordered, counts=counts, events=events, session=session)


def seed_from_snapshot(verses_read: int, plan_length: int, stamp: str) -> ReadStateMap:
    up_to = max(0, min(verses_read, plan_length))
    return {i: [stamp] for i in range(up_to)}


def rebuild_from_events(ledger_text: str | None) -> ReadStateMap:
    read_map: ReadStateMap = {}
    for cells in parse_table_rows(ledger_text):
        if len(cells) < 2:
            continue
        stamp, raw_idx = cells[0], cells[1]
        try:
            idx = int(raw_idx)
        except ValueError:
            # Header rows and garbage land here.
            continue
        if idx < 0 or not stamp:
            continue
        add_stamp(read_map, idx, stamp)
    return read_map
