from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class PlanItem:
    ref: str
    path: str


@dataclass
class ProgressSnapshot:
    last_order: int = 0
    verses_read: int = 0
    total_verses: int = 31102
    start_date: date = field(default_factory=date.today)
    target_days: int = 365

    def as_frontmatter(self) -> dict[str, object]:
        return {
            "last_order": self.last_order,
            "verses_read": self.verses_read,
            "total_verses": self.total_verses,
            "start_date": self.start_date.isoformat(),
            "target_days": self.target_days,
        }


@dataclass(frozen=True)
class ReadCounts:
    unique_read: int
    first_unread: int


@dataclass(frozen=True)
class EventRecord:
    timestamp: str
    index: int
    ref: str
    path: str

    def as_row(self) -> list[str]:
        return [self.timestamp, str(self.index), self.ref, self.path]


@dataclass(frozen=True)
class SessionRecord:
    date: str
    start_ref: str
    end_ref: str
    count: int
    last_order: int

    def as_row(self) -> list[str]:
        return [
            self.date,
            self.start_ref,
            self.end_ref,
            str(self.count),
            str(self.last_order),
        ]


@dataclass(frozen=True)
class PacingResult:
    days_elapsed: int
    expected_count: int
    remaining: int
    days_remaining: int
    pace: int
    catchup: int
    recommended_today: int


@dataclass
class FinalizeResult:
    indices: list[int]
    counts: ReadCounts
    events: list[EventRecord] = field(default_factory=list)
    session: SessionRecord | None = None


# Type alias for the sparse index -> timestamps store.
ReadStateMap = dict[int, list[str]]
