from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import re

from .models import PacingResult, PlanItem, ProgressSnapshot
from .patching import format_row
from .progress import SESSION_HEADER, SESSION_SEPARATOR


@dataclass(frozen=True)
class NoteLocation:
    note_path: str
    anchor: str

    @property
    def label(self) -> str:
        return self.note_path.rsplit("/", 1)[-1]


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def note_location(path: str, ref: str) -> NoteLocation:
    note, _, fragment = path.partition("#")
    if note.endswith(".md"):
        note = note[:-3]
    return NoteLocation(note_path=note, anchor=fragment or slugify(ref))


def _grouped_lines(plan: list[PlanItem], start: int, count: int, checkbox: bool) -> list[str]:
    out = []
    last_label = None
    box = "[ ] " if checkbox else ""
    for idx in range(start, min(start + count, len(plan))):
        item = plan[idx]
        loc = note_location(item.path, item.ref)
        if loc.label != last_label:
            out.append(f"> **[[{loc.note_path}|{loc.label}]]**")
            last_label = loc.label
        out.append(f"> - {box}[[{item.path}|{item.ref}]] (idx:{idx})")
    return out


def render_target_list(
    plan: list[PlanItem],
    first_unread: int,
    today_count: int,
    preview_count: int,
) -> str:
    out = [f"> [!abstract]+ Today's target to stay on schedule ({today_count})"]
    out.extend(_grouped_lines(plan, first_unread, today_count, checkbox=True))

    next_start = first_unread + today_count
    preview = max(0, min(preview_count, len(plan) - next_start))
    out.append("")
    out.append(f"> [!abstract]- Next {preview} verses after today's target (boundaries shown)")
    out.extend(_grouped_lines(plan, next_start, preview, checkbox=False))
    return "\n".join(out) + "\n"


def progress_summary_line(snapshot: ProgressSnapshot, pace: int) -> str:
    total = snapshot.total_verses
    pct = f"{snapshot.verses_read / total * 100:.1f}" if total else "0.0"
    return (
        f"> Progress: {snapshot.verses_read}/{total} ({pct}%). "
        f"Target {snapshot.target_days} days from {snapshot.start_date.isoformat()}. "
        f"Today's pace: {pace}."
    )


def render_dashboard(
    snapshot: ProgressSnapshot,
    pacing: PacingResult,
    today: date,
    next_item: PlanItem | None,
    sessions: list[list[str]],
) -> str:
    out = [
        "# Bible Dashboard",
        "",
        f"_Generated {today.isoformat()}_",
        "",
        progress_summary_line(snapshot, pacing.pace),
        "",
        "## Schedule",
        "",
        f"- Day {pacing.days_elapsed} of {snapshot.target_days}",
        f"- Expected by today: {pacing.expected_count}",
        f"- Read: {snapshot.verses_read}",
        f"- Behind by: {pacing.catchup}",
        f"- Recommended today: {pacing.recommended_today}",
    ]
    if next_item is not None:
        loc = note_location(next_item.path, next_item.ref)
        out.append(f"- Next up: [[{next_item.path}|{next_item.ref}]] in [[{loc.note_path}|{loc.label}]]")
    else:
        out.append("- Next up: plan complete")

    out += ["", "## Recent sessions", ""]
    if sessions:
        out.append(format_row(SESSION_HEADER))
        out.append(SESSION_SEPARATOR)
        out.extend(format_row(cells) for cells in sessions)
    else:
        out.append("No sessions logged yet.")
    return "\n".join(out) + "\n"
