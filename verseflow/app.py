from __future__ import annotations

from datetime import datetime
from pathlib import Path
import argparse

from .config import Settings, load_settings
from .errors import NoActiveNoteError, VerseFlowError
from .generator import progress_summary_line, render_dashboard, render_target_list
from .logger import log_error, log_info, log_success, log_warning, logger, setup_logging
from .models import FinalizeResult, PlanItem, ProgressSnapshot, ReadCounts, ReadStateMap
from .patching import append_table_rows, clear_checked, extract_checked_indices, parse_table_rows
from .planner import compute_pacing, today_count
from .progress import (
    EVENT_HEADER,
    EVENT_SEPARATOR,
    SESSION_HEADER,
    SESSION_SEPARATOR,
    apply_finalize,
    compute_from_map,
    local_stamp,
    rebuild_from_events,
    seed_from_snapshot,
)
from .storage import NoteBuffer, Vault, load_map, load_plan, read_progress, save_map, update_progress


def _snapshot(settings: Settings, vault: Vault, now: datetime) -> ProgressSnapshot:
    return read_progress(
        vault,
        settings.progress_path,
        now.date(),
        default_total=settings.default_total,
        default_target_days=settings.default_target_days,
    )


def _current_counts(
    settings: Settings, vault: Vault, plan: list[PlanItem], snapshot: ProgressSnapshot
) -> tuple[int, int]:
    """(verses_read, last_order), from the map when enabled and present."""
    if settings.use_map:
        read_map = load_map(vault, settings.map_path)
        if read_map is not None:
            counts = compute_from_map(read_map, len(plan))
            return counts.unique_read, counts.first_unread
    return snapshot.verses_read, snapshot.last_order


def reconcile_snapshot(
    settings: Settings,
    vault: Vault,
    read_map: ReadStateMap,
    plan_length: int,
    now: datetime,
) -> ReadCounts:
    counts = compute_from_map(read_map, plan_length)
    update_progress(
        vault,
        settings.progress_path,
        {"last_order": counts.first_unread, "verses_read": counts.unique_read},
        defaults=_snapshot(settings, vault, now),
    )
    logger.info("Progress reconciled: last_order=%d verses_read=%d", counts.first_unread, counts.unique_read)
    return counts


def insert_today_target(settings: Settings, vault: Vault, note: NoteBuffer, now: datetime | None = None) -> int:
    now = now or datetime.now()
    plan = load_plan(vault, settings.plan_path)
    snapshot = _snapshot(settings, vault, now)
    verses_read, last_order = _current_counts(settings, vault, plan, snapshot)

    pacing = compute_pacing(
        total=snapshot.total_verses,
        start_date=snapshot.start_date,
        today=now.date(),
        target_days=snapshot.target_days,
        verses_read=verses_read,
    )
    count = today_count(pacing, settings.max_today, len(plan), last_order)
    note.replace_selection(render_target_list(plan, last_order, count, settings.preview_count))
    logger.info(
        "Inserted target: start=%d count=%d expected=%d pace=%d",
        last_order, count, pacing.expected_count, pacing.pace,
    )
    return count


def finalize_read(
    settings: Settings, vault: Vault, note: NoteBuffer, now: datetime | None = None
) -> FinalizeResult | None:
    indices = extract_checked_indices(note.get_value())
    if not indices:
        return None

    plan = load_plan(vault, settings.plan_path)
    now = now or datetime.now()
    stamp = local_stamp(now)

    read_map = load_map(vault, settings.map_path) or {}
    result = apply_finalize(read_map, indices, plan, stamp)
    save_map(vault, settings.map_path, read_map)

    update_progress(
        vault,
        settings.progress_path,
        {"last_order": result.counts.first_unread, "verses_read": result.counts.unique_read},
        defaults=_snapshot(settings, vault, now),
    )

    if result.events:
        events_text = append_table_rows(
            vault.read_text(settings.events_path),
            EVENT_HEADER,
            EVENT_SEPARATOR,
            [e.as_row() for e in result.events],
        )
        vault.write_text(settings.events_path, events_text)

    log_text = append_table_rows(
        vault.read_text(settings.session_log_path),
        SESSION_HEADER,
        SESSION_SEPARATOR,
        [result.session.as_row()],
    )
    vault.write_text(settings.session_log_path, log_text)

    logger.info("Finalized %d index(es) at %s: %s", len(result.indices), stamp, result.indices)
    return result


def clear_checkboxes(note: NoteBuffer) -> bool:
    content = note.get_value()
    cleared = clear_checked(content)
    if cleared == content:
        return False
    note.set_value(cleared)
    return True


def seed_map_from_progress(settings: Settings, vault: Vault, now: datetime | None = None) -> int:
    now = now or datetime.now()
    plan = load_plan(vault, settings.plan_path)
    snapshot = _snapshot(settings, vault, now)
    read_map = seed_from_snapshot(snapshot.verses_read, len(plan), local_stamp(now))
    save_map(vault, settings.map_path, read_map)
    reconcile_snapshot(settings, vault, read_map, len(plan), now)
    return len(read_map)


def recompute_progress_from_map(settings: Settings, vault: Vault, now: datetime | None = None) -> ReadCounts:
    now = now or datetime.now()
    plan = load_plan(vault, settings.plan_path)
    read_map = load_map(vault, settings.map_path) or {}
    return reconcile_snapshot(settings, vault, read_map, len(plan), now)


def rebuild_map_from_events(settings: Settings, vault: Vault, now: datetime | None = None) -> int:
    now = now or datetime.now()
    plan = load_plan(vault, settings.plan_path)
    read_map = rebuild_from_events(vault.read_text(settings.events_path))
    save_map(vault, settings.map_path, read_map)
    reconcile_snapshot(settings, vault, read_map, len(plan), now)
    return len(read_map)


def insert_progress_summary(settings: Settings, vault: Vault, note: NoteBuffer, now: datetime | None = None) -> str:
    now = now or datetime.now()
    snapshot = _snapshot(settings, vault, now)
    pacing = compute_pacing(
        total=snapshot.total_verses,
        start_date=snapshot.start_date,
        today=now.date(),
        target_days=snapshot.target_days,
        verses_read=snapshot.verses_read,
    )
    line = progress_summary_line(snapshot, pacing.pace)
    note.replace_selection(line + "\n")
    return line


def write_dashboard(settings: Settings, vault: Vault, now: datetime | None = None) -> Path:
    now = now or datetime.now()
    plan = load_plan(vault, settings.plan_path)
    snapshot = _snapshot(settings, vault, now)
    snapshot.verses_read, snapshot.last_order = _current_counts(settings, vault, plan, snapshot)

    pacing = compute_pacing(
        total=snapshot.total_verses,
        start_date=snapshot.start_date,
        today=now.date(),
        target_days=snapshot.target_days,
        verses_read=snapshot.verses_read,
    )
    sessions = [
        cells
        for cells in parse_table_rows(vault.read_text(settings.session_log_path))
        if cells and cells[0] != SESSION_HEADER[0]
    ]
    recent = sessions[-settings.dashboard_sessions:] if settings.dashboard_sessions > 0 else []
    next_item = plan[snapshot.last_order] if snapshot.last_order < len(plan) else None

    vault.write_text(
        settings.dashboard_path,
        render_dashboard(snapshot, pacing, now.date(), next_item, recent),
    )
    return vault.resolve(settings.dashboard_path)


def _open_note(settings: Settings, raw: str | None) -> NoteBuffer:
    if not raw:
        raise NoActiveNoteError("no active note")
    path = Path(raw)
    if not path.exists() and not path.is_absolute():
        path = settings.vault_dir / raw
    return NoteBuffer(path, settings.cursor_marker)


def run_command(settings: Settings, cmd: str, note_path: str | None = None) -> None:
    vault = Vault(settings.vault_dir)

    if cmd == "insert-target":
        count = insert_today_target(settings, vault, _open_note(settings, note_path))
        log_success(f"inserted today's target ({count})")
    elif cmd == "finalize":
        result = finalize_read(settings, vault, _open_note(settings, note_path))
        if result is None:
            log_info("no checked items found")
        else:
            log_success(f"finalized {len(result.indices)} verse(s)")
            missing = len(result.indices) - len(result.events)
            if missing:
                log_warning(f"{missing} checked item(s) not in the plan; counted without event rows")
    elif cmd == "clear-checks":
        clear_checkboxes(_open_note(settings, note_path))
        log_success("cleared checks")
    elif cmd == "seed-map":
        seeded = seed_map_from_progress(settings, vault)
        log_success(f"seeded {seeded} indices from progress")
    elif cmd == "recompute":
        counts = recompute_progress_from_map(settings, vault)
        log_success(f"recomputed progress (read={counts.unique_read})")
    elif cmd == "rebuild-map":
        entries = rebuild_map_from_events(settings, vault)
        log_success(f"rebuilt map from events ({entries} entries)")
    elif cmd == "summary":
        insert_progress_summary(settings, vault, _open_note(settings, note_path))
        log_success("inserted progress summary")
    elif cmd == "dashboard":
        path = write_dashboard(settings, vault)
        log_success(f"dashboard written to {path}")


NOTE_COMMANDS = ("insert-target", "finalize", "clear-checks", "summary")
VAULT_COMMANDS = ("seed-map", "recompute", "rebuild-map", "dashboard")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="VerseFlow")
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("--vault", help="Vault directory (overrides config)")
    sub = parser.add_subparsers(dest="cmd", required=True)
    for name in NOTE_COMMANDS:
        p = sub.add_parser(name)
        p.add_argument("note", nargs="?", help="Active note, absolute or vault-relative")
    for name in VAULT_COMMANDS:
        sub.add_parser(name)
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    if args.vault:
        settings.vault_dir = Path(args.vault)
    setup_logging(settings.log_file, settings.log_level)

    try:
        run_command(settings, args.cmd, getattr(args, "note", None))
    except VerseFlowError as exc:
        log_error(str(exc))
        raise SystemExit(1)
    except OSError as exc:
        logger.exception("Write failed during %s", args.cmd)
        log_error(f"could not update vault files ({exc.strerror or exc}); re-run is safe")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
