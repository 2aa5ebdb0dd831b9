from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any
import json

from .errors import NoActiveNoteError, PlanNotFoundError, UnreadableFileError
from .logger import logger
from .models import PlanItem, ProgressSnapshot, ReadStateMap
from .patching import patch_frontmatter, read_frontmatter


def _read_file(path: Path) -> str:
    # utf-8-sig drops a leading BOM so frontmatter still starts at "---".
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise UnreadableFileError(f"{path.name} is not valid UTF-8") from exc


class Vault:
    """Vault-relative file access. Every read is whole-file, every write replaces."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def resolve(self, rel: str) -> Path:
        return self.root / rel

    def exists(self, rel: str) -> bool:
        return self.resolve(rel).is_file()

    def ensure_folder(self, rel: str) -> None:
        self.resolve(rel).mkdir(parents=True, exist_ok=True)

    def read_text(self, rel: str) -> str | None:
        path = self.resolve(rel)
        if not path.is_file():
            return None
        return _read_file(path)

    def write_text(self, rel: str, text: str) -> None:
        path = self.resolve(rel)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def read_json(self, rel: str) -> Any:
        try:
            text = self.read_text(rel)
        except UnreadableFileError as exc:
            logger.warning("Undecodable JSON in %s treated as absent: %s", rel, exc)
            return None
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Malformed JSON in %s treated as absent: %s", rel, exc)
            return None

    def write_json(self, rel: str, obj: Any) -> None:
        self.write_text(rel, json.dumps(obj, ensure_ascii=False, indent=2))

    def read_frontmatter(self, rel: str) -> dict[str, Any]:
        return read_frontmatter(self.read_text(rel) or "")


class NoteBuffer:
    """The note the user is working in, handled like an editor buffer."""

    def __init__(self, path: Path, cursor_marker: str = "%%cursor%%"):
        self.path = Path(path)
        self.cursor_marker = cursor_marker
        if not self.path.is_file():
            raise NoActiveNoteError(f"note not found: {self.path}")

    def get_value(self) -> str:
        return _read_file(self.path)

    def set_value(self, text: str) -> None:
        self.path.write_text(text, encoding="utf-8")

    def replace_selection(self, text: str) -> None:
        content = self.get_value()
        if self.cursor_marker and self.cursor_marker in content:
            content = content.replace(self.cursor_marker, text, 1)
        else:
            if content and not content.endswith("\n"):
                content += "\n"
            content += text
        self.set_value(content)


def load_plan(vault: Vault, rel: str) -> list[PlanItem]:
    data = vault.read_json(rel)
    if not isinstance(data, list) or not data:
        raise PlanNotFoundError("plan not found")

    plan = []
    for i, entry in enumerate(data):
        if isinstance(entry, dict):
            plan.append(PlanItem(ref=str(entry.get("ref", "")), path=str(entry.get("path", ""))))
        else:
            logger.warning("Plan entry %d is not an object; kept as a blank item", i)
            plan.append(PlanItem(ref="", path=""))
    return plan


def load_map(vault: Vault, rel: str) -> ReadStateMap | None:
    data = vault.read_json(rel)
    if data is None:
        return None
    if not isinstance(data, dict):
        logger.warning("Read map %s is not an object; treated as absent", rel)
        return None

    read_map: ReadStateMap = {}
    for key, value in data.items():
        try:
            idx = int(key)
        except (TypeError, ValueError):
            logger.warning("Skipping non-numeric read map key %r", key)
            continue
        if idx < 0:
            continue
        if isinstance(value, list):
            read_map[idx] = [str(v) for v in value]
        elif value:
            read_map[idx] = [str(value)]
        else:
            read_map[idx] = []
    return read_map


def save_map(vault: Vault, rel: str, read_map: ReadStateMap) -> None:
    payload = {str(idx): stamps for idx, stamps in sorted(read_map.items())}
    vault.write_json(rel, payload)


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_date(value: Any, default: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    return default


def read_progress(
    vault: Vault,
    rel: str,
    today: date,
    default_total: int = 31102,
    default_target_days: int = 365,
) -> ProgressSnapshot:
    fm = vault.read_frontmatter(rel) if vault.exists(rel) else {}
    return ProgressSnapshot(
        last_order=max(0, _as_int(fm.get("last_order"), 0)),
        verses_read=max(0, _as_int(fm.get("verses_read"), 0)),
        total_verses=_as_int(fm.get("total_verses"), default_total) or default_total,
        start_date=_as_date(fm.get("start_date"), today),
        target_days=_as_int(fm.get("target_days"), default_target_days) or default_target_days,
    )


def update_progress(vault: Vault, rel: str, fields: dict[str, Any], defaults: ProgressSnapshot) -> None:
    """Merge-patch the progress note; a missing note is created from ``defaults``."""
    text = vault.read_text(rel)
    if text is None:
        text = patch_frontmatter("", defaults.as_frontmatter())
    vault.write_text(rel, patch_frontmatter(text, fields))
