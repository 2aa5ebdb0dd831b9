from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

import yaml
from dotenv import dotenv_values


@dataclass
class Settings:
    vault_dir: Path
    plan_path: str = "chronological_plan.vault.json"
    progress_path: str = "Bible-Progress.md"
    map_path: str = "bible-read-map.json"
    events_path: str = "Bible-Read-Events.md"
    session_log_path: str = "Bible-Read-Log.md"
    dashboard_path: str = "Bible-Dashboard.md"
    use_map: bool = True
    max_today: int = 40
    preview_count: int = 20
    default_total: int = 31102
    default_target_days: int = 365
    dashboard_sessions: int = 10
    cursor_marker: str = "%%cursor%%"
    log_file: Path | None = None
    log_level: str = "INFO"


DEFAULTS = Settings(vault_dir=Path("."))


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def load_settings(config_path: str = "config.yaml") -> Settings:
    project_root = Path(__file__).resolve().parent.parent
    env_path = project_root / ".env"
    config_file = Path(config_path)
    if not config_file.exists():
        config_file = project_root / config_path
    raw_env = dotenv_values(env_path) if env_path.exists() else {}
    env = {str(k).lstrip("\ufeff"): (v or "") for k, v in raw_env.items()}

    def get_env(name: str, default: str = "") -> str:
        # Process environment overrides .env file.
        v = os.getenv(name)
        if v is not None and v != "":
            return v.strip()

        value = str(env.get(name, default))

        # Remove BOM and invisible whitespace/newlines
        value = value.replace("\ufeff", "").strip()

        return value

    cfg: dict = {}
    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    paths = cfg.get("paths") or {}
    today = cfg.get("today") or {}
    logging_cfg = cfg.get("logging") or {}

    vault_dir = get_env("VERSEFLOW_VAULT", str(cfg.get("vault_dir", ".")))
    log_file = get_env("VERSEFLOW_LOG_FILE", str(logging_cfg.get("file", "") or ""))

    return Settings(
        vault_dir=Path(vault_dir).expanduser(),
        plan_path=paths.get("plan", DEFAULTS.plan_path),
        progress_path=paths.get("progress", DEFAULTS.progress_path),
        map_path=paths.get("map", DEFAULTS.map_path),
        events_path=paths.get("events", DEFAULTS.events_path),
        session_log_path=paths.get("session_log", DEFAULTS.session_log_path),
        dashboard_path=paths.get("dashboard", DEFAULTS.dashboard_path),
        use_map=_as_bool(cfg.get("use_map"), DEFAULTS.use_map),
        max_today=_as_int(today.get("max_count"), DEFAULTS.max_today),
        preview_count=_as_int(today.get("preview_count"), DEFAULTS.preview_count),
        default_total=_as_int(cfg.get("default_total"), DEFAULTS.default_total),
        default_target_days=_as_int(
            cfg.get("default_target_days"), DEFAULTS.default_target_days
        ),
        dashboard_sessions=_as_int(
            cfg.get("dashboard_sessions"), DEFAULTS.dashboard_sessions
        ),
        cursor_marker=str(cfg.get("cursor_marker", DEFAULTS.cursor_marker)),
        log_file=Path(log_file) if log_file else None,
        log_level=get_env("VERSEFLOW_LOG_LEVEL", str(logging_cfg.get("level", "INFO"))),
    )
