from pathlib import Path

import pytest

from verseflow.config import _as_bool, load_settings

ENV_VARS = ("VERSEFLOW_VAULT", "VERSEFLOW_LOG_FILE", "VERSEFLOW_LOG_LEVEL")

CONFIG = """\
vault_dir: "./from-yaml"
paths:
  plan: "plans/custom.json"
  progress: "Progress.md"
  map: "state/map.json"
  events: "Events.md"
  session_log: "Sessions.md"
  dashboard: "Dash.md"
use_map: "no"
today:
  max_count: lots
  preview_count: 5
dashboard_sessions: 3
logging:
  file: "logs/vf.log"
  level: "WARNING"
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

# ---------------------------------------------------------------------------
# YAML values
# ---------------------------------------------------------------------------

def test_missing_config_gives_defaults(tmp_path):
    settings = load_settings(str(tmp_path / "none.yaml"))
    assert settings.vault_dir == Path(".")
    assert settings.map_path == "bible-read-map.json"
    assert settings.use_map is True
    assert (settings.max_today, settings.preview_count) == (40, 20)
    assert settings.log_file is None
    assert settings.log_level == "INFO"


def test_yaml_sections_map_onto_settings(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(CONFIG, encoding="utf-8")
    settings = load_settings(str(cfg))

    assert settings.vault_dir == Path("from-yaml")
    assert settings.plan_path == "plans/custom.json"
    assert settings.progress_path == "Progress.md"
    assert settings.map_path == "state/map.json"
    assert settings.events_path == "Events.md"
    assert settings.session_log_path == "Sessions.md"
    assert settings.dashboard_path == "Dash.md"
    assert settings.dashboard_sessions == 3
    assert settings.log_file == Path("logs/vf.log")
    assert settings.log_level == "WARNING"


def test_bad_values_fall_back(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(CONFIG, encoding="utf-8")
    settings = load_settings(str(cfg))

    assert settings.max_today == 40
    assert settings.preview_count == 5
    assert settings.use_map is False


def test_as_bool_spellings():
    assert _as_bool("yes", False) is True
    assert _as_bool(" On ", False) is True
    assert _as_bool("no", True) is False
    assert _as_bool(None, True) is True
    assert _as_bool(False, True) is False

# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------

def test_env_overrides_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(CONFIG, encoding="utf-8")
    monkeypatch.setenv("VERSEFLOW_VAULT", str(tmp_path / "v"))
    monkeypatch.setenv("VERSEFLOW_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("VERSEFLOW_LOG_FILE", str(tmp_path / "run.log"))

    settings = load_settings(str(cfg))
    assert settings.vault_dir == tmp_path / "v"
    assert settings.log_level == "DEBUG"
    assert settings.log_file == tmp_path / "run.log"
    assert settings.map_path == "state/map.json"


def test_blank_env_value_does_not_override(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(CONFIG, encoding="utf-8")
    monkeypatch.setenv("VERSEFLOW_LOG_LEVEL", "")
    assert load_settings(str(cfg)).log_level == "WARNING"
