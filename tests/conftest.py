import json
from datetime import datetime

import pytest

from verseflow.config import Settings
from verseflow.storage import Vault

PLAN = [
    {"ref": "Genesis 1:1", "path": "Bible/Genesis/Genesis 1.md#v1"},
    {"ref": "Genesis 1:2", "path": "Bible/Genesis/Genesis 1.md#v2"},
    {"ref": "Genesis 1:3", "path": "Bible/Genesis/Genesis 1.md#v3"},
    {"ref": "Genesis 2:1", "path": "Bible/Genesis/Genesis 2.md#v1"},
    {"ref": "Genesis 2:2", "path": "Bible/Genesis/Genesis 2.md#v2"},
    {"ref": "Job 1:1", "path": "Bible/Job/Job 1.md#v1"},
]

NOW = datetime(2024, 1, 5, 9, 30, 15)


@pytest.fixture
def settings(tmp_path):
    return Settings(vault_dir=tmp_path, max_today=3, preview_count=2)


@pytest.fixture
def vault(settings):
    v = Vault(settings.vault_dir)
    v.write_text(settings.plan_path, json.dumps(PLAN))
    v.write_text(
        settings.progress_path,
        "---\n"
        "last_order: 0\n"
        "verses_read: 0\n"
        "total_verses: 6\n"
        "start_date: 2024-01-01\n"
        "target_days: 3\n"
        "---\n"
        "# Progress\n",
    )
    return v


@pytest.fixture
def note_file(settings):
    path = settings.vault_dir / "Daily.md"
    path.write_text("# Daily\n", encoding="utf-8")
    return path
