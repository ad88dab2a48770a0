# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from floatdo_store import TabStore, TaskList


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "floatdo" / "tabs.json"


@pytest.fixture()
def store(data_file: Path) -> TabStore:
    """Fresh store backed by a per-test file (starts with the default Home tab)."""
    return TabStore(str(data_file))


@pytest.fixture()
def abc() -> TaskList:
    tasks = TaskList()
    for title in ("A", "B", "C"):
        tasks.add(title)
    return tasks


def titles(tasks) -> list[str]:
    return [t["title"] for t in tasks]
