# tests/test_tab_store.py

from __future__ import annotations

import json
from pathlib import Path

from floatdo_store import DEFAULT_TAB_NAME, TabStore

from .conftest import titles


def test_fresh_store_has_selected_home_tab_and_writes_file(store: TabStore, data_file: Path) -> None:
    assert [t["name"] for t in store.tabs] == [DEFAULT_TAB_NAME]
    assert store.selected_tab_id == store.tabs[0]["id"]
    assert len(store.tasks) == 0

    saved = json.loads(data_file.read_text(encoding="utf-8"))
    assert saved["selectedTabID"] == store.selected_tab_id
    assert saved["tabs"][0]["tasks"] == []


def test_malformed_file_falls_back_to_default(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text("{not json", encoding="utf-8")

    store = TabStore(str(data_file))

    assert [t["name"] for t in store.tabs] == [DEFAULT_TAB_NAME]
    # The corrupt file is replaced by a valid document.
    assert json.loads(data_file.read_text(encoding="utf-8"))["tabs"][0]["name"] == DEFAULT_TAB_NAME


def test_wrong_shape_and_empty_tabs_fall_back(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    for content in ("[]", '{"tabs": [], "selectedTabID": "x"}', '"text"'):
        data_file.write_text(content, encoding="utf-8")
        store = TabStore(str(data_file))
        assert [t["name"] for t in store.tabs] == [DEFAULT_TAB_NAME]


def test_dangling_selected_id_is_repaired(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    doc = {
        "tabs": [
            {"id": "t1", "name": "Work", "tasks": [{"id": "a", "title": "Ship", "isDone": True}]},
            {"id": "t2", "name": "Home", "tasks": [{"id": "b", "title": "  ", "isDone": False}, {"title": "Cook"}]},
        ],
        "selectedTabID": "gone",
    }
    data_file.write_text(json.dumps(doc), encoding="utf-8")

    store = TabStore(str(data_file))

    assert store.selected_tab_id == "t1"
    assert store.tasks.tasks == [{"id": "a", "title": "Ship", "isDone": True}]
    home = store.tabs[1]["tasks"]
    assert titles(home) == ["Cook"]
    assert home[0]["isDone"] is False
    assert home[0]["id"]


def test_round_trip_preserves_structure(store: TabStore, data_file: Path) -> None:
    store.add_task("one")
    store.add_task("two")
    store.toggle_task(store.tasks.ids()[1])
    store.add_tab()
    store.add_task("three")
    store.select_tab(store.tabs[0]["id"])

    reloaded = TabStore(str(data_file))

    assert reloaded.to_dict() == store.to_dict()
    assert [t["name"] for t in reloaded.tabs] == ["Home", "Tab"]
    assert titles(reloaded.tasks) == ["one", "two"]
    assert reloaded.selected_tab_id == store.tabs[0]["id"]


def test_add_tab_names_and_selects(store: TabStore) -> None:
    first = store.add_tab("Tab")
    second = store.add_tab("Tab")
    third = store.add_tab("Tab")

    assert [first["name"], second["name"], third["name"]] == ["Tab", "Tab 2", "Tab 3"]
    assert store.selected_tab_id == third["id"]
    assert len(store.tasks) == 0


def test_close_last_tab_is_noop(store: TabStore) -> None:
    only = store.tabs[0]["id"]
    assert store.close_tab(only) is False
    assert [t["id"] for t in store.tabs] == [only]


def test_close_unknown_tab_is_noop(store: TabStore) -> None:
    store.add_tab()
    assert store.close_tab("missing") is False
    assert store.close_tab(None) is False
    assert len(store.tabs) == 2


def test_close_selected_tab_reselects_same_index(store: TabStore) -> None:
    store.add_tab()
    store.add_tab()
    ids = [t["id"] for t in store.tabs]
    store.select_tab(ids[1])

    assert store.close_tab(ids[1]) is True
    assert store.selected_tab_id == ids[2]


def test_close_selected_last_tab_reselects_previous(store: TabStore) -> None:
    store.add_tab()
    store.add_tab()
    ids = [t["id"] for t in store.tabs]

    assert store.close_tab(ids[2]) is True
    assert store.selected_tab_id == ids[1]


def test_close_unselected_tab_keeps_selection(store: TabStore) -> None:
    store.add_tab()
    ids = [t["id"] for t in store.tabs]

    store.close_tab(ids[0])
    assert store.selected_tab_id == ids[1]


def test_select_adjacent_tab_clamps(store: TabStore) -> None:
    store.add_tab()
    ids = [t["id"] for t in store.tabs]

    assert store.select_adjacent_tab(1) is False
    assert store.select_adjacent_tab(-1) is True
    assert store.selected_tab_id == ids[0]
    assert store.select_adjacent_tab(-1) is False


def test_task_operations_only_touch_selected_tab(store: TabStore) -> None:
    home_id = store.tabs[0]["id"]
    store.add_task("home task")
    store.add_tab()
    store.add_task("x")
    store.add_task("y")
    store.move_task(store.tasks.ids()[0], 1)
    store.toggle_task(store.tasks.ids()[0])
    store.delete_task(store.tasks.ids()[1])

    assert titles(store.tasks) == ["y"]
    assert store.tasks.tasks[0]["isDone"] is True
    home = next(t for t in store.tabs if t["id"] == home_id)
    assert titles(home["tasks"]) == ["home task"]
    assert home["tasks"][0]["isDone"] is False


def test_blank_task_and_missing_ids_do_not_notify(store: TabStore) -> None:
    calls: list[int] = []
    store.subscribe(lambda: calls.append(1))

    assert store.add_task("   ") is None
    assert store.delete_task(None) is False
    assert store.toggle_task("missing") is False
    assert store.move_task("missing", 1) is False
    assert calls == []


def test_every_change_is_saved_and_notified(store: TabStore, data_file: Path) -> None:
    calls: list[int] = []
    unsubscribe = store.subscribe(lambda: calls.append(1))

    store.add_task("persist me")
    assert titles(json.loads(data_file.read_text(encoding="utf-8"))["tabs"][0]["tasks"]) == ["persist me"]
    assert calls == [1]

    unsubscribe()
    store.add_tab()
    assert calls == [1]


def test_write_failure_is_swallowed(tmp_path: Path) -> None:
    # The "directory" for the data file is a regular file, so every write fails.
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = TabStore(str(blocker / "tabs.json"))

    assert store.add_task("still in memory") is not None
    assert titles(store.tasks) == ["still in memory"]
    assert store.save() is False


def test_duplicate_saved_ids_are_made_unique(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    doc = {
        "tabs": [
            {"id": "t1", "name": "Work", "tasks": [
                {"id": "x", "title": "first", "isDone": False},
                {"id": "x", "title": "second", "isDone": False},
            ]},
            {"id": "t1", "name": "Copy", "tasks": []},
        ],
        "selectedTabID": "t1",
    }
    data_file.write_text(json.dumps(doc), encoding="utf-8")

    store = TabStore(str(data_file))

    ids = store.tasks.ids()
    assert ids[0] == "x"
    assert len(set(ids)) == 2
    assert store.tabs[0]["id"] == "t1"
    assert store.tabs[1]["id"] != "t1"
    assert store.selected_tab_id == "t1"

    store.toggle_task(ids[1])
    assert [t["isDone"] for t in store.tasks] == [False, True]


def test_unhashable_selected_id_keeps_saved_tabs(data_file: Path) -> None:
    data_file.parent.mkdir(parents=True)
    doc = {
        "tabs": [{"id": "t1", "name": "Keep", "tasks": [{"id": "a", "title": "stay", "isDone": False}]}],
        "selectedTabID": ["t1"],
    }
    data_file.write_text(json.dumps(doc), encoding="utf-8")

    store = TabStore(str(data_file))

    assert [t["name"] for t in store.tabs] == ["Keep"]
    assert store.selected_tab_id == "t1"
    assert json.loads(data_file.read_text(encoding="utf-8"))["tabs"][0]["name"] == "Keep"
