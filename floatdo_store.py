# Floatdo — task and tab storage
# -----------------------------------------------------------
# Tabs own ordered task lists. The whole collection lives in one JSON file:
#
#   {"tabs": [{"id", "name", "tasks": [{"id", "title", "isDone"}]}],
#    "selectedTabID": "<tab id>"}
#
# Every state change is written back immediately. Writes are best-effort:
# failures are logged and otherwise ignored.

import json
import logging
import os
import sys
import uuid

logger = logging.getLogger(__name__)

DEFAULT_TAB_NAME = "Home"
NEW_TAB_NAME = "Tab"

OPACITY_MIN = 0.2
OPACITY_MAX = 1.0
OPACITY_STEP = 0.05


# -------------------------------
# Helpers
# -------------------------------

def default_data_dir() -> str:
    """Return the per-user application data directory for Floatdo."""
    override = os.getenv("FLOATDO_DATA_DIR")
    if override and override.strip():
        return os.path.expanduser(override.strip())
    if sys.platform.startswith("win"):
        base = os.getenv("APPDATA") or os.path.expanduser("~")
    elif sys.platform == "darwin":
        base = os.path.expanduser("~/Library/Application Support")
    else:
        base = os.getenv("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
    return os.path.join(base, "floatdo")


def ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)


def new_id() -> str:
    return str(uuid.uuid4())


def clamp(value, low, high):
    return max(low, min(value, high))


def make_task(title: str) -> dict:
    return {"id": new_id(), "title": title, "isDone": False}


def make_tab(name: str, tasks: list[dict] | None = None) -> dict:
    return {"id": new_id(), "name": name, "tasks": list(tasks or [])}


def unique_name(base_name: str, existing) -> str:
    """Return ``base_name`` or the first free ``"<base_name> N"`` (N >= 2)."""
    names = set(existing)
    proposed = base_name
    index = 1
    while proposed in names:
        index += 1
        proposed = f"{base_name} {index}"
    return proposed


def _unique_id(raw, seen: set[str]) -> str:
    """Keep a saved id unless it is missing or already taken in ``seen``."""
    ident = str(raw) if raw else ""
    if not ident or ident in seen:
        ident = new_id()
    seen.add(ident)
    return ident


def _write_json(path: str, payload: dict) -> bool:
    try:
        ensure_dir(os.path.dirname(path) or ".")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Could not write %s: %s", path, exc)
        return False
    return True


# -------------------------------
# Task list
# -------------------------------
class TaskList:
    """Ordered task list, mutated in place.

    Mutators return ``True`` when the list changed so callers can skip
    saving on no-ops.
    """

    def __init__(self, tasks: list[dict] | None = None):
        self.tasks = tasks if tasks is not None else []

    def __len__(self):
        return len(self.tasks)

    def __iter__(self):
        return iter(self.tasks)

    def ids(self) -> list[str]:
        return [t["id"] for t in self.tasks]

    def index_of(self, task_id: str | None) -> int | None:
        if task_id is None:
            return None
        for idx, task in enumerate(self.tasks):
            if task.get("id") == task_id:
                return idx
        return None

    def add(self, title: str) -> dict | None:
        trimmed = (title or "").strip()
        if not trimmed:
            return None
        task = make_task(trimmed)
        self.tasks.append(task)
        return task

    def delete(self, task_id: str | None) -> bool:
        idx = self.index_of(task_id)
        if idx is None:
            return False
        del self.tasks[idx]
        return True

    def toggle_done(self, task_id: str | None) -> bool:
        idx = self.index_of(task_id)
        if idx is None:
            return False
        task = self.tasks[idx]
        task["isDone"] = not task.get("isDone", False)
        return True

    def move(self, task_id: str | None, delta: int) -> bool:
        # Jumps straight to the clamped target; a delta of 3 is not three swaps.
        idx = self.index_of(task_id)
        if idx is None or delta == 0:
            return False
        target = clamp(idx + delta, 0, len(self.tasks) - 1)
        if target == idx:
            return False
        task = self.tasks.pop(idx)
        self.tasks.insert(target, task)
        return True

    def move_index(self, from_index: int, to_offset: int) -> bool:
        """Move the item at ``from_index`` in front of the item at ``to_offset``.

        ``to_offset`` is counted before removal and may equal ``len``, which
        moves the item to the end.
        """
        count = len(self.tasks)
        if not 0 <= from_index < count:
            return False
        to_offset = clamp(to_offset, 0, count)
        target = to_offset - 1 if to_offset > from_index else to_offset
        if target == from_index:
            return False
        task = self.tasks.pop(from_index)
        self.tasks.insert(target, task)
        return True


# -------------------------------
# Storage
# -------------------------------
class TabStore:
    def __init__(self, path: str):
        self.path = path
        self.data = {"tabs": [], "selectedTabID": None}
        self._listeners: list = []
        self.load()
        self.save()

    # --- Persistence ---
    def load(self):
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            self.data = self._normalize(raw)
        except FileNotFoundError:
            logger.info("No saved tabs at %s, starting fresh", self.path)
            self.data = self._default_data()
        except Exception as exc:
            # Corrupt or unexpected content: start over with a single tab.
            logger.warning("Ignoring unreadable tab file %s: %s", self.path, exc)
            self.data = self._default_data()

    def save(self) -> bool:
        return _write_json(self.path, self.to_dict())

    def to_dict(self) -> dict:
        return {"tabs": self.data["tabs"], "selectedTabID": self.data["selectedTabID"]}

    @staticmethod
    def _default_data() -> dict:
        tab = make_tab(DEFAULT_TAB_NAME)
        return {"tabs": [tab], "selectedTabID": tab["id"]}

    def _normalize(self, raw) -> dict:
        if not isinstance(raw, dict):
            raise ValueError("tab document is not an object")
        tabs: list[dict] = []
        tab_ids: set[str] = set()
        for entry in raw.get("tabs") or []:
            if not isinstance(entry, dict):
                continue
            tasks = []
            task_ids: set[str] = set()
            for task in entry.get("tasks") or []:
                if not isinstance(task, dict):
                    continue
                title = str(task.get("title") or "").strip()
                if not title:
                    continue
                tasks.append({
                    "id": _unique_id(task.get("id"), task_ids),
                    "title": title,
                    "isDone": bool(task.get("isDone", False)),
                })
            tabs.append({
                "id": _unique_id(entry.get("id"), tab_ids),
                "name": str(entry.get("name") or NEW_TAB_NAME),
                "tasks": tasks,
            })
        if not tabs:
            return self._default_data()
        selected = raw.get("selectedTabID")
        if not isinstance(selected, str) or selected not in tab_ids:
            selected = tabs[0]["id"]
        return {"tabs": tabs, "selectedTabID": selected}

    # --- Change notification ---
    def subscribe(self, callback):
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _commit(self):
        self.save()
        for callback in list(self._listeners):
            callback()

    # --- Access helpers ---
    @property
    def tabs(self) -> list[dict]:
        return self.data["tabs"]

    @property
    def selected_tab_id(self) -> str:
        return self.data["selectedTabID"]

    def _index_of_tab(self, tab_id: str | None) -> int | None:
        for idx, tab in enumerate(self.tabs):
            if tab["id"] == tab_id:
                return idx
        return None

    @property
    def selected_tab(self) -> dict:
        idx = self._index_of_tab(self.selected_tab_id)
        return self.tabs[idx if idx is not None else 0]

    @property
    def tasks(self) -> TaskList:
        return TaskList(self.selected_tab["tasks"])

    # --- Tab operations ---
    def add_tab(self, base_name: str = NEW_TAB_NAME) -> dict:
        name = unique_name(base_name, (t["name"] for t in self.tabs))
        tab = make_tab(name)
        self.tabs.append(tab)
        self.data["selectedTabID"] = tab["id"]
        self._commit()
        return tab

    def close_tab(self, tab_id: str | None) -> bool:
        if len(self.tabs) < 2:
            return False
        idx = self._index_of_tab(tab_id)
        if idx is None:
            return False
        was_selected = tab_id == self.selected_tab_id
        del self.tabs[idx]
        if was_selected:
            self.data["selectedTabID"] = self.tabs[min(idx, len(self.tabs) - 1)]["id"]
        self._commit()
        return True

    def select_tab(self, tab_id: str | None) -> bool:
        if tab_id == self.selected_tab_id or self._index_of_tab(tab_id) is None:
            return False
        self.data["selectedTabID"] = tab_id
        self._commit()
        return True

    def select_adjacent_tab(self, direction: int) -> bool:
        idx = self._index_of_tab(self.selected_tab_id) or 0
        target = clamp(idx + direction, 0, len(self.tabs) - 1)
        return self.select_tab(self.tabs[target]["id"])

    # --- Task operations (current tab only) ---
    def add_task(self, title: str) -> dict | None:
        task = self.tasks.add(title)
        if task is not None:
            self._commit()
        return task

    def delete_task(self, task_id: str | None) -> bool:
        return self._apply(self.tasks.delete(task_id))

    def toggle_task(self, task_id: str | None) -> bool:
        return self._apply(self.tasks.toggle_done(task_id))

    def move_task(self, task_id: str | None, delta: int) -> bool:
        return self._apply(self.tasks.move(task_id, delta))

    def move_task_index(self, from_index: int, to_offset: int) -> bool:
        return self._apply(self.tasks.move_index(from_index, to_offset))

    def _apply(self, changed: bool) -> bool:
        if changed:
            self._commit()
        return changed


# -------------------------------
# Window preferences
# -------------------------------
def normalize_opacity(value) -> float:
    """Clamp to the slider range and snap to its step; 0 or junk means opaque."""
    try:
        opacity = float(value)
    except (TypeError, ValueError):
        return OPACITY_MAX
    if opacity != opacity or opacity <= 0:
        return OPACITY_MAX
    opacity = clamp(opacity, OPACITY_MIN, OPACITY_MAX)
    return round(round(opacity / OPACITY_STEP) * OPACITY_STEP, 2)


class WindowPrefs:
    def __init__(self, path: str):
        self.path = path
        self.opacity = OPACITY_MAX
        self.load()

    def load(self):
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            self.opacity = normalize_opacity(raw.get("windowOpacity"))
        except FileNotFoundError:
            self.opacity = OPACITY_MAX
        except Exception as exc:
            logger.warning("Ignoring unreadable preferences %s: %s", self.path, exc)
            self.opacity = OPACITY_MAX

    def save(self) -> bool:
        return _write_json(self.path, {"windowOpacity": self.opacity})

    def set_opacity(self, value) -> float:
        self.opacity = normalize_opacity(value)
        self.save()
        return self.opacity
