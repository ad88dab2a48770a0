# Floatdo — selection, drag reordering and keyboard wiring
# -----------------------------------------------------------
# Pure helpers used by the window. Nothing here touches Tk, so the behaviour
# behind every shortcut can be exercised without a display.

import sys


def step_selection(ordered_ids: list[str], current: str | None, direction: int) -> str | None:
    """Return the selection after moving ``direction`` (+1/-1) through ``ordered_ids``.

    Saturates at both ends. An empty list leaves ``current`` untouched; a
    selection that is no longer in the list restarts from the first id.
    """
    if not ordered_ids:
        return current
    if current is None:
        return ordered_ids[0] if direction > 0 else ordered_ids[-1]
    if current not in ordered_ids:
        return ordered_ids[0]
    idx = ordered_ids.index(current) + direction
    idx = max(0, min(idx, len(ordered_ids) - 1))
    return ordered_ids[idx]


def selection_after_delete(ordered_ids: list[str], removed_index: int) -> str | None:
    """Pick the task that slid into the deleted row, or the new last one."""
    if not ordered_ids:
        return None
    return ordered_ids[min(removed_index, len(ordered_ids) - 1)]


def drop_offset(from_index: int, to_index: int) -> int:
    # Dragging down drops after the hovered row, dragging up drops before it.
    return to_index + 1 if to_index > from_index else to_index


class DragReorder:
    """Tracks one in-flight row drag and reorders the store live.

    ``store`` is anything with ``tasks`` (a ``TaskList``) and
    ``move_task_index(from_index, to_offset)``, i.e. a ``TabStore``.
    """

    def __init__(self, store):
        self.store = store
        self.dragged_id: str | None = None

    @property
    def active(self) -> bool:
        return self.dragged_id is not None

    def begin(self, task_id: str | None):
        self.dragged_id = task_id

    def enter(self, target_id: str | None) -> bool:
        if self.dragged_id is None or target_id is None or target_id == self.dragged_id:
            return False
        tasks = self.store.tasks
        from_index = tasks.index_of(self.dragged_id)
        to_index = tasks.index_of(target_id)
        if from_index is None or to_index is None:
            return False
        return self.store.move_task_index(from_index, drop_offset(from_index, to_index))

    def finish(self) -> str | None:
        dragged = self.dragged_id
        self.dragged_id = None
        return dragged

    def cancel(self):
        self.dragged_id = None


class CloseConfirmation:
    """Two-press guard for closing a tab that still holds tasks.

    The window arms it on the first press, shows a banner and calls
    ``reset`` from a timer; a second press for the same tab before then
    confirms.
    """

    def __init__(self):
        self.pending_tab_id: str | None = None

    @property
    def armed(self) -> bool:
        return self.pending_tab_id is not None

    def request(self, tab_id: str | None, has_tasks: bool) -> bool:
        if tab_id is None:
            return False
        if not has_tasks or self.pending_tab_id == tab_id:
            self.pending_tab_id = None
            return True
        self.pending_tab_id = tab_id
        return False

    def reset(self):
        self.pending_tab_id = None


# -------------------------------
# Keyboard surface
# -------------------------------

def primary_modifier(platform: str | None = None) -> str:
    platform = sys.platform if platform is None else platform
    return "Command" if platform == "darwin" else "Control"


def build_keymap(platform: str | None = None) -> list[tuple[str, str]]:
    """Return ``(tk event sequence, intent)`` pairs for the main window.

    Enter in the new-task field (``commit``) is bound on the entry itself
    and is not part of this table.
    """
    mod = primary_modifier(platform)
    return [
        (f"<{mod}-Delete>", "delete"),
        (f"<{mod}-BackSpace>", "delete"),
        (f"<{mod}-Return>", "toggle"),
        (f"<{mod}-n>", "new_task"),
        (f"<{mod}-j>", "next"),
        (f"<{mod}-k>", "prev"),
        ("<Down>", "next"),
        ("<Up>", "prev"),
        ("<Tab>", "next"),
        ("<Shift-Tab>", "prev"),
        # X11 reports Shift+Tab as ISO_Left_Tab.
        ("<ISO_Left_Tab>", "prev"),
        (f"<{mod}-Down>", "move_down"),
        (f"<{mod}-Up>", "move_up"),
        (f"<{mod}-t>", "add_tab"),
        (f"<{mod}-w>", "close_tab"),
        (f"<{mod}-h>", "prev_tab"),
        (f"<{mod}-l>", "next_tab"),
        (f"<{mod}-comma>", "settings"),
        (f"<{mod}-Shift-space>", "hide_window"),
    ]


def entry_shortcuts(keymap: list[tuple[str, str]], platform: str | None = None) -> list[tuple[str, str]]:
    """The modifier shortcuts that must also be bound on the new-task entry.

    Tk's ``Entry`` class binds Emacs-style keys (``<Control-h>``,
    ``<Control-k>``, ``<Control-t>``...) that run before the window's
    bindings. Binding these on the entry and returning ``"break"`` keeps the
    draft untouched.
    """
    prefix = f"<{primary_modifier(platform)}-"
    return [(sequence, intent) for sequence, intent in keymap if sequence.startswith(prefix)]
