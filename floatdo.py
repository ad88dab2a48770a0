# Floatdo — Floating Always-on-Top Todo List
# -----------------------------------------------------------
# Features:
#   • Small CustomTkinter window that stays above other windows
#   • Tabs, each with its own ordered task list
#   • Keyboard-first: add, toggle, delete, navigate and reorder without the mouse
#   • Drag rows to reorder them
#   • Adjustable window opacity (Settings, Ctrl/Cmd+,)
#   • Persistent JSON storage in the per-user application data directory
#
# Usage:
#   pip install customtkinter
#   python floatdo.py
#
# Notes:
#   • Set FLOATDO_DATA_DIR to keep data somewhere else.
#   • Set FLOATDO_DEBUG=1 for verbose console logging.

import json
import logging
import os
import sys

import tkinter as tk

try:
    import customtkinter as ctk
except ImportError:
    print("Please install customtkinter: pip install customtkinter")
    raise

from floatdo_nav import (
    CloseConfirmation,
    DragReorder,
    build_keymap,
    entry_shortcuts,
    primary_modifier,
    selection_after_delete,
    step_selection,
)
from floatdo_store import (
    NEW_TAB_NAME,
    OPACITY_MAX,
    OPACITY_MIN,
    OPACITY_STEP,
    TabStore,
    WindowPrefs,
    default_data_dir,
    ensure_dir,
)

logger = logging.getLogger("floatdo")

# -------------------------------
# CONFIG
# -------------------------------
DATA_DIR = default_data_dir()
DATA_FILE = os.path.join(DATA_DIR, "tabs.json")
PREFS_FILE = os.path.join(DATA_DIR, "prefs.json")
THEME_FILE = os.path.join(DATA_DIR, "floatdo_theme.json")
LOG_FILE = os.path.join(DATA_DIR, "floatdo.log")
APP_TITLE = "Floatdo"

CLOSE_CONFIRM_MS = 3000
DRAG_THRESHOLD_PX = 4

BASE = "#1C1B22"
ACCENT = "#F2A65A"
CONTRAST = "#ECEAF4"
MUTED = "#8C8A99"
ROW_SELECTED = "#3A3026"
ROW_DRAGGED = "#2A2930"
FONT_FAMILY = "Segoe UI"


# -------------------------------
# Helpers
# -------------------------------

def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def setup_logging(log_file: str = LOG_FILE, debug: bool | None = None) -> None:
    """Console gets warnings (everything with FLOATDO_DEBUG), the file gets everything."""
    if debug is None:
        debug = _env_bool("FLOATDO_DEBUG")
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.DEBUG if debug else logging.WARNING)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    try:
        fh = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as exc:
        logger.warning("File logging disabled: %s", exc)
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(fmt)
    root.addHandler(fh)


def builtin_theme_path(name: str = "dark-blue") -> str:
    return os.path.join(os.path.dirname(ctk.__file__), "assets", "themes", f"{name}.json")


def write_theme_if_missing():
    """Create a CustomTkinter theme JSON with the Floatdo palette.

    Starts from the bundled dark-blue theme so every widget section exists,
    then recolours the widgets the window uses.
    """
    if os.path.exists(THEME_FILE):
        return
    with open(builtin_theme_path(), "r", encoding="utf-8") as f:
        theme = json.load(f)
    overrides = {
        "CTk": {"fg_color": [BASE, BASE]},
        "CTkToplevel": {"fg_color": [BASE, BASE]},
        "CTkFrame": {
            "corner_radius": 8,
            "fg_color": [BASE, BASE],
            "top_fg_color": [BASE, BASE],
        },
        "CTkButton": {
            "corner_radius": 6,
            "fg_color": [ROW_SELECTED, ROW_SELECTED],
            "hover_color": [ROW_DRAGGED, ROW_DRAGGED],
            "text_color": [ACCENT, ACCENT],
        },
        "CTkLabel": {"text_color": [CONTRAST, CONTRAST]},
        "CTkEntry": {
            "corner_radius": 6,
            "border_width": 0,
            "fg_color": ["#26252E", "#26252E"],
            "text_color": [CONTRAST, CONTRAST],
            "placeholder_text_color": [MUTED, MUTED],
        },
        "CTkSlider": {
            "progress_color": [ACCENT, ACCENT],
            "button_color": [ACCENT, ACCENT],
            "button_hover_color": [CONTRAST, CONTRAST],
        },
        "CTkScrollbar": {
            "button_color": ["#3A3944", "#3A3944"],
            "button_hover_color": [MUTED, MUTED],
        },
    }
    for widget, values in overrides.items():
        theme.setdefault(widget, {}).update(values)
    with open(THEME_FILE, "w", encoding="utf-8") as f:
        json.dump(theme, f, indent=2)


def shortcut_label(key: str) -> str:
    return f"{'Cmd' if primary_modifier() == 'Command' else 'Ctrl'}+{key}"


# -------------------------------
# GUI Components
# -------------------------------
class TaskRow(ctk.CTkFrame):
    """One task: title plus toggle/delete buttons revealed on hover or selection."""

    def __init__(self, master, task: dict, *, on_select, on_toggle, on_delete, on_drag):
        super().__init__(master, corner_radius=6, fg_color="transparent")
        self.on_select = on_select
        self.on_toggle = on_toggle
        self.on_delete = on_delete
        self.on_drag = on_drag
        self._hovering = False
        self._selected = False
        self._dragged = False
        self._press_y: int | None = None
        self.task = task

        self._font = ctk.CTkFont(family=FONT_FAMILY, size=14)
        self._done_font = ctk.CTkFont(family=FONT_FAMILY, size=14, overstrike=True)

        self.title_label = ctk.CTkLabel(self, text="", anchor="w", justify="left")
        self.title_label.pack(side="left", fill="x", expand=True, padx=(10, 4), pady=4)

        self.actions = ctk.CTkFrame(self, fg_color="transparent")
        self.toggle_button = ctk.CTkButton(
            self.actions, text="", width=26, height=22, fg_color="transparent",
            command=lambda: self.on_toggle(self.task_id),
        )
        self.toggle_button.pack(side="left", padx=(0, 2))
        self.delete_button = ctk.CTkButton(
            self.actions, text="✕", width=26, height=22, fg_color="transparent",
            command=lambda: self.on_delete(self.task_id),
        )
        self.delete_button.pack(side="left")

        for widget in (self, self.title_label):
            widget.bind("<Button-1>", self._on_press, add="+")
            widget.bind("<B1-Motion>", self._on_motion, add="+")
            widget.bind("<ButtonRelease-1>", self._on_release, add="+")
        for widget in (self, self.title_label, self.actions):
            widget.bind("<Enter>", self._on_enter, add="+")
            widget.bind("<Leave>", self._on_leave, add="+")

        self.set_task(task)

    @property
    def task_id(self) -> str:
        return self.task["id"]

    def set_task(self, task: dict, *, selected: bool = False, dragged: bool = False):
        self.task = task
        self._selected = selected
        self._dragged = dragged
        done = bool(task.get("isDone"))
        self.title_label.configure(
            text=task.get("title", ""),
            font=self._done_font if done else self._font,
            text_color=ACCENT if done else CONTRAST,
        )
        self.toggle_button.configure(text="↺" if done else "✓")
        if dragged:
            self.configure(fg_color=ROW_DRAGGED)
        elif selected:
            self.configure(fg_color=ROW_SELECTED)
        else:
            self.configure(fg_color="transparent")
        self._sync_actions()

    def _sync_actions(self):
        if self._hovering or self._selected:
            if not self.actions.winfo_ismapped():
                self.actions.pack(side="right", padx=(0, 6))
        else:
            self.actions.pack_forget()

    def _on_enter(self, _event):
        self._hovering = True
        self._sync_actions()

    def _on_leave(self, event):
        # Leave also fires when the pointer moves onto one of our children.
        inside = self.winfo_containing(event.x_root, event.y_root)
        while inside is not None:
            if inside is self:
                return
            inside = inside.master
        self._hovering = False
        self._sync_actions()

    def _on_press(self, event):
        self._press_y = event.y_root
        self.on_select(self.task_id)

    def _on_motion(self, event):
        if self._press_y is None:
            return
        if abs(event.y_root - self._press_y) < DRAG_THRESHOLD_PX:
            return
        self.on_drag("motion", self.task_id, event)

    def _on_release(self, event):
        if self._press_y is None:
            return
        self._press_y = None
        self.on_drag("release", self.task_id, event)


class TabBar(ctk.CTkFrame):
    def __init__(self, master, *, on_select, on_add):
        super().__init__(master, fg_color="transparent", height=28)
        self.on_select = on_select
        self.tab_frame = ctk.CTkFrame(self, fg_color="transparent")
        self.tab_frame.pack(side="left", fill="x", expand=True)
        ctk.CTkButton(self, text="+", width=26, height=24, command=on_add).pack(side="right")

    def refresh(self, tabs: list[dict], selected_id: str):
        for w in self.tab_frame.winfo_children():
            w.destroy()
        for tab in tabs:
            active = tab["id"] == selected_id
            ctk.CTkButton(
                self.tab_frame,
                text=tab["name"],
                width=40,
                height=24,
                corner_radius=0,
                fg_color=ROW_SELECTED if active else "transparent",
                text_color=ACCENT if active else MUTED,
                command=lambda tid=tab["id"]: self.on_select(tid),
            ).pack(side="left")


class SettingsDialog(ctk.CTkToplevel):
    """Window opacity slider; changes apply to the main window immediately."""

    def __init__(self, master, prefs: WindowPrefs, on_change):
        super().__init__(master)
        self.title("Settings")
        self.geometry("320x120")
        self.resizable(False, False)
        self.transient(master)
        self.prefs = prefs
        self.on_change = on_change

        container = ctk.CTkFrame(self)
        container.pack(fill="both", expand=True, padx=16, pady=16)

        row = ctk.CTkFrame(container, fg_color="transparent")
        row.pack(fill="x")
        ctk.CTkLabel(row, text="Window Opacity").pack(side="left")
        self.value_label = ctk.CTkLabel(row, text="", text_color=MUTED)
        self.value_label.pack(side="right")

        self.slider = ctk.CTkSlider(
            container,
            from_=OPACITY_MIN,
            to=OPACITY_MAX,
            number_of_steps=int(round((OPACITY_MAX - OPACITY_MIN) / OPACITY_STEP)),
            command=self._on_slide,
        )
        self.slider.set(prefs.opacity)
        self.slider.pack(fill="x", pady=(12, 0))
        self._show_value(prefs.opacity)

        self.bind("<Escape>", lambda _event: self.destroy())
        self.protocol("WM_DELETE_WINDOW", self.destroy)

    def _show_value(self, value: float):
        self.value_label.configure(text=f"{value * 100:.0f}%")

    def _on_slide(self, value):
        opacity = self.prefs.set_opacity(value)
        self._show_value(opacity)
        self.on_change(opacity)


# -------------------------------
# Main window
# -------------------------------
class FloatdoApp(ctk.CTk):
    """The floating todo window."""

    def __init__(self, store: TabStore, prefs: WindowPrefs):
        super().__init__()
        self.store = store
        self.prefs = prefs
        self.selection: str | None = None
        self.drag = DragReorder(store)
        self.close_guard = CloseConfirmation()
        self._close_reset_job: str | None = None
        self._move_origin: tuple[int, int] | None = None
        self._rows: list[TaskRow] = []
        self._settings_window: SettingsDialog | None = None
        self._shown_tab_id = store.selected_tab_id

        self.title(APP_TITLE)
        self.geometry("300x420")
        self.minsize(260, 320)
        self.attributes("-topmost", True)
        self.apply_opacity(prefs.opacity)

        # Header strip: drag it to move the window
        self.header = ctk.CTkFrame(self, fg_color="transparent")
        self.header.pack(fill="x", padx=8, pady=(8, 0))
        self.tab_bar = TabBar(self.header, on_select=self._select_tab, on_add=self._add_tab)
        self.tab_bar.pack(fill="x")
        for widget in (self.header, self.tab_bar, self.tab_bar.tab_frame):
            widget.bind("<ButtonPress-1>", self._start_window_move, add="+")
            widget.bind("<B1-Motion>", self._window_move, add="+")

        self.banner = ctk.CTkLabel(self, text="", text_color=BASE, fg_color=ACCENT, corner_radius=6)

        self.entry = ctk.CTkEntry(self, placeholder_text="New task", font=(FONT_FAMILY, 14))
        self.entry.pack(fill="x", padx=10, pady=(8, 6))
        self.entry.bind("<Return>", self._commit_new_task)

        self.task_list = ctk.CTkScrollableFrame(self, fg_color=BASE)
        self.task_list.pack(fill="both", expand=True, padx=4, pady=(0, 8))
        self.empty_label = ctk.CTkLabel(self.task_list, text="No tasks yet.", text_color=MUTED)

        self._bind_shortcuts()
        self.store.subscribe(self.refresh)
        self.refresh()
        self.after(50, self.entry.focus_set)

    # ----------------------- Wiring -----------------------
    def _bind_shortcuts(self):
        handlers = {
            "delete": self.delete_selected,
            "toggle": self.toggle_selected,
            "new_task": self.begin_new_task,
            "next": lambda: self.move_selection(1),
            "prev": lambda: self.move_selection(-1),
            "move_down": lambda: self.move_selected_task(1),
            "move_up": lambda: self.move_selected_task(-1),
            "add_tab": self._add_tab,
            "close_tab": self.close_current_tab,
            "prev_tab": lambda: self.store.select_adjacent_tab(-1),
            "next_tab": lambda: self.store.select_adjacent_tab(1),
            "settings": self.open_settings,
            "hide_window": self.hide_window,
        }
        keymap = build_keymap()
        for sequence, intent in keymap:
            self._bind_shortcut(self, sequence, handlers[intent])
        # The entry runs first; "break" there keeps Entry class keys (and the
        # plain <Return> commit) from acting on the same press.
        for sequence, intent in entry_shortcuts(keymap):
            self._bind_shortcut(self.entry, sequence, handlers[intent])

    def _bind_shortcut(self, widget, sequence: str, handler):
        try:
            widget.bind(sequence, lambda _event, h=handler: self._run_shortcut(h))
        except tk.TclError:
            # Keysym unknown to this Tk build (ISO_Left_Tab outside X11)
            logger.debug("Skipping shortcut %s", sequence)

    def _run_shortcut(self, handler):
        handler()
        # Stop Tab focus traversal and the entry's own arrow handling.
        return "break"

    # ----------------------- Rendering -----------------------
    def refresh(self):
        if self.store.selected_tab_id != self._shown_tab_id:
            self._shown_tab_id = self.store.selected_tab_id
            self.selection = None
            self.drag.cancel()
            self._reset_close_confirmation()
        self.tab_bar.refresh(self.store.tabs, self.store.selected_tab_id)
        self._render_tasks()

    def _render_tasks(self):
        tasks = list(self.store.tasks)
        # Rows are reused so a row being dragged keeps receiving motion events.
        while len(self._rows) > len(tasks):
            self._rows.pop().destroy()
        while len(self._rows) < len(tasks):
            row = TaskRow(
                self.task_list,
                tasks[len(self._rows)],
                on_select=self._select_task,
                on_toggle=self.store.toggle_task,
                on_delete=self.delete_task,
                on_drag=self._on_row_drag,
            )
            row.pack(fill="x", padx=4, pady=1)
            self._rows.append(row)
        for row, task in zip(self._rows, tasks):
            row.set_task(
                task,
                selected=task["id"] == self.selection,
                dragged=task["id"] == self.drag.dragged_id,
            )
        if tasks:
            self.empty_label.pack_forget()
        else:
            self.empty_label.pack(pady=12)

    # ----------------------- Actions -----------------------
    def _commit_new_task(self, _event=None):
        title = self.entry.get()
        if not title.strip():
            self.entry.focus_set()
            return "break"
        self.store.add_task(title)
        # Clear on the next tick so the entry does not restore the committed text.
        self.after_idle(self._clear_entry)
        return "break"

    def _clear_entry(self):
        self.entry.delete(0, tk.END)
        self.entry.focus_set()

    def begin_new_task(self):
        self._clear_entry()

    def _select_task(self, task_id: str | None):
        self.selection = task_id
        self._render_tasks()

    def move_selection(self, direction: int):
        new = step_selection(self.store.tasks.ids(), self.selection, direction)
        if new != self.selection:
            self._select_task(new)

    def delete_task(self, task_id: str | None):
        tasks = self.store.tasks
        idx = tasks.index_of(task_id)
        if idx is None:
            return
        was_selected = task_id == self.selection
        self.store.delete_task(task_id)
        if was_selected:
            self._select_task(selection_after_delete(self.store.tasks.ids(), idx))

    def delete_selected(self):
        self.delete_task(self.selection)

    def toggle_selected(self):
        self.store.toggle_task(self.selection)

    def move_selected_task(self, delta: int):
        self.store.move_task(self.selection, delta)

    def _add_tab(self):
        self.store.add_tab(NEW_TAB_NAME)
        self.begin_new_task()

    def _select_tab(self, tab_id: str):
        self.store.select_tab(tab_id)

    def close_current_tab(self):
        if len(self.store.tabs) < 2:
            return
        tab = self.store.selected_tab
        count = len(tab["tasks"])
        if self.close_guard.request(tab["id"], count > 0):
            self._reset_close_confirmation()
            self.store.close_tab(tab["id"])
            return
        noun = "task" if count == 1 else "tasks"
        self.banner.configure(
            text=f"“{tab['name']}” has {count} {noun}. {shortcut_label('W')} again to close."
        )
        self.banner.pack(fill="x", padx=10, pady=(6, 0), before=self.entry)
        if self._close_reset_job is not None:
            self.after_cancel(self._close_reset_job)
        self._close_reset_job = self.after(CLOSE_CONFIRM_MS, self._reset_close_confirmation)

    def _reset_close_confirmation(self):
        if self._close_reset_job is not None:
            try:
                self.after_cancel(self._close_reset_job)
            except tk.TclError:
                pass
            self._close_reset_job = None
        self.close_guard.reset()
        self.banner.pack_forget()

    # ----------------------- Drag reorder -----------------------
    def _on_row_drag(self, phase: str, task_id: str, event):
        if phase == "motion":
            if not self.drag.active:
                self.drag.begin(task_id)
                self._render_tasks()
            target = self._row_at(event.x_root, event.y_root)
            if target is not None:
                self.drag.enter(target.task_id)
        elif phase == "release" and self.drag.active:
            self._select_task(self.drag.finish())

    def _row_at(self, x_root: int, y_root: int) -> TaskRow | None:
        widget = self.winfo_containing(x_root, y_root)
        while widget is not None:
            if isinstance(widget, TaskRow):
                return widget
            widget = widget.master
        return None

    # ----------------------- Window -----------------------
    def apply_opacity(self, value: float):
        try:
            self.attributes("-alpha", value)
        except tk.TclError:
            logger.debug("Window manager does not support -alpha")

    def open_settings(self):
        if self._settings_window is not None and self._settings_window.winfo_exists():
            self._settings_window.focus()
            return
        self._settings_window = SettingsDialog(self, self.prefs, self.apply_opacity)
        self._settings_window.attributes("-topmost", True)

    def hide_window(self):
        # A minimised window gets no keys; it comes back from the taskbar/dock.
        self.iconify()

    def _start_window_move(self, event):
        self._move_origin = (event.x_root - self.winfo_x(), event.y_root - self.winfo_y())

    def _window_move(self, event):
        if self._move_origin is None:
            return
        dx, dy = self._move_origin
        self.geometry(f"+{event.x_root - dx}+{event.y_root - dy}")


# -------------------------------
# MAIN
# -------------------------------
def main():
    ensure_dir(DATA_DIR)
    setup_logging()
    try:
        write_theme_if_missing()
    except OSError as exc:
        logger.warning("Could not write theme file: %s", exc)

    ctk.set_appearance_mode("dark")
    try:
        ctk.set_default_color_theme(THEME_FILE)
    except Exception:
        # Fallback to built-in if custom theme fails
        logger.warning("Theme %s unusable, using dark-blue", THEME_FILE)
        ctk.set_default_color_theme("dark-blue")

    store = TabStore(DATA_FILE)
    prefs = WindowPrefs(PREFS_FILE)
    app = FloatdoApp(store, prefs)
    app.mainloop()


if __name__ == "__main__":
    main()
