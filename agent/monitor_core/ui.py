"""
MonitorWindow — the main tkinter window.

Pure presentation: reads synchronizer/mutation state and calls their
operations. Re-renders from listener callbacks, all on the main thread.
"""

import tkinter as tk
from tkinter import messagebox

from .constants import APP_NAME, THEME, KIND_ADD, KIND_REMOVE, KIND_AUTOSTART
from .config import log
from .mutations import EVENT_INPUT_CLEARED

_FONT = "Segoe UI"


class MonitorWindow:

    def __init__(self, root, session):
        self._root = root
        self._session = session
        self._sync = session.synchronizer
        self._mutations = session.mutations
        self._blocklist_frame = None
        self._unsubscribers = []

        self._build_ui()
        self._unsubscribers.append(self._sync.add_listener(self._on_history_changed))
        self._unsubscribers.append(self._mutations.add_listener(self._on_mutation_event))
        self._render_current()
        self._render_history()
        self._render_settings()

    def destroy(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    # ─── UI construction ─────────────────────────────────────

    def _build_ui(self):
        root = self._root
        root.title(APP_NAME)
        root.geometry("1000x720")
        root.configure(bg=THEME["bg_dark"])

        tk.Label(root, text=APP_NAME, font=(_FONT, 20, "bold"),
                 fg=THEME["text_primary"], bg=THEME["bg_dark"]).pack(anchor="w", padx=24, pady=(18, 0))
        tk.Label(root, text="Real-time window tracking and monitoring", font=(_FONT, 10),
                 fg=THEME["text_muted"], bg=THEME["bg_dark"]).pack(anchor="w", padx=24, pady=(0, 12))

        top = tk.Frame(root, bg=THEME["bg_dark"])
        top.pack(fill="x", padx=24)

        # ── Current window ──
        current = self._card(top, "Current Window")
        current.pack(side="left", fill="both", expand=True, padx=(0, 8))
        self._title_label = tk.Label(current, font=(_FONT, 12, "bold"), fg=THEME["text_primary"],
                                     bg=THEME["bg_card"], wraplength=280, justify="left")
        self._title_label.pack(anchor="w")
        self._exe_label = tk.Label(current, font=(_FONT, 10), fg=THEME["text_secondary"],
                                   bg=THEME["bg_card"])
        self._exe_label.pack(anchor="w", pady=(4, 0))

        # ── Auto-start ──
        autostart = self._card(top, "Auto-Start Settings")
        autostart.pack(side="left", fill="both", expand=True, padx=8)
        self._autostart_label = tk.Label(autostart, font=(_FONT, 11), bg=THEME["bg_card"])
        self._autostart_label.pack(anchor="w")
        self._autostart_btn = tk.Button(autostart, font=(_FONT, 10, "bold"), relief="flat",
                                        fg="white", padx=14, pady=6, cursor="hand2",
                                        command=self._on_toggle_autostart)
        self._autostart_btn.pack(anchor="w", pady=(8, 0))
        tk.Label(autostart, text="When enabled, the app starts when you log in.",
                 font=(_FONT, 9), fg=THEME["text_muted"], bg=THEME["bg_card"]).pack(anchor="w", pady=(8, 0))

        # ── Blocklist ──
        blocker = self._card(top, "Focus Blocker")
        blocker.pack(side="left", fill="both", expand=True, padx=(8, 0))
        self._exe_var = tk.StringVar()
        self._display_var = tk.StringVar()
        self._exe_entry = self._entry(blocker, self._exe_var)
        self._display_entry = self._entry(blocker, self._display_var)
        self._exe_var.trace_add("write", lambda *_: self._render_add_button())
        self._add_btn = tk.Button(blocker, text="Add", font=(_FONT, 10, "bold"), relief="flat",
                                  bg=THEME["primary"], fg="white", padx=14, pady=4,
                                  cursor="hand2", command=self._on_add)
        self._add_btn.pack(anchor="w", pady=(6, 0))
        self._error_label = tk.Label(blocker, font=(_FONT, 9), fg=THEME["error"],
                                     bg=THEME["bg_card"], wraplength=260, justify="left")
        self._error_label.pack(anchor="w", pady=(4, 0))
        self._blocklist_title = tk.Label(blocker, font=(_FONT, 10, "bold"),
                                         fg=THEME["text_primary"], bg=THEME["bg_card"])
        self._blocklist_title.pack(anchor="w", pady=(8, 2))
        self._blocklist_frame = tk.Frame(blocker, bg=THEME["bg_card"])
        self._blocklist_frame.pack(fill="x")

        for entry in (self._exe_entry, self._display_entry):
            entry.bind("<Return>", lambda e: self._on_add())

        # ── History ──
        history = self._card(root, "Window Change History")
        history.pack(fill="both", expand=True, padx=24, pady=16)
        header = tk.Frame(history, bg=THEME["bg_card"])
        header.pack(fill="x")
        self._history_count = tk.Label(header, font=(_FONT, 9), fg=THEME["text_muted"],
                                       bg=THEME["bg_card"])
        self._history_count.pack(side="left")
        self._clear_btn = tk.Button(header, text="Clear History", font=(_FONT, 9), relief="flat",
                                    command=self._on_clear_history)
        self._clear_btn.pack(side="right")
        self._history_list = tk.Listbox(history, font=("Consolas", 10), bg=THEME["bg_input"],
                                        fg=THEME["text_secondary"], relief="flat",
                                        highlightthickness=0, activestyle="none")
        self._history_list.pack(fill="both", expand=True, pady=(6, 0))

    def _card(self, parent, title):
        card = tk.Frame(parent, bg=THEME["bg_card"], padx=16, pady=12)
        tk.Label(card, text=title, font=(_FONT, 13, "bold"), fg=THEME["text_primary"],
                 bg=THEME["bg_card"]).pack(anchor="w", pady=(0, 8))
        return card

    def _entry(self, parent, var):
        entry = tk.Entry(parent, textvariable=var, font=(_FONT, 10), bg=THEME["bg_input"],
                         fg=THEME["text_primary"], insertbackground=THEME["text_primary"],
                         relief="flat")
        entry.pack(fill="x", ipady=4, pady=(0, 4))
        return entry

    # ─── Listeners ───────────────────────────────────────────

    def _on_history_changed(self, entry):
        if entry is not None:
            self._render_current()
        self._render_history()

    def _on_mutation_event(self, event):
        if event == EVENT_INPUT_CLEARED:
            self._exe_var.set("")
            self._display_var.set("")
        self._render_settings()

    # ─── Actions ─────────────────────────────────────────────

    def _on_add(self):
        self._mutations.add_blocked(self._exe_var.get(), self._display_var.get())

    def _on_remove(self, executable_name):
        self._mutations.remove_blocked(executable_name)

    def _on_toggle_autostart(self):
        self._mutations.toggle_auto_start()

    def _on_clear_history(self):
        if messagebox.askyesno("Clear History", "Are you sure you want to clear the history?",
                               parent=self._root):
            self._sync.clear_history()

    # ─── Rendering ───────────────────────────────────────────

    def _render_current(self):
        current = self._sync.current
        if current is None:
            self._title_label.config(text="Waiting for window information...")
            self._exe_label.config(text="")
            return
        self._title_label.config(text=current.title or "Unknown")
        self._exe_label.config(text=current.exe or "-")

    def _render_history(self):
        entries = self._sync.history.entries()
        self._history_count.config(text=f"({len(entries)} entries)")
        self._clear_btn.config(state="normal" if entries else "disabled")
        self._history_list.delete(0, "end")
        if not entries:
            self._history_list.insert("end", "No window changes recorded yet.")
            return
        for entry in entries:
            self._history_list.insert("end", f"{entry.date_text} {entry.time_text}  {entry.terminal_line}")
        # Newest is on top; keep it in view.
        self._history_list.yview_moveto(0)

    def _render_settings(self):
        state = self._mutations.state

        enabled = state.autostart_enabled
        self._autostart_label.config(
            text=f"Auto-Start: {'Enabled' if enabled else 'Disabled'}",
            fg=THEME["success"] if enabled else THEME["text_muted"],
        )
        self._autostart_btn.config(
            text="Disable Auto-Start" if enabled else "Enable Auto-Start",
            bg=THEME["error"] if enabled else THEME["primary"],
            state="disabled" if state.is_busy(KIND_AUTOSTART) else "normal",
        )

        adding = state.is_busy(KIND_ADD)
        entry_state = "disabled" if adding else "normal"
        self._exe_entry.config(state=entry_state)
        self._display_entry.config(state=entry_state)
        self._render_add_button()
        self._error_label.config(text=state.error)

        self._blocklist_title.config(text=f"Blocked Apps ({len(state.blocklist)})")
        for child in self._blocklist_frame.winfo_children():
            child.destroy()
        if not state.blocklist:
            tk.Label(self._blocklist_frame, text="No apps blocked yet.", font=(_FONT, 9),
                     fg=THEME["text_muted"], bg=THEME["bg_card"]).pack(anchor="w")
            return

        remove_state = "disabled" if state.is_busy(KIND_REMOVE) or adding else "normal"
        for app in state.blocklist:
            row = tk.Frame(self._blocklist_frame, bg=THEME["bg_card"])
            row.pack(fill="x", pady=1)
            tk.Label(row, text=f"{app.label}  ({app.executable_name})", font=(_FONT, 9),
                     fg=THEME["text_secondary"], bg=THEME["bg_card"]).pack(side="left")
            tk.Button(row, text="Remove", font=(_FONT, 8), relief="flat", bg=THEME["error"],
                      fg="white", state=remove_state,
                      command=lambda exe=app.executable_name: self._on_remove(exe)).pack(side="right")
        log.debug("Rendered %d blocked app(s)", len(state.blocklist))

    def _render_add_button(self):
        # Runs on every keystroke; leaves the block-list rows alone.
        adding = self._mutations.state.is_busy(KIND_ADD)
        can_add = not adding and bool(self._exe_var.get().strip())
        self._add_btn.config(text="Adding..." if adding else "Add",
                             state="normal" if can_add else "disabled")
