"""
WarningPopup — topmost Toplevel shown while a block warning is visible.

Created and managed exclusively on the tkinter main thread. Follows the
WarningHandler: shown/replaced when a warning arrives, destroyed when the
user resolves it. Hardened against widget-destroyed errors.
"""

import tkinter as tk

from .constants import THEME
from .config import log

_FONT = "Segoe UI"


class WarningPopup:

    def __init__(self, root, handler):
        self._root = root
        self._handler = handler
        self._toplevel = None
        self._remove_listener = handler.add_listener(self._on_warning_changed)

    @property
    def is_visible(self):
        return self._toplevel is not None

    def destroy(self):
        self._remove_listener()
        self.hide()

    def _on_warning_changed(self, handler):
        if handler.visible and handler.current is not None:
            # Last write wins: rebuild with the newest warning.
            self.hide()
            self.show(handler.current)
        else:
            self.hide()

    def show(self, warning):
        if self._toplevel is not None:
            return
        try:
            self._build_ui(warning)
        except Exception as e:
            log.error("Failed to show warning popup: %s", e, exc_info=True)
            self._toplevel = None

    def hide(self):
        if self._toplevel is not None:
            try:
                self._toplevel.destroy()
            except tk.TclError:
                pass
            self._toplevel = None

    # ─── UI construction ─────────────────────────────────────

    def _build_ui(self, warning):
        top = tk.Toplevel(self._root)
        self._toplevel = top
        top.title("Focus Warning")
        top.configure(bg=THEME["bg_card"])
        top.attributes("-topmost", True)
        top.resizable(False, False)

        W, H = 480, 300
        top.geometry(f"{W}x{H}")
        top.update_idletasks()
        x = (top.winfo_screenwidth() - W) // 2
        y = (top.winfo_screenheight() - H) // 2
        top.geometry(f"{W}x{H}+{x}+{y}")

        header = tk.Frame(top, bg=THEME["warning"], height=52)
        header.pack(fill="x")
        header.pack_propagate(False)
        tk.Label(header, text="⚠  Focus Warning", font=(_FONT, 15, "bold"),
                 fg=THEME["bg_dark"], bg=THEME["warning"]).pack(expand=True)

        body = tk.Frame(top, bg=THEME["bg_card"], padx=32, pady=18)
        body.pack(fill="both", expand=True)

        tk.Label(body, text="You're about to open a blocked app:", font=(_FONT, 11),
                 fg=THEME["text_secondary"], bg=THEME["bg_card"]).pack(anchor="w")
        tk.Label(body, text=warning.label, font=(_FONT, 14, "bold"),
                 fg=THEME["text_primary"], bg=THEME["bg_card"]).pack(anchor="w", pady=(8, 0))
        tk.Label(body, text=warning.executable_name, font=(_FONT, 10),
                 fg=THEME["text_muted"], bg=THEME["bg_card"]).pack(anchor="w")
        if warning.title:
            tk.Label(body, text=f"Window: {warning.title}", font=(_FONT, 10),
                     fg=THEME["text_muted"], bg=THEME["bg_card"], wraplength=400,
                     justify="left").pack(anchor="w", pady=(4, 0))
        tk.Label(body, text="Are you sure you want to continue?", font=(_FONT, 11),
                 fg=THEME["text_secondary"], bg=THEME["bg_card"]).pack(anchor="w", pady=(12, 12))

        buttons = tk.Frame(body, bg=THEME["bg_card"])
        buttons.pack(fill="x")
        tk.Button(buttons, text="Continue Anyway", font=(_FONT, 11), relief="flat",
                  padx=16, pady=6, cursor="hand2",
                  command=self._handler.resolve_continue).pack(side="left")
        tk.Button(buttons, text="Close App", font=(_FONT, 11, "bold"), relief="flat",
                  bg=THEME["primary"], fg="white", activebackground=THEME["primary_hover"],
                  activeforeground="white", padx=16, pady=6, cursor="hand2",
                  command=self._handler.resolve_close_app).pack(side="right")

        top.protocol("WM_DELETE_WINDOW", self._handler.resolve_continue)
        log.info("Warning popup shown for %s", warning.executable_name)
