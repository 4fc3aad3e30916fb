"""
MonitorApp — the main Tkinter application.

Window sync, block-list mutations, binding checks and push-event drain all
run inside Tkinter's event loop via root.after(). Zero busy-wait loops.

Background threads: ONLY the event-stream reader + short-lived backend
call threads. None of them touch Tkinter directly.
"""

import tkinter as tk

from .constants import APP_VERSION
from .config import log, safe_print
from .backend import HttpBackend
from .events import EventChannel, EventStream
from .session import MonitorSession
from .ui import MonitorWindow
from .popup import WarningPopup


class MonitorApp:
    """
    Owns the Tk main loop. Schedules everything via root.after():
      EventChannel._tick()          — drains pushed events          (every 100ms)
      BindingProber._try()          — waits for the backend         (every 200ms, ≤50x)
      WindowSynchronizer._poll_tick() — current-window poll          (every 1s)
      MutationCoordinator           — safety / settle timers        (on demand)
    """

    def __init__(self, config):
        self._config = config
        self._root = None
        self._session = None
        self._stream = None
        self._window = None
        self._popup = None

    def run(self):
        """Start the monitor. Blocks on Tk mainloop. Call from main thread."""
        self._root = tk.Tk()
        self._root.protocol("WM_DELETE_WINDOW", self.stop)

        backend = HttpBackend(self._config["backendUrl"])
        channel = EventChannel(self._root)
        self._stream = EventStream(self._config["backendUrl"], channel)
        self._session = MonitorSession(self._root, backend, channel, config=self._config)

        self._window = MonitorWindow(self._root, self._session)
        self._popup = WarningPopup(self._root, self._session.warnings)

        self._session.start()
        self._stream.start()

        log.info("v%s started (backend=%s, poll=%dms)",
                 APP_VERSION, self._config["backendUrl"], self._config["pollIntervalMs"])
        safe_print("Monitor running.\n")

        try:
            self._root.mainloop()
        finally:
            self._stream.stop()
            self._session.stop()
            self._popup.destroy()
            self._window.destroy()
            log.info("MonitorApp shut down.")

    def stop(self):
        try:
            self._root.quit()
        except Exception:
            pass
