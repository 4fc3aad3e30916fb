"""
monitor_core — Window Monitor desktop shell v1.0
================================================
Architecture: Tkinter main-thread event loop. Zero busy-wait.

  constants.py       → Version, timings, event names, theme
  config.py          → Paths, logging, config load/save, helpers
  errors.py          → MonitorError hierarchy
  models.py          → WindowObservation, HistoryEntry, BlockedApp, WarningEvent
  http_client.py     → HTTP session with retry/pooling
  backend.py         → HttpBackend (the 7 entry points) + binding checks
  calls.py           → BackendCall / CallRunner (thread + after() poll + timeout)
  events.py          → EventChannel (queue → main loop) + EventStream reader
  history.py         → HistoryLog (bounded, newest first)
  prober.py          → BindingProber (bounded readiness retries)
  synchronizer.py    → WindowSynchronizer (push + poll, dedup, initial fetch)
  state.py           → PanelState dataclass (block list / auto-start mirror)
  mutations.py       → MutationCoordinator (busy flags, timeouts, refresh)
  warning_handler.py → WarningHandler (last-write-wins warning)
  session.py         → MonitorSession (mount / unmount of the above)
  ui.py              → MonitorWindow (main window)
  popup.py           → WarningPopup (Toplevel on main thread)
  app.py             → MonitorApp (Tk main loop)
  runner.py          → main() + auto-restart wrapper
"""
