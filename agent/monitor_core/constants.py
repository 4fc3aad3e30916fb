"""
Constants, intervals, event names, and theme colors.

All durations are milliseconds unless the name says otherwise (they feed
root.after() directly).
"""

APP_NAME = "Window Monitor"
APP_VERSION = "1.0.0"

# ─── Binding check ───────────────────────────────────────────────
PROBE_START_DELAY_MS = 100     # Let the backend come up before the first check
PROBE_INTERVAL_MS = 200        # Gap between presence checks
PROBE_MAX_ATTEMPTS = 50        # ~10s total, then the session stays degraded
PROBE_SOCKET_TIMEOUT_SEC = 0.5
PROBE_CHECK_TIMEOUT_MS = 1000  # A hung check counts as a miss

# ─── Window sync ─────────────────────────────────────────────────
POLL_INTERVAL_MS = 1000             # Fallback poll of the foreground window
INITIAL_RETRY_INVALID_MS = 500      # Initial fetch returned nothing usable
INITIAL_RETRY_ERROR_MS = 1000       # Initial fetch raised
INITIAL_RETRY_MAX_MS = 8000         # Backoff cap for the initial fetch
INITIAL_FETCH_MAX_ATTEMPTS = 12     # Then the initial slot gives up (poll keeps going)
HISTORY_CAPACITY = 200

# ─── Mutations ───────────────────────────────────────────────────
CALL_TIMEOUT_MS = 5000         # Race timeout for a single backend call
SAFETY_TIMEOUT_MS = 10000      # Last-resort unstick for a whole operation
SETTLE_DELAY_MS = 200          # Let backend persistence land before re-fetch

# ─── Plumbing ────────────────────────────────────────────────────
CALL_POLL_MS = 50              # Worker-result polling on the main loop
EVENT_DRAIN_MS = 100           # Push-event queue drain on the main loop
EVENT_DRAIN_BATCH = 200
API_TIMEOUT_SEC = 10           # requests timeout for entry-point calls
STREAM_CONNECT_TIMEOUT_SEC = 5
STREAM_RECONNECT_MIN_SEC = 1
STREAM_RECONNECT_MAX_SEC = 30
RESTART_BASE_WAIT_SEC = 2      # First restart delay; doubles per rapid crash
RESTART_MAX_WAIT_SEC = 30
RESTART_MAX_CRASHES = 5        # Rapid crashes in a row before giving up
STABLE_RUN_SEC = 120           # A run this long resets the crash count

DEFAULT_BACKEND_URL = "http://127.0.0.1:34115"

# ─── Event names (backend → core) ────────────────────────────────
EVENT_WINDOW_CHANGED = "window-changed"
EVENT_WARNING_DETECTED = "warning-detected"

# ─── Mutation kinds (one busy flag each) ─────────────────────────
KIND_ADD = "add"
KIND_REMOVE = "remove"
KIND_AUTOSTART = "autostart"
MUTATION_KINDS = (KIND_ADD, KIND_REMOVE, KIND_AUTOSTART)

# ─── Theme colors ────────────────────────────────────────────────
THEME = {
    "bg_dark":       "#1b2636",   # window background
    "bg_card":       "#1e293b",   # card background
    "bg_input":      "#0f172a",   # entry background
    "primary":       "#3b82f6",   # blue button
    "primary_hover": "#2563eb",
    "text_primary":  "#f1f5f9",
    "text_secondary":"#cbd5e1",
    "text_muted":    "#94a3b8",
    "success":       "#22c55e",
    "error":         "#ef4444",
    "warning":       "#fbbf24",
}
