"""
WindowSynchronizer — one current window + a bounded history, fed by two
unreliable sources.

  push:  `window-changed` events from the EventChannel (fast, may never arrive)
  poll:  get_current_window every POLL_INTERVAL_MS (slow, always converges)

Both go through reconcile(), which runs on the main loop only, so the
acceptance decision needs no locking. Current state and history entry come
from the same decision, so `current == history[0].observation` whenever the
history is non-empty.

Nothing in here surfaces errors to the user: poll failures are swallowed,
initial-fetch failures are retried with capped backoff and then given up.
"""

import time

from .constants import (
    EVENT_WINDOW_CHANGED, HISTORY_CAPACITY, POLL_INTERVAL_MS, CALL_TIMEOUT_MS,
    INITIAL_RETRY_INVALID_MS, INITIAL_RETRY_ERROR_MS, INITIAL_RETRY_MAX_MS,
    INITIAL_FETCH_MAX_ATTEMPTS,
)
from .config import log
from .history import HistoryLog
from .models import HistoryEntry, WindowObservation

INITIAL_PENDING = "pending"
INITIAL_DONE = "done"
INITIAL_GAVE_UP = "gave_up"


class WindowSynchronizer:

    def __init__(self, root, calls, channel=None, capacity=HISTORY_CAPACITY,
                 poll_interval_ms=POLL_INTERVAL_MS, call_timeout_ms=CALL_TIMEOUT_MS,
                 initial_max_attempts=INITIAL_FETCH_MAX_ATTEMPTS, clock=time.time):
        self._root = root
        self._calls = calls
        self._channel = channel
        self._poll_interval_ms = poll_interval_ms
        self._call_timeout_ms = call_timeout_ms
        self._initial_max_attempts = initial_max_attempts
        self._clock = clock
        self._listeners = []
        self._running = False

        self.current = None
        self.history = HistoryLog(capacity)

        self._unsubscribe = None
        self._poll_id = None
        self._poll_call = None
        self.poll_count = 0

        self._initial_id = None
        self._initial_call = None
        self.initial_status = INITIAL_PENDING
        self.initial_attempts = 0

    @property
    def running(self):
        return self._running

    def add_listener(self, callback):
        """callback(entry) after each acceptance; entry is None after clear_history()."""
        self._listeners.append(callback)

        def remove():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    # ─── Acceptance ──────────────────────────────────────────

    def reconcile(self, observation):
        """Accept the observation if it is a real change. Returns the new entry or None."""
        obs = WindowObservation.from_payload(observation)
        if obs is None or not obs.is_valid:
            log.debug("Dropped invalid observation: %r", observation)
            return None
        if obs.is_equivalent(self.current):
            return None

        entry = HistoryEntry(obs, created_at=self._clock())
        self.current = obs
        self.history.insert(entry)
        log.info("Active Window Changed: [%s] %s", obs.exe, obs.title)
        self._notify(entry)
        return entry

    def clear_history(self):
        """Empty the log. The current window stays, so it is not re-added."""
        self.history.clear()
        log.info("History cleared")
        self._notify(None)

    def _notify(self, entry):
        for callback in list(self._listeners):
            try:
                callback(entry)
            except Exception as e:
                log.error("History listener error: %s", e, exc_info=True)

    # ─── Lifecycle ───────────────────────────────────────────

    def start(self):
        if self._running:
            return
        self._running = True
        self._subscribe()
        self._fetch_initial()
        self._poll_id = self._root.after(self._poll_interval_ms, self._poll_tick)
        log.info("Window sync started (poll=%dms, push=%s)",
                 self._poll_interval_ms, "on" if self._unsubscribe else "off")

    def stop(self):
        """Safe after a partial start and safe to repeat."""
        self._running = False

        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            try:
                unsubscribe()
            except Exception as e:
                log.warning("Unsubscribe from %s failed: %s", EVENT_WINDOW_CHANGED, e)

        for attr in ("_poll_id", "_initial_id"):
            after_id = getattr(self, attr)
            if after_id is not None:
                try:
                    self._root.after_cancel(after_id)
                except Exception:
                    pass
                setattr(self, attr, None)

        for attr in ("_poll_call", "_initial_call"):
            call = getattr(self, attr)
            if call is not None:
                call.cancel()
                setattr(self, attr, None)

    def _subscribe(self):
        if self._channel is None:
            log.warning("Push events not available; using polling only")
            return
        try:
            self._unsubscribe = self._channel.on(EVENT_WINDOW_CHANGED, self._on_push)
        except Exception as e:
            log.error("Could not subscribe to %s: %s (polling only)", EVENT_WINDOW_CHANGED, e)
            self._unsubscribe = None

    def _on_push(self, payload):
        if self._running:
            self.reconcile(payload)

    # ─── Initial fetch (capped backoff, then give up) ────────

    def _fetch_initial(self):
        self._initial_id = None
        if not self._running or self.initial_status != INITIAL_PENDING:
            return
        self.initial_attempts += 1
        self._initial_call = self._calls.call(
            "get_current_window",
            timeout_ms=self._call_timeout_ms,
            on_success=self._on_initial_result,
            on_error=self._on_initial_error,
        )

    def _on_initial_result(self, payload):
        self._initial_call = None
        obs = WindowObservation.from_payload(payload)
        if obs is not None and obs.is_valid:
            self.initial_status = INITIAL_DONE
            self.reconcile(obs)
            return
        log.info("Initial window is empty, will retry")
        self._retry_initial(INITIAL_RETRY_INVALID_MS)

    def _on_initial_error(self, err):
        self._initial_call = None
        log.warning("Initial window fetch failed: %s", err)
        self._retry_initial(INITIAL_RETRY_ERROR_MS)

    def _retry_initial(self, base_ms):
        if not self._running:
            return
        if self.initial_attempts >= self._initial_max_attempts:
            self.initial_status = INITIAL_GAVE_UP
            log.warning("Initial window fetch gave up after %d attempts; relying on poll/push",
                        self.initial_attempts)
            return
        delay = min(base_ms * 2 ** (self.initial_attempts - 1), INITIAL_RETRY_MAX_MS)
        self._initial_id = self._root.after(delay, self._fetch_initial)

    # ─── Poll (serialized, errors swallowed) ─────────────────

    def _poll_tick(self):
        self._poll_id = None
        if not self._running:
            return
        self._poll_id = self._root.after(self._poll_interval_ms, self._poll_tick)

        if self._poll_call is not None and not self._poll_call.settled:
            return  # previous poll still in flight

        self.poll_count += 1
        self._poll_call = self._calls.call(
            "get_current_window",
            timeout_ms=self._call_timeout_ms,
            on_success=self._on_poll_result,
            on_error=self._on_poll_error,
        )

    def _on_poll_result(self, payload):
        if self._running:
            self.reconcile(payload)

    def _on_poll_error(self, err):
        log.debug("Poll #%d error: %s", self.poll_count, err)
