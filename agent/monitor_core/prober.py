"""
BindingProber — waits for the backend's entry points to become usable.

Checks every PROBE_INTERVAL_MS, at most PROBE_MAX_ATTEMPTS times. Each check
runs as a BackendCall, so a slow socket never stalls the main loop. Success
fires on_ready exactly once; running out of attempts fires on_unavailable
and schedules nothing further (the session stays up but degraded).
"""

from .constants import (
    CALL_POLL_MS, PROBE_CHECK_TIMEOUT_MS, PROBE_START_DELAY_MS,
    PROBE_INTERVAL_MS, PROBE_MAX_ATTEMPTS,
)
from .config import log
from .backend import bindings_present
from .calls import BackendCall

STATUS_IDLE = "idle"
STATUS_PROBING = "probing"
STATUS_READY = "ready"
STATUS_UNAVAILABLE = "unavailable"


class BindingProber:

    def __init__(self, root, backend, on_ready, on_unavailable=None,
                 interval_ms=PROBE_INTERVAL_MS, max_attempts=PROBE_MAX_ATTEMPTS,
                 start_delay_ms=PROBE_START_DELAY_MS, check=bindings_present,
                 check_timeout_ms=PROBE_CHECK_TIMEOUT_MS, spawn=None, poll_ms=CALL_POLL_MS):
        self._root = root
        self._backend = backend
        self._on_ready = on_ready
        self._on_unavailable = on_unavailable
        self._interval_ms = interval_ms
        self._max_attempts = max_attempts
        self._start_delay_ms = start_delay_ms
        self._check = check
        self._check_timeout_ms = check_timeout_ms
        self._spawn = spawn
        self._poll_ms = poll_ms
        self._after_id = None
        self._check_call = None
        self.attempts = 0
        self.status = STATUS_IDLE

    def start(self):
        if self.status != STATUS_IDLE:
            return
        self.status = STATUS_PROBING
        self._after_id = self._root.after(self._start_delay_ms, self._try)

    def stop(self):
        if self._after_id is not None:
            try:
                self._root.after_cancel(self._after_id)
            except Exception:
                pass
            self._after_id = None
        if self._check_call is not None:
            self._check_call.cancel()
            self._check_call = None
        if self.status == STATUS_PROBING:
            self.status = STATUS_IDLE

    def _try(self):
        self._after_id = None
        if self.status != STATUS_PROBING:
            return
        self.attempts += 1
        log.debug("[%d/%d] Checking for backend bindings...", self.attempts, self._max_attempts)

        self._check_call = BackendCall(
            self._root, "bindings_check", self._check, (self._backend,),
            timeout_ms=self._check_timeout_ms,
            on_success=self._on_checked, on_error=self._on_check_error,
            spawn=self._spawn, poll_ms=self._poll_ms,
        ).start()

    def _on_check_error(self, err):
        log.debug("Binding check failed: %s", err)
        self._on_checked(False)

    def _on_checked(self, present):
        self._check_call = None
        if self.status != STATUS_PROBING:
            return

        if present:
            self.status = STATUS_READY
            log.info("Backend bindings found after %d attempt(s)", self.attempts)
            self._notify(self._on_ready)
        elif self.attempts < self._max_attempts:
            self._after_id = self._root.after(self._interval_ms, self._try)
        else:
            self.status = STATUS_UNAVAILABLE
            log.error("Backend bindings not found after %d attempts; running degraded",
                      self._max_attempts)
            self._notify(self._on_unavailable)

    @staticmethod
    def _notify(callback):
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            log.error("Prober callback error: %s", e, exc_info=True)
