"""
Backend calls without blocking the main loop.

Each entry-point call runs on a short-lived worker thread. The main loop
polls for the outcome via root.after() and, when a timeout is given, races
it against a timer: whichever settles first wins. Backend calls cannot be
aborted, so a loser result arriving later is logged and dropped.

Everything except BackendCall.run() executes on the main loop.
"""

import threading

from .constants import CALL_POLL_MS
from .config import log
from .errors import BindingUnavailable, CallTimeout


def spawn_thread(call):
    """Default spawner: one daemon thread per call."""
    threading.Thread(target=call.run, name=f"call-{call.name}", daemon=True).start()


class BackendCall:
    """
    Lifecycle:
      start()   → hands run() to the spawner, schedules poll (+ timeout)
      run()     → worker thread; stores (ok, value) and nothing else
      _poll()   → main loop; settles once the outcome is in
      cancel()  → settles silently; any later outcome is ignored
    """

    def __init__(self, root, name, fn, args=(), timeout_ms=None,
                 on_success=None, on_error=None, spawn=None, poll_ms=CALL_POLL_MS):
        self.name = name
        self._root = root
        self._fn = fn
        self._args = tuple(args)
        self._timeout_ms = timeout_ms
        self._on_success = on_success
        self._on_error = on_error
        self._spawn = spawn or spawn_thread
        self._poll_ms = poll_ms
        self._outcome = None
        self._poll_id = None
        self._timeout_id = None
        self.settled = False

    def start(self):
        self._poll_id = self._root.after(self._poll_ms, self._poll)
        if self._timeout_ms is not None:
            self._timeout_id = self._root.after(self._timeout_ms, self._on_timeout)
        try:
            self._spawn(self)
        except Exception as e:
            log.error("Could not start %s: %s", self.name, e)
            self._outcome = (False, e)
        return self

    def run(self):
        try:
            self._outcome = (True, self._fn(*self._args))
        except Exception as e:
            self._outcome = (False, e)
        if self.settled:
            ok = self._outcome[0]
            log.info("Late %s result discarded (%s)", self.name, "ok" if ok else "error")

    def cancel(self):
        if self.settled:
            return
        self.settled = True
        self._cancel_timers()

    # ─── Main loop ───────────────────────────────────────────

    def _poll(self):
        self._poll_id = None
        if self.settled:
            return
        if self._outcome is None:
            self._poll_id = self._root.after(self._poll_ms, self._poll)
            return
        ok, value = self._outcome
        self._settle(ok, value)

    def _on_timeout(self):
        self._timeout_id = None
        if self.settled:
            return
        log.warning("%s timed out after %dms", self.name, self._timeout_ms)
        self._settle(False, CallTimeout(self.name, self._timeout_ms))

    def _settle(self, ok, value):
        self.settled = True
        self._cancel_timers()
        callback = self._on_success if ok else self._on_error
        if callback is None:
            return
        try:
            callback(value)
        except Exception as e:
            log.error("%s callback error: %s", self.name, e, exc_info=True)

    def _cancel_timers(self):
        for attr in ("_poll_id", "_timeout_id"):
            after_id = getattr(self, attr)
            if after_id is not None:
                try:
                    self._root.after_cancel(after_id)
                except Exception:
                    pass
                setattr(self, attr, None)


class CallRunner:
    """
    Availability-gated front door to the backend entry points.

    Until `ready` is set (by the binding prober) every call fails with
    BindingUnavailable, as does a call to an entry point the backend lacks.
    Failures are always delivered on the error path, never raised.
    """

    def __init__(self, root, backend, spawn=None, poll_ms=CALL_POLL_MS):
        self._root = root
        self.backend = backend
        self._spawn = spawn
        self._poll_ms = poll_ms
        self.ready = False

    def call(self, name, *args, timeout_ms=None, on_success=None, on_error=None):
        fn = getattr(self.backend, name, None) if self.backend is not None else None
        if not self.ready or not callable(fn):
            reason = "backend not ready" if not self.ready else "entry point missing"
            err = BindingUnavailable(f"{name} unavailable: {reason}")
            log.warning("%s", err)
            call = BackendCall(self._root, name, _raise, (err,), on_success=on_success,
                               on_error=on_error, spawn=_run_inline, poll_ms=self._poll_ms)
            return call.start()

        call = BackendCall(self._root, name, fn, args, timeout_ms=timeout_ms,
                           on_success=on_success, on_error=on_error,
                           spawn=self._spawn, poll_ms=self._poll_ms)
        return call.start()


def _raise(err):
    raise err


def _run_inline(call):
    call.run()
