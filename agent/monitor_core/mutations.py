"""
MutationCoordinator — block list and auto-start changes against the backend.

Every mutation:
  validate locally → busy[kind] = True → backend call raced against
  CALL_TIMEOUT_MS → (add) clear inputs → wait SETTLE_DELAY_MS → re-fetch
  the block list → busy[kind] = False

A SAFETY_TIMEOUT_MS timer wraps the whole operation so a hung call can
never leave the UI disabled. Whatever settles the operation first wins;
anything arriving for it afterwards is logged and ignored.

Results go to PanelState (for the UI) and to an optional on_done callback
that receives a MutationResult.
"""

from .constants import (
    CALL_TIMEOUT_MS, SAFETY_TIMEOUT_MS, SETTLE_DELAY_MS,
    KIND_ADD, KIND_REMOVE, KIND_AUTOSTART,
)
from .config import log
from .errors import CallTimeout, OperationInProgress, ValidationError
from .models import MutationResult, parse_blocklist
from .state import PanelState

EVENT_CHANGED = "changed"
EVENT_INPUT_CLEARED = "input-cleared"


class _Operation:
    """Bookkeeping for one in-flight mutation."""

    def __init__(self, kind, on_done):
        self.kind = kind
        self.on_done = on_done
        self.settled = False
        self.safety_id = None
        self.settle_id = None
        self.calls = []

    def track(self, call):
        self.calls.append(call)
        return call


class MutationCoordinator:

    def __init__(self, root, calls, state=None, call_timeout_ms=CALL_TIMEOUT_MS,
                 safety_timeout_ms=SAFETY_TIMEOUT_MS, settle_delay_ms=SETTLE_DELAY_MS):
        self._root = root
        self._calls = calls
        self.state = state if state is not None else PanelState()
        self._call_timeout_ms = call_timeout_ms
        self._safety_timeout_ms = safety_timeout_ms
        self._settle_delay_ms = settle_delay_ms
        self._listeners = []
        self._operations = []
        self._loads = []

    def add_listener(self, callback):
        """callback(event) with event in (EVENT_CHANGED, EVENT_INPUT_CLEARED)."""
        self._listeners.append(callback)

        def remove():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    # ─── Loads ───────────────────────────────────────────────

    def load_blocklist(self, on_done=None):
        """Refresh the cached mirror. on_done(error_or_None)."""
        def loaded(payload):
            self.state.blocklist = parse_blocklist(payload)
            log.info("Blocklist loaded: %d app(s)", len(self.state.blocklist))
            self._emit(EVENT_CHANGED)
            _call_quietly(on_done, None)

        def failed(err):
            log.error("Error loading blocklist: %s", err)
            self.state.error = f"Failed to load blocklist: {err}"
            self._emit(EVENT_CHANGED)
            _call_quietly(on_done, err)

        return self._track_load(self._calls.call("get_blocklist", timeout_ms=self._call_timeout_ms,
                                                 on_success=loaded, on_error=failed))

    def load_auto_start(self):
        def loaded(enabled):
            self.state.autostart_enabled = bool(enabled)
            log.info("Auto-start status: %s", self.state.autostart_enabled)
            self._emit(EVENT_CHANGED)

        def failed(err):
            log.error("Error checking auto-start: %s", err)

        return self._track_load(self._calls.call("is_auto_start_enabled",
                                                 timeout_ms=self._call_timeout_ms,
                                                 on_success=loaded, on_error=failed))

    def _track_load(self, call):
        self._loads = [c for c in self._loads if not c.settled]
        self._loads.append(call)
        return call

    # ─── Block list mutations ────────────────────────────────

    def add_blocked(self, executable_name, display_name="", on_done=None) -> bool:
        """Start an add. False if it was rejected before any backend call."""
        name = (executable_name or "").strip()
        display = (display_name or "").strip()
        if not name:
            return self._reject(KIND_ADD, ValidationError("Please enter an executable name"), on_done)

        op = self._begin(KIND_ADD, on_done)
        if op is None:
            return False
        log.info("Adding to blocklist: %s (%s)", name, display or "-")

        def added(_):
            if op.settled:
                return
            # Inputs go first; the list catches up after the settle delay.
            self._emit(EVENT_INPUT_CLEARED)
            self._refresh_after_settle(op, "App added but failed to refresh the list.")

        def failed(err):
            log.error("Error adding %s to blocklist: %s", name, err)
            self._finish(op, ok=False, error=err,
                         message=str(err) or "Failed to add app to blocklist")

        op.track(self._calls.call("add_to_blocklist", name, display,
                                  timeout_ms=self._call_timeout_ms,
                                  on_success=added, on_error=failed))
        return True

    def remove_blocked(self, executable_name, on_done=None) -> bool:
        name = (executable_name or "").strip()
        if not name:
            return self._reject(KIND_REMOVE, ValidationError("No executable name to remove"), on_done)

        op = self._begin(KIND_REMOVE, on_done)
        if op is None:
            return False
        log.info("Removing from blocklist: %s", name)

        def removed(_):
            if not op.settled:
                self._refresh_after_settle(op, "App removed but failed to refresh the list.")

        def failed(err):
            log.error("Error removing %s from blocklist: %s", name, err)
            self._finish(op, ok=False, error=err,
                         message=str(err) or "Failed to remove app from blocklist")

        op.track(self._calls.call("remove_from_blocklist", name,
                                  timeout_ms=self._call_timeout_ms,
                                  on_success=removed, on_error=failed))
        return True

    # ─── Auto-start ──────────────────────────────────────────

    def set_auto_start(self, enabled, on_done=None) -> bool:
        enabled = bool(enabled)
        op = self._begin(KIND_AUTOSTART, on_done)
        if op is None:
            return False
        verb = "enable" if enabled else "disable"
        log.info("Auto-start: requesting %s", verb)

        def applied(_):
            self.state.autostart_enabled = enabled
            self._finish(op, ok=True)

        def failed(err):
            log.error("Error trying to %s auto-start: %s", verb, err)
            self._finish(op, ok=False, error=err, message=f"Failed to {verb} auto-start: {err}")

        entry_point = "enable_auto_start" if enabled else "disable_auto_start"
        op.track(self._calls.call(entry_point, timeout_ms=self._call_timeout_ms,
                                  on_success=applied, on_error=failed))
        return True

    def toggle_auto_start(self, on_done=None) -> bool:
        return self.set_auto_start(not self.state.autostart_enabled, on_done)

    # ─── Teardown ────────────────────────────────────────────

    def stop(self):
        """Drop every in-flight operation and load without reporting it."""
        for op in list(self._operations):
            op.settled = True
            self._cancel_timers(op)
            for call in op.calls:
                call.cancel()
            self.state.end(op.kind)
        self._operations.clear()
        for call in self._loads:
            call.cancel()
        self._loads.clear()

    # ─── Operation plumbing ──────────────────────────────────

    def _begin(self, kind, on_done):
        if self.state.is_busy(kind):
            log.warning("%s already in progress; request ignored", kind)
            busy = OperationInProgress(f"{kind} already in progress")
            _call_quietly(on_done, MutationResult(kind, ok=False, error=busy))
            return None
        self.state.begin(kind)
        op = _Operation(kind, on_done)
        op.safety_id = self._root.after(self._safety_timeout_ms, lambda: self._on_safety_timeout(op))
        self._operations.append(op)
        self._emit(EVENT_CHANGED)
        return op

    def _reject(self, kind, err, on_done):
        log.info("Rejected %s: %s", kind, err)
        self.state.error = str(err)
        self._emit(EVENT_CHANGED)
        _call_quietly(on_done, MutationResult(kind, ok=False, error=err))
        return False

    def _refresh_after_settle(self, op, failure_message):
        def refresh():
            op.settle_id = None
            if op.settled:
                return

            def loaded(payload):
                self.state.blocklist = parse_blocklist(payload)
                log.info("Blocklist reloaded after %s: %d app(s)", op.kind, len(self.state.blocklist))
                self._finish(op, ok=True)

            def failed(err):
                log.error("Error reloading blocklist after %s: %s", op.kind, err)
                # The mutation itself went through; only the mirror is stale.
                self._finish(op, ok=True, refresh_error=err, message=failure_message)

            op.track(self._calls.call("get_blocklist", timeout_ms=self._call_timeout_ms,
                                      on_success=loaded, on_error=failed))

        op.settle_id = self._root.after(self._settle_delay_ms, refresh)

    def _on_safety_timeout(self, op):
        op.safety_id = None
        if op.settled:
            return
        log.error("Safety timeout triggered for %s; resetting busy state", op.kind)
        self._finish(op, ok=False, error=CallTimeout(op.kind, self._safety_timeout_ms),
                     message="Operation timed out. Please try again.")
        for call in op.calls:
            call.cancel()

    def _finish(self, op, ok, error=None, refresh_error=None, message=None):
        if op.settled:
            log.info("Late %s outcome ignored (already settled)", op.kind)
            return
        op.settled = True
        self._cancel_timers(op)
        if op in self._operations:
            self._operations.remove(op)

        self.state.end(op.kind)
        if message:
            self.state.error = message
        self._emit(EVENT_CHANGED)
        _call_quietly(op.on_done, MutationResult(op.kind, ok=ok, error=error, refresh_error=refresh_error))

    def _cancel_timers(self, op):
        for attr in ("safety_id", "settle_id"):
            after_id = getattr(op, attr)
            if after_id is not None:
                try:
                    self._root.after_cancel(after_id)
                except Exception:
                    pass
                setattr(op, attr, None)

    def _emit(self, event):
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception as e:
                log.error("Mutation listener error: %s", e, exc_info=True)


def _call_quietly(callback, value):
    if callback is None:
        return
    try:
        callback(value)
    except Exception as e:
        log.error("on_done callback error: %s", e, exc_info=True)
