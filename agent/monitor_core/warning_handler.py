"""
WarningHandler — blocked-app warnings pushed by the backend.

No queue: a new warning replaces whatever is on screen (last write wins).
The popup reads `current`/`visible` and calls one of the two resolutions.
"""

from .constants import EVENT_WARNING_DETECTED
from .config import log
from .models import WarningEvent


class WarningHandler:

    def __init__(self, channel):
        self._channel = channel
        self._unsubscribe = None
        self._listeners = []
        self.current = None
        self.visible = False

    def add_listener(self, callback):
        """callback(handler) whenever the displayed warning changes."""
        self._listeners.append(callback)

        def remove():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def start(self):
        if self._unsubscribe is not None:
            return
        if self._channel is None:
            log.warning("Push events not available; block warnings disabled")
            return
        self._unsubscribe = self._channel.on(EVENT_WARNING_DETECTED, self.handle)

    def stop(self):
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def handle(self, payload):
        event = WarningEvent.from_payload(payload)
        if event is None:
            log.warning("Ignoring malformed warning: %r", payload)
            return
        if self.visible and self.current is not None:
            log.info("Warning for %s superseded by %s",
                     self.current.executable_name, event.executable_name)
        log.warning("Blocked app detected: [%s] %s", event.executable_name, event.title or "")
        self.current = event
        self.visible = True
        self._notify()

    # ─── User decisions ──────────────────────────────────────

    def resolve_continue(self):
        """User chose to keep the app open. No backend call."""
        if self.current is not None:
            log.info("User continued with blocked app %s", self.current.executable_name)
        self._dismiss()

    def resolve_close_app(self):
        """User chose to close the app. Closing itself is not wired to the backend yet."""
        if self.current is not None:
            log.info("Would close app: %s", self.current.executable_name)
        self._dismiss()

    def _dismiss(self):
        self.current = None
        self.visible = False
        self._notify()

    def _notify(self):
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception as e:
                log.error("Warning listener error: %s", e, exc_info=True)
