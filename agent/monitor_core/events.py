"""
Push events from the backend.

EventChannel: thread-safe emit() into a queue, drained on the main loop
via root.after() and dispatched to subscribers there. Subscribers never run
on a background thread.

EventStream: daemon thread reading the backend's newline-delimited JSON
event feed and emitting into a channel. Reconnects with backoff until
stopped.
"""

import json
import queue
import threading

from .constants import (
    EVENT_DRAIN_MS, EVENT_DRAIN_BATCH, STREAM_CONNECT_TIMEOUT_SEC,
    STREAM_RECONNECT_MIN_SEC, STREAM_RECONNECT_MAX_SEC,
)
from .config import log
from . import http_client


class EventChannel:

    def __init__(self, root=None, drain_ms=EVENT_DRAIN_MS, batch=EVENT_DRAIN_BATCH):
        self._root = root
        self._drain_ms = drain_ms
        self._batch = batch
        self._queue = queue.Queue()
        self._subscribers = {}
        self._drain_id = None
        self._running = False

    def on(self, name, callback):
        """Subscribe. Returns an unsubscribe function (safe to call twice)."""
        subscribers = self._subscribers.setdefault(name, [])
        subscribers.append(callback)

        def unsubscribe():
            try:
                subscribers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def subscriber_count(self, name):
        return len(self._subscribers.get(name, ()))

    def emit(self, name, payload=None):
        """Queue an event. Any thread."""
        self._queue.put((name, payload))

    def dispatch(self, name, payload=None):
        """Deliver an event right now. Main loop only."""
        for callback in list(self._subscribers.get(name, ())):
            try:
                callback(payload)
            except Exception as e:
                log.error("Subscriber for %s failed: %s", name, e, exc_info=True)

    def drain(self):
        """Dispatch up to one batch of queued events. Returns how many."""
        count = 0
        while count < self._batch:
            try:
                name, payload = self._queue.get_nowait()
            except queue.Empty:
                break
            count += 1
            self.dispatch(name, payload)
        return count

    # ─── Main-loop drain (every EVENT_DRAIN_MS) ──────────────

    def start(self):
        if self._running or self._root is None:
            return
        self._running = True
        self._drain_id = self._root.after(self._drain_ms, self._tick)

    def stop(self):
        self._running = False
        if self._drain_id is not None:
            try:
                self._root.after_cancel(self._drain_id)
            except Exception:
                pass
            self._drain_id = None

    def _tick(self):
        self._drain_id = None
        if not self._running:
            return
        try:
            self.drain()
        except Exception as e:
            log.error("Event drain error: %s", e)
        self._drain_id = self._root.after(self._drain_ms, self._tick)


class EventStream:
    """Reads GET <base>/api/events and feeds the channel."""

    def __init__(self, base_url, channel, session=None):
        self._url = f"{base_url.rstrip('/')}/api/events"
        self._channel = channel
        self._session = session
        self._stop = threading.Event()
        self._thread = None
        self._response = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="event-stream", daemon=True)
        self._thread.start()
        log.info("Event stream reader started (%s)", self._url)

    def stop(self):
        self._stop.set()
        response = self._response
        if response is not None:
            try:
                response.close()
            except Exception:
                pass

    def handle_line(self, line):
        """Parse one feed line and emit it. Returns True if emitted."""
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        line = line.strip()
        if not line:
            return False
        try:
            message = json.loads(line)
        except ValueError:
            log.warning("Malformed event line skipped: %s", line[:200])
            return False
        name = message.get("event") if isinstance(message, dict) else None
        if not isinstance(name, str) or not name:
            log.warning("Event without a name skipped: %s", line[:200])
            return False
        self._channel.emit(name, message.get("data"))
        return True

    def _run(self):
        delay = STREAM_RECONNECT_MIN_SEC
        while not self._stop.is_set():
            connected = False
            try:
                connected = self._consume()
            except Exception as e:
                if self._stop.is_set():
                    break
                log.warning("Event stream error: %s (reconnecting in %ds)", e, delay)
            if connected:
                delay = STREAM_RECONNECT_MIN_SEC
            if self._stop.wait(delay):
                break
            delay = min(delay * 2, STREAM_RECONNECT_MAX_SEC)
        log.info("Event stream reader stopped")

    def _consume(self):
        session = self._session or http_client.http
        with session.get(self._url, stream=True,
                         timeout=(STREAM_CONNECT_TIMEOUT_SEC, None)) as resp:
            resp.raise_for_status()
            self._response = resp
            log.info("Event stream connected")
            try:
                for line in resp.iter_lines(decode_unicode=True):
                    if self._stop.is_set():
                        break
                    if line:
                        self.handle_line(line)
            finally:
                self._response = None
        return True
