import itertools

import pytest

from monitor_core.calls import CallRunner


class FakeRoot:
    """Stand-in for tk.Tk: after()/after_cancel() against a manual clock (ms)."""

    def __init__(self) -> None:
        self.now = 0
        self._ids = itertools.count(1)
        self._timers = {}

    def after(self, ms, callback):
        seq = next(self._ids)
        after_id = f"after#{seq}"
        self._timers[after_id] = (self.now + ms, seq, callback)
        return after_id

    def after_cancel(self, after_id) -> None:
        self._timers.pop(after_id, None)

    @property
    def pending(self) -> int:
        return len(self._timers)

    def delays(self):
        return sorted(due - self.now for due, _seq, _cb in self._timers.values())

    def advance(self, ms) -> None:
        """Run every callback due within the next `ms`, including ones scheduled meanwhile."""
        end = self.now + ms
        while True:
            due = [(when, seq, key) for key, (when, seq, _cb) in self._timers.items() if when <= end]
            if not due:
                break
            when, _seq, key = min(due)
            _when, _seq, callback = self._timers.pop(key)
            self.now = when
            callback()
        self.now = end


class Spawner:
    """Runs backend calls inline, unless their entry point is on hold."""

    def __init__(self) -> None:
        self.hold = set()
        self.held = []
        self.spawned = []

    def __call__(self, call) -> None:
        self.spawned.append(call.name)
        if call.name in self.hold:
            self.held.append(call)
        else:
            call.run()

    def release(self, name=None) -> None:
        keep = []
        for call in self.held:
            if name is None or call.name == name:
                call.run()
            else:
                keep.append(call)
        self.held = keep


class FakeBackend:
    """In-memory backend. Records (entry point, args, time) for every call."""

    def __init__(self, root: FakeRoot) -> None:
        self._root = root
        self.calls = []
        self.failures = {}
        self.window = None
        self.windows = []
        self.autostart = False
        self.blocklist = []

    def fail(self, name, error) -> None:
        self.failures[name] = error

    def count(self, name) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def times(self, name):
        return [when for entry, _args, when in self.calls if entry == name]

    def _record(self, name, *args) -> None:
        self.calls.append((name, args, self._root.now))
        error = self.failures.get(name)
        if error is not None:
            raise error

    def get_current_window(self):
        self._record("get_current_window")
        if self.windows:
            return self.windows.pop(0)
        return self.window

    def is_auto_start_enabled(self):
        self._record("is_auto_start_enabled")
        return self.autostart

    def enable_auto_start(self):
        self._record("enable_auto_start")
        self.autostart = True

    def disable_auto_start(self):
        self._record("disable_auto_start")
        self.autostart = False

    def get_blocklist(self):
        self._record("get_blocklist")
        return [dict(item) for item in self.blocklist]

    def add_to_blocklist(self, executable_name, display_name=""):
        self._record("add_to_blocklist", executable_name, display_name)
        self.blocklist.append({"executableName": executable_name, "displayName": display_name})

    def remove_from_blocklist(self, executable_name):
        self._record("remove_from_blocklist", executable_name)
        self.blocklist = [b for b in self.blocklist if b["executableName"] != executable_name]


class FakeChannel:
    """EventChannel double that dispatches synchronously."""

    def __init__(self) -> None:
        self.subscribers = {}
        self.started = False

    def on(self, name, callback):
        self.subscribers.setdefault(name, []).append(callback)

        def unsubscribe():
            if callback in self.subscribers.get(name, []):
                self.subscribers[name].remove(callback)

        return unsubscribe

    def emit(self, name, payload=None) -> None:
        for callback in list(self.subscribers.get(name, [])):
            callback(payload)

    def count(self, name) -> int:
        return len(self.subscribers.get(name, []))

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False


@pytest.fixture
def root():
    return FakeRoot()


@pytest.fixture
def spawner():
    return Spawner()


@pytest.fixture
def backend(root):
    return FakeBackend(root)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def runner(root, backend, spawner):
    calls = CallRunner(root, backend, spawn=spawner)
    calls.ready = True
    return calls
