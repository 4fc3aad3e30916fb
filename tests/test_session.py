import pytest

from monitor_core.constants import EVENT_WARNING_DETECTED, EVENT_WINDOW_CHANGED
from monitor_core.errors import BindingUnavailable
from monitor_core.models import BlockedApp, WindowObservation
from monitor_core.prober import BindingProber
from monitor_core.session import (
    STATUS_READY,
    STATUS_STARTING,
    STATUS_STOPPED,
    STATUS_UNAVAILABLE,
    MonitorSession,
)


def _never_ready(root, backend, **kwargs):
    return BindingProber(root, backend, check=lambda _b: False, **kwargs)


@pytest.fixture
def session(root, backend, channel, spawner):
    s = MonitorSession(root, backend, channel, spawn=spawner)
    yield s
    s.stop()


def test_initializes_once_bindings_are_found(root, session, backend, channel) -> None:
    backend.window = {"title": "Inbox", "exe": "outlook.exe"}
    backend.blocklist = [{"executableName": "steam.exe", "displayName": "Steam"}]
    backend.autostart = True

    session.start()
    assert channel.started
    assert session.status == STATUS_STARTING
    assert backend.calls == []

    root.advance(150)
    assert session.initialized
    assert session.status == STATUS_READY
    assert sorted(name for name, _args, _t in backend.calls) == [
        "get_blocklist", "get_current_window", "is_auto_start_enabled",
    ]

    root.advance(50)
    assert session.synchronizer.current == WindowObservation("Inbox", "outlook.exe")
    assert session.mutations.state.blocklist == [BlockedApp("steam.exe", "Steam")]
    assert session.mutations.state.autostart_enabled


def test_initialize_runs_once(root, session, backend) -> None:
    session.start()
    root.advance(150)
    session._initialize()
    root.advance(50)

    assert backend.count("get_blocklist") == 1
    assert backend.count("is_auto_start_enabled") == 1


def test_unavailable_backend_leaves_session_degraded(root, backend, channel, spawner) -> None:
    session = MonitorSession(root, backend, channel, spawn=spawner, prober_factory=_never_ready)
    session.start()
    root.advance(20_000)

    assert session.status == STATUS_UNAVAILABLE
    assert not session.initialized
    assert backend.calls == []
    session.stop()


def test_push_events_flow_to_synchronizer_and_warnings(root, session, channel) -> None:
    session.start()
    root.advance(150)

    channel.emit(EVENT_WINDOW_CHANGED, {"title": "Docs", "exe": "chrome.exe"})
    channel.emit(EVENT_WARNING_DETECTED, {"executableName": "steam.exe", "displayName": "Steam"})

    assert session.synchronizer.current == WindowObservation("Docs", "chrome.exe")
    assert session.warnings.visible
    assert session.warnings.current.executable_name == "steam.exe"


def test_config_overrides_poll_interval(root, backend, channel, spawner) -> None:
    session = MonitorSession(root, backend, channel, config={"pollIntervalMs": 500}, spawn=spawner)
    session.start()
    root.advance(700)

    # Bindings confirmed at 150; initial fetch then, next poll at 650.
    assert backend.times("get_current_window")[:2] == [150, 650]
    session.stop()


def test_stop_tears_everything_down(root, session, backend, channel) -> None:
    session.start()
    root.advance(150)

    session.stop()

    assert session.status == STATUS_STOPPED
    assert not channel.started
    assert channel.count(EVENT_WINDOW_CHANGED) == 0
    assert channel.count(EVENT_WARNING_DETECTED) == 0
    assert root.pending == 0

    errors = []
    session.calls.call("get_blocklist", on_error=errors.append)
    root.advance(50)
    assert isinstance(errors[0], BindingUnavailable)


def test_stop_before_ready_is_safe(root, session, backend) -> None:
    session.start()
    session.stop()
    root.advance(10_000)

    assert backend.calls == []
    assert not session.initialized
