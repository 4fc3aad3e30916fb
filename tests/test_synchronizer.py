import pytest

from monitor_core.constants import EVENT_WINDOW_CHANGED
from monitor_core.errors import BackendCallError
from monitor_core.models import WindowObservation
from monitor_core.synchronizer import (
    INITIAL_DONE,
    INITIAL_GAVE_UP,
    INITIAL_PENDING,
    WindowSynchronizer,
)

NEVER = 10 ** 9


@pytest.fixture
def make_sync(root, runner, channel):
    created = []

    def factory(**kwargs):
        kwargs.setdefault("clock", lambda: root.now / 1000)
        sync = WindowSynchronizer(root, runner, kwargs.pop("channel", channel), **kwargs)
        created.append(sync)
        return sync

    yield factory
    for sync in created:
        sync.stop()


def _push(channel, title, exe):
    channel.emit(EVENT_WINDOW_CHANGED, {"title": title, "exe": exe})


def test_repeated_push_is_recorded_once(make_sync, channel) -> None:
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()

    for _ in range(3):
        _push(channel, "Inbox", "outlook.exe")

    assert len(sync.history) == 1
    assert sync.current == WindowObservation("Inbox", "outlook.exe")


def test_history_is_bounded_and_newest_first(make_sync, channel) -> None:
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()

    for n in range(250):
        _push(channel, f"Tab {n}", "firefox.exe")

    entries = sync.history.entries()
    assert len(entries) == 200
    assert entries[0].observation.title == "Tab 249"
    assert entries[-1].observation.title == "Tab 50"
    assert sync.current == entries[0].observation


def test_current_matches_newest_history_entry_after_mixed_sources(root, make_sync, channel, backend) -> None:
    sync = make_sync()
    sync.start()

    _push(channel, "A", "a.exe")
    backend.window = {"title": "B", "exe": "b.exe"}
    root.advance(1050)
    _push(channel, "C", "c.exe")
    backend.window = {"title": "C", "exe": "c.exe"}
    root.advance(1000)

    assert [e.observation.title for e in sync.history] == ["C", "B", "A"]
    assert sync.current == sync.history[0].observation


def test_invalid_observations_are_dropped(make_sync, channel) -> None:
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()

    channel.emit(EVENT_WINDOW_CHANGED, {"title": "", "exe": ""})
    channel.emit(EVENT_WINDOW_CHANGED, None)
    channel.emit(EVENT_WINDOW_CHANGED, "garbage")

    assert sync.current is None
    assert len(sync.history) == 0


def test_push_and_poll_of_same_window_converge_to_one_entry(root, make_sync, channel, backend) -> None:
    sync = make_sync()
    sync.start()

    backend.window = {"title": "Editor", "exe": "code.exe"}
    _push(channel, "Editor", "code.exe")
    root.advance(3050)

    assert len(sync.history) == 1
    assert sync.poll_count >= 2


def test_listeners_see_each_acceptance_and_clear(make_sync, channel) -> None:
    sync = make_sync(poll_interval_ms=NEVER)
    seen = []
    sync.add_listener(seen.append)
    sync.start()

    _push(channel, "A", "a.exe")
    _push(channel, "A", "a.exe")
    sync.clear_history()

    assert len(seen) == 2
    assert seen[0].observation.title == "A"
    assert seen[1] is None


def test_clear_history_keeps_current_window(make_sync, channel) -> None:
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()
    _push(channel, "A", "a.exe")

    sync.clear_history()
    _push(channel, "A", "a.exe")

    assert len(sync.history) == 0
    assert sync.current == WindowObservation("A", "a.exe")


def test_history_entry_timestamps_come_from_clock(root, make_sync, channel) -> None:
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()
    root.advance(2500)
    _push(channel, "A", "a.exe")

    assert sync.history.latest.created_at == pytest.approx(2.5)


# ─── Poll ────────────────────────────────────────────────────────

def test_polling_alone_works_without_push(root, make_sync, backend) -> None:
    sync = make_sync(channel=None)
    sync.start()

    backend.window = {"title": "Terminal", "exe": "wt.exe"}
    root.advance(1050)

    assert sync.current == WindowObservation("Terminal", "wt.exe")


def test_poll_does_not_overlap_while_a_call_is_in_flight(root, make_sync, spawner) -> None:
    spawner.hold.add("get_current_window")
    sync = make_sync(call_timeout_ms=NEVER)
    sync.start()

    root.advance(4500)
    assert sync.poll_count == 1

    spawner.release()
    root.advance(1000)
    assert sync.poll_count == 2


def test_poll_errors_are_swallowed(root, make_sync, backend) -> None:
    backend.fail("get_current_window", BackendCallError("service down"))
    sync = make_sync(initial_max_attempts=1)
    sync.start()

    root.advance(5050)

    assert sync.poll_count == 5
    assert sync.current is None
    assert sync.running


# ─── Initial fetch ───────────────────────────────────────────────

def test_initial_fetch_sets_current(root, make_sync, backend) -> None:
    backend.window = {"title": "Desktop", "exe": "explorer.exe"}
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()
    root.advance(50)

    assert sync.initial_status == INITIAL_DONE
    assert sync.initial_attempts == 1
    assert sync.current == WindowObservation("Desktop", "explorer.exe")
    assert len(sync.history) == 1


def test_initial_fetch_backs_off_on_empty_window(root, make_sync, backend) -> None:
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()
    root.advance(16_000)

    assert backend.times("get_current_window") == [0, 550, 1600, 3650, 7700, 15750]
    assert sync.initial_status == INITIAL_PENDING


def test_initial_fetch_backs_off_on_error(root, make_sync, backend) -> None:
    backend.fail("get_current_window", BackendCallError("not yet"))
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()
    root.advance(24_000)

    assert backend.times("get_current_window") == [0, 1050, 3100, 7150, 15200, 23250]


def test_initial_fetch_gives_up(root, make_sync, backend) -> None:
    backend.fail("get_current_window", BackendCallError("not yet"))
    sync = make_sync(poll_interval_ms=NEVER, initial_max_attempts=3)
    sync.start()
    root.advance(60_000)

    assert sync.initial_status == INITIAL_GAVE_UP
    assert sync.initial_attempts == 3
    assert backend.count("get_current_window") == 3
    # Only the (far-off) poll timer is left.
    assert root.pending == 1


def test_initial_fetch_matching_an_earlier_push_is_deduplicated(root, make_sync, channel, backend) -> None:
    sync = make_sync(poll_interval_ms=NEVER)
    sync.start()
    _push(channel, "Mail", "mail.exe")
    backend.window = {"title": "Mail", "exe": "mail.exe"}
    root.advance(600)

    assert sync.initial_status == INITIAL_DONE
    assert len(sync.history) == 1


# ─── Teardown ────────────────────────────────────────────────────

def test_stop_before_start_is_safe(make_sync) -> None:
    sync = make_sync()
    sync.stop()
    sync.stop()
    assert not sync.running


def test_stop_unsubscribes_and_cancels_timers(root, make_sync, channel, spawner) -> None:
    spawner.hold.add("get_current_window")
    sync = make_sync()
    sync.start()
    root.advance(1000)
    assert channel.count(EVENT_WINDOW_CHANGED) == 1

    sync.stop()
    sync.stop()

    assert channel.count(EVENT_WINDOW_CHANGED) == 0
    assert root.pending == 0

    spawner.release()
    _push(channel, "Late", "late.exe")
    root.advance(5000)
    assert sync.current is None
