from monitor_core.constants import EVENT_WARNING_DETECTED
from monitor_core.models import WarningEvent
from monitor_core.warning_handler import WarningHandler


def _warn(channel, exe, display="", title="Window"):
    channel.emit(EVENT_WARNING_DETECTED, {"executableName": exe, "displayName": display, "title": title})


def test_warning_is_shown(channel) -> None:
    handler = WarningHandler(channel)
    handler.start()

    _warn(channel, "steam.exe", "Steam", "Store")

    assert handler.visible
    assert handler.current == WarningEvent("steam.exe", "Steam", "Store")


def test_newest_warning_replaces_the_visible_one(channel) -> None:
    handler = WarningHandler(channel)
    seen = []
    handler.add_listener(lambda h: seen.append(h.current))
    handler.start()

    _warn(channel, "steam.exe", "Steam")
    _warn(channel, "discord.exe", "Discord")

    assert handler.current.executable_name == "discord.exe"
    assert [w.executable_name for w in seen] == ["steam.exe", "discord.exe"]


def test_malformed_warning_is_ignored(channel) -> None:
    handler = WarningHandler(channel)
    handler.start()

    channel.emit(EVENT_WARNING_DETECTED, {"displayName": "no exe"})
    channel.emit(EVENT_WARNING_DETECTED, None)

    assert not handler.visible
    assert handler.current is None


def test_both_resolutions_dismiss(channel) -> None:
    handler = WarningHandler(channel)
    handler.start()

    _warn(channel, "steam.exe")
    handler.resolve_continue()
    assert not handler.visible and handler.current is None

    _warn(channel, "steam.exe")
    handler.resolve_close_app()
    assert not handler.visible and handler.current is None


def test_stop_unsubscribes(channel) -> None:
    handler = WarningHandler(channel)
    handler.start()
    handler.start()
    assert channel.count(EVENT_WARNING_DETECTED) == 1

    handler.stop()
    handler.stop()
    _warn(channel, "steam.exe")

    assert channel.count(EVENT_WARNING_DETECTED) == 0
    assert not handler.visible


def test_without_channel_start_is_a_no_op() -> None:
    handler = WarningHandler(None)
    handler.start()
    handler.stop()
    assert handler.current is None


def test_listener_errors_do_not_block_others(channel) -> None:
    handler = WarningHandler(channel)
    seen = []

    def broken(_h):
        raise RuntimeError("render failed")

    handler.add_listener(broken)
    remove = handler.add_listener(lambda h: seen.append(h.visible))
    handler.start()

    _warn(channel, "steam.exe")
    remove()
    handler.resolve_continue()

    assert seen == [True]
