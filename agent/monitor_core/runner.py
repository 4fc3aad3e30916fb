"""
Entry point and auto-restart wrapper.
"""

import time

from .constants import (
    APP_NAME, APP_VERSION, RESTART_BASE_WAIT_SEC, RESTART_MAX_WAIT_SEC,
    RESTART_MAX_CRASHES, STABLE_RUN_SEC,
)
from .config import log, safe_print, setup_logging, load_config
from . import http_client


def main():
    """Primary monitor entry point. Returns when the window is closed."""
    from .app import MonitorApp

    setup_logging()
    safe_print(f"{APP_NAME} v{APP_VERSION}")
    safe_print()

    config = load_config()
    log.info("Loaded config (backend: %s)", config["backendUrl"])

    MonitorApp(config).run()


def restart_delay(crashes, base=RESTART_BASE_WAIT_SEC, max_wait=RESTART_MAX_WAIT_SEC):
    """Seconds to wait before restart number `crashes` (1-based)."""
    return min(base * 2 ** (crashes - 1), max_wait)


def run_with_auto_restart(max_crashes=RESTART_MAX_CRASHES):
    """
    Runs main() until the user closes the window, restarting it after a crash.

    A run that lasted STABLE_RUN_SEC counts as healthy and resets the crash
    count. After `max_crashes` quick crashes in a row the window is not
    reopened and the exit code is 1.
    """
    crashes = 0

    while True:
        started = time.monotonic()
        try:
            main()
            return 0
        except KeyboardInterrupt:
            safe_print("\nMonitor stopped by user.")
            return 0
        except Exception as e:
            uptime = time.monotonic() - started
            log.error("Monitor crashed after %.0fs: %s", uptime, e, exc_info=True)

            crashes = 1 if uptime >= STABLE_RUN_SEC else crashes + 1
            if crashes >= max_crashes:
                log.critical("Monitor crashed %d times in a row; giving up", crashes)
                safe_print(f"\n{APP_NAME} keeps crashing; see the log for details.")
                return 1

            wait = restart_delay(crashes)
            log.info("Restarting in %ds (crash %d of %d)...", wait, crashes, max_crashes)
            time.sleep(wait)

            # Drop pooled connections left over from the crashed run.
            http_client.http = http_client.reset_session(http_client.http)
