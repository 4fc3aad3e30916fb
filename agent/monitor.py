"""
Window Monitor — Desktop Shell
==============================
Shows the foreground window reported by the local monitor service, keeps a
history of window changes, edits the focus block list and toggles
auto-start. Warnings about blocked apps pop up on top of everything.

This process does NOT watch windows itself; the backend service does.
Set WINDOW_MONITOR_BACKEND_URL to point at a non-default service address.
"""

import sys

from monitor_core.runner import run_with_auto_restart


if __name__ == "__main__":
    sys.exit(run_with_auto_restart())
