"""
PanelState — single source of truth for the settings side of the UI.

Cached block list mirror, auto-start flag, per-kind busy flags and the
user-visible error line. All mutations happen on the main loop. No locks
needed. The backend owns the real block list; `blocklist` is only ever
replaced wholesale from a fresh GetBlocklist.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .constants import MUTATION_KINDS
from .models import BlockedApp


@dataclass
class PanelState:
    blocklist: List[BlockedApp] = field(default_factory=list)
    autostart_enabled: bool = False
    busy: Dict[str, bool] = field(default_factory=lambda: {k: False for k in MUTATION_KINDS})
    error: str = ""

    def is_busy(self, kind=None) -> bool:
        if kind is None:
            return any(self.busy.values())
        return self.busy.get(kind, False)

    def begin(self, kind):
        """Enter busy for one mutation kind and clear the previous error."""
        self.busy[kind] = True
        self.error = ""

    def end(self, kind):
        self.busy[kind] = False

    def contains(self, executable_name) -> bool:
        return any(app.executable_name == executable_name for app in self.blocklist)
