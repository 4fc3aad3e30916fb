"""
MonitorSession — mounts and unmounts the live-state core.

  start()        → event drain, warning subscription, binding check
  _initialize()  → (once, bindings found) window sync + initial loads
  stop()         → tears everything down; safe at any point

Knows nothing about tkinter beyond the root's after()/after_cancel(), so it
runs the same under the real main loop and under a test clock.
"""

from .constants import (
    POLL_INTERVAL_MS, CALL_TIMEOUT_MS, SAFETY_TIMEOUT_MS, SETTLE_DELAY_MS,
)
from .config import log
from .calls import CallRunner
from .mutations import MutationCoordinator
from .prober import BindingProber
from .synchronizer import WindowSynchronizer
from .warning_handler import WarningHandler

STATUS_STARTING = "starting"
STATUS_READY = "ready"
STATUS_UNAVAILABLE = "unavailable"
STATUS_STOPPED = "stopped"


class MonitorSession:

    def __init__(self, root, backend, channel=None, config=None, spawn=None, prober_factory=None):
        config = config or {}
        self._root = root
        self._channel = channel
        self._initialized = False
        self.status = STATUS_STARTING

        self.calls = CallRunner(root, backend, spawn=spawn)
        self.synchronizer = WindowSynchronizer(
            root, self.calls, channel,
            poll_interval_ms=config.get("pollIntervalMs", POLL_INTERVAL_MS),
            call_timeout_ms=config.get("callTimeoutMs", CALL_TIMEOUT_MS),
        )
        self.mutations = MutationCoordinator(
            root, self.calls,
            call_timeout_ms=config.get("callTimeoutMs", CALL_TIMEOUT_MS),
            safety_timeout_ms=config.get("safetyTimeoutMs", SAFETY_TIMEOUT_MS),
            settle_delay_ms=config.get("settleDelayMs", SETTLE_DELAY_MS),
        )
        self.warnings = WarningHandler(channel)

        factory = prober_factory or BindingProber
        self.prober = factory(root, backend, on_ready=self._initialize,
                              on_unavailable=self._on_unavailable, spawn=spawn)

    @property
    def initialized(self):
        return self._initialized

    def start(self):
        if self._channel is not None:
            self._channel.start()
        self.warnings.start()
        self.prober.start()
        log.info("Session started; waiting for backend bindings")

    def stop(self):
        self.prober.stop()
        self.synchronizer.stop()
        self.mutations.stop()
        self.warnings.stop()
        if self._channel is not None:
            self._channel.stop()
        self.calls.ready = False
        self.status = STATUS_STOPPED
        log.info("Session stopped")

    def _initialize(self):
        if self._initialized:
            return
        self._initialized = True

        log.info("Initializing window sync and settings")
        self.calls.ready = True
        self.synchronizer.start()
        self.mutations.load_blocklist()
        self.mutations.load_auto_start()
        self.status = STATUS_READY

    def _on_unavailable(self):
        self.status = STATUS_UNAVAILABLE
        log.error("Backend unavailable for this session; restart the app once the service is running")
