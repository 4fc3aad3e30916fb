"""
Error taxonomy for the monitor core.

Invalid observations are not represented here: they are dropped where they
are detected and never surface.
"""


class MonitorError(Exception):
    """Base class for every error the core reports."""


class BindingUnavailable(MonitorError):
    """Backend not ready yet, or a required entry point is missing."""


class BackendCallError(MonitorError):
    """A single backend call failed."""


class CallTimeout(BackendCallError):
    """A backend call lost its race against the timeout."""

    def __init__(self, name, timeout_ms):
        super().__init__(f"{name} timed out after {timeout_ms / 1000:g} seconds")
        self.name = name
        self.timeout_ms = timeout_ms


class ValidationError(MonitorError):
    """Local input rejected before any backend interaction."""


class OperationInProgress(MonitorError):
    """A mutation of the same kind is still running."""
